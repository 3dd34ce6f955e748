"""
Root URL configuration for the Agri Sales CRM back office.

Everything the dashboard needs lives under /api/. The project serves no
pages of its own; any other path is a plain 404.
"""
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    return JsonResponse({"status": "healthy"})


urlpatterns = [
    path('api/', include('crm.urls')),
    path('health', health_check),
]
