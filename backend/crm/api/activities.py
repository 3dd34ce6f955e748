"""Farmer activity log: calls, visits, meetings, notes."""
from rest_framework import status

from crm.api.base import CrmView, DetailView, ListCreateView
from crm.gateway import ActivityGateway
from crm.gateway.activities import RECENT_LIMIT
from crm.serializers import ActivitySerializer


class ActivityListCreateView(ListCreateView):
    gateway_class = ActivityGateway
    serializer_class = ActivitySerializer
    query_filters = {
        "farmer": "farmer_id", "engagement": "engagement_id",
        "activity_type": "activity_type", "performed_by": "performed_by_id",
    }


class ActivityDetailView(DetailView):
    gateway_class = ActivityGateway
    serializer_class = ActivitySerializer
    label_field = "activity_title"


class RecentActivitiesView(CrmView):
    gateway_class = ActivityGateway
    serializer_class = ActivitySerializer

    def get(self, request):
        try:
            limit = int(request.query_params.get("limit", RECENT_LIMIT))
        except ValueError:
            limit = RECENT_LIMIT
        return self.respond(self.gateway.get_recent(max(limit, 1)), many=True)


class FarmerActivitiesView(CrmView):
    gateway_class = ActivityGateway
    serializer_class = ActivitySerializer

    def get(self, request, farmer_id):
        return self.respond(self.gateway.get_by_farmer(farmer_id), many=True)

    def post(self, request, farmer_id):
        data = request.data.copy()
        data["farmer"] = str(farmer_id)
        return self.respond(self.gateway.create(data), status_code=status.HTTP_201_CREATED)


class FarmerActivityStatsView(CrmView):
    gateway_class = ActivityGateway

    def get(self, request, farmer_id):
        return self.respond(self.gateway.get_stats(farmer_id))
