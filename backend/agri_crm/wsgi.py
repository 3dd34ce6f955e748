"""WSGI config for the Agri Sales CRM back office."""
import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'agri_crm.settings')
application = get_wsgi_application()
