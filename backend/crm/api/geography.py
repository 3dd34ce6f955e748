"""Zones, areas and villages."""
from crm.api.base import CrmView, DetailView, ListCreateView
from crm.gateway import AreaGateway, VillageGateway, ZoneGateway
from crm.serializers import (
    AreaSerializer, VillageSerializer, ZoneSerializer, ZoneSummarySerializer,
)


class ZoneListCreateView(ListCreateView):
    gateway_class = ZoneGateway
    serializer_class = ZoneSerializer
    query_filters = {"is_active": "is_active", "country": "country", "manager": "manager_id"}


class ZoneDetailView(DetailView):
    gateway_class = ZoneGateway
    serializer_class = ZoneSerializer


class AreaListCreateView(ListCreateView):
    gateway_class = AreaGateway
    serializer_class = AreaSerializer
    query_filters = {"zone": "zone_id", "is_active": "is_active"}


class AreaDetailView(DetailView):
    gateway_class = AreaGateway
    serializer_class = AreaSerializer


class AreaFormOptionsView(CrmView):
    """Zones a new area can be placed in. Inactive zones are not offered."""

    gateway_class = ZoneGateway

    def get(self, request):
        result = self.gateway.get_active()
        return self.respond(result, ZoneSummarySerializer, many=True)


class VillageListCreateView(ListCreateView):
    gateway_class = VillageGateway
    serializer_class = VillageSerializer
    query_filters = {
        "area": "area_id", "zone": "zone_id",
        "village_type": "village_type", "is_active": "is_active",
    }


class VillageDetailView(DetailView):
    gateway_class = VillageGateway
    serializer_class = VillageSerializer


class VillagesByAreaView(CrmView):
    gateway_class = VillageGateway
    serializer_class = VillageSerializer

    def get(self, request, area_id):
        return self.respond(self.gateway.get_by_area(area_id), many=True)
