"""Zones, areas and villages: the three-level sales geography."""
from crm.gateway.base import TableGateway, guarded
from crm.models import Zone, Area, Village
from crm.serializers import ZoneSerializer, AreaSerializer, VillageSerializer


class ZoneGateway(TableGateway):
    model = Zone
    write_serializer = ZoneSerializer
    filter_fields = ("is_active", "country", "manager_id")
    ordering = ("name",)

    @guarded
    def get_active(self):
        """Zones offered in selectors (e.g. the new-area form)."""
        return list(self.query().filter(is_active=True))


class AreaGateway(TableGateway):
    model = Area
    write_serializer = AreaSerializer
    filter_fields = ("zone_id", "is_active")
    ordering = ("name",)
    select_related = ("zone",)

    @guarded
    def get_by_zone(self, zone_id):
        return list(self.query().filter(zone_id=zone_id))


class VillageGateway(TableGateway):
    model = Village
    write_serializer = VillageSerializer
    filter_fields = ("area_id", "area__zone_id", "village_type", "is_active")
    ordering = ("name",)
    select_related = ("area", "area__zone")

    @guarded
    def get_all(self, **filters):
        # Listings show active villages unless the caller asks otherwise
        if filters.get("is_active") is None:
            filters["is_active"] = True
        if "zone_id" in filters:
            filters["area__zone_id"] = filters.pop("zone_id")
        return list(self.apply_filters(self.query(), filters))

    @guarded
    def get_by_area(self, area_id):
        return list(self.query().filter(area_id=area_id, is_active=True))
