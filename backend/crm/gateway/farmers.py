import logging
import re

from django.db.models import Count, Max, Q

from crm.gateway.base import TableGateway, guarded
from crm.models import Farmer
from crm.serializers import FarmerWriteSerializer

logger = logging.getLogger(__name__)

FARMER_CODE_PATTERN = re.compile(r"F-(\d+)")
FIRST_FARMER_CODE = "F-001"


class FarmerGateway(TableGateway):
    model = Farmer
    write_serializer = FarmerWriteSerializer
    filter_fields = (
        "zone_id", "area_id", "village_id", "lead_stage", "lead_quality",
        "is_customer", "data_source",
        "assigned_tmo_id", "assigned_field_staff_id", "assigned_dealer_id",
    )
    ordering = ("-created_at",)
    select_related = (
        "zone", "area", "village",
        "assigned_tmo", "assigned_field_staff", "assigned_dealer",
    )

    def query(self):
        # Listings need the last touchpoint and active product count per farmer
        return super().query().annotate(
            last_activity_date=Max("activities__activity_date"),
            active_engagements=Count(
                "engagements", filter=Q(engagements__is_active=True), distinct=True,
            ),
        )

    def generate_farmer_code(self) -> str:
        """
        Next code after the most recently created one: F-001, F-002, ...
        Falls back to F-001 when there is no usable previous code.
        """
        last_code = (
            self.table()
            .exclude(farmer_code__isnull=True)
            .exclude(farmer_code="")
            .order_by("-created_at")
            .values_list("farmer_code", flat=True)
            .first()
        )
        if not last_code:
            return FIRST_FARMER_CODE

        match = FARMER_CODE_PATTERN.search(last_code)
        if not match:
            logger.warning("Last farmer code %r does not match F-NNN, restarting at %s", last_code, FIRST_FARMER_CODE)
            return FIRST_FARMER_CODE

        return f"F-{int(match.group(1)) + 1:03d}"

    @guarded
    def create(self, data: dict):
        data = dict(data)
        if not data.get("farmer_code"):
            data["farmer_code"] = self.generate_farmer_code()
        validated = self.parse(data)
        instance = self.table().create(**validated)
        logger.info("Farmer created: %s (%s)", instance.full_name, instance.farmer_code)
        return self.fetch(instance.pk)

    @guarded
    def search(self, term: str):
        return list(self.query().filter(
            Q(full_name__icontains=term) |
            Q(phone__icontains=term) |
            Q(village__name__icontains=term)
        ))

    @guarded
    def get_by_ids(self, ids):
        return list(self.query().filter(pk__in=ids))
