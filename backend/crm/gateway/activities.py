from django.db.models import Count, F
from django.utils import timezone

from crm.gateway.base import TableGateway, guarded
from crm.models import Farmer, FarmerActivity, FarmerEngagement
from crm.serializers import ActivityWriteSerializer

RECENT_LIMIT = 20


class ActivityGateway(TableGateway):
    model = FarmerActivity
    write_serializer = ActivityWriteSerializer
    filter_fields = ("farmer_id", "engagement_id", "activity_type", "performed_by_id")
    ordering = ("-activity_date",)
    select_related = ("farmer", "performed_by")

    @guarded
    def create(self, data: dict):
        """Log an activity now and bump the farmer/engagement touch counters."""
        validated = self.parse(data)
        now = timezone.now()
        activity = self.table().create(activity_date=now, **validated)

        self.backend.table(Farmer).filter(pk=activity.farmer_id).update(
            total_interactions=F("total_interactions") + 1,
        )
        if activity.engagement_id:
            self.backend.table(FarmerEngagement).filter(pk=activity.engagement_id).update(
                total_interactions=F("total_interactions") + 1,
                last_activity_date=now,
                updated_at=now,
            )
        return self.fetch(activity.pk)

    @guarded
    def get_by_farmer(self, farmer_id):
        return list(self.query().filter(farmer_id=farmer_id))

    @guarded
    def get_recent(self, limit: int = RECENT_LIMIT):
        return list(self.query()[:limit])

    @guarded
    def get_stats(self, farmer_id):
        counts = {
            row["activity_type"]: row["count"]
            for row in (
                self.table()
                .filter(farmer_id=farmer_id)
                .values("activity_type")
                .annotate(count=Count("id"))
                .order_by()
            )
        }
        return {
            "total": sum(counts.values()),
            "calls": counts.get(FarmerActivity.ActivityType.CALL, 0),
            "visits": counts.get(FarmerActivity.ActivityType.VISIT, 0),
            "meetings": counts.get(FarmerActivity.ActivityType.MEETING, 0),
            "notes": counts.get(FarmerActivity.ActivityType.NOTE, 0),
        }
