"""
Engagement data access: CRUD, bulk upload, season lookups and follow-ups.

Stage, conversion and closure changes are not here; they go through
crm.services.lifecycle.EngagementLifecycle.
"""
import logging
from datetime import date, timedelta

from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError

from crm.gateway.base import TableGateway, guarded
from crm.models import FarmerEngagement, EngagementStageHistory
from crm.serializers import EngagementCreateSerializer, EngagementUpdateSerializer

logger = logging.getLogger(__name__)

DUE_TODAY = "today"
DUE_OVERDUE = "overdue"
DUE_THIS_WEEK = "this_week"


class EngagementGateway(TableGateway):
    model = FarmerEngagement
    write_serializer = EngagementCreateSerializer
    filter_fields = (
        "farmer_id", "product_id", "season", "data_source",
        "lead_stage", "is_active", "assigned_tmo_id",
    )
    ordering = ("-created_at",)
    select_related = ("farmer", "product", "assigned_tmo", "assigned_field_staff")

    def parse(self, data: dict, instance=None, partial: bool = False) -> dict:
        serializer_class = EngagementUpdateSerializer if instance is not None else EngagementCreateSerializer
        serializer = serializer_class(instance, data=data, partial=partial)
        serializer.is_valid(raise_exception=True)
        return dict(serializer.validated_data)

    def _record_created(self, engagement, triggered_by="manual"):
        EngagementStageHistory.objects.using(self.backend.using).create(
            engagement=engagement,
            field_changed="created",
            new_value=engagement.lead_stage,
            changed_by=engagement.created_by,
            change_reason="Engagement created",
            triggered_by=triggered_by,
            metadata={"data_source": engagement.data_source, "season": engagement.season},
        )

    # ─── CRUD extras ─────────────────────────────────────────────────────

    @guarded
    def create(self, data: dict):
        validated = self.parse(data)
        engagement = self.table().create(**validated)
        self._record_created(engagement)
        return self.fetch(engagement.pk)

    @guarded
    def bulk_create(self, rows: list[dict]):
        """Create many engagements (list upload). All rows must validate or nothing is written."""
        parsed, errors = [], {}
        for index, row in enumerate(rows):
            serializer = EngagementCreateSerializer(data=row)
            if serializer.is_valid():
                parsed.append(serializer.validated_data)
            else:
                errors[index] = serializer.errors
        if errors:
            raise ValidationError(errors)

        created = [self.table().create(**validated) for validated in parsed]
        for engagement in created:
            self._record_created(engagement, triggered_by="import")
        logger.info("Bulk created %d engagements", len(created))
        return created

    @guarded
    def get_by_farmer(self, farmer_id, active_only: bool = True):
        queryset = self.query().filter(farmer_id=farmer_id)
        if active_only:
            queryset = queryset.filter(is_active=True)
        return list(queryset)

    @guarded
    def seasons(self):
        return list(
            self.table()
            .order_by("-season")
            .values_list("season", flat=True)
            .distinct()
        )

    @guarded
    def exists(self, farmer_id, product_id, season):
        engagement_id = (
            self.table()
            .filter(farmer_id=farmer_id, product_id=product_id, season=season)
            .values_list("id", flat=True)
            .first()
        )
        return {"exists": engagement_id is not None, "engagement_id": engagement_id}

    # ─── Follow-ups ──────────────────────────────────────────────────────

    @guarded
    def set_follow_up(self, pk, follow_up_date, notes=None):
        updated = self.table().filter(pk=pk).update(
            follow_up_required=True,
            next_follow_up_date=follow_up_date,
            follow_up_notes=notes,
            updated_at=timezone.now(),
        )
        if not updated:
            raise FarmerEngagement.DoesNotExist
        return self.fetch(pk)

    @guarded
    def complete_follow_up(self, pk):
        now = timezone.now()
        updated = self.table().filter(pk=pk).update(
            follow_up_required=False,
            last_contact_date=now,
            updated_at=now,
        )
        if not updated:
            raise FarmerEngagement.DoesNotExist
        return self.fetch(pk)

    @guarded
    def follow_ups_due(self, tmo_id=None, due=None, product_id=None, season=None, today: date | None = None):
        """
        Active engagements flagged for follow-up, soonest first.

        due: "today", "overdue", "this_week" (today through today + 7 days),
        or an ISO date for that exact day.
        """
        today = today or timezone.localdate()
        queryset = (
            self.query()
            .filter(follow_up_required=True, is_active=True)
            .order_by("next_follow_up_date")
        )
        queryset = self.apply_filters(queryset, {
            "assigned_tmo_id": tmo_id, "product_id": product_id, "season": season,
        })

        if due == DUE_TODAY:
            queryset = queryset.filter(next_follow_up_date=today)
        elif due == DUE_OVERDUE:
            queryset = queryset.filter(next_follow_up_date__lt=today)
        elif due == DUE_THIS_WEEK:
            queryset = queryset.filter(
                next_follow_up_date__gte=today,
                next_follow_up_date__lte=today + timedelta(days=7),
            )
        elif due:
            try:
                specific = parse_date(due) if isinstance(due, str) else due
            except ValueError:
                specific = None
            if specific is None:
                raise ValidationError({"due": [f"Unknown due filter: {due}"]})
            queryset = queryset.filter(next_follow_up_date=specific)

        return list(queryset)

    @guarded
    def follow_up_stats(self, tmo_id=None, today: date | None = None):
        today = today or timezone.localdate()
        end_of_week = today + timedelta(days=7)

        queryset = self.table().filter(follow_up_required=True, is_active=True)
        if tmo_id:
            queryset = queryset.filter(assigned_tmo_id=tmo_id)
        dates = list(queryset.values_list("next_follow_up_date", flat=True))
        scheduled = [d for d in dates if d is not None]

        return {
            "total": len(dates),
            "overdue": sum(1 for d in scheduled if d < today),
            "today": sum(1 for d in scheduled if d == today),
            "this_week": sum(1 for d in scheduled if today <= d <= end_of_week),
            "upcoming": sum(1 for d in scheduled if d > end_of_week),
        }
