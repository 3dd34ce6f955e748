"""
Recurring dealer touchpoints: the schedule of stock reports, reviews and
payment follow-ups a TMO owes each dealer.

next_scheduled_date is always computed here from the frequency, on create,
whenever the frequency or preferred day changes, and on completion.
"""
import calendar
import logging
from datetime import date, timedelta

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from crm.gateway.base import TableGateway, guarded
from crm.models import DealerTouchpoint
from crm.serializers import DealerTouchpointSerializer

logger = logging.getLogger(__name__)

Frequency = DealerTouchpoint.Frequency

DUE_OVERDUE = "overdue"
DUE_TODAY = "today"
DUE_UPCOMING = "upcoming"
UPCOMING_DAYS = 7


def add_months(day: date, months: int) -> date:
    """Same day `months` later, clamped to the end of a shorter month."""
    month_index = day.month - 1 + months
    year, month = day.year + month_index // 12, month_index % 12 + 1
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


def next_scheduled_date(frequency: str, preferred_day_of_week: int | None = None, today: date | None = None) -> date:
    """
    daily: tomorrow. weekly: the next preferred ISO weekday (Monday by
    default), never today. monthly/quarterly: same day 1 or 3 months on.
    """
    today = today or timezone.localdate()
    if frequency == Frequency.DAILY:
        return today + timedelta(days=1)
    if frequency == Frequency.WEEKLY:
        days_ahead = (preferred_day_of_week or 1) - today.isoweekday()
        if days_ahead <= 0:
            days_ahead += 7
        return today + timedelta(days=days_ahead)
    if frequency == Frequency.MONTHLY:
        return add_months(today, 1)
    if frequency == Frequency.QUARTERLY:
        return add_months(today, 3)
    raise ValueError(f"Unknown touchpoint frequency: {frequency}")


class DealerTouchpointGateway(TableGateway):
    model = DealerTouchpoint
    write_serializer = DealerTouchpointSerializer
    filter_fields = ("dealer_id", "assigned_to_id", "touchpoint_type", "frequency", "is_active")
    ordering = ("-created_at",)
    select_related = ("dealer", "assigned_to")

    @guarded
    def create(self, data: dict, today: date | None = None):
        validated = self.parse(data)
        validated["next_scheduled_date"] = next_scheduled_date(
            validated["frequency"], validated.get("preferred_day_of_week"), today,
        )
        touchpoint = self.table().create(**validated)
        return self.fetch(touchpoint.pk)

    @guarded
    def update(self, pk, data: dict, today: date | None = None):
        touchpoint = self.table().get(pk=pk)
        validated = self.parse(data, instance=touchpoint, partial=True)
        reschedule = "frequency" in validated or "preferred_day_of_week" in validated
        for name, value in validated.items():
            setattr(touchpoint, name, value)
        if reschedule:
            touchpoint.next_scheduled_date = next_scheduled_date(
                touchpoint.frequency, touchpoint.preferred_day_of_week, today,
            )
        touchpoint.save(using=self.backend.using)
        return self.fetch(pk)

    @guarded
    def complete(self, pk, today: date | None = None):
        """Mark today's touchpoint done and roll the schedule forward."""
        today = today or timezone.localdate()
        touchpoint = self.table().get(pk=pk)
        touchpoint.last_executed_date = today
        touchpoint.next_scheduled_date = next_scheduled_date(
            touchpoint.frequency, touchpoint.preferred_day_of_week, today,
        )
        touchpoint.save(using=self.backend.using, update_fields=[
            "last_executed_date", "next_scheduled_date", "updated_at",
        ])
        logger.info("Dealer touchpoint %s done, next on %s", pk, touchpoint.next_scheduled_date)
        return self.fetch(pk)

    @guarded
    def get_by_dealer(self, dealer_id):
        return list(self.query().filter(dealer_id=dealer_id))

    @guarded
    def due(self, when: str = DUE_TODAY, user_id=None, days: int = UPCOMING_DAYS, today: date | None = None):
        """
        Active touchpoints by schedule: "overdue" (before today), "today"
        (by preferred time) or "upcoming" (today through today + days).
        """
        today = today or timezone.localdate()
        queryset = self.query().filter(is_active=True)
        if user_id:
            queryset = queryset.filter(assigned_to_id=user_id)

        if when == DUE_OVERDUE:
            queryset = queryset.filter(next_scheduled_date__lt=today).order_by("next_scheduled_date")
        elif when == DUE_TODAY:
            queryset = queryset.filter(next_scheduled_date=today).order_by("preferred_time")
        elif when == DUE_UPCOMING:
            queryset = queryset.filter(
                next_scheduled_date__gte=today,
                next_scheduled_date__lte=today + timedelta(days=days),
            ).order_by("next_scheduled_date")
        else:
            raise ValidationError({"due": [f"Unknown due filter: {when}"]})
        return list(queryset)
