"""
Background sweep: the django-q schedule and the task it runs.
"""
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone
from django_q.models import Schedule

from crm.models import FarmerEngagement
from crm.services.tasks import refresh_stage_durations

pytestmark = pytest.mark.django_db


def test_setup_stage_sweep_is_idempotent(settings):
    settings.STAGE_SWEEP_HOUR = 3
    out = StringIO()
    call_command("setup_stage_sweep", stdout=out)
    call_command("setup_stage_sweep", stdout=out)

    schedule = Schedule.objects.get(name="crm_refresh_stage_durations")
    assert Schedule.objects.filter(name="crm_refresh_stage_durations").count() == 1
    assert schedule.func == "crm.services.tasks.refresh_stage_durations"
    assert schedule.schedule_type == Schedule.DAILY
    assert schedule.next_run.hour == 3
    assert schedule.next_run > timezone.now()
    assert "Updated periodic task" in out.getvalue()


def test_refresh_task(engagement):
    FarmerEngagement.objects.filter(pk=engagement.pk).update(
        stage_changed_at=timezone.now() - timedelta(days=10),
    )
    assert refresh_stage_durations() == 1
    engagement.refresh_from_db()
    assert engagement.days_in_current_stage == 10
