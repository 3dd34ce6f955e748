"""
Management command to register the daily stage-duration sweep with django-q.

Usage:
    python manage.py setup_stage_sweep

This creates (or updates) a Schedule entry that runs refresh_stage_durations()
once a day at STAGE_SWEEP_HOUR (UTC). Safe to run multiple times: it uses
update_or_create.
"""
from datetime import datetime, time, timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone
from django_q.models import Schedule


class Command(BaseCommand):
    help = "Register the daily engagement stage-duration sweep with django-q"

    def handle(self, *args, **options):
        hour = getattr(settings, "STAGE_SWEEP_HOUR", 2)
        now = timezone.now()
        next_run = datetime.combine(now.date(), time(hour=hour), tzinfo=now.tzinfo)
        if next_run <= now:
            next_run += timedelta(days=1)

        schedule, created = Schedule.objects.update_or_create(
            name="crm_refresh_stage_durations",
            defaults={
                "func": "crm.services.tasks.refresh_stage_durations",
                "schedule_type": Schedule.DAILY,
                "next_run": next_run,
                "repeats": -1,  # run forever
            },
        )
        verb = "Created" if created else "Updated"
        self.stdout.write(self.style.SUCCESS(
            f"{verb} periodic task: {schedule.name} (daily at {hour:02d}:00 UTC)"
        ))
