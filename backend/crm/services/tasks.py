"""
django-q task entrypoints.

Workers run in their own process, so each task builds its Backend from
settings rather than sharing one with the web process.
"""
import logging

from crm.gateway.base import Backend
from crm.services.lifecycle import EngagementLifecycle

logger = logging.getLogger(__name__)


def refresh_stage_durations() -> int:
    """Daily sweep: keep days_in_current_stage in step with stage_changed_at."""
    return EngagementLifecycle(Backend.from_settings()).refresh_stage_durations()
