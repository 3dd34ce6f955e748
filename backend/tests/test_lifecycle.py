"""
Engagement lifecycle: stage machine, conversion, closure, history and stats.
"""
import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from crm.models import EngagementStageHistory, FarmerEngagement, LeadStage
from crm.services.lifecycle import (
    ALLOWED_TRANSITIONS, TERMINAL_STAGES, EngagementLifecycle, IllegalStageTransition,
    can_transition, describe_history_entry,
)

pytestmark = pytest.mark.django_db


def _set_stage(engagement, stage):
    FarmerEngagement.objects.filter(pk=engagement.pk).update(lead_stage=stage)


# =============================================================================
# TRANSITION TABLE
# =============================================================================

class TestTransitionTable:

    def test_every_stage_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(LeadStage.values)

    def test_targets_are_known_stages(self):
        for targets in ALLOWED_TRANSITIONS.values():
            assert targets <= set(LeadStage.values)

    def test_open_stages_can_drop_out(self):
        for stage in LeadStage.values:
            if stage in TERMINAL_STAGES or stage == "active_customer":
                continue
            assert can_transition(stage, "lost")
            assert can_transition(stage, "rejected")

    def test_lookup_works_with_plain_strings(self):
        assert can_transition("new", "contacted")
        assert not can_transition("new", "converted")
        assert not can_transition("unknown", "new")


# =============================================================================
# STAGE CHANGES
# =============================================================================

class TestUpdateStage:

    def test_legal_move_writes_stage_and_history(self, lifecycle, engagement, tmo):
        result = lifecycle.update_stage(engagement.id, "contacted", actor_id=tmo.id)

        assert result.ok, result.error
        assert result.data.lead_stage == "contacted"
        assert result.data.days_in_current_stage == 0

        entry = EngagementStageHistory.objects.get(engagement=engagement, field_changed="lead_stage")
        assert entry.old_value == "new"
        assert entry.new_value == "contacted"
        assert entry.changed_by_id == tmo.id
        assert entry.change_reason == "Stage changed from New to Contacted"

    def test_custom_reason_is_kept(self, lifecycle, engagement):
        lifecycle.update_stage(engagement.id, "contacted", reason="Called twice")
        entry = EngagementStageHistory.objects.get(engagement=engagement)
        assert entry.change_reason == "Called twice"

    def test_same_stage_is_a_noop(self, lifecycle, engagement):
        result = lifecycle.update_stage(engagement.id, "new")
        assert result.ok
        assert not EngagementStageHistory.objects.filter(engagement=engagement).exists()

    def test_illegal_move_is_rejected(self, lifecycle, engagement):
        result = lifecycle.update_stage(engagement.id, "active_customer")

        assert not result.ok
        assert isinstance(result.error, IllegalStageTransition)
        assert result.error.code == "illegal_transition"
        assert result.error.from_stage == "new"
        assert result.error.to_stage == "active_customer"
        assert "contacted" in result.error.details["allowed"]

        engagement.refresh_from_db()
        assert engagement.lead_stage == "new"
        assert not EngagementStageHistory.objects.filter(engagement=engagement).exists()

    def test_unknown_stage(self, lifecycle, engagement):
        result = lifecycle.update_stage(engagement.id, "sleeping")
        assert result.error.code == "invalid_stage"

    def test_unknown_actor(self, lifecycle, engagement):
        result = lifecycle.update_stage(engagement.id, "contacted", actor_id=uuid.uuid4())
        assert result.error.code == "validation_error"
        engagement.refresh_from_db()
        assert engagement.lead_stage == "new"

    def test_missing_engagement(self, lifecycle, db):
        result = lifecycle.update_stage(uuid.uuid4(), "contacted")
        assert result.error.code == "not_found"
        assert result.error.message == "Farmer engagement not found"

    def test_permissive_mode_accepts_every_pair(self, backend, engagement):
        lifecycle = EngagementLifecycle(backend, enforce_transitions=False)
        for current in LeadStage.values:
            for new in LeadStage.values:
                _set_stage(engagement, current)
                result = lifecycle.update_stage(engagement.id, new)
                assert result.ok, (current, new, result.error)
                assert result.data.lead_stage == new

    def test_enforcement_follows_setting(self, backend, settings):
        settings.CRM_ENFORCE_STAGE_TRANSITIONS = False
        assert EngagementLifecycle(backend).enforce_transitions is False
        settings.CRM_ENFORCE_STAGE_TRANSITIONS = True
        assert EngagementLifecycle(backend).enforce_transitions is True

    def test_allowed_next_stages(self, backend):
        enforced = EngagementLifecycle(backend, enforce_transitions=True)
        permissive = EngagementLifecycle(backend, enforce_transitions=False)
        assert "converted" not in enforced.allowed_next_stages("new")
        assert set(enforced.allowed_next_stages("negotiation")) == ALLOWED_TRANSITIONS["negotiation"]
        assert len(permissive.allowed_next_stages("new")) == len(LeadStage.values) - 1


# =============================================================================
# CONVERT / CLOSE / REOPEN
# =============================================================================

class TestTerminalOperations:

    def test_mark_converted(self, lifecycle, engagement):
        _set_stage(engagement, "negotiation")
        result = lifecycle.mark_converted(engagement.id, 1000)

        assert result.ok, result.error
        assert result.data.lead_stage == "converted"
        assert result.data.is_converted is True
        assert result.data.conversion_date is not None
        assert result.data.total_purchases == Decimal("1000")

        fields = set(
            EngagementStageHistory.objects.filter(engagement=engagement).values_list("field_changed", flat=True)
        )
        assert fields == {"lead_stage", "is_converted"}

    def test_mark_converted_without_amount(self, backend, engagement):
        lifecycle = EngagementLifecycle(backend, enforce_transitions=False)
        result = lifecycle.mark_converted(engagement.id)
        assert result.data.total_purchases == Decimal("0")
        assert result.data.is_converted is True

    def test_mark_converted_respects_transitions(self, lifecycle, engagement):
        result = lifecycle.mark_converted(engagement.id, 1000)
        assert result.error.code == "illegal_transition"
        engagement.refresh_from_db()
        assert engagement.is_converted is False

    def test_close_keeps_stage(self, lifecycle, engagement):
        _set_stage(engagement, "interested")
        result = lifecycle.close(engagement.id, "Switched to competitor")

        assert result.ok
        assert result.data.is_active is False
        assert result.data.lead_stage == "interested"
        assert result.data.closure_reason == "Switched to competitor"
        assert result.data.closure_date is not None

    def test_convert_twice_keeps_first_conversion(self, lifecycle, engagement):
        _set_stage(engagement, "negotiation")
        first = lifecycle.mark_converted(engagement.id, 1000).data
        second = lifecycle.mark_converted(engagement.id, 2500)

        assert second.ok, second.error
        assert second.data.conversion_date == first.conversion_date
        assert second.data.total_purchases == Decimal("2500")
        history = EngagementStageHistory.objects.filter(engagement=engagement)
        assert history.filter(field_changed="is_converted").count() == 1
        assert history.filter(field_changed="lead_stage").count() == 1

    def test_close_twice_records_once(self, lifecycle, engagement):
        first = lifecycle.close(engagement.id, "No budget").data
        second = lifecycle.close(engagement.id, "Asked again")

        assert second.ok, second.error
        assert second.data.closure_date == first.closure_date
        assert second.data.closure_reason == "No budget"
        assert EngagementStageHistory.objects.filter(
            engagement=engagement, field_changed="is_active",
        ).count() == 1

    def test_close_needs_a_reason(self, lifecycle, engagement):
        result = lifecycle.close(engagement.id, "   ")
        assert result.error.code == "validation_error"
        engagement.refresh_from_db()
        assert engagement.is_active is True

    def test_reopen_clears_closure(self, lifecycle, engagement):
        lifecycle.close(engagement.id, "No budget this season")
        result = lifecycle.reopen(engagement.id)

        assert result.ok
        assert result.data.is_active is True
        assert result.data.closure_reason is None
        assert result.data.closure_date is None
        assert result.data.lead_stage == "new"


# =============================================================================
# HISTORY, STATS, DURATIONS
# =============================================================================

class TestReporting:

    def test_history_newest_first(self, lifecycle, engagement):
        lifecycle.update_stage(engagement.id, "contacted")
        lifecycle.update_stage(engagement.id, "qualified")

        result = lifecycle.stage_history(engagement.id)
        assert [entry.new_value for entry in result.data] == ["qualified", "contacted"]
        assert describe_history_entry(result.data[0]) == "Stage changed from Contacted to Qualified"

    def test_history_of_missing_engagement(self, lifecycle, db):
        assert lifecycle.stage_history(uuid.uuid4()).error.code == "not_found"

    def test_describe_closure_entry(self, lifecycle, engagement):
        lifecycle.close(engagement.id, "Moved away")
        entry = lifecycle.stage_history(engagement.id).data[0]
        assert describe_history_entry(entry) == "Engagement closed: Moved away"

    def test_stats(self, lifecycle, farmer, product, engagement):
        other = FarmerEngagement.objects.create(
            farmer=farmer, product=product, season="Kharif 2025",
            data_source="fm_attendees", lead_quality="warm",
        )
        _set_stage(other, "negotiation")
        lifecycle.mark_converted(other.id, 500)

        stats = lifecycle.get_stats().data
        assert stats["total"] == 2
        assert stats["converted"] == 1
        assert stats["conversion_rate"] == 50.0
        assert stats["hot"] == 1
        assert stats["warm"] == 1
        assert stats["by_stage"] == {"new": 1, "converted": 1}
        assert stats["by_source"] == {"data_bank": 1, "fm_attendees": 1}

        assert lifecycle.get_stats(season="Rabi 2025").data["total"] == 1

    def test_stats_ignore_closed_engagements(self, lifecycle, engagement):
        lifecycle.close(engagement.id, "Duplicate")
        stats = lifecycle.get_stats().data
        assert stats["total"] == 0
        assert stats["conversion_rate"] == 0.0

    def test_refresh_stage_durations(self, lifecycle, engagement):
        now = timezone.now()
        FarmerEngagement.objects.filter(pk=engagement.pk).update(stage_changed_at=now - timedelta(days=3))

        assert lifecycle.refresh_stage_durations(now=now) == 1
        engagement.refresh_from_db()
        assert engagement.days_in_current_stage == 3
        assert lifecycle.refresh_stage_durations(now=now) == 0
