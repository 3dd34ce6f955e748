"""
Engagement Lifecycle

Owns the lead-stage state machine for farmer engagements and the terminal
operations around it (convert, close, reopen), plus funnel statistics.

Funnel:
  Acquisition: new → contacted → qualified → meeting_invited → meeting_attended
               → visit_scheduled → visit_completed → interested → negotiation
  Outcome:     converted → active_customer
  Terminal:    converted, inactive, lost, rejected

Every change is one transaction: lock the row, check the move against
ALLOWED_TRANSITIONS, write, append an EngagementStageHistory row. Callers
re-read (the returned record or a refresh) to see the new state.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from crm.gateway.base import GatewayError, GatewayFailure, guarded
from crm.gateway.engagements import EngagementGateway
from crm.models import EngagementStageHistory, FarmerEngagement, LeadStage, UserProfile, DataSource

logger = logging.getLogger(__name__)

S = LeadStage

# Stages every open engagement may drop out to
_EXITS = {S.LOST, S.REJECTED, S.INACTIVE}

_TRANSITIONS = {
    S.NEW: frozenset({S.CONTACTED, S.QUALIFIED, S.MEETING_INVITED} | _EXITS),
    S.CONTACTED: frozenset({S.QUALIFIED, S.MEETING_INVITED, S.VISIT_SCHEDULED, S.INTERESTED} | _EXITS),
    S.QUALIFIED: frozenset({S.MEETING_INVITED, S.VISIT_SCHEDULED, S.INTERESTED, S.NEGOTIATION} | _EXITS),
    S.MEETING_INVITED: frozenset({S.MEETING_ATTENDED, S.CONTACTED} | _EXITS),
    S.MEETING_ATTENDED: frozenset({S.VISIT_SCHEDULED, S.INTERESTED, S.NEGOTIATION} | _EXITS),
    S.VISIT_SCHEDULED: frozenset({S.VISIT_COMPLETED, S.CONTACTED} | _EXITS),
    S.VISIT_COMPLETED: frozenset({S.INTERESTED, S.NEGOTIATION, S.VISIT_SCHEDULED} | _EXITS),
    S.INTERESTED: frozenset({S.NEGOTIATION, S.VISIT_SCHEDULED, S.CONVERTED} | _EXITS),
    S.NEGOTIATION: frozenset({S.CONVERTED, S.INTERESTED} | _EXITS),
    S.CONVERTED: frozenset({S.ACTIVE_CUSTOMER, S.INACTIVE}),
    S.ACTIVE_CUSTOMER: frozenset({S.INACTIVE}),
    # Re-engagement paths
    S.INACTIVE: frozenset({S.CONTACTED, S.ACTIVE_CUSTOMER}),
    S.LOST: frozenset({S.CONTACTED}),
    S.REJECTED: frozenset({S.CONTACTED}),
}

# Keyed by plain stage values so lookups work with strings read from the database
ALLOWED_TRANSITIONS: dict[str, frozenset] = {
    stage.value: frozenset(target.value for target in targets)
    for stage, targets in _TRANSITIONS.items()
}

TERMINAL_STAGES = frozenset(s.value for s in (S.CONVERTED, S.INACTIVE, S.LOST, S.REJECTED))
CONVERTED = S.CONVERTED.value


def stage_label(stage: str) -> str:
    try:
        return LeadStage(stage).label
    except ValueError:
        return stage


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


@dataclass
class IllegalStageTransition(GatewayError):
    """The requested stage is not reachable from the engagement's current stage."""
    from_stage: str = ""
    to_stage: str = ""

    @classmethod
    def between(cls, current: str, new: str) -> "IllegalStageTransition":
        allowed = [s for s in LeadStage.values if s in ALLOWED_TRANSITIONS.get(current, ())]
        return cls(
            message=f"Cannot move from {stage_label(current)} to {stage_label(new)}",
            code="illegal_transition",
            details={"from": current, "to": new, "allowed": allowed},
            from_stage=current,
            to_stage=new,
        )


# ─── History display ─────────────────────────────────────────────────────────

def describe_history_entry(entry: EngagementStageHistory) -> str:
    """Human-readable line for the engagement timeline."""
    field = entry.field_changed
    old, new = entry.old_value, entry.new_value

    if field == "created":
        return entry.change_reason or "Engagement created"
    if field == "lead_stage":
        if old and new:
            return f"Stage changed from {stage_label(old)} to {stage_label(new)}"
        return f"Stage set to {stage_label(new)}"
    if field == "data_source":
        new_label = DataSource(new).label if new in DataSource.values else new
        if old:
            old_label = DataSource(old).label if old in DataSource.values else old
            return f"Updated from {old_label} to {new_label}"
        return f"Added as {new_label}"
    if field == "is_converted":
        return "Converted to customer!" if new == "true" else "Conversion status changed"
    if field == "is_active":
        if new == "false":
            return f"Engagement closed: {entry.change_reason}" if entry.change_reason else "Engagement closed"
        return "Engagement reopened"
    if field == "assigned_tmo_id":
        return "TMO assignment changed" if old else "TMO assigned"
    return entry.change_reason or f"{field} updated"


# ─── Lifecycle manager ───────────────────────────────────────────────────────

class EngagementLifecycle:
    """
    Stage changes and terminal operations for engagements.

    enforce_transitions=False accepts any stage over any other (the old
    dashboard behaviour); None reads CRM_ENFORCE_STAGE_TRANSITIONS.
    """

    model = FarmerEngagement

    def __init__(self, backend, enforce_transitions: bool | None = None):
        self.backend = backend
        if enforce_transitions is None:
            enforce_transitions = getattr(settings, "CRM_ENFORCE_STAGE_TRANSITIONS", True)
        self.enforce_transitions = enforce_transitions
        self.engagements = EngagementGateway(backend)

    # ─── Internals ───────────────────────────────────────────────────────

    def _lock(self, pk) -> FarmerEngagement:
        return self.backend.table(FarmerEngagement).select_for_update().get(pk=pk)

    def _check_actor(self, actor_id):
        if actor_id and not self.backend.table(UserProfile).filter(pk=actor_id).exists():
            raise GatewayFailure(GatewayError(
                "Invalid data", code="validation_error",
                details={"changed_by": [f"Unknown user {actor_id}"]},
            ))

    def _check_transition(self, current: str, new: str):
        if new not in LeadStage.values:
            raise GatewayFailure(GatewayError(
                f"Unknown lead stage: {new}", code="invalid_stage",
                details={"allowed": list(LeadStage.values)},
            ))
        if self.enforce_transitions and not can_transition(current, new):
            logger.warning("Rejected stage change %s -> %s", current, new)
            raise GatewayFailure(IllegalStageTransition.between(current, new))

    def _move_to(self, engagement: FarmerEngagement, new_stage: str, now):
        engagement.lead_stage = new_stage
        engagement.stage_changed_at = now
        engagement.days_in_current_stage = 0

    def _record(self, engagement, field, old, new, actor_id=None, reason=None,
                triggered_by="manual", metadata=None):
        return self.backend.table(EngagementStageHistory).create(
            engagement=engagement,
            field_changed=field,
            old_value=old,
            new_value=new,
            changed_by_id=actor_id,
            change_reason=reason,
            triggered_by=triggered_by,
            metadata=metadata or {},
        )

    # ─── Stage machine ───────────────────────────────────────────────────

    def allowed_next_stages(self, stage: str) -> list[str]:
        if not self.enforce_transitions:
            return [s for s in LeadStage.values if s != stage]
        return [s for s in LeadStage.values if can_transition(stage, s)]

    @guarded
    def update_stage(self, pk, new_stage: str, actor_id=None, reason: str | None = None,
                     triggered_by: str = "manual"):
        """Move an engagement to new_stage. Writing the current stage is a no-op."""
        engagement = self._lock(pk)
        old_stage = engagement.lead_stage
        if new_stage == old_stage:
            return self.engagements.fetch(pk)

        self._check_transition(old_stage, new_stage)
        self._check_actor(actor_id)

        self._move_to(engagement, new_stage, timezone.now())
        engagement.save(using=self.backend.using, update_fields=[
            "lead_stage", "stage_changed_at", "days_in_current_stage", "updated_at",
        ])
        self._record(
            engagement, "lead_stage", old_stage, new_stage, actor_id=actor_id,
            reason=reason or f"Stage changed from {stage_label(old_stage)} to {stage_label(new_stage)}",
            triggered_by=triggered_by,
        )
        logger.info("Engagement %s stage %s -> %s", pk, old_stage, new_stage)
        return self.engagements.fetch(pk)

    @guarded
    def mark_converted(self, pk, total_purchases=None, actor_id=None):
        """
        Convert an engagement. Converting again only updates total_purchases:
        the conversion date and history are left as first recorded.
        """
        engagement = self._lock(pk)
        old_stage = engagement.lead_stage
        now = timezone.now()

        if old_stage != CONVERTED:
            self._check_transition(old_stage, CONVERTED)
        self._check_actor(actor_id)

        was_converted = engagement.is_converted
        if old_stage != CONVERTED:
            self._move_to(engagement, S.CONVERTED, now)
        if not was_converted:
            engagement.is_converted = True
            engagement.conversion_date = now
        engagement.total_purchases = Decimal(str(total_purchases or 0))
        engagement.save(using=self.backend.using, update_fields=[
            "lead_stage", "stage_changed_at", "days_in_current_stage",
            "is_converted", "conversion_date", "total_purchases", "updated_at",
        ])

        if old_stage != CONVERTED:
            self._record(engagement, "lead_stage", old_stage, CONVERTED, actor_id=actor_id,
                         reason=f"Stage changed from {stage_label(old_stage)} to Converted")
        if not was_converted:
            self._record(engagement, "is_converted", "false", "true", actor_id=actor_id,
                         metadata={"total_purchases": str(engagement.total_purchases)})
        logger.info("Engagement %s converted (total_purchases=%s)", pk, engagement.total_purchases)
        return self.engagements.fetch(pk)

    @guarded
    def close(self, pk, reason: str, actor_id=None):
        """Deactivate an engagement. The lead stage is left as it was; closing twice is a no-op."""
        if not reason or not reason.strip():
            raise GatewayFailure(GatewayError(
                "Invalid data", code="validation_error",
                details={"reason": ["A closure reason is required."]},
            ))
        engagement = self._lock(pk)
        self._check_actor(actor_id)
        if not engagement.is_active:
            return self.engagements.fetch(pk)

        engagement.is_active = False
        engagement.closure_reason = reason
        engagement.closure_date = timezone.now()
        engagement.save(using=self.backend.using, update_fields=[
            "is_active", "closure_reason", "closure_date", "updated_at",
        ])
        self._record(engagement, "is_active", "true", "false", actor_id=actor_id, reason=reason)
        logger.info("Engagement %s closed at stage %s", pk, engagement.lead_stage)
        return self.engagements.fetch(pk)

    @guarded
    def reopen(self, pk, actor_id=None):
        """Reactivate an engagement. The lead stage is not reset."""
        engagement = self._lock(pk)
        self._check_actor(actor_id)
        was_active = engagement.is_active

        engagement.is_active = True
        engagement.closure_reason = None
        engagement.closure_date = None
        engagement.save(using=self.backend.using, update_fields=[
            "is_active", "closure_reason", "closure_date", "updated_at",
        ])
        if not was_active:
            self._record(engagement, "is_active", "false", "true", actor_id=actor_id)
        return self.engagements.fetch(pk)

    # ─── Reporting ───────────────────────────────────────────────────────

    @guarded
    def get_stats(self, product_id=None, season=None, data_source=None, assigned_tmo_id=None):
        """Funnel counts over active engagements."""
        queryset = self.engagements.apply_filters(
            self.backend.table(FarmerEngagement).filter(is_active=True),
            {
                "product_id": product_id, "season": season,
                "data_source": data_source, "assigned_tmo_id": assigned_tmo_id,
            },
        )
        rows = list(queryset.values("lead_stage", "is_converted", "lead_quality", "data_source"))

        total = len(rows)
        converted = sum(1 for row in rows if row["is_converted"])
        quality = Counter(row["lead_quality"] for row in rows)

        return {
            "total": total,
            "converted": converted,
            "conversion_rate": round(converted / total * 100, 2) if total else 0.0,
            "hot": quality.get("hot", 0),
            "warm": quality.get("warm", 0),
            "cold": quality.get("cold", 0),
            "by_stage": dict(Counter(row["lead_stage"] for row in rows)),
            "by_source": dict(Counter(row["data_source"] for row in rows)),
        }

    @guarded
    def stage_history(self, pk):
        if not self.backend.table(FarmerEngagement).filter(pk=pk).exists():
            raise FarmerEngagement.DoesNotExist
        return list(
            self.backend.table(EngagementStageHistory)
            .filter(engagement_id=pk)
            .select_related("changed_by")
            .order_by("-created_at")
        )

    @guarded
    def farmer_history(self, farmer_id):
        """Every engagement change for one farmer, newest first, with the product loaded."""
        return list(
            self.backend.table(EngagementStageHistory)
            .filter(engagement__farmer_id=farmer_id)
            .select_related("changed_by", "engagement__product")
            .order_by("-created_at")
        )

    def refresh_stage_durations(self, now=None) -> int:
        """Recompute days_in_current_stage for active engagements. Returns rows changed."""
        now = now or timezone.now()
        stale = []
        for engagement in self.backend.table(FarmerEngagement).filter(is_active=True).only(
            "id", "stage_changed_at", "days_in_current_stage",
        ):
            days = max((now - engagement.stage_changed_at).days, 0)
            if days != engagement.days_in_current_stage:
                engagement.days_in_current_stage = days
                stale.append(engagement)

        if stale:
            self.backend.table(FarmerEngagement).bulk_update(stale, ["days_in_current_stage"], batch_size=500)
        logger.info("Stage durations refreshed for %d engagements", len(stale))
        return len(stale)
