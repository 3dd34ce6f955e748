"""
Engagement API: farmer x product x season leads.

General edits go through PATCH on the detail view. Stage, conversion and
closure only move through the lifecycle actions:

  POST /api/engagements/<id>/stage     {"lead_stage", "changed_by", "reason"}
  POST /api/engagements/<id>/convert   {"total_purchases", "changed_by"}
  POST /api/engagements/<id>/close     {"reason", "changed_by"}
  POST /api/engagements/<id>/reopen    {"changed_by"}
"""
from rest_framework import status
from rest_framework.response import Response

from crm.api.base import CrmView, DetailView, ListCreateView, error_response
from crm.gateway import EngagementGateway
from crm.gateway.base import GatewayError
from crm.models import LeadStage
from crm.serializers import (
    CloseSerializer, ConvertSerializer, EngagementSerializer, FollowUpSerializer,
    FarmerHistorySerializer, ReopenSerializer, StageChangeSerializer, StageHistorySerializer,
)
from crm.services.lifecycle import TERMINAL_STAGES, EngagementLifecycle


class LifecycleView(CrmView):
    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer

    @property
    def lifecycle(self):
        return EngagementLifecycle(self.backend)


# ─── Collection ──────────────────────────────────────────────────────────────

class EngagementListCreateView(ListCreateView):
    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer
    query_filters = {
        "farmer": "farmer_id", "product": "product_id", "season": "season",
        "data_source": "data_source", "lead_stage": "lead_stage",
        "is_active": "is_active", "tmo": "assigned_tmo_id",
    }


class EngagementDetailView(DetailView):
    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer
    label_field = "season"


class EngagementBulkCreateView(CrmView):
    """Create engagements from an uploaded list. One bad row rejects the whole upload."""

    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer

    def post(self, request):
        rows = request.data.get("rows") if isinstance(request.data, dict) else request.data
        if not isinstance(rows, list) or not rows:
            return error_response(GatewayError(
                "Invalid data", code="validation_error",
                details={"rows": ["Expected a non-empty list of engagements."]},
            ))
        return self.respond(self.gateway.bulk_create(rows), many=True, status_code=status.HTTP_201_CREATED)


class FarmerEngagementsView(CrmView):
    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer

    def get(self, request, farmer_id):
        active_only = request.query_params.get("include_closed", "").lower() != "true"
        return self.respond(self.gateway.get_by_farmer(farmer_id, active_only=active_only), many=True)


class EngagementExistsView(CrmView):
    """Duplicate check before creating: one engagement per farmer, product and season."""

    gateway_class = EngagementGateway

    def get(self, request):
        params = request.query_params
        return self.respond(self.gateway.exists(
            params.get("farmer"), params.get("product"), params.get("season"),
        ))


class EngagementSeasonsView(CrmView):
    gateway_class = EngagementGateway

    def get(self, request):
        return self.respond(self.gateway.seasons())


class EngagementStatsView(CrmView):
    """Funnel counts over active engagements: totals, conversion rate, quality, stage and source."""

    def get(self, request):
        params = request.query_params
        result = EngagementLifecycle(self.backend).get_stats(
            product_id=params.get("product") or None,
            season=params.get("season") or None,
            data_source=params.get("data_source") or None,
            assigned_tmo_id=params.get("tmo") or None,
        )
        return self.respond(result)


class EngagementStagesView(LifecycleView):
    """Stage labels and, per stage, where it may move next."""

    def get(self, request):
        lifecycle = self.lifecycle
        return Response({
            "enforced": lifecycle.enforce_transitions,
            "stages": [
                {
                    "value": value,
                    "label": label,
                    "terminal": value in TERMINAL_STAGES,
                    "next": lifecycle.allowed_next_stages(value),
                }
                for value, label in LeadStage.choices
            ],
        })


# ─── Follow-ups ──────────────────────────────────────────────────────────────

class FollowUpsDueView(CrmView):
    """?due=today|overdue|this_week|YYYY-MM-DD&tmo=&product=&season="""

    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer

    def get(self, request):
        params = request.query_params
        return self.respond(self.gateway.follow_ups_due(
            tmo_id=params.get("tmo") or None,
            due=params.get("due") or None,
            product_id=params.get("product") or None,
            season=params.get("season") or None,
        ), many=True)


class FollowUpStatsView(CrmView):
    gateway_class = EngagementGateway

    def get(self, request):
        return self.respond(self.gateway.follow_up_stats(tmo_id=request.query_params.get("tmo") or None))


class SetFollowUpView(CrmView):
    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer

    def post(self, request, pk):
        payload, error = self.parse_payload(FollowUpSerializer, request.data)
        if error:
            return error
        return self.respond(self.gateway.set_follow_up(
            pk, payload["next_follow_up_date"], payload.get("notes"),
        ))


class CompleteFollowUpView(CrmView):
    gateway_class = EngagementGateway
    serializer_class = EngagementSerializer

    def post(self, request, pk):
        return self.respond(self.gateway.complete_follow_up(pk))


# ─── Lifecycle actions ───────────────────────────────────────────────────────

class StageChangeView(LifecycleView):
    def post(self, request, pk):
        payload, error = self.parse_payload(StageChangeSerializer, request.data)
        if error:
            return error
        return self.respond(self.lifecycle.update_stage(
            pk, payload["lead_stage"],
            actor_id=payload.get("changed_by"),
            reason=payload.get("reason") or None,
        ))


class ConvertView(LifecycleView):
    def post(self, request, pk):
        payload, error = self.parse_payload(ConvertSerializer, request.data)
        if error:
            return error
        return self.respond(self.lifecycle.mark_converted(
            pk, payload.get("total_purchases"), actor_id=payload.get("changed_by"),
        ))


class CloseView(LifecycleView):
    def post(self, request, pk):
        payload, error = self.parse_payload(CloseSerializer, request.data)
        if error:
            return error
        return self.respond(self.lifecycle.close(
            pk, payload["reason"], actor_id=payload.get("changed_by"),
        ))


class ReopenView(LifecycleView):
    def post(self, request, pk):
        payload, error = self.parse_payload(ReopenSerializer, request.data)
        if error:
            return error
        return self.respond(self.lifecycle.reopen(pk, actor_id=payload.get("changed_by")))


class StageHistoryView(LifecycleView):
    serializer_class = StageHistorySerializer

    def get(self, request, pk):
        return self.respond(self.lifecycle.stage_history(pk), many=True)


class FarmerHistoryView(LifecycleView):
    """One timeline across all of a farmer's engagements."""

    serializer_class = FarmerHistorySerializer

    def get(self, request, farmer_id):
        return self.respond(self.lifecycle.farmer_history(farmer_id), many=True)
