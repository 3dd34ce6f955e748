"""Dealers, their sales ledger and touchpoint schedule, and the product catalogue."""
from rest_framework import status

from crm.api.base import CrmView, DetailView, ListCreateView, error_response
from crm.gateway import DealerGateway, DealerSaleGateway, DealerTouchpointGateway, ProductGateway
from crm.gateway.base import GatewayError
from crm.gateway.sales import TOP_PRODUCTS_LIMIT
from crm.gateway.touchpoints import UPCOMING_DAYS
from crm.serializers import (
    DealerSaleSerializer, DealerSerializer, DealerTouchpointSerializer, ProductSerializer,
)


def int_param(request, name, default):
    try:
        return max(int(request.query_params.get(name, default)), 1)
    except ValueError:
        return default


class DealerListCreateView(ListCreateView):
    gateway_class = DealerGateway
    serializer_class = DealerSerializer
    query_filters = {
        "zone": "zone_id", "area": "area_id", "village": "village_id",
        "field_staff": "field_staff_id", "is_active": "is_active",
    }


class DealerDetailView(DetailView):
    gateway_class = DealerGateway
    serializer_class = DealerSerializer
    label_field = "business_name"


class DealerSearchView(CrmView):
    gateway_class = DealerGateway
    serializer_class = DealerSerializer

    def get(self, request):
        term = request.query_params.get("q", "").strip()
        if not term:
            return self.respond(self.gateway.get_all(), many=True)
        return self.respond(self.gateway.search(term), many=True)


class ProductListCreateView(ListCreateView):
    gateway_class = ProductGateway
    serializer_class = ProductSerializer
    query_filters = {"category": "category", "is_active": "is_active"}


class ProductDetailView(DetailView):
    gateway_class = ProductGateway
    serializer_class = ProductSerializer
    label_field = "product_name"


# ─── Sales ledger ────────────────────────────────────────────────────────────

class SalesView(CrmView):
    gateway_class = DealerSaleGateway
    serializer_class = DealerSaleSerializer


class SalesReportView(CrmView):
    """Aggregates over the ledger, optionally for one dealer and a date range."""

    gateway_class = DealerSaleGateway

    def date_range(self, request):
        params = request.query_params
        return {"start_date": params.get("start_date") or None, "end_date": params.get("end_date") or None}


class DealerSaleListCreateView(ListCreateView):
    """?dealer=&product=&transaction_type=&payment_status=&start_date=&end_date=&search="""

    gateway_class = DealerSaleGateway
    serializer_class = DealerSaleSerializer
    query_filters = {
        "dealer": "dealer_id", "product": "product_id",
        "transaction_type": "transaction_type", "payment_status": "payment_status",
        "start_date": "start_date", "end_date": "end_date", "search": "search",
    }


class DealerSaleDetailView(DetailView):
    gateway_class = DealerSaleGateway
    serializer_class = DealerSaleSerializer
    label_field = "reference_number"


class DealerSaleBulkCreateView(SalesView):
    """Book an uploaded invoice list. One bad row rejects the whole upload."""

    def post(self, request):
        rows = request.data.get("rows") if isinstance(request.data, dict) else request.data
        if not isinstance(rows, list) or not rows:
            return error_response(GatewayError(
                "Invalid data", code="validation_error",
                details={"rows": ["Expected a non-empty list of sales."]},
            ))
        return self.respond(self.gateway.bulk_create(rows), many=True, status_code=status.HTTP_201_CREATED)


class DealerSaleSearchView(SalesView):
    def get(self, request):
        term = request.query_params.get("q", "").strip()
        if not term:
            return self.respond(self.gateway.get_all(), many=True)
        return self.respond(
            self.gateway.search(term, dealer_id=request.query_params.get("dealer") or None),
            many=True,
        )


class DealerSaleStatsView(SalesReportView):
    def get(self, request):
        return self.respond(
            self.gateway.get_stats(request.query_params.get("dealer") or None, **self.date_range(request))
        )


class TopProductsView(SalesReportView):
    def get(self, request):
        return self.respond(self.gateway.get_top_products(
            request.query_params.get("dealer") or None,
            limit=int_param(request, "limit", TOP_PRODUCTS_LIMIT),
            **self.date_range(request),
        ))


class SalesTrendView(SalesReportView):
    """?period=daily|weekly|monthly (default monthly)"""

    def get(self, request):
        return self.respond(self.gateway.get_sales_trend(
            request.query_params.get("dealer") or None,
            period=request.query_params.get("period") or "monthly",
            **self.date_range(request),
        ))


class PaymentSummaryView(SalesReportView):
    def get(self, request):
        return self.respond(self.gateway.get_payment_summary(request.query_params.get("dealer") or None))


# ─── Touchpoints ─────────────────────────────────────────────────────────────

class TouchpointListCreateView(ListCreateView):
    gateway_class = DealerTouchpointGateway
    serializer_class = DealerTouchpointSerializer
    query_filters = {
        "dealer": "dealer_id", "assigned_to": "assigned_to_id",
        "touchpoint_type": "touchpoint_type", "is_active": "is_active",
    }


class TouchpointDetailView(DetailView):
    gateway_class = DealerTouchpointGateway
    serializer_class = DealerTouchpointSerializer
    label_field = "touchpoint_type"


class DealerTouchpointsView(CrmView):
    gateway_class = DealerTouchpointGateway
    serializer_class = DealerTouchpointSerializer

    def get(self, request, dealer_id):
        return self.respond(self.gateway.get_by_dealer(dealer_id), many=True)


class TouchpointsDueView(CrmView):
    """?due=overdue|today|upcoming&user=&days="""

    gateway_class = DealerTouchpointGateway
    serializer_class = DealerTouchpointSerializer

    def get(self, request):
        params = request.query_params
        return self.respond(self.gateway.due(
            params.get("due") or "today",
            user_id=params.get("user") or None,
            days=int_param(request, "days", UPCOMING_DAYS),
        ), many=True)


class CompleteTouchpointView(CrmView):
    gateway_class = DealerTouchpointGateway
    serializer_class = DealerTouchpointSerializer

    def post(self, request, pk):
        return self.respond(self.gateway.complete(pk))
