"""
Dealer sales ledger: invoices and credit memos per dealer, plus the
aggregates the dealer dashboard shows (totals, top products, trend,
payment summary).

Credit memos are negative in sales totals, product revenue, quantities
and the trend. Per-status amounts and the payment summary add them as is.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.db.models import Q
from rest_framework.exceptions import ValidationError

from crm.gateway.base import TableGateway, guarded
from crm.models import DealerSale
from crm.serializers import DealerSaleSerializer

logger = logging.getLogger(__name__)

INVOICE = DealerSale.TransactionType.INVOICE.value
TREND_PERIODS = ("daily", "weekly", "monthly")
TOP_PRODUCTS_LIMIT = 10
SEARCH_LIMIT = 20

ZERO = Decimal("0")


def _signed(sale, value):
    return value if sale["transaction_type"] == INVOICE else -value


def trend_key(day, period: str) -> str:
    """Bucket label: the ISO day, the Sunday starting its week, or YYYY-MM."""
    if period == "daily":
        return day.isoformat()
    if period == "weekly":
        return (day - timedelta(days=(day.weekday() + 1) % 7)).isoformat()
    return f"{day.year}-{day.month:02d}"


class DealerSaleGateway(TableGateway):
    model = DealerSale
    write_serializer = DealerSaleSerializer
    filter_fields = ("dealer_id", "product_id", "transaction_type", "payment_status")
    ordering = ("-transaction_date", "-created_at")
    select_related = ("dealer", "product")

    def _scoped(self, dealer_id=None, start_date=None, end_date=None):
        queryset = self.table()
        if dealer_id:
            queryset = queryset.filter(dealer_id=dealer_id)
        if start_date:
            queryset = queryset.filter(transaction_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(transaction_date__lte=end_date)
        return queryset

    @guarded
    def get_all(self, start_date=None, end_date=None, search=None, **filters):
        queryset = self.apply_filters(self.query(), filters)
        if start_date:
            queryset = queryset.filter(transaction_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(transaction_date__lte=end_date)
        if search:
            queryset = queryset.filter(
                Q(reference_number__icontains=search) | Q(product_name__icontains=search)
            )
        return list(queryset)

    @guarded
    def search(self, term: str, dealer_id=None, limit: int = SEARCH_LIMIT):
        queryset = self.query().filter(
            Q(reference_number__icontains=term) |
            Q(product_name__icontains=term) |
            Q(notes__icontains=term)
        )
        if dealer_id:
            queryset = queryset.filter(dealer_id=dealer_id)
        return list(queryset[:limit])

    @guarded
    def bulk_create(self, rows: list[dict]):
        """Book many sales (invoice upload). All rows must validate or nothing is written."""
        parsed, errors = [], {}
        for index, row in enumerate(rows):
            serializer = DealerSaleSerializer(data=row)
            if serializer.is_valid():
                parsed.append(serializer.validated_data)
            else:
                errors[index] = serializer.errors
        if errors:
            raise ValidationError(errors)

        created = [self.table().create(**validated) for validated in parsed]
        logger.info("Bulk created %d dealer sales", len(created))
        return created

    # ─── Aggregates ──────────────────────────────────────────────────────

    @guarded
    def get_stats(self, dealer_id=None, start_date=None, end_date=None):
        rows = self._scoped(dealer_id, start_date, end_date).values(
            "transaction_type", "amount", "payment_status",
        )
        stats = {
            "total_sales": ZERO,
            "invoice_count": 0,
            "credit_memo_count": 0,
            "net_sales": ZERO,
            "avg_invoice_amount": ZERO,
            "pending_amount": ZERO,
            "paid_amount": ZERO,
            "overdue_amount": ZERO,
        }
        invoice_total = ZERO
        for sale in rows:
            if sale["transaction_type"] == INVOICE:
                stats["invoice_count"] += 1
                invoice_total += sale["amount"]
            else:
                stats["credit_memo_count"] += 1
            stats["total_sales"] += _signed(sale, sale["amount"])

            status_key = f"{sale['payment_status']}_amount"
            if status_key in stats:
                stats[status_key] += sale["amount"]

        stats["net_sales"] = stats["total_sales"]
        if stats["invoice_count"]:
            stats["avg_invoice_amount"] = (invoice_total / stats["invoice_count"]).quantize(Decimal("0.01"))
        return stats

    @guarded
    def get_top_products(self, dealer_id=None, limit: int = TOP_PRODUCTS_LIMIT, start_date=None, end_date=None):
        """Products by net revenue, highest first. Lines without a product group by name."""
        products = {}
        rows = self._scoped(dealer_id, start_date, end_date).values(
            "product_id", "product_name", "transaction_type", "amount", "quantity",
        )
        for sale in rows:
            key = sale["product_id"] or sale["product_name"]
            entry = products.setdefault(key, {
                "product_id": sale["product_id"],
                "product_name": sale["product_name"],
                "revenue": ZERO,
                "quantity": ZERO,
            })
            entry["revenue"] += _signed(sale, sale["amount"])
            entry["quantity"] += _signed(sale, sale["quantity"])

        ranked = sorted(products.values(), key=lambda p: p["revenue"], reverse=True)
        return ranked[:limit]

    @guarded
    def get_sales_trend(self, dealer_id=None, period: str = "monthly", start_date=None, end_date=None):
        """Net sales per day, week (starting Sunday) or month, oldest bucket first."""
        if period not in TREND_PERIODS:
            raise ValidationError({"period": [f"Expected one of: {', '.join(TREND_PERIODS)}"]})

        buckets = {}
        rows = (
            self._scoped(dealer_id, start_date, end_date)
            .order_by("transaction_date")
            .values("transaction_date", "transaction_type", "amount")
        )
        for sale in rows:
            key = trend_key(sale["transaction_date"], period)
            bucket = buckets.setdefault(key, {"date": key, "sales": ZERO, "count": 0})
            bucket["sales"] += _signed(sale, sale["amount"])
            if sale["transaction_type"] == INVOICE:
                bucket["count"] += 1
        return sorted(buckets.values(), key=lambda b: b["date"])

    @guarded
    def get_payment_summary(self, dealer_id=None):
        summary = {"total": ZERO, "paid": ZERO, "pending": ZERO, "overdue": ZERO, "cancelled": ZERO}
        for sale in self._scoped(dealer_id).values("payment_status", "amount", "net_amount"):
            amount = sale["net_amount"] or sale["amount"]
            summary["total"] += amount
            if sale["payment_status"] in summary:
                summary[sale["payment_status"]] += amount
        return summary
