import uuid
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Dealer(models.Model):
    """A retail dealer that sells products to farmers in its territory."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dealer_code = models.CharField(max_length=20, unique=True)
    business_name = models.CharField(max_length=200)
    owner_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20)
    alternate_phone = models.CharField(max_length=20, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)

    zone = models.ForeignKey("Zone", on_delete=models.SET_NULL, null=True, blank=True, related_name="dealers")
    area = models.ForeignKey("Area", on_delete=models.SET_NULL, null=True, blank=True, related_name="dealers")
    village = models.ForeignKey("Village", on_delete=models.SET_NULL, null=True, blank=True, related_name="dealers")
    field_staff = models.ForeignKey(
        "FieldStaff", on_delete=models.SET_NULL, null=True, blank=True, related_name="dealers"
    )

    credit_limit = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    current_balance = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    relationship_status = models.CharField(max_length=30, default="active")
    # Statuses: prospect, active, dormant, blocked
    relationship_score = models.IntegerField(default=50)
    performance_rating = models.CharField(max_length=20, null=True, blank=True)

    city = models.CharField(max_length=100, null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "dealers"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.business_name} ({self.dealer_code})"


class DealerSale(models.Model):
    """
    One invoice or credit memo line booked against a dealer.

    Credit memos count against sales totals. net_amount is always
    amount - discount_amount + tax_amount and is recomputed on every save.
    """

    class TransactionType(models.TextChoices):
        INVOICE = "invoice", "Invoice"
        CREDIT_MEMO = "credit_memo", "Credit Memo"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"
        CANCELLED = "cancelled", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dealer = models.ForeignKey("Dealer", on_delete=models.CASCADE, related_name="sales")
    product = models.ForeignKey(
        "Product", on_delete=models.SET_NULL, null=True, blank=True, related_name="dealer_sales"
    )

    transaction_type = models.CharField(max_length=20, choices=TransactionType.choices, default=TransactionType.INVOICE)
    transaction_date = models.DateField()
    reference_number = models.CharField(max_length=50)
    # Copied from the invoice so the line survives product renames
    product_name = models.CharField(max_length=200)
    product_code = models.CharField(max_length=30, null=True, blank=True)

    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    net_amount = models.DecimalField(max_digits=14, decimal_places=2, editable=False, default=0)

    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    invoice_url = models.URLField(null=True, blank=True)
    created_by = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "dealer_sales"
        ordering = ["-transaction_date", "-created_at"]
        indexes = [
            models.Index(fields=["dealer", "-transaction_date"], name="idx_sale_dealer_date"),
        ]

    def save(self, *args, **kwargs):
        self.net_amount = (self.amount or 0) - (self.discount_amount or 0) + (self.tax_amount or 0)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.transaction_type} {self.reference_number} ({self.dealer_id})"


class DealerTouchpoint(models.Model):
    """A recurring contact with a dealer (stock report, payment follow-up, ...)."""

    class TouchpointType(models.TextChoices):
        MONTHLY_STOCK_REPORT = "monthly_stock_report", "Monthly Stock Report"
        WEEKLY_REVIEW = "weekly_review", "Weekly Review"
        SALES_TARGET_REVIEW = "sales_target_review", "Sales Target Review"
        PAYMENT_FOLLOWUP = "payment_followup", "Payment Follow-up"
        ORDER_CONFIRMATION = "order_confirmation", "Order Confirmation"
        PRODUCT_PROMOTION = "product_promotion", "Product Promotion"
        TRAINING_INVITATION = "training_invitation", "Training Invitation"
        RELATIONSHIP_BUILDING = "relationship_building", "Relationship Building"

    class Frequency(models.TextChoices):
        DAILY = "daily", "Daily"
        WEEKLY = "weekly", "Weekly"
        MONTHLY = "monthly", "Monthly"
        QUARTERLY = "quarterly", "Quarterly"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dealer = models.ForeignKey("Dealer", on_delete=models.CASCADE, related_name="touchpoints")
    touchpoint_type = models.CharField(max_length=30, choices=TouchpointType.choices)
    frequency = models.CharField(max_length=20, choices=Frequency.choices)
    # ISO weekday, 1 = Monday ... 7 = Sunday
    preferred_day_of_week = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(7)],
    )
    preferred_time = models.TimeField(null=True, blank=True)
    assigned_to = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="dealer_touchpoints"
    )

    last_executed_date = models.DateField(null=True, blank=True)
    next_scheduled_date = models.DateField(null=True, blank=True, db_index=True)
    is_active = models.BooleanField(default=True)
    auto_reminder = models.BooleanField(default=True)
    reminder_days_before = models.PositiveSmallIntegerField(default=1)
    notes = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "dealer_touchpoint_schedule"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.touchpoint_type} ({self.frequency}) for dealer={self.dealer_id}"
