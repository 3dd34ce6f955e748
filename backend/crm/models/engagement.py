import uuid
from django.db import models
from django.utils import timezone


class LeadStage(models.TextChoices):
    NEW = "new", "New"
    CONTACTED = "contacted", "Contacted"
    QUALIFIED = "qualified", "Qualified"
    MEETING_INVITED = "meeting_invited", "Meeting Invited"
    MEETING_ATTENDED = "meeting_attended", "Meeting Attended"
    VISIT_SCHEDULED = "visit_scheduled", "Visit Scheduled"
    VISIT_COMPLETED = "visit_completed", "Visit Completed"
    INTERESTED = "interested", "Interested"
    NEGOTIATION = "negotiation", "Negotiation"
    CONVERTED = "converted", "Converted"
    ACTIVE_CUSTOMER = "active_customer", "Active Customer"
    INACTIVE = "inactive", "Inactive"
    LOST = "lost", "Lost"
    REJECTED = "rejected", "Rejected"


class DataSource(models.TextChoices):
    DATA_BANK = "data_bank", "Data Bank"
    FM_INVITEES = "fm_invitees", "Event Invitee"
    FM_ATTENDEES = "fm_attendees", "Event Attendee"
    FD_INVITEES = "fd_invitees", "Field Day Invitee"
    FD_ATTENDEES = "fd_attendees", "Field Day Attendee"
    REPZO = "repzo", "Repzo Import"
    MANUAL_ENTRY = "manual_entry", "Manual Entry"
    API_INTEGRATION = "api_integration", "API Integration"
    OTHER = "other", "Other Source"


class LeadQuality(models.TextChoices):
    HOT = "hot", "Hot"
    WARM = "warm", "Warm"
    COLD = "cold", "Cold"


class FarmerEngagement(models.Model):
    """
    One farmer's relationship to one product in one season.

    lead_stage is the engagement's position in the sales funnel. It only moves
    through EngagementLifecycle, which checks the transition table and writes
    an EngagementStageHistory row for every change.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    farmer = models.ForeignKey("Farmer", on_delete=models.CASCADE, related_name="engagements")
    product = models.ForeignKey(
        "Product", on_delete=models.SET_NULL, null=True, blank=True, related_name="engagements"
    )
    season = models.CharField(max_length=50)

    # Where the lead came from
    data_source = models.CharField(max_length=30, choices=DataSource.choices, default=DataSource.MANUAL_ENTRY)
    entry_date = models.DateField(auto_now_add=True)
    source_reference = models.CharField(max_length=200, null=True, blank=True)

    # Funnel position
    lead_stage = models.CharField(max_length=30, choices=LeadStage.choices, default=LeadStage.NEW, db_index=True)
    lead_score = models.IntegerField(default=0)
    lead_quality = models.CharField(max_length=10, choices=LeadQuality.choices, default=LeadQuality.COLD)
    stage_changed_at = models.DateTimeField(default=timezone.now)
    days_in_current_stage = models.IntegerField(default=0)

    # Conversion
    is_converted = models.BooleanField(default=False)
    conversion_date = models.DateTimeField(null=True, blank=True)
    total_purchases = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    # Contact / follow-up
    last_contact_date = models.DateTimeField(null=True, blank=True)
    last_activity_date = models.DateTimeField(null=True, blank=True)
    next_follow_up_date = models.DateField(null=True, blank=True)
    follow_up_required = models.BooleanField(default=False)
    follow_up_notes = models.TextField(null=True, blank=True)
    total_interactions = models.IntegerField(default=0)

    # Ownership
    assigned_tmo = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="engagements"
    )
    assigned_field_staff = models.ForeignKey(
        "FieldStaff", on_delete=models.SET_NULL, null=True, blank=True, related_name="engagements"
    )

    # Closure
    is_active = models.BooleanField(default=True, db_index=True)
    closure_reason = models.TextField(null=True, blank=True)
    closure_date = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "farmer_product_engagements"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["farmer", "product", "season"], name="uniq_engagement_farmer_product_season"),
        ]
        indexes = [
            models.Index(fields=["assigned_tmo", "is_active"], name="idx_engagement_tmo_active"),
            models.Index(fields=["follow_up_required", "next_follow_up_date"], name="idx_engagement_follow_up"),
        ]

    def __str__(self):
        return f"{self.farmer_id}/{self.product_id} {self.season} ({self.lead_stage})"


class EngagementStageHistory(models.Model):
    """
    Append-only audit trail of engagement changes.
    Stage changes, conversion, closure and reopening each write one row.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    engagement = models.ForeignKey("FarmerEngagement", on_delete=models.CASCADE, related_name="history")

    field_changed = models.CharField(max_length=30)
    # Fields: created, lead_stage, is_converted, is_active, data_source, assigned_tmo_id
    old_value = models.CharField(max_length=100, null=True, blank=True)
    new_value = models.CharField(max_length=100, null=True, blank=True)

    changed_by = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    change_reason = models.TextField(null=True, blank=True)
    triggered_by = models.CharField(max_length=20, default="manual")  # manual, system, import
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "engagement_stage_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["engagement", "-created_at"], name="idx_history_engagement_date"),
        ]

    def __str__(self):
        return f"{self.field_changed}: {self.old_value} -> {self.new_value}"
