import uuid
from django.db import models

from crm.models.engagement import LeadStage, LeadQuality


class Farmer(models.Model):
    """
    A farmer known to the sales operation, either a lead or a customer.
    Product-level funnel progress lives on FarmerEngagement; the stage and
    score here are the farmer-level summary shown in listings.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    farmer_code = models.CharField(max_length=20, unique=True)
    full_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20)
    alternate_phone = models.CharField(max_length=20, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)

    # Location (denormalized for fast filtering)
    zone = models.ForeignKey("Zone", on_delete=models.SET_NULL, null=True, blank=True, related_name="farmers")
    area = models.ForeignKey("Area", on_delete=models.SET_NULL, null=True, blank=True, related_name="farmers")
    village = models.ForeignKey("Village", on_delete=models.SET_NULL, null=True, blank=True, related_name="farmers")
    city = models.CharField(max_length=100, null=True, blank=True)
    district = models.CharField(max_length=100, null=True, blank=True)
    address = models.TextField(null=True, blank=True)

    # Farm profile
    land_size_acres = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    primary_crops = models.JSONField(default=list, blank=True)

    # Classification
    lead_stage = models.CharField(max_length=30, choices=LeadStage.choices, default=LeadStage.NEW)
    lead_score = models.IntegerField(default=0)
    lead_quality = models.CharField(max_length=10, choices=LeadQuality.choices, default=LeadQuality.COLD)
    is_customer = models.BooleanField(default=False)
    data_source = models.CharField(max_length=30, null=True, blank=True)

    total_interactions = models.IntegerField(default=0)
    total_purchases = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    registration_date = models.DateField(null=True, blank=True)
    conversion_date = models.DateTimeField(null=True, blank=True)

    # Assignment
    assigned_tmo = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="farmers"
    )
    assigned_field_staff = models.ForeignKey(
        "FieldStaff", on_delete=models.SET_NULL, null=True, blank=True, related_name="farmers"
    )
    assigned_dealer = models.ForeignKey(
        "Dealer", on_delete=models.SET_NULL, null=True, blank=True, related_name="farmers"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "farmers"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.full_name} ({self.farmer_code})"
