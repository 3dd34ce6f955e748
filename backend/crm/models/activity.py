import uuid
from django.db import models


class FarmerActivity(models.Model):
    """A logged touchpoint with a farmer: a call, visit, meeting or note."""

    class ActivityType(models.TextChoices):
        CALL = "call", "Call"
        VISIT = "visit", "Visit"
        MEETING = "meeting", "Meeting"
        NOTE = "note", "Note"
        SMS = "sms", "SMS"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    farmer = models.ForeignKey("Farmer", on_delete=models.CASCADE, related_name="activities")
    engagement = models.ForeignKey(
        "FarmerEngagement", on_delete=models.SET_NULL, null=True, blank=True, related_name="activities"
    )

    activity_type = models.CharField(max_length=20, choices=ActivityType.choices)
    activity_date = models.DateTimeField()
    activity_title = models.CharField(max_length=200)
    activity_description = models.TextField(null=True, blank=True)
    activity_outcome = models.TextField(null=True, blank=True)
    performed_by = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="activities"
    )

    next_action = models.CharField(max_length=200, null=True, blank=True)
    next_action_date = models.DateField(null=True, blank=True)
    tags = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "farmer_activities"
        ordering = ["-activity_date"]
        indexes = [
            models.Index(fields=["farmer", "-activity_date"], name="idx_activity_farmer_date"),
        ]

    def __str__(self):
        return f"{self.activity_type}: {self.activity_title} for farmer={self.farmer_id}"
