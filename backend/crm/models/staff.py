import uuid
from django.db import models


class UserProfile(models.Model):
    """
    A back-office user. Telemarketing officers (TMOs) are profiles with role=tmo;
    they own engagements and farmers and are recorded as the actor on stage changes.
    """

    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        MANAGER = "manager", "Manager"
        TMO = "tmo", "Telemarketing Officer"
        FIELD_STAFF = "field_staff", "Field Staff"
        VIEWER = "viewer", "Viewer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    full_name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, null=True, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.VIEWER)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_profiles"
        ordering = ["full_name"]

    def __str__(self):
        return f"{self.full_name} ({self.role})"


class FieldStaff(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff_code = models.CharField(max_length=20, unique=True)
    full_name = models.CharField(max_length=200)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=20)

    zone = models.ForeignKey("Zone", on_delete=models.SET_NULL, null=True, blank=True, related_name="field_staff")
    area = models.ForeignKey("Area", on_delete=models.SET_NULL, null=True, blank=True, related_name="field_staff")
    telemarketing_officer = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="field_team"
    )

    designation = models.CharField(max_length=100, null=True, blank=True)
    joining_date = models.DateField(null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    city = models.CharField(max_length=100, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "field_staff"
        ordering = ["full_name"]
        verbose_name_plural = "field staff"

    def __str__(self):
        return f"{self.full_name} ({self.staff_code})"
