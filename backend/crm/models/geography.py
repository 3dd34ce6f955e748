import uuid
from django.db import models


class Zone(models.Model):
    """Top level of the sales geography. A zone groups areas."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=120)
    country = models.CharField(max_length=80, null=True, blank=True)
    manager = models.ForeignKey(
        "UserProfile", on_delete=models.SET_NULL, null=True, blank=True, related_name="managed_zones"
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "zones"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"


class Area(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=120)
    zone = models.ForeignKey("Zone", on_delete=models.PROTECT, related_name="areas")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "areas"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"


class Village(models.Model):
    """Lowest level of the geography. Farmers and dealers are pinned to a village."""

    class VillageType(models.TextChoices):
        RURAL = "rural", "Rural"
        URBAN = "urban", "Urban"
        SEMI_URBAN = "semi-urban", "Semi-urban"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    area = models.ForeignKey("Area", on_delete=models.PROTECT, related_name="villages")
    name = models.CharField(max_length=120)
    code = models.CharField(max_length=20, null=True, blank=True)
    village_type = models.CharField(max_length=20, choices=VillageType.choices, null=True, blank=True)
    population = models.PositiveIntegerField(null=True, blank=True)
    postal_code = models.CharField(max_length=20, null=True, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "villages"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["area", "is_active"], name="idx_village_area_active"),
        ]

    @property
    def full_path(self) -> str:
        """Zone > Area > Village, as shown in location pickers."""
        return f"{self.area.zone.name} > {self.area.name} > {self.name}"

    def __str__(self):
        return self.name
