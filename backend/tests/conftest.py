"""
Shared pytest fixtures: a Backend handle on the test database, an API
client, and a small territory with one farmer and one engagement.
"""
import pytest
from rest_framework.test import APIClient

from crm.gateway import Backend, FarmerGateway
from crm.models import (
    Area, Dealer, FarmerEngagement, FieldStaff, Product, UserProfile, Village, Zone,
)
from crm.services.lifecycle import EngagementLifecycle


@pytest.fixture
def api_client():
    """API client for making requests."""
    return APIClient()


@pytest.fixture
def backend():
    return Backend()


@pytest.fixture
def lifecycle(backend):
    return EngagementLifecycle(backend, enforce_transitions=True)


@pytest.fixture
def zone(db):
    return Zone.objects.create(code="NZ", name="North Zone", country="Pakistan")


@pytest.fixture
def area(zone):
    return Area.objects.create(code="NZ-MUL", name="North", zone=zone)


@pytest.fixture
def village(area):
    return Village.objects.create(area=area, name="Shujabad", code="V-SHU", village_type="rural")


@pytest.fixture
def tmo(db):
    return UserProfile.objects.create(full_name="Ayesha Khan", email="ayesha@example.com", role="tmo")


@pytest.fixture
def field_staff(zone, area, tmo):
    return FieldStaff.objects.create(
        staff_code="FS-001", full_name="Kashif Iqbal", phone="+92-333-9990001",
        zone=zone, area=area, telemarketing_officer=tmo,
    )


@pytest.fixture
def dealer(zone, area):
    return Dealer.objects.create(
        dealer_code="D-001", business_name="Kisan Agri Traders", owner_name="Tariq Mehmood",
        phone="+92-61-4500100", zone=zone, area=area,
    )


@pytest.fixture
def product(db):
    return Product.objects.create(product_code="SEED-WH-01", product_name="Wheat Seed Gold", category="Seeds")


@pytest.fixture
def farmer(backend, zone, area, village, tmo):
    result = FarmerGateway(backend).create({
        "full_name": "Muhammad Aslam",
        "phone": "+92-300-1110001",
        "zone": str(zone.id),
        "area": str(area.id),
        "village": str(village.id),
        "primary_crops": ["wheat", "cotton"],
        "lead_quality": "hot",
        "lead_score": 82,
        "assigned_tmo": str(tmo.id),
    })
    assert result.ok, result.error
    return result.data


@pytest.fixture
def engagement(farmer, product, tmo):
    return FarmerEngagement.objects.create(
        farmer=farmer, product=product, season="Rabi 2025",
        data_source="data_bank", assigned_tmo=tmo, lead_quality="hot",
    )
