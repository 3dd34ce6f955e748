"""
Seed data script: populates the database with a small demo sales territory
(zones, areas, villages, staff, dealers, products) and farmers spread across
the lead funnel.

Usage: cd backend && python seed_data.py
"""
import os
import sys
import django

# Setup Django
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'agri_crm.settings')
django.setup()

from crm.gateway import (
    ActivityGateway, AreaGateway, Backend, DealerGateway, DealerSaleGateway,
    DealerTouchpointGateway, EngagementGateway, FarmerGateway, FieldStaffGateway,
    ProductGateway, UserProfileGateway, VillageGateway, ZoneGateway,
)
from crm.models import Farmer
from crm.services.lifecycle import EngagementLifecycle


ZONES = [
    {"code": "NZ", "name": "North Zone", "country": "Pakistan"},
    {"code": "SZ", "name": "South Zone", "country": "Pakistan"},
]

# (zone index, area)
AREAS = [
    (0, {"code": "NZ-MUL", "name": "Multan"}),
    (0, {"code": "NZ-BWP", "name": "Bahawalpur"}),
    (1, {"code": "SZ-HYD", "name": "Hyderabad"}),
]

# (area index, village)
VILLAGES = [
    (0, {"name": "Shujabad", "code": "V-SHU", "village_type": "rural"}),
    (0, {"name": "Jalalpur", "code": "V-JAL", "village_type": "rural"}),
    (1, {"name": "Hasilpur", "code": "V-HAS", "village_type": "semi-urban"}),
    (2, {"name": "Tando Jam", "code": "V-TJ", "village_type": "rural"}),
]

USERS = [
    {"full_name": "Ayesha Khan", "email": "ayesha.khan@example.com", "role": "tmo"},
    {"full_name": "Bilal Ahmed", "email": "bilal.ahmed@example.com", "role": "tmo"},
    {"full_name": "Sana Malik", "email": "sana.malik@example.com", "role": "manager"},
]

PRODUCTS = [
    {"product_code": "SEED-WH-01", "product_name": "Wheat Seed Gold", "category": "Seeds"},
    {"product_code": "FERT-DAP-50", "product_name": "DAP 50kg", "category": "Fertilizer"},
    {"product_code": "PEST-CT-1L", "product_name": "Cotton Guard 1L", "category": "Crop Protection"},
]

# (village index, farmer, [(product index, season, target stage path)])
FARMERS = [
    (0, {"full_name": "Muhammad Aslam", "phone": "+92-300-1110001", "land_size_acres": "12.50",
         "primary_crops": ["wheat", "cotton"], "lead_quality": "hot", "lead_score": 82},
     [(0, "Rabi 2025", ["contacted", "qualified", "negotiation"]),
      (1, "Rabi 2025", ["contacted", "interested", "converted"])]),
    (1, {"full_name": "Ghulam Rasool", "phone": "+92-301-2220002", "land_size_acres": "8",
         "primary_crops": ["cotton"], "lead_quality": "warm", "lead_score": 55},
     [(2, "Kharif 2025", ["meeting_invited", "meeting_attended", "visit_scheduled"])]),
    (2, {"full_name": "Rasool, Bakhsh", "phone": "+92-302-3330003", "land_size_acres": "25",
         "primary_crops": ["wheat", "sugarcane"], "lead_quality": "warm", "lead_score": 61},
     [(0, "Rabi 2025", ["contacted", "visit_scheduled", "visit_completed", "interested"])]),
    (3, {"full_name": "Nazir Ahmed", "phone": "+92-303-4440004",
         "primary_crops": [], "lead_quality": "cold", "lead_score": 12},
     [(1, "Kharif 2025", ["contacted", "lost"])]),
    (3, {"full_name": "Imran Shah", "phone": "+92-304-5550005", "land_size_acres": "4.75",
         "primary_crops": ["rice"], "lead_quality": "cold", "lead_score": 20},
     [(2, "Kharif 2025", [])]),
]


def _require(result, what):
    if not result.ok:
        raise SystemExit(f"Could not create {what}: {result.error.message} {result.error.details or ''}")
    return result.data


def seed():
    # Check if already seeded
    existing = Farmer.objects.count()
    if existing > 0:
        print(f"Database already has {existing} farmers. Skipping seed.")
        print("Run 'python manage.py flush --no-input' to clear, then re-seed.")
        return

    backend = Backend.from_settings()
    lifecycle = EngagementLifecycle(backend)
    engagements = EngagementGateway(backend)

    zones = [_require(ZoneGateway(backend).create(z), "zone") for z in ZONES]
    areas = [
        _require(AreaGateway(backend).create({**a, "zone": str(zones[zi].id)}), "area")
        for zi, a in AREAS
    ]
    villages = [
        _require(VillageGateway(backend).create({**v, "area": str(areas[ai].id)}), "village")
        for ai, v in VILLAGES
    ]
    users = [_require(UserProfileGateway(backend).create(u), "user") for u in USERS]
    tmo = users[0]
    print(f"Created {len(zones)} zones, {len(areas)} areas, {len(villages)} villages, {len(users)} users")

    staff = _require(FieldStaffGateway(backend).create({
        "staff_code": "FS-001", "full_name": "Kashif Iqbal", "phone": "+92-333-9990001",
        "zone": str(zones[0].id), "area": str(areas[0].id),
        "telemarketing_officer": str(tmo.id),
    }), "field staff")
    dealer = _require(DealerGateway(backend).create({
        "dealer_code": "D-001", "business_name": "Kisan Agri Traders", "owner_name": "Tariq Mehmood",
        "phone": "+92-61-4500100", "zone": str(zones[0].id), "area": str(areas[0].id),
        "field_staff": str(staff.id),
    }), "dealer")
    products = [_require(ProductGateway(backend).create(p), "product") for p in PRODUCTS]
    _require(DealerSaleGateway(backend).bulk_create([
        {
            "dealer": str(dealer.id), "product": str(product.id), "transaction_type": kind,
            "transaction_date": day, "reference_number": ref, "product_name": product.product_name,
            "product_code": product.product_code, "quantity": qty, "unit_price": price,
            "amount": str(int(qty) * int(price)), "payment_status": paid,
        }
        for kind, day, ref, product, qty, price, paid in [
            ("invoice", "2025-01-15", "INV-1001", products[0], "40", "1200", "paid"),
            ("invoice", "2025-02-03", "INV-1002", products[1], "25", "9800", "pending"),
            ("credit_memo", "2025-02-10", "CM-0001", products[0], "5", "1200", "paid"),
        ]
    ]), "dealer sales")
    _require(DealerTouchpointGateway(backend).create({
        "dealer": str(dealer.id), "touchpoint_type": "monthly_stock_report",
        "frequency": "monthly", "assigned_to": str(tmo.id),
    }), "dealer touchpoint")
    print(f"Created field staff, dealer (3 sales, 1 touchpoint) and {len(products)} products")

    for vi, farmer_data, farmer_engagements in FARMERS:
        village = villages[vi]
        farmer = _require(FarmerGateway(backend).create({
            **farmer_data,
            "zone": str(village.area.zone_id),
            "area": str(village.area_id),
            "village": str(village.id),
            "assigned_tmo": str(tmo.id),
            "assigned_field_staff": str(staff.id),
            "assigned_dealer": str(dealer.id),
        }), "farmer")

        ActivityGateway(backend).create({
            "farmer": str(farmer.id), "activity_type": "call",
            "activity_title": "Introductory call", "performed_by": str(tmo.id),
        })

        for pi, season, path in farmer_engagements:
            engagement = _require(engagements.create({
                "farmer": str(farmer.id), "product": str(products[pi].id), "season": season,
                "data_source": "data_bank", "lead_quality": farmer_data["lead_quality"],
                "assigned_tmo": str(tmo.id), "created_by": str(users[2].id),
            }), "engagement")
            for stage in path:
                if stage == "converted":
                    _require(lifecycle.mark_converted(engagement.id, "45000", actor_id=tmo.id), "conversion")
                else:
                    _require(lifecycle.update_stage(engagement.id, stage, actor_id=tmo.id), "stage change")
            engagement.refresh_from_db()
            print(f"  {farmer.farmer_code} {farmer.full_name}: {products[pi].product_name} "
                  f"{season} ({engagement.lead_stage})")

    # Print funnel summary
    stats = _require(lifecycle.get_stats(), "stats")
    print(f"\n{'='*50}")
    print(f"Seed complete! {stats['total']} engagements, {stats['converted']} converted "
          f"({stats['conversion_rate']}%)\n")
    for stage, count in sorted(stats["by_stage"].items()):
        print(f"  {stage:<20} {count}")


if __name__ == '__main__':
    seed()
