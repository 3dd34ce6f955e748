"""
Table gateways: result values, filters, farmer codes, engagements and activities.
"""
import uuid
from datetime import date, timedelta

import pytest

from crm.gateway import (
    ActivityGateway, AreaGateway, Backend, DealerGateway, EngagementGateway,
    FarmerGateway, VillageGateway, ZoneGateway,
)
from crm.gateway.base import GatewayError, GatewayResult
from crm.models import EngagementStageHistory, Farmer, FarmerEngagement, Village

pytestmark = pytest.mark.django_db


class TestResultTypes:

    def test_ok_result(self):
        assert GatewayResult(data=[]).ok

    def test_error_body(self):
        error = GatewayError("Invalid data", code="validation_error", details={"name": ["required"]})
        assert not GatewayResult(error=error).ok
        assert error.as_dict() == {
            "detail": "Invalid data", "code": "validation_error", "details": {"name": ["required"]},
        }

    def test_backend_from_settings(self, settings):
        settings.CRM_DATABASE_ALIAS = "default"
        assert Backend.from_settings().using == "default"


class TestCrud:

    def test_create_and_get(self, backend):
        result = ZoneGateway(backend).create({"code": "SZ", "name": "South Zone"})
        assert result.ok, result.error

        fetched = ZoneGateway(backend).get_by_id(result.data.id)
        assert fetched.data.name == "South Zone"

    def test_create_invalid(self, backend):
        result = ZoneGateway(backend).create({"code": "SZ"})
        assert result.error.code == "validation_error"
        assert "name" in result.error.details

    def test_get_missing(self, backend):
        result = AreaGateway(backend).get_by_id(uuid.uuid4())
        assert result.error.code == "not_found"
        assert result.error.message == "Area not found"

    def test_partial_update(self, backend, area):
        result = AreaGateway(backend).update(area.id, {"name": "North Central"})
        assert result.ok, result.error
        assert result.data.name == "North Central"
        assert result.data.code == "NZ-MUL"

    def test_delete(self, backend, zone):
        gateway = ZoneGateway(backend)
        other = gateway.create({"code": "EZ", "name": "East Zone"}).data
        assert gateway.delete(other.id).ok
        assert gateway.delete(other.id).error.code == "not_found"

    def test_delete_protected(self, backend, zone, area):
        result = ZoneGateway(backend).delete(zone.id)
        assert result.error.code == "constraint_violation"
        assert ZoneGateway(backend).get_by_id(zone.id).ok

    def test_filters(self, backend, zone, area):
        gateway = AreaGateway(backend)
        assert len(gateway.get_all(zone_id=zone.id).data) == 1
        assert gateway.get_all(zone_id=uuid.uuid4()).data == []
        # unknown filter names are ignored
        assert len(gateway.get_all(colour="blue").data) == 1

    def test_active_zones(self, backend, zone):
        ZoneGateway(backend).create({"code": "OLD", "name": "Old Zone", "is_active": False})
        assert [z.code for z in ZoneGateway(backend).get_active().data] == ["NZ"]


class TestVillages:

    def test_listing_hides_inactive(self, backend, area, village):
        Village.objects.create(area=area, name="Abandoned", is_active=False)
        names = [v.name for v in VillageGateway(backend).get_all().data]
        assert names == ["Shujabad"]
        assert len(VillageGateway(backend).get_all(is_active=False).data) == 1

    def test_by_zone_and_area(self, backend, zone, area, village):
        assert len(VillageGateway(backend).get_all(zone_id=zone.id).data) == 1
        assert len(VillageGateway(backend).get_by_area(area.id).data) == 1
        assert village.full_path == "North Zone > North > Shujabad"


class TestFarmers:

    def test_first_code(self, backend, db):
        assert FarmerGateway(backend).generate_farmer_code() == "F-001"

    def test_codes_increment(self, backend, farmer):
        assert farmer.farmer_code == "F-001"
        second = FarmerGateway(backend).create({"full_name": "Ghulam Rasool", "phone": "+92-301-2220002"})
        assert second.data.farmer_code == "F-002"

    def test_code_after_unexpected_format(self, backend, farmer):
        Farmer.objects.create(farmer_code="LEGACY", full_name="Old Record", phone="0")
        assert FarmerGateway(backend).generate_farmer_code() == "F-001"

    def test_explicit_code_is_kept(self, backend, db):
        result = FarmerGateway(backend).create({"farmer_code": "F-100", "full_name": "A", "phone": "1"})
        assert result.data.farmer_code == "F-100"
        assert FarmerGateway(backend).generate_farmer_code() == "F-101"

    def test_duplicate_code(self, backend, farmer):
        result = FarmerGateway(backend).create({"farmer_code": "F-001", "full_name": "B", "phone": "2"})
        assert result.error.code == "validation_error"
        assert "farmer_code" in result.error.details

    def test_search(self, backend, farmer):
        gateway = FarmerGateway(backend)
        assert [f.id for f in gateway.search("aslam").data] == [farmer.id]
        assert [f.id for f in gateway.search("1110001").data] == [farmer.id]
        assert [f.id for f in gateway.search("shuja").data] == [farmer.id]
        assert gateway.search("nobody").data == []

    def test_listing_annotations(self, backend, farmer, engagement):
        listed = FarmerGateway(backend).get_all().data[0]
        assert listed.active_engagements == 1
        assert listed.last_activity_date is None


class TestEngagements:

    def test_create_records_history(self, backend, farmer, product):
        result = EngagementGateway(backend).create({
            "farmer": str(farmer.id), "product": str(product.id), "season": "Rabi 2025",
        })
        assert result.ok, result.error
        entry = EngagementStageHistory.objects.get(engagement_id=result.data.id)
        assert entry.field_changed == "created"
        assert entry.new_value == "new"

    def test_product_is_optional(self, backend, farmer):
        result = EngagementGateway(backend).create({"farmer": str(farmer.id), "season": "Rabi 2025"})
        assert result.ok, result.error
        assert result.data.product is None

    def test_duplicate_engagement(self, backend, engagement):
        result = EngagementGateway(backend).create({
            "farmer": str(engagement.farmer_id), "product": str(engagement.product_id),
            "season": engagement.season,
        })
        assert result.error.code == "constraint_violation"

    def test_update_cannot_touch_stage(self, backend, engagement):
        result = EngagementGateway(backend).update(engagement.id, {"lead_stage": "converted", "notes": "x"})
        assert result.ok
        assert result.data.lead_stage == "new"
        assert result.data.notes == "x"

    def test_bulk_create_is_all_or_nothing(self, backend, farmer, product):
        gateway = EngagementGateway(backend)
        rows = [
            {"farmer": str(farmer.id), "product": str(product.id), "season": "Rabi 2025"},
            {"farmer": str(farmer.id), "season": ""},
        ]
        result = gateway.bulk_create(rows)
        assert result.error.code == "validation_error"
        assert 1 in result.error.details
        assert FarmerEngagement.objects.count() == 0

        result = gateway.bulk_create(rows[:1])
        assert result.ok
        assert EngagementStageHistory.objects.get().triggered_by == "import"

    def test_seasons_and_exists(self, backend, engagement):
        gateway = EngagementGateway(backend)
        assert gateway.seasons().data == ["Rabi 2025"]
        found = gateway.exists(engagement.farmer_id, engagement.product_id, "Rabi 2025").data
        assert found == {"exists": True, "engagement_id": engagement.id}
        assert gateway.exists(engagement.farmer_id, engagement.product_id, "Kharif 2025").data["exists"] is False

    def test_by_farmer(self, backend, engagement):
        gateway = EngagementGateway(backend)
        FarmerEngagement.objects.filter(pk=engagement.pk).update(is_active=False)
        assert gateway.get_by_farmer(engagement.farmer_id).data == []
        assert len(gateway.get_by_farmer(engagement.farmer_id, active_only=False).data) == 1


class TestFollowUps:

    @pytest.fixture
    def schedule(self, farmer, product, engagement):
        today = date(2025, 3, 10)
        rows = [engagement]
        for season in ("Kharif 2025", "Rabi 2026", "Kharif 2026"):
            rows.append(FarmerEngagement.objects.create(farmer=farmer, product=product, season=season))
        offsets = [-2, 0, 5, 30]
        for row, offset in zip(rows, offsets):
            FarmerEngagement.objects.filter(pk=row.pk).update(
                follow_up_required=True, next_follow_up_date=today + timedelta(days=offset),
            )
        return today

    def test_due_filters(self, backend, schedule):
        gateway = EngagementGateway(backend)
        today = schedule
        assert len(gateway.follow_ups_due(today=today).data) == 4
        assert [e.next_follow_up_date for e in gateway.follow_ups_due(due="overdue", today=today).data] == [
            today - timedelta(days=2)]
        assert len(gateway.follow_ups_due(due="today", today=today).data) == 1
        assert len(gateway.follow_ups_due(due="this_week", today=today).data) == 2
        assert len(gateway.follow_ups_due(due="2025-04-09", today=today).data) == 1

    def test_due_sorted_soonest_first(self, backend, schedule):
        dates = [e.next_follow_up_date for e in EngagementGateway(backend).follow_ups_due(today=schedule).data]
        assert dates == sorted(dates)

    def test_invalid_due_filter(self, backend, schedule):
        result = EngagementGateway(backend).follow_ups_due(due="someday", today=schedule)
        assert result.error.code == "validation_error"

    def test_stats(self, backend, schedule):
        stats = EngagementGateway(backend).follow_up_stats(today=schedule).data
        assert stats == {"total": 4, "overdue": 1, "today": 1, "this_week": 2, "upcoming": 1}

    def test_set_and_complete(self, backend, engagement):
        gateway = EngagementGateway(backend)
        when = date(2025, 5, 1)
        result = gateway.set_follow_up(engagement.id, when, "Bring price list")
        assert result.data.follow_up_required is True
        assert result.data.next_follow_up_date == when

        result = gateway.complete_follow_up(engagement.id)
        assert result.data.follow_up_required is False
        assert result.data.last_contact_date is not None

    def test_set_on_missing_engagement(self, backend, db):
        result = EngagementGateway(backend).set_follow_up(uuid.uuid4(), date(2025, 5, 1))
        assert result.error.code == "not_found"


class TestActivities:

    def test_create_bumps_counters(self, backend, farmer, engagement, tmo):
        result = ActivityGateway(backend).create({
            "farmer": str(farmer.id), "engagement": str(engagement.id),
            "activity_type": "visit", "activity_title": "Field visit", "performed_by": str(tmo.id),
        })
        assert result.ok, result.error
        assert result.data.activity_date is not None

        farmer.refresh_from_db()
        engagement.refresh_from_db()
        assert farmer.total_interactions == 1
        assert engagement.total_interactions == 1
        assert engagement.last_activity_date == result.data.activity_date

    def test_stats_and_recent(self, backend, farmer):
        gateway = ActivityGateway(backend)
        for kind in ("call", "call", "meeting", "note"):
            gateway.create({"farmer": str(farmer.id), "activity_type": kind, "activity_title": kind})

        assert gateway.get_stats(farmer.id).data == {
            "total": 4, "calls": 2, "visits": 0, "meetings": 1, "notes": 1,
        }
        assert len(gateway.get_recent(limit=3).data) == 3
        assert len(gateway.get_by_farmer(farmer.id).data) == 4

    def test_dealer_search(self, backend, dealer):
        gateway = DealerGateway(backend)
        assert len(gateway.search("kisan").data) == 1
        assert len(gateway.search("tariq").data) == 1
        assert gateway.search("zzz").data == []
