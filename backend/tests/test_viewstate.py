"""
View-state holders: list patching, refresh after lifecycle actions, and
results dropped once the owning view has closed.
"""
import pytest

from crm.gateway import EngagementGateway, FarmerGateway
from crm.viewstate import EngagementsState, FarmersState, ViewScope

pytestmark = pytest.mark.django_db


class ClosingGateway:
    """Wraps a gateway and closes the scope while a call is in flight."""

    def __init__(self, gateway, scope):
        self.gateway = gateway
        self.scope = scope

    def get_all(self, **filters):
        result = self.gateway.get_all(**filters)
        self.scope.close()
        return result


class TestFarmersState:

    def test_load(self, backend, farmer):
        state = FarmersState(FarmerGateway(backend), ViewScope("farmers"))
        result = state.load()
        assert result.ok
        assert state.loading is False
        assert state.error is None
        assert [f.id for f in state.data] == [farmer.id]

    def test_create_update_delete_patch_list(self, backend, farmer):
        state = FarmersState(FarmerGateway(backend), ViewScope())
        state.load()

        created = state.create({"full_name": "Ghulam Rasool", "phone": "2"}).data
        assert [f.id for f in state.data] == [farmer.id, created.id]

        state.update(created.id, {"full_name": "Ghulam Rasool Khan"})
        assert state.data[1].full_name == "Ghulam Rasool Khan"

        state.delete(farmer.id)
        assert [f.id for f in state.data] == [created.id]

    def test_failed_write_sets_error_and_keeps_list(self, backend, farmer):
        state = FarmersState(FarmerGateway(backend), ViewScope())
        state.load()
        result = state.create({"phone": "2"})
        assert not result.ok
        assert state.error == "Invalid data"
        assert len(state.data) == 1

    def test_closed_scope_drops_results(self, backend, farmer):
        with ViewScope("farmers") as scope:
            state = FarmersState(FarmerGateway(backend), scope)
        assert scope.cancelled

        result = state.load()
        assert result.ok
        assert state.data == []
        assert state.loading is False

    def test_closed_mid_flight(self, backend, farmer):
        scope = ViewScope()
        state = FarmersState(ClosingGateway(FarmerGateway(backend), scope), scope)
        state.load()
        assert state.data == []

    def test_states_do_not_share_data(self, backend, farmer):
        first = FarmersState(FarmerGateway(backend), ViewScope())
        second = FarmersState(FarmerGateway(backend), ViewScope())
        first.load()
        assert second.data == []


class TestEngagementsState:

    def test_actions_refresh_the_list(self, backend, lifecycle, engagement):
        state = EngagementsState(EngagementGateway(backend), lifecycle, ViewScope(), is_active=True)
        state.load()
        assert state.data[0].lead_stage == "new"

        assert state.update_stage(engagement.id, "contacted").ok
        assert state.data[0].lead_stage == "contacted"

        state.close(engagement.id, "Not interested this season")
        assert state.data == []

        state.reopen(engagement.id)
        assert len(state.data) == 1

    def test_rejected_action_keeps_list(self, backend, lifecycle, engagement):
        state = EngagementsState(EngagementGateway(backend), lifecycle, ViewScope())
        state.load()
        result = state.mark_converted(engagement.id, 1000)
        assert result.error.code == "illegal_transition"
        assert state.error == result.error.message
        assert state.data[0].lead_stage == "new"

    def test_action_after_close_is_not_applied_to_state(self, backend, lifecycle, engagement):
        scope = ViewScope()
        state = EngagementsState(EngagementGateway(backend), lifecycle, scope)
        state.load()
        scope.close()

        result = state.update_stage(engagement.id, "contacted")
        assert result.ok
        assert state.data[0].lead_stage == "new"
