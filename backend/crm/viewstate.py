"""
View-state holders for screens that list and mutate CRM records.

Each state is bound to a ViewScope, the lifetime of the view that owns it.
Once the scope is closed, results that settle afterwards are dropped instead
of being written into the state. States never share data with each other.
"""
import logging

from crm.gateway.base import GatewayResult

logger = logging.getLogger(__name__)


class ViewScope:
    """Lifetime of one view. close() cancels everything bound to it."""

    def __init__(self, name: str = "view"):
        self.name = name
        self._closed = False

    @property
    def cancelled(self) -> bool:
        return self._closed

    def close(self):
        if not self._closed:
            logger.debug("View scope %s closed", self.name)
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class QueryState:
    """data / loading / error for one query, plus the settle step shared by subclasses."""

    def __init__(self, scope: ViewScope):
        self.scope = scope
        self.data = []
        self.loading = False
        self.error: str | None = None

    def _settle(self, result: GatewayResult, on_success=None) -> GatewayResult:
        if self.scope.cancelled:
            logger.debug("%s dropped a result after %s closed", type(self).__name__, self.scope.name)
            return result
        self.loading = False
        if result.ok:
            self.error = None
            if on_success is not None:
                on_success(result.data)
        else:
            self.error = result.error.message
        return result

    def _start(self):
        if not self.scope.cancelled:
            self.loading = True

    def _replace(self, data):
        self.data = list(data)


class FarmersState(QueryState):
    """
    Farmer list for one view. Writes patch the local list on success:
    create appends, update replaces by id, delete removes by id.
    """

    def __init__(self, gateway, scope: ViewScope, **filters):
        super().__init__(scope)
        self.gateway = gateway
        self.filters = filters

    def load(self) -> GatewayResult:
        self._start()
        return self._settle(self.gateway.get_all(**self.filters), self._replace)

    def refresh(self) -> GatewayResult:
        return self.load()

    def create(self, data: dict) -> GatewayResult:
        return self._settle(self.gateway.create(data), self.data.append)

    def update(self, pk, data: dict) -> GatewayResult:
        def replace(updated):
            self.data = [updated if item.pk == updated.pk else item for item in self.data]
        return self._settle(self.gateway.update(pk, data), replace)

    def delete(self, pk) -> GatewayResult:
        def remove(_):
            self.data = [item for item in self.data if str(item.pk) != str(pk)]
        return self._settle(self.gateway.delete(pk), remove)


class EngagementsState(QueryState):
    """Engagement list for one view. Every successful action reloads the list."""

    def __init__(self, gateway, lifecycle, scope: ViewScope, **filters):
        super().__init__(scope)
        self.gateway = gateway
        self.lifecycle = lifecycle
        self.filters = filters

    def load(self) -> GatewayResult:
        self._start()
        return self._settle(self.gateway.get_all(**self.filters), self._replace)

    def refresh(self) -> GatewayResult:
        return self.load()

    def _act(self, result: GatewayResult) -> GatewayResult:
        return self._settle(result, lambda _: self.refresh())

    def update_stage(self, pk, new_stage: str, actor_id=None, reason=None) -> GatewayResult:
        return self._act(self.lifecycle.update_stage(pk, new_stage, actor_id=actor_id, reason=reason))

    def mark_converted(self, pk, total_purchases=None, actor_id=None) -> GatewayResult:
        return self._act(self.lifecycle.mark_converted(pk, total_purchases, actor_id=actor_id))

    def close(self, pk, reason: str, actor_id=None) -> GatewayResult:
        return self._act(self.lifecycle.close(pk, reason, actor_id=actor_id))

    def reopen(self, pk, actor_id=None) -> GatewayResult:
        return self._act(self.lifecycle.reopen(pk, actor_id=actor_id))
