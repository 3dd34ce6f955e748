"""
Gateway plumbing shared by every per-table wrapper.

A gateway never raises for expected failures. Each call returns a
GatewayResult carrying either the data or a GatewayError with a message,
an optional machine code, and optional details (e.g. field errors).

The database is addressed through an explicit Backend handle, built once at
process start and passed into every gateway. Nothing here reaches for a
module-level connection.
"""
import functools
import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db import DEFAULT_DB_ALIAS, DatabaseError, IntegrityError, transaction
from rest_framework.exceptions import ValidationError

logger = logging.getLogger(__name__)


# ─── Handle + result types ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Backend:
    """Handle to the database the CRM reads and writes (a Django DB alias)."""
    using: str = DEFAULT_DB_ALIAS

    @classmethod
    def from_settings(cls) -> "Backend":
        return cls(using=getattr(settings, "CRM_DATABASE_ALIAS", DEFAULT_DB_ALIAS))

    def table(self, model):
        return model.objects.using(self.using)

    def atomic(self):
        return transaction.atomic(using=self.using)


@dataclass
class GatewayError:
    message: str
    code: str | None = None
    details: Any = None

    def as_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, "details": self.details}


@dataclass
class GatewayResult:
    data: Any = None
    error: GatewayError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GatewayFailure(Exception):
    """Raised inside a guarded call to abort it with a specific error value."""

    def __init__(self, error: GatewayError):
        super().__init__(error.message)
        self.error = error


def not_found(model) -> GatewayFailure:
    return GatewayFailure(GatewayError(
        f"{model._meta.verbose_name.capitalize()} not found", code="not_found",
    ))


def guarded(method):
    """
    Run a gateway method in its own transaction (a savepoint when nested) and
    turn failures into a GatewayResult error instead of an exception.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            with self.backend.atomic():
                data = method(self, *args, **kwargs)
        except GatewayFailure as exc:
            return GatewayResult(error=exc.error)
        except ObjectDoesNotExist:
            return GatewayResult(error=not_found(self.model).error)
        except ValidationError as exc:
            return GatewayResult(error=GatewayError(
                "Invalid data", code="validation_error", details=exc.detail,
            ))
        except DjangoValidationError as exc:
            details = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
            return GatewayResult(error=GatewayError(
                "Invalid data", code="validation_error", details=details,
            ))
        except IntegrityError as exc:
            logger.warning("%s.%s constraint violation: %s", type(self).__name__, method.__name__, exc)
            return GatewayResult(error=GatewayError(str(exc), code="constraint_violation"))
        except DatabaseError as exc:
            logger.exception("%s.%s failed", type(self).__name__, method.__name__)
            return GatewayResult(error=GatewayError(str(exc), code="database_error"))
        return GatewayResult(data=data)

    return wrapper


# ─── Per-table base ──────────────────────────────────────────────────────────

class TableGateway:
    """
    CRUD over one table.

    Subclasses set the model, the serializer that parses writes, the equality
    filters get_all() accepts, and the default ordering. Unknown filter names
    are ignored; None values mean "no filter".
    """

    model = None
    write_serializer = None
    filter_fields: tuple = ()
    ordering: tuple = ()
    select_related: tuple = ()

    def __init__(self, backend: Backend):
        self.backend = backend

    # ─── Query helpers ───────────────────────────────────────────────────

    def table(self):
        return self.backend.table(self.model)

    def query(self):
        queryset = self.table()
        if self.select_related:
            queryset = queryset.select_related(*self.select_related)
        if self.ordering:
            queryset = queryset.order_by(*self.ordering)
        return queryset

    def apply_filters(self, queryset, filters: dict):
        for name, value in filters.items():
            if name in self.filter_fields and value is not None:
                queryset = queryset.filter(**{name: value})
        return queryset

    def parse(self, data: dict, instance=None, partial: bool = False) -> dict:
        serializer = self.write_serializer(instance, data=data, partial=partial)
        serializer.is_valid(raise_exception=True)
        return dict(serializer.validated_data)

    def fetch(self, pk):
        """Re-read one row through query() so relations are loaded."""
        return self.query().get(pk=pk)

    # ─── CRUD ────────────────────────────────────────────────────────────

    @guarded
    def get_all(self, **filters):
        return list(self.apply_filters(self.query(), filters))

    @guarded
    def get_by_id(self, pk):
        return self.fetch(pk)

    @guarded
    def create(self, data: dict):
        validated = self.parse(data)
        instance = self.table().create(**validated)
        return self.fetch(instance.pk)

    @guarded
    def update(self, pk, data: dict):
        instance = self.table().get(pk=pk)
        validated = self.parse(data, instance=instance, partial=True)
        for name, value in validated.items():
            setattr(instance, name, value)
        instance.save(using=self.backend.using)
        return self.fetch(pk)

    @guarded
    def delete(self, pk):
        deleted, _ = self.table().filter(pk=pk).delete()
        if not deleted:
            raise not_found(self.model)
        return None

