"""Generic rows-in / rows-out data access interface.

Services and repositories depend on this protocol only; the concrete backend
(MySQL, or the in-memory client used by tests) is chosen by the container.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.exceptions import RemoteUnavailableError, ValidationError


class Entity:
    EMPLOYEES = "employees"
    ATTENDANCES = "attendances"
    DEPARTMENTS = "departments"
    POSITIONS = "positions"
    WORK_POLICIES = "work_policies"
    SYSTEM_SETTINGS = "system_settings"
    IDENTITIES = "auth_identities"

    ALL = frozenset(
        {EMPLOYEES, ATTENDANCES, DEPARTMENTS, POSITIONS, WORK_POLICIES, SYSTEM_SETTINGS, IDENTITIES}
    )


FILTER_OPS = frozenset({"eq", "neq", "gte", "lte", "in"})


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPS:
            raise ValidationError(f"Unsupported filter operator: {self.op}")

    def matches(self, row: Mapping[str, Any]) -> bool:
        actual = row.get(self.column)
        if self.op == "eq":
            return actual == self.value
        if self.op == "neq":
            return actual != self.value
        if self.op == "in":
            return actual in tuple(self.value)
        if actual is None:
            return False
        if self.op == "gte":
            return actual >= self.value
        return actual <= self.value


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def is_in(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


class DataClient(Protocol):
    def query(
        self,
        entity: str,
        *,
        filters: Sequence[Filter] = (),
        columns: Optional[Sequence[str]] = None,
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> list[dict]:
        raise NotImplementedError

    def count(self, entity: str, *, filters: Sequence[Filter] = ()) -> int:
        raise NotImplementedError

    def insert(self, entity: str, row: Mapping[str, Any]) -> dict:
        raise NotImplementedError

    def update(self, entity: str, row_id: str, patch: Mapping[str, Any]) -> dict:
        raise NotImplementedError

    def delete(self, entity: str, row_id: str) -> list[dict]:
        raise NotImplementedError

    def upsert(
        self,
        entity: str,
        row: Mapping[str, Any],
        *,
        on_conflict: Sequence[str],
        ignore_duplicates: bool = False,
    ) -> dict:
        """Insert row, or resolve a unique-key collision on `on_conflict`.

        With ignore_duplicates the stored row wins and is returned unchanged;
        otherwise the stored row is updated with `row`. Atomic in the backend.
        """
        raise NotImplementedError


class UnconfiguredDataClient:
    """Stand-in used when the DB_* settings are missing.

    The application keeps serving health/config endpoints; every data call
    reports the missing configuration instead of crashing at startup.
    """

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)

    def _fail(self, *args, **kwargs):
        raise RemoteUnavailableError(
            "Data backend is not configured",
            details={"missing": self.missing},
        )

    query = count = insert = update = delete = upsert = _fail
