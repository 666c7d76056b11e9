from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, ContextManager, Iterable, Optional, Protocol

from .models import DailyBalanceRecord, Site


class EntityType(str, Enum):
    SALE = "sale"
    EXPENSE = "expense"
    FUEL_USAGE = "fuel_usage"
    BANKING = "banking"
    PREPAYMENT = "prepayment"
    SITE = "site"
    OPERATOR = "operator"
    PRODUCT = "product"
    BROKER = "broker"


DEFAULT_DATE_FIELDS: dict[EntityType, str] = {
    EntityType.SALE: "sale_date",
    EntityType.EXPENSE: "expense_date",
    EntityType.FUEL_USAGE: "usage_date",
    EntityType.BANKING: "banking_date",
    EntityType.PREPAYMENT: "prepayment_date",
}

DATE_FIELDS: dict[EntityType, frozenset[str]] = {
    EntityType.SALE: frozenset({"sale_date", "payment_received_date"}),
    EntityType.EXPENSE: frozenset({"expense_date"}),
    EntityType.FUEL_USAGE: frozenset({"usage_date"}),
    EntityType.BANKING: frozenset({"banking_date"}),
    EntityType.PREPAYMENT: frozenset({"prepayment_date"}),
}


@dataclass(frozen=True)
class RecordQuery:
    """Filter for one transactional entity type.

    Date bounds are inclusive. Rows whose date field is null never match a bounded query.
    `site_ids=None` means all sites; `operator_id=None` means all operators.
    """

    entity: EntityType
    site_ids: Optional[tuple[str, ...]] = None
    operator_id: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    date_field: Optional[str] = None
    include_inactive: bool = False

    def __post_init__(self) -> None:
        if self.entity not in DEFAULT_DATE_FIELDS:
            raise ValueError(f"Entity '{self.entity.value}' is not a transactional record type.")
        if self.date_field is not None and self.date_field not in DATE_FIELDS[self.entity]:
            raise ValueError(f"Unknown date field '{self.date_field}' for entity '{self.entity.value}'.")

    @property
    def resolved_date_field(self) -> str:
        return self.date_field or DEFAULT_DATE_FIELDS[self.entity]

    @classmethod
    def for_site(
        cls,
        entity: EntityType,
        site_id: Optional[str],
        *,
        date_from: date,
        date_to: date,
        operator_id: Optional[str] = None,
        date_field: Optional[str] = None,
    ) -> "RecordQuery":
        return cls(
            entity=entity,
            site_ids=(site_id,) if site_id is not None else None,
            operator_id=operator_id or None,
            date_from=date_from,
            date_to=date_to,
            date_field=date_field,
        )


class RecordSession(Protocol):
    """Short-lived handle to the record store, scoped to one report build."""

    def query(self, query: RecordQuery) -> list[Any]:
        """Return matching records ordered by the query's date field (stable)."""
        ...

    def get_site(self, site_id: str) -> Optional[Site]:
        ...

    def list_sites(self) -> list[Site]:
        """Return all active sites."""
        ...

    def lookup_names(self, entity: EntityType, ids: Iterable[str]) -> dict[str, str]:
        """Return display names for SITE/OPERATOR/PRODUCT/BROKER ids; unknown ids are omitted."""
        ...

    def get_daily_balance(self, site_id: str, day: date) -> Optional[DailyBalanceRecord]:
        ...

    def upsert_daily_balance(self, site_id: str, day: date, closing_balance: Decimal) -> DailyBalanceRecord:
        """Atomically insert or update the closing balance for (site_id, day)."""
        ...


class RecordStore(Protocol):
    def session(self) -> ContextManager[RecordSession]:
        """Acquire a scoped session; commit on success, roll back on error, always release."""
        ...
