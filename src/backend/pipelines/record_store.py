from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Iterator, Optional

from common.reconciliation.models import (
    Banking,
    Broker,
    DailyBalanceRecord,
    Expense,
    FuelUsage,
    Operator,
    Prepayment,
    Product,
    Sale,
    Site,
)
from common.reconciliation.store import EntityType, RecordQuery, RecordSession, RecordStore

RECORD_ENTITIES: dict[type, EntityType] = {
    Sale: EntityType.SALE,
    Expense: EntityType.EXPENSE,
    FuelUsage: EntityType.FUEL_USAGE,
    Banking: EntityType.BANKING,
    Prepayment: EntityType.PREPAYMENT,
}

LOOKUP_ENTITIES: dict[type, tuple[EntityType, str, str]] = {
    Site: (EntityType.SITE, "site_id", "name"),
    Operator: (EntityType.OPERATOR, "operator_id", "full_name"),
    Product: (EntityType.PRODUCT, "product_id", "name"),
    Broker: (EntityType.BROKER, "broker_id", "name"),
}


def get_record_store(name: Optional[str] = None) -> RecordStore:
    """Resolve a record store implementation by name (memory|sql).

    Falls back to RECON_RECORD_STORE when no name is given.
    """
    if name is None:
        name = os.getenv("RECON_RECORD_STORE", "memory")
    store = (name or "").strip().lower()
    if store in ("memory", ""):
        return InMemoryRecordStore()
    if store == "sql":
        from connectors.sqlstore.store import SqlRecordStore

        return SqlRecordStore.from_config()
    raise ValueError(f"Unknown record store '{name}' (expected 'memory' or 'sql').")


class InMemoryRecordStore:
    """Process-local record store.

    Raw records are written with `add`; the engine only reads them. The daily
    balance ledger is guarded by a lock so each upsert is one atomic step.
    """

    def __init__(self) -> None:
        self._records: dict[EntityType, list[Any]] = {entity: [] for entity in RECORD_ENTITIES.values()}
        self._lookups: dict[EntityType, dict[str, Any]] = {
            entity: {} for entity, _, _ in LOOKUP_ENTITIES.values()
        }
        self._balances: dict[tuple[str, date], DailyBalanceRecord] = {}
        self._lock = threading.Lock()

    def add(self, *records: Any) -> "InMemoryRecordStore":
        with self._lock:
            for record in records:
                if isinstance(record, DailyBalanceRecord):
                    self._balances[(record.site_id, record.balance_date)] = record
                    continue
                entity = RECORD_ENTITIES.get(type(record))
                if entity is not None:
                    self._records[entity].append(record)
                    continue
                lookup = LOOKUP_ENTITIES.get(type(record))
                if lookup is None:
                    raise TypeError(f"Unsupported record type: {type(record).__name__}")
                entity, id_attr, _ = lookup
                self._lookups[entity][getattr(record, id_attr)] = record
        return self

    @contextmanager
    def session(self) -> Iterator[RecordSession]:
        yield InMemoryRecordSession(self)


class InMemoryRecordSession:
    def __init__(self, store: InMemoryRecordStore):
        self._store = store

    def query(self, query: RecordQuery) -> list[Any]:
        with self._store._lock:
            rows = list(self._store._records[query.entity])

        field = query.resolved_date_field
        matched = []
        for row in rows:
            if not query.include_inactive and not row.is_active:
                continue
            if query.site_ids is not None and row.site_id not in query.site_ids:
                continue
            if query.operator_id is not None and row.operator_id != query.operator_id:
                continue
            value = getattr(row, field)
            if value is None:
                if query.date_from is not None or query.date_to is not None:
                    continue
            else:
                if query.date_from is not None and value < query.date_from:
                    continue
                if query.date_to is not None and value > query.date_to:
                    continue
            matched.append(row)

        # Undated rows sort first; sorted() keeps insertion order within a date.
        return sorted(matched, key=lambda row: (getattr(row, field) is not None, getattr(row, field) or date.min))

    def get_site(self, site_id: str) -> Optional[Site]:
        with self._store._lock:
            return self._store._lookups[EntityType.SITE].get(site_id)

    def list_sites(self) -> list[Site]:
        with self._store._lock:
            sites = list(self._store._lookups[EntityType.SITE].values())
        return [site for site in sites if site.is_active]

    def lookup_names(self, entity: EntityType, ids: Iterable[str]) -> dict[str, str]:
        _, _, name_attr = next(v for v in LOOKUP_ENTITIES.values() if v[0] == entity)
        with self._store._lock:
            known = self._store._lookups[entity]
            return {i: getattr(known[i], name_attr) for i in ids if i in known}

    def get_daily_balance(self, site_id: str, day: date) -> Optional[DailyBalanceRecord]:
        with self._store._lock:
            return self._store._balances.get((site_id, day))

    def upsert_daily_balance(self, site_id: str, day: date, closing_balance: Decimal) -> DailyBalanceRecord:
        now = datetime.now(timezone.utc)
        with self._store._lock:
            existing = self._store._balances.get((site_id, day))
            record = DailyBalanceRecord(
                site_id=site_id,
                balance_date=day,
                closing_balance=closing_balance,
                created_at=existing.created_at if existing is not None else now,
                updated_at=now,
            )
            self._store._balances[(site_id, day)] = record
            return record
