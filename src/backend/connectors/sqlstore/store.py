from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import Engine, create_engine, select
from sqlalchemy.orm import Session, sessionmaker

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
    SiteFeeConfig,
)
from common.reconciliation.store import EntityType, RecordQuery, RecordSession

from .config import SqlStoreConfig, get_sql_store_config
from .models import (
    BankingRow,
    Base,
    BrokerRow,
    DailyBalanceRow,
    ExpenseRow,
    FuelUsageRow,
    OperatorRow,
    PrepaymentRow,
    ProductRow,
    SaleRow,
    SiteRow,
)

logger = logging.getLogger(__name__)

RECORD_TABLES: dict[EntityType, tuple[type, type]] = {
    EntityType.SALE: (SaleRow, Sale),
    EntityType.EXPENSE: (ExpenseRow, Expense),
    EntityType.FUEL_USAGE: (FuelUsageRow, FuelUsage),
    EntityType.BANKING: (BankingRow, Banking),
    EntityType.PREPAYMENT: (PrepaymentRow, Prepayment),
}

LOOKUP_TABLES: dict[EntityType, tuple[Any, Any]] = {
    EntityType.SITE: (SiteRow.site_id, SiteRow.name),
    EntityType.OPERATOR: (OperatorRow.operator_id, OperatorRow.full_name),
    EntityType.PRODUCT: (ProductRow.product_id, ProductRow.name),
    EntityType.BROKER: (BrokerRow.broker_id, BrokerRow.name),
}

ROW_TYPES: dict[type, type] = {
    Sale: SaleRow,
    Expense: ExpenseRow,
    FuelUsage: FuelUsageRow,
    Banking: BankingRow,
    Prepayment: PrepaymentRow,
    Operator: OperatorRow,
    Product: ProductRow,
    Broker: BrokerRow,
    DailyBalanceRecord: DailyBalanceRow,
}


class SqlRecordStore:
    """Record store backed by a SQLAlchemy engine.

    Each `session()` is one transaction: committed on success, rolled back on error.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_config(cls, config: Optional[SqlStoreConfig] = None) -> "SqlRecordStore":
        config = config or get_sql_store_config()
        return cls(create_engine(config.database_url, echo=config.echo))

    def create_schema(self) -> None:
        logger.info("Creating record store tables on %s", self.engine.url.render_as_string(hide_password=True))
        Base.metadata.create_all(self.engine)

    def add(self, *records: Any) -> "SqlRecordStore":
        with self._session_factory.begin() as session:
            session.add_all([_to_row(record) for record in records])
        return self

    @contextmanager
    def session(self) -> Iterator[RecordSession]:
        session = self._session_factory()
        try:
            yield SqlRecordSession(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class SqlRecordSession:
    def __init__(self, session: Session):
        self._session = session

    def query(self, query: RecordQuery) -> list[Any]:
        row_type, model = RECORD_TABLES[query.entity]
        date_col = getattr(row_type, query.resolved_date_field)

        stmt = select(row_type)
        if not query.include_inactive:
            stmt = stmt.where(row_type.is_active.is_(True))
        if query.site_ids is not None:
            stmt = stmt.where(row_type.site_id.in_(query.site_ids))
        if query.operator_id is not None:
            stmt = stmt.where(row_type.operator_id == query.operator_id)
        if query.date_from is not None:
            stmt = stmt.where(date_col >= query.date_from)
        if query.date_to is not None:
            stmt = stmt.where(date_col <= query.date_to)
        # The surrogate id keeps insertion order within a date.
        stmt = stmt.order_by(date_col, row_type.id)

        rows = self._session.scalars(stmt).all()
        return [model.model_validate(row, from_attributes=True) for row in rows]

    def get_site(self, site_id: str) -> Optional[Site]:
        row = self._session.get(SiteRow, site_id)
        return _site_from_row(row) if row is not None else None

    def list_sites(self) -> list[Site]:
        rows = self._session.scalars(
            select(SiteRow).where(SiteRow.is_active.is_(True)).order_by(SiteRow.site_id)
        ).all()
        return [_site_from_row(row) for row in rows]

    def lookup_names(self, entity: EntityType, ids: Iterable[str]) -> dict[str, str]:
        id_col, name_col = LOOKUP_TABLES[entity]
        ids = list(ids)
        if not ids:
            return {}
        return {key: name for key, name in self._session.execute(select(id_col, name_col).where(id_col.in_(ids)))}

    def get_daily_balance(self, site_id: str, day: date) -> Optional[DailyBalanceRecord]:
        stmt = (
            select(DailyBalanceRow)
            .where(DailyBalanceRow.site_id == site_id, DailyBalanceRow.balance_date == day)
            .execution_options(populate_existing=True)
        )
        row = self._session.scalars(stmt).first()
        if row is None:
            return None
        return DailyBalanceRecord.model_validate(row, from_attributes=True)

    def upsert_daily_balance(self, site_id: str, day: date, closing_balance: Decimal) -> DailyBalanceRecord:
        now = datetime.now(timezone.utc)
        stmt = _upsert_statement(
            self._session.get_bind().dialect.name,
            {
                "site_id": site_id,
                "balance_date": day,
                "closing_balance": closing_balance,
                "created_at": now,
                "updated_at": now,
            },
        )
        self._session.execute(stmt)
        record = self.get_daily_balance(site_id, day)
        if record is None:
            raise RuntimeError(f"Daily balance upsert for site {site_id} on {day.isoformat()} left no row.")
        return record


def _upsert_statement(dialect: str, values: dict[str, Any]):
    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert
        stmt = insert(DailyBalanceRow).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=["site_id", "balance_date"],
            set_={
                "closing_balance": stmt.excluded.closing_balance,
                "updated_at": stmt.excluded.updated_at,
            },
        )
    if dialect in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert

        stmt = insert(DailyBalanceRow).values(**values)
        return stmt.on_duplicate_key_update(
            closing_balance=stmt.inserted.closing_balance,
            updated_at=stmt.inserted.updated_at,
        )
    raise ValueError(f"Daily balance upsert is not supported for dialect '{dialect}'.")


def _site_from_row(row: SiteRow) -> Site:
    return Site(
        site_id=row.site_id,
        name=row.name,
        fees=SiteFeeConfig(
            loader_fee=row.loader_fee,
            land_rate_fee=row.land_rate_fee,
            rejects_fee=row.rejects_fee,
        ),
        is_active=row.is_active,
    )


def _to_row(record: Any):
    if isinstance(record, Site):
        return SiteRow(
            site_id=record.site_id,
            name=record.name,
            loader_fee=record.fees.loader_fee,
            land_rate_fee=record.fees.land_rate_fee,
            rejects_fee=record.fees.rejects_fee,
            is_active=record.is_active,
        )
    row_type = ROW_TYPES.get(type(record))
    if row_type is None:
        raise TypeError(f"Unsupported record type: {type(record).__name__}")
    values = {
        key: value.value if isinstance(value, Enum) else value
        for key, value in record.model_dump().items()
    }
    if row_type is DailyBalanceRow:
        now = datetime.now(timezone.utc)
        values["created_at"] = values.get("created_at") or now
        values["updated_at"] = values.get("updated_at") or now
    return row_type(**values)
