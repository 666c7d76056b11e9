from datetime import date
from decimal import Decimal

import pytest

from common.reconciliation.models import (
    Expense,
    PaymentStatus,
    Product,
    Sale,
    Site,
)
from common.reconciliation.store import EntityType, RecordQuery
from pipelines.record_store import InMemoryRecordStore, get_record_store


DAY = date(2025, 3, 10)


def _sale(sale_id, sale_date, **kwargs):
    return Sale(sale_id=sale_id, sale_date=sale_date, site_id=kwargs.pop("site_id", "site-1"), **kwargs)


def test_get_record_store_resolves_memory(monkeypatch):
    monkeypatch.delenv("RECON_RECORD_STORE", raising=False)
    assert isinstance(get_record_store(), InMemoryRecordStore)
    assert isinstance(get_record_store("Memory"), InMemoryRecordStore)


def test_get_record_store_rejects_unknown_names():
    with pytest.raises(ValueError) as exc:
        get_record_store("redis")
    assert "redis" in str(exc.value)


def test_query_filters_and_orders_by_date():
    store = InMemoryRecordStore().add(
        _sale("s3", date(2025, 3, 12)),
        _sale("s1", date(2025, 3, 10)),
        _sale("s2", date(2025, 3, 10), operator_id="clerk-2"),
        _sale("s4", date(2025, 3, 11), site_id="site-2"),
        _sale("s5", date(2025, 3, 11), is_active=False),
        _sale("s6", date(2025, 3, 14)),
    )
    with store.session() as session:
        rows = session.query(
            RecordQuery.for_site(EntityType.SALE, "site-1", date_from=DAY, date_to=date(2025, 3, 12))
        )
        by_operator = session.query(
            RecordQuery.for_site(
                EntityType.SALE, "site-1", date_from=DAY, date_to=DAY, operator_id="clerk-2"
            )
        )
        all_sites = session.query(
            RecordQuery.for_site(EntityType.SALE, None, date_from=DAY, date_to=date(2025, 3, 12))
        )

    assert [row.sale_id for row in rows] == ["s1", "s2", "s3"]
    assert [row.sale_id for row in by_operator] == ["s2"]
    assert [row.sale_id for row in all_sites] == ["s1", "s2", "s4", "s3"]


def test_query_by_payment_received_date_skips_undated_rows():
    store = InMemoryRecordStore().add(
        _sale("paid", date(2025, 3, 1), payment_status=PaymentStatus.PAID, payment_received_date=DAY),
        _sale("unpaid", date(2025, 3, 1)),
    )
    with store.session() as session:
        rows = session.query(
            RecordQuery.for_site(
                EntityType.SALE, "site-1", date_from=DAY, date_to=DAY, date_field="payment_received_date"
            )
        )
    assert [row.sale_id for row in rows] == ["paid"]


def test_record_query_validates_entity_and_date_field():
    with pytest.raises(ValueError):
        RecordQuery(entity=EntityType.PRODUCT)
    with pytest.raises(ValueError):
        RecordQuery(entity=EntityType.EXPENSE, date_field="sale_date")


def test_lookups_and_sites():
    store = InMemoryRecordStore().add(
        Site(site_id="site-1", name="Kisii"),
        Site(site_id="site-2", name="Old pit", is_active=False),
        Product(product_id="gravel", name="Gravel"),
    )
    with store.session() as session:
        assert session.get_site("site-2").name == "Old pit"
        assert [site.site_id for site in session.list_sites()] == ["site-1"]
        assert session.lookup_names(EntityType.PRODUCT, ["gravel", "missing"]) == {"gravel": "Gravel"}
        assert session.lookup_names(EntityType.SITE, ["site-1"]) == {"site-1": "Kisii"}


def test_add_rejects_unknown_types():
    with pytest.raises(TypeError):
        InMemoryRecordStore().add(object())


def test_upsert_keeps_one_record_per_site_and_day():
    store = InMemoryRecordStore()
    with store.session() as session:
        first = session.upsert_daily_balance("site-1", DAY, Decimal("10"))
        second = session.upsert_daily_balance("site-1", DAY, Decimal("12"))
        assert session.get_daily_balance("site-1", DAY).closing_balance == Decimal("12")
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at


def test_expenses_are_queried_on_expense_date():
    store = InMemoryRecordStore().add(
        Expense(expense_id="e1", expense_date=DAY, site_id="site-1", amount="5"),
        Expense(expense_id="e2", expense_date=date(2025, 3, 9), site_id="site-1", amount="7"),
    )
    with store.session() as session:
        rows = session.query(RecordQuery.for_site(EntityType.EXPENSE, "site-1", date_from=DAY, date_to=DAY))
    assert [row.expense_id for row in rows] == ["e1"]
