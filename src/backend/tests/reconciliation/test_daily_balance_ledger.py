from datetime import timedelta
from decimal import Decimal

from common.reconciliation.context import ReportPeriod
from common.reconciliation.ledger import DailyBalanceLedger
from common.reconciliation.models import DailyBalanceRecord


def test_opening_balance_is_previous_days_closing(make_store, report_day):
    store = make_store(
        DailyBalanceRecord(site_id="site-1", balance_date=report_day - timedelta(days=1), closing_balance="500")
    )
    with store.session() as session:
        ledger = DailyBalanceLedger(session)
        assert ledger.opening_balance("site-1", report_day) == Decimal("500")


def test_missing_previous_day_reads_as_zero(make_store, report_day):
    with make_store().session() as session:
        assert DailyBalanceLedger(session).opening_balance("site-1", report_day) == Decimal("0")


def test_upsert_is_idempotent(make_store, report_day):
    store = make_store()
    with store.session() as session:
        ledger = DailyBalanceLedger(session)
        first = ledger.upsert_closing_balance("site-1", report_day, Decimal("750"))
        second = ledger.upsert_closing_balance("site-1", report_day, Decimal("750"))
        assert first.closing_balance == second.closing_balance == Decimal("750")
        assert second.created_at == first.created_at
        assert ledger.opening_balance("site-1", report_day + timedelta(days=1)) == Decimal("750")


def test_upsert_overwrites_previous_value(make_store, report_day):
    store = make_store()
    with store.session() as session:
        ledger = DailyBalanceLedger(session)
        ledger.upsert_closing_balance("site-1", report_day, Decimal("100"))
        ledger.upsert_closing_balance("site-1", report_day, Decimal("90"))
        assert ledger.closing_balance("site-1", report_day) == Decimal("90")


def test_carry_forward_reads_both_ends_of_the_range(make_store, report_day):
    date_from = report_day
    date_to = report_day + timedelta(days=4)
    store = make_store(
        DailyBalanceRecord(site_id="site-1", balance_date=date_from - timedelta(days=1), closing_balance="100"),
        DailyBalanceRecord(site_id="site-1", balance_date=date_to - timedelta(days=1), closing_balance="400"),
    )
    with store.session() as session:
        carry = DailyBalanceLedger(session).carry_forward("site-1", ReportPeriod(date_from, date_to))
    assert carry.actual_opening_balance == Decimal("100")
    assert carry.cash_in_hand_carry_forward == Decimal("400")


def test_carry_forward_for_single_day_agrees(make_store, report_day):
    store = make_store(
        DailyBalanceRecord(site_id="site-1", balance_date=report_day - timedelta(days=1), closing_balance="80")
    )
    with store.session() as session:
        carry = DailyBalanceLedger(session).carry_forward("site-1", ReportPeriod.single_day(report_day))
    assert carry.actual_opening_balance == carry.cash_in_hand_carry_forward == Decimal("80")


def test_balances_are_kept_per_site(make_store, report_day):
    store = make_store()
    with store.session() as session:
        ledger = DailyBalanceLedger(session)
        ledger.upsert_closing_balance("site-1", report_day, Decimal("10"))
        ledger.upsert_closing_balance("site-2", report_day, Decimal("20"))
        next_day = report_day + timedelta(days=1)
        assert ledger.opening_balance("site-1", next_day) == Decimal("10")
        assert ledger.opening_balance("site-2", next_day) == Decimal("20")
