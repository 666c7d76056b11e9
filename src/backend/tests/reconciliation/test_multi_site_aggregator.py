from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from decimal import Decimal

from common.reconciliation.engine import ReportingEngine
from common.reconciliation.models import DailyBalanceRecord, ReportKind


def _two_site_store(make_store, make_site, make_sale, make_expense, make_banking, report_day):
    return make_store(
        make_site("site-1", name="Kisii Quarry", loader_fee="10"),
        make_site("site-2", name="Nyeri Quarry", land_rate_fee="5"),
        make_site("site-3", name="Closed Quarry", is_active=False),
        DailyBalanceRecord(site_id="site-1", balance_date=report_day - timedelta(days=1), closing_balance="100"),
        DailyBalanceRecord(site_id="site-2", balance_date=report_day - timedelta(days=1), closing_balance="50"),
        make_sale(site_id="site-1", quantity="10", price_per_unit="20"),
        make_sale(site_id="site-2", quantity="4", price_per_unit="50", product_id="rejects", operator_id="clerk-2"),
        make_sale(site_id="site-2", quantity="1", price_per_unit="30", paid=False),
        make_expense("25", site_id="site-2"),
        make_banking("60", site_id="site-1"),
    )


def test_explicit_sites_are_summed(make_store, make_site, make_sale, make_expense, make_banking, report_day):
    store = _two_site_store(make_store, make_site, make_sale, make_expense, make_banking, report_day)
    report = ReportingEngine(store).build_multi_site_history(["site-1", "site-2"], report_day, report_day)

    assert report.kind == ReportKind.MULTI_SITE
    assert report.site_name == "Kisii Quarry, Nyeri Quarry"
    assert report.total_sales == Decimal("430")
    assert report.loaders_fee == Decimal("100")
    # Rejects with no rejects fee carry no land rate; the unpaid gravel sale does.
    assert report.land_rate_fee == Decimal("5")
    assert report.user_expenses == Decimal("25")
    assert report.total_expenses == Decimal("130")
    assert report.opening_balance == Decimal("150")
    assert report.unpaid == Decimal("30")
    assert report.banked == Decimal("60")
    assert report.cash_in_hand == Decimal("430") - Decimal("130") + Decimal("150") - Decimal("30") - Decimal("60")
    assert report.cash_in_hand == sum(row.cash_in_hand for row in report.site_summaries)
    assert [row.site_id for row in report.site_summaries] == ["site-1", "site-2"]


def test_all_sites_uses_active_sites(make_store, make_site, make_sale, make_expense, make_banking, report_day):
    store = _two_site_store(make_store, make_site, make_sale, make_expense, make_banking, report_day)
    report = ReportingEngine(store).build_manager_report(None, report_day, report_day)

    assert report.kind == ReportKind.MANAGER
    assert report.site_name == "All Sites"
    assert report.operator_name == "All Clerks"
    assert {row.site_id for row in report.site_summaries} == {"site-1", "site-2"}


def test_breakdowns_group_by_identifier(make_store, make_site, make_sale, make_expense, make_banking, report_day):
    store = _two_site_store(make_store, make_site, make_sale, make_expense, make_banking, report_day)
    report = ReportingEngine(store).build_multi_site_history(["site-1", "site-2"], report_day, report_day)

    products = {row.product_id: row for row in report.product_breakdown}
    assert products["gravel"].order_count == 2
    assert products["gravel"].revenue == Decimal("230")
    assert products["rejects"].quantity == Decimal("4")
    assert report.product_breakdown[0].product_id == "gravel"

    clerks = {row.operator_id: row for row in report.clerk_breakdown}
    assert clerks["clerk-1"].revenue == Decimal("230")
    assert clerks["clerk-2"].clerk_name == "Peter Otieno"

    (day,) = report.daily_summaries
    assert day.order_count == 3
    assert day.revenue == Decimal("430")
    assert day.other_expenses == Decimal("25")
    assert day.total_expenses == Decimal("130")
    assert day.net_amount == Decimal("300")


def test_duplicate_and_unknown_site_ids(make_store, make_site, make_sale, make_expense, make_banking, report_day):
    store = _two_site_store(make_store, make_site, make_sale, make_expense, make_banking, report_day)
    report = ReportingEngine(store).build_multi_site_history(
        ["site-1", "site-1", "missing"], report_day, report_day
    )
    assert [row.site_id for row in report.site_summaries] == ["site-1", "missing"]
    assert report.total_sales == Decimal("200")


def test_concurrent_multi_day_reads_agree(make_store, make_site, make_sale, make_expense, make_banking, report_day):
    store = _two_site_store(make_store, make_site, make_sale, make_expense, make_banking, report_day)
    engine = ReportingEngine(store)
    date_from = report_day - timedelta(days=2)
    date_to = report_day + timedelta(days=2)

    def build(_):
        return engine.build_manager_report(None, date_from, date_to).model_dump(
            mode="json", exclude={"generated_at"}
        )

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(build, range(16)))

    assert all(result == results[0] for result in results)
    with store.session() as session:
        assert session.get_daily_balance("site-1", date_to) is None
