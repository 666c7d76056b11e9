from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from .breakdowns import clerk_breakdown, daily_banking, daily_summaries, fuel_summary, product_breakdown
from .collections_resolver import resolve_collections, resolve_prepayments
from .config import EngineConfig
from .context import NameBook, ReportPeriod, quantize_amount
from .expenses import ExpenseAggregator, daily_expense_totals
from .fees import SiteFees
from .ledger import DailyBalanceLedger
from .models import ZERO, PaymentStatus, ReportData, ReportKind, Sale, SaleLine
from .store import EntityType, RecordQuery, RecordSession, RecordStore

logger = logging.getLogger(__name__)


class PeriodReportBuilder:
    """Builds the reconciliation for one site over an inclusive date range.

    net_earnings = (total_sales - total_expenses) + opening_balance
                   + total_collections + total_prepayments - unpaid
    cash_in_hand = net_earnings - banked

    Single-day builds persist cash_in_hand as that day's closing balance.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        config: Optional[EngineConfig] = None,
        aggregator: Optional[ExpenseAggregator] = None,
    ):
        self.store = store
        self.config = config or EngineConfig()
        self._aggregator = aggregator or ExpenseAggregator()

    def build(
        self,
        *,
        site_id: str,
        date_from: date,
        date_to: date,
        operator_id: Optional[str] = None,
        kind: ReportKind = ReportKind.CLERK,
    ) -> ReportData:
        # Range is validated before the store is touched.
        period = ReportPeriod(date_from, date_to)
        with self.store.session() as session:
            return self.build_in_session(
                session, site_id=site_id, period=period, operator_id=operator_id, kind=kind
            )

    def build_in_session(
        self,
        session: RecordSession,
        *,
        site_id: str,
        period: ReportPeriod,
        operator_id: Optional[str] = None,
        kind: ReportKind = ReportKind.CLERK,
        with_breakdowns: Optional[bool] = None,
    ) -> ReportData:
        config = self.config
        operator_id = operator_id or None
        names = NameBook(session)

        site = session.get_site(site_id)
        if site is None:
            logger.warning(
                "Site %s not found; returning an empty report for %s", site_id, period.title
            )
            return self._header(names, site_id=site_id, period=period, operator_id=operator_id, kind=kind)

        report = self._header(names, site_id=site_id, period=period, operator_id=operator_id, kind=kind)
        report.site_name = site.name
        fees = SiteFees.from_config(site.fees)
        report.land_rate_visible = fees.land_rate_visible

        ledger = DailyBalanceLedger(session)
        carry = ledger.carry_forward(site_id, period)
        report.actual_opening_balance = carry.actual_opening_balance
        report.cash_in_hand_carry_forward = carry.cash_in_hand_carry_forward
        if period.is_single_day:
            report.opening_balance = carry.actual_opening_balance
        elif kind == ReportKind.CLERK:
            report.opening_balance = ZERO
        else:
            report.opening_balance = carry.cash_in_hand_carry_forward

        sales: list[Sale] = session.query(
            RecordQuery.for_site(
                EntityType.SALE,
                site_id,
                date_from=period.date_from,
                date_to=period.date_to,
                operator_id=operator_id,
            )
        )
        report.sales = sale_lines(sales, names, config)
        report.total_quantity = sum((s.quantity for s in sales), ZERO)
        report.total_sales = sum((s.gross_amount for s in sales), ZERO)
        unpaid = [s for s in sales if s.payment_status != PaymentStatus.PAID]
        report.unpaid = sum((s.gross_amount for s in unpaid), ZERO)
        report.unpaid_orders = bool(unpaid)

        expenses = self._aggregator.for_period(
            session,
            site_id=site_id,
            period=period,
            operator_id=operator_id,
            fees=fees,
            sales=sales,
            names=names,
            config=config,
        )
        report.expense_items = expenses.items
        report.user_expenses = expenses.user_expenses
        report.commission = expenses.commission
        report.loaders_fee = expenses.loaders_fee
        report.land_rate_fee = expenses.land_rate_fee
        report.total_expenses = expenses.total
        report.daily_expenses = daily_expense_totals(expenses.items)

        # Fuel is tracked per site, never per clerk.
        report.fuel_usages = session.query(
            RecordQuery.for_site(
                EntityType.FUEL_USAGE, site_id, date_from=period.date_from, date_to=period.date_to
            )
        )
        report.fuel_summary = fuel_summary(report.fuel_usages)

        report.bankings = session.query(
            RecordQuery.for_site(
                EntityType.BANKING,
                site_id,
                date_from=period.date_from,
                date_to=period.date_to,
                operator_id=operator_id,
            )
        )
        report.banked = sum((b.amount_banked for b in report.bankings), ZERO)
        report.daily_banking = daily_banking(report.bankings)

        collections = resolve_collections(
            session, site_id=site_id, period=period, operator_id=operator_id, names=names
        )
        report.collection_items = collections.items
        report.total_collections = collections.total

        prepayments = resolve_prepayments(
            session,
            site_id=site_id,
            period=period,
            operator_id=operator_id,
            names=names,
            config=config,
        )
        report.prepayment_items = prepayments.items
        report.total_prepayments = prepayments.total

        apply_summary_figures(report, config.amount_quantize)

        if with_breakdowns is None:
            with_breakdowns = kind != ReportKind.CLERK
        if with_breakdowns:
            attach_breakdowns(report, config)

        logger.debug(
            "Built %s report for site %s %s: %d sales, %d expense lines, cash in hand %s",
            kind.value,
            site_id,
            period.title,
            len(report.sales),
            len(report.expense_items),
            report.cash_in_hand,
        )

        if period.is_single_day and config.write_closing_balance:
            ledger.upsert_closing_balance(site_id, period.date_from, report.cash_in_hand)
        return report

    def _header(
        self,
        names: NameBook,
        *,
        site_id: Optional[str],
        period: ReportPeriod,
        operator_id: Optional[str],
        kind: ReportKind,
    ) -> ReportData:
        if operator_id:
            operator_name = names.operator(operator_id, self.config.unknown_label)
        elif kind != ReportKind.CLERK:
            operator_name = self.config.all_clerks_label
        else:
            operator_name = ""
        return ReportData(
            kind=kind,
            date_from=period.date_from,
            date_to=period.date_to,
            is_single_day=period.is_single_day,
            report_title=period.title,
            generated_at=datetime.now(timezone.utc),
            site_id=site_id,
            operator_id=operator_id,
            operator_name=operator_name,
        )


def sale_lines(sales: list[Sale], names: NameBook, config: EngineConfig) -> list[SaleLine]:
    names.prefetch(EntityType.PRODUCT, (s.product_id for s in sales))
    names.prefetch(EntityType.BROKER, (s.broker_id for s in sales))
    names.prefetch(EntityType.OPERATOR, (s.operator_id for s in sales))
    return [
        SaleLine(
            sale_id=sale.sale_id,
            sale_date=sale.sale_date,
            operator_id=sale.operator_id,
            clerk_name=names.operator(sale.operator_id, config.unknown_label),
            vehicle_registration=sale.vehicle_registration,
            product_id=sale.product_id,
            product_name=names.product(sale.product_id, config.unknown_label),
            broker_name=names.broker(sale.broker_id),
            quantity=sale.quantity,
            price_per_unit=sale.price_per_unit,
            gross_amount=sale.gross_amount,
            payment_status=sale.payment_status,
            client_name=sale.client_name,
        )
        for sale in sales
    ]


def apply_summary_figures(report: ReportData, quantize: Optional[Decimal] = None) -> ReportData:
    """Fill earnings, net_earnings and cash_in_hand from the report's totals."""
    for name in (
        "opening_balance",
        "total_sales",
        "total_expenses",
        "unpaid",
        "banked",
        "total_collections",
        "total_prepayments",
    ):
        setattr(report, name, quantize_amount(getattr(report, name), quantize))

    report.earnings = report.total_sales - report.total_expenses
    report.net_earnings = (
        report.earnings
        + report.opening_balance
        + report.total_collections
        + report.total_prepayments
        - report.unpaid
    )
    report.cash_in_hand = report.net_earnings - report.banked
    return report


def attach_breakdowns(report: ReportData, config: EngineConfig) -> ReportData:
    report.daily_summaries = daily_summaries(report.sales, report.expense_items)
    report.product_breakdown = product_breakdown(report.sales, config)
    report.clerk_breakdown = clerk_breakdown(report.sales, config)
    return report
