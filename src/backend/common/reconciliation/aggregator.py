from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from .breakdowns import daily_banking, fuel_summary
from .builder import PeriodReportBuilder, apply_summary_figures, attach_breakdowns
from .context import NameBook, ReportPeriod
from .expenses import daily_expense_totals
from .models import ZERO, ReportData, ReportKind, SiteSummary

logger = logging.getLogger(__name__)

# Figures that are plain sums of the per-site reports.
SUMMED_FIELDS = (
    "opening_balance",
    "actual_opening_balance",
    "cash_in_hand_carry_forward",
    "total_quantity",
    "total_sales",
    "unpaid",
    "total_expenses",
    "user_expenses",
    "commission",
    "loaders_fee",
    "land_rate_fee",
    "banked",
    "total_collections",
    "total_prepayments",
)


class MultiSiteAggregator:
    """Combines per-site manager reports into a single report.

    Opening balances are summed across sites. Line lists are concatenated and
    re-ordered by date; summary figures are recomputed from the summed totals.
    """

    def __init__(self, builder: PeriodReportBuilder):
        self._builder = builder

    def build(
        self,
        site_ids: Optional[Iterable[str]],
        date_from: date,
        date_to: date,
        *,
        operator_id: Optional[str] = None,
        kind: ReportKind = ReportKind.MULTI_SITE,
    ) -> ReportData:
        period = ReportPeriod(date_from, date_to)
        config = self._builder.config
        operator_id = operator_id or None

        with self._builder.store.session() as session:
            if site_ids is None:
                ids = [site.site_id for site in session.list_sites()]
                site_name = config.all_sites_label
            else:
                ids = list(dict.fromkeys(site_ids))
                site_name = None

            per_site = [
                self._builder.build_in_session(
                    session,
                    site_id=site_id,
                    period=period,
                    operator_id=operator_id,
                    kind=ReportKind.MANAGER,
                    with_breakdowns=False,
                )
                for site_id in ids
            ]

            if operator_id:
                operator_name = NameBook(session).operator(operator_id, config.unknown_label)
            else:
                operator_name = config.all_clerks_label

        if site_name is None:
            site_name = ", ".join(r.site_name for r in per_site if r.site_name)

        report = ReportData(
            kind=kind,
            date_from=period.date_from,
            date_to=period.date_to,
            is_single_day=period.is_single_day,
            report_title=period.title,
            generated_at=datetime.now(timezone.utc),
            site_id=None,
            site_name=site_name,
            operator_id=operator_id,
            operator_name=operator_name,
            land_rate_visible=any(r.land_rate_visible for r in per_site),
        )
        combine_site_reports(report, per_site)
        apply_summary_figures(report, config.amount_quantize)
        attach_breakdowns(report, config)

        logger.debug(
            "Built %s report over %d sites %s: cash in hand %s",
            kind.value,
            len(per_site),
            period.title,
            report.cash_in_hand,
        )
        return report


def combine_site_reports(report: ReportData, per_site: list[ReportData]) -> ReportData:
    for name in SUMMED_FIELDS:
        setattr(report, name, sum((getattr(r, name) for r in per_site), ZERO))
    report.unpaid_orders = any(r.unpaid_orders for r in per_site)

    # sorted() is stable: within a day, site order is kept.
    report.sales = sorted((s for r in per_site for s in r.sales), key=lambda s: s.sale_date)
    report.expense_items = sorted(
        (i for r in per_site for i in r.expense_items), key=lambda i: i.item_date
    )
    report.fuel_usages = sorted(
        (u for r in per_site for u in r.fuel_usages), key=lambda u: u.usage_date
    )
    report.bankings = sorted((b for r in per_site for b in r.bankings), key=lambda b: b.banking_date)
    report.collection_items = sorted(
        (c for r in per_site for c in r.collection_items), key=lambda c: c.payment_received_date
    )
    report.prepayment_items = sorted(
        (p for r in per_site for p in r.prepayment_items), key=lambda p: p.prepayment_date
    )

    report.daily_expenses = daily_expense_totals(report.expense_items)
    report.fuel_summary = fuel_summary(report.fuel_usages)
    report.daily_banking = daily_banking(report.bankings)
    report.site_summaries = [
        SiteSummary(
            site_id=r.site_id or "",
            site_name=r.site_name,
            total_sales=r.total_sales,
            total_expenses=r.total_expenses,
            unpaid=r.unpaid,
            banked=r.banked,
            opening_balance=r.opening_balance,
            cash_in_hand=r.cash_in_hand,
        )
        for r in per_site
    ]
    return report
