from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from .config import EngineConfig
from .context import ExpenseContext, NameBook, ReportPeriod
from .errors import ExpenseSourceMissing
from .fees import SiteFees, resolve_site_fees
from .models import DailyExpenseItem, ExpenseBreakdown, ExpenseLineItem, LineType, Sale
from .registry import registry
from .store import EntityType, RecordQuery, RecordSession

logger = logging.getLogger(__name__)


class ExpenseAggregator:
    """Derives every expense line for a period from the four registered sources.

    All four line types must be covered; a partial expense model is a configuration error.
    """

    def __init__(self, sources: Optional[Iterable] = None):
        self._sources = list(sources) if sources is not None else registry.create_all()
        covered = {source.line_type for source in self._sources}
        missing = [line_type.value for line_type in LineType if line_type not in covered]
        if missing:
            raise ExpenseSourceMissing(missing)

    def aggregate(self, ctx: ExpenseContext) -> ExpenseBreakdown:
        # Records dated outside the period never produce lines.
        ctx = replace(
            ctx,
            sales=tuple(s for s in ctx.sales if ctx.period.contains(s.sale_date)),
            expenses=tuple(e for e in ctx.expenses if ctx.period.contains(e.expense_date)),
        )
        items: list[ExpenseLineItem] = []
        for source in self._sources:
            items.extend(source.collect(ctx))

        # sorted() is stable, so ties keep source order.
        items = sorted(items, key=lambda item: item.item_date)

        breakdown = ExpenseBreakdown(items=items)
        breakdown.user_expenses = breakdown.total_for(LineType.USER_EXPENSE)
        breakdown.commission = breakdown.total_for(LineType.COMMISSION_EXPENSE)
        breakdown.loaders_fee = breakdown.total_for(LineType.LOADERS_FEE_EXPENSE)
        breakdown.land_rate_fee = breakdown.total_for(LineType.LAND_RATE_FEE_EXPENSE)
        return breakdown

    def for_period(
        self,
        session: RecordSession,
        *,
        site_id: str,
        period: ReportPeriod,
        operator_id: Optional[str] = None,
        fees: Optional[SiteFees] = None,
        sales: Optional[Iterable[Sale]] = None,
        names: Optional[NameBook] = None,
        config: Optional[EngineConfig] = None,
    ) -> ExpenseBreakdown:
        """Load the period's raw records and aggregate them.

        Pre-fetched `fees`, `sales` and `names` are reused when given.
        """
        if fees is None:
            fees = resolve_site_fees(session, site_id)
        if sales is None:
            sales = session.query(
                RecordQuery.for_site(
                    EntityType.SALE,
                    site_id,
                    date_from=period.date_from,
                    date_to=period.date_to,
                    operator_id=operator_id,
                )
            )
        expenses = session.query(
            RecordQuery.for_site(
                EntityType.EXPENSE,
                site_id,
                date_from=period.date_from,
                date_to=period.date_to,
                operator_id=operator_id,
            )
        )
        sales = tuple(sales)
        names = names or NameBook(session)
        names.prefetch(EntityType.PRODUCT, (s.product_id for s in sales))
        names.prefetch(EntityType.BROKER, (s.broker_id for s in sales))

        ctx = ExpenseContext(
            period=period,
            site_id=site_id,
            fees=fees,
            sales=sales,
            expenses=tuple(expenses),
            operator_id=operator_id,
            names=names,
            config=config or EngineConfig(),
        )
        breakdown = self.aggregate(ctx)
        logger.debug(
            "Expenses for site %s %s..%s: %d lines from %d sales and %d manual entries",
            site_id,
            period.date_from.isoformat(),
            period.date_to.isoformat(),
            len(breakdown.items),
            len(sales),
            len(expenses),
        )
        return breakdown


def daily_expense_totals(items: Iterable[ExpenseLineItem]) -> list[DailyExpenseItem]:
    by_day: dict = {}
    for item in items:
        row = by_day.get(item.item_date)
        if row is None:
            row = by_day[item.item_date] = DailyExpenseItem(day=item.item_date)
        row.amount += item.amount
        if item.line_type == LineType.USER_EXPENSE:
            row.user_expenses += item.amount
        elif item.line_type == LineType.COMMISSION_EXPENSE:
            row.commission += item.amount
        elif item.line_type == LineType.LOADERS_FEE_EXPENSE:
            row.loaders_fee += item.amount
        elif item.line_type == LineType.LAND_RATE_FEE_EXPENSE:
            row.land_rate_fee += item.amount
    return [by_day[day] for day in sorted(by_day)]