from __future__ import annotations

from typing import Iterable, Optional

from .config import EngineConfig
from .models import (
    Banking,
    ClerkBreakdownItem,
    DailyBankingItem,
    DailySalesBreakdown,
    ExpenseLineItem,
    FuelSummary,
    FuelUsage,
    LineType,
    ProductBreakdownItem,
    SaleLine,
)


def _by_revenue(rows):
    # Stable, so equal revenue keeps first-seen order.
    return sorted(rows, key=lambda row: row.revenue, reverse=True)


def daily_summaries(
    sales: Iterable[SaleLine], expense_items: Iterable[ExpenseLineItem]
) -> list[DailySalesBreakdown]:
    """One row per day with sales, carrying that day's expenses split by category."""
    rows: dict = {}
    for sale in sales:
        row = rows.get(sale.sale_date)
        if row is None:
            row = rows[sale.sale_date] = DailySalesBreakdown(day=sale.sale_date)
        row.order_count += 1
        row.quantity += sale.quantity
        row.revenue += sale.gross_amount

    for item in expense_items:
        row = rows.get(item.item_date)
        if row is None:
            continue
        if item.line_type == LineType.COMMISSION_EXPENSE:
            row.commission += item.amount
        elif item.line_type == LineType.LOADERS_FEE_EXPENSE:
            row.loaders_fee += item.amount
        elif item.line_type == LineType.LAND_RATE_FEE_EXPENSE:
            row.land_rate_fee += item.amount
        else:
            row.other_expenses += item.amount

    result = []
    for day in sorted(rows):
        row = rows[day]
        row.total_expenses = row.commission + row.loaders_fee + row.land_rate_fee + row.other_expenses
        row.net_amount = row.revenue - row.total_expenses
        result.append(row)
    return result


def product_breakdown(
    sales: Iterable[SaleLine], config: Optional[EngineConfig] = None
) -> list[ProductBreakdownItem]:
    config = config or EngineConfig()
    rows: dict[str, ProductBreakdownItem] = {}
    for sale in sales:
        if not sale.product_id:
            continue
        row = rows.get(sale.product_id)
        if row is None:
            row = rows[sale.product_id] = ProductBreakdownItem(
                product_id=sale.product_id,
                product_name=sale.product_name or config.unknown_label,
            )
        row.order_count += 1
        row.quantity += sale.quantity
        row.revenue += sale.gross_amount
    return _by_revenue(rows.values())


def clerk_breakdown(
    sales: Iterable[SaleLine], config: Optional[EngineConfig] = None
) -> list[ClerkBreakdownItem]:
    config = config or EngineConfig()
    rows: dict[str, ClerkBreakdownItem] = {}
    for sale in sales:
        row = rows.get(sale.operator_id)
        if row is None:
            row = rows[sale.operator_id] = ClerkBreakdownItem(
                operator_id=sale.operator_id,
                clerk_name=sale.clerk_name or config.unknown_label,
            )
        row.order_count += 1
        row.quantity += sale.quantity
        row.revenue += sale.gross_amount
    return _by_revenue(rows.values())


def fuel_summary(usages: Iterable[FuelUsage]) -> FuelSummary:
    """Totals over the period's fuel rows; the balance is taken from the latest row."""
    usages = list(usages)
    summary = FuelSummary(records=len(usages))
    for usage in usages:
        summary.total_received += usage.new_stock
        summary.machines_usage += usage.machines_loaded
        summary.wheel_loaders_usage += usage.wheel_loaders_loaded
    if usages:
        summary.current_balance = sorted(usages, key=lambda u: u.usage_date)[-1].balance
    return summary


def daily_banking(bankings: Iterable[Banking]) -> list[DailyBankingItem]:
    rows: dict = {}
    for banking in bankings:
        row = rows.get(banking.banking_date)
        if row is None:
            row = rows[banking.banking_date] = DailyBankingItem(day=banking.banking_date)
        row.amount += banking.amount_banked
        row.transaction_count += 1
    return [rows[day] for day in sorted(rows)]
