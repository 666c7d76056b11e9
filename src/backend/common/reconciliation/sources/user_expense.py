from __future__ import annotations

from ..context import ExpenseContext
from ..models import ExpenseLineItem, LineType
from ..registry import register_source
from ..source import ExpenseSource


@register_source
class USER_EXPENSE(ExpenseSource):
    line_type = LineType.USER_EXPENSE
    title = "Manual expenses entered by clerks"

    def collect(self, ctx: ExpenseContext) -> list[ExpenseLineItem]:
        items = []
        for expense in ctx.expenses:
            if not expense.is_active:
                continue
            if ctx.operator_id and expense.operator_id != ctx.operator_id:
                continue
            items.append(
                ExpenseLineItem(
                    item_date=expense.expense_date,
                    line_type=self.line_type,
                    description=expense.item or "",
                    amount=expense.amount,
                    source_id=expense.expense_id,
                )
            )
        return items
