from __future__ import annotations

from ..context import ExpenseContext
from ..models import ExpenseLineItem, LineType
from ..registry import register_source
from ..source import ExpenseSource, format_quantity


@register_source
class LOADERS_FEE_EXPENSE(ExpenseSource):
    line_type = LineType.LOADERS_FEE_EXPENSE
    title = "Per-unit loaders fee"

    def collect(self, ctx: ExpenseContext) -> list[ExpenseLineItem]:
        if not ctx.fees.loader_fee_enabled:
            return []
        fee = ctx.fees.loader_fee
        items = []
        for sale in ctx.sales:
            product_name = ctx.product_name(sale)
            # Beam and hardcore are loaded by the buyer.
            if ctx.config.is_loader_fee_exempt(product_name):
                continue
            items.append(
                ExpenseLineItem(
                    item_date=sale.sale_date,
                    line_type=self.line_type,
                    description=f"{sale.vehicle_registration} loaders fee for {format_quantity(sale.quantity)} pieces",
                    amount=sale.quantity * fee,
                    product_name=product_name,
                    quantity=sale.quantity,
                    source_id=sale.sale_id,
                )
            )
        return items
