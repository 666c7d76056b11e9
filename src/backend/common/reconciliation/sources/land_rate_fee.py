from __future__ import annotations

from ..context import ExpenseContext
from ..models import ExpenseLineItem, LineType
from ..registry import register_source
from ..source import ExpenseSource, format_quantity


@register_source
class LAND_RATE_FEE_EXPENSE(ExpenseSource):
    line_type = LineType.LAND_RATE_FEE_EXPENSE
    title = "Per-unit land-rate fee (rejects fee for reject products)"

    def collect(self, ctx: ExpenseContext) -> list[ExpenseLineItem]:
        # The rejects fee only applies at sites that charge land rate at all.
        if not ctx.fees.land_rate_visible:
            return []
        items = []
        for sale in ctx.sales:
            if not sale.include_land_rate:
                continue
            product_name = ctx.product_name(sale)
            rate = ctx.fees.land_rate_for(product_name, ctx.config)
            if rate <= 0:
                continue
            items.append(
                ExpenseLineItem(
                    item_date=sale.sale_date,
                    line_type=self.line_type,
                    description=f"{sale.vehicle_registration} land rate fee for {format_quantity(sale.quantity)} pieces",
                    amount=sale.quantity * rate,
                    product_name=product_name,
                    quantity=sale.quantity,
                    source_id=sale.sale_id,
                )
            )
        return items
