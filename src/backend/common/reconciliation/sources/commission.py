from __future__ import annotations

from ..context import ExpenseContext
from ..models import ExpenseLineItem, LineType
from ..registry import register_source
from ..source import ExpenseSource, format_quantity


@register_source
class COMMISSION_EXPENSE(ExpenseSource):
    line_type = LineType.COMMISSION_EXPENSE
    title = "Broker commission on sales"

    def collect(self, ctx: ExpenseContext) -> list[ExpenseLineItem]:
        items = []
        for sale in ctx.sales:
            if sale.commission_per_unit <= 0:
                continue
            product_name = ctx.product_name(sale)
            broker_name = ctx.broker_name(sale)
            to_broker = f" to {broker_name}" if broker_name else ""
            items.append(
                ExpenseLineItem(
                    item_date=sale.sale_date,
                    line_type=self.line_type,
                    description=(
                        f"{sale.vehicle_registration} | {product_name} - "
                        f"{format_quantity(sale.quantity)} pieces sale commission{to_broker}"
                    ),
                    amount=sale.quantity * sale.commission_per_unit,
                    product_name=product_name,
                    quantity=sale.quantity,
                    source_id=sale.sale_id,
                )
            )
        return items
