from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .config import EngineConfig
from .context import NameBook, ReportPeriod
from .models import ZERO, CollectionItem, Prepayment, PrepaymentItem, Sale
from .store import EntityType, RecordQuery, RecordSession


@dataclass
class CollectionsSummary:
    items: list[CollectionItem] = field(default_factory=list)
    total: Decimal = ZERO


@dataclass
class PrepaymentsSummary:
    items: list[PrepaymentItem] = field(default_factory=list)
    total: Decimal = ZERO


def is_collection(sale: Sale, period: ReportPeriod) -> bool:
    """Paid in this period for goods sold before it."""
    return (
        sale.is_active
        and sale.is_paid
        and period.contains(sale.payment_received_date)
        and sale.sale_date < period.date_from
    )


def resolve_collections(
    session: RecordSession,
    *,
    site_id: Optional[str],
    period: ReportPeriod,
    operator_id: Optional[str] = None,
    names: Optional[NameBook] = None,
) -> CollectionsSummary:
    candidates = session.query(
        RecordQuery.for_site(
            EntityType.SALE,
            site_id,
            date_from=period.date_from,
            date_to=period.date_to,
            operator_id=operator_id,
            date_field="payment_received_date",
        )
    )
    sales = [sale for sale in candidates if is_collection(sale, period)]

    names = names or NameBook(session)
    names.prefetch(EntityType.PRODUCT, (s.product_id for s in sales))

    summary = CollectionsSummary()
    for sale in sales:
        amount = sale.gross_amount
        summary.items.append(
            CollectionItem(
                sale_id=sale.sale_id,
                original_sale_date=sale.sale_date,
                payment_received_date=sale.payment_received_date,
                vehicle_registration=sale.vehicle_registration,
                product_name=names.product(sale.product_id),
                quantity=sale.quantity,
                amount=amount,
                client_name=sale.client_name,
                payment_reference=sale.payment_reference,
            )
        )
        summary.total += amount
    return summary


def resolve_prepayments(
    session: RecordSession,
    *,
    site_id: Optional[str],
    period: ReportPeriod,
    operator_id: Optional[str] = None,
    names: Optional[NameBook] = None,
    config: Optional[EngineConfig] = None,
) -> PrepaymentsSummary:
    config = config or EngineConfig()
    prepayments: list[Prepayment] = session.query(
        RecordQuery.for_site(
            EntityType.PREPAYMENT,
            site_id,
            date_from=period.date_from,
            date_to=period.date_to,
            operator_id=operator_id,
        )
    )

    names = names or NameBook(session)
    names.prefetch(EntityType.PRODUCT, (p.intended_product_id for p in prepayments))

    summary = PrepaymentsSummary()
    for prepayment in prepayments:
        summary.items.append(
            PrepaymentItem(
                prepayment_id=prepayment.prepayment_id,
                prepayment_date=prepayment.prepayment_date,
                vehicle_registration=prepayment.vehicle_registration,
                client_name=prepayment.client_name,
                product_name=names.product(
                    prepayment.intended_product_id, config.unspecified_product_label
                ),
                amount_paid=prepayment.total_amount_paid,
                payment_reference=prepayment.payment_reference,
            )
        )
        summary.total += prepayment.total_amount_paid
    return summary
