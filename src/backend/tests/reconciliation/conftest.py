import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from datetime import date
from itertools import count

import pytest

from common.reconciliation.context import ExpenseContext, NameBook, ReportPeriod
from common.reconciliation.fees import SiteFees
from common.reconciliation.models import (
    Banking,
    Broker,
    Expense,
    FuelUsage,
    Operator,
    PaymentStatus,
    Prepayment,
    Product,
    Sale,
    Site,
    SiteFeeConfig,
)
from pipelines.record_store import InMemoryRecordStore


SITE_ID = "site-1"
CLERK_ID = "clerk-1"


@pytest.fixture
def report_day() -> date:
    return date(2025, 3, 10)


@pytest.fixture
def make_site():
    def _make(
        site_id: str = SITE_ID,
        *,
        name: str = "Kisii Quarry",
        loader_fee=None,
        land_rate_fee=None,
        rejects_fee=None,
        is_active: bool = True,
    ) -> Site:
        return Site(
            site_id=site_id,
            name=name,
            fees=SiteFeeConfig(loader_fee=loader_fee, land_rate_fee=land_rate_fee, rejects_fee=rejects_fee),
            is_active=is_active,
        )

    return _make


@pytest.fixture
def catalog():
    """Reference records most reports need: one clerk, a few products and a broker."""
    return [
        Operator(operator_id=CLERK_ID, full_name="Jane Wanjiru"),
        Operator(operator_id="clerk-2", full_name="Peter Otieno"),
        Product(product_id="gravel", name="Gravel"),
        Product(product_id="hardcore", name="Hardcore Premium"),
        Product(product_id="beam", name="Beam 6x9"),
        Product(product_id="rejects", name="Rejects"),
        Broker(broker_id="broker-1", name="Musa"),
    ]


@pytest.fixture
def make_sale(report_day):
    ids = count(1)

    def _make(
        *,
        quantity="100",
        price_per_unit="20",
        commission_per_unit="0",
        product_id: str | None = "gravel",
        sale_date: date | None = None,
        site_id: str = SITE_ID,
        operator_id: str = CLERK_ID,
        vehicle_registration: str = "KBX 123A",
        broker_id: str | None = None,
        paid: bool = True,
        payment_received_date: date | None = None,
        include_land_rate: bool = True,
        is_active: bool = True,
        client_name: str | None = None,
    ) -> Sale:
        sale_date = sale_date or report_day
        return Sale(
            sale_id=f"sale-{next(ids)}",
            sale_date=sale_date,
            site_id=site_id,
            operator_id=operator_id,
            vehicle_registration=vehicle_registration,
            product_id=product_id,
            quantity=quantity,
            price_per_unit=price_per_unit,
            commission_per_unit=commission_per_unit,
            broker_id=broker_id,
            payment_status=PaymentStatus.PAID if paid else PaymentStatus.UNPAID,
            payment_received_date=payment_received_date or (sale_date if paid else None),
            client_name=client_name,
            include_land_rate=include_land_rate,
            is_active=is_active,
        )

    return _make


@pytest.fixture
def make_expense(report_day):
    ids = count(1)

    def _make(amount, *, item: str = "Lunch for loaders", expense_date: date | None = None,
              site_id: str = SITE_ID, operator_id: str = CLERK_ID, is_active: bool = True) -> Expense:
        return Expense(
            expense_id=f"expense-{next(ids)}",
            expense_date=expense_date or report_day,
            site_id=site_id,
            operator_id=operator_id,
            item=item,
            amount=amount,
            is_active=is_active,
        )

    return _make


@pytest.fixture
def make_banking(report_day):
    ids = count(1)

    def _make(amount, *, banking_date: date | None = None, site_id: str = SITE_ID,
              operator_id: str = CLERK_ID, txn_reference: str | None = None, ref_code: str | None = None) -> Banking:
        return Banking(
            banking_id=f"banking-{next(ids)}",
            banking_date=banking_date or report_day,
            site_id=site_id,
            operator_id=operator_id,
            item="Daily deposit",
            amount_banked=amount,
            txn_reference=txn_reference,
            ref_code=ref_code,
        )

    return _make


@pytest.fixture
def make_prepayment(report_day):
    ids = count(1)

    def _make(amount, *, prepayment_date: date | None = None, site_id: str = SITE_ID,
              operator_id: str = CLERK_ID, intended_product_id: str | None = None) -> Prepayment:
        return Prepayment(
            prepayment_id=f"prepayment-{next(ids)}",
            prepayment_date=prepayment_date or report_day,
            site_id=site_id,
            operator_id=operator_id,
            vehicle_registration="KCA 555Z",
            client_name="Acme Builders",
            intended_product_id=intended_product_id,
            total_amount_paid=amount,
        )

    return _make


@pytest.fixture
def make_fuel_usage(report_day):
    ids = count(1)

    def _make(*, old_stock="100", new_stock="50", machines_loaded="30", wheel_loaders_loaded="20",
              usage_date: date | None = None, site_id: str = SITE_ID, operator_id: str = CLERK_ID) -> FuelUsage:
        return FuelUsage(
            usage_id=f"fuel-{next(ids)}",
            usage_date=usage_date or report_day,
            site_id=site_id,
            operator_id=operator_id,
            old_stock=old_stock,
            new_stock=new_stock,
            machines_loaded=machines_loaded,
            wheel_loaders_loaded=wheel_loaders_loaded,
        )

    return _make


@pytest.fixture
def make_store(catalog):
    def _make(*records) -> InMemoryRecordStore:
        return InMemoryRecordStore().add(*catalog, *records)

    return _make


@pytest.fixture
def make_expense_ctx(make_store, report_day):
    def _make(*, fees: SiteFees, sales=(), expenses=(), period: ReportPeriod | None = None) -> ExpenseContext:
        store = make_store()
        with store.session() as session:
            names = NameBook(session)
        return ExpenseContext(
            period=period or ReportPeriod.single_day(report_day),
            site_id=SITE_ID,
            fees=fees,
            sales=tuple(sales),
            expenses=tuple(expenses),
            names=names,
        )

    return _make
