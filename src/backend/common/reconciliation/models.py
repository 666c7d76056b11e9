from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

ZERO = Decimal("0")


class PaymentStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"


class LineType(str, Enum):
    USER_EXPENSE = "UserExpense"
    COMMISSION_EXPENSE = "CommissionExpense"
    LOADERS_FEE_EXPENSE = "LoadersFeeExpense"
    LAND_RATE_FEE_EXPENSE = "LandRateFeeExpense"


class ReportKind(str, Enum):
    CLERK = "clerk"
    MANAGER = "manager"
    MULTI_SITE = "multi_site"


# --- Raw records (owned by the record store; read-only here) ---


class SiteFeeConfig(BaseModel):
    # Per-unit fees. None or a non-positive value disables the matching expense source.
    loader_fee: Optional[Decimal] = None
    land_rate_fee: Optional[Decimal] = None
    rejects_fee: Optional[Decimal] = None


class Site(BaseModel):
    site_id: str
    name: str = ""
    fees: SiteFeeConfig = Field(default_factory=SiteFeeConfig)
    is_active: bool = True


class Operator(BaseModel):
    operator_id: str
    full_name: str = ""


class Product(BaseModel):
    product_id: str
    name: str = ""


class Broker(BaseModel):
    broker_id: str
    name: str = ""


class Sale(BaseModel):
    sale_id: str
    sale_date: date
    site_id: str
    operator_id: str = ""
    vehicle_registration: str = ""
    product_id: Optional[str] = None
    quantity: Decimal = ZERO
    price_per_unit: Decimal = ZERO
    commission_per_unit: Decimal = ZERO
    broker_id: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_received_date: Optional[date] = None
    payment_reference: Optional[str] = None
    client_name: Optional[str] = None
    include_land_rate: bool = True
    is_active: bool = True

    @property
    def gross_amount(self) -> Decimal:
        return self.quantity * self.price_per_unit

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID


class Expense(BaseModel):
    expense_id: str
    expense_date: date
    site_id: str
    operator_id: str = ""
    item: str = ""
    amount: Decimal = ZERO
    category: Optional[str] = None
    is_active: bool = True


class FuelUsage(BaseModel):
    usage_id: str
    usage_date: date
    site_id: str
    operator_id: str = ""
    old_stock: Decimal = ZERO
    new_stock: Decimal = ZERO
    machines_loaded: Decimal = ZERO
    wheel_loaders_loaded: Decimal = ZERO
    is_active: bool = True

    @property
    def total_stock(self) -> Decimal:
        return self.old_stock + self.new_stock

    @property
    def used(self) -> Decimal:
        return self.machines_loaded + self.wheel_loaders_loaded

    @property
    def balance(self) -> Decimal:
        return self.total_stock - self.used


class Banking(BaseModel):
    banking_id: str
    banking_date: date
    site_id: str
    operator_id: str = ""
    item: Optional[str] = None
    amount_banked: Decimal = ZERO
    txn_reference: Optional[str] = None
    ref_code: Optional[str] = None
    is_active: bool = True

    @property
    def reference(self) -> str:
        return self.txn_reference or self.ref_code or ""


class Prepayment(BaseModel):
    prepayment_id: str
    prepayment_date: date
    site_id: str
    operator_id: str = ""
    vehicle_registration: str = ""
    client_name: Optional[str] = None
    intended_product_id: Optional[str] = None
    total_amount_paid: Decimal = ZERO
    payment_reference: Optional[str] = None
    is_active: bool = True


class DailyBalanceRecord(BaseModel):
    site_id: str
    balance_date: date
    closing_balance: Decimal = ZERO
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Report structures (handed to exporters) ---


class SaleLine(BaseModel):
    sale_id: str
    sale_date: date
    operator_id: str = ""
    clerk_name: str = ""
    vehicle_registration: str = ""
    product_id: Optional[str] = None
    product_name: str = ""
    broker_name: str = ""
    quantity: Decimal = ZERO
    price_per_unit: Decimal = ZERO
    gross_amount: Decimal = ZERO
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    client_name: Optional[str] = None


class ExpenseLineItem(BaseModel):
    item_date: date
    line_type: LineType
    description: str = ""
    amount: Decimal = ZERO
    product_name: str = ""
    quantity: Decimal = ZERO
    source_id: Optional[str] = None


class ExpenseBreakdown(BaseModel):
    items: List[ExpenseLineItem] = Field(default_factory=list)
    user_expenses: Decimal = ZERO
    commission: Decimal = ZERO
    loaders_fee: Decimal = ZERO
    land_rate_fee: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.user_expenses + self.commission + self.loaders_fee + self.land_rate_fee

    def total_for(self, line_type: LineType) -> Decimal:
        return sum((i.amount for i in self.items if i.line_type == line_type), ZERO)


class DailyExpenseItem(BaseModel):
    day: date
    amount: Decimal = ZERO
    user_expenses: Decimal = ZERO
    commission: Decimal = ZERO
    loaders_fee: Decimal = ZERO
    land_rate_fee: Decimal = ZERO


class CollectionItem(BaseModel):
    sale_id: str
    original_sale_date: date
    payment_received_date: date
    vehicle_registration: str = ""
    product_name: str = ""
    quantity: Decimal = ZERO
    amount: Decimal = ZERO
    client_name: Optional[str] = None
    payment_reference: Optional[str] = None


class PrepaymentItem(BaseModel):
    prepayment_id: str
    prepayment_date: date
    vehicle_registration: str = ""
    client_name: Optional[str] = None
    product_name: str = ""
    amount_paid: Decimal = ZERO
    payment_reference: Optional[str] = None


class FuelSummary(BaseModel):
    records: int = 0
    total_received: Decimal = ZERO
    machines_usage: Decimal = ZERO
    wheel_loaders_usage: Decimal = ZERO
    current_balance: Decimal = ZERO

    @property
    def total_usage(self) -> Decimal:
        return self.machines_usage + self.wheel_loaders_usage


class DailyBankingItem(BaseModel):
    day: date
    amount: Decimal = ZERO
    transaction_count: int = 0


class DailySalesBreakdown(BaseModel):
    day: date
    order_count: int = 0
    quantity: Decimal = ZERO
    revenue: Decimal = ZERO
    commission: Decimal = ZERO
    loaders_fee: Decimal = ZERO
    land_rate_fee: Decimal = ZERO
    other_expenses: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_amount: Decimal = ZERO


class ProductBreakdownItem(BaseModel):
    product_id: Optional[str] = None
    product_name: str = ""
    order_count: int = 0
    quantity: Decimal = ZERO
    revenue: Decimal = ZERO


class ClerkBreakdownItem(BaseModel):
    operator_id: str = ""
    clerk_name: str = ""
    order_count: int = 0
    quantity: Decimal = ZERO
    revenue: Decimal = ZERO


class SiteSummary(BaseModel):
    site_id: str
    site_name: str = ""
    total_sales: Decimal = ZERO
    total_expenses: Decimal = ZERO
    unpaid: Decimal = ZERO
    banked: Decimal = ZERO
    opening_balance: Decimal = ZERO
    cash_in_hand: Decimal = ZERO


class ReportData(BaseModel):
    """Fully computed reconciliation for one period.

    `opening_balance` is the figure used in the net-earnings formula.
    `actual_opening_balance` is the closing balance of the day before `date_from`;
    `cash_in_hand_carry_forward` is the closing balance of the day before `date_to`.
    For single-day reports all three agree.
    """

    kind: ReportKind = ReportKind.CLERK
    date_from: date
    date_to: date
    is_single_day: bool = False
    report_title: str = ""
    generated_at: Optional[datetime] = None

    site_id: Optional[str] = None
    site_name: str = ""
    operator_id: Optional[str] = None
    operator_name: str = ""
    land_rate_visible: bool = False

    opening_balance: Decimal = ZERO
    actual_opening_balance: Decimal = ZERO
    cash_in_hand_carry_forward: Decimal = ZERO

    sales: List[SaleLine] = Field(default_factory=list)
    total_quantity: Decimal = ZERO
    total_sales: Decimal = ZERO
    unpaid: Decimal = ZERO
    unpaid_orders: bool = False

    expense_items: List[ExpenseLineItem] = Field(default_factory=list)
    total_expenses: Decimal = ZERO
    user_expenses: Decimal = ZERO
    commission: Decimal = ZERO
    loaders_fee: Decimal = ZERO
    land_rate_fee: Decimal = ZERO
    daily_expenses: List[DailyExpenseItem] = Field(default_factory=list)

    fuel_usages: List[FuelUsage] = Field(default_factory=list)
    fuel_summary: FuelSummary = Field(default_factory=FuelSummary)

    bankings: List[Banking] = Field(default_factory=list)
    banked: Decimal = ZERO
    daily_banking: List[DailyBankingItem] = Field(default_factory=list)

    collection_items: List[CollectionItem] = Field(default_factory=list)
    total_collections: Decimal = ZERO

    prepayment_items: List[PrepaymentItem] = Field(default_factory=list)
    total_prepayments: Decimal = ZERO

    earnings: Decimal = ZERO
    net_earnings: Decimal = ZERO
    cash_in_hand: Decimal = ZERO

    daily_summaries: List[DailySalesBreakdown] = Field(default_factory=list)
    product_breakdown: List[ProductBreakdownItem] = Field(default_factory=list)
    clerk_breakdown: List[ClerkBreakdownItem] = Field(default_factory=list)
    site_summaries: List[SiteSummary] = Field(default_factory=list)

    @property
    def closing_balance(self) -> Decimal:
        return self.cash_in_hand
