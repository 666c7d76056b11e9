from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MONEY = Numeric(18, 2)
QUANTITY = Numeric(18, 3)
# Closing balances are stored unrounded so the next day opens on the exact figure.
LEDGER_AMOUNT = Numeric(28, 10)


class Base(DeclarativeBase):
    pass


class SiteRow(Base):
    __tablename__ = "sites"

    site_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    loader_fee: Mapped[Decimal | None] = mapped_column(MONEY)
    land_rate_fee: Mapped[Decimal | None] = mapped_column(MONEY)
    rejects_fee: Mapped[Decimal | None] = mapped_column(MONEY)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class OperatorRow(Base):
    __tablename__ = "operators"

    operator_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ProductRow(Base):
    __tablename__ = "products"

    product_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")


class BrokerRow(Base):
    __tablename__ = "brokers"

    broker_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")


class SaleRow(Base):
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    sale_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    site_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    operator_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    vehicle_registration: Mapped[str] = mapped_column(Text, nullable=False, default="")
    product_id: Mapped[str | None] = mapped_column(String(64))
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=0)
    price_per_unit: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    commission_per_unit: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    broker_id: Mapped[str | None] = mapped_column(String(64))
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="Unpaid")
    payment_received_date: Mapped[date | None] = mapped_column(Date, index=True)
    payment_reference: Mapped[str | None] = mapped_column(Text)
    client_name: Mapped[str | None] = mapped_column(Text)
    include_land_rate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ExpenseRow(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    expense_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    site_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    operator_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    item: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    category: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class FuelUsageRow(Base):
    __tablename__ = "fuel_usages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    usage_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    site_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    operator_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    old_stock: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=0)
    new_stock: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=0)
    machines_loaded: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=0)
    wheel_loaders_loaded: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class BankingRow(Base):
    __tablename__ = "bankings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    banking_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    banking_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    site_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    operator_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    item: Mapped[str | None] = mapped_column(Text)
    amount_banked: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    txn_reference: Mapped[str | None] = mapped_column(Text)
    ref_code: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PrepaymentRow(Base):
    __tablename__ = "prepayments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prepayment_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    prepayment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    site_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    operator_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    vehicle_registration: Mapped[str] = mapped_column(Text, nullable=False, default="")
    client_name: Mapped[str | None] = mapped_column(Text)
    intended_product_id: Mapped[str | None] = mapped_column(String(64))
    total_amount_paid: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    payment_reference: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class DailyBalanceRow(Base):
    __tablename__ = "daily_balances"
    __table_args__ = (UniqueConstraint("site_id", "balance_date", name="uq_daily_balance_site_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_id: Mapped[str] = mapped_column(String(64), nullable=False)
    balance_date: Mapped[date] = mapped_column(Date, nullable=False)
    closing_balance: Mapped[Decimal] = mapped_column(LEDGER_AMOUNT, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
