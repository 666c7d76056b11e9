"""Source-agnostic reconciliation engine for the quarry sales desk.

This package intentionally contains only domain logic:
- Inputs are raw desk records read through a RecordStore session.
- No database drivers, rendering, or network calls live here.
"""

from .config import EngineConfig
from .context import ReportPeriod
from .engine import ReportingEngine
from .errors import ExpenseSourceMissing, InvalidRange, ReconciliationError, SiteNotFound
from .models import (
    Banking,
    Broker,
    DailyBalanceRecord,
    Expense,
    ExpenseBreakdown,
    ExpenseLineItem,
    FuelUsage,
    LineType,
    Operator,
    PaymentStatus,
    Prepayment,
    Product,
    ReportData,
    ReportKind,
    Sale,
    Site,
    SiteFeeConfig,
)
from .store import EntityType, RecordQuery, RecordSession, RecordStore

# Import built-in expense sources so they self-register with the global registry.
from . import sources as _builtin_sources  # noqa: F401
