from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from .config import EngineConfig
from .errors import InvalidRange
from .fees import SiteFees
from .models import Expense, Sale
from .store import EntityType, RecordSession


def as_day(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class ReportPeriod:
    date_from: date
    date_to: date

    def __post_init__(self) -> None:
        object.__setattr__(self, "date_from", as_day(self.date_from))
        object.__setattr__(self, "date_to", as_day(self.date_to))
        if self.date_from > self.date_to:
            raise InvalidRange(self.date_from, self.date_to)

    @classmethod
    def single_day(cls, day: date) -> "ReportPeriod":
        return cls(date_from=day, date_to=day)

    @property
    def is_single_day(self) -> bool:
        return self.date_from == self.date_to

    @property
    def title(self) -> str:
        if self.is_single_day:
            return self.date_from.strftime("%d/%m/%Y")
        return f"{self.date_from.strftime('%d/%m/%Y')} - {self.date_to.strftime('%d/%m/%Y')}"

    def contains(self, day: Optional[date]) -> bool:
        return day is not None and self.date_from <= as_day(day) <= self.date_to


def quantize_amount(value: Decimal, quantize: Optional[Decimal]) -> Decimal:
    if quantize is None:
        return value
    return value.quantize(quantize, rounding=ROUND_HALF_UP)


class NameBook:
    """Per-session cache of display names for referenced entities."""

    def __init__(self, session: RecordSession):
        self._session = session
        self._names: dict[EntityType, dict[str, str]] = {}

    def prefetch(self, entity: EntityType, ids: Iterable[Optional[str]]) -> None:
        known = self._names.setdefault(entity, {})
        wanted = {i for i in ids if i and i not in known}
        if not wanted:
            return
        found = self._session.lookup_names(entity, sorted(wanted))
        for key in wanted:
            # Misses are cached as "" so each id is looked up once.
            known[key] = found.get(key, "")

    def name(self, entity: EntityType, entity_id: Optional[str], default: str = "") -> str:
        if not entity_id:
            return default
        self.prefetch(entity, [entity_id])
        return self._names[entity].get(entity_id) or default

    def product(self, product_id: Optional[str], default: str = "") -> str:
        return self.name(EntityType.PRODUCT, product_id, default)

    def broker(self, broker_id: Optional[str], default: str = "") -> str:
        return self.name(EntityType.BROKER, broker_id, default)

    def operator(self, operator_id: Optional[str], default: str = "") -> str:
        return self.name(EntityType.OPERATOR, operator_id, default)


@dataclass(frozen=True)
class ExpenseContext:
    """Inputs for the expense sources of one site and period."""

    period: ReportPeriod
    site_id: str
    fees: SiteFees
    sales: tuple[Sale, ...] = ()
    expenses: tuple[Expense, ...] = ()
    operator_id: Optional[str] = None
    names: Optional[NameBook] = None
    config: EngineConfig = field(default_factory=EngineConfig)

    def product_name(self, sale: Sale) -> str:
        # Fee rules match against "" when the product is missing.
        if self.names is None:
            return ""
        return self.names.product(sale.product_id)

    def broker_name(self, sale: Sale) -> str:
        if self.names is None:
            return ""
        return self.names.broker(sale.broker_id)
