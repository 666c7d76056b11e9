from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from .context import ReportPeriod, as_day
from .models import ZERO, DailyBalanceRecord
from .store import RecordSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CarryForward:
    # Closing balance of the day before the period starts.
    actual_opening_balance: Decimal
    # Closing balance of the day before the period's last day ("Cash-in-Hand B/F").
    cash_in_hand_carry_forward: Decimal


class DailyBalanceLedger:
    """Running closing balance per site per calendar day.

    A missing day reads as 0. Writes are idempotent upserts keyed by (site, day).
    """

    def __init__(self, session: RecordSession):
        self._session = session

    def closing_balance(self, site_id: str, day: date) -> Optional[Decimal]:
        record = self._session.get_daily_balance(site_id, as_day(day))
        if record is None:
            return None
        return record.closing_balance

    def opening_balance(self, site_id: str, day: date) -> Decimal:
        previous = as_day(day) - timedelta(days=1)
        closing = self.closing_balance(site_id, previous)
        return closing if closing is not None else ZERO

    def carry_forward(self, site_id: str, period: ReportPeriod) -> CarryForward:
        actual = self.opening_balance(site_id, period.date_from)
        if period.is_single_day:
            return CarryForward(actual_opening_balance=actual, cash_in_hand_carry_forward=actual)
        return CarryForward(
            actual_opening_balance=actual,
            cash_in_hand_carry_forward=self.opening_balance(site_id, period.date_to),
        )

    def upsert_closing_balance(self, site_id: str, day: date, value: Decimal) -> DailyBalanceRecord:
        day = as_day(day)
        record = self._session.upsert_daily_balance(site_id, day, value)
        logger.info("Closing balance for site %s on %s set to %s", site_id, day.isoformat(), value)
        return record
