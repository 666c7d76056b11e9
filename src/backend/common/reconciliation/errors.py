from __future__ import annotations

from datetime import date


class ReconciliationError(RuntimeError):
    """Base class for engine errors."""


class InvalidRange(ReconciliationError, ValueError):
    def __init__(self, date_from: date, date_to: date):
        super().__init__(
            f"Invalid report range: from {date_from.isoformat()} is after to {date_to.isoformat()}."
        )
        self.date_from = date_from
        self.date_to = date_to


class SiteNotFound(ReconciliationError, LookupError):
    def __init__(self, site_id: str):
        super().__init__(f"Unknown site_id '{site_id}'.")
        self.site_id = site_id


class ExpenseSourceMissing(ReconciliationError):
    def __init__(self, missing: list[str]):
        super().__init__(f"Expense model is incomplete; missing sources: {', '.join(missing)}.")
        self.missing = missing
