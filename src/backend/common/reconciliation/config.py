from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """Engine-wide settings for report generation.

    Product-name matching is case-insensitive substring matching.
    """

    # Products whose names contain any of these never carry a loaders fee.
    loader_fee_exempt_keywords: List[str] = Field(default_factory=lambda: ["beam", "hardcore"])
    # Products whose names contain this are charged the rejects fee instead of the land-rate fee.
    rejects_keyword: str = "reject"

    unknown_label: str = "Unknown"
    unspecified_product_label: str = "Not Specified"
    all_clerks_label: str = "All Clerks"
    all_sites_label: str = "All Sites"

    # Optional quantization for summary figures (e.g. Decimal("0.01")). If unset, figures are exact.
    amount_quantize: Optional[Decimal] = None

    # Single-day reports persist their cash-in-hand as the day's closing balance.
    write_closing_balance: bool = True

    def is_loader_fee_exempt(self, product_name: str) -> bool:
        name = (product_name or "").lower()
        return any(keyword.lower() in name for keyword in self.loader_fee_exempt_keywords if keyword)

    def is_reject_product(self, product_name: str) -> bool:
        if not self.rejects_keyword:
            return False
        return self.rejects_keyword.lower() in (product_name or "").lower()
