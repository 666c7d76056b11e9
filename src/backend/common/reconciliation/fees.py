from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .config import EngineConfig
from .errors import SiteNotFound
from .models import ZERO, SiteFeeConfig
from .store import RecordSession


def _enabled(fee: Optional[Decimal]) -> bool:
    return fee is not None and fee > 0


@dataclass(frozen=True)
class SiteFees:
    loader_fee: Optional[Decimal] = None
    land_rate_fee: Optional[Decimal] = None
    rejects_fee: Optional[Decimal] = None

    @classmethod
    def from_config(cls, cfg: Optional[SiteFeeConfig]) -> "SiteFees":
        if cfg is None:
            return cls()
        return cls(
            loader_fee=cfg.loader_fee,
            land_rate_fee=cfg.land_rate_fee,
            rejects_fee=cfg.rejects_fee,
        )

    @property
    def loader_fee_enabled(self) -> bool:
        return _enabled(self.loader_fee)

    @property
    def land_rate_visible(self) -> bool:
        return _enabled(self.land_rate_fee)

    def land_rate_for(self, product_name: str, config: Optional[EngineConfig] = None) -> Decimal:
        """Per-unit land-rate charge for a product.

        ZERO when the site charges no land rate or the applicable fee is disabled.
        """
        if not self.land_rate_visible:
            return ZERO
        config = config or EngineConfig()
        fee = self.rejects_fee if config.is_reject_product(product_name) else self.land_rate_fee
        return fee if _enabled(fee) else ZERO


def resolve_site_fees(session: RecordSession, site_id: str) -> SiteFees:
    """Read the site's fee schedule as configured right now.

    Raises SiteNotFound for unknown sites.
    """
    site = session.get_site(site_id)
    if site is None:
        raise SiteNotFound(site_id)
    return SiteFees.from_config(site.fees)
