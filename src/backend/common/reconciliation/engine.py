from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from .aggregator import MultiSiteAggregator
from .builder import PeriodReportBuilder
from .config import EngineConfig
from .models import ReportData, ReportKind
from .store import RecordStore


class ReportingEngine:
    """Entry point used by exporters and the sales-desk surfaces."""

    def __init__(self, store: RecordStore, *, config: Optional[EngineConfig] = None):
        self._builder = PeriodReportBuilder(store, config=config)
        self._aggregator = MultiSiteAggregator(self._builder)

    @property
    def config(self) -> EngineConfig:
        return self._builder.config

    def build_clerk_report(
        self, site_id: str, operator_id: str, date_from: date, date_to: date
    ) -> ReportData:
        return self._builder.build(
            site_id=site_id,
            date_from=date_from,
            date_to=date_to,
            operator_id=operator_id,
            kind=ReportKind.CLERK,
        )

    def build_manager_report(
        self,
        site_id: Optional[str],
        date_from: date,
        date_to: date,
        operator_id: Optional[str] = None,
    ) -> ReportData:
        if site_id is None:
            return self._aggregator.build(
                None, date_from, date_to, operator_id=operator_id, kind=ReportKind.MANAGER
            )
        return self._builder.build(
            site_id=site_id,
            date_from=date_from,
            date_to=date_to,
            operator_id=operator_id,
            kind=ReportKind.MANAGER,
        )

    def build_multi_site_history(
        self, site_ids: Optional[Iterable[str]], date_from: date, date_to: date
    ) -> ReportData:
        return self._aggregator.build(site_ids, date_from, date_to)
