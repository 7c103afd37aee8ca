from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from stock_financials.data_collector.eodhd_fundamentals.data_models import (
    FinancialRecord,
    Period,
    PeriodRecords,
    SinkName,
    SinkResult,
    WriteResult,
)
from stock_financials.data_collector.eodhd_fundamentals.schema import infer_schema
from stock_financials.database.bigquery_storage import (
    FinancialsTableManager,
    create_bigquery_client,
)
from stock_financials.database.financials_repository import FinancialsRepository
from stock_financials.utils.logger import get_logger


logger = get_logger(__name__)

TableManagerFactory = Callable[[Period], FinancialsTableManager]


def default_table_manager_factory() -> TableManagerFactory:
    """Factory sharing one BigQuery client, created on first use"""
    client_holder: Dict[str, object] = {}

    def factory(period: Period) -> FinancialsTableManager:
        if "client" not in client_holder:
            client_holder["client"] = create_bigquery_client()
        return FinancialsTableManager.for_period(client_holder["client"], period)

    return factory


def dedupe_records(records: Sequence[FinancialRecord]) -> List[FinancialRecord]:
    """One record per (ticker, date); later occurrences win"""
    latest: Dict[tuple, FinancialRecord] = {}
    for record in records:
        latest[record.key] = record
    return list(latest.values())


class FinancialsSyncWriter:
    """
    Writes quarterly and annual records to the document store and BigQuery.

    Both sinks are attempted for each period even when one fails. Failures
    are returned in the WriteResult; this class never raises for sink errors.
    """

    def __init__(
        self,
        repository: FinancialsRepository,
        table_manager_factory: Optional[TableManagerFactory] = None,
    ) -> None:
        self.repository = repository
        self.table_manager_factory = table_manager_factory or default_table_manager_factory()

    def write(self, records: PeriodRecords) -> WriteResult:
        result = WriteResult()
        for period, period_records in records.by_period():
            if not period_records:
                continue
            unique = dedupe_records(period_records)
            result.results.append(self._write_documents(period, unique))
            result.results.append(self._write_analytical(period, unique))
        return result

    def _write_documents(self, period: Period, records: List[FinancialRecord]) -> SinkResult:
        try:
            rows = self.repository.upsert_records(period, records)
            return SinkResult(SinkName.DOCUMENT, period, rows=rows)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Document store write failed for {period.value}: {e}")
            return SinkResult(SinkName.DOCUMENT, period, error=e)

    def _write_analytical(self, period: Period, records: List[FinancialRecord]) -> SinkResult:
        try:
            schema = infer_schema(records)
            manager = self.table_manager_factory(period)
            rows = manager.sync(records, schema)
            logger.info(f"BigQuery {period.value} table updated with {rows} rows")
            return SinkResult(SinkName.ANALYTICAL, period, rows=rows)
        except Exception as e:  # noqa: BLE001
            logger.error(f"BigQuery write failed for {period.value}: {e}")
            return SinkResult(SinkName.ANALYTICAL, period, error=e)
