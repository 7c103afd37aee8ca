import asyncio
from typing import Callable, Optional

from stock_financials.data_collector.eodhd_fundamentals.client import (
    EodhdFundamentalsClient,
)
from stock_financials.data_collector.eodhd_fundamentals.data_models import (
    TickerSyncResult,
)
from stock_financials.data_collector.eodhd_fundamentals.normalizer import (
    FinancialsNormalizer,
)
from stock_financials.data_collector.eodhd_fundamentals.sync_writer import (
    FinancialsSyncWriter,
)
from stock_financials.database.financials_repository import DocumentWriteError
from stock_financials.utils.logger import get_logger


logger = get_logger(__name__)


class FinancialsCollectorService:
    """
    Orchestrates raw client → normalizer → dual-sink writer for one ticker.

    Source and normalization errors propagate to the caller. A failed
    document-store write is raised after both sinks were attempted; a
    failed BigQuery write is only logged and reported in the result.
    """

    def __init__(
        self,
        writer: FinancialsSyncWriter,
        normalizer: Optional[FinancialsNormalizer] = None,
        client_factory: Callable[[], EodhdFundamentalsClient] = EodhdFundamentalsClient,
    ) -> None:
        self.writer = writer
        self.normalizer = normalizer or FinancialsNormalizer()
        self.client_factory = client_factory

    async def download_financials(self, ticker: str) -> TickerSyncResult:
        async with self.client_factory() as client:
            payload = await client.get_fundamentals(ticker)

        records = self.normalizer.normalize(ticker, payload)
        write = await asyncio.to_thread(self.writer.write, records)

        for failure in write.analytical_errors:
            logger.error(f"{ticker}: BigQuery {failure.period.value} write failed: {failure.error}")
        if write.document_errors:
            first = write.document_errors[0]
            logger.error(f"{ticker}: document store {first.period.value} write failed: {first.error}")
            if isinstance(first.error, DocumentWriteError):
                raise first.error
            raise DocumentWriteError(
                f"{ticker}: document store write failed for {first.period.value}",
                period=first.period,
            ) from first.error

        logger.info(
            f"Updated financials for {ticker}: {len(records.quarterly)} quarterly, "
            f"{len(records.annual)} annual"
        )
        return TickerSyncResult(ticker=ticker, records=records, write=write)
