import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from stock_financials.data_collector.config import EodhdConfig, eodhd_config
from stock_financials.data_collector.eodhd_fundamentals.client import (
    EodhdFundamentalsClient,
)
from stock_financials.data_collector.eodhd_fundamentals.data_models import (
    BatchResult,
    PeriodRecords,
    TickerListSyncResult,
)
from stock_financials.data_collector.eodhd_fundamentals.normalizer import (
    EtfDataPresentError,
    FinancialsNormalizer,
    NoFinancialsError,
)
from stock_financials.data_collector.eodhd_fundamentals.sync_writer import (
    FinancialsSyncWriter,
)
from stock_financials.utils.logger import get_logger


logger = get_logger(__name__)


def chunk_tickers(tickers: Sequence[str], size: int) -> List[List[str]]:
    return [list(tickers[i : i + size]) for i in range(0, len(tickers), size)]


def _bulk_code(payload: Any) -> str:
    if isinstance(payload, dict):
        return ((payload.get("General") or {}).get("Code")) or "<unknown>"
    return "<unknown>"


class FinancialsBatchProcessor:
    """Processes a ticker list through the bulk endpoint, one chunk at a time (safe for rate limits)."""

    def __init__(
        self,
        writer: FinancialsSyncWriter,
        normalizer: Optional[FinancialsNormalizer] = None,
        client_factory: Callable[[], EodhdFundamentalsClient] = EodhdFundamentalsClient,
        config: Optional[EodhdConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.writer = writer
        self.config = config or eodhd_config
        self.normalizer = normalizer or FinancialsNormalizer(self.config)
        self.client_factory = client_factory
        self._sleep = sleep

    async def process_ticker_list(self, tickers: Sequence[str]) -> TickerListSyncResult:
        """
        Fetch, normalize and write financials for every ticker in the list.

        Chunks are processed strictly in order with a pacing delay between
        them. A failed chunk is logged and the next chunk is attempted.
        """
        start = time.perf_counter()
        chunks = chunk_tickers(tickers, self.config.BULK_LIMIT)
        result = TickerListSyncResult()
        logger.info(f"Total stocks to process: {len(tickers)}")

        async with self.client_factory() as client:
            for number, chunk in enumerate(chunks, 1):
                logger.info(f"Processing batch {number}/{len(chunks)}")
                batch = await self._process_chunk(client, number, chunk)
                result.batches.append(batch)
                logger.info(
                    f"Batch {number} finished with status {batch.status.value}: "
                    f"{len(batch.tickers_processed)} processed, {len(batch.skipped)} skipped, "
                    f"{len(batch.failed)} failed"
                )
                if number < len(chunks):
                    await self._sleep(self.config.BATCH_PACING_SECONDS)

        result.elapsed_s = time.perf_counter() - start
        return result

    async def _process_chunk(
        self, client: EodhdFundamentalsClient, number: int, chunk: List[str]
    ) -> BatchResult:
        batch = BatchResult(batch_number=number, tickers_requested=len(chunk))
        try:
            payloads = await client.get_bulk_fundamentals(
                self.config.EXCHANGE, chunk, offset=0, limit=self.config.BULK_LIMIT
            )
        except Exception as e:  # noqa: BLE001
            logger.error(f"Error fetching bulk fundamentals for batch {number} ({', '.join(chunk)}): {e}")
            batch.error = e
            return batch

        records = PeriodRecords()
        for payload in payloads:
            self._normalize_into(payload, records, batch)

        if records.is_empty():
            logger.info(f"Batch {number}: no records to write")
            return batch

        try:
            batch.write = await asyncio.to_thread(self.writer.write, records)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Batch {number}: write failed: {e}")
            batch.error = e
            return batch
        for failure in batch.write.analytical_errors + batch.write.document_errors:
            logger.error(
                f"Batch {number}: {failure.sink.value} {failure.period.value} write failed: {failure.error}"
            )
        return batch

    def _normalize_into(
        self, payload: Dict[str, Any], records: PeriodRecords, batch: BatchResult
    ) -> None:
        code = _bulk_code(payload)
        try:
            ticker, ticker_records = self.normalizer.normalize_bulk(payload)
        except (EtfDataPresentError, NoFinancialsError) as e:
            logger.info(f"Skipping {code}: {e}")
            batch.skipped[code] = str(e)
            return
        except Exception as e:  # noqa: BLE001
            logger.error(f"Error processing {code}: {e}")
            batch.failed[code] = str(e)
            return

        records.extend(ticker_records)
        batch.tickers_processed.append(ticker)
        logger.info(f"Processed {ticker} successfully")
