import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from stock_financials.data_collector.eodhd_fundamentals.processor import (
    FinancialsBatchProcessor,
)
from stock_financials.data_collector.eodhd_fundamentals.sync_writer import (
    FinancialsSyncWriter,
)
from stock_financials.data_collector.ticker_loader import load_tickers
from stock_financials.database.connection import (
    close_global_connection,
    get_global_connection,
)
from stock_financials.database.financials_repository import FinancialsRepository
from stock_financials.utils.logger import get_logger


logger = get_logger(__name__)


async def main(tickers_file: Optional[str] = None) -> Dict[str, Any]:
    logger.info("Starting EODHD Financials Pipeline")
    started = datetime.now()
    try:
        connection = get_global_connection()
        repository = FinancialsRepository(connection.get_database())
        repository.ensure_indexes()

        processor = FinancialsBatchProcessor(FinancialsSyncWriter(repository))
        tickers = load_tickers(tickers_file)
        result = await processor.process_ticker_list(tickers)
    finally:
        close_global_connection()

    elapsed_s = (datetime.now() - started).total_seconds()
    logger.info(
        f"Financials sync complete: {result.tickers_processed}/{len(tickers)} tickers processed, "
        f"{len(result.failed_batches)} failed batches in {elapsed_s / 60:.1f} minutes"
    )
    return {
        "total": len(tickers),
        "processed": result.tickers_processed,
        "batches": len(result.batches),
        "failed_batches": [b.batch_number for b in result.failed_batches],
        "elapsed_s": elapsed_s,
    }


def run() -> None:
    out = asyncio.run(main())
    logger.info(out)


if __name__ == "__main__":
    run()
