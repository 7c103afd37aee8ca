from __future__ import annotations

from typing import List, Sequence

from pymongo import ASCENDING, ReplaceOne
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from stock_financials.data_collector.config import MongoConfig, mongo_config
from stock_financials.data_collector.eodhd_fundamentals.data_models import (
    FinancialRecord,
    Period,
)
from stock_financials.utils.logger import get_logger


logger = get_logger(__name__, utility="database")


class DocumentWriteError(Exception):
    """Bulk upsert into the document store failed"""

    def __init__(self, message: str, period: Period | None = None) -> None:
        self.period = period
        super().__init__(message)


class FinancialsRepository:
    """
    Document-store persistence for quarterly and annual financial records.

    Each record is stored as a full document keyed by (ticker, date); a write
    replaces the stored document so the latest merged fields are authoritative.
    """

    def __init__(self, db: Database, config: MongoConfig | None = None) -> None:
        self.db = db
        self.config = config or mongo_config

    def collection_for(self, period: Period) -> Collection:
        name = (
            self.config.QUARTERLY_COLLECTION
            if period == Period.QUARTERLY
            else self.config.ANNUAL_COLLECTION
        )
        return self.db[name]

    def ensure_indexes(self) -> None:
        for period in Period:
            self.collection_for(period).create_index(
                [("ticker", ASCENDING), ("date", ASCENDING)],
                unique=True,
                name="ticker_date_unique",
            )
        logger.info("Ensured unique (ticker, date) indexes on financials collections")

    def upsert_records(self, period: Period, records: Sequence[FinancialRecord]) -> int:
        """
        Upsert records with one bulk operation.

        Returns:
            Number of records sent in the bulk operation
        """
        if not records:
            return 0

        ops: List[ReplaceOne] = [
            ReplaceOne({"ticker": r.ticker, "date": r.date}, r.to_document(), upsert=True)
            for r in records
        ]
        try:
            result = self.collection_for(period).bulk_write(ops, ordered=False)
        except PyMongoError as e:
            raise DocumentWriteError(
                f"Bulk upsert of {len(ops)} {period.value} records failed: {e}", period=period
            ) from e

        logger.info(
            f"Upserted {period.value} records: {result.upserted_count} inserted, "
            f"{result.modified_count} replaced, {result.matched_count} matched"
        )
        return len(ops)
