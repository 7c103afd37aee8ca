"""
Database Package

Document store (MongoDB) and analytical store (BigQuery) access for the
financials sync pipeline.
"""

from stock_financials.database.connection import (
    MongoConnection,
    get_global_connection,
    close_global_connection,
)
from stock_financials.database.financials_repository import (
    DocumentWriteError,
    FinancialsRepository,
)
from stock_financials.database.bigquery_storage import (
    AnalyticalWriteError,
    FinancialsTableManager,
    create_bigquery_client,
)

__all__ = [
    "MongoConnection",
    "get_global_connection",
    "close_global_connection",
    "DocumentWriteError",
    "FinancialsRepository",
    "AnalyticalWriteError",
    "FinancialsTableManager",
    "create_bigquery_client",
]
