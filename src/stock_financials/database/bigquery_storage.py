"""
BigQuery persistence for financial records (stage-then-merge).

BigQuery has no per-key upsert, so each write streams rows into a
timestamped temp table and folds them into the main table with a single
MERGE on (ticker, date). The temp table is dropped whatever the outcome.
"""

import math
import time
from typing import Any, Dict, List, Optional, Sequence

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery
from google.oauth2 import service_account

from stock_financials.data_collector.config import BigQueryConfig, bigquery_config
from stock_financials.data_collector.eodhd_fundamentals.data_models import (
    FinancialRecord,
    Period,
)
from stock_financials.data_collector.eodhd_fundamentals.schema import SchemaField
from stock_financials.utils.logger import get_logger
from stock_financials.utils.retry import RetryConfig, poll_until

logger = get_logger(__name__, utility="database")

KEY_COLUMNS = ("ticker", "date")


class AnalyticalWriteError(Exception):
    """Any failure in the stage-then-merge sequence"""


def create_bigquery_client(config: Optional[BigQueryConfig] = None) -> bigquery.Client:
    """Build a client from the service account JSON in the environment"""
    config = config or bigquery_config
    info = config.credentials_info
    credentials = service_account.Credentials.from_service_account_info(info)
    return bigquery.Client(credentials=credentials, project=info.get("project_id"))


def format_timestamp(value) -> str:
    """YYYY-MM-DD HH:MM:SS.mmm+00:00"""
    return value.strftime("%Y-%m-%d %H:%M:%S.") + f"{value.microsecond // 1000:03d}+00:00"


def coerce_number(value: Any) -> Optional[float]:
    """Float for native numbers and numeric-looking strings; None when not coercible"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class FinancialsTableManager:
    """Owns one main table and the temp table used for a single write"""

    def __init__(
        self,
        client: bigquery.Client,
        table: str,
        config: Optional[BigQueryConfig] = None,
    ) -> None:
        self.client = client
        self.config = config or bigquery_config
        self.table = table
        prefix = f"{client.project}.{self.config.DATASET}"
        self.table_id = f"{prefix}.{table}"
        self.temp_table_id = f"{prefix}.{table}_temp_{int(time.time() * 1000)}"

    @classmethod
    def for_period(
        cls, client: bigquery.Client, period: Period, config: Optional[BigQueryConfig] = None
    ) -> "FinancialsTableManager":
        config = config or bigquery_config
        table = config.QUARTERLY_TABLE if period == Period.QUARTERLY else config.ANNUAL_TABLE
        return cls(client, table, config)

    @staticmethod
    def _to_bq_schema(schema: Sequence[SchemaField]) -> List[bigquery.SchemaField]:
        return [bigquery.SchemaField(f.name, f.field_type, mode="NULLABLE") for f in schema]

    def _table_exists(self, table_id: str) -> bool:
        try:
            self.client.get_table(table_id)
            return True
        except NotFound:
            return False

    def _create_table(self, table_id: str, schema: Sequence[SchemaField]) -> None:
        self.client.create_table(bigquery.Table(table_id, schema=self._to_bq_schema(schema)))
        logger.info(f"Created table {table_id} with {len(schema)} columns")

        poll = RetryConfig(
            max_attempts=self.config.TABLE_CREATE_ATTEMPTS,
            base_delay=self.config.TABLE_CREATE_BASE_DELAY,
        )
        poll_until(lambda: self._table_exists(table_id), poll, f"table {table_id}")

    def _add_missing_columns(self, schema: Sequence[SchemaField]) -> None:
        table = self.client.get_table(self.table_id)
        existing = {f.name for f in table.schema}
        missing = [f for f in schema if f.name not in existing]
        if not missing:
            return
        table.schema = list(table.schema) + self._to_bq_schema(missing)
        self.client.update_table(table, ["schema"])
        logger.info(
            f"Added {len(missing)} columns to {self.table_id}: {', '.join(f.name for f in missing)}"
        )

    def create_table_if_not_exists(self, schema: Sequence[SchemaField]) -> None:
        if self._table_exists(self.table_id):
            self._add_missing_columns(schema)
        else:
            self._create_table(self.table_id, schema)

    def create_temp_table(self, schema: Sequence[SchemaField]) -> None:
        self._create_table(self.temp_table_id, schema)

    def filter_record(
        self, record: FinancialRecord, schema: Sequence[SchemaField]
    ) -> Dict[str, Any]:
        """Keep schema fields only, coercing values to their column type"""
        row: Dict[str, Any] = {
            "ticker": record.ticker,
            "symbol": record.symbol,
            "date": format_timestamp(record.date),
        }
        allowed = {f.name for f in schema} - set(row)
        for name, value in record.payload.items():
            if name not in allowed:
                continue
            if value is None:
                row[name] = None
                continue
            number = coerce_number(value)
            if number is not None:
                row[name] = number
        return row

    def insert_records_to_temp_table(
        self, records: Sequence[FinancialRecord], schema: Sequence[SchemaField]
    ) -> int:
        rows = [self.filter_record(r, schema) for r in records]
        batch_size = self.config.INSERT_BATCH_SIZE
        for i in range(0, len(rows), batch_size):
            batch = rows[i : i + batch_size]
            errors = self.client.insert_rows_json(self.temp_table_id, batch)
            if errors:
                raise AnalyticalWriteError(
                    f"Insert into {self.temp_table_id} rejected {len(errors)} rows: {errors[:3]}"
                )
            logger.info(f"Inserted batch of {len(batch)} financial rows.")
        return len(rows)

    def merge_temp_table_to_main_table(self, schema: Sequence[SchemaField]) -> None:
        columns = [f"`{f.name}`" for f in schema]
        updates = ", ".join(f"T.{c} = S.{c}" for c in columns)
        on = " AND ".join(f"T.`{k}` = S.`{k}`" for k in KEY_COLUMNS)
        query = f"""
            MERGE `{self.table_id}` T
            USING `{self.temp_table_id}` S
            ON {on}
            WHEN MATCHED THEN
              UPDATE SET {updates}
            WHEN NOT MATCHED THEN
              INSERT ({", ".join(columns)})
              VALUES ({", ".join(f"S.{c}" for c in columns)})
        """
        self.client.query(query).result()
        logger.info(f"Merged {self.temp_table_id} into {self.table_id}")

    def drop_temp_table(self) -> None:
        try:
            self.client.delete_table(self.temp_table_id, not_found_ok=True)
            logger.info(f"Dropped temp table {self.temp_table_id}")
        except (GoogleAPIError, GoogleAuthError) as e:
            logger.error(f"Failed to drop temp table {self.temp_table_id}: {e}")

    def sync(self, records: Sequence[FinancialRecord], schema: Sequence[SchemaField]) -> int:
        """
        Stage records in a temp table and merge them into the main table.

        Returns:
            Number of rows staged

        Raises:
            AnalyticalWriteError: if any step before the cleanup fails
        """
        if not records:
            return 0
        try:
            self.create_table_if_not_exists(schema)
            try:
                self.create_temp_table(schema)
                rows = self.insert_records_to_temp_table(records, schema)
                self.merge_temp_table_to_main_table(schema)
            finally:
                self.drop_temp_table()
        except (GoogleAPIError, GoogleAuthError) as e:
            raise AnalyticalWriteError(f"BigQuery write to {self.table_id} failed: {e}") from e
        return rows
