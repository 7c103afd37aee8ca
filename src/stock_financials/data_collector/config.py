"""
Configuration settings for EODHD fundamentals collection and the two financials sinks
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class EodhdConfig:
    """Configuration class for EODHD fundamentals API settings"""

    # API Configuration
    API_TOKEN: str = os.getenv("EOD_API_TOKEN", "")
    BASE_URL: str = "https://eodhd.com/api"
    FUNDAMENTALS_ENDPOINT: str = "/fundamentals"
    BULK_FUNDAMENTALS_ENDPOINT: str = "/bulk-fundamentals"
    EXCHANGE: str = os.getenv("EODHD_EXCHANGE", "US")

    # Bulk endpoint
    BULK_LIMIT: int = 500  # provider hard maximum per call
    BULK_API_VERSION: str = "1.2"
    BATCH_PACING_SECONDS: float = _env_float("EODHD_BATCH_PACING_SECONDS", 1.0)

    # Timeouts
    REQUEST_TIMEOUT: int = 60  # seconds; bulk responses are large
    CONNECTION_TIMEOUT: int = 10  # seconds

    # Normalization
    MARKET_TIMEZONE: str = "America/New_York"
    MARKET_CLOSE_HOUR: int = 16

    # Input
    TICKERS_FILE: str = os.getenv("TICKERS_FILE", "tickers.csv")

    @property
    def base_params(self) -> Dict[str, str]:
        """Query parameters sent with every request"""
        if not self.API_TOKEN:
            raise ValueError("EOD_API_TOKEN environment variable is required for API requests")
        return {"api_token": self.API_TOKEN, "fmt": "json"}

    def get_fundamentals_url(self, ticker: str) -> str:
        """Get the full URL for the single-ticker fundamentals endpoint"""
        return f"{self.BASE_URL}{self.FUNDAMENTALS_ENDPOINT}/{ticker}.{self.EXCHANGE}"

    def get_bulk_fundamentals_url(self, exchange: Optional[str] = None) -> str:
        """Get the full URL for the bulk fundamentals endpoint"""
        return f"{self.BASE_URL}{self.BULK_FUNDAMENTALS_ENDPOINT}/{exchange or self.EXCHANGE}"

    @classmethod
    def from_env(cls) -> "EodhdConfig":
        """Create configuration from environment variables"""
        return cls(
            API_TOKEN=os.getenv("EOD_API_TOKEN", ""),
            EXCHANGE=os.getenv("EODHD_EXCHANGE", "US"),
            BATCH_PACING_SECONDS=_env_float("EODHD_BATCH_PACING_SECONDS", 1.0),
            TICKERS_FILE=os.getenv("TICKERS_FILE", "tickers.csv"),
        )


@dataclass
class MongoConfig:
    """Document store (MongoDB) settings"""

    LOCAL_DB: str = os.getenv("LOCAL_DB", "")
    CLOUD_DB: str = os.getenv("CLOUD_DB", "")
    DB_TYPE: str = os.getenv("DB_TYPE", "local")
    DB_NAME: str = os.getenv("DB_NAME", "stock_data")

    QUARTERLY_COLLECTION: str = "quarterly"
    ANNUAL_COLLECTION: str = "annual"
    CHAT_LOG_COLLECTION: str = "requesty_chat_logs"

    SERVER_SELECTION_TIMEOUT_MS: int = 10000

    def connection_url(self, db_type: Optional[str] = None) -> str:
        """Resolve the connection string for `local`/`cloud` (or the localDB/cloudDB aliases)"""
        key = (db_type or self.DB_TYPE).strip()
        connection_map = {
            "local": self.LOCAL_DB,
            "localDB": self.LOCAL_DB,
            "cloud": self.CLOUD_DB,
            "cloudDB": self.CLOUD_DB,
        }
        if key not in connection_map:
            raise ValueError(f"Unknown database type: {key!r}")
        url = connection_map[key]
        if not url:
            env_name = "LOCAL_DB" if key.startswith("local") else "CLOUD_DB"
            raise ValueError(f"{env_name} environment variable is required for database connections")
        return url

    @classmethod
    def from_env(cls) -> "MongoConfig":
        """Create configuration from environment variables"""
        return cls(
            LOCAL_DB=os.getenv("LOCAL_DB", ""),
            CLOUD_DB=os.getenv("CLOUD_DB", ""),
            DB_TYPE=os.getenv("DB_TYPE", "local"),
            DB_NAME=os.getenv("DB_NAME", "stock_data"),
        )


@dataclass
class BigQueryConfig:
    """Analytical store (BigQuery) settings"""

    CREDENTIALS_JSON: str = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON", "")
    DATASET: str = "financials"
    QUARTERLY_TABLE: str = "quarterly"
    ANNUAL_TABLE: str = "annual"

    INSERT_BATCH_SIZE: int = 500  # rows per streaming insert call
    TABLE_CREATE_ATTEMPTS: int = 3
    TABLE_CREATE_BASE_DELAY: float = 1.0  # wait before re-check n is base * 2**n

    @property
    def credentials_info(self) -> Dict[str, Any]:
        """Parse the service account JSON blob"""
        if not self.CREDENTIALS_JSON:
            raise ValueError(
                "GOOGLE_APPLICATION_CREDENTIALS_JSON environment variable is not set"
            )
        try:
            return json.loads(self.CREDENTIALS_JSON)
        except json.JSONDecodeError as e:
            raise ValueError("Failed to parse GOOGLE_APPLICATION_CREDENTIALS_JSON") from e

    @classmethod
    def from_env(cls) -> "BigQueryConfig":
        """Create configuration from environment variables"""
        return cls(CREDENTIALS_JSON=os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON", ""))


# Global configuration instances
eodhd_config = EodhdConfig.from_env()
mongo_config = MongoConfig.from_env()
bigquery_config = BigQueryConfig.from_env()
