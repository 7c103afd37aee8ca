"""
Data models for normalized EODHD financial statements and sync results

FinancialRecord is a fixed identity (ticker, symbol, date) plus an open
payload of statement fields, because the provider's field set varies by
ticker and over time. The result dataclasses carry per-sink outcomes up
to the orchestrator, which decides what gets logged and what gets raised.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

IDENTITY_FIELDS = ("ticker", "symbol", "date")


class Period(str, Enum):
    """Reporting cadence of a record collection"""

    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class SinkName(str, Enum):
    DOCUMENT = "document"
    ANALYTICAL = "analytical"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class FinancialRecord(BaseModel):
    """One ticker's merged statement fields for one period, keyed by (ticker, date)"""

    ticker: str
    symbol: str
    date: datetime  # market-close instant, UTC
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("ticker", "symbol", mode="before")
    @classmethod
    def upper_symbol(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("date")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive datetimes are taken as UTC; aware ones are converted"""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def key(self) -> Tuple[str, datetime]:
        return (self.ticker, self.date)

    @property
    def merge_key(self) -> str:
        """ISO-8601 instant string used to merge statement fragments"""
        return self.date.isoformat().replace("+00:00", "Z")

    def merged_with(self, other: "FinancialRecord") -> "FinancialRecord":
        """Shallow merge; fields of `other` win on overlap"""
        return self.model_copy(update={"payload": {**self.payload, **other.payload}})

    def to_document(self) -> Dict[str, Any]:
        """Flatten into a single mapping; identity fields always win"""
        doc = {k: v for k, v in self.payload.items() if k not in IDENTITY_FIELDS}
        doc.update({"ticker": self.ticker, "symbol": self.symbol, "date": self.date})
        return doc


@dataclass
class PeriodRecords:
    """Parallel quarterly and annual record lists"""

    quarterly: List[FinancialRecord] = field(default_factory=list)
    annual: List[FinancialRecord] = field(default_factory=list)

    def extend(self, other: "PeriodRecords") -> None:
        self.quarterly.extend(other.quarterly)
        self.annual.extend(other.annual)

    def by_period(self) -> Iterable[Tuple[Period, List[FinancialRecord]]]:
        yield Period.QUARTERLY, self.quarterly
        yield Period.ANNUAL, self.annual

    @property
    def total(self) -> int:
        return len(self.quarterly) + len(self.annual)

    def is_empty(self) -> bool:
        return self.total == 0


@dataclass
class SinkResult:
    sink: SinkName
    period: Period
    rows: int = 0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class WriteResult:
    """Outcome of one dual-sink write call"""

    results: List[SinkResult] = field(default_factory=list)

    @property
    def document_errors(self) -> List[SinkResult]:
        return [r for r in self.results if r.sink == SinkName.DOCUMENT and not r.ok]

    @property
    def analytical_errors(self) -> List[SinkResult]:
        return [r for r in self.results if r.sink == SinkName.ANALYTICAL and not r.ok]

    @property
    def status(self) -> SyncStatus:
        failed = [r for r in self.results if not r.ok]
        if not failed:
            return SyncStatus.SUCCESS
        if len(failed) == len(self.results):
            return SyncStatus.FAILED
        return SyncStatus.PARTIAL


@dataclass
class TickerSyncResult:
    ticker: str
    records: PeriodRecords
    write: WriteResult

    @property
    def status(self) -> SyncStatus:
        return self.write.status


@dataclass
class BatchResult:
    """Outcome of one bulk chunk"""

    batch_number: int
    tickers_requested: int
    tickers_processed: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)  # ticker -> reason
    failed: Dict[str, str] = field(default_factory=dict)  # ticker -> error
    write: Optional[WriteResult] = None
    error: Optional[Exception] = None

    @property
    def status(self) -> SyncStatus:
        if self.error is not None:
            return SyncStatus.FAILED
        if self.write is not None and self.write.status != SyncStatus.SUCCESS:
            return self.write.status
        if self.failed:
            return SyncStatus.PARTIAL
        return SyncStatus.SUCCESS


@dataclass
class TickerListSyncResult:
    batches: List[BatchResult] = field(default_factory=list)
    elapsed_s: float = 0.0

    @property
    def tickers_processed(self) -> int:
        return sum(len(b.tickers_processed) for b in self.batches)

    @property
    def failed_batches(self) -> List[BatchResult]:
        return [b for b in self.batches if b.status == SyncStatus.FAILED]
