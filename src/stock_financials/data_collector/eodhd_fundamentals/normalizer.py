"""
Normalize EODHD fundamentals payloads into per-period FinancialRecord lists.

Each statement section (Balance_Sheet, Cash_Flow, Income_Statement) holds
period entries for quarterly and yearly cadence. Entries describing the
same market-close instant are shallow-merged, later sections winning on
overlapping fields.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from dateutil.parser import isoparse

from stock_financials.data_collector.config import EodhdConfig, eodhd_config
from stock_financials.data_collector.eodhd_fundamentals.data_models import (
    FinancialRecord,
    Period,
    PeriodRecords,
)
from stock_financials.utils.logger import get_logger


logger = get_logger(__name__)

STATEMENTS = ("Balance_Sheet", "Cash_Flow", "Income_Statement")
BULK_DEPTH = 4  # quarterly_last_0 .. quarterly_last_3
DROPPED_FIELDS = ("filing_date", "date")


class NormalizationError(Exception):
    def __init__(self, ticker: str, message: str) -> None:
        self.ticker = ticker
        super().__init__(f"{ticker}: {message}")


class NoFinancialsError(NormalizationError):
    def __init__(self, ticker: str) -> None:
        super().__init__(ticker, "no financial statements in payload")


class EtfDataPresentError(NormalizationError):
    def __init__(self, ticker: str) -> None:
        super().__init__(ticker, "payload describes an ETF")


class FinancialsNormalizer:
    """Turns one ticker's raw payload into quarterly and annual records"""

    def __init__(self, config: Optional[EodhdConfig] = None) -> None:
        self.config = config or eodhd_config
        self._tz = ZoneInfo(self.config.MARKET_TIMEZONE)

    def market_close(self, value: Any) -> Optional[datetime]:
        """
        Anchor a date string to the exchange close and convert it to UTC.

        Returns None when the value cannot be parsed as a date.
        """
        if not value or not isinstance(value, str):
            return None
        try:
            day = isoparse(value.strip()).date()
        except (ValueError, OverflowError):
            return None
        local_close = datetime(
            day.year, day.month, day.day, self.config.MARKET_CLOSE_HOUR, tzinfo=self._tz
        )
        return local_close.astimezone(timezone.utc)

    def normalize(self, ticker: str, payload: Optional[Dict[str, Any]]) -> PeriodRecords:
        """Normalize a single-ticker payload (period entries keyed by date)"""
        financials = self._check_payload(ticker, payload)
        quarterly: List[Tuple[str, Any]] = []
        annual: List[Tuple[str, Any]] = []
        for name in STATEMENTS:
            section = financials.get(name) or {}
            quarterly.extend((section.get("quarterly") or {}).items())
            annual.extend((section.get("yearly") or {}).items())
        return self._build(ticker, quarterly, annual)

    def normalize_bulk(self, payload: Dict[str, Any]) -> Tuple[str, PeriodRecords]:
        """
        Normalize one entry of a bulk response.

        The ticker comes from General.Code; statements hold single entries
        under quarterly_last_N / yearly_last_N, whose keys are not dates.
        """
        ticker = ((payload or {}).get("General") or {}).get("Code")
        if not ticker:
            raise NormalizationError("<unknown>", "bulk entry has no General.Code")

        financials = self._check_payload(ticker, payload)
        quarterly: List[Tuple[str, Any]] = []
        annual: List[Tuple[str, Any]] = []
        for name in STATEMENTS:
            section = financials.get(name) or {}
            for n in range(BULK_DEPTH):
                for prefix, bucket in (("quarterly", quarterly), ("yearly", annual)):
                    key = f"{prefix}_last_{n}"
                    if section.get(key):
                        bucket.append((key, section[key]))
        return ticker.upper(), self._build(ticker, quarterly, annual)

    def _check_payload(self, ticker: str, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not payload:
            raise NoFinancialsError(ticker)
        if payload.get("ETF_Data"):
            raise EtfDataPresentError(ticker)
        financials = payload.get("Financials") or {}
        if not financials:
            raise NoFinancialsError(ticker)
        return financials

    def _build(
        self,
        ticker: str,
        quarterly: Iterable[Tuple[str, Any]],
        annual: Iterable[Tuple[str, Any]],
    ) -> PeriodRecords:
        records = PeriodRecords(
            quarterly=self._merge(ticker, quarterly, Period.QUARTERLY),
            annual=self._merge(ticker, annual, Period.ANNUAL),
        )
        if records.is_empty():
            logger.warning(f"{ticker}: financials present but no dateable periods")
        return records

    def _merge(
        self, ticker: str, entries: Iterable[Tuple[str, Any]], period: Period
    ) -> List[FinancialRecord]:
        merged: Dict[str, FinancialRecord] = {}
        for key, details in entries:
            record = self._to_record(ticker, key, details)
            if record is None:
                logger.debug(f"{ticker}: dropping undateable {period.value} entry {key!r}")
                continue
            existing = merged.get(record.merge_key)
            merged[record.merge_key] = existing.merged_with(record) if existing else record
        return list(merged.values())

    def _to_record(self, ticker: str, key: str, details: Any) -> Optional[FinancialRecord]:
        if not isinstance(details, dict):
            return None
        date = self.market_close(details.get("filing_date")) or self.market_close(key)
        if date is None:
            return None
        payload = {k: v for k, v in details.items() if k not in DROPPED_FIELDS}
        return FinancialRecord(ticker=ticker, symbol=ticker, date=date, payload=payload)
