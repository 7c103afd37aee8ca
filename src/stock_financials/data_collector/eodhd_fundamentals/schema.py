"""Analytical table schema inference for a batch of financial records"""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from stock_financials.data_collector.eodhd_fundamentals.data_models import (
    IDENTITY_FIELDS,
    FinancialRecord,
)


@dataclass(frozen=True)
class SchemaField:
    name: str
    field_type: str


REQUIRED_FIELDS = (
    SchemaField("ticker", "STRING"),
    SchemaField("symbol", "STRING"),
    SchemaField("date", "TIMESTAMP"),
)


def is_native_number(value) -> bool:
    # bool is an int subclass but never a statement figure
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def infer_schema(records: Iterable[FinancialRecord]) -> List[SchemaField]:
    """
    Identity fields plus every field seen as a native number in the batch.

    A field is added the first time it is observed as numeric; later
    non-numeric occurrences do not remove it (they are coerced or dropped
    when rows are written). Recomputed per batch, never cached.
    """
    numeric: Dict[str, None] = {}
    for record in records:
        for name, value in record.payload.items():
            if name in IDENTITY_FIELDS or name in numeric:
                continue
            if is_native_number(value):
                numeric[name] = None
    return list(REQUIRED_FIELDS) + [SchemaField(name, "FLOAT64") for name in numeric]
