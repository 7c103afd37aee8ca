from datetime import datetime, timezone

import pytest

from stock_financials.data_collector.eodhd_fundamentals.data_models import FinancialRecord
from stock_financials.data_collector.eodhd_fundamentals.schema import (
    REQUIRED_FIELDS,
    SchemaField,
    infer_schema,
)

T1 = datetime(2024, 3, 31, 20, tzinfo=timezone.utc)
T2 = datetime(2023, 12, 31, 21, tzinfo=timezone.utc)


def _record(date, **payload):
    return FinancialRecord(ticker="A", symbol="A", date=date, payload=payload)


@pytest.mark.unit
def test_numeric_field_included_exactly_once_despite_non_numeric_occurrence():
    schema = infer_schema([_record(T1, revenue=100), _record(T2, revenue="n/a")])

    assert schema.count(SchemaField("revenue", "FLOAT64")) == 1
    assert [f.name for f in schema] == ["ticker", "symbol", "date", "revenue"]


@pytest.mark.unit
def test_first_numeric_occurrence_anywhere_in_batch_counts():
    schema = infer_schema([_record(T1, revenue=None), _record(T2, revenue=5.5)])

    assert SchemaField("revenue", "FLOAT64") in schema


@pytest.mark.unit
def test_identity_fields_always_present_with_fixed_types():
    schema = infer_schema([])

    assert schema == list(REQUIRED_FIELDS)
    assert SchemaField("date", "TIMESTAMP") in schema


@pytest.mark.unit
def test_strings_bools_and_nulls_are_excluded():
    schema = infer_schema(
        [_record(T1, currency_symbol="USD", isRestated=True, totalAssets=None, netIncome=1)]
    )

    names = {f.name for f in schema}
    assert "currency_symbol" not in names
    assert "isRestated" not in names
    assert "totalAssets" not in names
    assert "netIncome" in names


@pytest.mark.unit
def test_batches_are_inferred_independently():
    first = infer_schema([_record(T1, revenue=1.0)])
    second = infer_schema([_record(T1, revenue=1.0, ebitda=2.0)])

    assert len(second) == len(first) + 1
