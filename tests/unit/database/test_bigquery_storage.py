from datetime import datetime, timezone

import pytest
from google.auth.exceptions import RefreshError
from google.cloud import bigquery

from stock_financials.data_collector.config import BigQueryConfig
from stock_financials.data_collector.eodhd_fundamentals.data_models import Period
from stock_financials.data_collector.eodhd_fundamentals.schema import infer_schema
from stock_financials.database.bigquery_storage import (
    AnalyticalWriteError,
    FinancialsTableManager,
    coerce_number,
    create_bigquery_client,
    format_timestamp,
)

MAIN = "test-project.financials.quarterly"


@pytest.fixture
def manager(bigquery_client_fake, bigquery_test_config):
    return FinancialsTableManager.for_period(bigquery_client_fake, Period.QUARTERLY, bigquery_test_config)


@pytest.mark.unit
def test_sync_creates_table_merges_and_drops_temp(manager, bigquery_client_fake, record_factory):
    records = [
        record_factory.build(ticker="AAPL", symbol="AAPL", payload={"totalRevenue": 1.0}),
        record_factory.build(ticker="MSFT", symbol="MSFT", payload={"totalRevenue": 2.0}),
    ]

    rows = manager.sync(records, infer_schema(records))

    assert rows == 2
    assert bigquery_client_fake.created == [MAIN, manager.temp_table_id]
    assert bigquery_client_fake.deleted == [manager.temp_table_id]
    assert manager.temp_table_id not in bigquery_client_fake.schemas
    assert {r["ticker"] for r in bigquery_client_fake.rows[MAIN]} == {"AAPL", "MSFT"}


@pytest.mark.unit
def test_repeated_sync_keeps_one_row_per_ticker_date(bigquery_client_fake, bigquery_test_config, record_factory):
    """A second write for the same key updates the row instead of adding one"""
    first = [record_factory.build(payload={"totalRevenue": 1.0})]
    second = [record_factory.build(payload={"totalRevenue": 5.0})]

    for batch in (first, second):
        FinancialsTableManager(bigquery_client_fake, "quarterly", bigquery_test_config).sync(batch, infer_schema(batch))

    rows = bigquery_client_fake.rows[MAIN]
    assert len(rows) == 1
    assert rows[0]["totalRevenue"] == 5.0
    assert rows[0]["date"] == "2024-03-31 20:00:00.000+00:00"


@pytest.mark.unit
def test_temp_table_dropped_when_merge_fails(manager, bigquery_client_fake, record_factory):
    bigquery_client_fake.fail_merge = True
    records = [record_factory.build()]

    with pytest.raises(AnalyticalWriteError):
        manager.sync(records, infer_schema(records))

    assert bigquery_client_fake.deleted == [manager.temp_table_id]
    assert manager.temp_table_id not in bigquery_client_fake.schemas


@pytest.mark.unit
def test_row_level_insert_errors_raise_and_still_drop_temp(manager, bigquery_client_fake, record_factory):
    bigquery_client_fake.insert_errors = [{"index": 0, "errors": [{"reason": "invalid"}]}]
    records = [record_factory.build()]

    with pytest.raises(AnalyticalWriteError):
        manager.sync(records, infer_schema(records))

    assert bigquery_client_fake.deleted == [manager.temp_table_id]
    assert not any("MERGE" in q for q in bigquery_client_fake.queries)


@pytest.mark.unit
def test_drop_failure_is_logged_not_raised(manager, bigquery_client_fake, record_factory):
    bigquery_client_fake.fail_delete = True
    records = [record_factory.build()]

    assert manager.sync(records, infer_schema(records)) == 1


@pytest.mark.unit
def test_inserts_in_chunks_of_500(manager, bigquery_client_fake, record_factory):
    records = [record_factory.build(ticker=f"T{i}", symbol=f"T{i}") for i in range(1200)]

    manager.sync(records, infer_schema(records))

    sizes = [n for table_id, n in bigquery_client_fake.insert_calls if table_id == manager.temp_table_id]
    assert sizes == [500, 500, 200]


@pytest.mark.unit
def test_existing_table_gains_new_numeric_columns(bigquery_client_fake, bigquery_test_config, record_factory):
    bigquery_client_fake.schemas[MAIN] = [
        bigquery.SchemaField("ticker", "STRING"),
        bigquery.SchemaField("symbol", "STRING"),
        bigquery.SchemaField("date", "TIMESTAMP"),
        bigquery.SchemaField("totalRevenue", "FLOAT64"),
    ]
    bigquery_client_fake.rows[MAIN] = []
    records = [record_factory.build(payload={"totalRevenue": 1.0, "ebitda": 3.0})]

    FinancialsTableManager(bigquery_client_fake, "quarterly", bigquery_test_config).sync(
        records, infer_schema(records)
    )

    assert bigquery_client_fake.update_calls == 1
    assert bigquery_client_fake.column_names(MAIN)[-1] == "ebitda"
    assert MAIN not in bigquery_client_fake.created


@pytest.mark.unit
def test_merge_statement_lists_every_schema_column(manager, bigquery_client_fake, record_factory):
    """Sparse rows still produce a MERGE over the full inferred schema"""
    records = [
        record_factory.build(ticker="A", symbol="A", payload={"totalRevenue": 1.0}),
        record_factory.build(ticker="B", symbol="B", payload={"ebitda": 2.0}),
    ]

    manager.sync(records, infer_schema(records))

    merge = next(q for q in bigquery_client_fake.queries if "MERGE" in q)
    for column in ("ticker", "symbol", "date", "totalRevenue", "ebitda"):
        assert f"T.`{column}` = S.`{column}`" in merge
    assert "ON T.`ticker` = S.`ticker` AND T.`date` = S.`date`" in merge


@pytest.mark.unit
def test_empty_records_skip_all_calls(manager, bigquery_client_fake):
    assert manager.sync([], infer_schema([])) == 0
    assert bigquery_client_fake.created == []
    assert bigquery_client_fake.queries == []


@pytest.mark.unit
def test_filter_record_keeps_schema_fields_and_coerces(manager, record_factory):
    record = record_factory.build(
        payload={
            "totalRevenue": "123.5",
            "netIncome": None,
            "ebitda": "n/a",
            "isRestated": True,
            "grossProfit": float("nan"),
            "currency_symbol": "USD",
            "notInSchema": 1.0,
        }
    )
    schema = infer_schema(
        [
            record_factory.build(
                payload={"totalRevenue": 1, "netIncome": 1, "ebitda": 1, "isRestated": 1, "grossProfit": 1}
            )
        ]
    )

    row = manager.filter_record(record, schema)

    assert row == {
        "ticker": "AAPL",
        "symbol": "AAPL",
        "date": "2024-03-31 20:00:00.000+00:00",
        "totalRevenue": 123.5,
        "netIncome": None,
    }


@pytest.mark.unit
@pytest.mark.parametrize(
    "value, expected",
    [(1, 1.0), (2.5, 2.5), (" 3e2 ", 300.0), ("abc", None), (True, None), (float("inf"), None), ([1], None)],
)
def test_coerce_number(value, expected):
    assert coerce_number(value) == expected


@pytest.mark.unit
def test_format_timestamp_has_millis_and_utc_offset():
    value = datetime(2023, 6, 30, 20, 0, 0, 123456, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2023-06-30 20:00:00.123+00:00"


@pytest.mark.unit
def test_create_bigquery_client_requires_credentials():
    with pytest.raises(ValueError):
        create_bigquery_client(BigQueryConfig(CREDENTIALS_JSON=""))
    with pytest.raises(ValueError):
        create_bigquery_client(BigQueryConfig(CREDENTIALS_JSON="{not json"))


@pytest.mark.unit
def test_create_bigquery_client_uses_service_account_info(mocker):
    creds = mocker.patch(
        "stock_financials.database.bigquery_storage.service_account.Credentials.from_service_account_info"
    )
    client_cls = mocker.patch("stock_financials.database.bigquery_storage.bigquery.Client")

    create_bigquery_client(BigQueryConfig(CREDENTIALS_JSON='{"project_id": "p1", "type": "service_account"}'))

    creds.assert_called_once_with({"project_id": "p1", "type": "service_account"})
    client_cls.assert_called_once_with(credentials=creds.return_value, project="p1")


@pytest.mark.unit
def test_auth_refresh_failure_is_wrapped(manager, bigquery_client_fake, record_factory, mocker):
    mocker.patch.object(bigquery_client_fake, "get_table", side_effect=RefreshError("invalid_grant"))
    records = [record_factory.build()]

    with pytest.raises(AnalyticalWriteError) as exc_info:
        manager.sync(records, infer_schema(records))

    assert isinstance(exc_info.value.__cause__, RefreshError)
