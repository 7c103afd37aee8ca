import random

import pytest

from stock_financials.data_collector.config import BigQueryConfig, EodhdConfig, MongoConfig
from stock_financials.database.financials_repository import FinancialsRepository
from tests._fixtures.db import BigQueryClientFake, DatabaseFake
from tests._fixtures.factories import FinancialRecordFactory


# Central deterministic seed fixture for all tests (Polyfactory + random)
@pytest.fixture(scope="session", autouse=True)
def factory_seed():
    """Seed Python's RNG and the model factories once per session; returns the seed (42)."""
    seed = 42
    random.seed(seed)
    FinancialRecordFactory.seed_random(seed)
    return seed


@pytest.fixture
def eodhd_test_config():
    """EodhdConfig with a dummy token and the default US exchange."""
    return EodhdConfig(API_TOKEN="test-token", EXCHANGE="US", BATCH_PACING_SECONDS=1.0)


@pytest.fixture
def mongo_test_config():
    return MongoConfig(LOCAL_DB="mongodb://localhost:27017/stock_data", CLOUD_DB="", DB_TYPE="local")


@pytest.fixture
def bigquery_test_config():
    return BigQueryConfig(CREDENTIALS_JSON='{"project_id": "test-project"}')


@pytest.fixture
def database_fake():
    """Fresh in-memory stand-in for a pymongo Database."""
    return DatabaseFake()


@pytest.fixture
def financials_repository(database_fake):
    return FinancialsRepository(database_fake)


@pytest.fixture
def bigquery_client_fake():
    """Fresh in-memory stand-in for google.cloud.bigquery.Client."""
    return BigQueryClientFake()


@pytest.fixture
def record_factory():
    return FinancialRecordFactory
