import time

import pytest

# Load shared fixtures from tests._fixtures so pytest discovers them
pytest_plugins = [
    "tests._fixtures.fixtures",
    "tests._fixtures.frozen_time",
]


@pytest.fixture(autouse=True)
def no_sleep(mocker):
    """Prevent actual sleeping in tests to speed up polling/fallback paths."""
    mocker.patch.object(time, "sleep", lambda s: None)


@pytest.fixture(autouse=True)
def block_external_services(mocker):
    """Autouse fixture: prevent any test from reaching MongoDB, BigQuery or the network.

    Tests that exercise these seams patch the same targets with their own fakes.
    """

    def _refuse(*args, **kwargs):
        raise RuntimeError("external service access is disabled in tests")

    mocker.patch("requests.Session.send", side_effect=_refuse)
    mocker.patch("stock_financials.database.connection.MongoClient", side_effect=_refuse)
    mocker.patch("stock_financials.database.bigquery_storage.bigquery.Client", side_effect=_refuse)
    yield
