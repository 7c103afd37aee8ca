import pytest

from stock_financials.utils.retry import RetryConfig, calculate_delay, poll_until


@pytest.mark.unit
def test_calculate_delay_doubles_and_caps():
    config = RetryConfig(base_delay=1.0, max_delay=5.0)

    assert [calculate_delay(n, config) for n in range(1, 5)] == [2.0, 4.0, 5.0, 5.0]


@pytest.mark.unit
def test_calculate_delay_jitter_stays_in_range():
    config = RetryConfig(base_delay=1.0, jitter=True)

    for _ in range(20):
        assert 1.5 <= calculate_delay(1, config) <= 2.5


@pytest.mark.unit
def test_poll_until_waits_before_each_check(mocker):
    sleep = mocker.patch("stock_financials.utils.retry.time.sleep")
    check = mocker.Mock(side_effect=[False, True])

    assert poll_until(check, RetryConfig(max_attempts=3), "table x") is True
    assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]


@pytest.mark.unit
def test_poll_until_gives_up(mocker):
    sleep = mocker.patch("stock_financials.utils.retry.time.sleep")
    check = mocker.Mock(return_value=False)

    assert poll_until(check, RetryConfig(max_attempts=3), "table x") is False
    assert check.call_count == 3
    assert sleep.call_count == 3
