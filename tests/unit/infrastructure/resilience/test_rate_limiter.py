import logging
from unittest.mock import MagicMock

import pytest

from cmsclient.domain.errors import QuotaExceededError
from cmsclient.domain.events.api_events import QuotaThresholdReached
from cmsclient.infrastructure.resilience.rate_limiter import DEFAULT_MONTHLY_LIMIT, RateLimiter


def test_defaults():
    limiter = RateLimiter()
    assert limiter.monthly_limit == DEFAULT_MONTHLY_LIMIT == 10_000
    assert limiter.warning_threshold == 8_000
    assert limiter.count == 0
    assert limiter.remaining == 10_000


def test_limit_calls_pass_then_next_raises():
    limiter = RateLimiter(monthly_limit=5)
    for _ in range(5):
        limiter.record_request()
    assert limiter.count == 5
    assert limiter.remaining == 0

    with pytest.raises(QuotaExceededError) as exc_info:
        limiter.record_request()
    assert exc_info.value.count == 6
    assert exc_info.value.limit == 5
    # Rejected calls are still counted
    assert limiter.count == 6


def test_warning_logged_on_every_call_at_or_above_threshold(caplog):
    limiter = RateLimiter(monthly_limit=10)
    with caplog.at_level(logging.WARNING, logger="cmsclient.infrastructure.resilience.rate_limiter"):
        for _ in range(7):
            limiter.record_request()
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]
        limiter.record_request()
        limiter.record_request()
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2
    assert "8/10" in warnings[0].getMessage()


def test_threshold_event_dispatched():
    handler = MagicMock()
    limiter = RateLimiter(monthly_limit=5, event_handler=handler)
    for _ in range(4):
        limiter.record_request()
    handler.assert_called_once()
    event = handler.call_args.args[0]
    assert isinstance(event, QuotaThresholdReached)
    assert (event.count, event.limit) == (4, 5)


@pytest.mark.parametrize("kwargs", [{"monthly_limit": 0}, {"warning_ratio": 0}, {"warning_ratio": 1.5}])
def test_invalid_configuration_rejected(kwargs):
    with pytest.raises(ValueError):
        RateLimiter(**kwargs)
