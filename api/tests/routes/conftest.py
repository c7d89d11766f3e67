"""Route test configuration: rate limiting off unless a test opts back in."""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Keep slowapi counters from leaking between route tests."""
    with patch("core.ratelimit.limiter.enabled", False):
        yield
