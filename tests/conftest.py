"""Shared test configuration and fixtures."""

from typing import List
from unittest.mock import patch

import httpx
import pytest

from bandwatch.config.settings import Settings, get_settings
from bandwatch.config.symbols import AssetClass, SymbolSpec
from bandwatch.services.quotes import QuoteSourceAdapter

from .helpers import FakeClock, FakeProvider


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        environment="testing",
        poll_interval_seconds=60,
        cache_ttl_seconds=55,
        min_request_gap_seconds=4.0,
        request_timeout_seconds=10.0,
        quote_base_url="https://quotes.test",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_provider(fake_clock) -> FakeProvider:
    return FakeProvider(clock=fake_clock)


@pytest.fixture
def adapter(test_settings, fake_clock, fake_provider) -> QuoteSourceAdapter:
    """Adapter wired to the fake provider and fake clock."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_provider))
    return QuoteSourceAdapter(
        settings=test_settings,
        client=client,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


@pytest.fixture
def sample_symbols() -> List[SymbolSpec]:
    return [
        SymbolSpec("EURUSD", AssetClass.FOREX, "EUR/USD", "EURUSD=X"),
        SymbolSpec("MSFT", AssetClass.STOCK, "Microsoft", "MSFT"),
        SymbolSpec("XAUUSD", AssetClass.FOREX, "Gold/USD", "GC=F"),
    ]


@pytest.fixture(autouse=True)
def clean_settings_cache():
    """Clear cached settings between tests to avoid state pollution."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def isolated_env():
    """Keep BANDWATCH_* variables from the host out of the tests."""
    with patch.dict("os.environ", {"BANDWATCH_ENVIRONMENT": "testing"}):
        yield
