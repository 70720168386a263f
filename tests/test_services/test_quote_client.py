"""Tests for the quote source adapter."""

import asyncio
from unittest.mock import patch

import httpx
import pytest

from bandwatch.exceptions import ParseError, ProviderError, TransportError
from bandwatch.services.quotes import QuoteSourceAdapter
from bandwatch.services.quotes.client import parse_symbol_keys
from bandwatch.services.quotes.models import validate_chart_payload

from ..helpers import FLAT_BAND_CLOSES, make_chart_payload, make_error_payload


class TestFetchPayload:
    """Test single-key fetches."""

    @pytest.mark.asyncio
    async def test_returns_payload(self, adapter, fake_provider):
        payload = make_chart_payload(FLAT_BAND_CLOSES, symbol="MSFT")
        fake_provider.set_payload("MSFT", payload)

        assert await adapter.fetch_payload("MSFT") == payload

    @pytest.mark.asyncio
    async def test_request_shape(self, adapter, fake_provider):
        fake_provider.set_payload("EURUSD=X", make_chart_payload(FLAT_BAND_CLOSES))

        await adapter.fetch_payload("EURUSD=X")

        request = fake_provider.requests[0]
        assert request.url.host == "quotes.test"
        assert request.url.path == "/v8/finance/chart/EURUSD=X"
        assert request.url.params["interval"] == "5m"
        assert request.url.params["range"] == "5d"
        assert request.url.params["includePrePost"] == "false"
        assert "Mozilla" in request.headers["User-Agent"]

    @pytest.mark.asyncio
    async def test_fetch_decodes_series(self, adapter, fake_provider):
        fake_provider.set_payload(
            "MSFT", make_chart_payload([1.0, None, 3.0], price=3.5)
        )

        series = await adapter.fetch("MSFT")

        assert series.regular_market_price == 3.5
        assert series.closes == (1.0, None, 3.0)
        assert series.price_series().closes == (1.0, 3.0)


class TestCaching:
    """Repeat requests inside the TTL never reach the provider."""

    @pytest.mark.asyncio
    async def test_second_fetch_served_from_cache(
        self, adapter, fake_provider, fake_clock
    ):
        fake_provider.set_payload("MSFT", make_chart_payload(FLAT_BAND_CLOSES))

        first = await adapter.fetch_payload("MSFT")
        fake_clock.advance(30)
        second = await adapter.fetch_payload("MSFT")

        assert first == second
        assert fake_provider.calls == ["MSFT"]
        assert adapter.upstream_calls == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, adapter, fake_provider, fake_clock):
        fake_provider.set_payload("MSFT", make_chart_payload(FLAT_BAND_CLOSES))

        await adapter.fetch_payload("MSFT")
        fake_clock.advance(55)
        await adapter.fetch_payload("MSFT")

        assert fake_provider.calls == ["MSFT", "MSFT"]

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_call(self, adapter, fake_provider):
        fake_provider.set_payload("MSFT", make_chart_payload(FLAT_BAND_CLOSES))

        results = await asyncio.gather(
            *(adapter.fetch_payload("MSFT") for _ in range(5))
        )

        assert len({id(r) for r in results}) == 1
        assert fake_provider.calls == ["MSFT"]

    @pytest.mark.asyncio
    async def test_failures_not_cached(self, adapter, fake_provider, fake_clock):
        fake_provider.set_status("MSFT", 503)
        with pytest.raises(TransportError):
            await adapter.fetch_payload("MSFT")

        fake_provider.set_payload("MSFT", make_chart_payload(FLAT_BAND_CLOSES))
        fake_clock.advance(1)
        await adapter.fetch_payload("MSFT")

        assert fake_provider.calls == ["MSFT", "MSFT"]

    @pytest.mark.asyncio
    async def test_unknown_keys_leave_no_state(self, adapter, fake_provider):
        for index in range(500):
            with pytest.raises(TransportError):
                await adapter.fetch_payload(f"JUNK{index}")

        stats = adapter.cache_stats()
        assert stats["locks"] == 0
        assert stats["size"] == 0

    @pytest.mark.asyncio
    async def test_cached_keys_bounded_by_ttl(self, adapter, fake_provider, fake_clock):
        for index in range(40):
            key = f"K{index}"
            fake_provider.set_payload(key, make_chart_payload(FLAT_BAND_CLOSES))
            await adapter.fetch_payload(key)

        # 4 s between call starts means at most 14 keys inside a 55 s TTL
        stats = adapter.cache_stats()
        assert stats["size"] <= 14
        assert stats["locks"] == stats["size"]

    @pytest.mark.asyncio
    async def test_payload_validated_once_per_upstream_call(
        self, adapter, fake_provider
    ):
        fake_provider.set_payload("MSFT", make_chart_payload(FLAT_BAND_CLOSES))

        with patch(
            "bandwatch.services.quotes.client.validate_chart_payload",
            wraps=validate_chart_payload,
        ) as mock_validate:
            await adapter.fetch_batch(["MSFT"])
            await adapter.fetch("MSFT")
            await adapter.fetch_payload("MSFT")

        mock_validate.assert_called_once()

    @pytest.mark.asyncio
    async def test_clear_cache(self, adapter, fake_provider):
        fake_provider.set_payload("MSFT", make_chart_payload(FLAT_BAND_CLOSES))

        await adapter.fetch_payload("MSFT")
        adapter.clear_cache()
        await adapter.fetch_payload("MSFT")

        assert len(fake_provider.calls) == 2
        assert adapter.cache_stats()["upstream_calls"] == 2


class TestThrottling:
    """Upstream call starts are at least the minimum gap apart."""

    @pytest.mark.asyncio
    async def test_sequential_calls_spaced(self, adapter, fake_provider, fake_clock):
        for key in ("A", "B", "C"):
            fake_provider.set_payload(key, make_chart_payload(FLAT_BAND_CLOSES))

        for key in ("A", "B", "C"):
            await adapter.fetch_payload(key)

        times = fake_provider.call_times
        assert [b - a for a, b in zip(times, times[1:])] == [4.0, 4.0]

    @pytest.mark.asyncio
    async def test_concurrent_distinct_keys_spaced(
        self, adapter, fake_provider, fake_clock
    ):
        keys = ["A", "B", "C", "D"]
        start = fake_clock()
        for key in keys:
            fake_provider.set_payload(key, make_chart_payload(FLAT_BAND_CLOSES))

        await asyncio.gather(*(adapter.fetch_payload(key) for key in keys))

        assert sorted(fake_provider.calls) == keys
        assert adapter.throttle.last_request_at - start >= 4.0 * (len(keys) - 1)

    @pytest.mark.asyncio
    async def test_cache_hits_not_throttled(self, adapter, fake_provider, fake_clock):
        fake_provider.set_payload("A", make_chart_payload(FLAT_BAND_CLOSES))

        await adapter.fetch_payload("A")
        await adapter.fetch_payload("A")

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_failed_calls_still_count_toward_gap(
        self, adapter, fake_provider
    ):
        fake_provider.set_status("A", 500)
        fake_provider.set_payload("B", make_chart_payload(FLAT_BAND_CLOSES))

        with pytest.raises(TransportError):
            await adapter.fetch_payload("A")
        await adapter.fetch_payload("B")

        first, second = fake_provider.call_times
        assert second - first >= 4.0


class TestErrors:
    """Test error mapping for the provider's failure modes."""

    @pytest.mark.asyncio
    async def test_http_status(self, adapter, fake_provider):
        fake_provider.set_status("MSFT", 429)

        with pytest.raises(TransportError) as exc_info:
            await adapter.fetch_payload("MSFT")

        assert exc_info.value.message == "HTTP 429"
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_timeout(self, adapter, fake_provider):
        fake_provider.set_exception("MSFT", httpx.ReadTimeout("timed out"))

        with pytest.raises(TransportError, match="Yahoo request timeout"):
            await adapter.fetch_payload("MSFT")

    @pytest.mark.asyncio
    async def test_network_error(self, adapter, fake_provider):
        fake_provider.set_exception("MSFT", httpx.ConnectError("connection refused"))

        with pytest.raises(TransportError, match="connection refused"):
            await adapter.fetch_payload("MSFT")

    @pytest.mark.asyncio
    async def test_invalid_json(self, adapter, fake_provider):
        fake_provider.set_raw("MSFT", b"<html>blocked</html>")

        with pytest.raises(ParseError, match="Invalid JSON"):
            await adapter.fetch_payload("MSFT")

    @pytest.mark.asyncio
    async def test_provider_envelope(self, adapter, fake_provider):
        fake_provider.set_payload(
            "NOPE", make_error_payload("Not Found", "No data found, symbol may be delisted")
        )

        with pytest.raises(ProviderError) as exc_info:
            await adapter.fetch_payload("NOPE")

        assert exc_info.value.code == "Not Found"
        assert exc_info.value.message == "No data found, symbol may be delisted"

    @pytest.mark.asyncio
    async def test_missing_result(self, adapter, fake_provider):
        fake_provider.set_payload("MSFT", {"chart": {"result": [], "error": None}})

        with pytest.raises(ParseError, match="No chart data"):
            await adapter.fetch_payload("MSFT")

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, adapter, fake_provider):
        fake_provider.set_payload("MSFT", {"quotes": []})

        with pytest.raises(ParseError, match="Unexpected chart payload"):
            await adapter.fetch_payload("MSFT")


class TestFetchBatch:
    """Test batch resolution with partial failure."""

    @pytest.mark.asyncio
    async def test_partial_failure(self, adapter, fake_provider):
        fake_provider.set_payload("A", make_chart_payload(FLAT_BAND_CLOSES))
        fake_provider.set_status("B", 500)
        fake_provider.set_payload("C", make_chart_payload(FLAT_BAND_CLOSES))

        results = await adapter.fetch_batch(["A", "B", "C"])

        assert list(results) == ["A", "B", "C"]
        assert results["A"].ok and results["C"].ok
        assert not results["B"].ok
        assert results["B"].to_dict() == {"error": "HTTP 500"}
        assert results["A"].series.price_series().closes == tuple(FLAT_BAND_CLOSES)

    @pytest.mark.asyncio
    async def test_batch_uses_cache(self, adapter, fake_provider):
        fake_provider.set_payload("A", make_chart_payload(FLAT_BAND_CLOSES))

        await adapter.fetch_payload("A")
        results = await adapter.fetch_batch(["A"])

        assert results["A"].ok
        assert fake_provider.calls == ["A"]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_injected_client_left_open(self, test_settings, fake_provider):
        client = httpx.AsyncClient(transport=httpx.MockTransport(fake_provider))
        adapter = QuoteSourceAdapter(settings=test_settings, client=client)

        await adapter.aclose()

        assert not client.is_closed
        await client.aclose()


def test_parse_symbol_keys():
    assert parse_symbol_keys(" EURUSD=X, ,MSFT,") == ["EURUSD=X", "MSFT"]
