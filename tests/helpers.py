"""Test doubles and payload builders shared by the test suite."""

import asyncio
from typing import Callable, Dict, List, Optional
from urllib.parse import unquote

import httpx

# 10 x 98 and 10 x 102: mean 100, population stddev 2, bands {96, 100, 104}
FLAT_BAND_CLOSES = [98.0, 102.0] * 10


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


def make_chart_payload(
    closes: List[Optional[float]],
    symbol: str = "TEST",
    price: Optional[float] = None,
    start: int = 1_700_000_000,
    step: int = 300,
) -> Dict:
    """Build a chart document in the provider's shape."""
    valid = [c for c in closes if c is not None]
    return {
        "chart": {
            "result": [
                {
                    "meta": {
                        "symbol": symbol,
                        "regularMarketPrice": (
                            price if price is not None else (valid[-1] if valid else None)
                        ),
                    },
                    "timestamp": [start + i * step for i in range(len(closes))],
                    "indicators": {
                        "quote": [
                            {
                                "open": closes,
                                "high": closes,
                                "low": closes,
                                "close": closes,
                            }
                        ]
                    },
                }
            ],
            "error": None,
        }
    }


def make_error_payload(code: str = "Not Found", description: str = "No data found") -> Dict:
    return {"chart": {"result": None, "error": {"code": code, "description": description}}}


class FakeProvider:
    """httpx MockTransport handler serving canned responses per symbol key."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.responses: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: List[str] = []
        self.call_times: List[float] = []
        self.requests: List[httpx.Request] = []

    def set_payload(self, key: str, payload: Dict) -> None:
        self.responses[key] = lambda request: httpx.Response(200, json=payload)

    def set_status(self, key: str, status_code: int) -> None:
        self.responses[key] = lambda request: httpx.Response(
            status_code, json={"error": "upstream"}
        )

    def set_raw(self, key: str, body: bytes) -> None:
        self.responses[key] = lambda request: httpx.Response(200, content=body)

    def set_exception(self, key: str, exc: Exception) -> None:
        def raise_exc(request):
            raise exc

        self.responses[key] = raise_exc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        key = unquote(request.url.path.rsplit("/", 1)[-1])
        self.calls.append(key)
        self.requests.append(request)
        if self.clock is not None:
            self.call_times.append(self.clock())
        responder = self.responses.get(key)
        if responder is None:
            return httpx.Response(404, json={"error": "unknown symbol"})
        return responder(request)
