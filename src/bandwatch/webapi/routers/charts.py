"""Cached, throttled chart endpoints in the provider's batch wire shape."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...services.quotes import QuoteSourceAdapter, parse_symbol_keys
from ..dependencies import get_adapter

router = APIRouter(prefix="/api", tags=["charts"])


@router.get("/chart")
async def get_chart(
    symbol: Optional[str] = None,
    adapter: QuoteSourceAdapter = Depends(get_adapter),
):
    """Chart payload for one provider key; upstream errors become 502."""
    if not symbol or not symbol.strip():
        return JSONResponse(
            status_code=400, content={"error": "Missing symbol parameter"}
        )
    return await adapter.fetch_payload(symbol.strip())


@router.get("/charts")
async def get_charts(
    symbols: Optional[str] = None,
    adapter: QuoteSourceAdapter = Depends(get_adapter),
):
    """Mapping of each requested key to its payload or ``{"error": message}``."""
    keys = parse_symbol_keys(symbols or "")
    if not keys:
        return JSONResponse(
            status_code=400, content={"error": "Missing symbols parameter"}
        )

    entries = await adapter.fetch_batch(keys)
    return {key: entry.to_dict() for key, entry in entries.items()}
