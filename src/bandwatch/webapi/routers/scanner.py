"""Read-only scanner output endpoints."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ...services.scanner import ScanOrchestrator
from ..dependencies import get_orchestrator

router = APIRouter(prefix="/api/scanner", tags=["scanner"])


@router.get("")
async def get_scanner_view(
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Full consumer view: snapshot, counters, fetch log and last alert."""
    view = orchestrator.view()
    payload = view.to_dict()
    payload["order"] = [result.symbol for result in view.sorted_results()]
    return payload


@router.get("/alerts")
async def get_active_alerts(
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> List[Dict[str, Any]]:
    """Symbols currently near or beyond a band, strongest first."""
    return [
        result.to_dict()
        for result in orchestrator.view().sorted_results()
        if result.is_alert
    ]


@router.get("/{symbol}")
async def get_symbol_result(
    symbol: str,
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Latest result for one ticker."""
    result = orchestrator.get_result(symbol)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No scan result for '{symbol}'")
    return result.to_dict()
