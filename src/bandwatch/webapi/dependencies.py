"""Request-scoped access to the application's scanner objects."""

from fastapi import Request

from ..services.quotes import QuoteSourceAdapter
from ..services.scanner import ScanOrchestrator


def get_orchestrator(request: Request) -> ScanOrchestrator:
    return request.app.state.orchestrator


def get_adapter(request: Request) -> QuoteSourceAdapter:
    return request.app.state.orchestrator.adapter
