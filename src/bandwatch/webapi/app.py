"""FastAPI application exposing the scanner's consumer view."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config.logging import get_logger
from ..config.settings import Settings, get_settings
from ..config.symbols import load_symbols
from ..events import EventBus, register_default_handlers
from ..scheduler import PeriodicScan
from ..services.quotes import QuoteSourceAdapter
from ..services.scanner import ScanOrchestrator
from .exceptions import setup_exception_handlers
from .health import router as health_router
from .models.responses import MessageResponse
from .routers import charts_router, scanner_router

logger = get_logger(__name__)


def build_orchestrator(settings: Optional[Settings] = None) -> ScanOrchestrator:
    """Wire the adapter, a dedicated event bus and the symbol list."""
    settings = settings or get_settings()
    event_bus = EventBus("scanner")
    register_default_handlers(event_bus)

    return ScanOrchestrator(
        symbols=load_symbols(settings.symbols_file),
        adapter=QuoteSourceAdapter(settings),
        event_bus=event_bus,
        settings=settings,
    )


def create_app(
    orchestrator: Optional[ScanOrchestrator] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Create the API application.

    Args:
        orchestrator: Scanner to expose (built from settings when omitted)
        start_scheduler: Whether the lifespan runs the periodic scan
    """
    orchestrator = orchestrator or build_orchestrator()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Bandwatch API", symbols=len(orchestrator.symbols))
        periodic: Optional[PeriodicScan] = None
        if start_scheduler:
            periodic = PeriodicScan(orchestrator)
            periodic.start()

        yield

        logger.info("Shutting down Bandwatch API")
        if periodic is not None:
            periodic.stop()
        await orchestrator.adapter.aclose()

    app = FastAPI(
        title="Bandwatch",
        description="Volatility band scanner with rate-limited quote polling",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(scanner_router)
    app.include_router(charts_router)

    @app.get("/", response_model=MessageResponse)
    async def root() -> MessageResponse:
        return MessageResponse(message="Bandwatch is running")

    return app
