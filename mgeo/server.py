# mgeo/server.py
"""
FastAPI host for the mgeo backend.

Scanner processes push observation sets to `/api/wifis` and `/api/cells`;
resolved fixes are served from `/api/location`.
"""

from contextlib import asynccontextmanager
from concurrent.futures import Executor
from typing import Callable, Optional

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from mgeo.engine.arbiter import Arbiter
from mgeo.engine.config import BackendConfig, SettingsFile
from mgeo.engine.errors import ConfigError
from mgeo.engine.reporter import LatestEstimateReporter
from mgeo.engine.session import SessionRegistry
from mgeo.transport.fetcher import Fetcher, HttpFetcher
from mgeo.utils.log import get_logger
from mgeo.utils.radio import calculate_asu, radio_type_name
from mgeo.utils.validate import CellObservation, WifiObservation

logger = get_logger(__name__)


def create_app(
    settings_path: Optional[str] = None,
    fetcher: Optional[Fetcher] = None,
    executor_factory: Optional[Callable[[], Executor]] = None,
) -> FastAPI:
    """
    Build a FastAPI instance owning one arbiter.

    The arbiter is started and registered when the app starts up, and
    unregistered and stopped on shutdown.
    """
    config_source = SettingsFile(settings_path).load if settings_path else BackendConfig.default
    if fetcher is None:
        # timeout follows the arbiter's live config across reloads
        fetcher = HttpFetcher(timeout_s=lambda: arbiter.config.timeout_s)
    reporter = LatestEstimateReporter()
    kwargs = {"executor_factory": executor_factory} if executor_factory else {}
    arbiter = Arbiter(fetcher, reporter, config_source=config_source, **kwargs)
    registry = SessionRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        arbiter.start()
        registry.register(arbiter)
        logger.info("Backend session started")
        try:
            yield
        finally:
            registry.unregister(arbiter)
            arbiter.stop()
            logger.info("Backend session stopped")

    app = FastAPI(lifespan=lifespan)
    app.state.arbiter = arbiter
    app.state.reporter = reporter
    app.state.fetcher = fetcher
    app.state.registry = registry

    @app.get("/api/status", response_class=JSONResponse)
    async def status(request: Request) -> JSONResponse:
        arb: Arbiter = request.app.state.arbiter
        return JSONResponse(
            status_code=200,
            content={"status": "ok", "running": arb.running, "in_flight": arb.in_flight},
        )

    @app.post("/api/wifis", response_class=JSONResponse)
    async def post_wifis(request: Request, wifis: list[WifiObservation]) -> JSONResponse:
        dispatched = request.app.state.arbiter.on_wifis_changed(wifis)
        return JSONResponse(status_code=200, content={"dispatched": dispatched})

    @app.post("/api/cells", response_class=JSONResponse)
    async def post_cells(request: Request, cells: list[CellObservation]) -> JSONResponse:
        dispatched = request.app.state.arbiter.on_cells_changed(cells)
        return JSONResponse(status_code=200, content={"dispatched": dispatched})

    @app.get("/api/snapshot", response_class=JSONResponse)
    async def get_snapshot(request: Request) -> JSONResponse:
        """
        return the current observation sets; cells carry radio name and ASU.
        """
        snapshot = request.app.state.arbiter.store.snapshot()
        wifis = [w.model_dump() for w in sorted(snapshot.wifis, key=lambda o: o.identity)]
        cells = [
            {
                **c.model_dump(mode="json"),
                "radio_name": radio_type_name(c.radio),
                "asu": calculate_asu(c),
            }
            for c in sorted(snapshot.cells, key=lambda o: o.identity)
        ]
        return JSONResponse(
            status_code=200,
            content={"wifis": wifis, "cells": cells, "captured_at": snapshot.captured_at},
        )

    @app.get("/api/location", response_class=JSONResponse)
    async def get_location(request: Request) -> JSONResponse:
        reporter: LatestEstimateReporter = request.app.state.reporter
        latest = reporter.latest
        if latest is None:
            return JSONResponse(status_code=404, content={"detail": "no location yet"})
        return JSONResponse(
            status_code=200,
            content={**latest.model_dump(), "reports": reporter.count},
        )

    @app.post("/api/config/reload", response_class=JSONResponse)
    async def reload_config(request: Request) -> JSONResponse:
        try:
            reloaded = request.app.state.registry.reload_configuration()
        except ConfigError as exc:
            logger.warning("Reload failed: %s", exc)
            return JSONResponse(status_code=400, content={"detail": str(exc)})
        return JSONResponse(status_code=200, content={"reloaded": reloaded})

    return app
