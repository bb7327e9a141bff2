"""
FastAPI application factory and the endpoints that do not need a cube
session: health, serial port management and the protocol traffic log.
"""

import itertools
import logging
import threading
import time
from typing import Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ledcube_sync import __version__
from ledcube_sync.api.models import make_response
from ledcube_sync.config.models import AppConfig
from ledcube_sync.protocol.logger import get_protocol_logger
from ledcube_sync.protocol.port_scanner import list_available_ports, scan_for_cube
from ledcube_sync.utils.exceptions import InvalidValueError


logger = logging.getLogger(__name__)

_transaction_ids = itertools.count(1)
_transaction_lock = threading.Lock()


def get_next_transaction_id() -> int:
    """Monotonic ServerTransactionID shared by every response."""
    with _transaction_lock:
        return next(_transaction_ids)


management = APIRouter(prefix="/api/v1", tags=["management"])


@management.get("/health")
async def health_check():
    return {"status": "ok", "version": __version__}


@management.get("/management/ports")
def get_available_ports():
    """Serial ports present on this machine, Bluetooth included."""
    ports = list_available_ports(include_bluetooth=True)
    return make_response([p.to_dict() for p in ports], get_next_transaction_id())


@management.post("/management/scan")
def scan_ports(request: Request):
    """
    Probe every serial port for a cube.

    The port of a connected session is skipped; probing it would interleave
    with whatever transfer is running there.
    """
    config: AppConfig = request.app.state.config
    cube = getattr(request.app.state, "cube", None)
    in_use = cube.port_name if cube is not None and cube.connected else None

    started = time.monotonic()
    cubes = scan_for_cube(config.serial, skip_ports=[in_use] if in_use else None)
    return {
        "Value": [c.to_dict() for c in cubes],
        "scan_duration_ms": int((time.monotonic() - started) * 1000),
        "current_port": in_use,
    }


@management.get("/protocol/log")
async def get_protocol_log(limit: int = Query(100, ge=1, le=1000)):
    """Recent TX/RX units, oldest first, with counters."""
    protocol_logger = get_protocol_logger()
    return {
        "Value": protocol_logger.get_messages(limit=limit),
        "stats": protocol_logger.get_stats(),
    }


@management.delete("/protocol/log")
async def clear_protocol_log():
    get_protocol_logger().clear()
    return make_response(True, get_next_transaction_id())


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the application with middleware, the error envelope and the
    management endpoints. The cube and simulator routers are included by
    the caller, which also sets app.state.cube and app.state.simulator.
    """
    app = FastAPI(
        title="LED Cube Sync",
        description="Download and upload LED cube animations over a serial link",
        version=__version__,
    )
    app.state.config = config or AppConfig()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def envelope_for_bad_request(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{' -> '.join(str(part) for part in item['loc'])}: {item['msg']}"
            for item in exc.errors()
        )
        logger.warning(f"Rejected request to {request.url.path}: {problems}")
        error = InvalidValueError(f"Invalid request: {problems}")
        body = make_response(None, get_next_transaction_id(), error)
        return JSONResponse(status_code=422, content=body.model_dump())

    @app.exception_handler(Exception)
    async def envelope_for_unhandled(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        body = make_response(None, get_next_transaction_id(), exc)
        return JSONResponse(status_code=500, content=body.model_dump())

    app.include_router(management)
    return app
