"""
API endpoints for the cube.

Transfers run in FastAPI's thread pool (plain def handlers) because they
block on serial I/O for up to several minutes.
"""

import logging

from fastapi import APIRouter, Depends, Request

from ledcube_sync.animation.models import AnimationSet
from ledcube_sync.api.app import get_next_transaction_id
from ledcube_sync.api.error_mapper import ERROR_TRANSFER_FAILED
from ledcube_sync.api.models import ApiResponse, make_response
from ledcube_sync.cube.controller import CubeController


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/cube", tags=["cube"])


def get_cube(request: Request) -> CubeController:
    """Dependency to get cube controller from app.state."""
    cube = getattr(request.app.state, "cube", None)
    if cube is None:
        raise RuntimeError("Cube controller not initialized")
    return cube


def _failure(cube: CubeController, what: str, value=None) -> ApiResponse:
    error = cube.last_error
    if error is None:
        return ApiResponse(
            Value=value,
            ServerTransactionID=get_next_transaction_id(),
            ErrorNumber=ERROR_TRANSFER_FAILED,
            ErrorMessage=f"{what} failed",
        )
    return make_response(value, get_next_transaction_id(), error)


@router.get("/status", response_model=ApiResponse)
def get_status(cube: CubeController = Depends(get_cube)):
    """Connection status, port and last failure."""
    return make_response(cube.status(), get_next_transaction_id())


@router.get("/notifications", response_model=ApiResponse)
def get_notifications(cube: CubeController = Depends(get_cube)):
    """Every failure reported since start-up."""
    return make_response(cube.notifications, get_next_transaction_id())


@router.put("/connect", response_model=ApiResponse)
def connect(cube: CubeController = Depends(get_cube)):
    """Open the serial session."""
    try:
        cube.connect()
        logger.info(f"PUT /connect -> {cube.port_name}")
        return make_response(True, get_next_transaction_id())
    except Exception as e:
        logger.error(f"Error in /connect: {e}")
        return make_response(False, get_next_transaction_id(), e)


@router.put("/disconnect", response_model=ApiResponse)
def disconnect(cube: CubeController = Depends(get_cube)):
    """Close the serial session."""
    cube.disconnect()
    return make_response(True, get_next_transaction_id())


@router.get("/probe", response_model=ApiResponse)
def probe(cube: CubeController = Depends(get_cube)):
    """Check that the cube answers."""
    try:
        if cube.probe():
            return make_response(True, get_next_transaction_id())
        return _failure(cube, "Probe", value=False)
    except Exception as e:
        logger.error(f"Error in /probe: {e}")
        return make_response(False, get_next_transaction_id(), e)


@router.get("/animations", response_model=ApiResponse)
def download_animations(cube: CubeController = Depends(get_cube)):
    """Download every animation stored on the cube."""
    try:
        animations = cube.download()
        if animations is None:
            return _failure(cube, "Download")
        logger.info(f"GET /animations -> {len(animations)} animation(s)")
        return make_response(animations.model_dump(mode="json"), get_next_transaction_id())
    except Exception as e:
        logger.error(f"Error in /animations: {e}")
        return make_response(None, get_next_transaction_id(), e)


@router.put("/animations", response_model=ApiResponse)
def upload_animations(animations: AnimationSet, cube: CubeController = Depends(get_cube)):
    """Replace the cube's animations with the request body."""
    try:
        if cube.upload(animations):
            logger.info(f"PUT /animations <- {len(animations)} animation(s)")
            return make_response(True, get_next_transaction_id())
        return _failure(cube, "Upload", value=False)
    except Exception as e:
        logger.error(f"Error in PUT /animations: {e}")
        return make_response(False, get_next_transaction_id(), e)


@router.delete("/animations", response_model=ApiResponse)
def clear_animations(cube: CubeController = Depends(get_cube)):
    """Erase every animation stored on the cube."""
    try:
        if cube.clear():
            return make_response(True, get_next_transaction_id())
        return _failure(cube, "Clear", value=False)
    except Exception as e:
        logger.error(f"Error in DELETE /animations: {e}")
        return make_response(False, get_next_transaction_id(), e)
