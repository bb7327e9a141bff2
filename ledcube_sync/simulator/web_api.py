"""
Web API endpoints for controlling the simulated cube.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ledcube_sync.animation.models import AnimationSet
from ledcube_sync.config.models import FaultKind
from ledcube_sync.simulator.mock_cube import MockCubeDevice


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/simulator", tags=["simulator"])


def get_simulator(request: Request) -> MockCubeDevice:
    """Get simulator from app.state."""
    simulator = getattr(request.app.state, "simulator", None)
    if simulator is None:
        raise HTTPException(status_code=503, detail="Simulator not available")
    return simulator


class FaultRequest(BaseModel):
    """Fault to inject into the next transfers."""
    reply_index: Optional[int] = Field(None, ge=0, description="Reply to sabotage, None to disable")
    kind: FaultKind = Field("drop", description="drop, error, corrupt or truncate")


@router.get("/status")
async def get_status(request: Request):
    """Get current simulator status."""
    return get_simulator(request).status()


@router.get("/animations")
async def get_animations(request: Request):
    """Animations held in the simulated cube's memory (no serial traffic)."""
    return get_simulator(request).animations.model_dump(mode="json")


@router.put("/animations")
async def set_animations(request: Request, animations: AnimationSet):
    """Load the simulated cube's memory directly."""
    simulator = get_simulator(request)
    simulator.animations = animations
    logger.info(f"[Web GUI] Simulator loaded with {len(animations)} animation(s)")
    return {"status": "ok", "animation_count": len(animations)}


@router.put("/faults")
async def set_fault(request: Request, fault: FaultRequest):
    """Arm (or disarm) fault injection."""
    simulator = get_simulator(request)
    simulator.set_fault(fault.reply_index, fault.kind)
    return {"status": "ok", "reply_index": fault.reply_index, "kind": fault.kind}


@router.post("/reset")
async def reset_simulator(request: Request):
    """Power-cycle the simulated cube."""
    get_simulator(request).reset()
    return {"status": "ok"}
