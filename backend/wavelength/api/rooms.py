from __future__ import annotations

from fastapi import APIRouter, HTTPException

from wavelength.runtime import runtime
from wavelength.runtime_constants import SCALES
from wavelength.schemas.rooms import RoomSnapshotResponse, ScaleCatalogResponse

router = APIRouter(tags=["rooms"])


@router.get("/api/rooms/{room_code}", response_model=RoomSnapshotResponse)
async def room_snapshot(room_code: str) -> dict[str, object]:
    snapshot = await runtime.get_room_snapshot(room_code)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Room not found")
    snapshot.pop("type", None)
    return snapshot


@router.get("/api/scales", response_model=ScaleCatalogResponse)
async def scale_catalog() -> dict[str, object]:
    return {"count": len(SCALES), "scales": SCALES}
