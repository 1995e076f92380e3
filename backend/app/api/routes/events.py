from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.db import models
from backend.app.db.session import get_session
from backend.app.services.pipeline import ensure_utc

MAX_LIMIT = 1000

router = APIRouter()


def check_limit(limit: int) -> None:
    if limit < 1 or limit > MAX_LIMIT:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid limit parameter. Must be between 1 and {MAX_LIMIT}.",
        )


def serialize_event(event: models.Event, vehicle: Optional[models.Vehicle] = None) -> Dict[str, Any]:
    row = {
        "id": event.id,
        "vehicle_id": event.vehicle_id,
        "event_type": event.event_type,
        "timestamp": ensure_utc(event.timestamp).isoformat(),
        "metadata": event.meta or {},
    }
    if vehicle is not None:
        row["vehicle"] = {
            "vin": vehicle.vin,
            "make": vehicle.make,
            "model": vehicle.model,
            "year": vehicle.year,
        }
    return row


@router.get("")
async def list_events(limit: int = 50, db: Session = Depends(get_session)):
    check_limit(limit)
    total = db.execute(select(func.count()).select_from(models.Event)).scalar_one()
    results = db.execute(
        select(models.Event, models.Vehicle)
        .join(models.Vehicle, models.Vehicle.id == models.Event.vehicle_id)
        .order_by(models.Event.timestamp.desc())
        .limit(limit)
    ).all()
    return {
        "data": [serialize_event(event, vehicle) for event, vehicle in results],
        "count": total,
    }
