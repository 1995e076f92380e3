from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.api.routes.events import check_limit, serialize_event
from backend.app.db import models
from backend.app.db.session import get_session
from backend.app.services.pipeline import (
    STAGES,
    days_on_market,
    days_since_acquisition,
    ensure_utc,
    holding_cost_to_date,
)

RECENT_EVENTS_LIMIT = 10

router = APIRouter()


def _number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value is not None else None


def serialize_vehicle(vehicle: models.Vehicle, now: datetime) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "vin": vehicle.vin,
        "make": vehicle.make,
        "model": vehicle.model,
        "year": vehicle.year,
        "mileage": vehicle.mileage,
        "acquisition_date": _iso(vehicle.acquisition_date),
        "acquisition_price": _number(vehicle.acquisition_price),
        "recon_start": _iso(vehicle.recon_start),
        "recon_done": _iso(vehicle.recon_done),
        "recon_vendor_id": vehicle.recon_vendor_id,
        "photos_done": _iso(vehicle.photos_done),
        "photo_vendor_id": vehicle.photo_vendor_id,
        "photo_quality_score": _number(vehicle.photo_quality_score),
        "listing_status": vehicle.listing_status,
        "listing_live_at": _iso(vehicle.listing_live_at),
        "listing_price": _number(vehicle.listing_price),
        "price_strategy": vehicle.price_strategy,
        "market_comp_index": _number(vehicle.market_comp_index),
        "deal_signed": _iso(vehicle.deal_signed),
        "funds_received": _iso(vehicle.funds_received),
        "holding_cost_per_day": _number(vehicle.holding_cost_per_day),
        "current_stage": vehicle.current_stage,
        "days_on_market": days_on_market(vehicle, now),
        "photo_url": vehicle.photo_url,
        # card grid fields, evaluated per request
        "days_since_acquisition": days_since_acquisition(vehicle, now),
        "holding_cost_to_date": holding_cost_to_date(vehicle, now),
    }


@router.get("")
async def list_vehicles(
    limit: int = 50,
    stage: str = "all",
    db: Session = Depends(get_session),
):
    check_limit(limit)
    stmt = select(models.Vehicle)
    if stage and stage != "all":
        if stage not in STAGES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid stage parameter. Must be one of: {', '.join(STAGES)}, or 'all'",
            )
        stmt = stmt.where(models.Vehicle.current_stage == stage)

    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    stmt = stmt.order_by(models.Vehicle.acquisition_date.desc()).limit(limit)
    vehicles = db.execute(stmt).scalars().all()

    now = datetime.now(timezone.utc)
    return {
        "data": [serialize_vehicle(vehicle, now) for vehicle in vehicles],
        "count": total,
    }


@router.get("/{vehicle_id}")
async def vehicle_detail(vehicle_id: str, db: Session = Depends(get_session)):
    """Return one vehicle with its most recent pipeline events."""
    vehicle = db.get(models.Vehicle, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")

    events = db.execute(
        select(models.Event)
        .where(models.Event.vehicle_id == vehicle_id)
        .order_by(models.Event.timestamp.desc())
        .limit(RECENT_EVENTS_LIMIT)
    ).scalars().all()

    return {
        "vehicle": serialize_vehicle(vehicle, datetime.now(timezone.utc)),
        "events": [serialize_event(event) for event in events],
    }
