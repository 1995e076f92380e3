from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.core.settings import settings
from backend.app.db import models
from backend.app.db.session import session_scope
from backend.app.services.pipeline import days_on_market, ensure_utc, stage_for

logger = logging.getLogger(__name__)

DEFAULT_SLA_RULES = [
    {"task_type": "recon", "sla_days": 3},
    {"task_type": "photo", "sla_days": 2},
    {"task_type": "listing", "sla_days": 1},
    {"task_type": "funding", "sla_days": 3},
]

VEHICLE_TIMESTAMP_FIELDS = [
    "acquisition_date",
    "recon_start",
    "recon_done",
    "photos_done",
    "listing_live_at",
    "deal_signed",
    "funds_received",
]

VEHICLE_DECIMAL_FIELDS = [
    "acquisition_price",
    "photo_quality_score",
    "listing_price",
    "market_comp_index",
    "holding_cost_per_day",
]

VEHICLE_PLAIN_FIELDS = [
    "make",
    "model",
    "year",
    "mileage",
    "recon_vendor_id",
    "photo_vendor_id",
    "listing_status",
    "price_strategy",
    "photo_url",
]


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp {value!r}") from exc


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (TypeError, ValueError, ArithmeticError):
        return None


def _batches(rows: Sequence[Dict[str, Any]], size: int) -> List[Sequence[Dict[str, Any]]]:
    size = max(1, size)
    return [rows[i:i + size] for i in range(0, len(rows), size)]


def _run_batched(
    label: str,
    rows: Sequence[Dict[str, Any]],
    handle_row: Callable[[Session, Dict[str, Any]], bool],
    batch_size: Optional[int],
) -> Dict[str, int]:
    """Apply ``handle_row`` per row, one transaction per batch.

    ``handle_row`` returns True when it inserted and False when it updated.
    A failing batch is logged and the error propagates; earlier batches stay
    committed.
    """
    counts = {"inserted": 0, "updated": 0}
    batches = _batches(list(rows), batch_size or settings.seed_batch_size)
    for number, batch in enumerate(batches, start=1):
        logger.info("Upserting %s batch %d/%d (%d rows)", label, number, len(batches), len(batch))
        try:
            with session_scope() as session:
                for row in batch:
                    if handle_row(session, row):
                        counts["inserted"] += 1
                    else:
                        counts["updated"] += 1
        except Exception:
            logger.exception("Failed to upsert %s batch %d/%d", label, number, len(batches))
            raise
    return counts


def upsert_vendors(rows: Sequence[Dict[str, Any]], batch_size: Optional[int] = None) -> Dict[str, int]:
    """Insert or update vendors keyed by (name, category)."""

    def handle(session: Session, row: Dict[str, Any]) -> bool:
        vendor = session.execute(
            select(models.Vendor).where(
                models.Vendor.name == row["name"],
                models.Vendor.category == row["category"],
            )
        ).scalar_one_or_none()
        created = vendor is None
        if created:
            vendor = models.Vendor(id=row["id"], name=row["name"], category=row["category"])
            session.add(vendor)
        vendor.contact_email = row.get("contact_email")
        vendor.contact_phone = row.get("contact_phone")
        session.flush()
        return created

    return _run_batched("vendors", rows, handle, batch_size)


def upsert_vehicles(
    rows: Sequence[Dict[str, Any]],
    batch_size: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Insert or update vehicles keyed by VIN.

    ``current_stage`` and ``days_on_market`` are always derived from the
    milestones as of ``now``; incoming values for them are ignored.

    Returns counts plus ``id_remap`` (incoming id -> stored id) for VINs that
    already exist under a different id, so their events can be re-pointed.
    """
    now = ensure_utc(now) or datetime.now(timezone.utc)
    id_remap: Dict[str, str] = {}

    def handle(session: Session, row: Dict[str, Any]) -> bool:
        vin = row["vin"].upper()
        vehicle = session.execute(
            select(models.Vehicle).where(models.Vehicle.vin == vin)
        ).scalar_one_or_none()
        created = vehicle is None
        if created:
            vehicle = models.Vehicle(id=row["id"], vin=vin)
            session.add(vehicle)
        elif vehicle.id != row["id"]:
            id_remap[row["id"]] = vehicle.id

        for field in VEHICLE_PLAIN_FIELDS:
            setattr(vehicle, field, row.get(field))
        for field in VEHICLE_DECIMAL_FIELDS:
            setattr(vehicle, field, _as_decimal(row.get(field)))
        for field in VEHICLE_TIMESTAMP_FIELDS:
            setattr(vehicle, field, _parse_timestamp(row.get(field)))
        vehicle.current_stage = stage_for(vehicle, now)
        vehicle.days_on_market = days_on_market(vehicle, now)
        vehicle.updated_at = datetime.now(timezone.utc)
        session.flush()
        return created

    counts: Dict[str, Any] = dict(_run_batched("vehicles", rows, handle, batch_size))
    counts["id_remap"] = id_remap
    return counts


def upsert_events(
    rows: Sequence[Dict[str, Any]],
    batch_size: Optional[int] = None,
    vehicle_ids: Optional[Dict[str, str]] = None,
) -> Dict[str, int]:
    """Insert or update events keyed by (vehicle_id, event_type, timestamp)."""
    vehicle_ids = vehicle_ids or {}

    def handle(session: Session, row: Dict[str, Any]) -> bool:
        vehicle_id = vehicle_ids.get(row["vehicle_id"], row["vehicle_id"])
        timestamp = _parse_timestamp(row["timestamp"])
        event = session.execute(
            select(models.Event).where(
                models.Event.vehicle_id == vehicle_id,
                models.Event.event_type == row["event_type"],
                models.Event.timestamp == timestamp,
            )
        ).scalar_one_or_none()
        created = event is None
        if created:
            event = models.Event(
                id=row["id"],
                vehicle_id=vehicle_id,
                event_type=row["event_type"],
                timestamp=timestamp,
            )
            session.add(event)
        event.meta = row.get("metadata") or {}
        session.flush()
        return created

    return _run_batched("events", rows, handle, batch_size)


def upsert_sla_rules(
    rows: Optional[Sequence[Dict[str, Any]]] = None,
    batch_size: Optional[int] = None,
) -> Dict[str, int]:
    def handle(session: Session, row: Dict[str, Any]) -> bool:
        rule = session.execute(
            select(models.SlaRule).where(models.SlaRule.task_type == row["task_type"])
        ).scalar_one_or_none()
        created = rule is None
        if created:
            rule = models.SlaRule(task_type=row["task_type"])
            session.add(rule)
        rule.sla_days = int(row["sla_days"])
        session.flush()
        return created

    return _run_batched("sla_rules", rows if rows is not None else DEFAULT_SLA_RULES, handle, batch_size)


def seed_payload(
    payload: Dict[str, Sequence[Dict[str, Any]]],
    batch_size: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Dict[str, int]]:
    """Seed vendors, vehicles, events and SLA rules in dependency order.

    Pass the batch's ``now`` to store stages as of generation time; it
    defaults to the current time.
    """
    vendors = upsert_vendors(payload.get("vendors", []), batch_size)
    vehicles = upsert_vehicles(payload.get("vehicles", []), batch_size, now=now)
    id_remap = vehicles.pop("id_remap")
    if id_remap:
        logger.info("Re-pointing events for %d vehicles already stored under another id", len(id_remap))
    events = upsert_events(payload.get("events", []), batch_size, vehicle_ids=id_remap)
    sla_rules = upsert_sla_rules(payload.get("sla_rules"), batch_size)
    return {"vendors": vendors, "vehicles": vehicles, "events": events, "sla_rules": sla_rules}


def table_counts() -> Dict[str, int]:
    tables = {
        "vendors": models.Vendor,
        "vehicles": models.Vehicle,
        "events": models.Event,
        "sla_rules": models.SlaRule,
    }
    with session_scope() as session:
        return {
            name: session.execute(select(func.count()).select_from(model)).scalar_one()
            for name, model in tables.items()
        }
