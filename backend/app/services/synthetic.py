"""Synthetic vehicle pipeline generator.

Builds a population of vehicles with internally consistent milestone
timelines (acquired → recon → photo → listing → sold → funded) and projects
them into a time-ordered event log. All randomness flows through an injected
``random.Random`` so batches are reproducible for a given seed and ``now``.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ValidationError, model_validator

from backend.app.core.sampling import (
    clamp,
    generate_vin,
    normal_sample,
    random_float,
    random_int,
    weighted_choice,
)
from backend.app.services.pipeline import days_on_market, ensure_utc, stage_for

logger = logging.getLogger(__name__)

LISTING_STATUSES = ("draft", "live", "sold")
PRICE_STRATEGIES = ("market_follow", "aggressive", "hold")
PHOTO_URL_TEMPLATE = "https://picsum.photos/seed/{vin}/800/600"

MAKES: Dict[str, List[str]] = {
    "Toyota": ["Camry", "Corolla", "RAV4", "Highlander", "Prius", "Sienna"],
    "Honda": ["Civic", "Accord", "CR-V", "Pilot", "Odyssey", "Fit"],
    "Ford": ["F-150", "Escape", "Explorer", "Mustang", "Focus", "Edge"],
    "Chevrolet": ["Silverado", "Equinox", "Malibu", "Tahoe", "Cruze", "Traverse"],
    "Nissan": ["Altima", "Sentra", "Rogue", "Pathfinder", "Murano", "Versa"],
    "Hyundai": ["Elantra", "Sonata", "Tucson", "Santa Fe", "Accent", "Genesis"],
    "Kia": ["Optima", "Sorento", "Sportage", "Forte", "Soul", "Telluride"],
    "Mazda": ["CX-5", "Mazda3", "Mazda6", "CX-9", "MX-5", "CX-3"],
    "Subaru": ["Outback", "Forester", "Impreza", "Legacy", "Crosstrek", "Ascent"],
    "Volkswagen": ["Jetta", "Passat", "Tiguan", "Atlas", "Golf", "Beetle"],
}


class ConfigurationError(ValueError):
    """Raised when generation input or calibration is invalid."""


@dataclass(frozen=True)
class VendorRecord:
    id: str
    name: str
    category: str  # recon|photo|lender|title
    contact_email: str
    contact_phone: str


VENDORS: List[VendorRecord] = [
    VendorRecord("vendor-1", "Quick Recon Services", "recon", "service@quickrecon.com", "(555) 123-4567"),
    VendorRecord("vendor-2", "Pro Photo Solutions", "photo", "photos@prophoto.com", "(555) 234-5678"),
    VendorRecord("vendor-3", "Metro Auto Finance", "lender", "funding@metroauto.com", "(555) 345-6789"),
    VendorRecord("vendor-4", "Express Title Services", "title", "title@express.com", "(555) 456-7890"),
    VendorRecord("vendor-5", "Elite Recon Group", "recon", "info@eliterecon.com", "(555) 567-8901"),
]


def vendors_by_category(category: str) -> List[VendorRecord]:
    return [vendor for vendor in VENDORS if vendor.category == category]


class GeneratorConfig(BaseModel):
    """Calibration constants for the sampler. Day ranges are inclusive."""

    year_range: Tuple[int, int] = (2015, 2024)
    mileage_range: Tuple[int, int] = (10000, 150000)
    acquisition_age_days: Tuple[int, int] = (1, 90)
    base_price_range: Tuple[int, int] = (15000, 45000)
    dealer_discount_range: Tuple[float, float] = (0.85, 0.95)
    recon_start_delay_days: Tuple[int, int] = (0, 2)
    recon_duration_days: Tuple[int, int] = (1, 3)
    backorder_probability: float = 0.25
    backorder_delay_days: Tuple[int, int] = (2, 7)
    photo_delay_days: Tuple[int, int] = (0, 1)
    listing_delay_days: Tuple[int, int] = (0, 1)
    deal_delay_days: Tuple[int, int] = (1, 5)
    funding_delay_days: Tuple[int, int] = (0, 3)
    listing_status_weights: Dict[str, float] = {"draft": 0.15, "live": 0.70, "sold": 0.15}
    price_strategy_weights: Dict[str, float] = {"market_follow": 0.60, "aggressive": 0.25, "hold": 0.15}
    market_comp_range: Tuple[float, float] = (0.4, 0.9)
    listing_price_jitter: float = 0.02
    holding_cost_range: Tuple[float, float] = (30.0, 70.0)
    photo_quality_mean: float = 0.78
    photo_quality_stdev: float = 0.10
    photo_quality_bounds: Tuple[float, float] = (0.5, 1.0)

    @model_validator(mode="after")
    def _check_calibration(self) -> "GeneratorConfig":
        for name in (
            "year_range",
            "mileage_range",
            "acquisition_age_days",
            "base_price_range",
            "dealer_discount_range",
            "recon_start_delay_days",
            "recon_duration_days",
            "backorder_delay_days",
            "photo_delay_days",
            "listing_delay_days",
            "deal_delay_days",
            "funding_delay_days",
            "market_comp_range",
            "holding_cost_range",
            "photo_quality_bounds",
        ):
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"{name} lower bound {low} exceeds upper bound {high}")
        for name in ("recon_start_delay_days", "recon_duration_days", "backorder_delay_days",
                     "photo_delay_days", "listing_delay_days", "deal_delay_days", "funding_delay_days"):
            if getattr(self, name)[0] < 0:
                raise ValueError(f"{name} must not be negative")
        if not 0.0 <= self.backorder_probability <= 1.0:
            raise ValueError("backorder_probability must be within [0, 1]")
        if self.photo_quality_stdev < 0 or self.listing_price_jitter < 0:
            raise ValueError("photo_quality_stdev and listing_price_jitter must not be negative")
        _check_weights("listing_status_weights", self.listing_status_weights, LISTING_STATUSES)
        _check_weights("price_strategy_weights", self.price_strategy_weights, PRICE_STRATEGIES)
        return self

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "GeneratorConfig":
        try:
            return cls.model_validate(data or {})
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid generator config: {exc}") from exc


def _check_weights(name: str, weights: Dict[str, float], allowed: Tuple[str, ...]) -> None:
    unknown = set(weights) - set(allowed)
    if unknown:
        raise ValueError(f"{name} has unknown keys: {sorted(unknown)}")
    if any(w < 0 for w in weights.values()) or sum(weights.values()) <= 0:
        raise ValueError(f"{name} must be non-negative with a positive total")


def load_generator_config(path: Optional[Path]) -> GeneratorConfig:
    """Load calibration overrides from YAML; a missing path means defaults."""
    if path is None:
        return GeneratorConfig()
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read generator config {path}: {exc}") from exc
    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"Generator config {path} must be a mapping")
    return GeneratorConfig.from_mapping(data)


@dataclass(frozen=True)
class VehicleRecord:
    id: str
    vin: str
    make: str
    model: str
    year: int
    mileage: int
    acquisition_date: datetime
    acquisition_price: int
    recon_start: Optional[datetime]
    recon_done: Optional[datetime]
    recon_vendor_id: Optional[str]
    photos_done: Optional[datetime]
    photo_vendor_id: Optional[str]
    photo_quality_score: float
    listing_status: str
    listing_live_at: Optional[datetime]
    listing_price: int
    price_strategy: str
    market_comp_index: float
    deal_signed: Optional[datetime]
    funds_received: Optional[datetime]
    holding_cost_per_day: float
    photo_url: str


@dataclass(frozen=True)
class EventRecord:
    id: str
    vehicle_id: str
    event_type: str
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GeneratedBatch:
    now: datetime
    vendors: List[VendorRecord]
    vehicles: List[VehicleRecord]
    events: List[EventRecord]

    def to_payload(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "vendors": [vendor_to_dict(v) for v in self.vendors],
            "vehicles": [vehicle_to_dict(v, self.now) for v in self.vehicles],
            "events": [event_to_dict(e) for e in self.events],
        }


def validate_count(count: Any) -> int:
    """Coerce a requested vehicle count to a positive int or raise ConfigurationError."""
    if isinstance(count, bool):
        raise ConfigurationError(f"Vehicle count must be an integer, got {count!r}")
    if isinstance(count, str):
        text = count.strip()
        try:
            count = int(text)
        except ValueError as exc:
            raise ConfigurationError(f"Vehicle count must be an integer, got {text!r}") from exc
    if not isinstance(count, int):
        raise ConfigurationError(f"Vehicle count must be an integer, got {count!r}")
    if count < 1:
        raise ConfigurationError(f"Vehicle count must be at least 1, got {count}")
    return count


def _days(rng: random.Random, bounds: Tuple[int, int]) -> timedelta:
    return timedelta(days=random_int(rng, bounds[0], bounds[1]))


def _vehicle_id(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def generate_vehicle(
    rng: random.Random,
    now: datetime,
    config: Optional[GeneratorConfig] = None,
    *,
    listing_status: Optional[str] = None,
) -> VehicleRecord:
    """Sample one vehicle. ``listing_status`` skips the weighted status draw."""
    config = config or GeneratorConfig()
    now = ensure_utc(now)
    if listing_status is not None and listing_status not in LISTING_STATUSES:
        raise ConfigurationError(f"Unknown listing status '{listing_status}'")

    make = rng.choice(list(MAKES))
    model = rng.choice(MAKES[make])
    year = random_int(rng, *config.year_range)
    mileage = random_int(rng, *config.mileage_range)

    acquisition_date = now - _days(rng, config.acquisition_age_days)

    base_price = random_int(rng, *config.base_price_range)
    acquisition_price = round(base_price * random_float(rng, *config.dealer_discount_range))

    # Recon runs long when parts are backordered; the two draws compound.
    recon_start = acquisition_date + _days(rng, config.recon_start_delay_days)
    recon_span = _days(rng, config.recon_duration_days)
    if rng.random() < config.backorder_probability:
        recon_span += _days(rng, config.backorder_delay_days)
    recon_done = recon_start + recon_span

    photos_done = recon_done + _days(rng, config.photo_delay_days)

    if listing_status is None:
        listing_status = weighted_choice(rng, list(config.listing_status_weights.items()))

    listing_live_at = None
    deal_signed = None
    funds_received = None
    if listing_status in ("live", "sold"):
        listing_live_at = photos_done + _days(rng, config.listing_delay_days)
    if listing_status == "sold":
        deal_signed = listing_live_at + _days(rng, config.deal_delay_days)
        funds_received = deal_signed + _days(rng, config.funding_delay_days)

    price_strategy = weighted_choice(rng, list(config.price_strategy_weights.items()))
    market_comp_index = random_float(rng, *config.market_comp_range)
    jitter = config.listing_price_jitter
    listing_price = round(base_price * (1 + random_float(rng, -jitter, jitter)))

    holding_cost_per_day = random_float(rng, *config.holding_cost_range)
    quality = normal_sample(rng, config.photo_quality_mean, config.photo_quality_stdev)
    photo_quality_score = clamp(quality, *config.photo_quality_bounds)

    vin = generate_vin(rng)

    return VehicleRecord(
        id=_vehicle_id(rng),
        vin=vin,
        make=make,
        model=model,
        year=year,
        mileage=mileage,
        acquisition_date=acquisition_date,
        acquisition_price=acquisition_price,
        recon_start=recon_start,
        recon_done=recon_done,
        recon_vendor_id=rng.choice(vendors_by_category("recon")).id,
        photos_done=photos_done,
        photo_vendor_id=rng.choice(vendors_by_category("photo")).id,
        photo_quality_score=round(photo_quality_score, 2),
        listing_status=listing_status,
        listing_live_at=listing_live_at,
        listing_price=listing_price,
        price_strategy=price_strategy,
        market_comp_index=round(market_comp_index, 2),
        deal_signed=deal_signed,
        funds_received=funds_received,
        holding_cost_per_day=round(holding_cost_per_day, 2),
        photo_url=PHOTO_URL_TEMPLATE.format(vin=vin),
    )


def generate_vehicles(
    count: Any,
    rng: random.Random,
    now: datetime,
    config: Optional[GeneratorConfig] = None,
) -> List[VehicleRecord]:
    count = validate_count(count)
    config = config or GeneratorConfig()
    return [generate_vehicle(rng, now, config) for _ in range(count)]


def _vehicle_events(vehicle: VehicleRecord) -> List[EventRecord]:
    milestones = [
        ("acquired", vehicle.acquisition_date, {"price": vehicle.acquisition_price}),
        ("recon_started", vehicle.recon_start, {"vendor_id": vehicle.recon_vendor_id}),
        ("recon_done", vehicle.recon_done, {"vendor_id": vehicle.recon_vendor_id}),
        (
            "photos_done",
            vehicle.photos_done,
            {"vendor_id": vehicle.photo_vendor_id, "quality_score": vehicle.photo_quality_score},
        ),
        (
            "listing_live",
            vehicle.listing_live_at,
            {"price": vehicle.listing_price, "strategy": vehicle.price_strategy},
        ),
        ("deal_signed", vehicle.deal_signed, {"price": vehicle.listing_price}),
        ("funds_received", vehicle.funds_received, {"price": vehicle.listing_price}),
    ]
    events: List[EventRecord] = []
    for event_type, timestamp, metadata in milestones:
        if timestamp is None:
            continue
        events.append(
            EventRecord(
                id=f"event-{vehicle.id}-{len(events) + 1}",
                vehicle_id=vehicle.id,
                event_type=event_type,
                timestamp=timestamp,
                metadata=metadata,
            )
        )
    return events


def project_events(vehicles: List[VehicleRecord]) -> List[EventRecord]:
    """One event per reached milestone, globally sorted by timestamp (stable)."""
    events: List[EventRecord] = []
    for vehicle in vehicles:
        events.extend(_vehicle_events(vehicle))
    return sorted(events, key=lambda event: event.timestamp)


def generate_batch(
    count: Any,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    config: Optional[GeneratorConfig] = None,
) -> GeneratedBatch:
    count = validate_count(count)
    rng = rng or random.Random()
    now = ensure_utc(now) if now else datetime.now(timezone.utc)

    vehicles = generate_vehicles(count, rng, now, config)
    events = project_events(vehicles)
    logger.info("Generated %d vehicles and %d events", len(vehicles), len(events))
    return GeneratedBatch(now=now, vendors=list(VENDORS), vehicles=vehicles, events=events)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def vendor_to_dict(vendor: VendorRecord) -> Dict[str, Any]:
    return {
        "id": vendor.id,
        "name": vendor.name,
        "category": vendor.category,
        "contact_email": vendor.contact_email,
        "contact_phone": vendor.contact_phone,
    }


def vehicle_to_dict(vehicle: VehicleRecord, now: datetime) -> Dict[str, Any]:
    """Serialize a vehicle with its derived fields evaluated at ``now``."""
    return {
        "id": vehicle.id,
        "vin": vehicle.vin,
        "make": vehicle.make,
        "model": vehicle.model,
        "year": vehicle.year,
        "mileage": vehicle.mileage,
        "acquisition_date": _iso(vehicle.acquisition_date),
        "acquisition_price": vehicle.acquisition_price,
        "recon_start": _iso(vehicle.recon_start),
        "recon_done": _iso(vehicle.recon_done),
        "recon_vendor_id": vehicle.recon_vendor_id,
        "photos_done": _iso(vehicle.photos_done),
        "photo_vendor_id": vehicle.photo_vendor_id,
        "photo_quality_score": vehicle.photo_quality_score,
        "listing_status": vehicle.listing_status,
        "listing_live_at": _iso(vehicle.listing_live_at),
        "listing_price": vehicle.listing_price,
        "price_strategy": vehicle.price_strategy,
        "market_comp_index": vehicle.market_comp_index,
        "deal_signed": _iso(vehicle.deal_signed),
        "funds_received": _iso(vehicle.funds_received),
        "holding_cost_per_day": vehicle.holding_cost_per_day,
        "current_stage": stage_for(vehicle, now),
        "days_on_market": days_on_market(vehicle, now),
        "photo_url": vehicle.photo_url,
    }


def event_to_dict(event: EventRecord) -> Dict[str, Any]:
    return {
        "id": event.id,
        "vehicle_id": event.vehicle_id,
        "event_type": event.event_type,
        "timestamp": _iso(event.timestamp),
        "metadata": dict(event.metadata),
    }
