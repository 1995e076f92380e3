from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

STAGES = ["acquired", "recon", "photo", "listing", "sold", "funded"]

# (milestone attribute, stage label) in pipeline order
MILESTONE_STAGES: List[Tuple[str, str]] = [
    ("acquisition_date", "acquired"),
    ("recon_start", "recon"),
    ("recon_done", "recon"),
    ("photos_done", "photo"),
    ("listing_live_at", "listing"),
    ("deal_signed", "sold"),
    ("funds_received", "funded"),
]

SECONDS_PER_DAY = 86400


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _whole_days(later: datetime, earlier: datetime) -> int:
    delta = ensure_utc(later) - ensure_utc(earlier)
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)


def stage_for(vehicle: Any, now: datetime) -> str:
    """Furthest pipeline stage whose milestone timestamp is due at ``now``.

    Accepts generated records and ORM rows alike; only the milestone
    attributes are read.
    """
    now = ensure_utc(now)
    stage = "acquired"
    for attr, label in MILESTONE_STAGES[1:]:
        stamp = ensure_utc(getattr(vehicle, attr, None))
        if stamp is not None and stamp <= now:
            stage = label
    return stage


def days_on_market(vehicle: Any, now: datetime) -> Optional[int]:
    listed = getattr(vehicle, "listing_live_at", None)
    if listed is None:
        return None
    return _whole_days(now, listed)


def days_since_acquisition(vehicle: Any, now: datetime) -> int:
    acquired = getattr(vehicle, "acquisition_date", None)
    if acquired is None:
        return 0
    return max(0, _whole_days(now, acquired))


def holding_cost_to_date(vehicle: Any, now: datetime) -> float:
    per_day = getattr(vehicle, "holding_cost_per_day", None) or 0
    return round(days_since_acquisition(vehicle, now) * float(per_day), 2)
