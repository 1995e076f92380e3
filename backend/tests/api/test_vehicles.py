import math
import random
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from backend.app.api.main import app
from backend.app.services.ingest import seed_payload
from backend.app.services.synthetic import generate_batch

NOW = datetime(2025, 3, 1, 15, 30, tzinfo=timezone.utc)

client = TestClient(app)


@pytest.fixture
def seeded(reset_tables):
    batch = generate_batch(30, rng=random.Random(21), now=NOW)
    payload = batch.to_payload()
    seed_payload(payload, now=NOW)
    return payload


def test_list_vehicles_defaults(seeded):
    response = client.get("/vehicles")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 30
    assert len(data["data"]) == 30
    acquired = [row["acquisition_date"] for row in data["data"]]
    assert acquired == sorted(acquired, reverse=True)


def test_list_vehicles_limit(seeded):
    data = client.get("/vehicles", params={"limit": 5}).json()
    assert data["count"] == 30
    assert len(data["data"]) == 5


@pytest.mark.parametrize("limit", [0, 1001])
def test_list_vehicles_rejects_bad_limit(seeded, limit):
    response = client.get("/vehicles", params={"limit": limit})
    assert response.status_code == 400


def test_list_vehicles_stage_filter(seeded):
    expected = [row for row in seeded["vehicles"] if row["current_stage"] == "listing"]
    data = client.get("/vehicles", params={"stage": "listing"}).json()
    assert data["count"] == len(expected)
    assert all(row["current_stage"] == "listing" for row in data["data"])

    response = client.get("/vehicles", params={"stage": "parked"})
    assert response.status_code == 400


def test_vehicle_rows_carry_card_fields(seeded):
    row = client.get("/vehicles", params={"limit": 1}).json()["data"][0]
    assert row["days_since_acquisition"] > 0
    assert row["holding_cost_to_date"] == pytest.approx(
        row["days_since_acquisition"] * row["holding_cost_per_day"], abs=0.01
    )
    assert row["photo_url"].endswith("/800/600")


def _whole_days_since(now, stamp):
    return math.floor((now - datetime.fromisoformat(stamp)).total_seconds() / 86400)


def test_days_on_market_is_computed_at_request_time(seeded):
    # NOW is long past, so stored values would lag by months.
    before = datetime.now(timezone.utc)
    rows = client.get("/vehicles", params={"limit": 30}).json()["data"]
    after = datetime.now(timezone.utc)

    listed = [row for row in rows if row["listing_live_at"] is not None]
    assert listed
    for row in listed:
        assert row["days_on_market"] in {
            _whole_days_since(before, row["listing_live_at"]),
            _whole_days_since(after, row["listing_live_at"]),
        }
        assert row["days_on_market"] > 365
    for row in rows:
        if row["listing_live_at"] is None:
            assert row["days_on_market"] is None

    detail = client.get(f"/vehicles/{listed[0]['id']}").json()["vehicle"]
    assert detail["days_on_market"] >= listed[0]["days_on_market"]


def test_vehicle_detail_with_recent_events(seeded):
    vehicle_id = seeded["vehicles"][0]["id"]
    response = client.get(f"/vehicles/{vehicle_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["vehicle"]["vin"] == seeded["vehicles"][0]["vin"]
    assert 1 <= len(data["events"]) <= 10
    assert all(event["vehicle_id"] == vehicle_id for event in data["events"])
    stamps = [event["timestamp"] for event in data["events"]]
    assert stamps == sorted(stamps, reverse=True)


def test_vehicle_detail_missing(seeded):
    response = client.get("/vehicles/does-not-exist")
    assert response.status_code == 404
