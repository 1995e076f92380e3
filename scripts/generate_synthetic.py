#!/usr/bin/env python3
"""Synthetic pipeline data generator.

Usage:
  python scripts/generate_synthetic.py --n 150
  python scripts/generate_synthetic.py --n 25 --seed 7 --out ./data --config ./data/calibration.yaml

Writes vendors.json, vehicles.json and events.json to the output directory
and prints a per-stage summary of the generated vehicles.
"""
import argparse, json, logging, random, sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.core.settings import settings
from backend.app.services.synthetic import ConfigurationError, generate_batch, load_generator_config


def write_payload(payload: dict, out_dir: Path) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name in ("vendors", "vehicles", "events"):
        path = out_dir / f"{name}.json"
        path.write_text(json.dumps(payload[name], indent=2), encoding="utf-8")
        written.append(path)
    return written


def stage_summary(vehicles: list) -> pd.DataFrame:
    df = pd.DataFrame(vehicles, columns=["current_stage", "listing_status", "holding_cost_per_day"])
    if df.empty:
        return df
    return (
        df.groupby("current_stage")
        .agg(vehicles=("listing_status", "size"), avg_holding_cost=("holding_cost_per_day", "mean"))
        .round(2)
    )


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--n", type=str, default=settings.synthetic_vehicle_count, help="Number of vehicles to generate")
    ap.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")
    ap.add_argument("--out", type=str, default=settings.data_dir, help="Output dir for JSON files")
    ap.add_argument("--config", type=str, default=None, help="YAML file overriding generator calibration")
    args = ap.parse_args(argv)

    logging.basicConfig(level=settings.log_level)

    try:
        config = load_generator_config(Path(args.config) if args.config else None)
        print(f"Generating {args.n} vehicles with synthetic data...")
        batch = generate_batch(args.n, rng=random.Random(args.seed), config=config)
    except ConfigurationError as exc:
        print(f"Error: {exc}")
        return 1

    payload = batch.to_payload()
    out_dir = Path(args.out)
    write_payload(payload, out_dir)

    print("Generated synthetic data:")
    print(f"   - {len(payload['vendors'])} vendors")
    print(f"   - {len(payload['vehicles'])} vehicles")
    print(f"   - {len(payload['events'])} events")
    print(stage_summary(payload["vehicles"]).to_string())
    print(f"Files saved to: {out_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
