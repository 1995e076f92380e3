#!/usr/bin/env python3
"""Load generated pipeline JSON into the database.

Usage:
  python scripts/seed_pipeline.py --in-dir ./data
  python scripts/seed_pipeline.py --in-dir ./data --migrate

Seeds vendors, vehicles, events and SLA rules in that order using
insert-or-update on each table's unique key, then prints row counts.
"""
import argparse, json, logging, sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from alembic.config import Config as AlembicConfig
from alembic import command as alembic_command

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.core.settings import settings
from backend.app.services.ingest import seed_payload, table_counts


def load_json_file(in_dir: Path, name: str) -> List[Dict[str, Any]]:
    path = in_dir / f"{name}.json"
    return json.loads(path.read_text(encoding="utf-8"))


def run_migrations() -> None:
    cfg = AlembicConfig(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "backend" / "app" / "db" / "migrations"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url)
    alembic_command.upgrade(cfg, "head")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--in-dir", type=str, default=settings.data_dir, help="Dir holding vendors/vehicles/events JSON")
    ap.add_argument("--migrate", action="store_true", help="Run alembic upgrade head before seeding")
    ap.add_argument("--batch-size", type=int, default=settings.seed_batch_size)
    args = ap.parse_args(argv)

    logging.basicConfig(level=settings.log_level)

    try:
        if args.migrate:
            print("Applying migrations...")
            run_migrations()

        in_dir = Path(args.in_dir)
        print("Loading data files...")
        payload = {name: load_json_file(in_dir, name) for name in ("vendors", "vehicles", "events")}

        summary = seed_payload(payload, batch_size=args.batch_size)
        for name, counts in summary.items():
            print(f"Seeded {name}: {counts['inserted']} inserted, {counts['updated']} updated")

        print("Seeding verification:")
        for name, count in table_counts().items():
            print(f"   - {name}: {count}")
    except Exception as exc:
        print(f"Seeding failed: {exc}")
        return 1

    print("Seeding completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
