from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from backend.app.db.models import Base

ROOT = Path(__file__).resolve().parents[3]


def _config(url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "backend" / "app" / "db" / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_upgrade_creates_pipeline_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(_config(url), "head")

    engine = create_engine(url)
    inspector = inspect(engine)
    assert {"vendors", "vehicles", "events", "sla_rules"} <= set(inspector.get_table_names())
    event_columns = {column["name"] for column in inspector.get_columns("events")}
    assert {"vehicle_id", "event_type", "timestamp", "metadata"} <= event_columns
    engine.dispose()


def test_downgrade_drops_pipeline_tables(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = _config(url)
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(url)
    assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    engine.dispose()


def _index_columns(engine, table):
    return {
        index["name"]: tuple(index["column_names"])
        for index in inspect(engine).get_indexes(table)
    }


def test_model_indexes_match_migration(tmp_path):
    migrated_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(_config(migrated_url), "head")
    migrated = create_engine(migrated_url)

    declared = create_engine(f"sqlite:///{tmp_path / 'declared.db'}")
    Base.metadata.create_all(declared)

    for table in ("vehicles", "events"):
        assert _index_columns(declared, table) == _index_columns(migrated, table)
    assert _index_columns(declared, "vehicles")["idx_vehicles_stage_acquired"] == (
        "current_stage",
        "acquisition_date",
    )
    assert set(_index_columns(declared, "events")) == {"idx_events_timestamp", "idx_events_vehicle_time"}
    migrated.dispose()
    declared.dispose()
