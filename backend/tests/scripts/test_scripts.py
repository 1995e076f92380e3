import importlib.util
import json
from pathlib import Path

from backend.app.core.settings import settings
from backend.app.services.ingest import table_counts

ROOT = Path(__file__).resolve().parents[3]


def _load_script(name):
    spec = importlib.util.spec_from_file_location(name, ROOT / "scripts" / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_generate_writes_json_files(tmp_path, capsys):
    generate = _load_script("generate_synthetic")
    assert generate.main(["--n", "8", "--seed", "4", "--out", str(tmp_path)]) == 0

    vendors = json.loads((tmp_path / "vendors.json").read_text(encoding="utf-8"))
    vehicles = json.loads((tmp_path / "vehicles.json").read_text(encoding="utf-8"))
    events = json.loads((tmp_path / "events.json").read_text(encoding="utf-8"))
    assert len(vendors) == 5
    assert len(vehicles) == 8
    assert len(vehicles) <= len(events) <= 7 * len(vehicles)
    assert "8 vehicles" in capsys.readouterr().out


def test_generate_rejects_zero_count(tmp_path, capsys):
    generate = _load_script("generate_synthetic")
    assert generate.main(["--n", "0", "--out", str(tmp_path)]) == 1
    assert not (tmp_path / "vehicles.json").exists()
    assert "at least 1" in capsys.readouterr().out


def test_seed_loads_generated_files(tmp_path, reset_tables):
    generate = _load_script("generate_synthetic")
    seed = _load_script("seed_pipeline")
    assert generate.main(["--n", "6", "--seed", "9", "--out", str(tmp_path)]) == 0
    assert seed.main(["--in-dir", str(tmp_path)]) == 0

    counts = table_counts()
    events = json.loads((tmp_path / "events.json").read_text(encoding="utf-8"))
    assert counts == {"vendors": 5, "vehicles": 6, "events": len(events), "sla_rules": 4}


def test_seed_reports_missing_files(tmp_path, reset_tables, capsys):
    seed = _load_script("seed_pipeline")
    assert seed.main(["--in-dir", str(tmp_path / "absent")]) == 1
    assert "Seeding failed" in capsys.readouterr().out


def test_generate_rejects_bad_default_count(tmp_path, capsys, monkeypatch):
    # SYNTHETIC_VEHICLE_COUNT=lots must surface as a configuration error, not at import
    monkeypatch.setattr(settings, "synthetic_vehicle_count", "lots")
    generate = _load_script("generate_synthetic")
    assert generate.main(["--out", str(tmp_path)]) == 1
    assert not (tmp_path / "vehicles.json").exists()
    assert "Error:" in capsys.readouterr().out
