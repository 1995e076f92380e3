import os
import tempfile
from pathlib import Path

# Must be set before backend.app.db.session builds its engine.
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+pysqlite:///{Path(tempfile.mkdtemp(prefix='recon-pipeline-')) / 'pipeline.db'}",
)

import pytest

from backend.app.db.models import Base
from backend.app.db.session import ENGINE


@pytest.fixture
def reset_tables():
    Base.metadata.drop_all(ENGINE)
    Base.metadata.create_all(ENGINE)
    yield
