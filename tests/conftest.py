from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import delete

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Always point the engine at a throwaway database before covid_analytics.database is imported;
# the fixture below deletes from the source tables
_DB_DIR = tempfile.mkdtemp(prefix="covid_analytics_tests_")
os.environ["COVID_DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"

from covid_analytics.database import SessionLocal, engine, init_db
from covid_analytics.models import CovidDeaths, CovidVaccinations


@pytest.fixture()
def db_session():
    init_db(engine)
    db = SessionLocal()
    try:
        # Clean both source tables to isolate tests
        db.execute(delete(CovidVaccinations))
        db.execute(delete(CovidDeaths))
        db.commit()
        yield db
    finally:
        db.close()
