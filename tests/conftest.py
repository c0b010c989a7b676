import os
import sys
import tempfile
from pathlib import Path

import pytest

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Point the store at a throwaway SQLite file before yogatools.database is imported
_TMP_DIR = tempfile.mkdtemp(prefix="yogatools-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["CATALOG_SOURCE"] = os.path.join(_TMP_DIR, "catalog.json")
os.environ.pop("SITE_PASSWORD", None)

from yogatools.database import Base, SessionLocal, engine  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def open_site(monkeypatch):
    monkeypatch.delenv("SITE_PASSWORD", raising=False)
