"""Pytest fixtures for shot timing tests."""

import sys
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Add src directory to Python path
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Set up test database path before importing app
TEST_DB_DIR = Path(tempfile.gettempdir()) / "shottiming_test"
TEST_DB_PATH = TEST_DB_DIR / "test.db"


def _remove_test_db() -> None:
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()
    # Clean up WAL files
    for ext in ["-wal", "-shm"]:
        wal_file = Path(str(TEST_DB_PATH) + ext)
        if wal_file.exists():
            wal_file.unlink()


# Two complete shots for Ana, one shot for Bo that never gets a total distance
ANA_AND_BO_CSV = """\
10:00:00.000,Ana,1,1,150.5,,,,,
10:00:00.500,Ana,1,1,,12.0,,,,
10:00:01.200,Ana,1,1,,,30.0,-2.0,250.0,270.0
10:05:00.000,Ana,2,1,140.0,11.0,28.0,1.0,240.0,
10:05:01.000,Ana,2,1,,,,,,260.0
10:10:00.000,Bo,1,1,130.0,10.0,25.0,0.5,220.0,
"""

# Same positions as ANA_AND_BO_CSV, tracked faster, plus a shot Bo completes
FASTER_CSV = """\
11:00:00.000,Ana,1,1,151.0,12.5,31.0,-1.0,252.0,
11:00:00.800,Ana,1,1,,,,,,272.0
11:05:00.000,Ana,2,1,141.0,11.5,29.0,0.0,242.0,262.0
11:10:00.000,Bo,3,1,131.0,10.5,26.0,0.0,221.0,
11:10:00.900,Bo,3,1,,,,,,235.0
"""


@pytest.fixture
def csv_bytes() -> bytes:
    """A small export with two complete shots for Ana and one incomplete for Bo."""
    return ANA_AND_BO_CSV.encode("utf-8")


@pytest.fixture
def faster_csv_bytes() -> bytes:
    """A second export that tracks Ana's positions faster."""
    return FASTER_CSV.encode("utf-8")


@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient with an isolated database."""
    TEST_DB_DIR.mkdir(parents=True, exist_ok=True)
    _remove_test_db()

    # Patch DB_PATH before the app starts so init_db uses the test database
    with patch("shottiming.core.database.DB_PATH", TEST_DB_PATH):
        from shottiming.main import app

        with TestClient(app) as test_client:
            yield test_client

    _remove_test_db()


@pytest.fixture
async def test_db():
    """Initialize an isolated database for direct model tests."""
    TEST_DB_DIR.mkdir(parents=True, exist_ok=True)
    _remove_test_db()

    with patch("shottiming.core.database.DB_PATH", TEST_DB_PATH):
        from shottiming.core.database import close_db, init_db

        await init_db()
        yield TEST_DB_PATH
        await close_db()

    _remove_test_db()
