from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.config import Settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment and any .env file."""
    return Settings(
        _env_file=None,
        RDS_ENDPOINT="db.example.com",
        DB_PASSWORD="secret",
        DB_USER="canary",
        DB_NAME="V2NCanaryDB",
        DB_PORT=3306,
        DB_ENGINE="mysql",
        TRANSPORT_CHECK=False,
        CONNECT_TIMEOUT_SECONDS=10,
        TRANSPORT_TIMEOUT_SECONDS=5,
    )
