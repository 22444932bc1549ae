"""
Pytest configuration.

This file adds the project root to the Python path so that tests can import
the api, domain, repositories and services packages, and provides shared
fixtures built on the in-memory Supabase fake.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.fakes import FakeSupabase  # noqa: E402


@pytest.fixture
def sao_paulo() -> ZoneInfo:
    return ZoneInfo("America/Sao_Paulo")


@pytest.fixture
def fixed_now() -> datetime:
    # 2025-03-15 15:00 in São Paulo (UTC-3, no DST in 2025)
    return datetime(2025, 3, 15, 18, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()
