"""
Shared pytest fixtures.

Scheduling tests run against the in-memory store with a clock pinned to
2026-01-01, well before the dates they book.
"""

import os
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
import pytest_asyncio

# Ensure test environment before the application reads its settings
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ["ENVIRONMENT"] = "test"

from clinicdesk.core.clock import FixedClock  # noqa: E402
from clinicdesk.scheduling.engine import SchedulingEngine  # noqa: E402
from clinicdesk.store.memory import MemoryEntityStore  # noqa: E402
from tests.utils import DURATION, seed_clinic  # noqa: E402


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def store(clock) -> MemoryEntityStore:
    return MemoryEntityStore(clock)


@pytest.fixture
def engine(store, clock) -> SchedulingEngine:
    return SchedulingEngine(store, clock=clock, duration=DURATION, timeout=1.0)


@pytest_asyncio.fixture
async def seeded(store) -> SimpleNamespace:
    return await seed_clinic(store)
