"""Contract-test fixtures: one parameterised fixture per hook interface.

The contract tests in this directory only ever talk to these fixtures, so
any backend that passes them can replace a stub in mindbloom.api.deps.
Each param value names one implementation; "stub" is the in-memory one
shipped here.

TEAM: Bringing up a real store?
    - add its name to the fixture's params
    - yield an instance from a matching elif branch (clean it up after)
    - python -m pytest mindbloom/tests/contracts/ -v must stay green

Store fixtures are async (@pytest_asyncio.fixture, strict mode); the level
catalog is synchronous and uses a plain pytest fixture.
"""

import json
from datetime import timedelta

import pytest
import pytest_asyncio

from mindbloom.hooks.catalog import JsonLevelCatalog
from mindbloom.hooks.profiles import InMemoryProfileStore
from mindbloom.hooks.sessions import InMemorySessionStore


# ---------------------------------------------------------------------------
# Interface fixtures (parameterized for future implementations)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(params=["stub"])
async def profile_store(request):
    """Yields a ProfileStore implementation.

    TEAM: Add your database adapter here:
        @pytest_asyncio.fixture(params=["stub", "postgres"])
        async def profile_store(request):
            if request.param == "stub":
                yield InMemoryProfileStore()
            elif request.param == "postgres":
                adapter = YourPostgresProfileStore(test_dsn)
                yield adapter
                await adapter.cleanup()
    """
    if request.param == "stub":
        yield InMemoryProfileStore()


@pytest_asyncio.fixture(params=["stub"])
async def session_store(request, fixed_clock):
    """Yields a SessionStore with a 30-minute idle TTL and a movable clock.

    Contract tests move ``fixed_clock.now`` to simulate idleness. A real
    store with server-side expiry needs its own way to age entries.
    """
    if request.param == "stub":
        yield InMemorySessionStore(idle_ttl=timedelta(minutes=30), clock=fixed_clock)


@pytest.fixture(params=["stub"])
def level_catalog(request, tmp_path):
    """Yields a loaded LevelCatalog holding two runner levels, nothing else."""
    if request.param == "stub":
        path = tmp_path / "levels.json"
        path.write_text(json.dumps({
            "version": 1,
            "levels": {
                "runner": [
                    {"id": 1, "name": "One", "difficulty": "easy", "speed": 1,
                     "obstacle_count": 2, "time_limit_seconds": 30},
                    {"id": 7, "name": "Seven", "difficulty": "hard", "speed": 2.5,
                     "obstacle_count": 9, "time_limit_seconds": 20},
                ],
            },
        }), encoding="utf-8")
        catalog = JsonLevelCatalog(path)
        catalog.load()
        yield catalog
