"""
Pytest configuration for hashgate tests.

Environment variables are set at module level (not in pytest_configure)
because settings are read on first import, before test collection finishes.
Argon2 costs are lowered so password tests stay fast.
"""

import os

os.environ["ENV"] = "TEST"
os.environ["HASHGATE_SITE_SECRET"] = "test-site-secret-0123456789abcdef"
os.environ["HASHGATE_ARGON2_TIME_COST"] = "1"
os.environ["HASHGATE_ARGON2_MEMORY_COST"] = "1024"
os.environ["HASHGATE_ARGON2_PARALLELISM"] = "1"

import pytest

from hashgate.app.config import HashSettings
from hashgate.app.security.site_secret import StaticSecretProvider
from hashgate.app.services.facade import HashFacade
from hashgate.tests.helpers import TEST_SECRET, FakeClock


@pytest.fixture
def settings():
    return HashSettings(
        argon2_time_cost=1,
        argon2_memory_cost=1024,
        argon2_parallelism=1,
        file_chunk_size=1024,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def facade(settings, clock):
    """Facade with an explicit site secret and a controllable clock."""
    return HashFacade(
        settings=settings,
        secret_provider=StaticSecretProvider(TEST_SECRET),
        clock=clock,
    )
