"""Shared fixtures for the Gashapon test-suite."""
import os
from pathlib import Path

# navconfig resolves its project root (and env/.env) from SITE_ROOT when not
# running inside a virtualenv; point it at this repository.
os.environ.setdefault("SITE_ROOT", str(Path(__file__).resolve().parents[1]))

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from gashapon.store import MemoryStore
from gashapon.shop import ShopService, SessionCache


OWNER_UID = "uid-alice"
OWNER_EMAIL = "alice@example.com"


@pytest.fixture
def store():
    """Empty in-process store; every adapter call is recorded."""
    store = MemoryStore()
    for name in ('get', 'set', 'create', 'exists', 'delete', 'range_scan'):
        setattr(store, name, AsyncMock(wraps=getattr(store, name)))
    return store


@pytest.fixture
def service(store):
    return ShopService(store)


@pytest.fixture
def cache(store):
    return SessionCache(store)


@pytest_asyncio.fixture
async def owner(service):
    """An account for alice@example.com (shop tag "alice")."""
    await service.ensure_account(OWNER_UID, OWNER_EMAIL)
    return OWNER_UID
