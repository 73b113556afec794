"""Shared fixtures."""

import pytest

from competitor_intel.core.cache import CacheGateway, MemoryCacheStore

from fakes import FrozenClock


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def memory_store():
    return MemoryCacheStore()


@pytest.fixture
def gateway(memory_store, clock):
    return CacheGateway(memory_store, clock=clock)
