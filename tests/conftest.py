"""
Shared pytest fixtures and configuration for diaspora tests.

This module provides:
- Access layer registry cleanup for test isolation
- Ready-made adapters from ``tests._support.adapters``

Usage:
    Fixtures are auto-discovered by pytest::

        @pytest.mark.asyncio
        async def test_something(memory_adapter):
            dal = DataAccessLayer.retrieve_access_layer(memory_adapter)
            ...
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure diaspora package and tests._support are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from diaspora.access.registry import access_layer_registry
from diaspora.core.settings import get_settings

from tests._support.adapters import InMemoryAdapter, PluralAdapter, SingularAdapter


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Registry Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_access_layer_registry() -> Generator[None, None, None]:
    """
    Clear the access layer registry before and after each test.

    Facades are memoized globally; no test may see another test's entries.
    """
    access_layer_registry.clear()
    yield
    access_layer_registry.clear()


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Forget cached settings so env overrides in one test don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Adapter Fixtures
# =============================================================================


@pytest.fixture
def memory_adapter() -> InMemoryAdapter:
    """Ready in-memory adapter implementing only the ``*_one`` operations."""
    return InMemoryAdapter()


@pytest.fixture
def singular_adapter() -> SingularAdapter:
    """Call-recording adapter implementing only the ``*_one`` operations."""
    return SingularAdapter()


@pytest.fixture
def plural_adapter() -> PluralAdapter:
    """Call-recording adapter implementing only the ``*_many`` operations."""
    return PluralAdapter()
