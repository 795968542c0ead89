"""
Global pytest configuration and fixtures for the recommendation engine test suite.

This module provides a fixed clock, seeded in-memory repositories and the
recommendation service wired on top of them.
"""

import os
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Test environment setup
os.environ["TESTING"] = "1"

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.services.recommendation_config import RecommendationConfig
from domain.services.recommendation_service import RecommendationService
from infrastructure.data.repositories import InMemoryListingRepository, InMemoryActivityRepository
from tests.utils.data_factories import (
    ListingFactory, UserFactory, ActivityFactory, FactoryConfig, FIXED_NOW
)


# =======================
# Test Configuration
# =======================

def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


# =======================
# Clock & Configuration
# =======================

@pytest.fixture
def now() -> datetime:
    """The instant every test treats as 'now'."""
    return FIXED_NOW


@pytest.fixture
def config() -> RecommendationConfig:
    return RecommendationConfig()


# =======================
# Factory Fixtures
# =======================

@pytest.fixture
def listing_factory() -> ListingFactory:
    return ListingFactory(FactoryConfig(seed=42))


@pytest.fixture
def user_factory() -> UserFactory:
    return UserFactory(FactoryConfig(seed=42))


@pytest.fixture
def activity_factory() -> ActivityFactory:
    return ActivityFactory()


# =======================
# Repository Fixtures
# =======================

@pytest.fixture
def listing_repository() -> InMemoryListingRepository:
    return InMemoryListingRepository()


@pytest.fixture
def activity_repository() -> InMemoryActivityRepository:
    return InMemoryActivityRepository()


@pytest.fixture
def recommendation_service(listing_repository, activity_repository, config, now) -> RecommendationService:
    return RecommendationService(
        listing_repository,
        activity_repository,
        config=config,
        clock=lambda: now
    )
