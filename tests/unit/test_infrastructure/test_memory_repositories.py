"""
Unit tests for the in-memory repositories, data configuration and the repository factory.
"""

import pytest
from datetime import timedelta
from uuid import uuid4

from domain.services.recommendation_service import RecommendationService
from infrastructure.data import DataConfig, RepositoryFactory
from infrastructure.data.repositories import InMemoryListingRepository, InMemoryActivityRepository
from tests.utils.data_factories import ListingFactory, UserFactory, ActivityFactory, FactoryConfig, FIXED_NOW


class TestInMemoryListingRepository:
    """Test cases for the in-memory listing store."""

    def setup_method(self):
        self.factory = ListingFactory(FactoryConfig(seed=42))
        self.repository = InMemoryListingRepository()

    @pytest.mark.asyncio
    async def test_get_by_id(self):
        listing = self.repository.add(self.factory.create())

        assert await self.repository.get_by_id(listing.id) is listing
        assert await self.repository.get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_by_ids_skips_unknown(self):
        first, second = self.repository.add_many(self.factory.create_batch(2))

        result = await self.repository.get_by_ids([second.id, uuid4(), first.id])

        assert result == [second, first]

    @pytest.mark.asyncio
    async def test_get_all_active_is_oldest_first(self):
        newer = self.factory.create()
        older = self.factory.create(created_at=FIXED_NOW - timedelta(days=300))
        inactive = self.factory.create_inactive()
        rented = self.factory.create_unavailable()
        repository = InMemoryListingRepository([newer, older, inactive, rented])

        active = await repository.get_all_active()

        assert active == [older, newer, rented]
        assert await repository.get_active_count() == 3


class TestInMemoryActivityRepository:
    """Test cases for the in-memory activity store."""

    def setup_method(self):
        self.listings = ListingFactory(FactoryConfig(seed=42))
        self.users = UserFactory()
        self.activity = ActivityFactory()
        self.repository = InMemoryActivityRepository()

    @pytest.mark.asyncio
    async def test_users_and_tenants(self):
        tenant = self.repository.add_user(self.users.create())
        self.repository.add_user(self.users.create_landlord())

        assert await self.repository.get_user(tenant.id) is tenant
        assert await self.repository.get_user(uuid4()) is None
        assert await self.repository.get_tenants() == [tenant]

    @pytest.mark.asyncio
    async def test_activity_filtered_by_user(self):
        listing = self.listings.create()
        alice, bob = uuid4(), uuid4()
        self.repository.add_application(self.activity.application(alice, listing))
        self.repository.add_application(self.activity.application(bob, listing))

        assert len(await self.repository.get_applications()) == 2
        assert [app.user_id for app in await self.repository.get_applications(alice)] == [alice]

    @pytest.mark.asyncio
    async def test_duplicate_favorite_is_ignored(self):
        listing = self.listings.create()
        user_id = uuid4()
        self.repository.add_favorite(self.activity.favorite(user_id, listing, days_ago=3))
        self.repository.add_favorite(self.activity.favorite(user_id, listing, days_ago=1))

        favorites = await self.repository.get_favorites(user_id)

        assert len(favorites) == 1
        assert favorites[0].created_at == FIXED_NOW - timedelta(days=3)

    @pytest.mark.asyncio
    async def test_viewings_since(self):
        listing = self.listings.create()
        user_id = uuid4()
        self.repository.add_viewing(self.activity.viewing(user_id, listing, days_ago=10))
        self.repository.add_viewing(self.activity.viewing(user_id, listing, days_ago=2))
        self.repository.add_viewing(self.activity.viewing(uuid4(), listing, days_ago=1))

        since = FIXED_NOW - timedelta(days=7)

        assert len(await self.repository.get_viewings(since=since)) == 2
        assert len(await self.repository.get_viewings(user_id, since=since)) == 1
        assert len(await self.repository.get_viewings(user_id)) == 2


class TestDataConfig:
    """Test cases for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATA_BACKEND", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("RECOMMENDATION_MAX_RESULTS", raising=False)

        config = DataConfig()

        assert config.data_source.backend == "memory"
        assert config.data_source.log_level == "INFO"
        assert config.recommendation.max_results == 20

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("RECOMMENDATION_MAX_RESULTS", "7")

        config = DataConfig()

        assert config.data_source.log_level == "DEBUG"
        assert config.recommendation.max_results == 7

    def test_unsupported_backend_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("DATA_BACKEND", "postgres")

        assert DataConfig().data_source.backend == "memory"
        assert "Unsupported DATA_BACKEND" in caplog.text


class TestRepositoryFactory:
    """Test cases for RepositoryFactory."""

    def test_requires_initialization(self):
        factory = RepositoryFactory()

        assert not factory.is_initialized()
        with pytest.raises(RuntimeError, match="not initialized"):
            factory.get_listing_repository()

    def test_initialize_creates_shared_repositories(self):
        factory = RepositoryFactory()
        factory.initialize()

        assert factory.is_initialized()
        assert isinstance(factory.get_listing_repository(), InMemoryListingRepository)
        assert factory.get_activity_repository() is factory.get_activity_repository()

    @pytest.mark.asyncio
    async def test_service_reads_factory_repositories(self):
        factory = RepositoryFactory()
        factory.initialize()
        factory.get_listing_repository().add(ListingFactory().create())

        service = factory.create_recommendation_service(clock=lambda: FIXED_NOW)

        assert isinstance(service, RecommendationService)
        assert service.config is factory.config.recommendation
        assert len(await service.recommend()) == 1
