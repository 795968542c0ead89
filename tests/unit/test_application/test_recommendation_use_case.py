"""
Unit tests for the RecommendationUseCase application service.

Tests request handling, user lookup, fallbacks and response shaping.
"""

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from pydantic import ValidationError

from application.dto.recommendation_dto import (
    RecommendationRequest, PersonalizedRecommendationRequest, SimilarPropertiesRequest,
    RecommendationResponse
)
from application.use_cases.recommendation_use_case import RecommendationUseCase


@pytest.fixture
def use_case(recommendation_service, listing_repository, activity_repository):
    return RecommendationUseCase(recommendation_service, listing_repository, activity_repository)


@pytest.fixture
def market(listing_factory, listing_repository):
    return listing_repository.add_many([
        listing_factory.create(title="Seattle apartment", city="Seattle", property_type="apartment",
                               price=2000.0, bedrooms=2, amenities=["parking"], average_rating=4.6),
        listing_factory.create(title="Seattle twin", city="Seattle", property_type="apartment",
                               price=2100.0, bedrooms=2),
        listing_factory.create(title="Tacoma house", city="Tacoma", property_type="house",
                               price=2600.0, bedrooms=3),
    ])


class TestRecommendationUseCase:
    """Test cases for RecommendationUseCase."""

    @pytest.mark.asyncio
    async def test_recommend_with_known_user(self, use_case, market, user_factory, activity_repository):
        tenant = activity_repository.add_user(user_factory.create_tenant(preferred_locations={"Seattle"}))

        response = await use_case.recommend(RecommendationRequest(
            user_id=tenant.id, filters={"max_price": 2500}, limit=5
        ))

        assert response.recommendation_type == "search"
        assert response.user_id == tenant.id
        assert response.total_count == 2
        assert [item.rank for item in response.recommendations] == [1, 2]
        top = response.recommendations[0]
        assert top.listing.title == "Seattle apartment"
        assert top.listing.amenities == ["parking_available"]
        assert 0.0 <= top.scores.relevance_score <= 100.0
        assert "highly_rated" in top.recommendation_tags

    @pytest.mark.asyncio
    async def test_recommend_unknown_user_is_anonymous(self, use_case, market):
        response = await use_case.recommend(RecommendationRequest(user_id=uuid4(), include_scores=False))

        assert response.user_id is None
        assert response.total_count == 3
        assert all(item.scores is None for item in response.recommendations)

    @pytest.mark.asyncio
    async def test_personalized_for_tenant(self, use_case, market, user_factory, activity_repository):
        tenant = activity_repository.add_user(user_factory.create_tenant(
            preferred_locations={"Tacoma"}, preferred_property_types={"house"}, preferred_bedrooms=3
        ))

        response = await use_case.personalized(PersonalizedRecommendationRequest(user_id=tenant.id, limit=2))

        assert response.recommendation_type == "personalized"
        assert response.total_count == 2
        assert response.recommendations[0].listing.title == "Tacoma house"

    @pytest.mark.asyncio
    async def test_personalized_falls_back_to_trending(self, use_case, market, user_factory,
                                                       activity_repository, activity_factory):
        landlord = activity_repository.add_user(user_factory.create_landlord())
        activity_repository.add_viewing(activity_factory.viewing(landlord.id, market[1]))

        for user_id in (landlord.id, uuid4()):
            response = await use_case.personalized(PersonalizedRecommendationRequest(user_id=user_id))
            assert response.recommendation_type == "trending"
            assert [item.listing.title for item in response.recommendations] == ["Seattle twin"]
            assert response.recommendations[0].scores is None

    @pytest.mark.asyncio
    async def test_similar(self, use_case, market):
        response = await use_case.similar(SimilarPropertiesRequest(listing_id=market[0].id))

        assert response.recommendation_type == "similar"
        assert response.source_listing_id == market[0].id
        assert [item.listing.title for item in response.recommendations] == ["Seattle twin"]

    @pytest.mark.asyncio
    async def test_similar_unknown_listing(self, use_case, market):
        response = await use_case.similar(SimilarPropertiesRequest(listing_id=uuid4()))
        assert response.total_count == 0
        assert response.recommendations == []

    @pytest.mark.asyncio
    async def test_trending(self, use_case, market, activity_factory, activity_repository):
        user_id = uuid4()
        for viewing in activity_factory.viewings(user_id, market[2], 2):
            activity_repository.add_viewing(viewing)

        response = await use_case.trending(5)

        assert response.recommendation_type == "trending"
        assert [item.listing.title for item in response.recommendations] == ["Tacoma house"]

    @pytest.mark.asyncio
    async def test_service_failure_yields_empty_response(self, listing_repository, activity_repository):
        service = AsyncMock()
        service.recommend.return_value = []
        use_case = RecommendationUseCase(service, listing_repository, activity_repository)

        response = await use_case.recommend(RecommendationRequest(filters={"city": "Nowhere"}))

        assert response.total_count == 0
        service.recommend.assert_awaited_once_with({"city": "Nowhere"}, user=None, limit=20)


class TestRecommendationDtos:
    """Validation of request and response models."""

    def test_limit_bounds(self):
        with pytest.raises(ValidationError):
            RecommendationRequest(limit=0)
        with pytest.raises(ValidationError):
            SimilarPropertiesRequest(listing_id=uuid4(), limit=51)

    def test_defaults(self):
        assert RecommendationRequest().limit == 20
        assert PersonalizedRecommendationRequest(user_id=uuid4()).limit == 10
        assert SimilarPropertiesRequest(listing_id=uuid4()).limit == 5

    def test_unknown_recommendation_type(self):
        with pytest.raises(ValidationError, match="recommendation_type"):
            RecommendationResponse(recommendations=[], recommendation_type="random", total_count=0)
