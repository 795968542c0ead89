"""
Use cases for listing recommendations.

This module is the application layer entry point for recommendations: it
resolves ids to domain objects, calls the recommendation service and shapes
the results into response DTOs.
"""

import time
import logging
from typing import List, Optional

from domain.entities.listing import Listing
from domain.entities.recommendation import ScoredListing
from domain.repositories.activity_repository import ActivityRepository
from domain.repositories.listing_repository import ListingRepository
from domain.services.recommendation_service import RecommendationService
from application.dto.recommendation_dto import (
    RecommendationRequest, PersonalizedRecommendationRequest, SimilarPropertiesRequest,
    RecommendationResponse, RecommendedListing
)

logger = logging.getLogger(__name__)


class RecommendationUseCase:
    """Use case for recommendation requests"""

    def __init__(
        self,
        recommendation_service: RecommendationService,
        listing_repository: ListingRepository,
        activity_repository: ActivityRepository
    ):
        self.recommendation_service = recommendation_service
        self.listing_repository = listing_repository
        self.activity_repository = activity_repository

    async def recommend(self, request: RecommendationRequest) -> RecommendationResponse:
        """
        Filtered recommendations, personalized when the request names a known user.

        Args:
            request: Filters, optional user id and result limit

        Returns:
            RecommendationResponse with score breakdowns
        """
        start_time = time.time()
        user = None
        if request.user_id is not None:
            user = await self.activity_repository.get_user(request.user_id)
            if user is None:
                logger.warning(f"User {request.user_id} not found, recommending anonymously")

        scored = await self.recommendation_service.recommend(request.filters, user=user, limit=request.limit)
        return RecommendationResponse(
            recommendations=self._from_scored(scored, request.include_scores),
            recommendation_type="search",
            total_count=len(scored),
            user_id=user.id if user else None,
            response_time_ms=self._elapsed_ms(start_time)
        )

    async def personalized(self, request: PersonalizedRecommendationRequest) -> RecommendationResponse:
        """Personalized picks for tenants; landlords and unknown users get trending listings."""
        start_time = time.time()
        user = await self.activity_repository.get_user(request.user_id)

        if user is not None and user.is_tenant():
            scored = await self.recommendation_service.get_personalized_scored(user, request.limit)
            recommendations = self._from_scored(scored, include_scores=True)
            recommendation_type = "personalized"
        else:
            if user is None:
                logger.warning(f"User {request.user_id} not found, falling back to trending listings")
            listings = await self.recommendation_service.get_trending_properties(request.limit)
            recommendations = self._from_listings(listings)
            recommendation_type = "trending"

        return RecommendationResponse(
            recommendations=recommendations,
            recommendation_type=recommendation_type,
            total_count=len(recommendations),
            user_id=request.user_id,
            response_time_ms=self._elapsed_ms(start_time)
        )

    async def similar(self, request: SimilarPropertiesRequest) -> RecommendationResponse:
        start_time = time.time()
        listing = await self.listing_repository.get_by_id(request.listing_id)
        if listing is None:
            logger.warning(f"Listing {request.listing_id} not found")
            similar = []
        else:
            similar = await self.recommendation_service.get_similar_properties(listing, request.limit)

        return RecommendationResponse(
            recommendations=self._from_listings(similar),
            recommendation_type="similar",
            total_count=len(similar),
            source_listing_id=request.listing_id,
            response_time_ms=self._elapsed_ms(start_time)
        )

    async def trending(self, limit: int = 10) -> RecommendationResponse:
        start_time = time.time()
        listings = await self.recommendation_service.get_trending_properties(limit)
        return RecommendationResponse(
            recommendations=self._from_listings(listings),
            recommendation_type="trending",
            total_count=len(listings),
            response_time_ms=self._elapsed_ms(start_time)
        )

    def _from_scored(self, scored: List[ScoredListing], include_scores: bool) -> List[RecommendedListing]:
        return [
            RecommendedListing.from_scored_listing(item, rank, include_scores)
            for rank, item in enumerate(scored, start=1)
        ]

    def _from_listings(self, listings: List[Listing]) -> List[RecommendedListing]:
        return [RecommendedListing.from_listing(listing, rank) for rank, listing in enumerate(listings, start=1)]

    def _elapsed_ms(self, start_time: float) -> float:
        return round((time.time() - start_time) * 1000, 2)
