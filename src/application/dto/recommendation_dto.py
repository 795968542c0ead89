from typing import List, Optional, Dict, Any
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from domain.entities.listing import Listing
from domain.entities.recommendation import ScoredListing

RECOMMENDATION_TYPES = ("search", "personalized", "similar", "trending")


class RecommendationRequest(BaseModel):
    """Request model for filtered recommendations"""
    user_id: Optional[UUID] = Field(None, description="User to personalize for; anonymous when absent")
    filters: Optional[Dict[str, Any]] = Field(None, description="Structural filters (location, price, amenities, ...)")
    limit: int = Field(default=20, ge=1, le=50, description="Number of recommendations to return")
    include_scores: bool = Field(default=True, description="Include the score breakdown for each listing")


class PersonalizedRecommendationRequest(BaseModel):
    """Request model for personalized recommendations"""
    user_id: UUID = Field(..., description="User ID for personalized recommendations")
    limit: int = Field(default=10, ge=1, le=50, description="Number of recommendations to return")


class SimilarPropertiesRequest(BaseModel):
    """Request model for similar properties"""
    listing_id: UUID = Field(..., description="Listing to find similar listings for")
    limit: int = Field(default=5, ge=1, le=50, description="Number of similar listings to return")


class ScoreBreakdown(BaseModel):
    """Sub-scores behind a recommendation"""
    preference_score: float = Field(..., ge=0.0, description="Match with stated and inferred preferences")
    collaborative_score: float = Field(..., ge=0.0, description="Interest from similar renters")
    behavioral_score: float = Field(..., ge=0.0, description="Fit with the user's past behaviour")
    market_score: float = Field(..., ge=0.0, description="Recent activity, pricing and listing quality")
    total_score: float = Field(..., ge=0.0, description="Weighted total used for ranking")
    relevance_score: float = Field(..., ge=0.0, le=100.0, description="Total clamped into 0-100 for display")


class ListingSummary(BaseModel):
    id: UUID
    title: str
    property_type: str
    city: str
    price: float
    bedrooms: int
    bathrooms: float
    square_feet: Optional[int] = None
    amenities: List[str] = Field(default_factory=list)
    average_rating: Optional[float] = None

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingSummary":
        return cls(
            id=listing.id,
            title=listing.title,
            property_type=listing.property_type,
            city=listing.city,
            price=float(listing.price),
            bedrooms=listing.bedrooms,
            bathrooms=float(listing.bathrooms),
            square_feet=listing.square_feet,
            amenities=listing.amenities_list(),
            average_rating=listing.average_rating
        )


class RecommendedListing(BaseModel):
    """A listing with its rank and, for scored results, the reasons behind it"""
    listing: ListingSummary
    rank: int = Field(..., ge=1, description="Rank in recommendation list")
    scores: Optional[ScoreBreakdown] = None
    match_reasons: List[str] = Field(default_factory=list)
    recommendation_tags: List[str] = Field(default_factory=list)

    @classmethod
    def from_scored_listing(cls, scored: ScoredListing, rank: int,
                            include_scores: bool = True) -> "RecommendedListing":
        return cls(
            listing=ListingSummary.from_listing(scored.listing),
            rank=rank,
            scores=ScoreBreakdown(**scored.score_breakdown()) if include_scores else None,
            match_reasons=list(scored.match_reasons),
            recommendation_tags=list(scored.recommendation_tags)
        )

    @classmethod
    def from_listing(cls, listing: Listing, rank: int) -> "RecommendedListing":
        return cls(listing=ListingSummary.from_listing(listing), rank=rank)


class RecommendationResponse(BaseModel):
    """Response model for every recommendation operation"""
    recommendations: List[RecommendedListing]
    recommendation_type: str
    total_count: int
    user_id: Optional[UUID] = None
    source_listing_id: Optional[UUID] = None
    generated_at: datetime = Field(default_factory=datetime.now)
    response_time_ms: float = 0.0

    @field_validator('recommendation_type')
    @classmethod
    def validate_recommendation_type(cls, v):
        if v not in RECOMMENDATION_TYPES:
            raise ValueError(f'recommendation_type must be one of: {", ".join(RECOMMENDATION_TYPES)}')
        return v
