from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID

from ..entities.activity import Application, Favorite
from ..entities.listing import Listing
from .recommendation_config import RecommendationConfig

Footprint = Dict[Tuple[str, str], datetime]


@dataclass
class SimilarUser:
    """A peer whose activity overlaps the subject user's."""
    user_id: UUID
    similarity: float
    applied_listing_ids: Set[UUID] = field(default_factory=set)
    favorite_listing_ids: Set[UUID] = field(default_factory=set)


class SimilarityCalculator:
    """Listing-to-listing and user-to-user similarity.

    Listing similarity is capped at ``config.similarity_cap`` (100 by default)
    and is zero across property types.
    """

    def __init__(self, config: Optional[RecommendationConfig] = None):
        self.config = config or RecommendationConfig()

    def listing_similarity(self, source: Listing, candidate: Listing) -> float:
        cfg = self.config
        if _normalize(source.property_type) != _normalize(candidate.property_type):
            return 0.0

        score = 0.0
        if _normalize(source.city) == _normalize(candidate.city):
            score += cfg.similarity_same_city_points

        bedroom_diff = abs(source.bedrooms - candidate.bedrooms)
        if bedroom_diff <= cfg.similarity_bedroom_tolerance:
            score += cfg.similarity_bedroom_points * (1 - bedroom_diff / (cfg.similarity_bedroom_tolerance + 1))

        if source.price > 0:
            price_delta = abs(candidate.price - source.price) / source.price
            if price_delta <= cfg.similarity_price_band:
                score += cfg.similarity_price_points * (1 - price_delta / cfg.similarity_price_band)

        bathroom_diff = abs(source.bathrooms - candidate.bathrooms)
        score += max(cfg.similarity_bathroom_points - bathroom_diff * cfg.similarity_bathroom_step, 0.0)

        shared = set(source.amenities_list()) & set(candidate.amenities_list())
        score += min(len(shared) * cfg.similarity_amenity_points, cfg.similarity_amenity_cap)

        return min(score, cfg.similarity_cap)

    def user_footprint(self,
                       applications: List[Application],
                       favorites: List[Favorite],
                       listings_by_id: Dict[UUID, Listing]) -> Footprint:
        """(property_type, city) pairs a user applied to or favorited, with the latest touch."""
        footprint: Footprint = {}

        def touch(property_type, city, seen_at):
            if not property_type or not city:
                return
            key = (_normalize(property_type), _normalize(city))
            if key not in footprint or seen_at > footprint[key]:
                footprint[key] = seen_at

        for app in applications:
            listing = listings_by_id.get(app.listing_id)
            touch(app.property_type or (listing and listing.property_type),
                  app.city or (listing and listing.city),
                  app.created_at)
        for fav in favorites:
            listing = listings_by_id.get(fav.listing_id)
            if listing:
                touch(listing.property_type, listing.city, fav.created_at)
        return footprint

    def user_similarity(self, subject: Footprint, other: Footprint, now: datetime) -> float:
        """Recency-weighted count of shared (property_type, city) pairs; zero without overlap."""
        cfg = self.config
        score = 0.0
        for key in subject.keys() & other.keys():
            latest = max(subject[key], other[key])
            if (now - latest).days <= cfg.user_similarity_recent_days:
                score += 1.0
            else:
                score += cfg.user_similarity_stale_weight
        return score

    def rank_similar_users(self, candidates: List[SimilarUser]) -> List[SimilarUser]:
        ranked = [user for user in candidates if user.similarity > 0]
        ranked.sort(key=lambda user: (-user.similarity, str(user.user_id)))
        return ranked[:self.config.max_similar_users]


def _normalize(value) -> str:
    return str(value).strip().lower() if value is not None else ""
