import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple
from uuid import UUID

import numpy as np

from ..entities.listing import Listing
from ..entities.recommendation import PreferenceProfile, PriceSensitivity, ScoredListing
from .recommendation_config import RecommendationConfig
from .similarity_calculator import SimilarUser

CohortKey = Tuple[str, str, int]


@dataclass
class SubScore:
    points: float = 0.0
    reasons: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    def add(self, points: float, reason: str = None, tag: str = None):
        self.points += points
        if reason:
            self.reasons.append(reason)
        if tag and tag not in self.tags:
            self.tags.append(tag)


@dataclass
class ScoringContext:
    """Request-scoped inputs shared by all sub-scorers."""
    profile: Optional[PreferenceProfile] = None
    similar_users: List[SimilarUser] = field(default_factory=list)
    recent_view_counts: Dict[UUID, int] = field(default_factory=dict)
    cohort_prices: Dict[CohortKey, List[float]] = field(default_factory=dict)


class ScoringEngine:
    """Rule-based scoring: four sub-scores combined into a weighted total.

    Sub-scores are non-negative and unbounded; only the relevance score is
    clamped into [0, 100].
    """

    def __init__(self, config: Optional[RecommendationConfig] = None):
        self.config = config or RecommendationConfig()
        self.logger = logging.getLogger(__name__)

    # === SUB-SCORERS ===

    def preference_score(self, listing: Listing, profile: Optional[PreferenceProfile]) -> SubScore:
        cfg = self.config
        result = SubScore()
        if profile is None:
            return result

        price_range = profile.preferred_price_range
        if price_range is not None:
            if price_range.contains(listing.price):
                half_width = (price_range.max - price_range.min) / 2.0
                closeness = 1.0 if half_width <= 0 else 1 - abs(listing.price - price_range.center) / half_width
                result.add(cfg.price_in_range_points + cfg.price_center_bonus_points * closeness,
                           f"Priced like the places you applied to (${price_range.min:,.0f}-${price_range.max:,.0f})",
                           "preferred_price")
            elif price_range.max < listing.price <= price_range.max * (1 + cfg.price_near_range_tolerance):
                result.add(cfg.price_near_range_points, "Slightly above your usual price range")

        if profile.budget_max is not None and listing.price <= profile.budget_max:
            result.add(cfg.budget_match_points, f"Within your budget of ${profile.budget_max:,.0f}", "within_budget")

        city = (listing.city or "").lower()
        matching_location = next(
            (loc for loc in profile.preferred_locations if loc and loc.lower() in city), None
        )
        if matching_location:
            result.add(cfg.location_match_points, f"In your preferred area: {listing.city}", "preferred_location")

        preferred_types = {ptype.lower() for ptype in profile.preferred_property_types}
        if listing.property_type.lower() in preferred_types:
            result.add(cfg.property_type_match_points, f"Matches your preferred type: {listing.property_type}",
                       "preferred_type")

        if profile.preferred_bedrooms is not None:
            bedroom_diff = abs(listing.bedrooms - profile.preferred_bedrooms)
            if bedroom_diff == 0:
                result.add(cfg.bedroom_exact_points, f"Has the {listing.bedrooms} bedrooms you want")
            elif bedroom_diff == 1:
                result.add(cfg.bedroom_near_points)

        matching = sorted(flag for flag in profile.preferred_amenities if getattr(listing, flag, False))
        if matching:
            result.add(len(matching) * cfg.amenity_match_points,
                       "Has amenities you asked for: " + ", ".join(_label(flag) for flag in matching))
        return result

    def collaborative_score(self, listing: Listing, similar_users: List[SimilarUser]) -> SubScore:
        cfg = self.config
        result = SubScore()
        interested = 0
        for peer in similar_users:
            if listing.id in peer.applied_listing_ids:
                result.add(cfg.similar_user_application_points)
                interested += 1
            if listing.id in peer.favorite_listing_ids:
                result.add(cfg.similar_user_favorite_points)
                interested += 1
        if interested:
            result.add(0.0, "Popular with renters who share your taste", "popular_with_similar_renters")
        return result

    def behavioral_score(self, listing: Listing, profile: Optional[PreferenceProfile]) -> SubScore:
        cfg = self.config
        result = SubScore()
        if profile is None:
            return result

        price_range = profile.preferred_price_range
        sensitivity = profile.price_sensitivity
        if price_range is not None and price_range.avg > 0:
            center = price_range.avg
            deviation = abs(listing.price - center) / center
            if sensitivity == PriceSensitivity.LOW and deviation <= cfg.low_sensitivity_price_band:
                result.add(cfg.behavioral_price_points, "Close to the price you usually pay")
            elif sensitivity == PriceSensitivity.MODERATE and deviation <= cfg.moderate_sensitivity_price_band:
                result.add(cfg.behavioral_price_points, "Close to the price you usually pay")
            elif sensitivity == PriceSensitivity.HIGH and listing.price < center:
                result.add(cfg.behavioral_price_points, "Cheaper than what you usually pay")

        important = sorted(flag for flag in profile.high_importance_amenities if getattr(listing, flag, False))
        if important:
            result.add(len(important) * cfg.behavioral_amenity_points,
                       "Has amenities your saved listings share: " + ", ".join(_label(flag) for flag in important))
        return result

    def market_score(self, listing: Listing, cohort_prices: List[float], recent_views: int) -> SubScore:
        cfg = self.config
        result = SubScore()

        if recent_views > 0:
            result.add(recent_views * cfg.recent_view_points,
                       f"Viewed {recent_views} times this week", "trending")

        if len(cohort_prices) > cfg.comparable_min_cohort:
            cohort_avg = float(np.mean(cohort_prices))
            if listing.price <= cohort_avg * (1 - cfg.good_value_discount):
                result.add(cfg.good_value_points, "Priced below comparable listings", "good_value")
            elif listing.price <= cohort_avg * (1 + cfg.good_value_discount):
                result.add(cfg.fair_value_points, "Priced in line with comparable listings")

        quality = False
        if listing.photo_count >= cfg.min_photo_count:
            result.add(cfg.photo_points)
            quality = True
        if listing.description and len(listing.description) >= cfg.min_description_length:
            result.add(cfg.description_points)
            quality = True
        if quality:
            result.add(0.0, tag="quality_listing")
        if self._is_highly_rated(listing):
            result.add(cfg.high_rating_points, f"Rated {listing.average_rating:.1f} by past tenants", "highly_rated")
        return result

    # === COHORTS ===

    def build_cohort_index(self, pool: List[Listing]) -> Dict[CohortKey, List[float]]:
        """Prices of active listings grouped by (property_type, city, bedrooms)."""
        index = defaultdict(list)
        for listing in pool:
            if listing.is_active():
                index[_cohort_key(listing)].append(listing.price)
        return dict(index)

    def cohort_prices_for(self, listing: Listing, index: Dict[CohortKey, List[float]]) -> List[float]:
        ptype, city, bedrooms = _cohort_key(listing)
        tolerance = self.config.comparable_bedroom_tolerance
        prices = []
        for delta in range(-tolerance, tolerance + 1):
            prices.extend(index.get((ptype, city, bedrooms + delta), []))
        return prices

    # === TOTAL & RANKING ===

    def total_score(self, listing: Listing, preference: float, collaborative: float,
                    behavioral: float, market: float) -> float:
        cfg = self.config
        weights = cfg.weights
        total = (cfg.base_score
                 + preference * weights.preference
                 + collaborative * weights.collaborative
                 + behavioral * weights.behavioral
                 + market * weights.market)
        if self._is_highly_rated(listing):
            total *= cfg.quality_multiplier
        return total

    def relevance(self, total: float) -> float:
        return round(min(max(total, 0.0), 100.0), 2)

    def score(self, listing: Listing, context: ScoringContext) -> ScoredListing:
        preference = self.preference_score(listing, context.profile)
        collaborative = self.collaborative_score(listing, context.similar_users)
        behavioral = self.behavioral_score(listing, context.profile)
        market = self.market_score(
            listing,
            self.cohort_prices_for(listing, context.cohort_prices),
            context.recent_view_counts.get(listing.id, 0)
        )
        total = self.total_score(listing, preference.points, collaborative.points,
                                 behavioral.points, market.points)

        reasons, tags = [], []
        for part in (preference, collaborative, behavioral, market):
            reasons.extend(part.reasons)
            tags.extend(tag for tag in part.tags if tag not in tags)

        return ScoredListing(
            listing=listing,
            preference_score=preference.points,
            collaborative_score=collaborative.points,
            behavioral_score=behavioral.points,
            market_score=market.points,
            total_score=total,
            relevance_score=self.relevance(total),
            match_reasons=tuple(reasons),
            recommendation_tags=tuple(tags)
        )

    def score_all(self, listings: List[Listing], context: ScoringContext) -> List[ScoredListing]:
        return self.rank([self.score(listing, context) for listing in listings])

    @staticmethod
    def rank(scored: List[ScoredListing]) -> List[ScoredListing]:
        """Sort by total score, oldest listing first on ties, then by id."""
        return sorted(scored, key=lambda item: (-item.total_score, item.listing.created_at, str(item.listing.id)))

    def _is_highly_rated(self, listing: Listing) -> bool:
        return listing.average_rating is not None and listing.average_rating > self.config.quality_rating_threshold


def _cohort_key(listing: Listing) -> CohortKey:
    return (listing.property_type.strip().lower(), listing.city.strip().lower(), int(listing.bedrooms))


def _label(flag: str) -> str:
    return flag.replace("_available", "").replace("_", " ")
