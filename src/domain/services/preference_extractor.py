import logging
from collections import Counter, defaultdict
from datetime import datetime
from typing import List, Dict, Optional, Iterable, Tuple
from uuid import UUID

import numpy as np

from ..entities.activity import Application, Favorite, ViewingEvent
from ..entities.listing import Listing, AMENITY_FLAGS, normalize_amenity
from ..entities.recommendation import PreferenceProfile, PriceRange, PriceSensitivity
from ..entities.user import UserProfile
from .recommendation_config import RecommendationConfig

PRICE_BANDS = (
    (1000, "budget"),
    (2000, "moderate"),
    (3000, "premium"),
)


class PreferenceExtractor:
    """Derives a user's preference profile from stated preferences and past activity.

    Frequency rankings (cities, property types, bedrooms) break ties in favour
    of the most recently seen value.
    """

    def __init__(self, config: Optional[RecommendationConfig] = None):
        self.config = config or RecommendationConfig()
        self.logger = logging.getLogger(__name__)

    def extract(self,
                user: Optional[UserProfile],
                applications: List[Application],
                favorites: List[Favorite],
                viewings: List[ViewingEvent],
                listings_by_id: Dict[UUID, Listing]) -> PreferenceProfile:
        profile = PreferenceProfile()
        if user is None:
            return profile

        explicit = user.preferences
        applications = applications or []
        favorites = favorites or []
        viewings = viewings or []
        listings_by_id = listings_by_id or {}

        inferred_cities = rank_by_frequency(
            (app.city, app.created_at) for app in applications if app.city
        )
        inferred_types = rank_by_frequency(
            (app.property_type, app.created_at) for app in applications if app.property_type
        )
        profile.preferred_locations = _merge(explicit.preferred_locations if explicit else set(),
                                             inferred_cities)
        profile.preferred_property_types = _merge(explicit.preferred_property_types if explicit else set(),
                                                  inferred_types)

        prices = self._applied_prices(applications)
        if prices:
            profile.preferred_price_range = PriceRange(
                min=min(prices), max=max(prices), avg=float(np.mean(prices))
            )
        profile.price_sensitivity = self.calculate_price_sensitivity(prices)

        if explicit and explicit.preferred_bedrooms is not None:
            profile.preferred_bedrooms = explicit.preferred_bedrooms
        else:
            bedroom_ranking = rank_by_frequency(
                (listings_by_id[app.listing_id].bedrooms, app.created_at)
                for app in applications if app.listing_id in listings_by_id
            )
            profile.preferred_bedrooms = bedroom_ranking[0] if bedroom_ranking else None

        if explicit:
            profile.budget_max = explicit.budget_max
            profile.preferred_amenities = {
                flag for flag in (normalize_amenity(name) for name in explicit.preferred_amenities) if flag
            }

        profile.amenity_importance = self.calculate_amenity_importance(
            applications, favorites, listings_by_id
        )
        profile.viewing_patterns = self.analyze_viewing_patterns(viewings)
        profile.favorite_patterns = self.analyze_favorite_patterns(favorites, listings_by_id)

        self.logger.debug(
            f"Extracted preferences for user {user.id}: "
            f"{len(applications)} applications, {len(favorites)} favorites, "
            f"{len(viewings)} viewings, sensitivity={profile.price_sensitivity.value}"
        )
        return profile

    def calculate_price_sensitivity(self, prices: List[float]) -> PriceSensitivity:
        """Bucket the coefficient of variation of applied-to prices."""
        if len(prices) < 2:
            return PriceSensitivity.UNKNOWN
        mean = float(np.mean(prices))
        if mean <= 0:
            return PriceSensitivity.UNKNOWN
        variation = float(np.std(prices)) / mean
        if variation < self.config.low_sensitivity_cv:
            return PriceSensitivity.LOW
        if variation <= self.config.moderate_sensitivity_cv:
            return PriceSensitivity.MODERATE
        return PriceSensitivity.HIGH

    def calculate_amenity_importance(self,
                                     applications: List[Application],
                                     favorites: List[Favorite],
                                     listings_by_id: Dict[UUID, Listing]) -> Dict[str, set]:
        """Amenities present on at least half of the favorited or applied-to listings."""
        listing_ids = {record.listing_id for record in list(applications) + list(favorites)}
        listings = [listings_by_id[listing_id] for listing_id in listing_ids if listing_id in listings_by_id]
        if not listings:
            return {"high_importance": set()}

        counts = Counter(flag for listing in listings for flag in listing.amenities_list())
        threshold = self.config.amenity_importance_share * len(listings)
        return {
            "high_importance": {flag for flag in AMENITY_FLAGS if counts[flag] and counts[flag] >= threshold}
        }

    def analyze_viewing_patterns(self, viewings: List[ViewingEvent]) -> Dict:
        if not viewings:
            return {
                "avg_viewings_per_listing": 0.0,
                "total_viewings": 0,
                "distinct_listings": 0,
                "viewings_by_hour": {}
            }
        per_listing = Counter(viewing.listing_id for viewing in viewings)
        return {
            "avg_viewings_per_listing": len(viewings) / len(per_listing),
            "total_viewings": len(viewings),
            "distinct_listings": len(per_listing),
            "viewings_by_hour": dict(Counter(viewing.created_at.hour for viewing in viewings))
        }

    def analyze_favorite_patterns(self, favorites: List[Favorite],
                                  listings_by_id: Dict[UUID, Listing]) -> Dict:
        listings = [listings_by_id[fav.listing_id] for fav in favorites if fav.listing_id in listings_by_id]
        return {
            "preferred_types": dict(Counter(listing.property_type for listing in listings)),
            "preferred_locations": dict(Counter(listing.city for listing in listings)),
            "preferred_price_ranges": dict(Counter(price_band(listing.price) for listing in listings))
        }

    def _applied_prices(self, applications: List[Application]) -> List[float]:
        prices = []
        for app in applications:
            try:
                price = float(app.price)
            except (TypeError, ValueError):
                continue
            if price > 0:
                prices.append(price)
        return prices


def rank_by_frequency(values: Iterable[Tuple[object, datetime]]) -> List:
    """Order distinct values by occurrence count, most recent occurrence breaking ties.

    Strings are grouped case-insensitively; the most recent spelling is kept.
    """
    counts = Counter()
    latest: Dict[object, datetime] = {}
    spelling: Dict[object, object] = {}
    for value, seen_at in values:
        key = value.strip().lower() if isinstance(value, str) else value
        counts[key] += 1
        if key not in latest or seen_at >= latest[key]:
            latest[key] = seen_at
            spelling[key] = value.strip() if isinstance(value, str) else value
    ordered = sorted(counts, key=lambda key: (-counts[key], -latest[key].timestamp()))
    return [spelling[key] for key in ordered]


def price_band(price: float) -> str:
    for ceiling, name in PRICE_BANDS:
        if price <= ceiling:
            return name
    return "luxury"


def _merge(explicit: Iterable[str], inferred: List[str]) -> List[str]:
    merged = sorted(explicit, key=str.lower)
    seen = defaultdict(bool)
    for value in merged:
        seen[value.lower()] = True
    for value in inferred:
        if not seen[value.lower()]:
            seen[value.lower()] = True
            merged.append(value)
    return merged
