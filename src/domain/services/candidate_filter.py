import logging
from datetime import datetime, timedelta
from typing import List, Optional

from ..entities.listing import Listing, normalize_amenity
from ..entities.search_filters import SearchFilters
from .recommendation_config import RecommendationConfig


class CandidateFilter:
    """Applies the availability invariant and the structural search filters."""

    def __init__(self, config: Optional[RecommendationConfig] = None):
        self.config = config or RecommendationConfig()
        self.logger = logging.getLogger(__name__)

    def apply(self, listings: List[Listing], filters: Optional[SearchFilters] = None,
              now: Optional[datetime] = None) -> List[Listing]:
        candidates = [listing for listing in listings if listing.is_available()]
        if filters is None or filters.is_empty():
            return candidates

        now = now or datetime.now()
        amenity_flags = self._resolve_amenities(filters)
        location_terms = [term.strip().lower() for term in (filters.location or "").split(",") if term.strip()]
        max_price = filters.effective_max_price()

        result = []
        for listing in candidates:
            if location_terms and not self._matches_location(listing, location_terms):
                continue
            if filters.city and listing.city.strip().lower() != filters.city.strip().lower():
                continue
            if filters.min_price is not None and listing.price < filters.min_price:
                continue
            if max_price is not None and listing.price > max_price:
                continue
            if not self._matches_size(listing, filters):
                continue
            if filters.property_types and listing.property_type.lower() not in filters.property_types:
                continue
            if any(not getattr(listing, flag) for flag in amenity_flags):
                continue
            if filters.recently_updated and listing.updated_at < now - timedelta(days=self.config.recently_updated_days):
                continue
            if filters.move_in_date and listing.available_date and listing.available_date > filters.move_in_date:
                continue
            if filters.high_rated and (listing.average_rating is None
                                       or listing.average_rating < self.config.quality_rating_threshold):
                continue
            if filters.has_photos and not listing.photo_count:
                continue
            result.append(listing)

        self.logger.debug(f"Filtered {len(candidates)} available listings down to {len(result)}")
        return result

    def _matches_location(self, listing: Listing, terms: List[str]) -> bool:
        city = (listing.city or "").lower()
        address = (listing.address or "").lower()
        return any(term in city or term in address for term in terms)

    def _matches_size(self, listing: Listing, filters: SearchFilters) -> bool:
        if filters.bedrooms is not None:
            if listing.bedrooms != filters.bedrooms:
                return False
        elif filters.min_bedrooms is not None and listing.bedrooms < filters.min_bedrooms:
            return False

        if filters.bathrooms is not None:
            if listing.bathrooms != filters.bathrooms:
                return False
        elif filters.min_bathrooms is not None and listing.bathrooms < filters.min_bathrooms:
            return False

        if filters.min_square_feet is not None:
            if listing.square_feet is None or listing.square_feet < filters.min_square_feet:
                return False
        if filters.max_square_feet is not None:
            if listing.square_feet is None or listing.square_feet > filters.max_square_feet:
                return False
        return True

    def _resolve_amenities(self, filters: SearchFilters) -> List[str]:
        flags = []
        for name in sorted(filters.amenities):
            flag = normalize_amenity(name)
            if flag is None:
                self.logger.warning(f"Ignoring unknown amenity filter: {name!r}")
            elif flag not in flags:
                flags.append(flag)
        return flags
