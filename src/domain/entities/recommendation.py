from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Set, Tuple, Optional, Any
from uuid import UUID

from .listing import Listing


class PriceSensitivity(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float
    avg: float

    @property
    def center(self) -> float:
        return (self.min + self.max) / 2.0

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


@dataclass
class PreferenceProfile:
    """Explicit and inferred housing preferences of one user, derived per request."""
    preferred_locations: List[str] = field(default_factory=list)
    preferred_property_types: List[str] = field(default_factory=list)
    preferred_price_range: Optional[PriceRange] = None
    preferred_bedrooms: Optional[int] = None
    budget_max: Optional[float] = None
    preferred_amenities: Set[str] = field(default_factory=set)
    viewing_patterns: Dict[str, Any] = field(default_factory=dict)
    favorite_patterns: Dict[str, Any] = field(default_factory=dict)
    price_sensitivity: PriceSensitivity = PriceSensitivity.UNKNOWN
    amenity_importance: Dict[str, Set[str]] = field(default_factory=dict)

    @property
    def high_importance_amenities(self) -> Set[str]:
        return self.amenity_importance.get("high_importance", set())

    @property
    def avg_viewings_per_listing(self) -> float:
        return self.viewing_patterns.get("avg_viewings_per_listing", 0.0)

    def is_empty(self) -> bool:
        return self == PreferenceProfile()


@dataclass(frozen=True)
class ScoredListing:
    """A listing decorated with its score breakdown for one ranking request.

    The wrapped listing is never modified.
    """
    listing: Listing
    preference_score: float = 0.0
    collaborative_score: float = 0.0
    behavioral_score: float = 0.0
    market_score: float = 0.0
    total_score: float = 0.0
    relevance_score: float = 0.0
    match_reasons: Tuple[str, ...] = ()
    recommendation_tags: Tuple[str, ...] = ()

    @property
    def id(self) -> UUID:
        return self.listing.id

    def score_breakdown(self) -> Dict[str, float]:
        return {
            "preference_score": round(self.preference_score, 2),
            "collaborative_score": round(self.collaborative_score, 2),
            "behavioral_score": round(self.behavioral_score, 2),
            "market_score": round(self.market_score, 2),
            "total_score": round(self.total_score, 2),
            "relevance_score": round(self.relevance_score, 2)
        }
