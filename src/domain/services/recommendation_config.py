import os
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass
class ScoringWeights:
    """Weights of the four sub-scores in the total; preference must stay dominant."""
    preference: float = 0.40
    behavioral: float = 0.25
    collaborative: float = 0.20
    market: float = 0.15

    def __post_init__(self):
        others = (self.behavioral, self.collaborative, self.market)
        if any(weight < 0 for weight in (self.preference,) + others):
            raise ValueError("Scoring weights must be non-negative")
        if self.preference <= max(others):
            raise ValueError("Preference weight must dominate the other sub-score weights")


@dataclass
class RecommendationConfig:
    """Configuration for the recommendation engine.

    Point increments and thresholds are empirical; only their ordering
    (monotonic, bounded where stated) is relied on.
    """
    # Ranking
    max_results: int = 20
    base_score: float = 50.0
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    quality_rating_threshold: float = 4.0
    quality_multiplier: float = 1.2
    trending_window_days: int = 7
    recently_updated_days: int = 7

    # Preference score
    price_in_range_points: float = 10.0
    price_center_bonus_points: float = 10.0
    price_near_range_tolerance: float = 0.10
    price_near_range_points: float = 5.0
    budget_match_points: float = 10.0
    location_match_points: float = 15.0
    property_type_match_points: float = 10.0
    bedroom_exact_points: float = 10.0
    bedroom_near_points: float = 5.0
    amenity_match_points: float = 3.0

    # Preference extraction
    low_sensitivity_cv: float = 0.10
    moderate_sensitivity_cv: float = 0.30
    amenity_importance_share: float = 0.50

    # Collaborative score
    max_similar_users: int = 20
    similar_user_application_points: float = 5.0
    similar_user_favorite_points: float = 3.0
    user_similarity_recent_days: int = 90
    user_similarity_stale_weight: float = 0.5

    # Behavioral score
    behavioral_price_points: float = 5.0
    low_sensitivity_price_band: float = 0.10
    moderate_sensitivity_price_band: float = 0.20
    behavioral_amenity_points: float = 2.0

    # Market score
    recent_view_points: float = 2.0
    comparable_min_cohort: int = 5
    comparable_bedroom_tolerance: int = 0
    good_value_discount: float = 0.05
    good_value_points: float = 8.0
    fair_value_points: float = 5.0
    min_photo_count: int = 5
    photo_points: float = 3.0
    min_description_length: int = 200
    description_points: float = 2.0
    high_rating_points: float = 5.0

    # Listing-to-listing similarity
    similarity_cap: float = 100.0
    similarity_same_city_points: float = 25.0
    similarity_bedroom_points: float = 20.0
    similarity_bedroom_tolerance: int = 1
    similarity_price_points: float = 20.0
    similarity_price_band: float = 0.20
    similarity_bathroom_points: float = 15.0
    similarity_bathroom_step: float = 7.5
    similarity_amenity_points: float = 2.0
    similarity_amenity_cap: float = 20.0

    # Personalized boosts
    favorite_similarity_weight: float = 0.2
    viewing_intensity_threshold: float = 2.0
    viewing_intensity_points: float = 5.0

    ENV_PREFIX = "RECOMMENDATION_"

    @classmethod
    def from_env(cls, environ: Dict[str, str] = None) -> "RecommendationConfig":
        """Load overrides from RECOMMENDATION_* environment variables.

        Any numeric field can be overridden, e.g. RECOMMENDATION_MAX_RESULTS;
        weights use RECOMMENDATION_WEIGHT_PREFERENCE and friends.
        """
        environ = os.environ if environ is None else environ
        config = cls()
        overrides = {}
        for config_field in fields(cls):
            if config_field.name == "weights":
                continue
            raw = environ.get(cls.ENV_PREFIX + config_field.name.upper())
            if raw is None:
                continue
            value = _coerce(raw, type(getattr(config, config_field.name)), config_field.name)
            if value is not None:
                overrides[config_field.name] = value

        weight_overrides = {}
        for weight_field in fields(ScoringWeights):
            raw = environ.get(f"{cls.ENV_PREFIX}WEIGHT_{weight_field.name.upper()}")
            if raw is None:
                continue
            value = _coerce(raw, float, f"weight_{weight_field.name}")
            if value is not None:
                weight_overrides[weight_field.name] = value
        if weight_overrides:
            try:
                overrides["weights"] = replace(config.weights, **weight_overrides)
            except ValueError as e:
                logger.warning(f"Ignoring scoring weight overrides: {e}")

        return replace(config, **overrides)


def _coerce(raw: str, target_type: type, name: str):
    try:
        return target_type(float(raw)) if target_type is int else target_type(raw)
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Invalid value for {name}: {raw!r}, keeping default")
        return None
