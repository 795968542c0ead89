import math
import logging
from dataclasses import dataclass
from typing import Set, Dict, Optional, Any
from datetime import date, datetime

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off"}


@dataclass
class SearchFilters:
    """Structural filters applied to the candidate set before scoring.

    Every field is optional; an unset field never excludes anything.
    """
    location: Optional[str] = None
    city: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    budget: Optional[float] = None
    bedrooms: Optional[int] = None
    min_bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    min_bathrooms: Optional[float] = None
    min_square_feet: Optional[int] = None
    max_square_feet: Optional[int] = None
    property_types: Set[str] = None
    amenities: Set[str] = None
    recently_updated: bool = False
    move_in_date: Optional[date] = None
    high_rated: bool = False
    has_photos: bool = False

    def __post_init__(self):
        if self.property_types is None:
            self.property_types = set()
        if self.amenities is None:
            self.amenities = set()

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "SearchFilters":
        """Parse a loosely-typed filter mapping.

        Blank values are no-ops, malformed values are skipped with a warning,
        and unrecognized keys are ignored.
        """
        filters = cls()
        if not raw:
            return filters
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring filters of unsupported type {type(raw).__name__}")
            return filters

        filters.location = _parse_text(raw.get("location"))
        filters.city = _parse_text(raw.get("city"))

        filters.min_price = _parse_number(raw, "min_price")
        filters.max_price = _parse_number(raw, "max_price")
        filters.budget = _parse_number(raw, "budget")
        price_range = raw.get("price_range")
        if isinstance(price_range, dict):
            if filters.min_price is None:
                filters.min_price = _parse_number(price_range, "min")
            if filters.max_price is None:
                filters.max_price = _parse_number(price_range, "max")

        filters.bedrooms = _parse_int(raw, "bedrooms")
        if filters.bedrooms is None:
            filters.bedrooms = _parse_int(raw, "bedroom_count")
        filters.min_bedrooms = _parse_int(raw, "min_bedrooms")
        filters.bathrooms = _parse_number(raw, "bathrooms")
        if filters.bathrooms is None:
            filters.bathrooms = _parse_number(raw, "bathroom_count")
        filters.min_bathrooms = _parse_number(raw, "min_bathrooms")
        filters.min_square_feet = _parse_int(raw, "min_square_feet")
        filters.max_square_feet = _parse_int(raw, "max_square_feet")

        filters.property_types = _parse_terms(raw.get("property_type"))
        if not filters.property_types:
            filters.property_types = _parse_terms(raw.get("property_types"))
        filters.amenities = _parse_terms(raw.get("amenities"))

        filters.recently_updated = _parse_flag(raw, "recently_updated")
        filters.high_rated = _parse_flag(raw, "high_rated")
        filters.has_photos = _parse_flag(raw, "has_photos")
        filters.move_in_date = _parse_date(raw, "move_in_date")
        return filters

    def effective_max_price(self) -> Optional[float]:
        """The tighter of max_price and budget (budget is shorthand for max_price)."""
        bounds = [value for value in (self.max_price, self.budget) if value is not None]
        return min(bounds) if bounds else None

    def has_price_filter(self) -> bool:
        return self.min_price is not None or self.effective_max_price() is not None

    def is_empty(self) -> bool:
        return self == SearchFilters()

    def to_dict(self) -> Dict:
        return {
            "location": self.location,
            "city": self.city,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "budget": self.budget,
            "bedrooms": self.bedrooms,
            "min_bedrooms": self.min_bedrooms,
            "bathrooms": self.bathrooms,
            "min_bathrooms": self.min_bathrooms,
            "min_square_feet": self.min_square_feet,
            "max_square_feet": self.max_square_feet,
            "property_types": sorted(self.property_types),
            "amenities": sorted(self.amenities),
            "recently_updated": self.recently_updated,
            "move_in_date": self.move_in_date.isoformat() if self.move_in_date else None,
            "high_rated": self.high_rated,
            "has_photos": self.has_photos
        }


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_text(value) -> Optional[str]:
    if _is_blank(value) or not isinstance(value, str):
        return None
    return value.strip()


def _parse_number(raw: Dict, key: str) -> Optional[float]:
    value = raw.get(key)
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        logger.warning(f"Skipping malformed filter {key}={value!r}")
        return None
    try:
        number = float(str(value).replace(",", "").replace("$", "").strip())
    except (TypeError, ValueError):
        logger.warning(f"Skipping malformed filter {key}={value!r}")
        return None
    if not math.isfinite(number) or number < 0:
        logger.warning(f"Skipping out-of-range filter {key}={value!r}")
        return None
    return number


def _parse_int(raw: Dict, key: str) -> Optional[int]:
    number = _parse_number(raw, key)
    return int(number) if number is not None else None


def _parse_terms(value) -> Set[str]:
    if _is_blank(value):
        return set()
    if isinstance(value, str):
        value = value.split(",")
    try:
        return {str(term).strip().lower() for term in value if not _is_blank(term)}
    except TypeError:
        logger.warning(f"Skipping malformed filter terms {value!r}")
        return set()


def _parse_flag(raw: Dict, key: str) -> bool:
    value = raw.get(key)
    if _is_blank(value):
        return False
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text not in FALSE_STRINGS:
        logger.warning(f"Skipping malformed filter {key}={value!r}")
    return False


def _parse_date(raw: Dict, key: str) -> Optional[date]:
    value = raw.get(key)
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        logger.warning(f"Skipping malformed filter {key}={value!r}")
        return None
