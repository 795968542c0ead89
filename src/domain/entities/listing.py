from dataclasses import dataclass, field
from typing import List, Dict, Optional
from datetime import datetime, date
from decimal import Decimal
from uuid import UUID, uuid4


# Boolean amenity flags carried by every listing
AMENITY_FLAGS = (
    "parking_available",
    "pets_allowed",
    "furnished",
    "utilities_included",
    "laundry",
    "gym",
    "pool",
    "balcony",
    "air_conditioning",
    "heating",
    "internet_included",
)

AMENITY_ALIASES = {
    "parking": "parking_available",
    "pet": "pets_allowed",
    "pets": "pets_allowed",
    "pet_friendly": "pets_allowed",
    "utilities": "utilities_included",
    "internet": "internet_included",
    "wifi": "internet_included",
    "ac": "air_conditioning",
}


def normalize_amenity(name: str) -> Optional[str]:
    """Map a user-supplied amenity name to its listing flag, or None if unknown."""
    if not isinstance(name, str):
        return None
    key = name.strip().lower().replace(" ", "_").replace("-", "_")
    if not key:
        return None
    key = AMENITY_ALIASES.get(key, key)
    return key if key in AMENITY_FLAGS else None


@dataclass
class Listing:
    """A rental listing.

    Money and ratings are plain floats; Decimal values (as stored by the
    listing database) are converted on construction.
    """
    id: UUID
    title: str
    description: str
    property_type: str
    city: str
    price: float
    bedrooms: int
    bathrooms: float
    created_at: datetime
    updated_at: datetime
    address: str = ""
    square_feet: Optional[int] = None
    status: str = "active"
    availability_status: str = "available"
    available_date: Optional[date] = None
    parking_available: Optional[bool] = False
    pets_allowed: Optional[bool] = False
    furnished: Optional[bool] = False
    utilities_included: Optional[bool] = False
    laundry: Optional[bool] = False
    gym: Optional[bool] = False
    pool: Optional[bool] = False
    balcony: Optional[bool] = False
    air_conditioning: Optional[bool] = False
    heating: Optional[bool] = False
    internet_included: Optional[bool] = False
    views_count: int = 0
    favorites_count: int = 0
    applications_count: int = 0
    photo_count: int = 0
    average_rating: Optional[float] = None

    def __post_init__(self):
        for name in ("price", "bathrooms", "average_rating"):
            value = getattr(self, name)
            if isinstance(value, Decimal):
                setattr(self, name, float(value))

    @classmethod
    def create(cls, title: str, property_type: str, city: str, price: float,
               bedrooms: int, bathrooms: float, description: str = "",
               amenities: List[str] = None, **kwargs):
        now = datetime.now()
        flags: Dict[str, bool] = {}
        for amenity in amenities or []:
            flag = normalize_amenity(amenity)
            if flag:
                flags[flag] = True
        flags.update(kwargs)
        flags.setdefault("created_at", now)
        flags.setdefault("updated_at", now)
        return cls(
            id=flags.pop("id", None) or uuid4(),
            title=title,
            description=description,
            property_type=property_type,
            city=city,
            price=price,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            **flags
        )

    def is_active(self) -> bool:
        return self.status == "active"

    def is_available(self) -> bool:
        """Active and open for new tenants; the only listings ever recommended."""
        return self.status == "active" and self.availability_status == "available"

    def has_amenity(self, name: str) -> bool:
        flag = normalize_amenity(name)
        return bool(flag and getattr(self, flag))

    def amenities_list(self) -> List[str]:
        return [flag for flag in AMENITY_FLAGS if getattr(self, flag)]

    def get_price_per_sqft(self) -> Optional[float]:
        if self.square_feet and self.square_feet > 0:
            return self.price / self.square_feet
        return None

    def deactivate(self):
        self.status = "inactive"

    def activate(self):
        self.status = "active"
