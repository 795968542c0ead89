import math
from dataclasses import dataclass
from enum import Enum
from typing import Set, Optional
from datetime import datetime
from uuid import UUID, uuid4


class UserRole(Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"


@dataclass
class UserPreferences:
    """Preferences the user stated explicitly on their profile."""
    preferred_property_types: Set[str] = None
    preferred_locations: Set[str] = None
    preferred_amenities: Set[str] = None
    budget_max: Optional[float] = None
    preferred_bedrooms: Optional[int] = None

    def __post_init__(self):
        self.preferred_property_types = _as_set(self.preferred_property_types)
        self.preferred_locations = _as_set(self.preferred_locations)
        self.preferred_amenities = _as_set(self.preferred_amenities)
        self.budget_max = _as_number(self.budget_max)
        self.preferred_bedrooms = _as_int(self.preferred_bedrooms)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "UserPreferences":
        """Build preferences from a loosely-typed profile blob; bad fields are dropped."""
        data = data if isinstance(data, dict) else {}
        return cls(
            preferred_property_types=data.get("preferred_property_types"),
            preferred_locations=data.get("preferred_locations"),
            preferred_amenities=data.get("preferred_amenities"),
            budget_max=data.get("budget_max"),
            preferred_bedrooms=data.get("preferred_bedrooms"),
        )


@dataclass
class UserProfile:
    id: UUID
    email: str
    role: UserRole
    preferences: UserPreferences
    created_at: datetime

    @classmethod
    def create(cls, email: str, role: UserRole = UserRole.TENANT,
               preferences: UserPreferences = None):
        return cls(
            id=uuid4(),
            email=email,
            role=role,
            preferences=preferences or UserPreferences(),
            created_at=datetime.now()
        )

    def is_tenant(self) -> bool:
        return self.role == UserRole.TENANT

    def is_landlord(self) -> bool:
        return self.role == UserRole.LANDLORD


def _as_set(value) -> Set[str]:
    if not value:
        return set()
    if isinstance(value, str):
        value = [value]
    try:
        return {str(item).strip() for item in value if item is not None and str(item).strip()}
    except TypeError:
        return set()


def _as_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) and number > 0 else None


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number >= 0 else None
