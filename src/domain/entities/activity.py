from dataclasses import dataclass
from enum import Enum
from typing import Optional
from datetime import datetime
from uuid import UUID


class ActivityType(Enum):
    APPLICATION = "application"
    FAVORITE = "favorite"
    VIEWING = "viewing"


@dataclass
class ActivityRecord:
    user_id: UUID
    listing_id: UUID
    created_at: datetime

    activity_type = None


@dataclass
class Application(ActivityRecord):
    """A rental application; carries the listing's terms as they were when applied."""
    price: Optional[float] = None
    property_type: Optional[str] = None
    city: Optional[str] = None

    activity_type = ActivityType.APPLICATION

    @classmethod
    def for_listing(cls, user_id: UUID, listing, created_at: datetime = None):
        return cls(
            user_id=user_id,
            listing_id=listing.id,
            created_at=created_at or datetime.now(),
            price=listing.price,
            property_type=listing.property_type,
            city=listing.city
        )


@dataclass
class Favorite(ActivityRecord):
    activity_type = ActivityType.FAVORITE


@dataclass
class ViewingEvent(ActivityRecord):
    activity_type = ActivityType.VIEWING
