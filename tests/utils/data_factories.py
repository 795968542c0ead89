"""
Data factories for generating test data for the recommendation engine.

This module provides factory classes for creating consistent listings,
users and activity records across test modules.
"""

import random
from typing import List, Dict, Any
from datetime import datetime, timedelta
from uuid import UUID
from dataclasses import dataclass

from domain.entities.activity import Application, Favorite, ViewingEvent
from domain.entities.listing import Listing
from domain.entities.user import UserProfile, UserPreferences, UserRole

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0)


@dataclass
class FactoryConfig:
    """Configuration for data factories."""
    seed: int = 42


class ListingFactory:
    """Factory for creating Listing entities."""

    CITIES = ['Seattle', 'Bellevue', 'Tacoma', 'Redmond', 'Kirkland', 'Portland']

    PROPERTY_TYPES = ['apartment', 'condo', 'house', 'townhouse']

    def __init__(self, config: FactoryConfig = None):
        self.config = config or FactoryConfig()
        self.rng = random.Random(self.config.seed)
        self._created = 0

    def create(self, **kwargs) -> Listing:
        """Create a single Listing with optional overrides."""
        defaults = self._generate_listing_data()
        defaults.update(kwargs)
        return Listing.create(**defaults)

    def create_batch(self, count: int, **common_kwargs) -> List[Listing]:
        """Create multiple listings with optional common attributes."""
        listings = []
        for i in range(count):
            listing_kwargs = common_kwargs.copy()
            if 'title' not in listing_kwargs:
                listing_kwargs['title'] = f"Test Listing {self._created + 1}"
            listings.append(self.create(**listing_kwargs))
        return listings

    def create_unavailable(self, **kwargs) -> Listing:
        """Create an active listing that is already rented."""
        kwargs.setdefault('availability_status', 'rented')
        return self.create(**kwargs)

    def create_inactive(self, **kwargs) -> Listing:
        kwargs.setdefault('status', 'inactive')
        return self.create(**kwargs)

    def _generate_listing_data(self) -> Dict[str, Any]:
        """Generate plain listing data; every listing is one minute younger than the last."""
        self._created += 1
        bedrooms = self.rng.randint(1, 3)
        created_at = FIXED_NOW - timedelta(days=100) + timedelta(minutes=self._created)
        return {
            'title': f"Listing {self._created}",
            'property_type': 'apartment',
            'city': 'Seattle',
            'price': 2000.0,
            'bedrooms': bedrooms,
            'bathrooms': 1.0,
            'square_feet': 600 + bedrooms * 250,
            'description': "Quiet unit.",
            'created_at': created_at,
            'updated_at': created_at
        }


class UserFactory:
    """Factory for creating UserProfile entities."""

    def __init__(self, config: FactoryConfig = None):
        self.config = config or FactoryConfig()
        self._created = 0

    def create(self, **kwargs) -> UserProfile:
        """Create a single user with optional overrides."""
        self._created += 1
        preferences = kwargs.get('preferences')
        if isinstance(preferences, dict):
            preferences = UserPreferences(**preferences)
        return UserProfile.create(
            email=kwargs.get('email', f"testuser{self._created}@example.com"),
            role=kwargs.get('role', UserRole.TENANT),
            preferences=preferences
        )

    def create_tenant(self, **preferences) -> UserProfile:
        return self.create(preferences=UserPreferences(**preferences))

    def create_landlord(self) -> UserProfile:
        return self.create(role=UserRole.LANDLORD)


class ActivityFactory:
    """Factory for applications, favorites and viewing events at fixed offsets from FIXED_NOW."""

    def application(self, user_id: UUID, listing: Listing, days_ago: float = 10) -> Application:
        return Application.for_listing(user_id, listing, FIXED_NOW - timedelta(days=days_ago))

    def favorite(self, user_id: UUID, listing: Listing, days_ago: float = 10) -> Favorite:
        return Favorite(user_id, listing.id, FIXED_NOW - timedelta(days=days_ago))

    def viewing(self, user_id: UUID, listing: Listing, days_ago: float = 1) -> ViewingEvent:
        return ViewingEvent(user_id, listing.id, FIXED_NOW - timedelta(days=days_ago))

    def viewings(self, user_id: UUID, listing: Listing, count: int, days_ago: float = 1) -> List[ViewingEvent]:
        return [self.viewing(user_id, listing, days_ago) for _ in range(count)]
