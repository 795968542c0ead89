"""
Demo for the listing recommendation engine.

Seeds the in-memory stores with a small Seattle-area market and prints
filtered, personalized, similar and trending recommendations with their
score breakdown.
"""

import asyncio
import logging
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent / "src"))

from domain.entities.activity import Application, Favorite, ViewingEvent
from domain.entities.listing import Listing
from domain.entities.user import UserProfile, UserPreferences, UserRole
from application.dto.recommendation_dto import (
    RecommendationRequest, PersonalizedRecommendationRequest, SimilarPropertiesRequest
)
from application.use_cases.recommendation_use_case import RecommendationUseCase
from infrastructure.data import DataConfig, RepositoryFactory

load_dotenv(Path(__file__).parent / ".env")

CITIES = ["Seattle", "Bellevue", "Tacoma", "Redmond"]
PROPERTY_TYPES = ["apartment", "condo", "house", "townhouse"]
AMENITIES = ["parking", "pets", "laundry", "gym", "pool", "balcony", "air_conditioning"]


def seed_market(factory: RepositoryFactory, now: datetime) -> dict:
    """Fill the repositories with listings, tenants and their activity"""
    rng = random.Random(7)
    listings = factory.get_listing_repository()
    activity = factory.get_activity_repository()

    market = []
    for i in range(40):
        property_type = rng.choice(PROPERTY_TYPES)
        bedrooms = rng.randint(1, 4)
        market.append(listings.add(Listing.create(
            title=f"{bedrooms}BR {property_type} #{i + 1}",
            property_type=property_type,
            city=rng.choice(CITIES),
            price=round(rng.uniform(1200, 4200), -1),
            bedrooms=bedrooms,
            bathrooms=rng.choice([1.0, 1.5, 2.0, 2.5]),
            square_feet=rng.randint(500, 2200),
            description="Bright unit close to transit. " * rng.randint(1, 12),
            amenities=rng.sample(AMENITIES, k=rng.randint(0, 4)),
            photo_count=rng.randint(0, 10),
            average_rating=rng.choice([None, 3.5, 4.2, 4.8]),
            created_at=now - timedelta(days=rng.randint(1, 200)),
            updated_at=now - timedelta(days=rng.randint(0, 30))
        )))

    tenant = activity.add_user(UserProfile.create(
        "renter@example.com",
        preferences=UserPreferences(
            preferred_locations={"Seattle"},
            preferred_property_types={"apartment"},
            preferred_amenities={"parking", "gym"},
            budget_max=2800,
            preferred_bedrooms=2
        )
    ))
    peers = [activity.add_user(UserProfile.create(f"peer{i}@example.com")) for i in range(5)]
    landlord = activity.add_user(UserProfile.create("owner@example.com", role=UserRole.LANDLORD))

    for user in [tenant] + peers:
        for listing in rng.sample(market, k=3):
            activity.add_application(Application.for_listing(user.id, listing, now - timedelta(days=rng.randint(1, 60))))
        for listing in rng.sample(market, k=2):
            activity.add_favorite(Favorite(user.id, listing.id, now - timedelta(days=rng.randint(1, 60))))
        for listing in rng.sample(market, k=6):
            activity.add_viewing(ViewingEvent(user.id, listing.id, now - timedelta(days=rng.randint(0, 20))))

    return {"tenant": tenant, "landlord": landlord, "listings": market}


def print_response(title: str, response) -> None:
    print(f"\n=== {title} ({response.total_count} results, {response.response_time_ms} ms) ===")
    for item in response.recommendations:
        listing = item.listing
        line = f"{item.rank:>2}. {listing.title:<24} {listing.city:<9} ${listing.price:>7,.0f}"
        if item.scores:
            line += f"  relevance={item.scores.relevance_score:>6.2f}"
        print(line)
        for reason in item.match_reasons:
            print(f"      - {reason}")


async def main():
    config = DataConfig()
    logging.basicConfig(level=getattr(logging, config.data_source.log_level, logging.INFO))
    logger = logging.getLogger(__name__)

    now = datetime.now()
    factory = RepositoryFactory(config)
    factory.initialize()
    seeded = seed_market(factory, now)
    logger.info(f"Seeded {len(seeded['listings'])} listings")

    use_case = RecommendationUseCase(
        factory.create_recommendation_service(),
        factory.get_listing_repository(),
        factory.get_activity_repository()
    )
    tenant = seeded["tenant"]

    print_response("Apartments in Seattle or Bellevue under $3,000", await use_case.recommend(
        RecommendationRequest(user_id=tenant.id, filters={"location": "Seattle, Bellevue", "budget": 3000}, limit=5)
    ))
    print_response("Personalized for tenant", await use_case.personalized(
        PersonalizedRecommendationRequest(user_id=tenant.id, limit=5)
    ))
    print_response("Personalized for landlord", await use_case.personalized(
        PersonalizedRecommendationRequest(user_id=seeded["landlord"].id, limit=5)
    ))
    print_response("Similar to the first listing", await use_case.similar(
        SimilarPropertiesRequest(listing_id=seeded["listings"][0].id)
    ))
    print_response("Trending this week", await use_case.trending(5))


if __name__ == "__main__":
    asyncio.run(main())
