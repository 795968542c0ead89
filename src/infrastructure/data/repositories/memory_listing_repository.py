import logging
from typing import Dict, List, Optional
from uuid import UUID

from domain.entities.listing import Listing
from domain.repositories.listing_repository import ListingRepository

logger = logging.getLogger(__name__)


class InMemoryListingRepository(ListingRepository):
    """Listing store backed by a dict; listings come back oldest first."""
    
    def __init__(self, listings: Optional[List[Listing]] = None):
        self._listings: Dict[UUID, Listing] = {}
        for listing in listings or []:
            self.add(listing)
    
    def add(self, listing: Listing) -> Listing:
        self._listings[listing.id] = listing
        return listing
    
    def add_many(self, listings: List[Listing]) -> List[Listing]:
        return [self.add(listing) for listing in listings]
    
    async def get_by_id(self, listing_id: UUID) -> Optional[Listing]:
        return self._listings.get(listing_id)
    
    async def get_by_ids(self, listing_ids: List[UUID]) -> List[Listing]:
        return [self._listings[listing_id] for listing_id in listing_ids if listing_id in self._listings]
    
    async def get_all_active(self) -> List[Listing]:
        active = [listing for listing in self._listings.values() if listing.is_active()]
        return sorted(active, key=lambda listing: (listing.created_at, str(listing.id)))
    
    async def get_active_count(self) -> int:
        return sum(1 for listing in self._listings.values() if listing.is_active())
