from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from ..entities.listing import Listing


class ListingRepository(ABC):
    
    @abstractmethod
    async def get_by_id(self, listing_id: UUID) -> Optional[Listing]:
        pass
    
    @abstractmethod
    async def get_by_ids(self, listing_ids: List[UUID]) -> List[Listing]:
        pass
    
    @abstractmethod
    async def get_all_active(self) -> List[Listing]:
        """Listings with status active, whatever their availability."""
        pass
    
    @abstractmethod
    async def get_active_count(self) -> int:
        pass
