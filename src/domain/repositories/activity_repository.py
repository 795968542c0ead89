from abc import ABC, abstractmethod
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from ..entities.user import UserProfile
from ..entities.activity import Application, Favorite, ViewingEvent


class ActivityRepository(ABC):
    """Read access to users and their applications, favorites and viewings.

    A ``user_id`` of None means every user.
    """
    
    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[UserProfile]:
        pass
    
    @abstractmethod
    async def get_tenants(self) -> List[UserProfile]:
        pass
    
    @abstractmethod
    async def get_applications(self, user_id: Optional[UUID] = None) -> List[Application]:
        pass
    
    @abstractmethod
    async def get_favorites(self, user_id: Optional[UUID] = None) -> List[Favorite]:
        pass
    
    @abstractmethod
    async def get_viewings(self, user_id: Optional[UUID] = None,
                           since: Optional[datetime] = None) -> List[ViewingEvent]:
        pass
