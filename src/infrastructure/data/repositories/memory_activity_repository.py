import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from domain.entities.activity import Application, Favorite, ViewingEvent
from domain.entities.user import UserProfile
from domain.repositories.activity_repository import ActivityRepository

logger = logging.getLogger(__name__)


class InMemoryActivityRepository(ActivityRepository):
    """Users and their activity held in memory, in insertion order."""
    
    def __init__(self):
        self._users: Dict[UUID, UserProfile] = {}
        self._applications: List[Application] = []
        self._favorites: List[Favorite] = []
        self._viewings: List[ViewingEvent] = []
    
    def add_user(self, user: UserProfile) -> UserProfile:
        self._users[user.id] = user
        return user
    
    def add_application(self, application: Application) -> Application:
        self._applications.append(application)
        return application
    
    def add_favorite(self, favorite: Favorite) -> Favorite:
        if any(f.user_id == favorite.user_id and f.listing_id == favorite.listing_id for f in self._favorites):
            logger.debug(f"Listing {favorite.listing_id} already favorited by {favorite.user_id}")
            return favorite
        self._favorites.append(favorite)
        return favorite
    
    def add_viewing(self, viewing: ViewingEvent) -> ViewingEvent:
        self._viewings.append(viewing)
        return viewing
    
    async def get_user(self, user_id: UUID) -> Optional[UserProfile]:
        return self._users.get(user_id)
    
    async def get_tenants(self) -> List[UserProfile]:
        return [user for user in self._users.values() if user.is_tenant()]
    
    async def get_applications(self, user_id: Optional[UUID] = None) -> List[Application]:
        return [a for a in self._applications if user_id is None or a.user_id == user_id]
    
    async def get_favorites(self, user_id: Optional[UUID] = None) -> List[Favorite]:
        return [f for f in self._favorites if user_id is None or f.user_id == user_id]
    
    async def get_viewings(self, user_id: Optional[UUID] = None,
                           since: Optional[datetime] = None) -> List[ViewingEvent]:
        return [
            v for v in self._viewings
            if (user_id is None or v.user_id == user_id) and (since is None or v.created_at >= since)
        ]
