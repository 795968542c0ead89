import logging
from datetime import datetime
from typing import Callable, Optional

from domain.services.recommendation_service import RecommendationService
from .config import DataConfig
from .repositories.memory_listing_repository import InMemoryListingRepository
from .repositories.memory_activity_repository import InMemoryActivityRepository

logger = logging.getLogger(__name__)


class RepositoryFactory:
    """Factory for creating repository instances and the services built on them"""
    
    def __init__(self, config: Optional[DataConfig] = None):
        self.config = config or DataConfig()
        
        self._listing_repository: Optional[InMemoryListingRepository] = None
        self._activity_repository: Optional[InMemoryActivityRepository] = None
        
        self._initialized = False
    
    def initialize(self):
        """Create repository instances for the configured backend"""
        if self._initialized:
            logger.warning("Repository factory already initialized")
            return
        
        self._listing_repository = InMemoryListingRepository()
        self._activity_repository = InMemoryActivityRepository()
        self._initialized = True
        logger.info(f"Repository factory initialized with {self.config.data_source.backend} backend")
    
    def get_listing_repository(self) -> InMemoryListingRepository:
        """Get listing repository instance"""
        if not self._initialized:
            raise RuntimeError("Repository factory not initialized")
        return self._listing_repository
    
    def get_activity_repository(self) -> InMemoryActivityRepository:
        """Get activity repository instance"""
        if not self._initialized:
            raise RuntimeError("Repository factory not initialized")
        return self._activity_repository
    
    def create_recommendation_service(self, clock: Optional[Callable[[], datetime]] = None) -> RecommendationService:
        """Build a recommendation service over this factory's repositories"""
        return RecommendationService(
            self.get_listing_repository(),
            self.get_activity_repository(),
            config=self.config.recommendation,
            clock=clock
        )
    
    def is_initialized(self) -> bool:
        return self._initialized
