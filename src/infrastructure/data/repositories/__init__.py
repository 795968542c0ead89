# Repository implementations
from .memory_listing_repository import InMemoryListingRepository
from .memory_activity_repository import InMemoryActivityRepository

__all__ = [
    'InMemoryListingRepository',
    'InMemoryActivityRepository'
]
