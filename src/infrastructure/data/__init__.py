# Data infrastructure layer
from .config import DataConfig, DataSourceConfig
from .repository_factory import RepositoryFactory
from .repositories import InMemoryListingRepository, InMemoryActivityRepository

__all__ = [
    # Configuration
    'DataConfig',
    'DataSourceConfig',
    
    # Factory
    'RepositoryFactory',
    
    # Repository implementations
    'InMemoryListingRepository',
    'InMemoryActivityRepository'
]
