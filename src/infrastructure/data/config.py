import os
import logging
from dataclasses import dataclass

from domain.services.recommendation_config import RecommendationConfig

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory",)


@dataclass
class DataSourceConfig:
    """Data source settings"""
    backend: str = "memory"
    log_level: str = "INFO"


class DataConfig:
    """Main configuration: data source plus recommendation tuning"""
    
    def __init__(self):
        self.data_source = self._load_data_source_config()
        self.recommendation = RecommendationConfig.from_env()
    
    def _load_data_source_config(self) -> DataSourceConfig:
        """Load data source configuration from environment variables"""
        backend = os.getenv("DATA_BACKEND", "memory").strip().lower()
        if backend not in SUPPORTED_BACKENDS:
            logger.warning(f"Unsupported DATA_BACKEND {backend!r}, falling back to memory")
            backend = "memory"
        return DataSourceConfig(
            backend=backend,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper()
        )
