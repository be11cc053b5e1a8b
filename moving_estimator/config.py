import logging
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic_settings import BaseSettings

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "default_catalog.json"


class Settings(BaseSettings):
    CATALOG_PATH: str = str(DEFAULT_CATALOG_PATH)
    LOG_LEVEL: str = "INFO"

    # Reported in EstimateResult.metadata
    ENGINE_NAME: str = "moving-estimator"
    ENGINE_VERSION: str = "1.0.0"
    RESULT_VERSION: str = "1.0.0"

    # Validation thresholds
    LOCAL_MAX_DISTANCE_MILES: float = 50.0
    LONG_DISTANCE_MIN_MILES: float = 50.0
    # (weight_lbs, crew): a move heavier than weight_lbs needs at least crew movers
    MINIMUM_CREW_BY_WEIGHT: List[Tuple[float, int]] = [
        (1500.0, 2),
        (10000.0, 3),
        (20000.0, 4),
    ]

    # Synthetic minimum-charge rules sort after every catalog rule up to this priority
    MINIMUM_CHARGE_PRIORITY: int = 1000

    class Config:
        env_file = ".env"
        env_prefix = "MOVING_ESTIMATOR_"


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for a host process. Never called on import."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
