"""Environment-based configuration for the lease extraction service."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class Tolerances(BaseModel):
    """Empirical thresholds used by the correctors and validation checks."""

    rent_math_dollars: float = 1.0
    pro_rata: float = 0.002
    # Months of slack between expected and stated expiration
    date_month_slack: int = 1

    percent_ceiling: float = 0.20  # below this a value looks like a percentage
    dollar_floor: float = 0.50  # at or above this a value looks like $/RSF

    # (low, high, canonical) implied-percentage windows
    round_percent_windows: list[tuple[float, float, float]] = [
        (0.025, 0.035, 0.03),
        (0.045, 0.055, 0.05),
    ]

    deposit_ratio_min: float = 0.5
    deposit_ratio_max: float = 6.0


class Settings(BaseSettings):
    """Lease extraction settings, loaded from environment variables."""

    # Server
    PORT: int = 8092

    # Model service connection (empty = not configured, local dev default)
    MODEL_BASE_URL: str = ""
    MODEL_API_KEY: str = ""
    CLASSIFICATION_MODEL: str = "gpt-4o-mini"
    EXTRACTION_MODEL: str = "gpt-4o"

    # Model service timeouts and retry
    MODEL_TIMEOUT_SECONDS: int = 300
    MODEL_CONNECT_TIMEOUT: int = 30
    MODEL_RETRY_ATTEMPTS: int = 3
    MODEL_RETRY_DELAY: float = 2.0
    MODEL_RETRY_BACKOFF: float = 2.0

    # Inference options
    CLASSIFICATION_MAX_TOKENS: int = 10
    EXTRACTION_MAX_TOKENS: int = 8192

    # Pipeline
    MAX_PAGES: int = Field(25, gt=0)
    BUILDING_SF: float = 138130
    SYNONYMS_PATH: str = str(Path(__file__).parent / "config" / "synonyms.json")

    model_config = {"env_prefix": "", "case_sensitive": True}

    def tolerances(self) -> Tolerances:
        return Tolerances()
