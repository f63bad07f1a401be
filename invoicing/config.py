"""
Configuration for the invoice calculation engine.
"""

# Load environment variables FIRST
from dotenv import load_dotenv
load_dotenv()

import os
from typing import Optional


class Config:
    """Base configuration."""

    # Calculation defaults
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "IDR")
    DEFAULT_TAX_RATE: float = float(os.getenv("DEFAULT_TAX_RATE", "0"))  # Tax is opt-in per merchant
    CALCULATION_PRECISION: int = 2  # Decimal places, applied at every step
    RECALCULATION_TOLERANCE: float = 0.01  # One cent

    # Invoice warning thresholds
    LARGE_INVOICE_THRESHOLD: float = float(os.getenv("LARGE_INVOICE_THRESHOLD", "10000000"))  # 10 million IDR
    DISCOUNT_WARNING_RATIO: float = 0.5

    # Payment schedule defaults
    DEFAULT_DOWN_PAYMENT_PERCENTAGE: float = float(os.getenv("DEFAULT_DOWN_PAYMENT_PERCENTAGE", "30"))
    DEFAULT_DOWN_PAYMENT_DAYS: int = int(os.getenv("DEFAULT_DOWN_PAYMENT_DAYS", "15"))
    DEFAULT_FINAL_PAYMENT_DAYS: int = int(os.getenv("DEFAULT_FINAL_PAYMENT_DAYS", "30"))
    DOWN_PAYMENT_MIN_RATIO: float = 0.1
    DOWN_PAYMENT_MAX_RATIO: float = 0.8
    SMALL_REMAINING_BALANCE: float = 50000  # 50k IDR

    # Merchant catalog
    CATALOG_MATCH_THRESHOLD: float = float(os.getenv("CATALOG_MATCH_THRESHOLD", "0.80"))
    CATALOG_PATH: str = os.getenv(
        "CATALOG_PATH",
        os.path.join(os.path.dirname(__file__), "data", "catalog.json"),
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", "invoicing.log")

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"

    # Workflow Configuration
    GRAPH_RECURSION_LIMIT: int = 50

    @classmethod
    def validate(cls) -> None:
        """Validate configuration."""
        if cls.CALCULATION_PRECISION < 0:
            raise ValueError("CALCULATION_PRECISION cannot be negative")

        if not 0 <= cls.DEFAULT_TAX_RATE <= 100:
            raise ValueError(f"Invalid DEFAULT_TAX_RATE: {cls.DEFAULT_TAX_RATE}")

        if not 0 < cls.DEFAULT_DOWN_PAYMENT_PERCENTAGE <= 100:
            raise ValueError(
                f"Invalid DEFAULT_DOWN_PAYMENT_PERCENTAGE: {cls.DEFAULT_DOWN_PAYMENT_PERCENTAGE}"
            )

        if not 0.0 < cls.CATALOG_MATCH_THRESHOLD <= 1.0:
            raise ValueError(f"Invalid CATALOG_MATCH_THRESHOLD: {cls.CATALOG_MATCH_THRESHOLD}")


class DevelopmentConfig(Config):
    """Development configuration."""
    LOG_LEVEL = "DEBUG"
    API_DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    LOG_LEVEL = "INFO"
    API_DEBUG = False


class TestConfig(Config):
    """Test configuration."""
    LOG_LEVEL = "DEBUG"
    LOG_FILE = None


def get_config(env: str = None) -> Config:
    """Get configuration based on environment."""
    if env is None:
        env = os.getenv("ENV", "development").lower()

    if env == "production":
        config = ProductionConfig()
    elif env == "test":
        config = TestConfig()
    else:
        config = DevelopmentConfig()

    # Validate configuration on creation
    config.validate()
    return config
