"""
Centralized settings for the rental pricing engine.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from decimal import ROUND_HALF_UP
from typing import Optional


ENV_PREFIX = "RENTAL_PRICING_"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Currency used by the marketplace (Philippine peso)
    currency_symbol: str = "₱"
    currency_code: str = "PHP"

    # One rounding rule for both the owner preview and renter checkout
    rounding: str = ROUND_HALF_UP

    # Owner preview table length
    default_schedule_days: int = 30

    # Optional CSV export of car_pricing_rules to preload the rules service
    rules_csv: Optional[Path] = None

    log_level: str = "INFO"

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings, applying RENTAL_PRICING_* environment overrides."""
        root = project_root or get_project_root()
        env = os.environ

        rules_csv = env.get(f"{ENV_PREFIX}RULES_CSV")
        schedule_days = env.get(f"{ENV_PREFIX}SCHEDULE_DAYS")

        return cls(
            project_root=root,
            currency_symbol=env.get(f"{ENV_PREFIX}CURRENCY_SYMBOL", "₱"),
            currency_code=env.get(f"{ENV_PREFIX}CURRENCY_CODE", "PHP"),
            default_schedule_days=int(schedule_days) if schedule_days else 30,
            rules_csv=Path(rules_csv) if rules_csv else None,
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None


def configure_logging(settings: Optional[Settings] = None):
    """Set up root logging at the configured level."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
