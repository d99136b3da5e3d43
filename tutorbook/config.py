"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.enums import UserType
from .domain.pricing import PLATFORM_FEE_RATE


class IdentityConfig(BaseModel):
    """The signed-in user the CLI acts as."""
    user_id: str = "student-demo"
    user_type: UserType = UserType.STUDENT


class PaymentConfig(BaseModel):
    """Settings for the mock payment processor."""
    fail_references: List[str] = Field(default_factory=list)


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Australia/Sydney"
    currency: str = "AUD"
    platform_fee_rate: Decimal = PLATFORM_FEE_RATE
    default_search_radius_km: float = 10.0
    data_file: Optional[Path] = None
    log_level: str = "WARNING"
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    payment: PaymentConfig = Field(default_factory=PaymentConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("platform_fee_rate")
    @classmethod
    def validate_fee_rate(cls, value: Decimal) -> Decimal:
        """Fee rate is a fraction of the session price."""
        if not Decimal("0") <= value < Decimal("1"):
            raise ValueError(f"platform_fee_rate must be in [0, 1), got {value}")
        return value

    @field_validator("default_search_radius_km")
    @classmethod
    def validate_radius(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("default_search_radius_km must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load an explicit config file, or the default one if it exists.

    An explicitly named file must exist; a missing default file falls back
    to built-in defaults.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    logging.getLogger(__name__).debug("No config.yaml found; using defaults")
    return AppConfig()
