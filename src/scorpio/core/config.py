"""
Scan configuration - Browser and module settings for a scan run.

Settings can be given programmatically, loaded from a YAML file, or
overridden from the command line.
"""

from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


DEFAULT_MODULES = ["xss", "sqli", "tls", "urls", "fingerprint"]

WAIT_STATES = ("load", "domcontentloaded", "networkidle", "commit")


class ScorpioError(Exception):
    """Base exception for scanner errors"""
    pass


class ConfigError(ScorpioError):
    """Raised when a configuration file cannot be loaded"""
    pass


class ScanConfig(BaseModel):
    """Configuration for a scan run"""

    # Browser
    headless: bool = True
    user_agent: Optional[str] = None
    viewport_width: int = Field(default=1920, gt=0)
    viewport_height: int = Field(default=1080, gt=0)
    ignore_https_errors: bool = False

    # Navigation
    navigation_timeout_ms: int = Field(default=30000, gt=0)
    wait_until: str = "networkidle"

    # Detection modules
    settle_interval_ms: int = Field(default=1000, ge=0)
    response_timeout_ms: int = Field(default=5000, gt=0)
    test_hidden_inputs: bool = False
    modules: List[str] = Field(default_factory=lambda: list(DEFAULT_MODULES))

    @field_validator("wait_until")
    @classmethod
    def _check_wait_until(cls, value: str) -> str:
        if value not in WAIT_STATES:
            raise ValueError(f"wait_until must be one of {', '.join(WAIT_STATES)}")
        return value

    @field_validator("modules")
    @classmethod
    def _check_modules(cls, value: List[str]) -> List[str]:
        # Imported lazily: the registry imports the modules, which import core
        from ..modules import MODULE_REGISTRY

        unknown = [name for name in value if name not in MODULE_REGISTRY]
        if unknown:
            raise ValueError(f"unknown modules: {', '.join(unknown)}")
        return value

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ScanConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to a YAML mapping of ScanConfig fields

        Returns:
            Validated configuration

        Raises:
            ConfigError: If the file is missing, malformed or invalid
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    def merged(self, **overrides) -> "ScanConfig":
        """Return a copy with non-None overrides applied"""
        values = {key: value for key, value in overrides.items() if value is not None}
        return self.model_validate({**self.model_dump(), **values})
