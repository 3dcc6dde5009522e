"""
System configuration for the QLedger accounting core.

Two sections are read from YAML:
- portfolio: defaults applied when a portfolio is initialized (base currency,
  inception date, valuation calendar, missing-price policy)
- logging: console/file logging, mapped onto log_system.LoggingConfig

Files are looked up in ./config/qledger.yaml and ~/.qledger/qledger.yaml (the
home file overrides the project file), or taken from an explicit path.
"${VAR}" references in string values are replaced from the environment.

Usage:
    >>> from qledger.system import get_system_config
    >>> config = get_system_config()
    >>> print(config.portfolio.base_currency)
    USD
"""

import os
import re
from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
from typing import Any, Literal, Optional, get_args

import yaml

Frequency = Literal["daily", "business_daily"]
MissingPricePolicy = Literal["raise", "carry_forward"]

PROJECT_CONFIG = Path("config/qledger.yaml")
USER_CONFIG = Path("~/.qledger/qledger.yaml")

_ENV_VAR = re.compile(r"\$\{([^}]+)\}")


@dataclass
class PortfolioDefaults:
    """Defaults applied when a portfolio is initialized without explicit values.

    initial_date should precede the first close price used for valuation;
    it holds the starting position only.
    """

    base_currency: str = "USD"
    initial_date: str = "1950-01-01"
    frequency: Frequency = "business_daily"
    missing_price_policy: MissingPricePolicy = "raise"

    def __post_init__(self) -> None:
        # YAML reads an unquoted 1950-01-01 as a date
        if isinstance(self.initial_date, date):
            self.initial_date = self.initial_date.isoformat()
        date.fromisoformat(self.initial_date)
        if self.frequency not in get_args(Frequency):
            raise ValueError(f"portfolio.frequency must be one of {get_args(Frequency)}, got: {self.frequency}")
        if self.missing_price_policy not in get_args(MissingPricePolicy):
            raise ValueError(
                f"portfolio.missing_price_policy must be one of {get_args(MissingPricePolicy)}, "
                f"got: {self.missing_price_policy}"
            )


@dataclass
class LoggingConfig:
    """Logging section (maps to log_system.LoggingConfig)."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json"] = "console"
    timestamp_format: Literal["iso", "compact", "time", "short"] = "compact"
    enable_file: bool = False
    file_path: str = "logs/qledger.log"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3

    def to_logger_config(self):
        """Convert to the pydantic model LoggerFactory.configure() takes."""
        from qledger.system.log_system import LoggingConfig as LogSystemConfig

        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["file_path"] = Path(self.file_path) if self.file_path else None
        return LogSystemConfig(**values)


@dataclass
class SystemConfig:
    """
    System configuration for QLedger.

    Example:
        >>> config = SystemConfig.load()
        >>> print(config.portfolio.frequency)
        business_daily
    """

    portfolio: PortfolioDefaults = field(default_factory=PortfolioDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "SystemConfig":
        """
        Load configuration from YAML, falling back to built-in defaults.

        Args:
            config_path: Explicit config file (skips the search; a missing
                file yields the defaults)

        Raises:
            ValueError: If a portfolio default is not a supported choice
        """
        if config_path is not None:
            candidates = [Path(config_path)]
        else:
            candidates = [PROJECT_CONFIG, USER_CONFIG.expanduser()]

        merged: dict[str, Any] = {}
        for path in candidates:
            if not path.exists():
                continue
            with open(path) as f:
                merged = _deep_merge(merged, yaml.safe_load(f) or {})

        return cls._from_dict(_substitute_env_vars(merged))

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> "SystemConfig":
        """Build from a nested dictionary; unknown keys are ignored."""
        return cls(
            portfolio=_section(PortfolioDefaults, config_dict.get("portfolio")),
            logging=_section(LoggingConfig, config_dict.get("logging")),
        )


def _section(section_cls: type, values: Optional[dict[str, Any]]) -> Any:
    known = {f.name for f in fields(section_cls)}
    return section_cls(**{key: value for key, value in (values or {}).items() if key in known and value is not None})


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested sections merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _substitute_env_vars(config: Any) -> Any:
    """Replace ${VAR} in every string; unset variables are left as written."""
    if isinstance(config, dict):
        return {key: _substitute_env_vars(value) for key, value in config.items()}
    if isinstance(config, list):
        return [_substitute_env_vars(item) for item in config]
    if isinstance(config, str):
        return _ENV_VAR.sub(lambda match: os.environ.get(match.group(1), match.group(0)), config)
    return config


# Loaded on first access
_config: Optional[SystemConfig] = None


def get_system_config(config_path: Optional[Path] = None) -> SystemConfig:
    """
    Get the cached system configuration, loading it on first access.

    Passing config_path always reloads from that file.
    """
    global _config
    if _config is None or config_path is not None:
        _config = SystemConfig.load(config_path)
    return _config


def reload_system_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Discard the cached configuration and load it again."""
    global _config
    _config = SystemConfig.load(config_path)
    return _config
