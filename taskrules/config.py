"""Runtime settings loaded from an optional YAML file."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
import yaml

logger = structlog.get_logger(__name__)

CONFIG_ENV_VAR = "TASKRULES_CONFIG"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass
class Settings:
    """Settings for ingestion runs.

    Attributes:
        timezone: IANA zone whose calendar date counts as "today" for
            ``due today`` and ``overdue`` conditions.
        load_default_rules: Start workspaces with the stock rule set.
        log_level: Minimum level for structlog output.
        rules_file: Optional rules file ingested before any data file.
    """

    timezone: str = "UTC"
    load_default_rules: bool = True
    log_level: str = "INFO"
    rules_file: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{self.timezone}'") from exc
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log_level '{self.log_level}'")


def load_settings(path: Union[str, Path, None] = None) -> Settings:
    """Load settings from ``path``, the ``TASKRULES_CONFIG`` file, or defaults.

    Raises:
        FileNotFoundError: If an explicit or env-provided file does not exist.
        ValueError: If the file is not a mapping or holds unknown keys.
    """

    source = path or os.environ.get(CONFIG_ENV_VAR)
    if not source:
        return Settings()

    config_path = Path(source)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    known = {item.name for item in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {unknown}")

    settings = Settings(**data)
    logger.debug("config.loaded", path=str(config_path), timezone=settings.timezone)
    return settings
