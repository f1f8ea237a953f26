from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .clock import DEFAULT_TIMEZONE

log = logging.getLogger("chatrelay.config")

CONFIG_PATH = Path("configs/relay.yaml")


class RelayConfig(BaseModel):
    """Deployment settings for one relay process."""

    db_path: Optional[str] = None
    reap_interval_secs: float = Field(default=15.0, gt=0)
    stale_after_secs: float = Field(default=10.0, gt=0)
    timezone: str = DEFAULT_TIMEZONE
    log_level: str = "INFO"

    model_config = ConfigDict(extra="ignore")

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone {value!r}") from None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


def load_config(override_path: Optional[str] = None) -> RelayConfig:
    path = Path(override_path) if override_path else CONFIG_PATH
    if not path.exists():
        log.info("No config at %s, using defaults", path)
        return RelayConfig()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return RelayConfig.model_validate(data)


__all__ = ["RelayConfig", "load_config"]
