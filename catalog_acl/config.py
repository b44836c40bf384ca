from __future__ import annotations
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from .errors import AccessControlConfigError

CONFIG_FILE = "security.config-file"
REFRESH_PERIOD = "security.refresh-period"

_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ns|us|ms|s|m|h|d)\s*$")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}


def parse_duration(value: str) -> timedelta:
    """Parse durations written as ``<number><unit>``, e.g. ``500ms``, ``10s``, ``1.5h``.

    Accepted units are ``ns``, ``us``, ``ms``, ``s``, ``m`` (minutes), ``h`` and ``d``.
    """
    match = _DURATION.match(value)
    if match is None:
        raise ValueError(f"duration is not valid: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=float(amount) * _UNIT_SECONDS[unit])


class FileBasedAccessControlConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    config_file: Path = Field(alias=CONFIG_FILE)
    refresh_period: Optional[timedelta] = Field(default=None, alias=REFRESH_PERIOD)

    @field_validator("refresh_period", mode="before")
    @classmethod
    def _parse_refresh_period(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("refresh_period")
    @classmethod
    def _positive_refresh_period(cls, value: Optional[timedelta]) -> Optional[timedelta]:
        if value is not None and value <= timedelta(0):
            raise ValueError("refresh period must be positive")
        return value

    @classmethod
    def from_options(cls, options: Mapping[str, str]) -> "FileBasedAccessControlConfig":
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            problems = "; ".join(_describe(error) for error in e.errors())
            raise AccessControlConfigError(f"Invalid file based access control options: {problems}") from e


def _describe(error: Mapping[str, Any]) -> str:
    option = ".".join(str(part) for part in error["loc"])
    if error["type"] == "extra_forbidden":
        return f"unknown option {option}"
    if error["type"] == "missing":
        return f"{option} is required"
    return f"{option}: {error['msg']}"
