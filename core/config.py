# core/config.py

"""
Typed settings for the derived-state engine.

Defaults match the portal's production values. A YAML file may override any
field, and `PORTAL_*` environment variables (optionally from a `.env` file)
override the YAML.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_COURSE_CATALOGS: Dict[str, str] = {
    "Graphic Design": "GD",
    "Web Development": "WD",
    "Video Editing": "VE",
}

ENV_PREFIX = "PORTAL_"


class EngineSettings(BaseModel):
    """Runtime configuration shared by every engine component."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    attendance_threshold_minutes: float = Field(default=40.0, ge=0.0)
    session_duration_minutes: int = Field(default=60, ge=1)
    course_catalogs: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_COURSE_CATALOGS))
    max_courses: int = Field(default=3, ge=1)
    assignments_per_course: int = Field(default=3, ge=1)
    fetch_timeout_seconds: float | None = Field(default=10.0, gt=0.0)
    log_level: str = Field(default="INFO")

    @field_validator("course_catalogs", mode="before")
    @classmethod
    def strip_course_names(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(name).strip(): str(code).strip() for name, code in value.items()}
        return value

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return value.strip().upper()

    def catalog_for(self, course: str) -> str | None:
        return self.course_catalogs.get(course)


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Could not parse {path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for field_name in EngineSettings.model_fields:
        if field_name == "course_catalogs":
            continue
        raw = os.getenv(f"{ENV_PREFIX}{field_name.upper()}")
        if raw is None or raw.strip() == "":
            continue
        overrides[field_name] = raw.strip()
    return overrides


def load_settings(path: Path | None = None, *, env_file: Path | None = None) -> EngineSettings:
    """
    Build `EngineSettings` from an optional YAML file plus environment overrides.

    Raises:
        ValueError: If the merged configuration fails validation.
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)

    data: Dict[str, Any] = {}
    if path is not None:
        path = path.expanduser().resolve()
        data = read_yaml_file(path)

    data.update(_env_overrides())

    try:
        return EngineSettings.model_validate(data)
    except ValidationError as exc:
        source = path or "environment"
        raise ValueError(f"Invalid engine settings in {source}") from exc
