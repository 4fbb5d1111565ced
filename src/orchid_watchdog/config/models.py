"""Typed configuration models with Pydantic validation."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ServiceSettings(BaseModel):
    """Identity of the process being supervised."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Service name")


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: Literal["json", "text"] = Field(default="json", description="Log output format")


class CheckSettings(BaseModel):
    """A single timed liveness check."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Check name, unique per supervisor")
    duration_seconds: float = Field(
        ..., ge=0.0, description="Window after each reset before the check expires"
    )


class WatchdogSettings(BaseModel):
    """Supervision period and the checks to register at startup."""

    model_config = ConfigDict(frozen=True)

    period_seconds: float = Field(default=1.0, gt=0.0, description="Supervision period")
    checks: list[CheckSettings] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_check_names(self) -> WatchdogSettings:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for check in self.checks:
            if check.name in seen:
                duplicates.add(check.name)
            seen.add(check.name)
        if duplicates:
            raise ValueError(f"duplicate check names: {', '.join(sorted(duplicates))}")
        return self


class AppSettings(BaseModel):
    """Root application settings."""

    model_config = ConfigDict(frozen=True)

    service: ServiceSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    watchdog: WatchdogSettings = Field(default_factory=WatchdogSettings)
