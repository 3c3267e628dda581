"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``bcl.toml`` only contains
overrides. A fresh project needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

# --- bcl.toml sections ---


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    path: str = "bcl.db"


class QueryConfig(BaseModel):
    """[query] section."""

    model_config = {"frozen": True}

    default_limit: int = Field(default=10, ge=0, le=255)


class LubricationConfig(BaseModel):
    """[lubrication] section — distance thresholds since the last chain lube."""

    model_config = {"frozen": True}

    warn_km: float = Field(default=150.0, ge=0)
    alert_km: float = Field(default=200.0, ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> LubricationConfig:
        if self.alert_km < self.warn_km:
            msg = "lubrication.alert_km must not be lower than lubrication.warn_km"
            raise ValueError(msg)
        return self

    def level(self, distance: float) -> str:
        """Classify *distance* as ``ok``, ``warn``, or ``alert``."""
        if distance >= self.alert_km:
            return "alert"
        if distance >= self.warn_km:
            return "warn"
        return "ok"


class DisplayConfig(BaseModel):
    """[display] section."""

    model_config = {"frozen": True}

    currency: str = "UAH"
    distance_unit: str = "km"
