"""
Service Configuration
=====================
Environment-driven settings and the risk-tier thresholds.

Environment Variables:
- RISK_LOW_MAX: Highest total score classified Low (default 2)
- RISK_MODERATE_MAX: Highest total score classified Moderate (default 5)
- ADVICE_CACHE_TTL_SECONDS: Advice table cache lifetime, 0 disables (default 300)
- ASSESSMENT_TIMEOUT_SECONDS: Catalog + advice fetch budget per assessment (default 15)
"""

import os
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class RiskLevel(str, Enum):
    """Risk tiers produced by threshold classification."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    UNKNOWN = "Unknown"


class RiskThresholds(BaseModel):
    """
    Score boundaries between tiers (inclusive upper bounds).

    score <= low_max -> Low
    low_max < score <= moderate_max -> Moderate
    score > moderate_max -> High
    """

    low_max: int = Field(default=2, ge=0, description="Highest score classified Low")
    moderate_max: int = Field(default=5, ge=0, description="Highest score classified Moderate")

    @model_validator(mode="after")
    def check_order(self) -> "RiskThresholds":
        if self.low_max >= self.moderate_max:
            raise ValueError(
                f"low_max ({self.low_max}) must be lower than moderate_max ({self.moderate_max})"
            )
        return self

    def classify(self, total_score: int) -> RiskLevel:
        """Map a total score to its tier."""
        if total_score <= self.low_max:
            return RiskLevel.LOW
        if total_score <= self.moderate_max:
            return RiskLevel.MODERATE
        return RiskLevel.HIGH


DEFAULT_THRESHOLDS = RiskThresholds()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def load_thresholds() -> RiskThresholds:
    """Thresholds from RISK_LOW_MAX / RISK_MODERATE_MAX."""
    return RiskThresholds(
        low_max=_env_int("RISK_LOW_MAX", DEFAULT_THRESHOLDS.low_max),
        moderate_max=_env_int("RISK_MODERATE_MAX", DEFAULT_THRESHOLDS.moderate_max),
    )


def advice_cache_ttl() -> float:
    return _env_float("ADVICE_CACHE_TTL_SECONDS", 300.0)


def assessment_timeout() -> Optional[float]:
    """Fetch budget in seconds; 0 or negative disables the timeout."""
    value = _env_float("ASSESSMENT_TIMEOUT_SECONDS", 15.0)
    return value if value > 0 else None
