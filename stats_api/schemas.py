"""Validation of inbound telemetry pushes.

Pushes arrive as JSON, so sample maps are keyed by strings ("28391")
and are coerced to integer period indices here. A push that does not
validate is rejected as a whole; nothing partial reaches the engine.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from rig_stats.models import OverallRaw, TelemetryPush, TelemetrySample

logger = logging.getLogger(__name__)

# Upper bound on chart points per window (a day of 10s periods).
MAX_WINDOW_POINTS = 8_641


class PushValidationError(ValueError):
    """Push rejected before reaching the engine."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


def _finite(v: float) -> float:
    if v != v:  # NaN check
        raise ValueError("Value is NaN")
    if math.isinf(v):
        raise ValueError("Value is infinite")
    return v


class SampleIn(BaseModel):
    reported_hashrate: float = Field(..., ge=0)
    effective_hashrate: float = Field(..., ge=0)
    mined_share: int = Field(..., ge=0)
    valid_share: int = Field(..., ge=0)
    rejected_share: int = Field(..., ge=0)

    @field_validator("reported_hashrate", "effective_hashrate")
    @classmethod
    def validate_hashrate(cls, v):
        return _finite(v)

    def to_domain(self) -> TelemetrySample:
        return TelemetrySample(
            reported_hashrate=self.reported_hashrate,
            effective_hashrate=self.effective_hashrate,
            mined_share=self.mined_share,
            valid_share=self.valid_share,
            rejected_share=self.rejected_share,
        )


class OverallIn(BaseModel):
    effective_hashrate: float = Field(..., ge=0)
    reported_hashrate: float = Field(..., ge=0)
    mined_share: int = Field(..., ge=0)
    valid_share: int = Field(..., ge=0)
    rejected_share: int = Field(..., ge=0)
    verified_share: int = Field(default=0, ge=0)
    pending_share: int = Field(default=0, ge=0)

    total_block_found: Optional[int] = None
    start_time: Optional[str] = None
    last_block: Optional[str] = None
    last_valid_share: Optional[str] = None

    @field_validator("reported_hashrate", "effective_hashrate")
    @classmethod
    def validate_hashrate(cls, v):
        return _finite(v)

    def to_domain(self) -> OverallRaw:
        return OverallRaw(**self.model_dump())


class TelemetryPushIn(BaseModel):
    """Schema of one push from the Telemetry Source.

    {
        "period_duration": 600,
        "short_window_duration": 21600,
        "long_window_duration": 86400,
        "short_window_sample": {"2497210": {...}, ...},
        "long_window_sample": {"2497210": {...}, ...},
        "overall": {...}
    }
    """

    period_duration: int = Field(..., ge=0)
    short_window_duration: int = Field(..., ge=0)
    long_window_duration: int = Field(..., ge=0)
    short_window_sample: Dict[int, SampleIn] = Field(default_factory=dict)
    long_window_sample: Dict[int, SampleIn] = Field(default_factory=dict)
    overall: OverallIn

    @model_validator(mode="after")
    def validate_window_size(self):
        if self.period_duration == 0:
            return self
        for name in ("short_window_duration", "long_window_duration"):
            points = getattr(self, name) // self.period_duration + 1
            if points > MAX_WINDOW_POINTS:
                raise ValueError(
                    f"{name} spans {points} periods, at most {MAX_WINDOW_POINTS} allowed"
                )
        return self

    def to_domain(self) -> TelemetryPush:
        return TelemetryPush(
            period_duration=self.period_duration,
            short_window_duration=self.short_window_duration,
            long_window_duration=self.long_window_duration,
            short_window_sample={k: s.to_domain() for k, s in self.short_window_sample.items()},
            long_window_sample={k: s.to_domain() for k, s in self.long_window_sample.items()},
            overall=self.overall.to_domain(),
        )


class RigInfoRequest(BaseModel):
    """Poll sent upstream to the Telemetry Source."""

    action: str = "getRigInfo"
    rig_id: str = Field(..., alias="rigId")
    rig_ip: str = Field(..., alias="rigIp")

    model_config = {"populate_by_name": True}

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def parse_push(raw: Mapping[str, Any]) -> TelemetryPush:
    """Validate a raw push and convert it to the engine's model.

    Raises:
        PushValidationError: the push is malformed and must be dropped
    """
    if not isinstance(raw, Mapping):
        raise PushValidationError(f"Push must be a JSON object, got {type(raw).__name__}")
    try:
        return TelemetryPushIn.model_validate(dict(raw)).to_domain()
    except ValidationError as e:
        raise PushValidationError(
            f"Invalid push: {e.error_count()} error(s)", errors=e.errors()
        ) from e
