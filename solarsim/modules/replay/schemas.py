"""
Replay Module - Pydantic Schemas
"""
import math
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator

from solarsim.modules.datasets.schemas import TimeSeriesRecord


class ReplayOptions(BaseModel):
    """Engine options. speed_factor and mode are reserved and not applied."""
    model_config = ConfigDict(frozen=True)

    update_interval: float = Field(..., gt=0, description="Tick interval in seconds")
    speed_factor: float = Field(120.0, description="Reserved")
    mode: Literal["sequential", "time-based"] = Field("sequential", description="Reserved")


class ReplayStatus(BaseModel):
    """Engine status snapshot."""
    is_playing: bool
    last_update: datetime
    indices: dict[str, int | None]
    total_records: dict[str, int]


class StatusConfig(BaseModel):
    """Static configuration echoed by /status."""
    update_interval_ms: int
    metrics_refresh_interval_ms: int
    speed_factor: float
    mode: str
    installations: list[str]


class StatusResponse(ReplayStatus):
    """Engine status plus uptime and configuration echo."""
    uptime: int = Field(..., description="Seconds since the service started")
    config: StatusConfig


class JumpRequest(BaseModel):
    """Body of POST /control/jump; index must be a non-negative JSON number."""
    index: StrictInt | StrictFloat

    @field_validator("index")
    @classmethod
    def _non_negative(cls, value: int | float) -> int | float:
        # Large JSON integers overflow float conversion; they are clamped later
        if value < 0 or (isinstance(value, float) and not math.isfinite(value)):
            raise ValueError("index must be a non-negative number")
        return value


class JumpResponse(BaseModel):
    message: str
    new_index: int
    current_data: dict[str, TimeSeriesRecord]


class ControlResponse(BaseModel):
    message: str
    status: ReplayStatus
