"""
Datasets Module - Pydantic Schemas

A TimeSeriesRecord is one row of an installation's dataset. Every measurement
is optional: partial rows are kept and the projector substitutes neutral values.
"""
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AnomalyKind(str, Enum):
    """Abnormal operating condition carried by a record."""
    NORMAL = "NORMAL"
    OVERHEAT = "OVERHEAT"
    INVERTER_DOWN = "INVERTER_DOWN"
    DEGRADATION = "DEGRADATION"
    SHADING = "SHADING"
    SENSOR_FAIL = "SENSOR_FAIL"


class Severity(str, Enum):
    """Anomaly severity, ordered low < medium < high."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimeSeriesRecord(BaseModel):
    """One timestamped row of physical measurements for an installation."""
    model_config = ConfigDict(frozen=True)

    installation_id: str | None = Field(None, description="farm_name column of the dataset")
    timestamp: datetime | None = None
    hour: int | None = Field(None, ge=0, le=23)
    day_of_year: int | None = Field(None, ge=1, le=366)
    irradiance_wm2: float | None = None
    ambient_temp_c: float | None = None
    panel_temp_c: float | None = None
    power_production_kw: float | None = None
    theoretical_power_kw: float | None = None
    efficiency_percent: float | None = None
    # Index 0 is inverter 1
    inverter_statuses: tuple[int, ...] = ()
    daily_revenue_eur: float | None = None
    # Kept as plain strings: unknown kinds must survive loading
    anomaly_type: str | None = None
    anomaly_severity: str | None = None


def default_record(installation_id: str, inverters: int = 0, now: datetime | None = None) -> TimeSeriesRecord:
    """Record served when an installation has no data: zeroed, NORMAL, low, every inverter up."""
    now = now or datetime.now(timezone.utc)
    return TimeSeriesRecord(
        installation_id=installation_id,
        timestamp=now,
        hour=now.hour,
        day_of_year=now.timetuple().tm_yday,
        irradiance_wm2=0.0,
        ambient_temp_c=0.0,
        panel_temp_c=0.0,
        power_production_kw=0.0,
        theoretical_power_kw=0.0,
        efficiency_percent=0.0,
        inverter_statuses=(1,) * inverters,
        daily_revenue_eur=0.0,
        anomaly_type=AnomalyKind.NORMAL.value,
        anomaly_severity=Severity.LOW.value,
    )
