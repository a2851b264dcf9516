"""
Metrics Projector

Pure mapping from (installation config, current record) to observations.
Never raises on partial input: missing numbers become 0, a missing anomaly
kind becomes NORMAL and a missing severity becomes low.
"""
import math
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from solarsim.core.metrics import MetricFamily, Observation
from solarsim.modules.datasets.schemas import AnomalyKind, Severity, TimeSeriesRecord
from solarsim.modules.installations.schemas import InstallationConfig

# Registration order is exposition order
POWER_PRODUCTION = MetricFamily("solar_power_production_kw", "Instantaneous electrical production in kW")
THEORETICAL_POWER = MetricFamily("solar_power_theoretical_kw", "Theoretical production in kW")
IRRADIANCE = MetricFamily("solar_irradiance_wm2", "Measured solar irradiance in W/m2")
PANEL_TEMPERATURE = MetricFamily("solar_panel_temperature_celsius", "Average panel temperature in Celsius")
AMBIENT_TEMPERATURE = MetricFamily("solar_ambient_temperature_celsius", "Ambient temperature in Celsius")
INVERTER_STATUS = MetricFamily(
    "solar_inverter_status", "Inverter state (1=OK, 0=KO)", ("farm", "inverter_id")
)
EFFICIENCY = MetricFamily("solar_efficiency_percent", "Overall efficiency in percent")
DAILY_REVENUE = MetricFamily("solar_daily_revenue_euros", "Cumulative daily revenue in euros")
AVAILABILITY = MetricFamily("solar_availability_percent", "Availability rate in percent")
ANOMALY_ACTIVE = MetricFamily(
    "solar_anomaly_active", "Active anomaly indicator (1=active, 0=inactive)", ("farm", "type")
)
ANOMALY_SEVERITY = MetricFamily("solar_anomaly_severity", "Anomaly severity (0=low, 1=medium, 2=high)")
PANEL_COUNT = MetricFamily("solar_panel_count", "Total number of panels on the farm")
CAPACITY = MetricFamily("solar_capacity_mw", "Installed capacity in MW")
LAST_UPDATE = MetricFamily("solar_last_update_timestamp", "Timestamp of the last data update")
SIMULATED_HOUR = MetricFamily("solar_simulated_hour", "Simulated hour (0-23)")
SIMULATED_DAY = MetricFamily("solar_simulated_day", "Simulated day of the year (1-366)")

METRIC_FAMILIES: tuple[MetricFamily, ...] = (
    POWER_PRODUCTION,
    THEORETICAL_POWER,
    IRRADIANCE,
    PANEL_TEMPERATURE,
    AMBIENT_TEMPERATURE,
    INVERTER_STATUS,
    EFFICIENCY,
    DAILY_REVENUE,
    AVAILABILITY,
    ANOMALY_ACTIVE,
    ANOMALY_SEVERITY,
    PANEL_COUNT,
    CAPACITY,
    LAST_UPDATE,
    SIMULATED_HOUR,
    SIMULATED_DAY,
)

SEVERITY_LEVELS = {
    Severity.LOW.value: 0,
    Severity.MEDIUM.value: 1,
    Severity.HIGH.value: 2,
}


def _number(value: Any) -> float:
    """Finite float or 0."""
    if value is None or isinstance(value, bool):
        return float(value or 0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _field(record: TimeSeriesRecord | Mapping[str, Any] | None, name: str) -> Any:
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def inverter_statuses(config: InstallationConfig, record: TimeSeriesRecord | Mapping[str, Any] | None) -> list[float]:
    """Status per configured inverter; an entry missing from the record counts as active."""
    present = _field(record, "inverter_statuses") or ()
    if isinstance(present, (str, bytes)) or not isinstance(present, Sequence):
        present = ()
    statuses = []
    for index in range(config.inverters):
        statuses.append(_number(present[index]) if index < len(present) and present[index] is not None else 1.0)
    return statuses


def availability(config: InstallationConfig, record: TimeSeriesRecord | Mapping[str, Any] | None) -> float:
    """Share of configured inverters whose status is not 0, in percent."""
    if config.inverters <= 0:
        return 0.0
    statuses = inverter_statuses(config, record)
    active = sum(1 for status in statuses if status != 0)
    return active / config.inverters * 100


def anomaly_one_hot(record: TimeSeriesRecord | Mapping[str, Any] | None) -> dict[str, int]:
    """1 for the record's kind, 0 for the others; an unknown kind gives all zeros."""
    kind = _field(record, "anomaly_type") or AnomalyKind.NORMAL.value
    if isinstance(kind, AnomalyKind):
        kind = kind.value
    elif not isinstance(kind, str):
        kind = None
    return {member.value: int(member.value == kind) for member in AnomalyKind}


def severity_level(record: TimeSeriesRecord | Mapping[str, Any] | None) -> int:
    severity = _field(record, "anomaly_severity") or Severity.LOW.value
    if isinstance(severity, Severity):
        severity = severity.value
    elif not isinstance(severity, str):
        return 0
    return SEVERITY_LEVELS.get(severity, 0)


def project(
    config: InstallationConfig,
    record: TimeSeriesRecord | Mapping[str, Any] | None,
    *,
    updated_at: datetime,
) -> list[Observation]:
    """Observations for one installation, in family registration order."""
    farm = {"farm": config.id}

    def gauge(family: MetricFamily, value: Any) -> Observation:
        return Observation(family.name, dict(farm), _number(value))

    observations = [
        gauge(POWER_PRODUCTION, _field(record, "power_production_kw")),
        gauge(THEORETICAL_POWER, _field(record, "theoretical_power_kw")),
        gauge(IRRADIANCE, _field(record, "irradiance_wm2")),
        gauge(PANEL_TEMPERATURE, _field(record, "panel_temp_c")),
        gauge(AMBIENT_TEMPERATURE, _field(record, "ambient_temp_c")),
    ]
    observations.extend(
        Observation(INVERTER_STATUS.name, {"farm": config.id, "inverter_id": str(index)}, status)
        for index, status in enumerate(inverter_statuses(config, record), start=1)
    )
    observations += [
        gauge(EFFICIENCY, _field(record, "efficiency_percent")),
        gauge(DAILY_REVENUE, _field(record, "daily_revenue_eur")),
        gauge(AVAILABILITY, availability(config, record)),
    ]
    observations.extend(
        Observation(ANOMALY_ACTIVE.name, {"farm": config.id, "type": kind}, float(active))
        for kind, active in anomaly_one_hot(record).items()
    )
    observations += [
        gauge(ANOMALY_SEVERITY, severity_level(record)),
        gauge(PANEL_COUNT, config.panels),
        gauge(CAPACITY, config.capacity_mw),
        gauge(LAST_UPDATE, updated_at.timestamp()),
        gauge(SIMULATED_HOUR, _field(record, "hour")),
        gauge(SIMULATED_DAY, _field(record, "day_of_year")),
    ]
    return observations


def project_all(
    catalog: Mapping[str, InstallationConfig],
    records: Mapping[str, TimeSeriesRecord | Mapping[str, Any] | None],
    *,
    updated_at: datetime,
) -> list[Observation]:
    """Full snapshot for every configured installation, grouped family by family."""
    per_family: dict[str, list[Observation]] = {family.name: [] for family in METRIC_FAMILIES}
    for installation_id, config in catalog.items():
        for observation in project(config, records.get(installation_id), updated_at=updated_at):
            per_family[observation.name].append(observation)
    return [observation for family in METRIC_FAMILIES for observation in per_family[family.name]]
