"""
Datasets Module - Synthetic Generator

Builds hourly records for an installation from the physics formulas, with a
sprinkling of anomalies, and writes them in the CSV layout the loader reads.
"""
import csv
import math
import random
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path

from solarsim.modules.datasets import physics
from solarsim.modules.datasets.schemas import AnomalyKind, Severity, TimeSeriesRecord
from solarsim.modules.installations.schemas import InstallationConfig

BASE_COLUMNS = (
    "timestamp",
    "farm_name",
    "hour",
    "day_of_year",
    "irradiance_wm2",
    "ambient_temp_c",
    "panel_temp_c",
    "power_production_kw",
    "theoretical_power_kw",
    "efficiency_percent",
)
TAIL_COLUMNS = ("daily_revenue_eur", "anomaly_type", "anomaly_severity")

# Random anomalies, drawn when a record is not already overheating
RANDOM_ANOMALIES: tuple[tuple[AnomalyKind, Severity, float], ...] = (
    (AnomalyKind.INVERTER_DOWN, Severity.HIGH, 1.0),
    (AnomalyKind.DEGRADATION, Severity.MEDIUM, 0.8),
    (AnomalyKind.SHADING, Severity.LOW, 0.6),
    (AnomalyKind.SENSOR_FAIL, Severity.MEDIUM, 1.0),
)


def _seasonal_factor(day_of_year: int) -> float:
    # 1.0 at the summer solstice, 0.5 at the winter one
    return 0.75 + 0.25 * math.cos(2 * math.pi * (day_of_year - 172) / 365)


def generate_dataset(
    config: InstallationConfig,
    days: int = 7,
    start: datetime | None = None,
    seed: int | None = None,
    anomaly_rate: float = 0.03,
    heatwave_days: Sequence[int] = (),
) -> tuple[TimeSeriesRecord, ...]:
    """
    Generate `days` x 24 hourly records starting at midnight of `start`.

    heatwave_days are 0-based day offsets where ambient temperature is pushed
    high enough for panels to cross the critical temperature around noon.
    """
    rng = random.Random(seed)
    start = (start or datetime(2024, 6, 1, tzinfo=timezone.utc)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    records: list[TimeSeriesRecord] = []

    for day in range(days):
        energy_kwh = 0.0
        day_start = start + timedelta(days=day)
        day_of_year = day_start.timetuple().tm_yday
        season = _seasonal_factor(day_of_year)
        max_irradiance = 1000 * season * rng.uniform(0.85, 1.0)
        base_temp = 8 + 17 * season + (18 if day in heatwave_days else 0)

        for hour in range(24):
            timestamp = day_start + timedelta(hours=hour)
            irradiance = physics.irradiance_wm2(hour, max_irradiance)
            ambient = base_temp + 6 * math.sin(math.pi * (hour - 9) / 12) + rng.uniform(-1, 1)
            panel_temp = physics.panel_temperature_c(ambient, irradiance)
            theoretical = physics.theoretical_power_kw(config, irradiance, panel_temp)

            statuses = [1] * config.inverters
            production = theoretical * rng.uniform(0.95, 1.0)
            measured_irradiance = irradiance
            anomaly, severity = AnomalyKind.NORMAL, Severity.LOW

            if physics.is_overheating(panel_temp):
                anomaly = AnomalyKind.OVERHEAT
                severity = Severity.HIGH if panel_temp >= physics.CRITICAL_PANEL_TEMP_C + 5 else Severity.MEDIUM
                production *= 0.9
            elif irradiance > 0 and rng.random() < anomaly_rate:
                anomaly, severity, factor = rng.choice(RANDOM_ANOMALIES)
                if anomaly is AnomalyKind.INVERTER_DOWN and statuses:
                    down = rng.randrange(len(statuses))
                    statuses[down] = 0
                    factor = (len(statuses) - 1) / len(statuses)
                elif anomaly is AnomalyKind.SENSOR_FAIL:
                    measured_irradiance = 0.0
                production *= factor

            energy_kwh += production
            efficiency = production / theoretical * 100 if theoretical > 0 else 0.0

            records.append(
                TimeSeriesRecord(
                    installation_id=config.id,
                    timestamp=timestamp,
                    hour=hour,
                    day_of_year=day_of_year,
                    irradiance_wm2=round(measured_irradiance, 2),
                    ambient_temp_c=round(ambient, 2),
                    panel_temp_c=round(panel_temp, 2),
                    power_production_kw=round(production, 2),
                    theoretical_power_kw=round(theoretical, 2),
                    efficiency_percent=round(efficiency, 2),
                    inverter_statuses=tuple(statuses),
                    daily_revenue_eur=round(physics.revenue_eur(energy_kwh), 2),
                    anomaly_type=anomaly.value,
                    anomaly_severity=severity.value,
                )
            )

    return tuple(records)


def write_csv(records: Sequence[TimeSeriesRecord], path: Path | str, inverters: int) -> Path:
    """Write records with one inverter_<n>_status column per configured inverter."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    inverter_columns = tuple(f"inverter_{i}_status" for i in range(1, inverters + 1))

    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(BASE_COLUMNS + inverter_columns + TAIL_COLUMNS)
        for record in records:
            statuses = list(record.inverter_statuses[:inverters])
            statuses += [1] * (inverters - len(statuses))
            writer.writerow(
                [
                    record.timestamp.isoformat() if record.timestamp else "",
                    record.installation_id or "",
                    record.hour,
                    record.day_of_year,
                    record.irradiance_wm2,
                    record.ambient_temp_c,
                    record.panel_temp_c,
                    record.power_production_kw,
                    record.theoretical_power_kw,
                    record.efficiency_percent,
                    *statuses,
                    record.daily_revenue_eur,
                    record.anomaly_type or "",
                    record.anomaly_severity or "",
                ]
            )
    return path


def generate_all(
    catalog: Mapping[str, InstallationConfig],
    output_dir: Path | str,
    days: int = 7,
    seed: int | None = None,
    heatwave_days: Sequence[int] = (),
) -> dict[str, Path]:
    """Write one dataset per installation, named after its configured CSV file."""
    output_dir = Path(output_dir)
    written: dict[str, Path] = {}
    for offset, (installation_id, config) in enumerate(catalog.items()):
        records = generate_dataset(
            config,
            days=days,
            seed=None if seed is None else seed + offset,
            heatwave_days=heatwave_days,
        )
        written[installation_id] = write_csv(records, output_dir / config.dataset_file, config.inverters)
    return written
