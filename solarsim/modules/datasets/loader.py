"""
Datasets Module - CSV Loader

Reads one CSV file per installation into an immutable tuple of records.
A missing or unreadable file never stops the service: the installation
simply replays an empty sequence.
"""
import csv
import math
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from solarsim.core.exceptions import DatasetNotFoundError
from solarsim.core.logging import get_logger
from solarsim.modules.datasets.schemas import TimeSeriesRecord
from solarsim.modules.installations.service import InstallationCatalog

logger = get_logger(__name__)

Dataset = tuple[TimeSeriesRecord, ...]

INVERTER_COLUMN = re.compile(r"^inverter_(\d+)_status$")
INT_COLUMNS = frozenset({"hour", "day_of_year"})
TEXT_COLUMNS = {
    "farm_name": "installation_id",
    "anomaly_type": "anomaly_type",
    "anomaly_severity": "anomaly_severity",
}
FLOAT_COLUMNS = frozenset(
    {
        "irradiance_wm2",
        "ambient_temp_c",
        "panel_temp_c",
        "power_production_kw",
        "theoretical_power_kw",
        "efficiency_percent",
        "daily_revenue_eur",
    }
)


def _parse_float(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: str) -> int | None:
    number = _parse_float(value)
    return int(number) if number is not None else None


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_row(row: Mapping[str, str | None]) -> dict[str, Any]:
    """Cast one raw CSV row into TimeSeriesRecord fields."""
    fields: dict[str, Any] = {}
    inverters: dict[int, int] = {}

    for column, raw in row.items():
        if column is None:
            continue
        column = column.strip()
        value = (raw or "").strip()
        if not value:
            continue

        if column == "timestamp":
            fields["timestamp"] = _parse_timestamp(value)
        elif column in INT_COLUMNS:
            fields[column] = _parse_int(value)
        elif column in TEXT_COLUMNS:
            fields[TEXT_COLUMNS[column]] = value
        elif column in FLOAT_COLUMNS:
            fields[column] = _parse_float(value)
        elif match := INVERTER_COLUMN.match(column):
            status = _parse_int(value)
            if status is not None:
                inverters[int(match.group(1))] = status

    if inverters:
        # Gaps in the numbering are filled as active, same policy as the projector
        highest = max(inverters)
        fields["inverter_statuses"] = tuple(inverters.get(i, 1) for i in range(1, highest + 1))
    return fields


def load_csv(path: Path | str) -> Dataset:
    """
    Load and parse one installation CSV.

    Raises DatasetNotFoundError when the file does not exist. Rows failing
    validation (hour out of range, ...) are skipped with a warning.
    """
    path = Path(path).resolve()
    if not path.is_file():
        raise DatasetNotFoundError(path)

    records: list[TimeSeriesRecord] = []
    skipped = 0
    with path.open(newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        for line_number, row in enumerate(reader, start=2):
            if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                continue
            try:
                records.append(TimeSeriesRecord(**parse_row(row)))
            except PydanticValidationError as e:
                skipped += 1
                logger.warning(
                    "Skipping invalid dataset row",
                    path=str(path),
                    line=line_number,
                    errors=e.error_count(),
                )

    if skipped:
        logger.warning("Dataset rows skipped", path=str(path), skipped=skipped)
    return tuple(records)


def load_all(catalog: InstallationCatalog, data_dir: Path | str) -> dict[str, Dataset]:
    """Load every installation's dataset; failures degrade to an empty sequence."""
    data_dir = Path(data_dir)
    datasets: dict[str, Dataset] = {}

    for installation_id, config in catalog.items():
        path = data_dir / config.dataset_file
        try:
            datasets[installation_id] = load_csv(path)
            logger.info(
                "Dataset loaded",
                installation=installation_id,
                records=len(datasets[installation_id]),
            )
        except (DatasetNotFoundError, OSError, UnicodeDecodeError, csv.Error) as e:
            logger.error(
                "Dataset load failed",
                installation=installation_id,
                path=str(path),
                error=str(e),
            )
            datasets[installation_id] = ()

    return datasets


def dataset_stats(datasets: Mapping[str, Sequence[TimeSeriesRecord]]) -> dict[str, Any]:
    """Summary logged at startup: record counts, anomaly mix and covered period."""
    anomaly_counts: Counter[str] = Counter()
    start: datetime | None = None
    end: datetime | None = None
    total = 0

    for records in datasets.values():
        total += len(records)
        for record in records:
            anomaly_counts[record.anomaly_type or "UNKNOWN"] += 1
            if record.timestamp is None:
                continue
            try:
                if start is None or record.timestamp < start:
                    start = record.timestamp
                if end is None or record.timestamp > end:
                    end = record.timestamp
            except TypeError:
                # Mixed naive/aware timestamps across files; range is informative only
                continue

    return {
        "total_records": total,
        "records_per_installation": {name: len(records) for name, records in datasets.items()},
        "anomaly_counts": dict(anomaly_counts),
        "date_range": {
            "start": start.isoformat() if start else None,
            "end": end.isoformat() if end else None,
        },
    }
