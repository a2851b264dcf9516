"""
Datasets Module - time-series records, CSV loading and synthetic generation.
"""
from solarsim.modules.datasets.schemas import (
    AnomalyKind,
    Severity,
    TimeSeriesRecord,
    default_record,
)

__all__ = [
    "AnomalyKind",
    "Severity",
    "TimeSeriesRecord",
    "default_record",
]
