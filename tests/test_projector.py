"""
Metrics Projector Tests
"""
from datetime import datetime, timezone

import pytest

from solarsim.modules.datasets.schemas import TimeSeriesRecord
from solarsim.modules.installations.service import DEFAULT_INSTALLATIONS
from solarsim.modules.telemetry.projector import (
    METRIC_FAMILIES,
    anomaly_one_hot,
    availability,
    project,
    project_all,
    severity_level,
)

PROVENCE = DEFAULT_INSTALLATIONS[0]
UPDATED_AT = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)


def _values(observations, name):
    return [o.value for o in observations if o.name == name]


def _by_label(observations, name, label):
    return {o.labels[label]: o.value for o in observations if o.name == name}


class TestAvailability:
    def test_one_inverter_down(self):
        record = TimeSeriesRecord(inverter_statuses=(1, 1, 0, 1))
        assert availability(PROVENCE, record) == 75.0

    def test_missing_statuses_count_as_active(self):
        assert availability(PROVENCE, TimeSeriesRecord()) == 100.0
        assert availability(PROVENCE, TimeSeriesRecord(inverter_statuses=(0,))) == 75.0

    def test_no_inverters(self):
        config = PROVENCE.model_copy(update={"inverters": 0})
        assert availability(config, TimeSeriesRecord(inverter_statuses=(1,))) == 0.0


class TestAnomalies:
    def test_one_hot(self):
        flags = anomaly_one_hot(TimeSeriesRecord(anomaly_type="OVERHEAT"))

        assert flags["OVERHEAT"] == 1
        assert sum(flags.values()) == 1
        assert set(flags) == {"NORMAL", "OVERHEAT", "INVERTER_DOWN", "DEGRADATION", "SHADING", "SENSOR_FAIL"}

    def test_missing_kind_is_normal(self):
        assert anomaly_one_hot(None)["NORMAL"] == 1

    def test_unknown_kind_sets_nothing(self):
        assert sum(anomaly_one_hot(TimeSeriesRecord(anomaly_type="ALIENS")).values()) == 0

    @pytest.mark.parametrize(
        "severity, level",
        [("low", 0), ("medium", 1), ("high", 2), (None, 0), ("catastrophic", 0)],
    )
    def test_severity_level(self, severity, level):
        assert severity_level(TimeSeriesRecord(anomaly_severity=severity)) == level


class TestProject:
    def test_copies_record_values(self):
        record = TimeSeriesRecord(
            power_production_kw=1500.0,
            irradiance_wm2=820.5,
            panel_temp_c=48.0,
            hour=12,
            day_of_year=153,
        )
        observations = project(PROVENCE, record, updated_at=UPDATED_AT)

        assert _values(observations, "solar_power_production_kw") == [1500.0]
        assert _values(observations, "solar_irradiance_wm2") == [820.5]
        assert _values(observations, "solar_panel_temperature_celsius") == [48.0]
        assert _values(observations, "solar_simulated_hour") == [12.0]
        assert _values(observations, "solar_simulated_day") == [153.0]

    def test_static_gauges_come_from_config(self):
        observations = project(PROVENCE, None, updated_at=UPDATED_AT)

        assert _values(observations, "solar_panel_count") == [5000.0]
        assert _values(observations, "solar_capacity_mw") == [2.0]
        assert _values(observations, "solar_last_update_timestamp") == [UPDATED_AT.timestamp()]

    def test_missing_record_projects_zeros(self):
        observations = project(PROVENCE, None, updated_at=UPDATED_AT)

        assert _values(observations, "solar_power_production_kw") == [0.0]
        assert _values(observations, "solar_daily_revenue_euros") == [0.0]
        assert _values(observations, "solar_anomaly_severity") == [0.0]
        assert _by_label(observations, "solar_anomaly_active", "type")["NORMAL"] == 1.0

    def test_mapping_with_bad_values(self):
        record = {
            "power_production_kw": float("nan"),
            "theoretical_power_kw": "not a number",
            "irradiance_wm2": float("inf"),
            "anomaly_type": "SHADING",
        }
        observations = project(PROVENCE, record, updated_at=UPDATED_AT)

        assert _values(observations, "solar_power_production_kw") == [0.0]
        assert _values(observations, "solar_power_theoretical_kw") == [0.0]
        assert _values(observations, "solar_irradiance_wm2") == [0.0]
        assert _by_label(observations, "solar_anomaly_active", "type")["SHADING"] == 1.0

    @pytest.mark.parametrize(
        "record",
        [
            {"inverter_statuses": 5},
            {"inverter_statuses": "1011"},
            {"anomaly_severity": ["high"]},
            {"anomaly_type": {"kind": "OVERHEAT"}},
        ],
    )
    def test_mapping_with_wrong_field_types(self, record):
        observations = project(PROVENCE, record, updated_at=UPDATED_AT)

        assert _values(observations, "solar_availability_percent") == [100.0]
        assert _values(observations, "solar_anomaly_severity") == [0.0]
        assert len(_values(observations, "solar_inverter_status")) == PROVENCE.inverters
        if "anomaly_type" in record:
            assert sum(_values(observations, "solar_anomaly_active")) == 0.0

    def test_inverters_follow_configuration(self):
        config = PROVENCE.model_copy(update={"inverters": 3})
        record = TimeSeriesRecord(inverter_statuses=(0, 1, 1, 0, 0, 0))

        statuses = _by_label(project(config, record, updated_at=UPDATED_AT), "solar_inverter_status", "inverter_id")

        assert statuses == {"1": 0.0, "2": 1.0, "3": 1.0}

    def test_labels(self):
        observations = project(PROVENCE, None, updated_at=UPDATED_AT)

        assert all(o.labels["farm"] == "provence" for o in observations)
        inverter = next(o for o in observations if o.name == "solar_inverter_status")
        assert set(inverter.labels) == {"farm", "inverter_id"}


class TestProjectAll:
    def test_grouped_by_family_in_registration_order(self, catalog):
        records = {"provence": TimeSeriesRecord(power_production_kw=10.0)}
        observations = project_all(catalog, records, updated_at=UPDATED_AT)

        order = [family.name for family in METRIC_FAMILIES]
        positions = [order.index(o.name) for o in observations]
        assert positions == sorted(positions)

        power = [o.labels["farm"] for o in observations if o.name == "solar_power_production_kw"]
        assert power == ["provence", "occitanie", "aquitaine"]

    def test_covers_every_family(self, catalog):
        observations = project_all(catalog, {}, updated_at=UPDATED_AT)
        assert {o.name for o in observations} == {family.name for family in METRIC_FAMILIES}
