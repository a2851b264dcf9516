"""
Simulator Runtime Tests
"""
import asyncio

import pytest

from solarsim.core.exceptions import ServiceUnavailableError
from solarsim.modules.telemetry.exposition import render
from solarsim.runtime import SimulatorRuntime


def test_engine_required_before_start(settings):
    runtime = SimulatorRuntime(settings, process_metrics=False)

    with pytest.raises(ServiceUnavailableError):
        runtime.require_engine()
    # Nothing to project yet
    runtime.refresh_metrics()


@pytest.mark.asyncio
async def test_start_without_autostart(settings):
    runtime = SimulatorRuntime(settings.model_copy(update={"autostart": False}), process_metrics=False)

    await runtime.start()
    try:
        assert runtime.engine is not None
        assert runtime.engine.is_playing is False
        assert 'solar_panel_count{farm="provence"} 5000.0' in render(runtime.registry).decode("utf-8")
    finally:
        await runtime.stop()


@pytest.mark.asyncio
async def test_metrics_follow_refresh_cadence(settings):
    runtime = SimulatorRuntime(
        settings.model_copy(update={"update_interval_ms": 10, "metrics_refresh_interval_ms": 10}),
        process_metrics=False,
    )

    sample = ("solar_last_update_timestamp", {"farm": "provence"})

    await runtime.start()
    try:
        first = runtime.registry.collector_registry.get_sample_value(*sample)
        await asyncio.sleep(0.1)
        latest = runtime.registry.collector_registry.get_sample_value(*sample)
    finally:
        await runtime.stop()

    assert latest > first


@pytest.mark.asyncio
async def test_stop_is_idempotent(runtime):
    await runtime.stop()
    await runtime.stop()

    assert runtime.engine.is_playing is False
