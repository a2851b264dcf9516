"""
Simulator Runtime - composition root

Owns the catalog, the datasets, the replay engine and the metrics registry.
Metrics are recomputed on their own cadence (and after explicit jumps), not on
every engine mutation.
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, Request

from solarsim.core.config import Settings
from solarsim.core.exceptions import ServiceUnavailableError
from solarsim.core.logging import get_logger
from solarsim.core.metrics import MetricsRegistry
from solarsim.modules.datasets.loader import dataset_stats, load_all
from solarsim.modules.installations.service import InstallationCatalog, load_catalog
from solarsim.modules.replay.engine import ReplayEngine
from solarsim.modules.telemetry.projector import METRIC_FAMILIES, project_all

logger = get_logger(__name__)


class SimulatorRuntime:
    """Builds and runs the replay engine and its metrics refresh loop."""

    def __init__(self, settings: Settings, *, process_metrics: bool = True):
        self.settings = settings
        self.registry = MetricsRegistry(METRIC_FAMILIES, process_metrics=process_metrics)
        self.catalog: InstallationCatalog = load_catalog(settings.installations_file)
        self.engine: ReplayEngine | None = None
        self.started_at = time.monotonic()
        self._refresh_task: asyncio.Task | None = None

    @property
    def uptime_seconds(self) -> int:
        return int(time.monotonic() - self.started_at)

    def require_engine(self) -> ReplayEngine:
        if self.engine is None:
            raise ServiceUnavailableError("replay", "Simulator not initialized")
        return self.engine

    async def start(self) -> None:
        """Load datasets, build the engine and begin replaying."""
        logger.info("Loading datasets", data_dir=str(self.settings.data_dir))
        datasets = load_all(self.catalog, self.settings.data_dir)

        stats = dataset_stats(datasets)
        logger.info(
            "Datasets ready",
            total_records=stats["total_records"],
            installations=list(stats["records_per_installation"]),
            anomalies=stats["anomaly_counts"],
        )

        self.engine = ReplayEngine(
            self.catalog,
            datasets,
            self.settings.update_interval,
            speed_factor=self.settings.speed_factor,
            mode=self.settings.replay_mode,
            metrics=self.registry,
        )
        if self.settings.autostart:
            self.engine.start()

        self.refresh_metrics()
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._refresh_loop(), name="metrics-refresh"
        )
        logger.info("Simulator ready", installations=list(self.catalog))

    async def stop(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self.engine is not None:
            self.engine.stop()
        logger.info("Simulator stopped")

    def refresh_metrics(self) -> None:
        """Project every installation's current record into the registry."""
        if self.engine is None:
            return
        self.registry.publish(
            project_all(
                self.catalog,
                self.engine.get_all(),
                updated_at=datetime.now(timezone.utc),
            )
        )

    async def _refresh_loop(self) -> None:
        interval = self.settings.metrics_refresh_interval
        while True:
            await asyncio.sleep(interval)
            self.refresh_metrics()


def get_runtime(request: Request) -> SimulatorRuntime:
    """Runtime attached to the application by create_application()."""
    return request.app.state.runtime


def get_engine(runtime: Annotated[SimulatorRuntime, Depends(get_runtime)]) -> ReplayEngine:
    """Engine dependency; 503 until the runtime has started."""
    return runtime.require_engine()


# Type aliases
RuntimeDep = Annotated[SimulatorRuntime, Depends(get_runtime)]
EngineDep = Annotated[ReplayEngine, Depends(get_engine)]
