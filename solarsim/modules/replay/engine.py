"""
Replay Engine

Replays each installation's dataset in an endless loop. One cursor per
installation; every tick moves all cursors one record forward, wrapping to 0
past the end. Sequences of different lengths drift apart over time.

Concurrency: the engine lives on a single asyncio loop and its tick task is the
only writer. advance/jump_to_index/start/stop never await, so readers on the
same loop cannot observe a partially advanced set of installations.
"""
import asyncio
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Literal

from solarsim.core.logging import get_logger
from solarsim.core.metrics import MetricsRegistry
from solarsim.modules.datasets.schemas import TimeSeriesRecord, default_record
from solarsim.modules.installations.service import InstallationCatalog
from solarsim.modules.replay.schemas import ReplayOptions, ReplayStatus

logger = get_logger(__name__)

ReplayMode = Literal["sequential", "time-based"]


class ReplayEngine:
    """
    Cyclic cursor over per-installation time series.

    States: Stopped (initial) and Playing, changed only by start()/stop().
    """

    def __init__(
        self,
        catalog: InstallationCatalog,
        datasets: Mapping[str, Sequence[TimeSeriesRecord]],
        update_interval: float,
        *,
        speed_factor: float = 120.0,
        mode: ReplayMode = "sequential",
        metrics: MetricsRegistry | None = None,
    ):
        if update_interval <= 0:
            raise ValueError("update_interval must be positive")

        self.catalog = catalog
        self.datasets: dict[str, tuple[TimeSeriesRecord, ...]] = {
            name: tuple(records) for name, records in datasets.items()
        }
        self.options = ReplayOptions(
            update_interval=update_interval,
            speed_factor=speed_factor,
            mode=mode,
        )
        self.metrics = metrics

        # Catalog order first, then ids only known from datasets
        self._installation_ids: tuple[str, ...] = tuple(
            dict.fromkeys([*catalog.keys(), *self.datasets.keys()])
        )
        self._cursors: dict[str, int | None] = {
            name: 0 if self.datasets.get(name) else None for name in self._installation_ids
        }
        self._current: dict[str, TimeSeriesRecord] = {}
        self._playing = False
        self._task: asyncio.Task | None = None
        self._last_advance = datetime.now(timezone.utc)

        if mode != "sequential" or speed_factor != 120.0:
            # Reserved options: accepted and reported, never applied
            logger.warning(
                "Replay option not implemented, using sequential one-record ticks",
                mode=mode,
                speed_factor=speed_factor,
            )

        self._materialize()

    # === State ===

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def installation_ids(self) -> tuple[str, ...]:
        return self._installation_ids

    def cursor(self, installation_id: str) -> int | None:
        return self._cursors.get(installation_id)

    # === Control ===

    def start(self) -> None:
        """Stopped -> Playing. Must be called from a running event loop."""
        if self._playing:
            return

        loop = asyncio.get_running_loop()
        self._playing = True
        self._materialize()
        self._task = loop.create_task(self._run(), name="replay-engine-tick")
        self._task.add_done_callback(self._on_tick_done)
        if self.metrics:
            self.metrics.set_playing(True)

        logger.info(
            "Replay started",
            interval_ms=int(self.options.update_interval * 1000),
            installations=len(self._installation_ids),
        )

    def stop(self) -> None:
        """Playing -> Stopped. The pending tick is cancelled before returning."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()

        was_playing = self._playing
        self._playing = False
        if self.metrics:
            self.metrics.set_playing(False)
        if was_playing:
            logger.info("Replay stopped")

    def _on_tick_done(self, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error("Replay tick failed", exc_info=task.exception())
        # A dead tick task must not keep reporting Playing
        if self._task is task:
            self.stop()

    async def _run(self) -> None:
        interval = self.options.update_interval
        while True:
            await asyncio.sleep(interval)
            if not self._playing:
                return
            self.advance()

    def advance(self) -> None:
        """Move every non-empty installation one record forward, wrapping at the end."""
        for name in self._installation_ids:
            records = self.datasets.get(name)
            if not records:
                continue
            self._cursors[name] = (self._cursors[name] + 1) % len(records)

        self._materialize()
        self._last_advance = datetime.now(timezone.utc)
        if self.metrics:
            self.metrics.record_tick()

    def jump_to_index(self, index: int) -> None:
        """
        Set every non-empty cursor to clamp(index, 0, len - 1).

        Saturates instead of wrapping. Metrics are not refreshed here; the
        caller decides when to recompute them.
        """
        for name in self._installation_ids:
            records = self.datasets.get(name)
            if not records:
                continue
            self._cursors[name] = max(0, min(index, len(records) - 1))

        self._materialize()
        if self.metrics:
            self.metrics.record_jump()
        logger.info("Replay jumped", index=index, indices=dict(self._cursors))

    # === Reads ===

    def get_current(self, installation_id: str) -> TimeSeriesRecord:
        """Last materialised record, or a default record for unknown installations."""
        record = self._current.get(installation_id)
        if record is not None:
            return record
        return self._default_for(installation_id)

    def get_all(self) -> dict[str, TimeSeriesRecord]:
        """One entry per known installation, with or without data."""
        return {name: self.get_current(name) for name in self._installation_ids}

    def get_status(self) -> ReplayStatus:
        return ReplayStatus(
            is_playing=self._playing,
            last_update=self._last_advance,
            indices=dict(self._cursors),
            total_records={name: len(self.datasets.get(name, ())) for name in self._installation_ids},
        )

    # === Internals ===

    def _default_for(self, installation_id: str) -> TimeSeriesRecord:
        config = self.catalog.get(installation_id)
        return default_record(installation_id, config.inverters if config else 0)

    def _materialize(self) -> None:
        current: dict[str, TimeSeriesRecord] = {}
        for name in self._installation_ids:
            records = self.datasets.get(name)
            cursor = self._cursors.get(name)
            if records and cursor is not None:
                current[name] = records[cursor]
            else:
                current[name] = self._default_for(name)
        # Single assignment: readers see the previous or the new snapshot
        self._current = current
