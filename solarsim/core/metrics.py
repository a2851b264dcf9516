"""
Prometheus Metrics Registry

One MetricsRegistry is built by the runtime and handed to whoever needs it.
It owns a private CollectorRegistry holding, in registration order:

1. the per-installation snapshot families (published by the projector),
2. the replay engine and HTTP request families,
3. the process, platform and GC collectors from prometheus_client.
"""
import time
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from prometheus_client import (
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    Counter,
    Gauge,
    Histogram,
)
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector, CollectorRegistry
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from solarsim.core.logging import bind_context, clear_context


@dataclass(frozen=True, slots=True)
class MetricFamily:
    """Static description of a gauge family."""

    name: str
    documentation: str
    labelnames: tuple[str, ...] = ("farm",)


@dataclass(frozen=True, slots=True)
class Observation:
    """A single named, labelled value produced by the projector."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    value: float = 0.0


class SnapshotCollector(Collector):
    """Serves the last published observation set as gauge families."""

    def __init__(self, families: Sequence[MetricFamily]):
        self._families = tuple(families)
        self._known = {family.name for family in self._families}
        self._samples: dict[str, list[Observation]] = {}

    @property
    def families(self) -> tuple[MetricFamily, ...]:
        return self._families

    def describe(self) -> Iterator[GaugeMetricFamily]:
        for family in self._families:
            yield GaugeMetricFamily(family.name, family.documentation, labels=family.labelnames)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        samples = self._samples
        for family in self._families:
            metric = GaugeMetricFamily(family.name, family.documentation, labels=family.labelnames)
            for observation in samples.get(family.name, ()):
                metric.add_metric(
                    [observation.labels.get(label, "") for label in family.labelnames],
                    observation.value,
                )
            yield metric

    def replace(self, observations: Iterable[Observation]) -> None:
        grouped: dict[str, list[Observation]] = {name: [] for name in self._known}
        for observation in observations:
            if observation.name not in self._known:
                raise ValueError(f"Unregistered metric family: {observation.name}")
            grouped[observation.name].append(observation)
        # Swap the whole mapping so a concurrent collect() sees old or new, never a mix
        self._samples = grouped


class MetricsRegistry:
    """Explicit registry for everything exposed on /metrics."""

    def __init__(self, families: Sequence[MetricFamily], *, process_metrics: bool = True):
        self.collector_registry = CollectorRegistry()
        self.snapshot = SnapshotCollector(families)
        self.collector_registry.register(self.snapshot)

        # === Replay Engine Metrics ===
        self.ticks = Counter(
            "solar_simulator_ticks",
            "Replay ticks applied since start",
            registry=self.collector_registry,
        )
        self.jumps = Counter(
            "solar_simulator_jumps",
            "Explicit cursor jumps requested",
            registry=self.collector_registry,
        )
        self.playing = Gauge(
            "solar_simulator_replay_playing",
            "Replay state (1=playing, 0=paused)",
            registry=self.collector_registry,
        )

        # === Request Metrics ===
        self.request_count = Counter(
            "solar_simulator_http_requests",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.collector_registry,
        )
        self.request_latency = Histogram(
            "solar_simulator_http_request_duration_seconds",
            "HTTP request latency",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=self.collector_registry,
        )

        if process_metrics:
            ProcessCollector(registry=self.collector_registry)
            PlatformCollector(registry=self.collector_registry)
            GCCollector(registry=self.collector_registry)

    def publish(self, observations: Iterable[Observation]) -> None:
        """Replace the installation snapshot with a freshly projected one."""
        self.snapshot.replace(observations)

    def record_tick(self) -> None:
        self.ticks.inc()

    def record_jump(self) -> None:
        self.jumps.inc()

    def set_playing(self, playing: bool) -> None:
        self.playing.set(1 if playing else 0)

    def record_request(self, method: str, endpoint: str, status_code: int, duration: float) -> None:
        self.request_count.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code,
        ).inc()
        self.request_latency.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    def __init__(self, app, registry: MetricsRegistry):
        super().__init__(app)
        self.registry = registry

    async def dispatch(self, request: Request, call_next) -> StarletteResponse:
        # Skip metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        bind_context(request_id=request.headers.get("X-Request-ID"))
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_context()
        duration = time.perf_counter() - start_time

        # Route template keeps /data/{installation_id} to one label value
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        self.registry.record_request(request.method, endpoint, response.status_code, duration)
        return response
