"""
Exposition Formatter

Renders a MetricsRegistry in the Prometheus text format:

    # HELP <name> <description>
    # TYPE <name> gauge
    <name>{<label>="<value>",...} <value>

Families come out in registration order.
"""
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from solarsim.core.metrics import MetricsRegistry

CONTENT_TYPE = CONTENT_TYPE_LATEST


def render(registry: MetricsRegistry) -> bytes:
    """Serialize every registered family, installation snapshot first."""
    return generate_latest(registry.collector_registry)
