"""
Telemetry Module - Metrics Router
"""
from fastapi import APIRouter, Response

from solarsim.runtime import RuntimeDep
from solarsim.modules.telemetry.exposition import CONTENT_TYPE, render

router = APIRouter(tags=["Metrics"])


@router.get("/metrics", include_in_schema=False)
async def metrics(runtime: RuntimeDep):
    """
    Prometheus metrics endpoint.

    Scrape this endpoint with Prometheus:
    ```yaml
    scrape_configs:
      - job_name: 'solar-simulator'
        scrape_interval: 30s
        static_configs:
          - targets: ['localhost:3000']
        metrics_path: '/metrics'
    ```
    """
    return Response(
        content=render(runtime.registry),
        media_type=CONTENT_TYPE,
    )
