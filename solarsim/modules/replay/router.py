"""
Replay Module - API Routes

Endpoints:
- GET  /data                 - current record of every installation
- GET  /data/{installation}  - current record of one installation
- GET  /status               - engine status, uptime and configuration
- POST /control/jump         - move every cursor to an index
- POST /control/pause        - stop ticking
- POST /control/resume       - resume ticking
"""
from fastapi import APIRouter

from solarsim.core.exceptions import InstallationNotFoundError
from solarsim.modules.datasets.schemas import TimeSeriesRecord
from solarsim.modules.replay.schemas import (
    ControlResponse,
    JumpRequest,
    JumpResponse,
    StatusConfig,
    StatusResponse,
)
from solarsim.runtime import EngineDep, RuntimeDep

router = APIRouter(tags=["Replay"])

MAX_ECHOED_INDEX = 2**63 - 1


@router.get("/data", response_model=dict[str, TimeSeriesRecord])
async def get_all_data(engine: EngineDep):
    """Current record of every configured installation."""
    return engine.get_all()


@router.get("/data/{installation_id}", response_model=TimeSeriesRecord)
async def get_installation_data(installation_id: str, runtime: RuntimeDep):
    """Current record of one installation; 404 lists the known ids."""
    if installation_id not in runtime.catalog:
        raise InstallationNotFoundError(installation_id, list(runtime.catalog))
    engine = runtime.require_engine()
    return engine.get_current(installation_id)


@router.get("/status", response_model=StatusResponse)
async def get_status(runtime: RuntimeDep, engine: EngineDep):
    """Replay status with uptime and the static configuration."""
    settings = runtime.settings
    return StatusResponse(
        **engine.get_status().model_dump(),
        uptime=runtime.uptime_seconds,
        config=StatusConfig(
            update_interval_ms=settings.update_interval_ms,
            metrics_refresh_interval_ms=settings.metrics_refresh_interval_ms,
            speed_factor=engine.options.speed_factor,
            mode=engine.options.mode,
            installations=list(runtime.catalog),
        ),
    )


@router.post("/control/jump", response_model=JumpResponse)
async def jump(data: JumpRequest, runtime: RuntimeDep, engine: EngineDep):
    """
    Move every cursor to `index` (clamped to each dataset's last record).

    Metrics are recomputed right after the jump.
    """
    # Cursors clamp to each dataset; the echo is capped to what JSON encoders accept
    index = min(int(data.index), MAX_ECHOED_INDEX)
    engine.jump_to_index(index)
    runtime.refresh_metrics()
    return JumpResponse(
        message="Index updated",
        new_index=index,
        current_data=engine.get_all(),
    )


@router.post("/control/pause", response_model=ControlResponse)
async def pause(engine: EngineDep):
    """Pause the replay."""
    engine.stop()
    return ControlResponse(message="Replay paused", status=engine.get_status())


@router.post("/control/resume", response_model=ControlResponse)
async def resume(engine: EngineDep):
    """Resume the replay."""
    engine.start()
    return ControlResponse(message="Replay resumed", status=engine.get_status())
