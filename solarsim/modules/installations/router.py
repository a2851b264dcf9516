"""
Installations Module - API Routes
"""
from fastapi import APIRouter

from solarsim.modules.installations.schemas import InstallationListResponse
from solarsim.runtime import RuntimeDep

router = APIRouter(prefix="/installations", tags=["Installations"])


@router.get("", response_model=InstallationListResponse)
async def list_installations(runtime: RuntimeDep):
    """Static configuration of every installation."""
    installations = list(runtime.catalog.values())
    return InstallationListResponse(installations=installations, total=len(installations))
