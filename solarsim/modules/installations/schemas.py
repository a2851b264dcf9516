"""
Installations Module - Pydantic Schemas
"""
from pydantic import BaseModel, ConfigDict, Field


class InstallationConfig(BaseModel):
    """Static description of one solar farm. Never mutated after startup."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Installation identifier, used as the `farm` label")
    location: str = Field(..., description="Display location")
    latitude: float | None = Field(None, ge=-90, le=90)
    panels: int = Field(..., ge=0, description="Number of panels")
    capacity_mw: float = Field(..., ge=0, description="Rated capacity in MW")
    inverters: int = Field(..., ge=0, description="Number of inverters")
    panel_power_w: float = Field(..., ge=0, description="Rated power per panel in W")
    csv_file: str | None = Field(None, description="Dataset file name inside the data directory")

    @property
    def dataset_file(self) -> str:
        return self.csv_file or f"{self.id}_data.csv"


class InstallationListResponse(BaseModel):
    """Catalog echo."""
    installations: list[InstallationConfig]
    total: int
