"""
Installations Module - Catalog

The catalog is an ordered, read-only mapping of installation id to config.
"""
import json
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import TypeAdapter

from solarsim.core.logging import get_logger
from solarsim.modules.installations.schemas import InstallationConfig

logger = get_logger(__name__)

InstallationCatalog = Mapping[str, InstallationConfig]

DEFAULT_INSTALLATIONS: tuple[InstallationConfig, ...] = (
    InstallationConfig(
        id="provence",
        location="Marseille",
        latitude=43.3,
        panels=5000,
        capacity_mw=2.0,
        inverters=4,
        panel_power_w=400,
        csv_file="provence_data.csv",
    ),
    InstallationConfig(
        id="occitanie",
        location="Montpellier",
        latitude=43.6,
        panels=3500,
        capacity_mw=1.4,
        inverters=3,
        panel_power_w=400,
        csv_file="occitanie_data.csv",
    ),
    InstallationConfig(
        id="aquitaine",
        location="Bordeaux",
        latitude=44.8,
        panels=4200,
        capacity_mw=1.68,
        inverters=4,
        panel_power_w=400,
        csv_file="aquitaine_data.csv",
    ),
)

_installation_list = TypeAdapter(list[InstallationConfig])


def build_catalog(installations: list[InstallationConfig] | tuple[InstallationConfig, ...]) -> InstallationCatalog:
    """Index installations by id, keeping their declaration order."""
    catalog: dict[str, InstallationConfig] = {}
    for installation in installations:
        if installation.id in catalog:
            raise ValueError(f"Duplicate installation id: {installation.id}")
        catalog[installation.id] = installation
    return MappingProxyType(catalog)


def load_catalog(path: Path | None = None) -> InstallationCatalog:
    """
    Load the installation catalog.

    Without a path the built-in farms are used. A configured file that is
    missing or invalid is a startup error: the catalog is static configuration.
    """
    if path is None:
        return build_catalog(DEFAULT_INSTALLATIONS)

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    installations = _installation_list.validate_python(raw)
    logger.info("Installation catalog loaded", path=str(path), count=len(installations))
    return build_catalog(installations)
