"""
Installations Module - static solar farm catalog.
"""
from solarsim.modules.installations.schemas import InstallationConfig
from solarsim.modules.installations.service import (
    DEFAULT_INSTALLATIONS,
    InstallationCatalog,
    build_catalog,
    load_catalog,
)

__all__ = [
    "InstallationConfig",
    "InstallationCatalog",
    "DEFAULT_INSTALLATIONS",
    "build_catalog",
    "load_catalog",
]
