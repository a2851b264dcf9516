"""
Pytest Configuration and Fixtures.

Shared fixtures: a small on-disk dataset directory, test settings, a started
runtime and an HTTP client bound to it.
"""
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from solarsim.core.config import Settings
from solarsim.main import create_application
from solarsim.modules.datasets.generator import write_csv
from solarsim.modules.datasets.schemas import TimeSeriesRecord
from solarsim.modules.installations.service import DEFAULT_INSTALLATIONS, build_catalog
from solarsim.runtime import SimulatorRuntime

from tests.factories import make_records

# provence has 5 records, occitanie 3, aquitaine has no file at all
DATASET_LENGTHS = {"provence": 5, "occitanie": 3}


@pytest.fixture
def catalog():
    return build_catalog(DEFAULT_INSTALLATIONS)


@pytest.fixture
def datasets(catalog) -> dict[str, tuple[TimeSeriesRecord, ...]]:
    return {
        name: make_records(name, length, catalog[name].inverters)
        for name, length in DATASET_LENGTHS.items()
    }


@pytest.fixture
def data_dir(tmp_path: Path, catalog, datasets) -> Path:
    for name, records in datasets.items():
        config = catalog[name]
        write_csv(records, tmp_path / config.dataset_file, config.inverters)
    return tmp_path


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    return Settings(
        _env_file=None,
        environment="testing",
        data_dir=data_dir,
        # Long enough that no tick fires during an HTTP test
        update_interval_ms=3_600_000,
    )


@pytest.fixture
async def runtime(settings: Settings):
    runtime = SimulatorRuntime(settings, process_metrics=False)
    await runtime.start()
    yield runtime
    await runtime.stop()


@pytest.fixture
async def client(settings: Settings, runtime: SimulatorRuntime):
    app = create_application(settings, runtime=runtime)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
async def idle_client(settings: Settings):
    """Client for an application whose runtime was never started."""
    app = create_application(settings, runtime=SimulatorRuntime(settings, process_metrics=False))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
