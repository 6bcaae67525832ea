import faulthandler
import sys
import time
from pathlib import Path

import pytest

from d2builds import constants as c
from d2builds.catalog.cache import IndexCache, clear_index_cache
from d2builds.catalog.indexer import build_index
from d2builds.config import Config
from tests.conftest_utils import CATALOG_VERSION, grenade_scenario_records, sample_manifest_records


# =============================================================================
# Global singleton reset fixture for test isolation
# =============================================================================

@pytest.fixture(autouse=True)
def reset_index_cache():
    """
    Reset the global index cache around each test.

    No test can leak a cached index (or cache statistics) to another test
    through the module-level singleton.
    """
    clear_index_cache()
    yield
    clear_index_cache()


@pytest.fixture
def scenario_records():
    return grenade_scenario_records()


@pytest.fixture
def sample_records():
    return sample_manifest_records()


@pytest.fixture
def sample_index(sample_records):
    return build_index(sample_records, CATALOG_VERSION)


@pytest.fixture
def scenario_index(scenario_records):
    return build_index(scenario_records, CATALOG_VERSION)


@pytest.fixture
def index_cache():
    return IndexCache(max_entries=4)


@pytest.fixture
def temp_config(tmp_path):
    """
    Provide a fresh Config backed by a temp file.

    This fixture GUARANTEES a clean config or fails loudly.
    """
    config_path = tmp_path / f"config_{id(tmp_path)}_{time.time_ns()}.json"
    config = Config(config_file=config_path)

    assert config.max_builds == c.MAX_BUILDS_DEFAULT, \
        f"FIXTURE CONTAMINATED! max_builds={config.max_builds}, file={config.config_file}"
    assert config.fallback_limit == c.FALLBACK_ITEM_LIMIT, \
        f"FIXTURE CONTAMINATED! fallback_limit={config.fallback_limit}, file={config.config_file}"
    assert config.cache_max_entries == c.INDEX_CACHE_MAX_ENTRIES, \
        f"FIXTURE CONTAMINATED! max_entries={config.cache_max_entries}, file={config.config_file}"

    return config


def pytest_collection_modifyitems(config, items):
    """Assign tier markers based on test location."""
    for item in items:
        path = Path(str(item.fspath)).as_posix()

        if "/tests/integration/" in path:
            item.add_marker(pytest.mark.integration)
        elif "/tests/unit/" in path:
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


def pytest_sessionstart(session):  # pragma: no cover - test harness init
    """Enable faulthandler so a pytest-timeout expiry dumps every thread's stack."""
    faulthandler.enable(file=sys.stderr, all_threads=True)
