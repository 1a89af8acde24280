import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from cavern import create_app  # noqa: E402
from cavern.routes.dungeon_api import clear_cache  # noqa: E402
from dungeon_test_utils import small_config as _small_config  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app({"TESTING": True, "CAVERN_FILE_LOGGING": False})
    return app


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep CAVERN_* settings from the developer shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("CAVERN_"):
            monkeypatch.delenv(key, raising=False)
    clear_cache()
    yield
    clear_cache()


@pytest.fixture()
def small_config():
    return _small_config()
