import os
import sys

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

# Ensure project root is on sys.path when pytest runs from a different CWD.
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

load_dotenv()
# Hard override: tests never touch the real data file and never hit rate limits
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from string_registry.main import create_app  # noqa: E402
from string_registry.repository import InMemoryRepository  # noqa: E402
from string_registry.services import StringRegistry  # noqa: E402


@pytest.fixture
def registry():
    return StringRegistry(InMemoryRepository())


@pytest.fixture
def client(registry):
    app = create_app(registry=registry)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "strings.json"
