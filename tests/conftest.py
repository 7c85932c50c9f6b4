import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.main import app
from app.storage import JsonFileStore, get_store

TOKEN = "test_verification_token"


@pytest.fixture()
def settings(tmp_path):
    return Settings(data_dir=str(tmp_path / "storage"), verification_token=TOKEN, _env_file=None)


@pytest.fixture()
def store(settings):
    s = JsonFileStore.from_settings(settings)
    s.load()
    return s


@pytest.fixture()
def client(settings, store):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def expense_payload():
    return {
        "records": [
            {
                "fields": {"日期": "2024-01-01", "金额": 50, "分类": "food"},
                "action": "create",
            }
        ]
    }
