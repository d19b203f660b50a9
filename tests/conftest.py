import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock
from app.config import Settings
from app.main import app
from app.middleware.auth import get_uploader_id


def mock_get_uploader_id():
    return "test_uploader_123"


@pytest.fixture(scope="function")
def client():
    app.dependency_overrides[get_uploader_id] = mock_get_uploader_id
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def anonymous_client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def storage_settings():
    return Settings(
        _env_file=None,
        supabase_url="https://x.supabase.co",
        supabase_service_key="service-role-key",
        supabase_s3_access_key_id=None,
        supabase_storage_bucket="products",
        supabase_region="us-east-1",
    )


@pytest.fixture
def unconfigured_settings():
    return Settings(
        _env_file=None,
        supabase_url=None,
        supabase_service_key=None,
    )


@pytest.fixture
def storage_client():
    mock_client = MagicMock()
    mock_client.put_object.return_value = True
    mock_client.delete_object.return_value = True
    return mock_client


@pytest.fixture
def sample_image():
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
