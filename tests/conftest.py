# tests/conftest.py
import pytest
from unittest.mock import MagicMock

from cloudinary_fs.adapter import CloudinaryAdapter
from cloudinary_fs.client import CloudinaryClient
from cloudinary_fs.config import ApiConfig, Settings, get_settings


@pytest.fixture
def api_config():
    return ApiConfig(cloud_name="demo", api_key="test_key", api_secret="test_secret")


@pytest.fixture
def mock_settings(api_config):
    """
    Provides a mock of the application settings for testing.
    This avoids the need for environment variables during tests.
    """
    settings = MagicMock(spec=Settings)
    settings.CLOUDINARY_CLOUD_NAME = "demo"
    settings.CLOUDINARY_API_KEY = "test_key"
    settings.CLOUDINARY_API_SECRET = "test_secret"
    settings.CLOUDINARY_PATH_PREFIX = None
    settings.LIST_PAGE_SIZE = 500
    settings.LOG_LEVEL = "INFO"
    settings.LOG_FILE = None
    settings.api_config = api_config
    return settings


@pytest.fixture
def mock_client():
    """Fixture for a mock Cloudinary client."""
    return MagicMock(spec=CloudinaryClient)


@pytest.fixture
def adapter(mock_client):
    return CloudinaryAdapter(mock_client)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    # get_settings might have cached a real instance during test collection
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
