import pytest
from fastapi.testclient import TestClient

from app.main import app
from tests.helpers import encode_image


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="session")
def jpeg_bytes():
    return encode_image("JPEG")


@pytest.fixture(scope="session")
def png_bytes():
    return encode_image("PNG")


@pytest.fixture(scope="session")
def webp_bytes():
    return encode_image("WEBP")
