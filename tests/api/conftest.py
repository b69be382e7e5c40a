"""
Pytest configuration for API integration tests
"""

import pytest
from fastapi.testclient import TestClient

from image.converters import to_base64


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh service to avoid state contamination.
    """
    from main import app
    from services.locator_service import LocatorService

    locator_service = LocatorService(max_workers=2)

    app.state.locator_service = locator_service
    app.state.request_timeout = None
    app.state.debug = False

    # Create test client (no context manager so the lifespan does not replace state)
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client

    locator_service.shutdown()


@pytest.fixture
def encode():
    """Encode an image as lossless base64 for request bodies"""

    def _encode(image):
        return to_base64(image, "PNG")

    return _encode
