"""
Pytest configuration for API integration tests
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def client(mock_segmentation_client):
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh client to avoid state contamination.
    """
    from config import Settings
    from core.history_buffer import HistoryBuffer
    from core.preview_manager import PreviewManager
    from main import app
    from services.delivery import MemoryDelivery
    from services.segmentation_service import SegmentationService

    settings = Settings()
    delivery = MemoryDelivery()

    # Each request runs on its own short-lived loop, so debounce timers never
    # fire here; commits happen through export
    preview_manager = PreviewManager(max_sessions=5, debounce_ms=500, thumbnail_width=64)

    app.state.history_buffer = HistoryBuffer(max_size=100)
    app.state.preview_manager = preview_manager
    app.state.segmentation_service = SegmentationService(mock_segmentation_client, delivery=delivery)
    app.state.delivery = delivery
    app.state.settings = settings
    app.state.config = settings.to_dict()

    # Create test client (no context manager so lifespan does not replace state)
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client

    preview_manager.cleanup()
