"""
Pytest configuration and fixtures for Image Transform Pipeline tests
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.history_buffer import HistoryBuffer
from services.pipeline_service import PipelineService, SourceFile
from tests.raster_helpers import decode, encode_jpeg, encode_png, make_raster


@pytest.fixture
def test_raster():
    """Create a 64x48 RGBA test raster"""
    return make_raster(64, 48)


@pytest.fixture
def png_bytes(test_raster):
    return encode_png(test_raster)


@pytest.fixture
def jpeg_bytes(test_raster):
    return encode_jpeg(test_raster)


@pytest.fixture
def png_source(png_bytes):
    return SourceFile(name="photo.png", data=png_bytes)


@pytest.fixture
def history_buffer():
    """Create HistoryBuffer instance for testing"""
    return HistoryBuffer(max_size=100)


@pytest.fixture
def pipeline_service(history_buffer):
    """Create PipelineService instance for testing"""
    return PipelineService(history_buffer=history_buffer)


@pytest.fixture
def mock_segmentation_client():
    """Segmentation client that returns the source with its left half cut out"""

    async def segment(data, filename):
        raster = decode(data)
        raster[:, : raster.shape[1] // 2, 3] = 0
        return encode_png(raster)

    mock = MagicMock()
    mock.configured = True
    mock.service_url = "http://segmentation.test/segment"
    mock.segment = AsyncMock(side_effect=segment)
    mock.close = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_history_buffer():
    """Create mock HistoryBuffer for unit testing"""
    mock = MagicMock()
    mock.add_record.return_value = "hist_mock"
    mock.get_recent.return_value = []
    return mock
