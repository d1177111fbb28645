"""
Tests for SegmentationService and its HTTP client
"""

import asyncio
from unittest.mock import AsyncMock

import httpx
import numpy as np
import pytest

from core.enums import PipelineStage
from core.exceptions import DecodeError, ExternalServiceError
from services.pipeline_service import SourceFile
from services.segmentation_client import SegmentationClient
from services.segmentation_service import SegmentationService, content_key
from tests.raster_helpers import decode, encode_png, make_raster


class TestSegmentationService:
    @pytest.fixture
    def service(self, mock_segmentation_client):
        return SegmentationService(mock_segmentation_client)

    def test_remove_background(self, service, png_source, test_raster):
        delivered = asyncio.run(service.remove_background(png_source))
        result = decode(delivered.data)

        assert delivered.filename == "nobg_photo.png"
        assert delivered.media_type == "image/png"
        assert (result[:, :32, 3] == 0).all()
        assert np.array_equal(result[:, 32:], test_raster[:, 32:])

    def test_portrait(self, service, png_source, test_raster):
        delivered = asyncio.run(service.portrait(png_source))
        result = decode(delivered.data)

        assert delivered.filename == "portrait_photo.png"
        assert (result[..., 3] == 255).all()
        assert np.array_equal(result[:, 32:], test_raster[:, 32:])

    def test_concurrent_requests_share_one_call(
        self, service, mock_segmentation_client, png_source
    ):
        async def scenario():
            return await asyncio.gather(
                service.remove_background(png_source),
                service.portrait(png_source),
                service.remove_background(SourceFile("copy.png", png_source.data)),
            )

        nobg, portrait, copy = asyncio.run(scenario())

        assert mock_segmentation_client.segment.await_count == 1
        assert nobg.data == copy.data
        assert portrait.filename == "portrait_photo.png"
        assert service.in_flight == 0

    def test_sequential_requests_call_again(self, service, mock_segmentation_client, png_source):
        asyncio.run(service.remove_background(png_source))
        asyncio.run(service.remove_background(png_source))
        assert mock_segmentation_client.segment.await_count == 2

    def test_undecodable_source(self, service, mock_segmentation_client):
        with pytest.raises(DecodeError) as info:
            asyncio.run(service.remove_background(SourceFile("x.png", b"junk")))

        assert info.value.stage == PipelineStage.DECODE
        mock_segmentation_client.segment.assert_not_awaited()

    def test_unreadable_response(self, service, mock_segmentation_client, png_source):
        mock_segmentation_client.segment = AsyncMock(return_value=b"<html>oops</html>")

        with pytest.raises(ExternalServiceError) as info:
            asyncio.run(service.portrait(png_source))

        assert info.value.stage == PipelineStage.SEGMENTATION
        assert info.value.source_name == "photo.png"

    def test_wrong_size_response(self, service, mock_segmentation_client, png_source):
        mock_segmentation_client.segment = AsyncMock(return_value=encode_png(make_raster(10, 10)))

        with pytest.raises(ExternalServiceError) as info:
            asyncio.run(service.remove_background(png_source))

        assert info.value.stage == PipelineStage.SEGMENTATION

    def test_content_key_is_stable(self):
        assert content_key(b"abc") == content_key(b"abc")
        assert content_key(b"abc") != content_key(b"abd")

    def test_describe(self, service):
        info = service.describe()
        assert info["configured"] is True
        assert info["in_flight"] == 0


class TestSegmentationClient:
    def test_unconfigured(self):
        client = SegmentationClient(None)

        assert not client.configured
        with pytest.raises(ExternalServiceError):
            asyncio.run(client.segment(b"data", "a.png"))

    def _client_with(self, handler):
        client = SegmentationClient("http://segmentation.test/segment")
        client._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return client

    def test_returns_body(self):
        def handler(request):
            assert b'name="file"' in request.content
            return httpx.Response(200, content=b"PNGDATA")

        client = self._client_with(handler)
        assert asyncio.run(client.segment(b"data", "a.png")) == b"PNGDATA"

    @pytest.mark.parametrize(
        "response",
        [httpx.Response(500, content=b"boom"), httpx.Response(200, content=b"")],
    )
    def test_bad_responses(self, response):
        client = self._client_with(lambda request: response)
        with pytest.raises(ExternalServiceError):
            asyncio.run(client.segment(b"data", "a.png"))

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = self._client_with(handler)
        with pytest.raises(ExternalServiceError) as info:
            asyncio.run(client.segment(b"data", "a.png"))

        assert "unreachable" in info.value.message
