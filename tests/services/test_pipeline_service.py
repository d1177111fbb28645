"""
Tests for PipelineService end to end (decode -> stages -> encode -> deliver)
"""

import asyncio

import numpy as np
import pytest

from core.enums import PipelineStage, SocialBackground, SocialTemplateName, TargetFormat
from core.exceptions import DecodeError, InvalidRegionError
from schemas.common import CropRegion
from schemas.operations import (
    CompressOperation,
    ConvertOperation,
    CropOperation,
    EnhanceOperation,
    ResizeOperation,
    ResizeSpec,
    SocialOperation,
    SocialStyle,
)
from services.pipeline_service import PipelineService, SourceFile
from tests.raster_helpers import decode, encode_jpeg, encode_png, make_raster
from transforms.social_card import template_size


def run(coro):
    return asyncio.run(coro)


class TestScenarios:
    """Representative end-to-end runs"""

    def test_large_jpeg_resized_to_width(self, pipeline_service):
        raster = np.zeros((3000, 4000, 4), dtype=np.uint8)
        raster[..., 0] = 200
        raster[..., 3] = 255
        source = SourceFile("holiday.jpg", encode_jpeg(raster))
        operation = ResizeOperation(resize=ResizeSpec(width=800))

        outcome = run(pipeline_service.process_image(source, operation))

        assert outcome.success
        assert (outcome.width, outcome.height) == (800, 600)
        assert outcome.file.filename == "holiday_resized.jpeg"
        assert outcome.file.media_type == "image/jpeg"
        assert decode(outcome.file.data).shape == (600, 800, 4)

    def test_png_crop_is_pixel_exact(self, pipeline_service):
        raster = make_raster(1000, 1000, seed=11)
        source = SourceFile("square.png", encode_png(raster))
        operation = CropOperation(
            target_format=TargetFormat.PNG,
            crop=CropRegion(x=100, y=100, width=400, height=400),
        )

        outcome = run(pipeline_service.process_image(source, operation))

        assert outcome.success
        assert outcome.file.filename == "square_cropped.png"
        output = decode(outcome.file.data)
        assert output.shape == (400, 400, 4)
        assert tuple(output[0, 0]) == tuple(raster[100, 100])
        assert np.array_equal(output, raster[100:500, 100:500])

    def test_story_card_on_black(self, pipeline_service, png_source):
        operation = SocialOperation(
            target_format=TargetFormat.PNG,
            template=SocialTemplateName.STORY,
            style=SocialStyle(background=SocialBackground.SOLID_BLACK, padding_percent=10),
        )

        outcome = run(pipeline_service.process_image(png_source, operation))
        card = decode(outcome.file.data)

        assert outcome.success
        assert card.shape == (1920, 1080, 4)
        assert tuple(card[0, 0]) == (0, 0, 0, 255)
        assert tuple(card[-1, -1]) == (0, 0, 0, 255)
        assert outcome.file.filename == "photo_social.png"

    @pytest.mark.parametrize("template", list(SocialTemplateName))
    def test_cropped_social_card_matches_template(self, pipeline_service, png_source, template):
        operation = SocialOperation(
            target_format=TargetFormat.PNG,
            template=template,
            crop=CropRegion(x=5, y=3, width=17, height=40),
            style=SocialStyle(background=SocialBackground.GRADIENT_A, padding_percent=8),
        )

        outcome = run(pipeline_service.process_image(png_source, operation))

        assert (outcome.width, outcome.height) == template_size(template)

    def test_default_enhance_is_identity(self, pipeline_service, png_source, test_raster):
        operation = EnhanceOperation(target_format=TargetFormat.PNG)

        outcome = run(pipeline_service.process_image(png_source, operation))

        assert np.array_equal(decode(outcome.file.data), test_raster)
        assert outcome.file.filename == "photo_enhanced.png"

    def test_enhance_with_vignette_darkens_corners(self, pipeline_service):
        raster = np.full((60, 80, 4), 220, dtype=np.uint8)
        source = SourceFile("flat.png", encode_png(raster))
        operation = EnhanceOperation.model_validate(
            {"target_format": "png", "adjustments": {"vignette": 100, "sharpen": 50}}
        )

        outcome = run(pipeline_service.process_image(source, operation))
        result = decode(outcome.file.data)

        assert result[0, 0, 0] < result[30, 40, 0]


class TestBatch:
    def test_decode_failure_does_not_stop_batch(self, pipeline_service, png_bytes):
        sources = [
            SourceFile("a.png", png_bytes),
            SourceFile("broken.png", b"definitely not an image"),
            SourceFile("c.png", png_bytes),
        ]

        outcomes = run(pipeline_service.process_batch(sources, ConvertOperation()))

        assert [o.success for o in outcomes] == [True, False, True]
        error = outcomes[1].error
        assert isinstance(error, DecodeError)
        assert error.stage == PipelineStage.DECODE
        assert error.source_name == "broken.png"
        assert [o.file.filename for o in (outcomes[0], outcomes[2])] == [
            "a_converted.jpeg",
            "c_converted.jpeg",
        ]

    def test_invalid_region_attributed_to_geometry(self, pipeline_service, png_source):
        operation = CropOperation(crop=CropRegion(x=50, y=0, width=100, height=10))

        outcome = run(pipeline_service.process_image(png_source, operation))

        assert not outcome.success
        assert isinstance(outcome.error, InvalidRegionError)
        assert outcome.error.to_dict() == {
            "message": outcome.error.message,
            "code": "INVALID_REGION",
            "stage": "geometry",
            "source": "photo.png",
        }

    def test_empty_batch(self, pipeline_service):
        assert run(pipeline_service.process_batch([], ConvertOperation())) == []


class TestEncoding:
    def test_icon_convert(self, pipeline_service, png_source, test_raster):
        outcome = run(
            pipeline_service.process_image(png_source, ConvertOperation(target_format="ico"))
        )
        data = outcome.file.data

        assert outcome.file.filename == "photo.ico"
        assert outcome.file.media_type == "image/x-icon"
        assert data[:6] == bytes([0, 0, 1, 0, 1, 0])
        assert (data[6], data[7]) == (64, 48)
        assert np.array_equal(decode(data[22:]), test_raster)

    def test_icon_fit_to_square(self, pipeline_service, png_source):
        outcome = run(pipeline_service.process_icon(png_source, size=32))

        assert outcome.success
        assert (outcome.width, outcome.height) == (32, 32)
        assert outcome.file.filename == "photo.ico"

    def test_compress_quality_controls_size(self, pipeline_service):
        source = SourceFile("noise.png", encode_png(make_raster(200, 150, seed=5)))

        low = run(pipeline_service.process_image(source, CompressOperation(quality=0.1)))
        high = run(pipeline_service.process_image(source, CompressOperation(quality=1.0)))

        assert low.file.size_bytes < high.file.size_bytes
        assert low.file.filename == "noise_compressed.jpeg"

    def test_jpeg_flattens_transparency_onto_black(self, pipeline_service):
        raster = np.zeros((16, 16, 4), dtype=np.uint8)
        raster[..., :3] = 255
        source = SourceFile("clear.png", encode_png(raster))

        outcome = run(pipeline_service.process_image(source, ConvertOperation()))

        assert decode(outcome.file.data)[..., :3].max() < 10


class TestHistoryRecording:
    def test_success_and_failure_recorded(self, pipeline_service, history_buffer, png_source):
        ok = run(pipeline_service.process_image(png_source, ConvertOperation()))
        failed = run(
            pipeline_service.process_image(SourceFile("x.png", b"junk"), ConvertOperation())
        )

        ok_record = history_buffer.get_record(ok.history_id)
        failed_record = history_buffer.get_record(failed.history_id)

        assert ok_record.result == "OK"
        assert ok_record.output_filename == "photo_converted.jpeg"
        assert ok_record.metadata == {"target_format": "jpeg"}
        assert failed_record.result == "FAILED"
        assert failed_record.stage == "decode"
        assert failed_record.error_code == "DECODE_ERROR"

    def test_without_history(self, png_source):
        outcome = run(PipelineService().process_image(png_source, ConvertOperation()))
        assert outcome.success
        assert outcome.history_id is None


class TestToResult:
    def test_success_result(self, pipeline_service, png_source):
        outcome = run(pipeline_service.process_image(png_source, ConvertOperation()))
        result = outcome.to_result(include_data=False)

        assert result.success
        assert result.filename == "photo_converted.jpeg"
        assert result.data_base64 is None
        assert result.size_bytes == outcome.file.size_bytes

    def test_failure_result(self, pipeline_service):
        outcome = run(pipeline_service.process_image(SourceFile("x.png", b""), ConvertOperation()))
        result = outcome.to_result()

        assert not result.success
        assert result.error.code == "DECODE_ERROR"
        assert result.error.source == "x.png"


@pytest.mark.parametrize("fmt", ["jpeg", "png", "webp", "bmp"])
def test_convert_to_each_format(pipeline_service, png_source, fmt):
    outcome = run(pipeline_service.process_image(png_source, ConvertOperation(target_format=fmt)))
    assert outcome.file.filename == f"photo_converted.{fmt}"
    assert decode(outcome.file.data).shape == (48, 64, 4)
