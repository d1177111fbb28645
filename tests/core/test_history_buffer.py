"""
Tests for HistoryBuffer module
"""

import pytest

from core.history_buffer import HistoryBuffer


def add_ok(buffer, name="photo.png", mode="resize", processing_time_ms=100, output_bytes=1000):
    return buffer.add_record(
        source_name=name,
        mode=mode,
        result="OK",
        processing_time_ms=processing_time_ms,
        output_filename=f"out_{name}",
        output_bytes=output_bytes,
        width=800,
        height=600,
    )


def add_failed(buffer, name="broken.png", mode="crop", stage="geometry", code="INVALID_REGION"):
    return buffer.add_record(
        source_name=name,
        mode=mode,
        result="FAILED",
        processing_time_ms=10,
        stage=stage,
        error_code=code,
        error_message="Crop region exceeds source bounds",
    )


class TestHistoryBuffer:
    """Test HistoryBuffer functionality"""

    @pytest.fixture
    def buffer(self):
        """Create a fresh history buffer for each test"""
        return HistoryBuffer(max_size=10)

    def test_initialization(self, buffer):
        """Test buffer initialization"""
        assert buffer.max_size == 10
        assert len(buffer.buffer) == 0
        assert buffer.total_processed == 0
        assert buffer.ok_count == 0
        assert buffer.failed_count == 0

    def test_add_ok_record(self, buffer):
        record_id = add_ok(buffer)

        assert record_id.startswith("hist_")
        assert buffer.ok_count == 1
        assert buffer.total_output_bytes == 1000

        record = buffer.get_record(record_id)
        assert record.source_name == "photo.png"
        assert record.output_filename == "out_photo.png"
        assert (record.width, record.height) == (800, 600)
        assert record.stage is None

    def test_add_failed_record(self, buffer):
        record_id = add_failed(buffer)

        assert buffer.failed_count == 1
        assert buffer.ok_count == 0
        record = buffer.get_record(record_id)
        assert record.stage == "geometry"
        assert record.error_code == "INVALID_REGION"
        assert record.output_bytes == 0

    def test_metadata_kept(self, buffer):
        record_id = buffer.add_record(
            source_name="a.png",
            mode="convert",
            result="OK",
            processing_time_ms=5,
            metadata={"target_format": "webp"},
        )
        assert buffer.get_record(record_id).metadata == {"target_format": "webp"}

    def test_circular_buffer_overflow(self, buffer):
        """Test that buffer respects max_size limit"""
        ids = [add_ok(buffer, name=f"img_{i}.png") for i in range(15)]

        assert len(buffer.buffer) == 10
        assert buffer.get_record(ids[0]) is None
        assert buffer.get_record(ids[-1]) is not None
        # Totals keep counting past the window
        assert buffer.total_processed == 15

    def test_get_record_not_found(self, buffer):
        assert buffer.get_record("nonexistent_id") is None

    def test_get_recent_newest_first(self, buffer):
        for i in range(5):
            add_ok(buffer, name=f"img_{i}.png")

        recent = buffer.get_recent(limit=3)

        assert [r.source_name for r in recent] == ["img_4.png", "img_3.png", "img_2.png"]

    def test_get_recent_filters(self, buffer):
        for i in range(3):
            add_ok(buffer, name=f"ok_{i}.png", mode="resize")
        add_ok(buffer, name="c.png", mode="convert")
        add_failed(buffer)

        assert len(buffer.get_recent(limit=10, result_filter="FAILED")) == 1
        assert len(buffer.get_recent(limit=10, result_filter="OK")) == 4
        assert [r.source_name for r in buffer.get_recent(limit=10, mode="convert")] == ["c.png"]

    def test_get_statistics_empty(self, buffer):
        stats = buffer.get_statistics()

        assert stats["total"] == 0
        assert stats["ok"] == 0
        assert stats["failed"] == 0
        assert stats["success_rate"] == 0.0
        assert stats["buffer_usage"] == 0

    def test_get_statistics_with_data(self, buffer):
        for i in range(6):
            add_ok(buffer, processing_time_ms=100 + i * 10)
        for _ in range(2):
            add_failed(buffer)

        stats = buffer.get_statistics()

        assert stats["total"] == 8
        assert stats["ok"] == 6
        assert stats["failed"] == 2
        assert stats["success_rate"] == 75.0
        assert stats["total_output_bytes"] == 6000
        assert stats["by_mode"] == {"resize": 6, "crop": 2}
        assert stats["recent_hour"] == {"total": 8, "ok": 6, "failed": 2}
        assert stats["buffer_max"] == 10

    def test_processing_time_average(self, buffer):
        times = [100, 150, 200, 250, 300]
        for t in times:
            add_ok(buffer, processing_time_ms=t)

        assert buffer.total_processing_time == sum(times)
        assert buffer.get_statistics()["avg_time_ms"] == 200.0

    def test_clear(self, buffer):
        add_ok(buffer)
        add_failed(buffer)

        buffer.clear()

        assert len(buffer.buffer) == 0
        assert buffer.total_processed == 0
        assert buffer.ok_count == 0
        assert buffer.failed_count == 0
        assert buffer.total_output_bytes == 0

    def test_failure_analysis_empty(self, buffer):
        add_ok(buffer)
        analysis = buffer.get_failure_analysis()

        assert analysis["total_failures"] == 0
        assert analysis["by_stage"] == []
        assert analysis["failure_rate"] == 0.0

    def test_failure_analysis_ranks_stages(self, buffer):
        add_ok(buffer)
        add_failed(buffer, stage="decode", code="DECODE_ERROR")
        add_failed(buffer, stage="decode", code="DECODE_ERROR")
        add_failed(buffer, stage="geometry")

        analysis = buffer.get_failure_analysis()

        assert analysis["total_failures"] == 3
        assert analysis["failure_rate"] == 75.0
        assert analysis["by_stage"][0] == {"stage": "decode", "count": 2}
        assert analysis["by_code"][0] == {"code": "DECODE_ERROR", "count": 2}
