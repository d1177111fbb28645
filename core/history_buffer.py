"""
History Buffer - Circular buffer of per-image transform outcomes
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import RLock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TransformRecord:
    """Outcome of one image's pipeline run"""

    id: str
    timestamp: datetime
    source_name: str
    mode: str
    result: str  # OK/FAILED
    processing_time_ms: int
    output_filename: Optional[str] = None
    output_bytes: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    stage: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class HistoryBuffer:
    """Circular buffer for maintaining transform history"""

    def __init__(self, max_size: int = 200):
        """
        Initialize History Buffer

        Args:
            max_size: Maximum number of records to store
        """
        self.max_size = max_size
        self.buffer: deque = deque(maxlen=max_size)

        # Statistics
        self.total_processed = 0
        self.ok_count = 0
        self.failed_count = 0
        self.total_processing_time = 0
        self.total_output_bytes = 0

        # Thread safety (RLock allows reentrant locking)
        self.lock = RLock()

        logger.info(f"History Buffer initialized with max size: {max_size}")

    def add_record(
        self,
        source_name: str,
        mode: str,
        result: str,
        processing_time_ms: int,
        output_filename: Optional[str] = None,
        output_bytes: int = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
        stage: Optional[str] = None,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Add transform record to history

        Args:
            source_name: Original file name
            mode: Pipeline mode
            result: OK/FAILED
            processing_time_ms: Processing time in milliseconds
            output_filename: Suggested output name (OK only)
            output_bytes: Encoded size (OK only)
            width: Output width (OK only)
            height: Output height (OK only)
            stage: Failing stage (FAILED only)
            error_code: Error code (FAILED only)
            error_message: Error message (FAILED only)
            metadata: Optional metadata

        Returns:
            Record ID
        """
        with self.lock:
            record_id = f"hist_{uuid.uuid4().hex[:8]}"

            record = TransformRecord(
                id=record_id,
                timestamp=datetime.now(),
                source_name=source_name,
                mode=mode,
                result=result,
                processing_time_ms=processing_time_ms,
                output_filename=output_filename,
                output_bytes=output_bytes,
                width=width,
                height=height,
                stage=stage,
                error_code=error_code,
                error_message=error_message,
                metadata=metadata or {},
            )

            self.buffer.append(record)

            # Update statistics
            self.total_processed += 1
            self.total_processing_time += processing_time_ms
            self.total_output_bytes += output_bytes

            if result == "OK":
                self.ok_count += 1
            else:
                self.failed_count += 1

            logger.debug(f"Added record {record_id}: {source_name} {mode} {result}")
            return record_id

    def get_record(self, record_id: str) -> Optional[TransformRecord]:
        """Get specific record by ID"""
        with self.lock:
            for record in self.buffer:
                if record.id == record_id:
                    return record
        return None

    def get_recent(
        self, limit: int = 10, result_filter: Optional[str] = None, mode: Optional[str] = None
    ) -> List[TransformRecord]:
        """
        Get recent records

        Args:
            limit: Maximum number of records to return
            result_filter: Filter by result (OK/FAILED)
            mode: Filter by pipeline mode

        Returns:
            List of records, newest first
        """
        with self.lock:
            records = list(self.buffer)

            if result_filter:
                records = [r for r in records if r.result == result_filter]
            if mode:
                records = [r for r in records if r.mode == mode]

            # Sort by timestamp (newest first)
            records.sort(key=lambda x: x.timestamp, reverse=True)

            return records[:limit]

    def get_statistics(self) -> Dict[str, Any]:
        """Get transform statistics"""
        with self.lock:
            if self.total_processed == 0:
                return {
                    "total": 0,
                    "ok": 0,
                    "failed": 0,
                    "success_rate": 0.0,
                    "avg_time_ms": 0,
                    "total_output_bytes": 0,
                    "buffer_usage": 0,
                }

            success_rate = (self.ok_count / self.total_processed) * 100
            avg_time = self.total_processing_time / self.total_processed

            # Recent statistics (last hour)
            recent_cutoff = datetime.now() - timedelta(hours=1)
            recent_records = [r for r in self.buffer if r.timestamp > recent_cutoff]

            by_mode: Dict[str, int] = {}
            for record in self.buffer:
                by_mode[record.mode] = by_mode.get(record.mode, 0) + 1

            return {
                "total": self.total_processed,
                "ok": self.ok_count,
                "failed": self.failed_count,
                "success_rate": round(success_rate, 2),
                "avg_time_ms": round(avg_time, 2),
                "total_output_bytes": self.total_output_bytes,
                "buffer_usage": len(self.buffer),
                "buffer_max": self.max_size,
                "by_mode": by_mode,
                "recent_hour": {
                    "total": len(recent_records),
                    "ok": sum(1 for r in recent_records if r.result == "OK"),
                    "failed": sum(1 for r in recent_records if r.result == "FAILED"),
                },
            }

    def clear(self):
        """Clear all history"""
        with self.lock:
            self.buffer.clear()
            self.total_processed = 0
            self.ok_count = 0
            self.failed_count = 0
            self.total_processing_time = 0
            self.total_output_bytes = 0

            logger.info("History buffer cleared")

    def get_failure_analysis(self) -> Dict[str, Any]:
        """Analyze failures by stage and error code"""
        with self.lock:
            failures = [r for r in self.buffer if r.result == "FAILED"]

            if not failures:
                return {"total_failures": 0, "by_stage": [], "by_code": [], "failure_rate": 0.0}

            stage_counts: Dict[str, int] = {}
            code_counts: Dict[str, int] = {}
            for record in failures:
                stage = record.stage or "unknown"
                code = record.error_code or "UNKNOWN"
                stage_counts[stage] = stage_counts.get(stage, 0) + 1
                code_counts[code] = code_counts.get(code, 0) + 1

            def ranked(counts: Dict[str, int], key: str) -> List[Dict[str, Any]]:
                ordered = sorted(counts.items(), key=lambda x: x[1], reverse=True)
                return [{key: name, "count": count} for name, count in ordered]

            return {
                "total_failures": len(failures),
                "by_stage": ranked(stage_counts, "stage"),
                "by_code": ranked(code_counts, "code"),
                "failure_rate": (len(failures) / len(self.buffer)) * 100 if self.buffer else 0.0,
            }
