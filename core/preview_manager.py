"""
Preview Manager - live enhancement preview sessions

Each session holds one decoded source and a debouncer for the adjustment
state. Slider changes are submitted freely; the preview thumbnail is only
recomputed once input settles, from the latest committed snapshot.
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from threading import RLock
from typing import Any, Dict, List, Optional

import numpy as np

from core.constants import PreviewConstants
from core.debouncer import Debouncer
from core.enums import FilterPreset
from core.image.processors import ImageProcessors
from schemas.operations import AdjustmentSet
from transforms.enhance import apply_enhancements

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewState:
    """Preset plus sliders; immutable so committed snapshots never alias live edits"""

    preset: FilterPreset = FilterPreset.NONE
    adjustments: AdjustmentSet = field(default_factory=AdjustmentSet)


@dataclass
class PreviewSession:
    """One live preview"""

    id: str
    source_name: str
    source: np.ndarray
    preview_source: np.ndarray
    debouncer: Debouncer
    created_at: datetime
    thumbnail_base64: Optional[str] = None
    recompute_count: int = 0

    @property
    def committed(self) -> PreviewState:
        return self.debouncer.committed


class PreviewManager:
    """Bounded store of preview sessions with LRU eviction"""

    def __init__(
        self,
        max_sessions: int = PreviewConstants.DEFAULT_MAX_SESSIONS,
        debounce_ms: int = PreviewConstants.DEBOUNCE_MS,
        thumbnail_width: int = PreviewConstants.THUMBNAIL_WIDTH,
    ):
        """
        Initialize Preview Manager

        Args:
            max_sessions: Sessions kept before the least recently used is evicted
            debounce_ms: Quiescence window for adjustment changes
            thumbnail_width: Width the preview is rendered at
        """
        self.max_sessions = max_sessions
        self.debounce_ms = debounce_ms
        self.thumbnail_width = thumbnail_width

        self.sessions: "OrderedDict[str, PreviewSession]" = OrderedDict()
        self.lock = RLock()

        logger.info(
            f"Preview Manager initialized (max_sessions={max_sessions}, debounce={debounce_ms}ms)"
        )

    def create_session(self, source_name: str, source: np.ndarray) -> PreviewSession:
        """
        Create a session for a decoded source.

        Args:
            source_name: Original file name
            source: RGBA raster

        Returns:
            New session with an initial preview rendered
        """
        preview_source, _ = ImageProcessors.create_thumbnail(source, self.thumbnail_width)
        session_id = f"prev_{uuid.uuid4().hex[:12]}"

        session = PreviewSession(
            id=session_id,
            source_name=source_name,
            source=source,
            preview_source=preview_source,
            debouncer=None,
            created_at=datetime.now(),
        )
        session.debouncer = Debouncer(
            PreviewState(),
            window_ms=self.debounce_ms,
            on_commit=lambda state: self._recompute(session, state),
        )
        self._recompute(session, session.committed)

        with self.lock:
            self.sessions[session_id] = session
            while len(self.sessions) > self.max_sessions:
                evicted_id, evicted = self.sessions.popitem(last=False)
                evicted.debouncer.cancel()
                logger.info(f"Evicted preview session {evicted_id}")

        logger.info(f"Created preview session {session_id} for {source_name}")
        return session

    def get(self, session_id: str) -> Optional[PreviewSession]:
        """Get session by ID (marks it recently used)"""
        with self.lock:
            session = self.sessions.get(session_id)
            if session is not None:
                self.sessions.move_to_end(session_id)
            return session

    def submit(self, session_id: str, state: PreviewState) -> Optional[int]:
        """
        Submit a live adjustment state.

        Returns:
            Pending revision number, or None if the session does not exist
        """
        session = self.get(session_id)
        if session is None:
            return None
        return session.debouncer.submit(state)

    def delete(self, session_id: str) -> bool:
        with self.lock:
            session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.debouncer.cancel()
        logger.info(f"Deleted preview session {session_id}")
        return True

    def list_sessions(self) -> List[Dict[str, Any]]:
        with self.lock:
            return [
                {
                    "id": s.id,
                    "source_name": s.source_name,
                    "created_at": s.created_at.isoformat(),
                    "committed_revision": s.debouncer.committed_revision,
                }
                for s in self.sessions.values()
            ]

    def get_stats(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "sessions": len(self.sessions),
                "max_sessions": self.max_sessions,
                "source_mb": round(
                    sum(s.source.nbytes for s in self.sessions.values()) / 1024 / 1024, 2
                ),
            }

    def cleanup(self) -> None:
        """Drop all sessions"""
        with self.lock:
            for session in self.sessions.values():
                session.debouncer.cancel()
            self.sessions.clear()
        logger.info("Preview sessions cleared")

    def _recompute(self, session: PreviewSession, state: PreviewState) -> None:
        rendered = apply_enhancements(session.preview_source, state.preset, state.adjustments)
        _, session.thumbnail_base64 = ImageProcessors.create_thumbnail(
            rendered, self.thumbnail_width, quality=PreviewConstants.THUMBNAIL_JPEG_QUALITY
        )
        session.recompute_count += 1
        logger.debug(f"Recomputed preview {session.id} (#{session.recompute_count})")
