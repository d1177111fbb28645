"""
Configuration for the Image Transform Pipeline.

Settings are loaded from environment variables (prefix ``IMGPIPE_``, nested
groups separated by ``__``) and an optional ``.env`` file, e.g.::

    IMGPIPE_SYSTEM__LOG_LEVEL=DEBUG
    IMGPIPE_PIPELINE__OUTPUT_DIR=/var/lib/imgpipe/out
    IMGPIPE_SEGMENTATION__SERVICE_URL=http://segmenter:9000/segment
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import EncodeConstants, HistoryConstants, PreviewConstants, SystemConstants


class SystemSettings(BaseModel):
    """Process-wide switches"""

    debug: bool = False
    log_level: str = SystemConstants.LOG_LEVEL_DEFAULT

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class APISettings(BaseModel):
    """HTTP server settings"""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_enabled: bool = True
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class PipelineSettings(BaseModel):
    """Transform pipeline settings"""

    default_quality: float = Field(default=EncodeConstants.DEFAULT_QUALITY, ge=0.0, le=1.0)
    max_batch_size: int = Field(default=50, ge=1)
    max_upload_mb: int = Field(default=50, ge=1)
    output_dir: Optional[str] = None


class PreviewSettings(BaseModel):
    """Live preview settings"""

    debounce_ms: int = Field(default=PreviewConstants.DEBOUNCE_MS, ge=0)
    max_sessions: int = Field(default=PreviewConstants.DEFAULT_MAX_SESSIONS, ge=1)
    thumbnail_width: int = Field(default=PreviewConstants.THUMBNAIL_WIDTH, ge=16)


class SegmentationSettings(BaseModel):
    """External background segmentation service"""

    service_url: Optional[str] = None
    timeout_seconds: float = Field(default=60.0, gt=0)


class HistorySettings(BaseModel):
    """Transform history buffer"""

    buffer_size: int = Field(default=HistoryConstants.DEFAULT_BUFFER_SIZE, ge=1)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="IMGPIPE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    environment: str = "development"
    system: SystemSettings = Field(default_factory=SystemSettings)
    api: APISettings = Field(default_factory=APISettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    preview: PreviewSettings = Field(default_factory=PreviewSettings)
    segmentation: SegmentationSettings = Field(default_factory=SegmentationSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)

    def to_dict(self) -> Dict[str, Any]:
        """Effective configuration as plain data"""
        return self.model_dump(mode="json")


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()
