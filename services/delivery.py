"""
Delivery collaborators.

A delivery target receives each encoded output together with its suggested
file name. The in-memory target hands the file straight back to the caller
(the HTTP layer streams it); the directory target also persists it.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from core.constants import DeliveryConstants, EncodeConstants
from core.enums import TargetFormat, TransformMode
from core.utils.enum_converter import enum_to_string

logger = logging.getLogger(__name__)


def file_stem(original_name: str) -> str:
    """Name without its last extension ("photo.final.jpg" -> "photo.final")."""
    name = Path(original_name).name
    if "." in name:
        stem = name.rsplit(".", 1)[0]
        if stem:
            return stem
    return name


def build_output_filename(
    original_name: str,
    mode: Union[TransformMode, str],
    target_format: Union[TargetFormat, str],
) -> str:
    """
    Suggested output name: ``<stem><mode-suffix>.<ext>``.

    Icon output always uses ``<stem>.ico`` with no suffix.
    """
    fmt = enum_to_string(target_format)
    stem = file_stem(original_name)

    if fmt == DeliveryConstants.ICON_EXTENSION:
        return f"{stem}.{DeliveryConstants.ICON_EXTENSION}"

    suffix = DeliveryConstants.MODE_SUFFIXES[enum_to_string(mode)]
    return f"{stem}{suffix}.{fmt}"


def media_type_for(target_format: Union[TargetFormat, str]) -> str:
    return EncodeConstants.MEDIA_TYPES.get(enum_to_string(target_format), "application/octet-stream")


@dataclass(frozen=True)
class DeliveredFile:
    """Encoded output ready to hand to the user"""

    filename: str
    data: bytes
    media_type: str
    location: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class MemoryDelivery:
    """Returns delivered files to the caller without persisting them"""

    async def deliver(self, data: bytes, filename: str, media_type: str) -> DeliveredFile:
        return DeliveredFile(filename=filename, data=data, media_type=media_type)

    def describe(self) -> dict:
        return {"type": "memory"}


class DirectoryDelivery:
    """Writes each delivered file into an output directory"""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Directory delivery to {self.output_dir}")

    async def deliver(self, data: bytes, filename: str, media_type: str) -> DeliveredFile:
        # Never allow a client supplied name to escape the output directory
        target = self.output_dir / Path(filename).name
        await asyncio.to_thread(target.write_bytes, data)

        logger.debug(f"Wrote {len(data)} bytes to {target}")
        return DeliveredFile(
            filename=filename, data=data, media_type=media_type, location=str(target)
        )

    def describe(self) -> dict:
        return {"type": "directory", "path": str(self.output_dir)}
