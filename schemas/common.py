"""
Common models shared across layers.
"""

from typing import Dict, Tuple

from pydantic import BaseModel, Field


class CropRegion(BaseModel):
    """
    Rectangle in source pixel space.

    Produced by an interactive cropping tool and treated as opaque by the
    pipeline. Geometry is not constrained here: empty, negative
    or out-of-bounds regions are rejected by the geometric mapper, which
    knows the source dimensions.
    """

    x: int = Field(..., description="Left edge")
    y: int = Field(..., description="Top edge")
    width: int = Field(..., description="Width")
    height: int = Field(..., description="Height")

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def full(cls, width: int, height: int) -> "CropRegion":
        """Region covering a whole raster."""
        return cls(x=0, y=0, width=width, height=height)

    @property
    def x2(self) -> int:
        """Get right edge coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Get bottom edge coordinate."""
        return self.y + self.height

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def is_within(self, image_width: int, image_height: int) -> bool:
        """Check the region lies inside an image of the given size."""
        return (
            self.x >= 0
            and self.y >= 0
            and self.x2 <= image_width
            and self.y2 <= image_height
        )
