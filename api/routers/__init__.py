"""
API Routers for the Image Transform Pipeline
"""

from . import history, icon, preview, segmentation, system, transform

__all__ = ["transform", "icon", "segmentation", "preview", "history", "system"]
