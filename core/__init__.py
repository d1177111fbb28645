"""
Core modules for the Image Transform Pipeline
"""

from .debouncer import Debouncer
from .history_buffer import HistoryBuffer, TransformRecord
from .single_flight import SingleFlight

__all__ = [
    "Debouncer",
    "HistoryBuffer",
    "TransformRecord",
    "SingleFlight",
]
