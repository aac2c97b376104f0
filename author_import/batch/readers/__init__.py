"""
Dump readers: line source and record parser.
"""

from .line_source import LineSource
from .record_parser import RecordParser

__all__ = [
    "LineSource",
    "RecordParser",
]
