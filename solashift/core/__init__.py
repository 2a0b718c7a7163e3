# solashift/core/__init__.py

"""
Core processing package for solashift.

Contains modules for:
- SOLA time-scale modification (the engine)
- Moving-average low-pass filtering
- Canonical PCM WAV container I/O
- Raw multi-channel capture recording and channel extraction
- The record-to-playback processing pipeline
"""

from . import sola
from . import filters
from . import wav
from . import capture
from . import pipeline

__all__ = [
    "sola",
    "filters",
    "wav",
    "capture",
    "pipeline",
]
