# solashift/__init__.py

"""
solashift: SOLA time-scale modification and pitch shifting for mono 16-bit PCM blocks.
"""

from solashift.version import __version__

__all__ = ["__version__"]
