# solashift/config/__init__.py

"""
Configuration management for solashift.

Settings are loaded from TOML files, environment variables and internal
defaults, and exposed as a single validated configuration object.
"""

from .models import SolashiftConfig
from .loaders import load_configuration

__all__ = [
    "SolashiftConfig",
    "load_configuration",
]
