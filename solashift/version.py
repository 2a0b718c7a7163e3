# solashift/version.py

"""
Central location for the package version.
Follows semantic versioning (https://semver.org/).
"""

__version__ = "0.3.0"
