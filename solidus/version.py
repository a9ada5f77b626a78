"""
Release version of the checkout platform.
"""

from packaging.version import Version


def solidus_version() -> str:
    return "2.8.0.alpha.14"


def solidus_gem_version() -> Version:
    """Parsed, comparable form of :func:`solidus_version`."""
    return Version(solidus_version())
