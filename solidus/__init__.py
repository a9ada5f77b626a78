"""
Solidus checkout API.

An order, promotion and payment service exposing the checkout workflow
over HTTP.
"""

from solidus.version import solidus_version, solidus_gem_version

__all__ = ["solidus_version", "solidus_gem_version"]
