"""Errors raised while resolving settings or association declarations."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when the database settings or a declared association are unusable."""
