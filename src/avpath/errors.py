"""Exceptions raised by path geometry operations."""

from __future__ import annotations


class AvPathError(Exception):
    """Base exception for path geometry errors."""


class InvalidParameterError(AvPathError, ValueError):
    """Raised for invalid arguments such as a non-positive tolerance or width."""


class DegenerateGeometryError(AvPathError, ValueError):
    """Raised when requested geometry cannot exist, e.g. an arc with zero radius."""


class UnsupportedOffsetError(AvPathError, ValueError):
    """Raised when an offset distance makes a well-formed offset curve impossible."""
