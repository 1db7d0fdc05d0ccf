# -*- coding: utf-8 -*-
"""
errors
======

Exception types raised by ensrank.
"""

from __future__ import annotations

__all__ = [
    "RepresError",
    "InvalidConfiguration",
    "InvalidInput",
    "NumericIndeterminate",
]


class RepresError(Exception):
    """Base class for all ensrank errors."""


class InvalidConfiguration(RepresError, ValueError):
    """Unknown metric / ensemble selector, or a malformed configuration."""


class InvalidInput(RepresError, ValueError):
    """Degenerate or malformed data (too few points, zero denominator, missing columns)."""


class NumericIndeterminate(RepresError, ArithmeticError):
    """A quantity with no finite value left to compute from."""
