"""Exceptions raised by the loss engine.

Each error also derives from the builtin exception that describes the same
fault, so callers catching ``ValueError`` or ``RuntimeError`` keep working.
"""
from __future__ import annotations


class LossMeterError(Exception):
    """Base class for every lossmeter failure."""


class InvalidStateError(LossMeterError, RuntimeError):
    """An operation was called out of order, e.g. ``update`` before ``calculate_loss``."""


class ShapeMismatchError(LossMeterError, ValueError):
    """Labels and predictions cannot be combined, or an axis is out of range."""


class InvalidConfigError(LossMeterError, ValueError):
    """A loss or experiment configuration is incomplete or inconsistent."""


__all__ = [
    "LossMeterError",
    "InvalidStateError",
    "ShapeMismatchError",
    "InvalidConfigError",
]
