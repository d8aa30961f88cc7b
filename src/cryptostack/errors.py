"""Error types raised at the CryptoStack boundaries.

Only caller mistakes are raised. Placement exhaustion, missing prices and
corrupt persistence records all degrade to safe defaults instead.
"""

from __future__ import annotations


class StackError(Exception):
    """Base class for CryptoStack errors."""


class InvalidHoldingError(StackError, ValueError):
    """Raised when an add request has a bad asset id or quantity.

    Nothing is changed when this is raised.
    """


class BlockNotFoundError(StackError, KeyError):
    """Raised when removing a block id the engine does not own."""


class ConfigError(StackError):
    """Raised when the YAML config cannot be read or is invalid."""
