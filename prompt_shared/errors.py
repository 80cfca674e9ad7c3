"""
Exception hierarchy shared by the prompt engine and its adapters.
"""

from __future__ import annotations


class PromptEngineError(Exception):
    """Base class for every failure raised by the prompt engine."""


class ConfigValidationError(PromptEngineError, ValueError):
    """Raised when feature configuration is missing required data or is malformed."""


class PromptStorageError(PromptEngineError):
    """Raised when persisted activity or prompt history cannot be read or written."""


class InvalidTransitionError(PromptEngineError):
    """Raised when a coordinator operation is requested from the wrong state."""
