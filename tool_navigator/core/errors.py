"""
Exception hierarchy for the catalog query engine.

Invalid filter values are never errors (they are normalized) and an unknown
category is an empty result, so only infrastructure failures and structural
request problems surface as exceptions.
"""

from typing import Optional


class NavigatorError(Exception):
    """Base class for all tool_navigator errors."""


class StorageError(NavigatorError):
    """The storage collaborator failed (timeout, connection loss, driver error)."""

    def __init__(self, operation: str, message: str, original: Optional[BaseException] = None):
        self.operation = operation
        self.original = original
        super().__init__(f"Storage operation '{operation}' failed: {message}")


class UnknownRankingType(NavigatorError):
    """A ranking type token that matches none of the presets."""

    def __init__(self, ranking_type: str):
        self.ranking_type = ranking_type
        super().__init__(f"Invalid ranking type: {ranking_type!r}")


class InvalidRequestBody(NavigatorError):
    """The request body could not be parsed into a criteria mapping."""
