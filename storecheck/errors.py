"""
Error taxonomy for the harness.

Assertion failures end a single scenario and are recorded by the runner.
Transport failures are fatal for the scenario that hit them.  Anything else
is a bug and propagates.
"""

from __future__ import annotations

from typing import Any


class HarnessError(Exception):
    """Base class for every error raised by storecheck."""


class AssertionFailure(HarnessError, AssertionError):
    """An expectation about the API did not hold."""

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        self.message = message
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class StatusMismatch(AssertionFailure):
    """Response status code differs from the expected one."""


class SchemaMismatch(AssertionFailure):
    """Response body does not match the declared structure."""


class FieldMissing(SchemaMismatch):
    """A JSON path does not resolve to a value."""


class PreconditionMissing(AssertionFailure):
    """A session value needed by a scenario has not been established."""


class TransportFailure(HarnessError):
    """The HTTP call itself could not complete."""

    def __init__(self, method: str, url: str, cause: Exception):
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(f"{method} {url} failed: {type(cause).__name__}: {cause}")


class SequenceError(HarnessError):
    """The scenario sequence is ill-formed (ordering or dependencies)."""


class ConfigError(HarnessError):
    """Configuration file could not be read or validated."""
