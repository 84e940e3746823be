from __future__ import annotations

from typing import Optional


class DomainToolsError(Exception):
    """Base error for everything raised by the domain tools packages."""


# Invalid tool input
class InvalidArgument(DomainToolsError, ValueError):
    """
    Raised when tool arguments are missing or have the wrong shape.

    field / expected / actual are filled in for type mismatches so callers can
    render a structured message.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.expected = expected
        self.actual = actual


# ----------------------------
# Lookup-side errors (never leave the aggregator)
# ----------------------------

class ResolutionError(DomainToolsError):
    """A single-family lookup did not produce addresses."""

    def __init__(self, hostname: str, reason: str) -> None:
        super().__init__(f"lookup {hostname}: {reason}")
        self.hostname = hostname
        self.reason = reason


class HostNotFound(ResolutionError):
    """The resolver answered, and the answer was: no such host."""

    def __init__(self, hostname: str, reason: str = "no such host") -> None:
        super().__init__(hostname, reason)


class LookupTimeout(ResolutionError):
    def __init__(self, hostname: str, timeout: float) -> None:
        super().__init__(hostname, f"i/o timeout after {timeout:g}s")
        self.timeout = timeout


class LookupCancelled(ResolutionError):
    def __init__(self, hostname: str) -> None:
        super().__init__(hostname, "operation was canceled")
