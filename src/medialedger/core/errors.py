"""Custom exceptions for medialedger.

This module defines the typed exceptions used throughout the pipeline. Only
``ConfigurationError`` is fatal to a run; every other error is scoped to a
single file and recovered either locally or by the collection runner.
"""

from typing import Any


class MediaLedgerError(Exception):
    """Base exception for all medialedger errors.

    All custom exceptions inherit from this base class to allow for broad
    exception handling when needed.
    """

    pass


class ParseFailure(MediaLedgerError):
    """Raised when a filename cannot be parsed into an identity.

    The parser recovers from this locally and returns an empty identity.

    Attributes:
        filename: The raw input that could not be parsed
        reason: Human-readable reason
    """

    def __init__(self, filename: str | None, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"Cannot parse {filename!r}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error": "parse_failure",
            "filename": self.filename,
            "reason": self.reason,
        }


class ClassificationAmbiguity(MediaLedgerError):
    """Raised when no origin pattern matches a release name.

    Never escapes the classifier: the result falls back to ``UNKNOWN``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No source origin matched {name!r}")


class ProbeFailure(MediaLedgerError):
    """Raised when the technical probe cannot inspect a file.

    Attributes:
        path: File that was being probed
        reason: Human-readable reason for the failure
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Probe failed for '{path}': {reason}")

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {"error": "probe_failure", "path": self.path, "reason": self.reason}

    def __repr__(self) -> str:
        """Return repr string for debugging."""
        return f"ProbeFailure(path={self.path!r}, reason={self.reason!r})"


class LookupFailure(MediaLedgerError):
    """Raised when the metadata provider errors or finds nothing.

    The collection runner counts the affected file as skipped.

    Attributes:
        query: What was looked up (title, id or episode coordinates)
        reason: Human-readable reason
        not_found: True when the provider answered but had no match
    """

    def __init__(self, query: str, reason: str, not_found: bool = False) -> None:
        self.query = query
        self.reason = reason
        self.not_found = not_found

        message = f"Lookup failed for {query!r}: {reason}"
        if not_found:
            message += " (not found)"

        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error": "lookup_failure",
            "query": self.query,
            "reason": self.reason,
            "not_found": self.not_found,
        }

    def __repr__(self) -> str:
        """Return repr string for debugging."""
        return (
            f"LookupFailure(query={self.query!r}, reason={self.reason!r}, "
            f"not_found={self.not_found})"
        )


class PersistenceFailure(MediaLedgerError):
    """Raised when the catalog store rejects an insert or delete.

    Attributes:
        operation: 'insert', 'delete' or 'list'
        path: Absolute path of the affected record (if any)
        reason: Human-readable reason
    """

    def __init__(self, operation: str, path: str | None, reason: str) -> None:
        self.operation = operation
        self.path = path
        self.reason = reason

        message = f"Catalog {operation} failed"
        if path:
            message += f" for '{path}'"
        message += f": {reason}"

        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        result: dict[str, Any] = {
            "error": "persistence_failure",
            "operation": self.operation,
            "reason": self.reason,
        }
        if self.path is not None:
            result["path"] = self.path
        return result


class ConfigurationError(MediaLedgerError):
    """Raised for run-level problems such as an unreadable input root.

    This is the only error that aborts a whole run.
    """

    pass
