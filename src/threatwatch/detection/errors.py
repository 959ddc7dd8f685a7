"""Exception types raised by the threat detection engine."""

from __future__ import annotations


class ThreatDetectionError(Exception):
    """Base class for threat detection errors."""


class ValidationError(ThreatDetectionError, ValueError):
    """Raised when a detection request is invalid (e.g. missing user ID)."""


class CollaboratorError(ThreatDetectionError):
    """Raised when an external collaborator call fails.

    Always recovered inside the engine: a failed lookup yields fewer
    findings and a failed remediation is reported as not applied.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class UnexpectedError(ThreatDetectionError):
    """Wraps an unanticipated failure surfaced as a failed detection result."""
