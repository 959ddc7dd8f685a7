"""Data models for the threat detection engine."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

if TYPE_CHECKING:
    from threatwatch.config import Settings


class ThreatType(StrEnum):
    """Kinds of security findings."""

    MULTIPLE_FAILED_ATTEMPTS = "MULTIPLE_FAILED_ATTEMPTS"
    UNUSUAL_LOCATION = "UNUSUAL_LOCATION"
    DEVICE_ANOMALY = "DEVICE_ANOMALY"
    SESSION_HIJACKING = "SESSION_HIJACKING"
    SUSPICIOUS_LOGIN = "SUSPICIOUS_LOGIN"
    CREDENTIAL_STUFFING = "CREDENTIAL_STUFFING"
    ACCOUNT_TAKEOVER = "ACCOUNT_TAKEOVER"
    DATA_BREACH_EXPOSURE = "DATA_BREACH_EXPOSURE"


class Severity(StrEnum):
    """Severity of a single finding, ordered LOW < CRITICAL."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


class ThreatLevel(StrEnum):
    """Overall threat level for one detection cycle, ordered NONE < CRITICAL."""

    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}

_LEVEL_RANK: dict[ThreatLevel, int] = {
    ThreatLevel.NONE: 0,
    ThreatLevel.LOW: 1,
    ThreatLevel.MEDIUM: 2,
    ThreatLevel.HIGH: 3,
    ThreatLevel.CRITICAL: 4,
}


class LevelRule(StrEnum):
    """Which row of the level decision table produced the overall level."""

    NO_FINDINGS = "no_findings"
    CRITICAL_PRESENT = "critical_present"
    MULTIPLE_HIGH = "multiple_high"
    HIGH_PRESENT = "high_present"
    MEDIUM_VOLUME = "medium_volume"
    MEDIUM_PRESENT = "medium_present"
    LOW_ONLY = "low_only"


class RemediationKind(StrEnum):
    """Automated remediation actions."""

    TERMINATE_SESSION = "terminate_session"
    REVOKE_DEVICE_TRUST = "revoke_device_trust"


def new_finding_id(prefix: str) -> str:
    """Build an opaque, unique finding ID from a prefix, the clock and randomness."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Finding contexts: one variant per finding shape
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FailedAttemptsContext:
    failed_attempts: int

    def to_dict(self) -> dict[str, Any]:
        return {"failed_attempts": self.failed_attempts}


@dataclass(frozen=True)
class LocationContext:
    location_changes: int

    def to_dict(self) -> dict[str, Any]:
        return {"location_changes": self.location_changes}


@dataclass(frozen=True)
class DeviceContext:
    device_id: str
    user_agent: str | None = None
    jailbroken: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"device_id": self.device_id, "jailbroken": self.jailbroken}
        if self.user_agent is not None:
            data["user_agent"] = self.user_agent
        return data


@dataclass(frozen=True)
class SessionContext:
    session_id: str
    anomalies: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"session_id": self.session_id, "anomalies": list(self.anomalies)}


@dataclass(frozen=True)
class GenericContext:
    """Untyped context for persisted findings that match no other variant."""

    values: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)


FindingContext = (
    FailedAttemptsContext | LocationContext | DeviceContext | SessionContext | GenericContext
)

# camelCase keys written by older persisted records
_METADATA_ALIASES = {
    "sessionId": "session_id",
    "deviceId": "device_id",
    "userAgent": "user_agent",
    "failedAttempts": "failed_attempts",
    "locationChanges": "location_changes",
}


def context_from_metadata(
    threat_type: ThreatType, metadata: dict[str, Any] | None
) -> FindingContext:
    """Parse a raw metadata mapping into the typed context for ``threat_type``.

    Falls back to :class:`GenericContext` when the required keys are
    missing or have the wrong type.
    """
    values = {_METADATA_ALIASES.get(k, k): v for k, v in (metadata or {}).items()}

    match threat_type:
        case ThreatType.SESSION_HIJACKING if _non_empty_str(values.get("session_id")):
            anomalies = values.get("anomalies") or ()
            if isinstance(anomalies, str):
                anomalies = (anomalies,)
            return SessionContext(
                session_id=values["session_id"],
                anomalies=tuple(str(a) for a in anomalies),
            )
        case ThreatType.DEVICE_ANOMALY if _non_empty_str(values.get("device_id")):
            user_agent = values.get("user_agent")
            return DeviceContext(
                device_id=values["device_id"],
                user_agent=user_agent if isinstance(user_agent, str) else None,
                jailbroken=values.get("jailbroken") is True,
            )
        case ThreatType.MULTIPLE_FAILED_ATTEMPTS if isinstance(values.get("failed_attempts"), int):
            return FailedAttemptsContext(failed_attempts=values["failed_attempts"])
        case ThreatType.UNUSUAL_LOCATION if isinstance(values.get("location_changes"), int):
            return LocationContext(location_changes=values["location_changes"])

    return GenericContext(values=values)


def _non_empty_str(value: Any) -> bool:  # noqa: ANN401
    return isinstance(value, str) and bool(value)


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


@dataclass
class ThreatFinding:
    """One detected security-relevant fact about a user, session or device.

    ``resolved`` is true exactly when ``resolved_at`` is set. The lifecycle
    fields change only through :meth:`mark_resolved`. A :class:`GenericContext`
    whose values fit a typed variant is replaced by that variant.
    """

    user_id: str
    threat_type: ThreatType
    severity: Severity
    title: str
    description: str
    context: FindingContext = field(default_factory=GenericContext)
    id: str = field(default_factory=lambda: new_finding_id("finding"))
    detected_at: datetime = field(default_factory=_utcnow)
    resolved: bool = False
    resolved_at: datetime | None = None
    resolution: str | None = None

    def __post_init__(self) -> None:
        """Type a generic context and validate the resolution invariant."""
        if isinstance(self.context, GenericContext):
            self.context = context_from_metadata(self.threat_type, self.context.values)
        if self.resolved != (self.resolved_at is not None):
            raise ValueError("resolved must be True exactly when resolved_at is set")

    @property
    def metadata(self) -> dict[str, Any]:
        """Type-specific context as a plain mapping."""
        return self.context.to_dict()

    def mark_resolved(self, resolution: str | None = None, at: datetime | None = None) -> None:
        """Mark the finding resolved, stamping ``resolved_at``."""
        self.resolved = True
        self.resolved_at = at or _utcnow()
        self.resolution = resolution

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.threat_type.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "detected_at": self.detected_at.isoformat(),
            "resolved": self.resolved,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolution": self.resolution,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ThreatFinding:
        """Rebuild a finding from a persisted record.

        Args:
            data: Mapping as produced by :meth:`to_dict`. Timestamps may be
                ``datetime`` objects or ISO-8601 strings.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If the type, severity or lifecycle fields are invalid.
        """
        threat_type = ThreatType(data["type"])
        resolved_at = _parse_timestamp(data.get("resolved_at"))
        return cls(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            threat_type=threat_type,
            severity=Severity(data["severity"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            detected_at=_parse_timestamp(data.get("detected_at")) or _utcnow(),
            resolved=bool(data.get("resolved", resolved_at is not None)),
            resolved_at=resolved_at,
            resolution=data.get("resolution"),
            context=context_from_metadata(threat_type, data.get("metadata")),
        )


def _parse_timestamp(value: datetime | str | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Signals (caller-owned inputs)
# ---------------------------------------------------------------------------


@dataclass
class BehaviorSignal:
    """Snapshot of authentication behavior counters."""

    login_attempts: int = 0
    failed_attempts: int = 0
    location_changes: int = 0
    device_changes: int = 0

    def __post_init__(self) -> None:
        """Validate counters are non-negative integers."""
        for name in ("login_attempts", "failed_attempts", "location_changes", "device_changes"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got: {value!r}")


@dataclass
class DeviceSignal:
    """The device presented by the current request."""

    device_id: str
    ip_address: str = ""
    location: str = ""
    user_agent: str = ""

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.device_id:
            raise ValueError("device_id must not be empty")


@dataclass
class SessionSignal:
    """State of the active session; any anomaly implies suspicion."""

    session_id: str
    duration: float = 0.0  # seconds
    anomalies: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.session_id:
            raise ValueError("session_id must not be empty")


# ---------------------------------------------------------------------------
# Device registry records (returned by the repository)
# ---------------------------------------------------------------------------


@dataclass
class DeviceSecurityStatus:
    jailbroken: bool = False
    screen_lock_enabled: bool = True


@dataclass
class DeviceRecord:
    """A device already on file for a user."""

    id: str
    trusted: bool = False
    security_status: DeviceSecurityStatus = field(default_factory=DeviceSecurityStatus)
    last_activity: datetime | None = None
    name: str = ""


# ---------------------------------------------------------------------------
# Options and results
# ---------------------------------------------------------------------------


@dataclass
class DetectionOptions:
    """Per-call switches for a detection cycle."""

    enable_real_time_response: bool = False
    include_recommendations: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> DetectionOptions:
        return cls(
            enable_real_time_response=settings.auto_response_enabled,
            include_recommendations=settings.include_recommendations,
        )


@dataclass(frozen=True)
class LevelAssessment:
    """Overall level plus the decision-table row that produced it."""

    level: ThreatLevel
    rule: LevelRule


@dataclass
class RemediationAction:
    """One remediation call made by the auto-response orchestrator."""

    kind: RemediationKind
    target_id: str
    succeeded: bool


@dataclass
class AutoResponseReport:
    """Outcome of an auto-response pass.

    ``triggered`` means dispatch completed without an exception; it does
    not mean every action succeeded (see ``actions``).
    """

    triggered: bool = False
    actions: list[RemediationAction] = field(default_factory=list)


@dataclass
class DetectionMetadata:
    analysis_time_ms: float = 0.0
    findings_detected: int = 0
    findings_by_severity: dict[Severity, int] = field(default_factory=dict)
    high_severity_findings: int = 0  # HIGH + CRITICAL
    findings_by_type: dict[ThreatType, int] = field(default_factory=dict)
    level_rule: LevelRule = LevelRule.NO_FINDINGS
    auto_response_triggered: bool = False
    remediation_actions: list[RemediationAction] = field(default_factory=list)


@dataclass
class ThreatDetectionResult:
    """The verdict for one detection cycle."""

    success: bool
    findings: list[ThreatFinding] = field(default_factory=list)
    overall_level: ThreatLevel = ThreatLevel.NONE
    recommendations: list[str] = field(default_factory=list)
    immediate_actions: list[str] = field(default_factory=list)
    metadata: DetectionMetadata = field(default_factory=DetectionMetadata)
    error: str | None = None

    @classmethod
    def failed(cls, error: str, *, analysis_time_ms: float = 0.0) -> ThreatDetectionResult:
        return cls(
            success=False,
            error=error,
            metadata=DetectionMetadata(analysis_time_ms=analysis_time_ms),
        )
