"""Signal extractors.

Each extractor inspects one caller-supplied signal and returns a fresh
list of :class:`ThreatFinding` instances. The behavioral and session
extractors are pure; the device extractor performs a single read-only
device lookup and returns ``[]`` if that lookup fails.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from threatwatch.detection.collaborators import call_collaborator
from threatwatch.detection.errors import CollaboratorError
from threatwatch.detection.models import (
    BehaviorSignal,
    DeviceContext,
    DeviceSignal,
    FailedAttemptsContext,
    LocationContext,
    SessionContext,
    SessionSignal,
    Severity,
    ThreatFinding,
    ThreatType,
    new_finding_id,
)
from threatwatch.logging import get_logger, hash_user_id

if TYPE_CHECKING:
    from threatwatch.detection.collaborators import SecurityRepository

log = get_logger("threatwatch.detection.extractors")

# ---------------------------------------------------------------------------
# Policy thresholds (fixed, not configurable per call)
# ---------------------------------------------------------------------------

FAILED_ATTEMPTS_THRESHOLD = 5
FAILED_ATTEMPTS_HIGH_THRESHOLD = 10
LOCATION_CHANGES_THRESHOLD = 3


def extract_behavior_findings(user_id: str, signal: BehaviorSignal | None) -> list[ThreatFinding]:
    """Flag excessive failed logins and location churn."""
    findings: list[ThreatFinding] = []
    if signal is None:
        return findings

    if signal.failed_attempts > FAILED_ATTEMPTS_THRESHOLD:
        severity = (
            Severity.HIGH
            if signal.failed_attempts > FAILED_ATTEMPTS_HIGH_THRESHOLD
            else Severity.MEDIUM
        )
        findings.append(
            ThreatFinding(
                id=new_finding_id("behavioral_failed_attempts"),
                user_id=user_id,
                threat_type=ThreatType.MULTIPLE_FAILED_ATTEMPTS,
                severity=severity,
                title="Multiple Failed Login Attempts",
                description=f"{signal.failed_attempts} failed login attempts detected",
                context=FailedAttemptsContext(failed_attempts=signal.failed_attempts),
            )
        )

    if signal.location_changes > LOCATION_CHANGES_THRESHOLD:
        findings.append(
            ThreatFinding(
                id=new_finding_id("behavioral_location"),
                user_id=user_id,
                threat_type=ThreatType.UNUSUAL_LOCATION,
                severity=Severity.MEDIUM,
                title="Unusual Location Activity",
                description=f"Multiple location changes ({signal.location_changes}) detected",
                context=LocationContext(location_changes=signal.location_changes),
            )
        )

    return findings


async def extract_device_findings(
    repository: SecurityRepository,
    user_id: str,
    signal: DeviceSignal | None,
) -> list[ThreatFinding]:
    """Compare the presented device against the user's registered devices.

    Args:
        repository: Device registry used for the single lookup.
        user_id: Subject of the detection.
        signal: The device presented by the request, if any.

    Returns:
        An unknown-device finding (HIGH) when the device is not on file, a
        compromised-device finding (CRITICAL) when it is on file and
        jailbroken, otherwise nothing. Returns ``[]`` if the lookup fails.
    """
    findings: list[ThreatFinding] = []
    if signal is None:
        return findings

    try:
        devices = await call_collaborator("list_devices", repository.list_devices, user_id)
    except CollaboratorError as e:
        log.warning("device_lookup_failed", user_hash=hash_user_id(user_id), error=str(e))
        return findings

    current = next((d for d in (devices or []) if d.id == signal.device_id), None)

    if current is None:
        findings.append(
            ThreatFinding(
                id=new_finding_id("device_unknown"),
                user_id=user_id,
                threat_type=ThreatType.DEVICE_ANOMALY,
                severity=Severity.HIGH,
                title="Unknown Device Access",
                description="Login from unrecognized device",
                context=DeviceContext(device_id=signal.device_id, user_agent=signal.user_agent),
            )
        )
    elif current.security_status.jailbroken:
        findings.append(
            ThreatFinding(
                id=new_finding_id("device_jailbroken"),
                user_id=user_id,
                threat_type=ThreatType.DEVICE_ANOMALY,
                severity=Severity.CRITICAL,
                title="Compromised Device Detected",
                description="Login from jailbroken/rooted device",
                context=DeviceContext(device_id=signal.device_id, jailbroken=True),
            )
        )

    return findings


def extract_session_findings(user_id: str, signal: SessionSignal | None) -> list[ThreatFinding]:
    """Emit one session-hijacking finding when the session reports anomalies."""
    if signal is None or not signal.anomalies:
        return []

    return [
        ThreatFinding(
            id=new_finding_id("session_hijacking"),
            user_id=user_id,
            threat_type=ThreatType.SESSION_HIJACKING,
            severity=Severity.HIGH,
            title="Potential Session Hijacking",
            description=f"Session anomalies detected: {', '.join(signal.anomalies)}",
            context=SessionContext(
                session_id=signal.session_id,
                anomalies=tuple(signal.anomalies),
            ),
        )
    ]
