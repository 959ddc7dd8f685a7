"""User-facing remediation text derived from findings."""

from __future__ import annotations

from collections.abc import Iterable

from threatwatch.detection.models import Severity, ThreatFinding, ThreatLevel, ThreatType

NO_THREATS_RECOMMENDATION = "Security status is good - continue monitoring"

RECOMMENDATIONS: dict[ThreatType, str] = {
    ThreatType.MULTIPLE_FAILED_ATTEMPTS: "Consider enabling account lockout after failed attempts",
    ThreatType.UNUSUAL_LOCATION: "Enable location-based security alerts",
    ThreatType.DEVICE_ANOMALY: "Review and revoke access from unknown devices",
    ThreatType.SESSION_HIJACKING: "Terminate suspicious sessions immediately",
}

# Only CRITICAL findings of these types get an immediate action
IMMEDIATE_ACTIONS: dict[ThreatType, str] = {
    ThreatType.DEVICE_ANOMALY: "Terminate all sessions from compromised device",
    ThreatType.SESSION_HIJACKING: "Terminate suspicious session immediately",
}


def generate_recommendations(findings: list[ThreatFinding], level: ThreatLevel) -> list[str]:
    """Map findings to recommendations, deduplicated in first-occurrence order.

    A ``NONE`` level short-circuits to the single positive-status message.
    """
    if level == ThreatLevel.NONE:
        return [NO_THREATS_RECOMMENDATION]
    return _unique(RECOMMENDATIONS.get(f.threat_type) for f in findings)


def generate_immediate_actions(findings: list[ThreatFinding]) -> list[str]:
    """Advisory actions for CRITICAL findings, whether or not auto-response ran."""
    return _unique(
        IMMEDIATE_ACTIONS.get(f.threat_type) for f in findings if f.severity == Severity.CRITICAL
    )


def _unique(items: Iterable[str | None]) -> list[str]:
    return list(dict.fromkeys(item for item in items if item is not None))
