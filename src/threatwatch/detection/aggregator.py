"""Combine findings from every source and derive the overall threat level.

The level is an explicit decision table rather than a weighted score.
Note the asymmetry: two HIGH findings escalate to HIGH, while a single
HIGH (or more than two MEDIUM) only reaches MEDIUM.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from threatwatch.detection.models import (
    LevelAssessment,
    LevelRule,
    Severity,
    ThreatFinding,
    ThreatLevel,
    ThreatType,
)


def combine_findings(
    external: Iterable[ThreatFinding],
    behavioral: Iterable[ThreatFinding],
    device: Iterable[ThreatFinding],
    session: Iterable[ThreatFinding],
) -> list[ThreatFinding]:
    """Concatenate findings in a fixed source order: external, behavioral, device, session."""
    return [*external, *behavioral, *device, *session]


def assess_threat_level(findings: list[ThreatFinding]) -> LevelAssessment:
    """Derive the overall level and report which rule produced it."""
    if not findings:
        return LevelAssessment(ThreatLevel.NONE, LevelRule.NO_FINDINGS)

    counts = count_by_severity(findings)
    critical = counts[Severity.CRITICAL]
    high = counts[Severity.HIGH]
    medium = counts[Severity.MEDIUM]

    if critical > 0:
        return LevelAssessment(ThreatLevel.CRITICAL, LevelRule.CRITICAL_PRESENT)
    if high > 1:
        return LevelAssessment(ThreatLevel.HIGH, LevelRule.MULTIPLE_HIGH)
    if high > 0:
        return LevelAssessment(ThreatLevel.MEDIUM, LevelRule.HIGH_PRESENT)
    if medium > 2:
        return LevelAssessment(ThreatLevel.MEDIUM, LevelRule.MEDIUM_VOLUME)
    if medium > 0:
        return LevelAssessment(ThreatLevel.LOW, LevelRule.MEDIUM_PRESENT)
    return LevelAssessment(ThreatLevel.NONE, LevelRule.LOW_ONLY)


def calculate_overall_threat_level(findings: list[ThreatFinding]) -> ThreatLevel:
    return assess_threat_level(findings).level


def count_by_severity(findings: Iterable[ThreatFinding]) -> dict[Severity, int]:
    """Count findings per severity, with every severity present (zero if absent)."""
    counter = Counter(f.severity for f in findings)
    return {severity: counter[severity] for severity in Severity}


def count_by_type(findings: Iterable[ThreatFinding]) -> dict[ThreatType, int]:
    """Count findings per type, listing only types that occur."""
    return dict(Counter(f.threat_type for f in findings))
