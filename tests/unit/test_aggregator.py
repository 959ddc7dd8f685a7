"""Unit tests for finding aggregation and the overall level decision table."""

from __future__ import annotations

import pytest

from threatwatch.detection.aggregator import (
    assess_threat_level,
    calculate_overall_threat_level,
    combine_findings,
    count_by_severity,
    count_by_type,
)
from threatwatch.detection.models import LevelRule, Severity, ThreatLevel, ThreatType

C, H, M, L = Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW


class TestCombineFindings:
    def test_fixed_source_order(self, make_finding) -> None:
        external = [make_finding(L, title="external")]
        behavioral = [make_finding(M, title="behavioral")]
        device = [make_finding(H, title="device")]
        session = [make_finding(H, title="session")]

        combined = combine_findings(external, behavioral, device, session)

        assert [f.title for f in combined] == ["external", "behavioral", "device", "session"]

    def test_empty_sources(self) -> None:
        assert combine_findings([], [], [], []) == []


class TestOverallThreatLevel:
    """The decision table, row by row."""

    @pytest.mark.parametrize(
        ("severities", "expected_level", "expected_rule"),
        [
            ([], ThreatLevel.NONE, LevelRule.NO_FINDINGS),
            ([C], ThreatLevel.CRITICAL, LevelRule.CRITICAL_PRESENT),
            ([L, M, H, C], ThreatLevel.CRITICAL, LevelRule.CRITICAL_PRESENT),
            ([H, H], ThreatLevel.HIGH, LevelRule.MULTIPLE_HIGH),
            ([H, H, H, M], ThreatLevel.HIGH, LevelRule.MULTIPLE_HIGH),
            ([H], ThreatLevel.MEDIUM, LevelRule.HIGH_PRESENT),
            ([H, M, M], ThreatLevel.MEDIUM, LevelRule.HIGH_PRESENT),
            ([M, M, M], ThreatLevel.MEDIUM, LevelRule.MEDIUM_VOLUME),
            ([M, M], ThreatLevel.LOW, LevelRule.MEDIUM_PRESENT),
            ([M, L, L], ThreatLevel.LOW, LevelRule.MEDIUM_PRESENT),
            ([L, L, L, L], ThreatLevel.NONE, LevelRule.LOW_ONLY),
        ],
    )
    def test_decision_table(
        self,
        make_finding,
        severities: list[Severity],
        expected_level: ThreatLevel,
        expected_rule: LevelRule,
    ) -> None:
        findings = [make_finding(s) for s in severities]
        assessment = assess_threat_level(findings)
        assert assessment.level == expected_level
        assert assessment.rule == expected_rule

    def test_two_high_no_critical_is_high(self, make_finding) -> None:
        findings = [make_finding(H), make_finding(H)]
        assert calculate_overall_threat_level(findings) == ThreatLevel.HIGH

    def test_one_high_two_medium_is_medium(self, make_finding) -> None:
        findings = [make_finding(H), make_finding(M), make_finding(M)]
        assert calculate_overall_threat_level(findings) == ThreatLevel.MEDIUM

    def test_three_medium_no_high_is_medium(self, make_finding) -> None:
        findings = [make_finding(M), make_finding(M), make_finding(M)]
        assert calculate_overall_threat_level(findings) == ThreatLevel.MEDIUM

    def test_order_does_not_matter(self, make_finding) -> None:
        findings = [make_finding(M), make_finding(H), make_finding(L), make_finding(H)]
        assert (
            calculate_overall_threat_level(findings)
            == calculate_overall_threat_level(list(reversed(findings)))
            == ThreatLevel.HIGH
        )


class TestCounts:
    def test_count_by_severity_lists_every_severity(self, make_finding) -> None:
        counts = count_by_severity([make_finding(H), make_finding(H), make_finding(L)])
        assert counts == {L: 1, M: 0, H: 2, C: 0}

    def test_count_by_type(self, make_finding) -> None:
        counts = count_by_type(
            [
                make_finding(H, ThreatType.DEVICE_ANOMALY),
                make_finding(C, ThreatType.DEVICE_ANOMALY),
                make_finding(M, ThreatType.UNUSUAL_LOCATION),
            ]
        )
        assert counts == {ThreatType.DEVICE_ANOMALY: 2, ThreatType.UNUSUAL_LOCATION: 1}
