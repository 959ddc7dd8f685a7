"""Forensic logging for detection verdicts."""

from __future__ import annotations

from datetime import UTC, datetime

from threatwatch.detection.models import ThreatDetectionResult
from threatwatch.logging import get_logger, hash_user_id

log = get_logger("threatwatch.detection.forensics")


def log_detection_event(*, user_id: str, result: ThreatDetectionResult) -> None:
    """Log a detailed forensic record for a verdict above ``NONE``.

    Findings are listed most severe first; the user is identified only by
    hash, as in every other detection event.
    """
    ranked = sorted(result.findings, key=lambda f: f.severity.rank, reverse=True)

    log.warning(
        "threat_detected",
        user_hash=hash_user_id(user_id),
        timestamp=datetime.now(UTC).isoformat(),
        overall_level=result.overall_level.value,
        level_rule=result.metadata.level_rule.value,
        finding_count=len(result.findings),
        findings=[
            {
                "id": f.id,
                "type": f.threat_type.value,
                "severity": f.severity.value,
                "title": f.title,
                "description": f.description[:200],
            }
            for f in ranked
        ],
        immediate_actions=result.immediate_actions,
        auto_response_triggered=result.metadata.auto_response_triggered,
        remediation_actions=[
            {"action": a.kind.value, "target_id": a.target_id, "succeeded": a.succeeded}
            for a in result.metadata.remediation_actions
        ],
        processing_ms=round(result.metadata.analysis_time_ms, 2),
    )
