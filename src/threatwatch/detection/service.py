"""Threat detection orchestration.

One call to :func:`detect_threats` is one detection cycle:

1. Fan out: persisted threats, behavioral, device and session extractors
   run concurrently and are joined before aggregation. A source that fails
   with :class:`CollaboratorError` contributes no findings.
2. Aggregate: fixed-order concatenation and the level decision table.
3. Respond: recommendations, immediate actions and, when opted in and the
   level is HIGH or CRITICAL, automated remediation.

The engine keeps no state between calls and imposes no timeout; callers
wanting a deadline wrap the call (e.g. ``asyncio.wait_for``).
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from threatwatch.config import get_settings
from threatwatch.detection.aggregator import (
    assess_threat_level,
    combine_findings,
    count_by_severity,
    count_by_type,
)
from threatwatch.detection.collaborators import call_collaborator
from threatwatch.detection.errors import CollaboratorError, UnexpectedError, ValidationError
from threatwatch.detection.extractors import (
    extract_behavior_findings,
    extract_device_findings,
    extract_session_findings,
)
from threatwatch.detection.forensics import log_detection_event
from threatwatch.detection.models import (
    AutoResponseReport,
    BehaviorSignal,
    DetectionMetadata,
    DetectionOptions,
    DeviceSignal,
    SessionSignal,
    Severity,
    ThreatDetectionResult,
    ThreatFinding,
    ThreatLevel,
)
from threatwatch.detection.recommendations import (
    generate_immediate_actions,
    generate_recommendations,
)
from threatwatch.detection.response import should_trigger_auto_response, trigger_auto_response
from threatwatch.logging import get_logger, hash_user_id

if TYPE_CHECKING:
    from threatwatch.detection.collaborators import SecurityRepository

log = get_logger("threatwatch.detection.service")

S = TypeVar("S")


async def detect_threats(
    repository: SecurityRepository,
    user_id: str,
    *,
    behavior: BehaviorSignal | None = None,
    device: DeviceSignal | None = None,
    session: SessionSignal | None = None,
    options: DetectionOptions | None = None,
) -> ThreatDetectionResult:
    """Run one detection cycle for a user.

    Args:
        repository: Collaborator for persisted threats, devices and sessions.
        user_id: Subject of the detection. Must be non-empty.
        behavior: Authentication behavior counters, if available.
        device: The device presented by the request, if available.
        session: The active session state, if available.
        options: Per-call switches. Defaults come from settings.

    Returns:
        A successful :class:`ThreatDetectionResult` (possibly with no
        findings), or a failed one carrying the message of an unexpected
        internal error.

    Raises:
        ValidationError: If ``user_id`` is missing or blank.
    """
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("User ID is required")

    if options is None:
        options = DetectionOptions.from_settings(get_settings())

    start = time.perf_counter()
    log.info(
        "threat_detection_started",
        user_hash=hash_user_id(user_id),
        has_behavior=behavior is not None,
        has_device=device is not None,
        has_session=session is not None,
        real_time_response=options.enable_real_time_response,
    )

    try:
        result = await _run_cycle(
            repository,
            user_id,
            behavior=behavior,
            device=device,
            session=session,
            options=options,
            start=start,
        )
    except Exception as e:
        error = UnexpectedError(str(e) or type(e).__name__)
        log.error(
            "threat_detection_failed",
            user_hash=hash_user_id(user_id),
            error=str(error),
            error_type=type(e).__name__,
        )
        return ThreatDetectionResult.failed(str(error), analysis_time_ms=_elapsed_ms(start))

    log.info(
        "threat_detection_completed",
        user_hash=hash_user_id(user_id),
        findings=len(result.findings),
        overall_level=result.overall_level.value,
        level_rule=result.metadata.level_rule.value,
        auto_response_triggered=result.metadata.auto_response_triggered,
        analysis_ms=round(result.metadata.analysis_time_ms, 2),
    )
    if result.overall_level != ThreatLevel.NONE:
        log_detection_event(user_id=user_id, result=result)

    return result


async def _run_cycle(
    repository: SecurityRepository,
    user_id: str,
    *,
    behavior: BehaviorSignal | None,
    device: DeviceSignal | None,
    session: SessionSignal | None,
    options: DetectionOptions,
    start: float,
) -> ThreatDetectionResult:
    external, behavioral, device_findings, session_findings = await asyncio.gather(
        _collect(
            "external_store",
            user_id,
            call_collaborator(
                "find_unresolved_threats", repository.find_unresolved_threats, user_id
            ),
        ),
        _collect("behavior", user_id, _evaluate(extract_behavior_findings, user_id, behavior)),
        _collect("device", user_id, extract_device_findings(repository, user_id, device)),
        _collect("session", user_id, _evaluate(extract_session_findings, user_id, session)),
    )

    findings = combine_findings(external, behavioral, device_findings, session_findings)
    assessment = assess_threat_level(findings)

    recommendations = (
        generate_recommendations(findings, assessment.level)
        if options.include_recommendations
        else []
    )
    immediate_actions = generate_immediate_actions(findings)

    report = AutoResponseReport()
    if options.enable_real_time_response and should_trigger_auto_response(assessment.level):
        report = await trigger_auto_response(repository, user_id, findings)

    by_severity = count_by_severity(findings)
    metadata = DetectionMetadata(
        analysis_time_ms=_elapsed_ms(start),
        findings_detected=len(findings),
        findings_by_severity=by_severity,
        high_severity_findings=by_severity[Severity.HIGH] + by_severity[Severity.CRITICAL],
        findings_by_type=count_by_type(findings),
        level_rule=assessment.rule,
        auto_response_triggered=report.triggered,
        remediation_actions=report.actions,
    )

    return ThreatDetectionResult(
        success=True,
        findings=findings,
        overall_level=assessment.level,
        recommendations=recommendations,
        immediate_actions=immediate_actions,
        metadata=metadata,
    )


async def _collect(
    source: str,
    user_id: str,
    work: Awaitable[list[ThreatFinding]],
) -> list[ThreatFinding]:
    """Await one finding source; a collaborator failure degrades to no findings."""
    try:
        return list(await work)
    except CollaboratorError as e:
        log.warning(
            "finding_source_degraded",
            source=source,
            user_hash=hash_user_id(user_id),
            operation=e.operation,
            error=str(e),
        )
        return []


async def _evaluate(
    extractor: Callable[[str, S | None], list[ThreatFinding]],
    user_id: str,
    signal: S | None,
) -> list[ThreatFinding]:
    return extractor(user_id, signal)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
