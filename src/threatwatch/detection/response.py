"""Automated remediation for high-risk verdicts.

Only CRITICAL findings are acted on, and only two shapes are handled:
a hijacked session (terminated) and a jailbroken device (trust revoked).
Other critical findings are left for manual follow-up.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from threatwatch.detection.collaborators import call_collaborator
from threatwatch.detection.models import (
    AutoResponseReport,
    DeviceContext,
    RemediationAction,
    RemediationKind,
    SessionContext,
    Severity,
    ThreatFinding,
    ThreatLevel,
    ThreatType,
)
from threatwatch.logging import get_logger, hash_user_id

if TYPE_CHECKING:
    from threatwatch.detection.collaborators import SecurityRepository

log = get_logger("threatwatch.detection.response")

AUTO_RESPONSE_MIN_LEVEL = ThreatLevel.HIGH


def should_trigger_auto_response(level: ThreatLevel) -> bool:
    return level.rank >= AUTO_RESPONSE_MIN_LEVEL.rank


async def trigger_auto_response(
    repository: SecurityRepository,
    user_id: str,
    findings: list[ThreatFinding],
) -> AutoResponseReport:
    """Dispatch remediation for every CRITICAL finding.

    Args:
        repository: Session store and device registry to act on.
        user_id: Subject of the detection.
        findings: All findings of the cycle; non-critical ones are ignored.

    Returns:
        An :class:`AutoResponseReport`. ``triggered`` is ``False`` if any
        exception interrupted dispatch; the exception is logged, never raised.
    """
    actions: list[RemediationAction] = []
    try:
        for finding in findings:
            if finding.severity != Severity.CRITICAL:
                continue
            action = await _remediate(repository, user_id, finding)
            if action is not None:
                actions.append(action)
    except Exception as e:
        log.error(
            "auto_response_failed",
            user_hash=hash_user_id(user_id),
            error=str(e),
            actions_completed=len(actions),
        )
        return AutoResponseReport(triggered=False, actions=actions)

    return AutoResponseReport(triggered=True, actions=actions)


async def _remediate(
    repository: SecurityRepository,
    user_id: str,
    finding: ThreatFinding,
) -> RemediationAction | None:
    """Run the remediation matching one finding, if any."""
    context = finding.context

    match finding.threat_type:
        case ThreatType.SESSION_HIJACKING if isinstance(context, SessionContext):
            succeeded = await call_collaborator(
                "terminate_session",
                repository.terminate_session,
                user_id,
                context.session_id,
            )
            action = RemediationAction(
                kind=RemediationKind.TERMINATE_SESSION,
                target_id=context.session_id,
                succeeded=bool(succeeded),
            )
        case ThreatType.DEVICE_ANOMALY if isinstance(context, DeviceContext) and context.jailbroken:
            succeeded = await call_collaborator(
                "revoke_device_trust",
                repository.revoke_device_trust,
                user_id,
                context.device_id,
            )
            action = RemediationAction(
                kind=RemediationKind.REVOKE_DEVICE_TRUST,
                target_id=context.device_id,
                succeeded=bool(succeeded),
            )
        case _:
            return None

    log.info(
        "remediation_executed",
        user_hash=hash_user_id(user_id),
        finding_id=finding.id,
        action=action.kind.value,
        target_id=action.target_id,
        succeeded=action.succeeded,
    )
    return action
