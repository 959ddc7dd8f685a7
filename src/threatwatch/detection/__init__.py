"""Threat detection engine.

Public API
----------
- :func:`detect_threats` - run one detection cycle for a user
- :class:`SecurityRepository` - collaborator contract the caller supplies
- :class:`ThreatDetectionResult`, :class:`ThreatFinding` - result types
- :class:`BehaviorSignal`, :class:`DeviceSignal`, :class:`SessionSignal` - inputs
"""

from threatwatch.detection.aggregator import assess_threat_level, calculate_overall_threat_level
from threatwatch.detection.collaborators import SecurityRepository
from threatwatch.detection.errors import (
    CollaboratorError,
    ThreatDetectionError,
    UnexpectedError,
    ValidationError,
)
from threatwatch.detection.models import (
    BehaviorSignal,
    DetectionOptions,
    DeviceRecord,
    DeviceSecurityStatus,
    DeviceSignal,
    SessionSignal,
    Severity,
    ThreatDetectionResult,
    ThreatFinding,
    ThreatLevel,
    ThreatType,
)
from threatwatch.detection.service import detect_threats

__all__ = [
    "BehaviorSignal",
    "CollaboratorError",
    "DetectionOptions",
    "DeviceRecord",
    "DeviceSecurityStatus",
    "DeviceSignal",
    "SecurityRepository",
    "SessionSignal",
    "Severity",
    "ThreatDetectionError",
    "ThreatDetectionResult",
    "ThreatFinding",
    "ThreatLevel",
    "ThreatType",
    "UnexpectedError",
    "ValidationError",
    "assess_threat_level",
    "calculate_overall_threat_level",
    "detect_threats",
]
