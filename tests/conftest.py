"""Pytest fixtures for threatwatch tests."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from threatwatch.detection.models import (
    DeviceRecord,
    DeviceSecurityStatus,
    Severity,
    ThreatFinding,
    ThreatType,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear settings cache before each test."""
    from threatwatch.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def known_devices() -> list[DeviceRecord]:
    """One clean trusted phone and one jailbroken tablet."""
    return [
        DeviceRecord(id="device-phone", trusted=True, name="Phone"),
        DeviceRecord(
            id="device-tablet",
            trusted=True,
            security_status=DeviceSecurityStatus(jailbroken=True, screen_lock_enabled=False),
            name="Tablet",
        ),
    ]


@pytest.fixture
def mock_repository(known_devices: list[DeviceRecord]) -> AsyncMock:
    """Mock SecurityRepository with no persisted threats and two known devices."""
    repository = AsyncMock()
    repository.find_unresolved_threats = AsyncMock(return_value=[])
    repository.list_devices = AsyncMock(return_value=known_devices)
    repository.terminate_session = AsyncMock(return_value=True)
    repository.revoke_device_trust = AsyncMock(return_value=True)
    return repository


@pytest.fixture
def make_finding():
    """Factory building findings with placeholder text."""

    def _make(
        severity: Severity,
        threat_type: ThreatType = ThreatType.SUSPICIOUS_LOGIN,
        **kwargs,
    ) -> ThreatFinding:
        kwargs.setdefault("user_id", "user-1")
        kwargs.setdefault("title", f"{threat_type} finding")
        kwargs.setdefault("description", f"{severity} {threat_type}")
        return ThreatFinding(threat_type=threat_type, severity=severity, **kwargs)

    return _make
