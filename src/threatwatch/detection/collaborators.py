"""Contract for the external systems the engine reads from and writes to.

The engine never implements these operations. Implementations signal
failure by raising; :func:`call_collaborator` normalises any such failure
into a :class:`CollaboratorError` so callers can recover locally.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from threatwatch.detection.errors import CollaboratorError
from threatwatch.detection.models import DeviceRecord, ThreatFinding

T = TypeVar("T")


class SecurityRepository(Protocol):
    """Persisted-threat store, device registry and session store."""

    async def find_unresolved_threats(self, user_id: str) -> list[ThreatFinding]:
        """Return persisted findings for ``user_id`` that are not yet resolved."""
        ...

    async def list_devices(self, user_id: str) -> list[DeviceRecord]:
        """Return the devices already on file for ``user_id``."""
        ...

    async def terminate_session(self, user_id: str, session_id: str) -> bool:
        """Terminate a session. Returns whether the store reports success."""
        ...

    async def revoke_device_trust(self, user_id: str, device_id: str) -> bool:
        """Revoke trust for a device. Returns whether the store reports success."""
        ...


async def call_collaborator(
    operation: str,
    func: Callable[..., Awaitable[T]],
    *args: Any,  # noqa: ANN401
) -> T:
    """Call and await a collaborator operation.

    Any failure, raised either by the call itself or while awaiting it, is
    converted to a :class:`CollaboratorError` tagged with ``operation``.
    """
    try:
        return await func(*args)
    except CollaboratorError:
        raise
    except Exception as e:
        raise CollaboratorError(operation, str(e)) from e
