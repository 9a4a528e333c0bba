# qr_attendance/modules/collaborators.py
#
# Device-side capabilities the workflow depends on. The mobile shell provides
# the real implementations; tests use AsyncMock objects with the same shape.

from typing import Optional, Protocol

from ..models.attendance_models import Coordinate


class CameraPermissionProvider(Protocol):
    async def request_permission(self) -> bool:
        """Asks the user for camera access. True when granted."""
        ...


class LocationProvider(Protocol):
    async def request_permission(self) -> bool:
        """Asks the user for foreground location access. True when granted."""
        ...

    async def current_position(self) -> Optional[Coordinate]:
        """One position fix, or None when no fix is available."""
        ...


class SessionStore(Protocol):
    """Opaque async key-value storage for the teacher's session."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...
