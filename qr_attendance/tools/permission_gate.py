# qr_attendance/tools/permission_gate.py

import asyncio
import logging
from typing import Callable, Optional

from ..models.attendance_models import Coordinate
from ..models.workflow_models import Capability, PermissionStatus
from ..modules.collaborators import CameraPermissionProvider, LocationProvider

logger = logging.getLogger(__name__)

LOCATION_REQUIRED_NOTICE = "Location permission is required."


class PermissionGate:
    """
    Resolves camera and location authorization into a single readiness signal
    and caches the reference coordinate for the session.

    The gate never retries on its own. Call activate() again (for example on
    screen re-entry) to re-check.
    """

    def __init__(
        self,
        camera: CameraPermissionProvider,
        location: LocationProvider,
        notify: Optional[Callable[[str], None]] = None
    ):
        self._camera = camera
        self._location = location
        self._notify = notify
        self.camera_status = PermissionStatus.UNKNOWN
        self.location_status = PermissionStatus.UNKNOWN
        self.reference_coordinate: Optional[Coordinate] = None

    @staticmethod
    async def _request(capability: Capability, request) -> PermissionStatus:
        try:
            granted = await request()
        except Exception as e:
            logger.error(f"Requesting {capability.value} permission failed: {e}", exc_info=True)
            return PermissionStatus.DENIED
        return PermissionStatus.GRANTED if granted else PermissionStatus.DENIED

    async def _fetch_position(self) -> Optional[Coordinate]:
        try:
            return await self._location.current_position()
        except Exception as e:
            logger.error(f"Fetching the current position failed: {e}", exc_info=True)
            return None

    async def activate(self) -> bool:
        """
        Requests both permissions concurrently and waits for both answers.
        When location is granted, fetches the reference coordinate exactly once.

        Returns:
            bool: the same value as ready().
        """
        self.camera_status = PermissionStatus.UNKNOWN
        self.location_status = PermissionStatus.UNKNOWN
        self.reference_coordinate = None

        camera_status, location_status = await asyncio.gather(
            self._request(Capability.CAMERA, self._camera.request_permission),
            self._request(Capability.LOCATION, self._location.request_permission)
        )

        if location_status is PermissionStatus.GRANTED:
            coordinate = await self._fetch_position()
            if coordinate is None:
                logger.warning("Location permission granted but no position fix; treating location as denied.")
                location_status = PermissionStatus.DENIED
            else:
                self.reference_coordinate = coordinate

        self.camera_status = camera_status
        self.location_status = location_status

        if location_status is PermissionStatus.DENIED and self._notify:
            self._notify(LOCATION_REQUIRED_NOTICE)

        logger.info(f"Permission gate resolved: camera={camera_status.value}, location={location_status.value}.")
        return self.ready()

    def ready(self) -> bool:
        return (
            self.camera_status is PermissionStatus.GRANTED
            and self.location_status is PermissionStatus.GRANTED
        )

    def denial_reason(self) -> Optional[Capability]:
        """The refused capability, camera first. None while undecided or when ready."""
        if self.camera_status is PermissionStatus.DENIED:
            return Capability.CAMERA
        if self.location_status is PermissionStatus.DENIED:
            return Capability.LOCATION
        return None

    async def refresh_coordinate(self) -> Optional[Coordinate]:
        """
        Takes one fresh position fix. On failure the previous reference
        coordinate is kept and None is returned.
        """
        if self.location_status is not PermissionStatus.GRANTED:
            return None
        coordinate = await self._fetch_position()
        if coordinate is None:
            logger.warning("Could not refresh the position; keeping the previous reference coordinate.")
            return None
        self.reference_coordinate = coordinate
        return coordinate
