# tests/tools/test_permission_gate.py

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from qr_attendance.models.attendance_models import Coordinate
from qr_attendance.models.workflow_models import Capability, PermissionStatus
from qr_attendance.tools.permission_gate import LOCATION_REQUIRED_NOTICE, PermissionGate

KIGALI = Coordinate(latitude=-1.9441, longitude=30.0619)


def make_gate(camera=True, location=True, position=KIGALI):
    camera_provider = AsyncMock()
    camera_provider.request_permission.return_value = camera
    location_provider = AsyncMock()
    location_provider.request_permission.return_value = location
    location_provider.current_position.return_value = position
    notify = MagicMock()
    return PermissionGate(camera_provider, location_provider, notify=notify), camera_provider, location_provider, notify


def test_gate_starts_unknown():
    gate, *_ = make_gate()
    assert gate.camera_status is PermissionStatus.UNKNOWN
    assert gate.location_status is PermissionStatus.UNKNOWN
    assert gate.ready() is False
    assert gate.denial_reason() is None


@pytest.mark.asyncio
class TestPermissionGate:

    async def test_both_granted_is_ready_and_fetches_position_once(self):
        gate, _, location_provider, notify = make_gate()

        assert await gate.activate() is True

        assert gate.ready() is True
        assert gate.denial_reason() is None
        assert gate.reference_coordinate == KIGALI
        location_provider.current_position.assert_awaited_once()
        notify.assert_not_called()

    async def test_location_denied_reports_location_and_notifies_once(self):
        gate, _, location_provider, notify = make_gate(camera=True, location=False)

        assert await gate.activate() is False

        assert gate.ready() is False
        assert gate.denial_reason() is Capability.LOCATION
        location_provider.current_position.assert_not_awaited()
        notify.assert_called_once_with(LOCATION_REQUIRED_NOTICE)

    async def test_camera_denied_is_reported_first(self):
        gate, *_ = make_gate(camera=False, location=False)
        await gate.activate()
        assert gate.denial_reason() is Capability.CAMERA

    async def test_failed_position_fix_counts_as_location_denied(self):
        gate, _, _, notify = make_gate(position=None)

        await gate.activate()

        assert gate.location_status is PermissionStatus.DENIED
        assert gate.denial_reason() is Capability.LOCATION
        assert gate.reference_coordinate is None
        notify.assert_called_once()

    async def test_position_exception_counts_as_location_denied(self):
        gate, _, location_provider, _ = make_gate()
        location_provider.current_position.side_effect = RuntimeError("GPS off")

        assert await gate.activate() is False
        assert gate.denial_reason() is Capability.LOCATION

    async def test_permission_request_exception_counts_as_denied(self):
        gate, camera_provider, _, _ = make_gate()
        camera_provider.request_permission.side_effect = RuntimeError("no camera")

        await gate.activate()
        assert gate.denial_reason() is Capability.CAMERA

    async def test_permission_requests_run_concurrently(self):
        started = []
        both_started = asyncio.Event()

        async def request(name):
            started.append(name)
            if len(started) == 2:
                both_started.set()
            # Deadlocks unless the other request is already running.
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return True

        camera_provider = MagicMock()
        camera_provider.request_permission = lambda: request("camera")
        location_provider = MagicMock()
        location_provider.request_permission = lambda: request("location")
        location_provider.current_position = AsyncMock(return_value=KIGALI)

        gate = PermissionGate(camera_provider, location_provider)
        assert await gate.activate() is True
        assert sorted(started) == ["camera", "location"]

    async def test_reactivation_rechecks(self):
        gate, camera_provider, _, _ = make_gate(camera=False)
        await gate.activate()
        assert gate.ready() is False

        camera_provider.request_permission.return_value = True
        await gate.activate()
        assert gate.ready() is True

    async def test_refresh_coordinate_replaces_reference(self):
        gate, _, location_provider, _ = make_gate()
        await gate.activate()

        moved = Coordinate(latitude=-1.95, longitude=30.07)
        location_provider.current_position.return_value = moved

        assert await gate.refresh_coordinate() == moved
        assert gate.reference_coordinate == moved

    async def test_refresh_failure_keeps_previous_reference(self):
        gate, _, location_provider, _ = make_gate()
        await gate.activate()
        location_provider.current_position.return_value = None

        assert await gate.refresh_coordinate() is None
        assert gate.reference_coordinate == KIGALI

    async def test_refresh_without_location_permission_does_nothing(self):
        gate, _, location_provider, _ = make_gate(location=False)
        await gate.activate()

        assert await gate.refresh_coordinate() is None
        location_provider.current_position.assert_not_awaited()
