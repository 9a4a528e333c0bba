# qr_attendance/services/attendance_submitter.py

import logging
from typing import Optional

from ..db.session_store import TEACHER_ID_KEY
from ..models.attendance_models import (
    AttendanceOutcome, AttendanceRequest, Coordinate, ErrorCategory, ScanResult,
    INVALID_CODE_DATA, LOCATION_UNAVAILABLE, NOT_LOGGED_IN, OUTSIDE_SERVICE_AREA
)
from ..modules.collaborators import SessionStore
from ..modules.ledger_client import LedgerClient, LedgerResponse, LedgerTransportError
from ..tools.geo_math import KIGALI_CENTER, KIGALI_RADIUS_M, distance_meters

logger = logging.getLogger(__name__)

# Phrases the ledger uses today. They are not a versioned contract, so the
# machine-readable `code` field is preferred whenever the ledger sends one.
DUPLICATE_PHRASE = "already recorded for this class"
TIME_WINDOW_PHRASE = "can only be marked between"
TEACHER_MISMATCH_PHRASE = "teacher mismatch"

DUPLICATE_CODE = "DUPLICATE_RECORD"
TIME_WINDOW_CODE = "OUTSIDE_TIME_WINDOW"
TEACHER_MISMATCH_CODE = "TEACHER_MISMATCH"


def classify_ledger_response(response: LedgerResponse) -> AttendanceOutcome:
    """Maps one ledger response onto the closed outcome set."""
    if not response.ok:
        return AttendanceOutcome.validation_error(response.error or "failed")

    code = (response.code or "").upper()
    if code == DUPLICATE_CODE:
        return AttendanceOutcome.duplicate_record()
    if code == TIME_WINDOW_CODE:
        return AttendanceOutcome.outside_time_window(response.error or "Attendance can only be marked during class time.")
    if code == TEACHER_MISMATCH_CODE:
        return AttendanceOutcome.identity_mismatch()

    if not response.error:
        return AttendanceOutcome.success()

    error = response.error.lower()
    if DUPLICATE_PHRASE in error:
        return AttendanceOutcome.duplicate_record()
    if TIME_WINDOW_PHRASE in error:
        return AttendanceOutcome.outside_time_window(response.error)
    if error.strip().rstrip(".") == TEACHER_MISMATCH_PHRASE:
        return AttendanceOutcome.identity_mismatch()
    return AttendanceOutcome.validation_error(response.error)


class AttendanceSubmitter:
    """
    Validates an attendance request locally and, when it passes, sends it to
    the ledger and classifies the answer. Every path returns an outcome; nothing
    here raises to the caller.
    """

    def __init__(
        self,
        ledger_client: LedgerClient,
        session_store: SessionStore,
        center: Coordinate = KIGALI_CENTER,
        radius_m: float = KIGALI_RADIUS_M
    ):
        self.ledger_client = ledger_client
        self.session_store = session_store
        self.center = center
        self.radius_m = radius_m

    async def build_request(self, scan_result: ScanResult, coordinate: Optional[Coordinate]) -> AttendanceRequest:
        """Combines the scanned code, the stored teacher id and the current coordinate."""
        submitter_id = await self.session_store.get(TEACHER_ID_KEY)
        return AttendanceRequest(
            qr_identifier=scan_result.raw_text,
            submitter_id=submitter_id or None,
            coordinate=coordinate
        )

    def _check_locally(self, request: AttendanceRequest) -> Optional[AttendanceOutcome]:
        if not request.qr_identifier:
            return AttendanceOutcome.validation_error(INVALID_CODE_DATA, category=ErrorCategory.INVALID_INPUT)
        if not request.submitter_id:
            return AttendanceOutcome.validation_error(NOT_LOGGED_IN, category=ErrorCategory.INVALID_INPUT)
        if request.coordinate is None:
            return AttendanceOutcome.validation_error(LOCATION_UNAVAILABLE, category=ErrorCategory.INVALID_INPUT)

        distance = distance_meters(request.coordinate, self.center)
        logger.info(f"Distance from service area centre: {distance:.0f} m (limit {self.radius_m:.0f} m).")
        if not distance <= self.radius_m:
            return AttendanceOutcome.validation_error(OUTSIDE_SERVICE_AREA, category=ErrorCategory.OUT_OF_SERVICE_AREA)
        return None

    async def submit(self, request: AttendanceRequest) -> AttendanceOutcome:
        rejection = self._check_locally(request)
        if rejection is not None:
            logger.warning(f"Attendance request rejected before sending: {rejection.message}")
            return rejection

        try:
            response = await self.ledger_client.mark_qr_attendance(request)
        except LedgerTransportError as e:
            return AttendanceOutcome.transport_error(str(e))
        except Exception as e:
            logger.error(f"Unexpected error while submitting attendance: {e}", exc_info=True)
            return AttendanceOutcome.transport_error(str(e))

        outcome = classify_ledger_response(response)
        logger.info(f"Attendance attempt for '{request.qr_identifier}' finished with {outcome.kind.value}.")
        return outcome
