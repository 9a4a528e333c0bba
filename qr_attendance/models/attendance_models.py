# qr_attendance/models/attendance_models.py

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    TEACHER = "teacher"
    OTHER = "other"

    @classmethod
    def from_claim(cls, claim: Optional[str]) -> "Role":
        """Maps the backend's free-form role claim onto the two roles we care about."""
        return cls.TEACHER if claim == cls.TEACHER.value else cls.OTHER


class AuthenticatedSession(BaseModel):
    """
    The logged-in teacher, as returned by the ledger's login endpoint.
    """
    subject_id: str = Field(..., description="The teacher's identifier, sent as teacher_id on submissions")
    role: Role
    token: str = Field(..., description="Opaque session token issued by the ledger")


class Coordinate(BaseModel):
    """An immutable latitude/longitude snapshot, in degrees."""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class ScanResult(BaseModel):
    """The single decoded payload accepted during one armed period."""
    model_config = ConfigDict(frozen=True)

    raw_text: str


class AttendanceRequest(BaseModel):
    """
    Everything needed for one mark-qr-attendance call. Missing values are
    allowed here so the submitter can reject them locally.
    """
    qr_identifier: str
    submitter_id: Optional[str] = None
    coordinate: Optional[Coordinate] = None

    def to_payload(self) -> dict:
        return {
            "identifier": self.qr_identifier,
            "teacher_id": self.submitter_id,
            "latitude": self.coordinate.latitude if self.coordinate else None,
            "longitude": self.coordinate.longitude if self.coordinate else None,
        }


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    DUPLICATE_RECORD = "duplicate_record"
    OUTSIDE_TIME_WINDOW = "outside_time_window"
    IDENTITY_MISMATCH = "identity_mismatch"
    VALIDATION_ERROR = "validation_error"
    TRANSPORT_ERROR = "transport_error"


class ErrorCategory(str, Enum):
    """The user-facing error taxonomy. Each category gets its own message."""
    NONE = "none"
    PERMISSION_DENIED = "permission_denied"
    INVALID_INPUT = "invalid_input"
    OUT_OF_SERVICE_AREA = "out_of_service_area"
    DUPLICATE_RECORD = "duplicate_record"
    OUTSIDE_TIME_WINDOW = "outside_time_window"
    IDENTITY_MISMATCH = "identity_mismatch"
    VALIDATION_ERROR = "validation_error"
    TRANSPORT_ERROR = "transport_error"


# Local validation messages carried by ValidationError outcomes
INVALID_CODE_DATA = "invalid code data"
NOT_LOGGED_IN = "not logged in"
LOCATION_UNAVAILABLE = "location unavailable"
OUTSIDE_SERVICE_AREA = "outside service area"


class AttendanceOutcome(BaseModel):
    """
    Closed result of one submission attempt. Build instances through the
    classmethods so kind, category and message always agree.
    """
    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    category: ErrorCategory
    message: Optional[str] = None

    @classmethod
    def success(cls) -> "AttendanceOutcome":
        return cls(kind=OutcomeKind.SUCCESS, category=ErrorCategory.NONE)

    @classmethod
    def duplicate_record(cls) -> "AttendanceOutcome":
        return cls(kind=OutcomeKind.DUPLICATE_RECORD, category=ErrorCategory.DUPLICATE_RECORD)

    @classmethod
    def outside_time_window(cls, message: str) -> "AttendanceOutcome":
        return cls(kind=OutcomeKind.OUTSIDE_TIME_WINDOW, category=ErrorCategory.OUTSIDE_TIME_WINDOW, message=message)

    @classmethod
    def identity_mismatch(cls) -> "AttendanceOutcome":
        return cls(kind=OutcomeKind.IDENTITY_MISMATCH, category=ErrorCategory.IDENTITY_MISMATCH)

    @classmethod
    def validation_error(cls, message: str, category: ErrorCategory = ErrorCategory.VALIDATION_ERROR) -> "AttendanceOutcome":
        return cls(kind=OutcomeKind.VALIDATION_ERROR, category=category, message=message)

    @classmethod
    def transport_error(cls, message: Optional[str] = None) -> "AttendanceOutcome":
        return cls(kind=OutcomeKind.TRANSPORT_ERROR, category=ErrorCategory.TRANSPORT_ERROR, message=message)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def user_message(self) -> str:
        """The text shown to the teacher for this outcome."""
        if self.category is ErrorCategory.NONE:
            return "Attendance marked successfully!"
        if self.category is ErrorCategory.DUPLICATE_RECORD:
            return "Attendance has already been recorded for this class."
        if self.category is ErrorCategory.IDENTITY_MISMATCH:
            return "You are not the same person as the teacher associated with this class."
        if self.category is ErrorCategory.OUT_OF_SERVICE_AREA:
            return "You must be within the Kigali area to mark attendance."
        if self.category is ErrorCategory.INVALID_INPUT:
            if self.message == NOT_LOGGED_IN:
                return "Teacher ID not found. Please login again."
            if self.message == LOCATION_UNAVAILABLE:
                return "Your location could not be determined. Please scan again."
            return "Invalid QR code data or attendance marking failed."
        if self.category is ErrorCategory.TRANSPORT_ERROR:
            return "Attendance marking failed. Please try again."
        # Time window and other ledger rejections are passed through verbatim.
        return self.message or "Failed to mark attendance."
