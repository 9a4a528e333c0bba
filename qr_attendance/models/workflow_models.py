# qr_attendance/models/workflow_models.py

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .attendance_models import AttendanceOutcome, ScanResult


class Capability(str, Enum):
    CAMERA = "camera"
    LOCATION = "location"


class PermissionStatus(str, Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"


class WorkflowPhase(str, Enum):
    """
    Phases of one attendance session, in the order a successful scan visits them:

    AWAITING_PERMISSIONS -> ARMED -> SUBMITTING -> RESULT -> (re-arm) ARMED ...

    PERMISSIONS_DENIED is terminal.
    """
    AWAITING_PERMISSIONS = "awaiting_permissions"
    PERMISSIONS_DENIED = "permissions_denied"
    ARMED = "armed"
    SUBMITTING = "submitting"
    RESULT = "result"


class WorkflowState(BaseModel):
    """Observable snapshot of the controller. A new instance is published on every transition."""
    model_config = ConfigDict(frozen=True)

    phase: WorkflowPhase
    denied: Optional[Capability] = Field(None, description="Which capability was refused, in PERMISSIONS_DENIED")
    outcome: Optional[AttendanceOutcome] = Field(None, description="The attempt's outcome, in RESULT")

    @classmethod
    def awaiting_permissions(cls) -> "WorkflowState":
        return cls(phase=WorkflowPhase.AWAITING_PERMISSIONS)

    @classmethod
    def permissions_denied(cls, which: Capability) -> "WorkflowState":
        return cls(phase=WorkflowPhase.PERMISSIONS_DENIED, denied=which)

    @classmethod
    def armed(cls) -> "WorkflowState":
        return cls(phase=WorkflowPhase.ARMED)

    @classmethod
    def submitting(cls) -> "WorkflowState":
        return cls(phase=WorkflowPhase.SUBMITTING)

    @classmethod
    def result(cls, outcome: AttendanceOutcome) -> "WorkflowState":
        return cls(phase=WorkflowPhase.RESULT, outcome=outcome)

    @property
    def user_message(self) -> Optional[str]:
        if self.phase is WorkflowPhase.PERMISSIONS_DENIED:
            return "No access to camera" if self.denied is Capability.CAMERA else "No access to location"
        if self.phase is WorkflowPhase.AWAITING_PERMISSIONS:
            return "Requesting permissions..."
        if self.phase is WorkflowPhase.SUBMITTING:
            return "Processing..."
        if self.phase is WorkflowPhase.RESULT and self.outcome is not None:
            return self.outcome.user_message
        return None


# --- Controller events ---
# Every state change goes through WorkflowController._dispatch with one of these.

class PermissionsResolved(BaseModel):
    ready: bool
    denied: Optional[Capability] = None


class ScanAccepted(BaseModel):
    result: ScanResult


class SubmissionCompleted(BaseModel):
    attempt: int
    outcome: AttendanceOutcome


class RearmRequested(BaseModel):
    pass


class TornDown(BaseModel):
    pass
