# qr_attendance/services/workflow_controller.py

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, List, Optional

from ..models.attendance_models import AttendanceOutcome, ScanResult
from ..models.workflow_models import (
    PermissionsResolved, RearmRequested, ScanAccepted, SubmissionCompleted, TornDown,
    WorkflowPhase, WorkflowState
)
from ..tools.permission_gate import PermissionGate
from .attendance_submitter import AttendanceSubmitter
from .scan_session import ScanSession

logger = logging.getLogger(__name__)

StateListener = Callable[[WorkflowState], None]


class WorkflowController:
    """
    State machine for one attendance session:

        AWAITING_PERMISSIONS --(both granted)--> ARMED
        AWAITING_PERMISSIONS --(either denied)--> PERMISSIONS_DENIED
        ARMED --(code accepted)--> SUBMITTING
        SUBMITTING --(outcome)--> RESULT
        RESULT --(rearm)--> ARMED

    Permission answers, reader callbacks, submission completions and user
    actions are all turned into events and handed to _dispatch, which is the
    only place the state changes. Transitions run on the loop that called
    start(); reader callbacks may arrive from any thread.
    """

    def __init__(self, gate: PermissionGate, submitter: AttendanceSubmitter):
        self.gate = gate
        self.submitter = submitter
        self.scan_session = ScanSession(listener=self._on_scan_result)
        self._state = WorkflowState.awaiting_permissions()
        self._listeners: List[StateListener] = []
        self._attempt = 0
        self._starting = False
        self._closed = False
        self._submission_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Deque[object] = deque()
        self._dispatching = False

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Registers an observer for state changes. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    # --- Inputs ---

    async def start(self) -> WorkflowState:
        """Runs the permission gate once and moves to ARMED or PERMISSIONS_DENIED."""
        if self._closed or self._starting or self._state.phase is not WorkflowPhase.AWAITING_PERMISSIONS:
            logger.warning(f"Ignoring start() in phase '{self._state.phase.value}'.")
            return self._state

        self._loop = asyncio.get_running_loop()
        self._starting = True
        try:
            ready = await self.gate.activate()
        finally:
            self._starting = False
        self._dispatch(PermissionsResolved(ready=ready, denied=self.gate.denial_reason()))
        return self._state

    def on_code_read(self, text) -> Optional[ScanResult]:
        """Reader callback. Only the first read of an armed period is accepted."""
        return self.scan_session.on_read(text)

    def rearm(self) -> bool:
        """
        "Scan again". Only honoured from RESULT; anywhere else, SUBMITTING
        included, it is a no-op and returns False.
        """
        if self._closed or self._state.phase is not WorkflowPhase.RESULT:
            logger.info(f"Ignoring re-arm request in phase '{self._state.phase.value}'.")
            return False
        self._dispatch(RearmRequested())
        return True

    def teardown(self):
        """
        Stops accepting reads. A submission still in flight is allowed to finish,
        but its outcome is dropped.
        """
        self._dispatch(TornDown())

    async def wait_for_submission(self) -> WorkflowState:
        """Waits for the in-flight submission, if there is one."""
        task = self._submission_task
        if task is not None:
            await task
        return self._state

    # --- Transitions ---

    def _on_scan_result(self, result: ScanResult):
        event = ScanAccepted(result=result)
        loop = self._loop
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if loop is not None and running is not loop:
            # Reader thread: hand the event over to the controller's loop.
            loop.call_soon_threadsafe(self._dispatch, event)
            return
        self._dispatch(event)

    def _dispatch(self, event):
        """
        Queues the event and, unless a transition is already being applied,
        drains the queue. Listeners that trigger new events (a "scan again"
        button reacting to RESULT) therefore never interleave transitions.
        """
        self._pending.append(event)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._pending:
                self._handle(self._pending.popleft())
        finally:
            self._dispatching = False

    def _handle(self, event):
        if self._closed:
            logger.debug(f"Controller torn down; dropping {type(event).__name__}.")
            return

        phase = self._state.phase

        if isinstance(event, PermissionsResolved):
            if phase is not WorkflowPhase.AWAITING_PERMISSIONS:
                return
            if event.ready:
                self.scan_session.arm()
                self._set_state(WorkflowState.armed())
            else:
                self._set_state(WorkflowState.permissions_denied(event.denied))

        elif isinstance(event, ScanAccepted):
            if phase is not WorkflowPhase.ARMED:
                logger.warning(f"Scan accepted in phase '{phase.value}'; ignoring it.")
                return
            self._attempt += 1
            # The task exists before anyone is told about SUBMITTING.
            self._submission_task = self._loop.create_task(
                self._run_submission(self._attempt, event.result)
            )
            self._set_state(WorkflowState.submitting())

        elif isinstance(event, SubmissionCompleted):
            if phase is not WorkflowPhase.SUBMITTING or event.attempt != self._attempt:
                logger.info(f"Discarding stale outcome of attempt {event.attempt}.")
                return
            self._set_state(WorkflowState.result(event.outcome))

        elif isinstance(event, RearmRequested):
            if phase is not WorkflowPhase.RESULT:
                return
            self.scan_session.arm()
            self._set_state(WorkflowState.armed())

        elif isinstance(event, TornDown):
            self.scan_session.disarm()
            # Invalidates whatever attempt is still running.
            self._attempt += 1
            self._closed = True
            logger.info(f"Workflow torn down in phase '{phase.value}'.")

    def _set_state(self, new_state: WorkflowState):
        logger.info(f"Workflow: {self._state.phase.value} -> {new_state.phase.value}")
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)

    async def _run_submission(self, attempt: int, result: ScanResult):
        try:
            # The first attempt uses the fix taken when the gate activated.
            if attempt > 1:
                await self.gate.refresh_coordinate()
            request = await self.submitter.build_request(result, self.gate.reference_coordinate)
            outcome = await self.submitter.submit(request)
        except Exception as e:
            logger.error(f"Submission attempt {attempt} failed unexpectedly: {e}", exc_info=True)
            outcome = AttendanceOutcome.transport_error(str(e))
        self._dispatch(SubmissionCompleted(attempt=attempt, outcome=outcome))
