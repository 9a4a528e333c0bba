# qr_attendance/services/scan_session.py

import logging
import threading
from typing import Callable, Optional

from ..models.attendance_models import ScanResult

logger = logging.getLogger(__name__)


class ScanSession:
    """
    Turns the code reader's stream of callbacks into at most one ScanResult
    per armed period.

    The armed flag is flipped under a lock, so the first read wins even when
    the reader keeps firing from its own thread before it notices it was disabled.
    """

    def __init__(self, listener: Optional[Callable[[ScanResult], None]] = None):
        self._listener = listener
        self._lock = threading.Lock()
        self._armed = False
        self._result: Optional[ScanResult] = None

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def result(self) -> Optional[ScanResult]:
        return self._result

    def arm(self):
        """Clears the previous result and enables the reader."""
        with self._lock:
            self._result = None
            self._armed = True
        logger.info("Scan session armed.")

    def disarm(self):
        with self._lock:
            self._armed = False

    def on_read(self, text) -> Optional[ScanResult]:
        """
        Reader callback. Returns the accepted ScanResult, or None when the read
        was discarded because the session is not armed.
        """
        with self._lock:
            if not self._armed:
                logger.debug("Discarding code read while disarmed.")
                return None
            self._armed = False
            # Non-text payloads become "" and are rejected by the submitter.
            result = ScanResult(raw_text=text if isinstance(text, str) else "")
            self._result = result

        logger.info(f"Accepted scanned code '{result.raw_text}'.")
        if self._listener:
            self._listener(result)
        return result
