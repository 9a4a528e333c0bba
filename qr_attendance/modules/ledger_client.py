# qr_attendance/modules/ledger_client.py

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from ..config.config import settings
from ..models.attendance_models import AttendanceRequest

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
MARK_QR_ATTENDANCE_PATH = "/attendance/mark-qr-attendance"


# Custom exceptions for clearer error handling
class LedgerError(Exception):
    """Base class for failures talking to the attendance ledger."""
    pass

class LedgerTransportError(LedgerError):
    """Raised when no usable response came back (network error, timeout, unparseable body)."""
    pass

class LedgerAuthError(LedgerError):
    """Raised when the ledger refuses the login credentials."""
    pass


class LoginResult(BaseModel):
    role: Optional[str] = None
    token: str
    id: str


class LedgerResponse(BaseModel):
    """The parts of a mark-qr-attendance response the client interprets."""
    status_code: int
    error: Optional[str] = None
    code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def create_http_client(base_url: Optional[str] = None, timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Builds the shared AsyncClient used for every ledger call."""
    return httpx.AsyncClient(
        base_url=base_url or settings.LEDGER_BASE_URL,
        timeout=timeout if timeout is not None else settings.LEDGER_TIMEOUT_SECONDS,
        headers={"Content-Type": "application/json"}
    )


class LedgerClient:
    """
    Client for the attendance ledger's HTTP API.
    The httpx client is injected; its base_url and timeout are owned by the caller.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    async def _post_json(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        try:
            return await self._client.post(path, json=payload)
        except httpx.TimeoutException as e:
            logger.warning(f"Ledger request to {path} timed out: {e}")
            raise LedgerTransportError("The attendance service did not respond in time.") from e
        except httpx.RequestError as e:
            logger.error(f"Network error while calling the ledger at {path}: {e}", exc_info=True)
            raise LedgerTransportError("Could not reach the attendance service.") from e

    @staticmethod
    def _read_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Ledger returned a non-JSON body (status {response.status_code}).")
            raise LedgerTransportError("The attendance service returned an unreadable response.") from e
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise LedgerTransportError("The attendance service returned an unexpected response.")
        return body

    async def login(self, identifier: str, password: str) -> LoginResult:
        """
        Exchanges credentials for a token and role claim.
        Raises LedgerAuthError when the ledger rejects the login.
        """
        logger.info(f"Logging in '{identifier}' against the ledger.")
        response = await self._post_json(LOGIN_PATH, {"identifier": identifier, "password": password})
        body = self._read_body(response)

        if not response.is_success:
            message = body.get("error") or "Login failed"
            logger.warning(f"Ledger rejected login for '{identifier}' ({response.status_code}): {message}")
            raise LedgerAuthError(message)

        subject_id = body.get("id")
        try:
            result = LoginResult(
                role=body.get("role"),
                token=body.get("token"),
                id=str(subject_id) if subject_id is not None else None
            )
        except ValueError as e:
            logger.error(f"Login response for '{identifier}' is missing token or id.")
            raise LedgerTransportError("The attendance service returned an incomplete login response.") from e

        logger.info(f"Ledger accepted login for '{identifier}' with role '{result.role}'.")
        return result

    async def mark_qr_attendance(self, request: AttendanceRequest) -> LedgerResponse:
        """
        Sends one attendance record. Business rejections are returned, not raised;
        only transport problems raise LedgerTransportError.
        """
        logger.info(f"Submitting attendance for code '{request.qr_identifier}' as teacher '{request.submitter_id}'.")
        response = await self._post_json(MARK_QR_ATTENDANCE_PATH, request.to_payload())
        body = self._read_body(response)

        error = body.get("error")
        code = body.get("code")
        result = LedgerResponse(
            status_code=response.status_code,
            error=str(error) if error else None,
            code=str(code) if code else None
        )
        logger.info(f"Ledger answered {result.status_code} (error={result.error!r}, code={result.code!r}).")
        return result
