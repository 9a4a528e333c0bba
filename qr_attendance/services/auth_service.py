# qr_attendance/services/auth_service.py

import logging
from typing import Optional

from ..db.session_store import SESSION_KEYS, TEACHER_ID_KEY, TEACHER_ROLE_KEY, TEACHER_TOKEN_KEY
from ..models.attendance_models import AuthenticatedSession, Role
from ..modules.collaborators import SessionStore
from ..modules.ledger_client import LedgerAuthError, LedgerClient, LedgerTransportError

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Login failed. The message is meant to be shown to the user as is."""
    pass


class AuthService:
    """
    Teacher-only login on top of the ledger, persisting the session in the
    injected store.
    """

    def __init__(self, ledger_client: LedgerClient, session_store: SessionStore):
        self.ledger_client = ledger_client
        self.session_store = session_store

    async def authenticate(self, identifier: str, password: str) -> AuthenticatedSession:
        if not identifier or not password:
            raise AuthenticationError("Please enter both username and password")

        try:
            result = await self.ledger_client.login(identifier, password)
        except LedgerAuthError as e:
            raise AuthenticationError(str(e)) from e
        except LedgerTransportError as e:
            raise AuthenticationError("An error occurred during login.") from e

        if Role.from_claim(result.role) is not Role.TEACHER:
            logger.warning(f"User '{identifier}' logged in with role '{result.role}'; only teachers may use the scanner.")
            raise AuthenticationError("This login is for teachers only.")

        session = AuthenticatedSession(subject_id=result.id, role=Role.TEACHER, token=result.token)
        await self.session_store.set(TEACHER_TOKEN_KEY, session.token)
        await self.session_store.set(TEACHER_ID_KEY, session.subject_id)
        await self.session_store.set(TEACHER_ROLE_KEY, session.role.value)
        logger.info(f"Teacher '{session.subject_id}' logged in.")
        return session

    async def current_session(self) -> Optional[AuthenticatedSession]:
        """The persisted session, or None when any of its entries is missing."""
        token = await self.session_store.get(TEACHER_TOKEN_KEY)
        subject_id = await self.session_store.get(TEACHER_ID_KEY)
        role = await self.session_store.get(TEACHER_ROLE_KEY)
        if not (token and subject_id and role):
            return None
        return AuthenticatedSession(subject_id=subject_id, role=Role.from_claim(role), token=token)

    async def logout(self):
        for key in SESSION_KEYS:
            await self.session_store.delete(key)
        logger.info("Teacher session cleared.")
