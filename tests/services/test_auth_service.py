# tests/services/test_auth_service.py

import pytest
from unittest.mock import AsyncMock

from qr_attendance.db.session_store import InMemorySessionStore, TEACHER_ID_KEY, TEACHER_ROLE_KEY, TEACHER_TOKEN_KEY
from qr_attendance.models.attendance_models import AuthenticatedSession, Role
from qr_attendance.modules.ledger_client import LedgerAuthError, LedgerTransportError, LoginResult
from qr_attendance.services.auth_service import AuthService, AuthenticationError

# --- Test Fixtures ---

@pytest.fixture
def service_instance():
    """An AuthService with a mocked ledger and an empty in-memory store."""
    mock_ledger_client = AsyncMock()
    store = InMemorySessionStore()
    return AuthService(ledger_client=mock_ledger_client, session_store=store), mock_ledger_client, store


@pytest.mark.asyncio
class TestAuthService:

    async def test_teacher_login_persists_session(self, service_instance):
        service, mock_ledger_client, store = service_instance
        mock_ledger_client.login.return_value = LoginResult(role="teacher", token="tok-1", id="T001")

        session = await service.authenticate("teacher1", "password")

        assert session == AuthenticatedSession(subject_id="T001", role=Role.TEACHER, token="tok-1")
        assert await store.get(TEACHER_TOKEN_KEY) == "tok-1"
        assert await store.get(TEACHER_ID_KEY) == "T001"
        assert await store.get(TEACHER_ROLE_KEY) == "teacher"
        mock_ledger_client.login.assert_awaited_once_with("teacher1", "password")

    @pytest.mark.parametrize("identifier, password", [("", "password"), ("teacher1", ""), ("", "")])
    async def test_empty_fields_are_rejected_locally(self, service_instance, identifier, password):
        service, mock_ledger_client, _ = service_instance

        with pytest.raises(AuthenticationError, match="Please enter both username and password"):
            await service.authenticate(identifier, password)

        mock_ledger_client.login.assert_not_awaited()

    async def test_non_teacher_is_rejected_and_nothing_is_stored(self, service_instance):
        service, mock_ledger_client, store = service_instance
        mock_ledger_client.login.return_value = LoginResult(role="student", token="tok-2", id="S001")

        with pytest.raises(AuthenticationError, match="This login is for teachers only."):
            await service.authenticate("student1", "password")

        assert await store.get(TEACHER_TOKEN_KEY) is None
        assert await store.get(TEACHER_ID_KEY) is None
        assert await store.get(TEACHER_ROLE_KEY) is None

    async def test_rejected_credentials_surface_ledger_message(self, service_instance):
        service, mock_ledger_client, store = service_instance
        mock_ledger_client.login.side_effect = LedgerAuthError("Invalid credentials")

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await service.authenticate("teacher1", "wrong")

        assert await store.get(TEACHER_ID_KEY) is None

    async def test_transport_failure_uses_generic_message(self, service_instance):
        service, mock_ledger_client, _ = service_instance
        mock_ledger_client.login.side_effect = LedgerTransportError("Could not reach the attendance service.")

        with pytest.raises(AuthenticationError, match="An error occurred during login."):
            await service.authenticate("teacher1", "password")

    async def test_current_session_and_logout(self, service_instance):
        service, mock_ledger_client, store = service_instance
        mock_ledger_client.login.return_value = LoginResult(role="teacher", token="tok-1", id="T001")
        await service.authenticate("teacher1", "password")

        current = await service.current_session()
        assert current is not None
        assert current.subject_id == "T001"

        await service.logout()

        assert await service.current_session() is None
        assert await store.get(TEACHER_TOKEN_KEY) is None
        assert await store.get(TEACHER_ID_KEY) is None
        assert await store.get(TEACHER_ROLE_KEY) is None
