"""Unit tests for admin_service."""
import pytest
from unittest.mock import patch

from src.services.admin_service import (
    authenticate_admin,
    clear_all_registrations,
    is_admin_authenticated,
    login_admin,
    logout_admin,
    require_admin,
)
from src.services.document_store import CAMPUS_KEY, CONFIG_KEY, REGISTRATIONS_KEY
from src.utils.exceptions import Forbidden
from src.utils.settings import reset_settings


class TestAuthenticateAdmin:
    """Test authenticate_admin function."""

    def test_authenticate_with_default_passphrase(self):
        """Test the built-in passphrase works when ADMIN_PASSWORD is unset."""
        assert authenticate_admin("sce2026") is True

    def test_authenticate_with_configured_passphrase(self, monkeypatch):
        """Test ADMIN_PASSWORD replaces the default."""
        monkeypatch.setenv("ADMIN_PASSWORD", "testpass")
        reset_settings()

        assert authenticate_admin("testpass") is True
        assert authenticate_admin("sce2026") is False

    def test_authenticate_with_wrong_password(self):
        """Test authentication fails with wrong password."""
        assert authenticate_admin("wrongpass") is False

    def test_authenticate_with_empty_or_non_string(self):
        """Test authentication fails with empty or non-string input."""
        assert authenticate_admin("") is False
        assert authenticate_admin(None) is False


class TestRequireAdmin:
    """Test require_admin and clear_all_registrations."""

    def test_require_admin_raises_forbidden(self):
        """Test wrong passphrase raises Forbidden."""
        with pytest.raises(Forbidden):
            require_admin("nope")

    def test_clear_with_wrong_password_deletes_nothing(self, store):
        """Test Forbidden leaves the registrations in place."""
        store.set(REGISTRATIONS_KEY, [{"id": "a", "name": "张三"}])

        with pytest.raises(Forbidden):
            clear_all_registrations("nope")

        assert store.get(REGISTRATIONS_KEY) == [{"id": "a", "name": "张三"}]

    def test_clear_removes_only_registrations(self, store):
        """Test config and campus documents survive a clear."""
        store.set(REGISTRATIONS_KEY, [{"id": "a", "name": "张三"}])
        store.set(CONFIG_KEY, {"isRegistrationOpen": False})
        store.set(CAMPUS_KEY, [{"title": "停车"}])

        clear_all_registrations("sce2026")

        assert store.get(REGISTRATIONS_KEY) is None
        assert store.get(CONFIG_KEY) == {"isRegistrationOpen": False}
        assert store.get(CAMPUS_KEY) == [{"title": "停车"}]


class TestIsAdminAuthenticated:
    """Test is_admin_authenticated function."""

    @patch('src.services.admin_service.st')
    def test_returns_true_when_authenticated(self, mock_st):
        """Test returns True when admin is authenticated."""
        mock_st.session_state.get.return_value = True

        result = is_admin_authenticated()
        assert result is True
        mock_st.session_state.get.assert_called_once_with("admin_authenticated", False)

    @patch('src.services.admin_service.st')
    def test_returns_false_when_not_authenticated(self, mock_st):
        """Test returns False when admin is not authenticated."""
        mock_st.session_state.get.return_value = False

        assert is_admin_authenticated() is False


class TestLoginAdmin:
    """Test login_admin function."""

    @patch('src.services.admin_service.st')
    def test_login_success(self, mock_st):
        """Test successful login sets the session flag."""
        mock_st.session_state = {}

        success, message = login_admin("sce2026")

        assert success is True
        assert message == "登录成功"
        assert mock_st.session_state["admin_authenticated"] is True

    @patch('src.services.admin_service.st')
    def test_login_failure(self, mock_st):
        """Test failed login leaves session state untouched."""
        mock_st.session_state = {}

        success, message = login_admin("wrong")

        assert success is False
        assert message == "密码错误！"
        assert "admin_authenticated" not in mock_st.session_state


class TestLogoutAdmin:
    """Test logout_admin function."""

    @patch('src.services.admin_service.st')
    def test_logout_clears_flag(self, mock_st):
        """Test logout removes the session flag."""
        mock_st.session_state = {"admin_authenticated": True, "page": "admin"}

        logout_admin()

        assert mock_st.session_state == {"page": "admin"}

    @patch('src.services.admin_service.st')
    def test_logout_when_not_logged_in(self, mock_st):
        """Test logout is a no-op without the flag."""
        mock_st.session_state = {}

        logout_admin()

        assert mock_st.session_state == {}
