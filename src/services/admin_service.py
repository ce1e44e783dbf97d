"""Admin passphrase check and session state management."""
import hmac
import logging
from typing import Tuple

import streamlit as st

from src.services.registration_service import clear_registrations
from src.utils.exceptions import Forbidden
from src.utils.settings import get_settings

logger = logging.getLogger(__name__)


def authenticate_admin(password: str) -> bool:
    """
    Check the shared admin passphrase.

    Args:
        password: Passphrase entered by the user

    Returns:
        True if it matches ADMIN_PASSWORD, False otherwise
    """
    if not isinstance(password, str) or not password:
        return False
    expected = get_settings().admin_password
    return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def require_admin(password: str) -> None:
    """
    Raises:
        Forbidden: If the passphrase is wrong
    """
    if not authenticate_admin(password):
        logger.warning("Rejected admin passphrase")
        raise Forbidden("密码错误！")


def clear_all_registrations(password: str) -> None:
    """
    Clear the registration collection after checking the passphrase.

    Raises:
        Forbidden: If the passphrase is wrong (nothing is deleted)
        PersistenceFailure: If the store didn't accept the delete
    """
    require_admin(password)
    clear_registrations()


def is_admin_authenticated() -> bool:
    """
    Check if admin is authenticated in current session.

    Returns:
        True if st.session_state['admin_authenticated'] is True
    """
    return st.session_state.get("admin_authenticated", False)


def login_admin(password: str) -> Tuple[bool, str]:
    """
    Log in with the shared passphrase.

    Returns:
        Tuple of (success: bool, message: str)
        - (True, "登录成功") on success
        - (False, "密码错误！") on failure
    """
    if authenticate_admin(password):
        st.session_state["admin_authenticated"] = True
        return True, "登录成功"
    return False, "密码错误！"


def logout_admin() -> None:
    """Clear admin flag from session state."""
    if "admin_authenticated" in st.session_state:
        del st.session_state["admin_authenticated"]
