"""Shared Streamlit session helpers for the pages."""
import streamlit as st

from src.services.identity_cache import IdentityCache

# st.fragment replaced st.experimental_fragment; older releases have neither
FRAGMENT_DECORATOR = getattr(st, "fragment", None) or getattr(st, "experimental_fragment", None)

FORM_FEEDBACK = "registration_form_feedback"


def get_identity_cache() -> IdentityCache:
    """Own-registration pointer for the current browser."""
    return IdentityCache(st.session_state, st.query_params)


def go_to(page: str) -> None:
    """Switch page and rerun."""
    st.session_state.current_page = page
    st.rerun()
