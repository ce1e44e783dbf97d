"""Registration form, in create and edit mode."""
import logging
from typing import Any, Dict, Optional

import streamlit as st

from src.models.registration import Registration
from src.services.config_service import evaluate_admission, get_config
from src.services.registration_service import (
    get_all_registrations,
    submit_registration,
    update_registration,
)
from src.ui.state import FORM_FEEDBACK, get_identity_cache, go_to
from src.utils.exceptions import (
    EditLimitReachedError,
    PersistenceFailure,
    RegistrationClosedError,
    RegistrationNotFoundError,
    ValidationError,
)
from src.utils.settings import EDIT_POLICY_SINGLE, get_settings

logger = logging.getLogger(__name__)

MAX_FAMILY_MEMBERS = 5


def _initial_values(own: Optional[Registration]) -> Dict[str, Any]:
    if own is None:
        return {"name": "", "englishName": "", "phone": "",
                "adultFamilyCount": 0, "childFamilyCount": 0}
    return {
        "name": own.name,
        "englishName": own.english_name,
        "phone": own.phone,
        "adultFamilyCount": min(own.adult_family_count, MAX_FAMILY_MEMBERS),
        "childFamilyCount": min(own.child_family_count, MAX_FAMILY_MEMBERS),
    }


def _submit(payload: Dict[str, Any], own: Optional[Registration]) -> Optional[str]:
    """
    Send the form to the reconciler.

    Returns:
        Error message to show, or None on success
    """
    identity = get_identity_cache()
    try:
        if own is not None:
            update_registration(own.id, payload, identity=identity)
            st.session_state[FORM_FEEDBACK] = "信息更新成功！2026年1月10日不见不散！"
        else:
            result = submit_registration(payload, identity=identity)
            if result.created:
                st.session_state[FORM_FEEDBACK] = "报名成功！2026年1月10日不见不散！"
            else:
                st.session_state[FORM_FEEDBACK] = "已找到同名报名，信息已更新。"
        return None
    except RegistrationClosedError as e:
        return e.message
    except (EditLimitReachedError, ValidationError) as e:
        return str(e)
    except RegistrationNotFoundError:
        identity.forget()
        return "未找到您的报名信息。"
    except PersistenceFailure:
        logger.exception("Registration submit failed")
        return "提交失败，请检查网络后重新提交。"


def render_registration_form(edit_mode: bool = False) -> None:
    """Render the form. Edit mode pre-fills and updates the own registration."""
    settings = get_settings()
    registrations = get_all_registrations()
    own = get_identity_cache().resolve(registrations) if edit_mode else None

    if edit_mode and own is None:
        st.warning("未找到您的报名信息。")
        if st.button("返回首页", key="form_missing_back"):
            go_to("home")
        return

    if own is not None and settings.edit_policy == EDIT_POLICY_SINGLE and own.has_edited:
        st.warning("您已经修改过一次报名信息，无法再次修改。")
        if st.button("返回首页", key="form_edited_back"):
            go_to("home")
        return

    config = get_config()
    decision = evaluate_admission(config, registrations, own_registration=own)

    st.header("修改我的报名" if edit_mode else "活动报名")
    if not decision.allowed:
        st.error(decision.message)

    values = _initial_values(own)
    with st.form("registration_form"):
        name = st.text_input("中文姓名", value=values["name"], max_chars=50, placeholder="真实姓名")
        english_name = st.text_input("英文名 / Alias", value=values["englishName"], placeholder="English Name")
        phone = st.text_input("联系电话", value=values["phone"], placeholder="手机号码")

        count_cols = st.columns(2)
        with count_cols[0]:
            adults = st.number_input("随行大人 (自理)", min_value=0, max_value=MAX_FAMILY_MEMBERS,
                                     value=values["adultFamilyCount"], step=1)
        with count_cols[1]:
            children = st.number_input("随行儿童 (支持)", min_value=0, max_value=MAX_FAMILY_MEMBERS,
                                       value=values["childFamilyCount"], step=1)

        st.caption(f"合计占用 {1 + int(adults) + int(children)} 个名额")
        submitted = st.form_submit_button(
            "确认修改" if edit_mode else "锁定席位",
            type="primary",
            disabled=not decision.allowed,
            width="stretch",
        )

    if submitted:
        payload = {
            "name": name,
            "englishName": english_name,
            "phone": phone,
            "adultFamilyCount": adults,
            "childFamilyCount": children,
        }
        error = _submit(payload, own)
        if error:
            st.error(f"❌ {error}")
        else:
            go_to("home")

    if st.button("取消并返回", key="form_cancel"):
        go_to("home")
