"""Admin panel UI: stats, entry management and registration settings."""
import json
import logging
import traceback
from datetime import time as dt_time
from typing import Any, Dict, List

import streamlit as st

from src.models.app_config import AppConfig
from src.models.registration import Registration
from src.services.admin_service import (
    clear_all_registrations,
    is_admin_authenticated,
    login_admin,
    logout_admin,
)
from src.services.aggregation_service import compute_stats, remaining_slots
from src.services.campus_service import get_campus_guide, save_campus_guide
from src.services.config_service import get_config, save_config
from src.services.edit_log_service import get_edit_logs
from src.services.registration_service import (
    admin_update_registration,
    delete_registration,
    get_all_registrations,
)
from src.ui.state import go_to
from src.utils.date_utils import format_millis, from_millis, parse_deadline
from src.utils.exceptions import (
    Forbidden,
    PersistenceFailure,
    RegistrationNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EDIT_LOG_LIMIT = 50


def _show_admin_exception(error: Exception, context: str) -> None:
    """Display error details in UI and log full traceback."""
    logger.exception("Admin panel error during %s", context)

    st.error(f"❌ {context}失败：{error}")
    with st.expander("🔍 错误详情"):
        st.code("".join(traceback.format_exception(type(error), error, error.__traceback__)))


def _set_feedback(level: str, message: str) -> None:
    st.session_state["admin_feedback"] = (level, message)


def _registration_rows(registrations: List[Registration]) -> List[Dict[str, Any]]:
    """Table rows for the registration list, in stored order."""
    return [
        {
            "姓名": reg.name,
            "英文名": reg.english_name or "-",
            "电话": reg.phone or "-",
            "随行大人": reg.adult_family_count,
            "随行儿童": reg.child_family_count,
            "合计": reg.headcount,
            "已修改": "是" if reg.has_edited else "否",
            "更新时间": format_millis(reg.timestamp),
        }
        for reg in registrations
    ]


def _parse_campus_json(text: str) -> List[Dict[str, Any]]:
    """
    Parse the campus guide editor content.

    Raises:
        ValidationError: If text is not a JSON array of objects
    """
    try:
        data = json.loads(text or "[]")
    except json.JSONDecodeError as e:
        raise ValidationError(f"JSON 格式错误：{e.msg}（第 {e.lineno} 行）")
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValidationError("园区指南必须是对象数组")
    return data


def render_login_page() -> None:
    """Render passphrase login form."""
    st.markdown("## 🔐 后台管理员登录")
    st.caption("此区域仅限 SCE Team 活动负责人访问。")

    with st.form("admin_login_form", clear_on_submit=False):
        password = st.text_input("密码", type="password", placeholder="请输入管理员密码",
                                 key="admin_password_input")
        submit = st.form_submit_button("解锁面板", width="stretch", type="primary")

    if submit:
        success, message = login_admin(password)
        if success:
            st.rerun()
        else:
            st.error(message)


def _render_stats(registrations: List[Registration], config: AppConfig) -> None:
    stats = compute_stats(registrations)
    cols = st.columns(4)
    cols[0].metric("预计总人数", stats.total_headcount,
                   delta=f"剩余 {remaining_slots(stats.total_headcount, config.max_capacity)}",
                   delta_color="off")
    cols[1].metric("员工总数", stats.registrants)
    cols[2].metric("家属(大人)", stats.adult_family)
    cols[3].metric("家属(儿童)", stats.child_family)


def _render_settings(config: AppConfig) -> None:
    st.markdown("### ⚙️ 报名设置")
    deadline = from_millis(config.deadline)

    with st.form("admin_config_form"):
        is_open = st.toggle("开放报名", value=config.is_registration_open)
        date_col, time_col, cap_col = st.columns(3)
        with date_col:
            deadline_date = st.date_input("截止日期", value=deadline.date())
        with time_col:
            deadline_time = st.time_input("截止时间", value=dt_time(deadline.hour, deadline.minute))
        with cap_col:
            max_capacity = st.number_input("名额目标", min_value=0, value=config.max_capacity, step=1)
        submit = st.form_submit_button("💾 保存设置", type="primary")

    if submit:
        try:
            new_config = AppConfig(
                is_registration_open=is_open,
                deadline=parse_deadline(deadline_date.isoformat(), deadline_time.strftime("%H:%M")),
                max_capacity=int(max_capacity),
            )
            save_config(new_config)
            _set_feedback("success", "✅ 设置已保存")
            st.rerun()
        except (ValueError, PersistenceFailure) as error:
            _show_admin_exception(error, "保存设置")


def _render_entry_editor(registrations: List[Registration]) -> None:
    st.markdown("### ✏️ 编辑 / 删除报名")
    if not registrations:
        st.info("还没有人报名，快去分享报名链接吧！")
        return

    by_id = {reg.id: reg for reg in registrations}
    selected_id = st.selectbox(
        "选择报名",
        options=list(by_id.keys()),
        format_func=lambda rid: f"{by_id[rid].name} ({by_id[rid].phone or '-'})",
        key="admin_selected_registration",
    )
    selected = by_id[selected_id]

    with st.form(f"admin_edit_form_{selected.id}"):
        name = st.text_input("中文姓名", value=selected.name)
        english_name = st.text_input("英文名", value=selected.english_name)
        phone = st.text_input("联系电话", value=selected.phone)
        count_cols = st.columns(2)
        with count_cols[0]:
            adults = st.number_input("随行大人", min_value=0, value=selected.adult_family_count, step=1)
        with count_cols[1]:
            children = st.number_input("随行儿童", min_value=0, value=selected.child_family_count, step=1)
        save_col, delete_col = st.columns(2)
        with save_col:
            save = st.form_submit_button("💾 保存修改", type="primary", width="stretch")
        with delete_col:
            delete = st.form_submit_button("🗑️ 删除此报名", width="stretch")

    if save:
        try:
            admin_update_registration(selected.id, {
                "name": name,
                "englishName": english_name,
                "phone": phone,
                "adultFamilyCount": adults,
                "childFamilyCount": children,
            })
            _set_feedback("success", f"✅ 已更新 {name}")
            st.rerun()
        except ValidationError as error:
            st.error(f"❌ {error}")
        except (RegistrationNotFoundError, PersistenceFailure) as error:
            _show_admin_exception(error, "更新报名")

    if delete:
        try:
            if delete_registration(selected.id):
                _set_feedback("success", f"已删除 {selected.name}")
            else:
                _set_feedback("warning", "找不到该报名，可能已被删除")
            st.rerun()
        except PersistenceFailure as error:
            _show_admin_exception(error, "删除报名")


def _render_campus_editor() -> None:
    with st.expander("🗺️ 园区指南内容 (JSON)"):
        current = json.dumps(get_campus_guide(), ensure_ascii=False, indent=2)
        with st.form("admin_campus_form"):
            text = st.text_area("园区指南", value=current, height=300)
            submit = st.form_submit_button("💾 保存指南")
        if submit:
            try:
                save_campus_guide(_parse_campus_json(text))
                _set_feedback("success", "✅ 园区指南已保存")
                st.rerun()
            except ValidationError as error:
                st.error(f"❌ {error}")
            except PersistenceFailure as error:
                _show_admin_exception(error, "保存园区指南")


def _render_edit_logs() -> None:
    with st.expander("📜 最新修改动态"):
        logs = get_edit_logs(limit=EDIT_LOG_LIMIT)
        if not logs:
            st.caption("暂无记录。")
        for entry in logs:
            action = "新增" if entry.action == "create" else "修改"
            line = f"`{format_millis(entry.timestamp, '%m-%d %H:%M')}` **{entry.user_name}** {action}"
            if entry.details:
                line += f" · {entry.details}"
            st.markdown(line)


def _render_danger_zone() -> None:
    with st.expander("⚠️ 清空数据库"):
        st.warning("确认清除所有报名数据？此操作不可撤销。设置和园区指南不受影响。")
        with st.form("admin_clear_form"):
            password = st.text_input("再次输入管理员密码", type="password")
            submit = st.form_submit_button("清空所有报名")
        if submit:
            try:
                clear_all_registrations(password)
                _set_feedback("success", "已清空所有报名数据")
                st.rerun()
            except Forbidden as error:
                st.error(f"❌ {error}")
            except PersistenceFailure as error:
                _show_admin_exception(error, "清空数据")


def render_admin_panel() -> None:
    """Render admin management panel."""
    if not is_admin_authenticated():
        render_login_page()
        return

    feedback = st.session_state.pop("admin_feedback", None)
    if feedback:
        level, message = feedback
        if level == "success":
            st.success(message)
        elif level == "warning":
            st.warning(message)
        else:
            st.info(message)

    header_col, home_col, logout_col = st.columns([3, 1, 1], gap="small")
    with header_col:
        st.markdown("## 📊 SCE 报名数据看板")
    with home_col:
        if st.button("🏠 返回首页", width="stretch"):
            go_to("home")
    with logout_col:
        if st.button("🚪 登出", width="stretch"):
            logout_admin()
            go_to("home")

    registrations = get_all_registrations()
    config = get_config()

    _render_stats(registrations, config)
    st.caption(f"共 {len(registrations)} 组报名信息。")
    st.dataframe(_registration_rows(registrations), width="stretch", hide_index=True)

    _render_settings(config)
    _render_entry_editor(registrations)
    _render_campus_editor()
    _render_edit_logs()
    _render_danger_zone()
