"""Home page: live headcount, deadline state and the user's own entry."""
from typing import Optional, Tuple

import streamlit as st

from src.models.registration import Registration
from src.services.aggregation_service import (
    compute_stats,
    progress_percent,
    remaining_slots,
)
from src.services.config_service import (
    REASON_DEADLINE_PASSED,
    REASON_PAUSED,
    AdmissionDecision,
    evaluate_admission,
    get_config,
)
from src.services.registration_service import get_all_registrations
from src.ui.state import FORM_FEEDBACK, FRAGMENT_DECORATOR, get_identity_cache, go_to
from src.utils.date_utils import format_millis
from src.utils.settings import EDIT_POLICY_SINGLE, get_settings

EVENT_TITLE = "CORSAIR (SCE) 2026 团建 · 东莞松山湖"
EVENT_DETAILS = [
    "📅 2026-01-10 09:30 集合",
    "📍 东莞松山湖 · 华为溪流背坡村 F区南一门",
    "🚂 集合大合照 → 自由游玩 → 园内午餐 → 结束返程",
]


def _status_badge(decision: AdmissionDecision, remaining: int) -> Tuple[str, str]:
    """Return (label, color) for the registration status badge."""
    if decision.reason == REASON_DEADLINE_PASSED:
        return "报名已截止", "#dc2626"
    if decision.reason == REASON_PAUSED:
        return "报名已暂停", "#f59e0b"
    if remaining <= 0:
        return "名额已满", "#dc2626"
    color = "#15803d" if remaining > 5 else "#dc2626"
    return f"当前剩余：{remaining} 位", color


def _primary_action(
    own: Optional[Registration],
    decision: AdmissionDecision,
    edit_policy: str,
) -> Tuple[str, Optional[str], bool]:
    """
    Decide the main call to action.

    Returns:
        Tuple of (label, target_page, enabled)
    """
    if own is not None:
        if edit_policy == EDIT_POLICY_SINGLE:
            if own.has_edited:
                return "已报名 (已修改)", None, False
            return "修改我的报名 (限1次)", "edit", decision.allowed
        return "修改我的报名", "edit", decision.allowed

    if decision.reason == REASON_DEADLINE_PASSED:
        return "报名截止", None, False
    if not decision.allowed:
        return "暂不可报名", None, False
    return "抢位预约", "register", True


def _render_progress() -> None:
    """Headcount block, refreshed by polling."""
    registrations = get_all_registrations()
    config = get_config()
    stats = compute_stats(registrations)
    decision = evaluate_admission(config, registrations)
    total = stats.total_headcount

    label, color = _status_badge(decision, remaining_slots(total, config.max_capacity))
    st.markdown(
        f"<span style='background:{color};color:white;padding:4px 12px;"
        f"border-radius:999px;font-weight:700;'>{label}</span>",
        unsafe_allow_html=True,
    )
    st.progress(progress_percent(total, config.max_capacity) / 100.0,
                text=f"活动报名进度 {total} / {config.max_capacity}")
    st.caption(f"截止时间：{format_millis(config.deadline)}")


def render_home() -> None:
    """Render the home page."""
    settings = get_settings()

    feedback = st.session_state.pop(FORM_FEEDBACK, None)
    if feedback:
        st.success(f"🎉 {feedback}")

    st.title(EVENT_TITLE)
    for line in EVENT_DETAILS:
        st.markdown(line)

    if FRAGMENT_DECORATOR:
        FRAGMENT_DECORATOR(run_every=settings.refresh_interval)(_render_progress)()
    else:
        _render_progress()

    registrations = get_all_registrations()
    own = get_identity_cache().resolve(registrations)
    decision = evaluate_admission(get_config(), registrations, own_registration=own)
    label, target, enabled = _primary_action(own, decision, settings.edit_policy)

    if own is not None:
        st.info(f"您已报名：{own.name}（共 {own.headcount} 人）")

    action_cols = st.columns(2, gap="small")
    with action_cols[0]:
        if st.button(label, disabled=not enabled, type="primary",
                     width="stretch", key="home_primary_action"):
            go_to(target)
    with action_cols[1]:
        if st.button("查看指南", width="stretch", key="home_campus"):
            go_to("campus")
