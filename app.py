"""
团建活动报名系统主应用程序
Team-building Registration App
"""
import logging
import streamlit as st

from src.ui.admin_panel import render_admin_panel
from src.ui.campus_info import render_campus_info
from src.ui.home import render_home
from src.ui.registration_form import render_registration_form
from src.utils.settings import get_settings

logger = logging.getLogger(__name__)

PAGES = {
    "home": render_home,
    "register": lambda: render_registration_form(edit_mode=False),
    "edit": lambda: render_registration_form(edit_mode=True),
    "campus": render_campus_info,
    "admin": render_admin_panel,
}


# Streamlit 页面配置
st.set_page_config(
    page_title="CORSAIR (SCE) 2026 团建报名",
    page_icon="🚂",
    layout="wide",
    initial_sidebar_state="collapsed"
)


def configure_logging():
    """根据配置调整日志等级。"""
    level = getattr(logging, get_settings().log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def initialize_session_state():
    """初始化 session state 默认值。"""
    if "current_page" not in st.session_state:
        st.session_state.current_page = "home"

    if "admin_authenticated" not in st.session_state:
        st.session_state.admin_authenticated = False

    # ?page=edit 之类的链接直接进入对应页面
    if "url_params_processed" not in st.session_state:
        page = st.query_params.get("page")
        if page in PAGES:
            st.session_state.current_page = page
        st.session_state.url_params_processed = True


def apply_custom_css():
    """应用自定义 CSS 样式。"""
    st.markdown("""
        <style>
        #MainMenu {visibility: hidden;}
        footer {visibility: hidden;}

        .stButton > button {
            border-radius: 12px;
            font-weight: 700;
        }

        .stButton > button[kind="primary"] {
            background: #0ea5e9;
            color: white;
        }
        </style>
    """, unsafe_allow_html=True)


def render_navigation():
    """渲染导航菜单。"""
    nav_items = [("home", "🏠 首页"), ("campus", "🗺️ 园区指南"),
                 ("register", "📝 报名"), ("admin", "👤 管理")]
    nav_cols = st.columns(len(nav_items), gap="small")

    for col, (page, label) in zip(nav_cols, nav_items):
        with col:
            if st.button(label, width="stretch", key=f"nav_{page}"):
                st.session_state.current_page = page


def render_current_page():
    """根据当前页面状态渲染对应内容。"""
    try:
        renderer = PAGES.get(st.session_state.current_page)
        if renderer is None:
            st.error(f"未知的页面：{st.session_state.current_page}")
            if st.button("返回首页"):
                st.session_state.current_page = "home"
                st.rerun()
            return

        renderer()

    except Exception as e:
        # 错误边界
        logger.exception("Unhandled exception while rendering page")
        st.error("发生错误，请稍后再试")

        with st.expander("🔍 错误详情"):
            st.code(str(e))

        if st.button("返回首页"):
            st.session_state.current_page = "home"
            st.rerun()


def main():
    """主应用程序入口。"""
    configure_logging()
    initialize_session_state()
    apply_custom_css()
    render_navigation()
    render_current_page()


if __name__ == "__main__":
    main()
