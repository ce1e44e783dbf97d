"""Campus guide page."""
from typing import Any, Dict, List

import streamlit as st

from src.services.campus_service import get_campus_guide


def _section_items(section: Dict[str, Any]) -> List[str]:
    items = section.get("items")
    if not isinstance(items, list):
        return []
    return [str(item) for item in items if str(item).strip()]


def render_campus_info() -> None:
    """Render campus guide sections."""
    st.header("园区指南")
    sections = get_campus_guide()

    if not sections:
        st.info("园区指南暂未发布，敬请期待。")
        return

    for index, section in enumerate(sections):
        image_col, text_col = st.columns([3, 2]) if index % 2 == 0 else st.columns([2, 3])
        image = section.get("image")
        text_target = text_col if index % 2 == 0 else image_col
        image_target = image_col if index % 2 == 0 else text_col

        with image_target:
            if isinstance(image, str) and image:
                st.image(image, width="stretch")
        with text_target:
            st.subheader(str(section.get("title", "")))
            st.write(str(section.get("description", "")))
            for item in _section_items(section):
                st.markdown(f"- {item}")
