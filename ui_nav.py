# ui_nav.py

from datetime import date

import streamlit as st

from date_codec import format_date, parse_date
from security import ROLE_LABELS


def build_sidebar(user, role, section_icons, allowed_pages):
    """
    Draw the sidebar UI and update session state
    (active_section, active_page_label, role, working_date).

    Returns a dict:
      {
        "active_section": ...,
        "active_page_label": ...,
        "working_date": "DD/MM/YYYY",
      }
    """

    # --- 1. Initialize Session State (Defaults) ---
    if "active_section" not in st.session_state or st.session_state["active_section"] not in allowed_pages:
        st.session_state["active_section"] = list(allowed_pages.keys())[0]

    if (
            "active_page_label" not in st.session_state
            or st.session_state["active_page_label"] not in allowed_pages[st.session_state["active_section"]]
    ):
        st.session_state["active_page_label"] = list(
            allowed_pages[st.session_state["active_section"]].keys()
        )[0]

    # --- 2. Get Active State ---
    active_section = st.session_state["active_section"]
    active_page_label = st.session_state["active_page_label"]

    with st.sidebar:
        st.markdown("### 🎯 Visionary")
        st.write(f"**User:** {user}")

        # --- 3. Navigation ---
        for section_name, pages in allowed_pages.items():
            icon = section_icons.get(section_name, "📁")
            expanded_default = (section_name == active_section)
            with st.expander(f"{icon} {section_name}", expanded=expanded_default):
                for page_label in pages.keys():
                    is_current = (section_name == active_section and page_label == active_page_label)
                    button_label = f"• {page_label}"
                    if is_current:
                        button_label = f"✅ {page_label}"
                    clicked = st.button(
                        button_label,
                        key=f"nav::{section_name}::{page_label}"
                    )
                    if clicked:
                        st.session_state["active_section"] = section_name
                        st.session_state["active_page_label"] = page_label
                        st.rerun()

        # --- 4. Working Date Picker ---
        # Every date stamp (review/edit/completion/launch) uses this date.
        current = parse_date(st.session_state.get("working_date")) or date.today()
        picked = st.date_input(
            "Working date",
            value=current,
            format="DD/MM/YYYY",
            help="Dates stamped by status changes use this day. Defaults to today.",
        )
        if picked and format_date(picked) != st.session_state.get("working_date"):
            st.session_state["working_date"] = format_date(picked)
            st.rerun()

        # --- 5. Sidebar Footer ---
        st.markdown("---")
        roles = list(ROLE_LABELS.keys())
        new_role = st.selectbox(
            "Viewing as",
            options=roles,
            index=roles.index(role) if role in roles else 0,
            format_func=lambda r: ROLE_LABELS[r],
        )
        if new_role != role:
            st.session_state["role"] = new_role
            st.rerun()

    # --- 6. Return the active STATE ---
    return {
        "active_section": st.session_state["active_section"],
        "active_page_label": st.session_state["active_page_label"],
        "working_date": st.session_state["working_date"],
    }
