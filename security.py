# security.py

import streamlit as st

import config
from date_codec import today

# Dashboard roles, as shown in the sidebar's "Viewing as" picker.
# "admin" can open every page.
ROLE_LABELS = {
    "admin": "Administrator",
    "strategist": "Creative Strategist",
    "editor": "Editor",
    "va": "Validation (VA)",
    "reviewer": "Reviewer",
}


def get_user_session():
    """Return (and initialise if needed) the session dict."""
    if "role" not in st.session_state:
        st.session_state["role"] = "admin"
        st.session_state["user"] = "John Doe"
    if "active_section" not in st.session_state:
        st.session_state["active_section"] = None
    if "active_page_label" not in st.session_state:
        st.session_state["active_page_label"] = None
    if "working_date" not in st.session_state:
        st.session_state["working_date"] = today(config.EMULATED_DATE)
    if "admin_unlocked" not in st.session_state:
        st.session_state["admin_unlocked"] = False

    return {
        "role": st.session_state["role"],
        "user": st.session_state["user"],
        "working_date": st.session_state["working_date"],
    }


def get_allowed_pages_for_role(role, all_pages):
    """
    Filter ALL_PAGES down to only the sections/pages this role can view.
    Returns a dict in the same shape as ALL_PAGES but pruned.
    """
    filtered = {}
    for section_name, pages in all_pages.items():
        allowed_pages = {}
        for page_label, page_info in pages.items():
            if role in page_info["allowed_roles"]:
                allowed_pages[page_label] = page_info
        if allowed_pages:
            filtered[section_name] = allowed_pages
    return filtered
