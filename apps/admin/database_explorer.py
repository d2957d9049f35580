"""
apps/admin/database_explorer.py

Database Explorer: a **read-only** window onto the document store.

It is password-gated (AuthService) and shows:
- Connection status and the last store error.
- The raw `strategies` and `variants` collections as tables.
- The most recent writes from the change log.
"""

import json
from datetime import datetime

import pandas as pd
import streamlit as st

from auth.auth_service import AuthService
from common.data_access import get_workflow_service
from document_store import StoreError

UNLOCK_KEY = "admin_unlocked"


def _docs_frame(docs: list) -> pd.DataFrame:
    """Nested values (rejection history) are shown as JSON text."""
    df = pd.DataFrame(docs)
    for column in df.columns:
        if df[column].map(lambda x: isinstance(x, (list, dict))).any():
            df[column] = df[column].map(lambda x: json.dumps(x) if isinstance(x, (list, dict)) else x)
    return df


class Page:
    def __init__(self, role: str, today: str):
        self.role = role
        self.today = today
        self.meta = {
            "title_override": "Database Explorer",
            "owner": "Visionary Admin",
            "last_updated": datetime.now().strftime("%Y-%m-%d %H:%M"),
            "data_source": "Visionary Store",
            "coming_soon": False,
        }
        self.auth = AuthService()
        self.service = get_workflow_service()

    def _render_gate(self) -> bool:
        if st.session_state.get(UNLOCK_KEY):
            return True

        st.markdown("#### 🔐 Admin access")
        with st.form("admin::unlock"):
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Unlock"):
                result = self.auth.unlock_admin(password)
                if result.authenticated:
                    st.session_state[UNLOCK_KEY] = True
                    st.rerun()
                st.error(result.error)
        return False

    def _render_status(self):
        connected = self.service.connected and self.service.store.ping()
        c1, c2, c3 = st.columns(3)
        c1.metric("Connection", "Connected" if connected else "Disconnected")
        c2.metric("Strategies", len(self.service.strategy_docs))
        c3.metric("Variants", len(self.service.variant_docs))
        if self.service.error:
            st.error(f"Last store error: {self.service.error}")
        else:
            st.success("No store errors.")

    def render_body(self, role: str, today: str) -> None:
        if not self._render_gate():
            return

        self._render_status()

        tab_strategies, tab_variants, tab_log = st.tabs(["Strategies", "Variants", "Change log"])
        with tab_strategies:
            docs = self.service.strategy_docs
            if docs:
                st.dataframe(_docs_frame(docs), use_container_width=True, hide_index=True)
            else:
                st.info("The strategies collection is empty.")
        with tab_variants:
            docs = self.service.variant_docs
            if docs:
                st.dataframe(_docs_frame(docs), use_container_width=True, hide_index=True)
            else:
                st.info("The variants collection is empty.")
        with tab_log:
            try:
                log = self.service.store.get_change_log(limit=200)
            except StoreError as e:
                st.error(f"Could not read the change log: {e}")
                log = []
            if log:
                st.dataframe(pd.DataFrame(log), use_container_width=True, hide_index=True)
            else:
                st.info("No writes recorded yet.")

        if st.button("Lock"):
            st.session_state[UNLOCK_KEY] = False
            st.rerun()


def render_page(role: str, today: str) -> (callable, dict):
    page = Page(role=role, today=today)
    return page.render_body, page.meta
