"""
apps/validation/va_control.py

VA Control: sign off finished videos and run them through launch.

Left: completed videos waiting for a decision (approve, or reject back to the
Strategist or the Editor with a reason), filtered on completion date.
Right: the launch stage (Ready to Launch / In Review / Live / Canceled), with
a status select and a hide-Live toggle, filtered on launch date. "Ready to
Launch" rows can still be rejected from here.
"""

from datetime import datetime

import streamlit as st

import config
import workflow_engine as wf
from common.data_access import get_workflow_service
from common.filters import render_date_filter
from common.layout import render_feedback, render_variant_table, run_action


def _rows(variants, strategies_by_id, date_field, date_label):
    rows = []
    for v in variants:
        strategy = strategies_by_id.get(v.header_id)
        rows.append({
            "Name": v.name,
            "Product": strategy.product if strategy else "-",
            "Format": strategy.format if strategy else "-",
            "Status": v.status,
            "Video": v.video_link or "-",
            date_label: getattr(v, date_field) or "-",
        })
    return rows


class Page:
    def __init__(self, role: str, today: str):
        self.role = role
        self.today = today
        self.meta = {
            "title_override": "VA Control",
            "owner": "Validation",
            "last_updated": datetime.now().strftime("%Y-%m-%d %H:%M"),
            "data_source": "Visionary Store",
            "coming_soon": False,
        }
        self.service = get_workflow_service()
        self.strategies_by_id = {s.id: s for s in self.service.strategies}

    def _render_review_queue(self):
        st.subheader("🔍 Awaiting validation")
        date_range = render_date_filter("va_review", label="Completed")
        pending = self.service.va_review_queue(date_range)
        if not pending:
            st.success("No completed videos waiting.")
            return

        render_variant_table(_rows(pending, self.strategies_by_id, "comp_date", "Completed"))

        for v in pending:
            with st.container(border=True):
                st.markdown(f"**{v.name}**")
                if v.video_link:
                    st.markdown(f"[Watch video]({v.video_link})")
                if v.rejection_history:
                    with st.popover(f"History ({len(v.rejection_history)})"):
                        render_feedback(list(v.rejection_history))

                if st.button("✅ Approve for launch", key=f"va::approve::{v.id}"):
                    if run_action(lambda: self.service.approve_variant(v.id), "Approved for launch."):
                        st.rerun()

                self._render_reject_form(v, "review")

    def _render_launch_queue(self):
        st.subheader("🚀 Launch")
        hide_live = st.checkbox("Hide Live", key="va::hide_live")
        date_range = render_date_filter("va_launch", label="Launched")
        launching = self.service.va_launch_queue(date_range, hide_live)
        if not launching:
            st.info("Nothing in the launch stage for these filters.")
            return

        render_variant_table(_rows(launching, self.strategies_by_id, "launch_date", "Launched"))

        options = list(config.VA_STATUS_OPTIONS)
        for v in launching:
            cols = st.columns([3, 2, 1])
            cols[0].markdown(f"**{v.name}**")
            picked = cols[1].selectbox("Status", options, index=options.index(v.status),
                                       key=f"va::status::{v.id}::{v.status}", label_visibility="collapsed")
            if picked != v.status:
                if run_action(lambda: self.service.change_status(v.id, picked, wf.VA, self.today)):
                    st.rerun()

            if v.status in wf.REJECTABLE_FROM[wf.VA]:
                with cols[2].popover("↩"):
                    self._render_reject_form(v, "launch")

    def _render_reject_form(self, v, pane):
        with st.form(f"va::reject::{pane}::{v.id}", clear_on_submit=True):
            destination = st.radio("Send back to", list(wf.REJECTION_ROUTES[wf.VA]), horizontal=True)
            reason = st.text_input("Reason for rejection")
            if st.form_submit_button("↩ Reject"):
                if run_action(lambda: self.service.reject_variant(v.id, wf.VA, reason, destination, self.today),
                              f"Sent back to the {destination}."):
                    st.rerun()

    def render_body(self, role: str, today: str) -> None:
        if self.service.error:
            st.error(f"Store error: {self.service.error}")
        if self.service.loading:
            st.info("Loading validation queues...")
            return

        left, right = st.columns(2)
        with left:
            self._render_review_queue()
        with right:
            self._render_launch_queue()


def render_page(role: str, today: str) -> (callable, dict):
    page = Page(role=role, today=today)
    return page.render_body, page.meta
