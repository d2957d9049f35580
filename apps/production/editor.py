"""
apps/production/editor.py

The Editor's page: take briefs in, turn them into videos.

-------------------------------------------------------------------------------
PURPOSE & FUNCTIONALITY:
-------------------------------------------------------------------------------
1.  Approval queue (top):
    - Briefs the Strategist handed over that nobody has accepted yet,
      oldest first. Only the first few are shown, with a "N more pending"
      count.
    - Approve stamps the edit date. Reject needs a reason and sends the
      brief back to the Strategist.

2.  Production queue (below):
    - Everything in production or beyond, sorted by edit date.
    - Status select (Ready to edit / Completed), video link editing and
      VA feedback for each row. Rows back with the Strategist are marked
      "Scripting"; validated rows are read-only here.
    - Edit-date filter, sort toggle, hide completed, and "Show more".
-------------------------------------------------------------------------------
"""

from datetime import datetime

import streamlit as st

import config
import queues
import workflow_engine as wf
from common.data_access import get_workflow_service
from common.filters import render_date_filter
from common.layout import render_feedback, render_variant_table, run_action

VISIBLE_KEY = "editor::visible_count"


def _display_status(v) -> str:
    if wf.is_scripting(v):
        return "Scripting"
    return wf.effective_status(v)


def _production_rows(variants, strategies_by_id):
    rows = []
    for v in variants:
        strategy = strategies_by_id.get(v.header_id)
        rows.append({
            "Name": v.name,
            "Product": strategy.product if strategy else "-",
            "Format": strategy.format if strategy else "-",
            "Status": _display_status(v),
            "Script": v.script_link or "-",
            "Video": v.video_link or "-",
            "Accepted": v.edit_date or "-",
            "Completed": v.comp_date or "-",
            "VA feedback": len(wf.editor_feedback(v)),
        })
    return rows


class Page:
    def __init__(self, role: str, today: str):
        self.role = role
        self.today = today
        self.meta = {
            "title_override": "Editor",
            "owner": "Video Production",
            "last_updated": datetime.now().strftime("%Y-%m-%d %H:%M"),
            "data_source": "Visionary Store",
            "coming_soon": False,
        }
        self.service = get_workflow_service()
        self.strategies_by_id = {s.id: s for s in self.service.strategies}

    # --- Approval queue ---

    def _render_approval_queue(self):
        st.subheader("📥 Approval queue")
        pending = self.service.approval_queue()
        if not pending:
            st.success("No briefs waiting for approval.")
            return

        shown, hidden = queues.reveal(pending, config.APPROVAL_PREVIEW_COUNT)
        for v in shown:
            strategy = self.strategies_by_id.get(v.header_id)
            with st.container(border=True):
                header = f"**{v.name}**"
                if strategy:
                    header += f" · {strategy.product} · {strategy.format}"
                st.markdown(header)
                st.caption(f"Handed over {v.review_date or '-'} · Landing page: {v.landing_page}")
                st.write(v.concept)
                if v.script_link:
                    st.markdown(f"[Open script]({v.script_link})")

                c1, c2 = st.columns([1, 3])
                if c1.button("✅ Approve", key=f"editor::approve::{v.id}"):
                    if run_action(lambda: self.service.accept_variant(v.id, self.today),
                                  "Brief accepted into production."):
                        st.rerun()
                with c2.form(f"editor::reject::{v.id}", clear_on_submit=True):
                    reason = st.text_input("Reason for rejection")
                    if st.form_submit_button("↩ Reject to Strategist"):
                        if run_action(lambda: self.service.reject_variant(v.id, wf.EDITOR, reason,
                                                                          today=self.today),
                                      "Brief sent back to the Strategist."):
                            st.rerun()

        if hidden:
            st.caption(f"{hidden} more pending")

    # --- Production queue ---

    def _render_row_controls(self, v):
        key = f"editor::{v.id}"
        cols = st.columns([3, 2, 4, 1])
        cols[0].markdown(f"**{v.name}**")

        if wf.is_scripting(v):
            cols[1].caption("✍️ Scripting")
            return
        if v.status in wf.LAUNCH_STAGE:
            cols[1].caption(f"🔒 {v.status}")
            return

        current = wf.effective_status(v)
        options = list(config.EDITOR_STATUS_OPTIONS)
        if current not in options:
            options = [current] + options
        picked = cols[1].selectbox("Status", options, index=options.index(current), key=f"{key}::status::{current}")
        if picked != current:
            if run_action(lambda: self.service.change_status(v.id, picked, wf.EDITOR, self.today)):
                st.rerun()

        link = cols[2].text_input("Video link", value=v.video_link, key=f"{key}::video::{v.video_link}",
                                  disabled=v.status == wf.COMPLETED)
        if link != v.video_link:
            if run_action(lambda: self.service.save_video_link(v.id, link), "Video link saved."):
                st.rerun()

        feedback = wf.editor_feedback(v)
        if feedback:
            with cols[3].popover(f"💬 {len(feedback)}"):
                render_feedback(feedback)

    def _render_production_queue(self):
        st.subheader("🎬 Production")
        c1, c2 = st.columns(2)
        sort_order = c1.selectbox(
            "Order", ["desc", "asc"], key="editor::sort",
            format_func=lambda x: "Newest accepted first" if x == "desc" else "Oldest accepted first",
        )
        hide_completed = c2.checkbox("Hide completed", key="editor::hide_completed")
        date_range = render_date_filter("editor", label="Accepted")

        rows = self.service.production_queue(date_range, sort_order, hide_completed)
        if not rows:
            st.info("Nothing in production for these filters.")
            return

        visible = st.session_state.get(VISIBLE_KEY, config.PRODUCTION_PAGE_SIZE)
        shown, hidden = queues.reveal(rows, visible)

        render_variant_table(_production_rows(shown, self.strategies_by_id))
        for v in shown:
            self._render_row_controls(v)

        if hidden:
            if st.button(f"Show more ({hidden} hidden)", key="editor::show_more"):
                st.session_state[VISIBLE_KEY] = visible + config.PRODUCTION_PAGE_SIZE
                st.rerun()

    def render_body(self, role: str, today: str) -> None:
        if self.service.error:
            st.error(f"Store error: {self.service.error}")
        if self.service.loading:
            st.info("Loading production data...")
            return

        self._render_approval_queue()
        st.markdown("---")
        self._render_production_queue()


def render_page(role: str, today: str) -> (callable, dict):
    page = Page(role=role, today=today)
    return page.render_body, page.meta
