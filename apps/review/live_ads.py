"""
apps/review/live_ads.py

Live Ads: every ad currently Live, with its review status
(Running / Off / Needs Spend) and how long it has been running.
"""

from datetime import datetime

import streamlit as st

import config
import workflow_engine as wf
from common.data_access import get_workflow_service
from common.filters import render_date_filter
from common.layout import render_variant_table, run_action
from date_codec import days_since


class Page:
    def __init__(self, role: str, today: str):
        self.role = role
        self.today = today
        self.meta = {
            "title_override": "Live Ads",
            "owner": "Media Buying",
            "last_updated": datetime.now().strftime("%Y-%m-%d %H:%M"),
            "data_source": "Visionary Store",
            "coming_soon": False,
        }
        self.service = get_workflow_service()

    def render_body(self, role: str, today: str) -> None:
        if self.service.error:
            st.error(f"Store error: {self.service.error}")
        if self.service.loading:
            st.info("Loading live ads...")
            return

        c1, c2 = st.columns(2)
        hide_off = c1.checkbox("Hide Off", key="review::hide_off")
        hide_needs_spend = c2.checkbox("Hide Needs Spend", key="review::hide_needs_spend")
        date_range = render_date_filter("review", label="Launched")

        live = self.service.live_ads_queue(date_range, hide_off, hide_needs_spend)
        if not live:
            st.info("No live ads for these filters.")
            return

        strategies_by_id = {s.id: s for s in self.service.strategies}
        rows = []
        for v in live:
            strategy = strategies_by_id.get(v.header_id)
            rows.append({
                "Name": v.name,
                "Product": strategy.product if strategy else "-",
                "Format": strategy.format if strategy else "-",
                "Review": v.review_status or wf.RUNNING,
                "Launched": v.launch_date or "-",
                "Running for": days_since(v.launch_date, today),
                "Video": v.video_link or "-",
            })
        render_variant_table(rows, status_column="Review")

        for v in live:
            current = v.review_status or wf.RUNNING
            options = list(config.REVIEW_STATUS_OPTIONS)
            if current not in options:
                options = [current] + options
            cols = st.columns([3, 2])
            cols[0].markdown(f"**{v.name}** · {days_since(v.launch_date, today)}")
            picked = cols[1].selectbox("Review status", options, index=options.index(current),
                                       key=f"review::status::{v.id}::{current}", label_visibility="collapsed")
            if picked != current:
                if run_action(lambda: self.service.set_review_status(v.id, picked), "Review status saved."):
                    st.rerun()


def render_page(role: str, today: str) -> (callable, dict):
    page = Page(role=role, today=today)
    return page.render_body, page.meta
