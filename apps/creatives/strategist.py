"""
apps/creatives/strategist.py

The Creative Strategist's workspace. This is where every creative starts.

-------------------------------------------------------------------------------
PURPOSE & FUNCTIONALITY:
-------------------------------------------------------------------------------
1.  "Creatives" list:
    - One expander per creative header (product / format / description),
      newest first, holding its variants sorted by created date.
    - Filters: product, format, created-date range, hide Completed,
      hide Ready to edit.

2.  Modes (the toolbar radio):
    - View:   change a variant's status, set script links, read feedback,
              add variants.
    - Edit:   edit a header or a variant's brief. Completed / validated
              variants are locked.
    - Remove: delete headers or variants, but only pristine "In Progress"
              ones without rejection feedback.
    - Admin delete: delete anything, no guard.
-------------------------------------------------------------------------------
"""

from datetime import datetime

import streamlit as st

import config
import workflow_engine as wf
from common.data_access import get_workflow_service
from common.filters import render_date_filter
from common.layout import render_feedback, render_variant_table, run_action

MODES = ["View", "Edit", "Remove", "Admin delete"]


# --- Helper Functions (specific to this dashboard) ---

def _variant_rows(variants):
    rows = []
    for v in variants:
        rows.append({
            "Name": v.name,
            "Status": wf.effective_status(v),
            "Rejected": "↩" if v.status == wf.REJECTED else "",
            "Landing page": v.landing_page,
            "Target": v.target,
            "Concept": v.concept,
            "Script": v.script_link or "-",
            "Created": v.created_date,
            "Handed over": v.review_date or "-",
            "Feedback": len(wf.strategist_feedback(v)),
        })
    return rows


def _option_index(options, value):
    return options.index(value) if value in options else 0


# --- Streamlit Page Class ---

class Page:
    def __init__(self, role: str, today: str):
        self.role = role
        self.today = today
        self.meta = {
            "title_override": "Creative Strategist",
            "owner": "Creative Strategy",
            "last_updated": datetime.now().strftime("%Y-%m-%d %H:%M"),
            "data_source": "Visionary Store",
            "coming_soon": False,
        }
        self.service = get_workflow_service()

    # --- Toolbar & filters ---

    def _render_toolbar(self):
        cols = st.columns([3, 2, 2, 2])
        mode = cols[0].radio("Mode", MODES, horizontal=True, key="strategist::mode")
        self.sort_order = cols[1].selectbox(
            "Variant order", ["desc", "asc"], key="strategist::sort",
            format_func=lambda x: "Newest first" if x == "desc" else "Oldest first",
        )
        self.hide_completed = cols[2].checkbox("Hide Completed", key="strategist::hide_completed")
        self.hide_ready = cols[3].checkbox("Hide Ready to edit", key="strategist::hide_ready")

        fcols = st.columns(2)
        self.products = fcols[0].multiselect("Products", config.PRODUCT_OPTIONS,
                                             default=config.PRODUCT_OPTIONS, key="strategist::products")
        self.formats = fcols[1].multiselect("Formats", config.FORMAT_OPTIONS,
                                            default=config.FORMAT_OPTIONS, key="strategist::formats")
        self.date_range = render_date_filter("strategist", label="Created")
        return mode

    def _render_new_strategy_form(self):
        with st.expander("➕ New creative", expanded=False):
            with st.form("strategist::new_strategy", clear_on_submit=True):
                product = st.selectbox("Product", config.PRODUCT_OPTIONS, index=None)
                fmt = st.selectbox("Format", config.FORMAT_OPTIONS, index=None)
                batch_code = st.text_input("Batch code (optional)")
                description = st.text_area("Description")
                if st.form_submit_button("Create"):
                    if run_action(lambda: self.service.add_strategy(product, fmt, description, batch_code),
                                  "Creative added."):
                        st.rerun()

    # --- Per-variant controls ---

    def _render_variant_controls(self, v, mode):
        key = f"strategist::{v.id}"
        cols = st.columns([3, 3, 3, 2])
        cols[0].markdown(f"**{v.name}**  \n`{v.landing_page}`")

        if mode == "View":
            current = wf.effective_status(v)
            options = list(config.STRATEGIST_STATUS_OPTIONS)
            if current not in options:
                options = [current] + options
            locked = v.status in wf.STRATEGIST_LOCKED or v.status in wf.LAUNCH_STAGE
            picked = cols[1].selectbox("Status", options, index=_option_index(options, current),
                                       key=f"{key}::status::{current}", disabled=locked)
            if picked != current:
                if run_action(lambda: self.service.change_status(v.id, picked, wf.STRATEGIST, self.today)):
                    st.rerun()

            link = cols[2].text_input("Script link", value=v.script_link, key=f"{key}::script::{v.script_link}",
                                      disabled=locked)
            if link != v.script_link:
                if run_action(lambda: self.service.save_script_link(v.id, link), "Script link saved."):
                    st.rerun()

            feedback = wf.strategist_feedback(v)
            if feedback:
                with cols[3].popover(f"💬 {len(feedback)}"):
                    render_feedback(feedback)

        elif mode == "Edit":
            if not wf.can_strategist_edit(v):
                cols[1].caption("🔒 Completed or validated: locked.")
                return
            with cols[1].popover("✏️ Edit brief"):
                self._render_variant_edit_form(v)

        elif mode == "Remove":
            if cols[3].button("🗑 Remove", key=f"{key}::remove", disabled=not wf.can_delete_variant(v)):
                if run_action(lambda: self.service.remove_variant(v.id), "Variant removed."):
                    st.rerun()

        elif mode == "Admin delete":
            if cols[3].button("⛔ Delete", key=f"{key}::admin_delete"):
                if run_action(lambda: self.service.delete_variant(v.id), "Variant deleted."):
                    st.rerun()

    def _render_variant_edit_form(self, v):
        with st.form(f"strategist::edit_variant::{v.id}"):
            name = st.text_input("Name", value=v.name)
            status_options = list(config.STRATEGIST_STATUS_OPTIONS)
            if v.status not in status_options:
                status_options = [v.status] + status_options
            status = st.selectbox("Status", status_options, index=_option_index(status_options, v.status))
            landing = st.selectbox("Landing page", config.LANDING_PAGE_OPTIONS,
                                   index=_option_index(config.LANDING_PAGE_OPTIONS, v.landing_page))
            target = st.text_input("Target", value=v.target)
            concept = st.text_area("Concept", value=v.concept)
            script = st.text_input("Script link", value=v.script_link)
            if st.form_submit_button("Save"):
                fields = {"name": name, "status": status, "landingPage": landing,
                          "target": target, "concept": concept, "scriptLink": script}
                if run_action(lambda: self.service.edit_variant(v.id, fields, self.today), "Variant saved."):
                    st.rerun()

    def _render_new_variant_form(self, strategy):
        with st.form(f"strategist::new_variant::{strategy.id}", clear_on_submit=True):
            st.markdown("**New variant**")
            c1, c2 = st.columns(2)
            name = c1.text_input("Name")
            status = c2.selectbox("Status", [wf.IN_PROGRESS, wf.READY_TO_EDIT])
            landing = c1.selectbox("Landing page", config.LANDING_PAGE_OPTIONS, index=None)
            target = c2.text_input("Target")
            concept = st.text_area("Concept")
            script = st.text_input("Script link")
            if st.form_submit_button("Add variant"):
                fields = {"name": name, "status": status, "landingPage": landing or "",
                          "target": target, "concept": concept, "scriptLink": script}
                if run_action(lambda: self.service.create_variant(strategy.id, fields, self.today),
                              "Variant added."):
                    st.rerun()

    # --- Strategy rows ---

    def _render_strategy(self, strategy, mode):
        title = f"{strategy.product} · {strategy.format} · {strategy.description}"
        if strategy.batch_code:
            title += f" · [{strategy.batch_code}]"

        with st.expander(title, expanded=True):
            if mode == "Edit":
                with st.form(f"strategist::edit_strategy::{strategy.id}"):
                    c1, c2, c3 = st.columns(3)
                    product = c1.selectbox("Product", config.PRODUCT_OPTIONS,
                                           index=_option_index(config.PRODUCT_OPTIONS, strategy.product))
                    fmt = c2.selectbox("Format", config.FORMAT_OPTIONS,
                                       index=_option_index(config.FORMAT_OPTIONS, strategy.format))
                    batch_code = c3.text_input("Batch code", value=strategy.batch_code)
                    description = st.text_area("Description", value=strategy.description)
                    if st.form_submit_button("Save creative"):
                        if run_action(lambda: self.service.update_strategy(strategy.id, product, fmt,
                                                                           description, batch_code),
                                      "Creative saved."):
                            st.rerun()

            elif mode == "Remove":
                allowed = wf.can_delete_strategy(strategy.variants)
                if st.button("🗑 Remove creative", key=f"strategist::remove_strategy::{strategy.id}"):
                    if run_action(lambda: self.service.remove_strategy(strategy.id), "Creative removed."):
                        st.rerun()
                if not allowed:
                    st.caption("Only creatives whose variants are all new and unreviewed can be removed.")

            elif mode == "Admin delete":
                confirm = st.checkbox("I understand this deletes the creative and all its variants.",
                                      key=f"strategist::confirm::{strategy.id}")
                if st.button("⛔ Delete creative", key=f"strategist::admin_delete_strategy::{strategy.id}",
                             disabled=not confirm):
                    if run_action(lambda: self.service.delete_strategy(strategy.id), "Creative deleted."):
                        st.rerun()

            render_variant_table(_variant_rows(strategy.variants))

            for v in strategy.variants:
                self._render_variant_controls(v, mode)

            if mode == "View":
                self._render_new_variant_form(strategy)

    # --- This is the "recipe" function that gets returned ---
    def render_body(self, role: str, today: str) -> None:
        if self.service.error:
            st.error(f"Store error: {self.service.error}")
        if self.service.loading:
            st.info("Loading creatives...")
            return

        mode = self._render_toolbar()
        self._render_new_strategy_form()
        st.markdown("---")

        strategies = self.service.strategist_queue(
            products=self.products,
            formats=self.formats,
            date_range=self.date_range,
            sort_order=self.sort_order,
            hide_completed=self.hide_completed,
            hide_ready_to_edit=self.hide_ready,
        )

        if not strategies:
            st.info("No creatives match the current filters.")
            return

        for strategy in strategies:
            self._render_strategy(strategy, mode)


# -----------------------------------------------------------------------------
# META HEADER DETAILS BACK TO MAIN
# -----------------------------------------------------------------------------

def render_page(role: str, today: str) -> (callable, dict):
    """
    This is the public function that main_app.py interacts with.
    """
    page = Page(role=role, today=today)
    return page.render_body, page.meta
