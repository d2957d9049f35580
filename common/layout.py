"""
common/layout.py

Shared layout helpers for Visionary pages.

It embeds its own CSS inside the st.markdown() call to create a thin header
bar with the page title, the working date badge and the page metadata.
"""

from typing import Callable, Optional

import pandas as pd
import streamlit as st

import config
from document_store import StoreError
from workflow_engine import WorkflowValidationError

HEADER_CSS = """
<style>
    div.block-container {
        padding-top: 1.8rem !important;
    }
    .visionary-header {
        display: flex;
        justify-content: space-between;
        align-items: center;
        padding: 0.3rem 1.25rem;
        background-image: linear-gradient(90deg, #0f172a, #4f46e5);
        border-radius: 10px;
        box-shadow: 0 4px 12px rgba(0, 0, 0, 0.1);
        margin-bottom: 1.5rem;
    }
    .header-left {
        display: flex;
        align-items: center;
        gap: 0.75rem;
        color: white;
    }
    .header-left h2 {
        font-size: 1.1rem;
        font-weight: 500;
        margin: 0;
        padding: 0;
        line-height: 1;
        color: white;
    }
    .date-badge, .coming-soon-badge {
        padding: 0.2rem 0.5rem;
        border-radius: 4px;
        font-size: 0.7rem;
        font-weight: 700;
        line-height: 1.0;
    }
    .date-badge {
        font-family: 'Consolas', 'Menlo', 'monospace';
        background-color: rgba(255, 255, 255, 0.15);
        color: white;
    }
    .coming-soon-badge {
        background-color: #FFC107;
        color: #333;
    }
    .header-right {
        display: flex;
        flex-direction: row;
        align-items: center;
        gap: 1.25rem;
        font-size: 0.8rem;
        color: #eee;
    }
    .meta-item {
        line-height: 1;
        white-space: nowrap;
    }
    .meta-item strong {
        font-weight: 600;
        color: #c7d2fe;
    }
</style>
"""


def render_frame(
    title_override: str,
    body_component: Optional[Callable],
    owner: str,
    data_source: str,
    working_date: str,
    coming_soon: bool = False,
) -> None:
    """
    Render the Visionary header strip, then the page body.
    """

    date_badge = f'<span class="date-badge">📅 {working_date}</span>' if working_date else ""
    coming_soon_tag = '<span class="coming-soon-badge">⚠ Coming Soon</span>' if coming_soon else ""

    header_html = f"""
<div class="visionary-header">
<div class="header-left">
<h2>Visionary · {title_override}</h2>
{date_badge}
{coming_soon_tag}
</div>
<div class="header-right">
<div class="meta-item">
    <strong>Owner:</strong> {owner}
</div>
<div class="meta-item">
    <strong>Source:</strong> {data_source}
</div>
</div>
</div>
"""

    st.markdown(HEADER_CSS, unsafe_allow_html=True)
    st.markdown(header_html, unsafe_allow_html=True)

    if coming_soon:
        st.info("This view has been reserved in Visionary, but it is still being built.")
        st.stop()

    elif body_component:
        body_component(
            role=st.session_state.role,
            today=working_date
        )

    else:
        st.error(
            f"**Page Rendering Error:** The page '{title_override}' is not marked "
            "'Coming Soon' but did not provide a valid body component to render."
        )
        st.stop()


def run_action(action: Callable, success_message: Optional[str] = None) -> bool:
    """
    Runs one service call for a button/form and reports the outcome.
    Rule refusals and store failures are shown as errors; nothing else is caught.
    Returns True on success (the caller usually reruns).
    """
    try:
        action()
    except WorkflowValidationError as e:
        st.error(str(e))
        return False
    except StoreError as e:
        st.error(f"Could not save the change: {e}")
        return False
    if success_message:
        st.toast(success_message)
    return True


def render_feedback(entries: list) -> None:
    """Lists rejection messages, oldest first."""
    if not entries:
        st.caption("No rejection feedback.")
        return
    for i, entry in enumerate(entries, start=1):
        route = f"{entry.source} → {entry.destination}" if entry.destination else entry.source
        st.markdown(f"**{i}. {route}**")
        st.write(entry.message)


def _status_style(value: str) -> str:
    colour = config.STATUS_COLOURS.get(value)
    if not colour:
        return ""
    # Dark backgrounds get white text
    text = "white" if value in ("Completed", "Live", "In Review") else "#0f172a"
    return f"background-color: {colour}; color: {text}; font-weight: 600"


def render_variant_table(rows: list, status_column: str = "Status") -> None:
    """
    Shows a list of row dicts as a dataframe, colouring the status column.
    """
    if not rows:
        st.caption("Nothing to show.")
        return
    df = pd.DataFrame(rows)
    if status_column in df.columns:
        styled = df.style.map(_status_style, subset=[status_column])
        st.dataframe(styled, use_container_width=True, hide_index=True)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)
