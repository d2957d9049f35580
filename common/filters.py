"""
common/filters.py

The date-range filter strip every role page shows above its tables.

"From" / "To" are typed into temporary widgets; the range is only applied
when both are set and "Apply" is pressed. "Clear" resets everything.
The applied range lives in session state under the page's key.
"""

import streamlit as st

from date_codec import NO_RANGE, DateRange


def render_date_filter(key: str, label: str = "Date filter") -> DateRange:
    """Draws the filter strip and returns the currently applied DateRange."""
    state_key = f"{key}::applied_range"
    applied = st.session_state.get(state_key, NO_RANGE)

    cols = st.columns([2, 2, 1, 1])
    start = cols[0].date_input(f"{label}: from", value=None, key=f"{key}::from", format="DD/MM/YYYY")
    end = cols[1].date_input("To", value=None, key=f"{key}::to", format="DD/MM/YYYY")

    if cols[2].button("Apply", key=f"{key}::apply"):
        if not start or not end:
            st.error('Please select both a "From" and "To" date to apply the filter.')
        else:
            applied = DateRange.from_bounds(start, end)
            st.session_state[state_key] = applied

    if applied.active and cols[3].button("Clear", key=f"{key}::clear"):
        st.session_state[state_key] = NO_RANGE
        for widget in (f"{key}::from", f"{key}::to"):
            st.session_state.pop(widget, None)
        st.rerun()

    if applied.active:
        st.caption(f"Showing {applied.start:%d/%m/%Y} to {applied.end:%d/%m/%Y}")
    return applied
