import importlib
import logging

import streamlit as st

import config
from common.layout import render_frame
from config import ALL_PAGES, SECTION_ICONS
from security import (
    get_user_session,
    get_allowed_pages_for_role,
)
from ui_nav import build_sidebar

# ─── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# ─── Page Config ──────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Visionary Dashboard",
    page_icon="🎯",
    layout="wide",
    initial_sidebar_state="expanded"
)

# 1. Session ---------------------------------------
session = get_user_session()
role = session["role"]
user = session["user"]

# 2. Figure out what this role can see ----------------
allowed_pages = get_allowed_pages_for_role(role, ALL_PAGES)

if not allowed_pages:
    st.error("Your role does not have access to any views in Visionary.")
    st.stop()

# 3. Draw sidebar + get nav state ---------------------
nav_state = build_sidebar(
    user=user,
    role=role,
    section_icons=SECTION_ICONS,
    allowed_pages=allowed_pages,
)

active_section = nav_state["active_section"]
active_page_label = nav_state["active_page_label"]
working_date = nav_state["working_date"]

# 4. Load and render the chosen page ------------------
module_path = allowed_pages[active_section][active_page_label]["module"]

try:
    module = importlib.import_module(f"apps.{module_path}")
    body_component, meta = module.render_page(
        role=role,
        today=working_date
    )
except ModuleNotFoundError:
    # "Coming soon" placeholder
    body_component = None
    meta = {
        "title_override": active_page_label,
        "owner": "TBD",
        "data_source": "N/A",
        "coming_soon": True
    }
except Exception as e:
    st.error(f"An error occurred while rendering '{active_page_label}'.")
    st.exception(e)
    body_component = None
    meta = {"title_override": "Page Error"}

# 5. Wrap it in the Visionary frame -------------------
render_frame(
    title_override=meta.get("title_override", active_page_label),
    body_component=body_component,
    owner=meta.get("owner", "TBD"),
    data_source=meta.get("data_source", "N/A"),
    working_date=working_date,
    coming_soon=meta.get("coming_soon", False)
)
