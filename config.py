# config.py

import os

# --- Runtime settings (override with environment variables) ---

# The SQLite file behind the document store
DB_FILE = os.environ.get("VISIONARY_DB_FILE", "visionary_store.db")

# The Admin page is unlocked with this one shared password.
ADMIN_PASSWORD = os.environ.get("VISIONARY_ADMIN_PASSWORD", "Brosantis")

LOG_LEVEL = os.environ.get("VISIONARY_LOG_LEVEL", "INFO")

# Optional DD/MM/YYYY start value for the sidebar's "Working date" picker.
EMULATED_DATE = os.environ.get("VISIONARY_EMULATED_DATE", "")

# Editor page: rows revealed per "Show more" click, and approval-queue preview size
PRODUCTION_PAGE_SIZE = 10
APPROVAL_PREVIEW_COUNT = 2


# --- Option lists ---

PRODUCT_OPTIONS = [
    "OG plastic filter",
    "LED plastic filter",
    "OG stainless steel",
    "New stainless steel",
    "Pet filter",
]

FORMAT_OPTIONS = ["UGC", "Studio", "Static", "GIF"]

LANDING_PAGE_OPTIONS = ["Product page", "Homepage", "Advertorial", "Listicle"]

# Status pickers offered on each page
STRATEGIST_STATUS_OPTIONS = ["In Progress", "Ready to edit", "Rejected"]
EDITOR_STATUS_OPTIONS = ["Ready to edit", "Completed", "Rejected"]
VA_STATUS_OPTIONS = ["Ready to Launch", "In Review", "Live", "Canceled"]
REVIEW_STATUS_OPTIONS = ["Running", "Off", "Needs Spend"]

# Badge colours for st.dataframe styling
STATUS_COLOURS = {
    "In Progress": "#e0f2fe",
    "Ready to edit": "#dcfce7",
    "Rejected": "#ffe4e6",
    "Completed": "#16a34a",
    "Ready to Launch": "#d1fae5",
    "In Review": "#f59e0b",
    "Live": "#059669",
    "Canceled": "#fef2f2",
}


# --- Page registry ---
# Each section has pages. Each page maps to a module under apps/.

ALL_PAGES = {
    "Creatives": {
        "Creative Strategist": {
            "module": "creatives.strategist",
            "allowed_roles": ["admin", "strategist"]
        }
    },

    "Production": {
        "Editor": {
            "module": "production.editor",
            "allowed_roles": ["admin", "editor"]
        }
    },

    "Validation": {
        "VA Control": {
            "module": "validation.va_control",
            "allowed_roles": ["admin", "va"]
        }
    },

    "Review": {
        "Live Ads": {
            "module": "review.live_ads",
            "allowed_roles": ["admin", "reviewer", "va"]
        }
    },

    "Admin Panel": {
        "Database Explorer": {
            "module": "admin.database_explorer",
            "allowed_roles": ["admin"]
        }
    },
}

# Sidebar icons for each section
SECTION_ICONS = {
    "Creatives":   "🪄",
    "Production":  "🎬",
    "Validation":  "✅",
    "Review":      "📈",
    "Admin Panel": "🗃️",
}
