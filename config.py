# config.py

import os

from dotenv import load_dotenv

load_dotenv()


# -------------------------------------------------
# Gateway
# -------------------------------------------------

GATEWAY_KIND = os.getenv("ROSTER_GATEWAY", "apps_script")

GATEWAY_CONFIG = {
    "apps_script": {
        "url": os.getenv("ROSTER_API_URL", ""),
        "timeout": float(os.getenv("ROSTER_HTTP_TIMEOUT", "30")),
    },
    "sheets": {
        "spreadsheet_id": os.getenv("ROSTER_SPREADSHEET_ID", ""),
        "sheet_tab": os.getenv("ROSTER_SHEET_TAB") or None,
    },
}


# -------------------------------------------------
# Export / analysis
# -------------------------------------------------

EXPORT_PATH = os.getenv("ROSTER_EXPORT_PATH", "data/exports/roster.csv")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
ANALYSIS_MODEL = os.getenv("ROSTER_ANALYSIS_MODEL", "models/gemini-2.5-flash")

FLASK_SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret")
