from flask import Flask, render_template, request, jsonify
import logging
from pathlib import Path
from google import genai
from google.genai import errors as genai_errors

import config
from records.store import RecordStore
from records.reconciler import EditReconciler
from intelligence.engine import analyze_roster
from sync.gateway import AppsScriptGateway
from sync.google_sheets_adapter import SheetsGateway
from sync.sync_service import refresh_records
from sync.local_spreadsheet_service import export_records_to_csv


# -------------------------------------------------
# Setup
# -------------------------------------------------

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent

app = Flask(
    __name__,
    template_folder=str(ROOT_DIR / "templates"),
    static_folder=None,
)
app.secret_key = config.FLASK_SECRET_KEY

STORE = RecordStore()
GATEWAY = None
RECONCILER = None


# -------------------------------------------------
# Helpers: gateway + LLM
# -------------------------------------------------

def build_gateway(kind=None):
    kind = kind or config.GATEWAY_KIND
    cfg = config.GATEWAY_CONFIG.get(kind)
    if cfg is None:
        raise ValueError(f"Unknown gateway: {kind}")

    if kind == "sheets":
        return SheetsGateway(cfg["spreadsheet_id"], cfg["sheet_tab"])
    return AppsScriptGateway(cfg["url"], timeout=cfg["timeout"])


def configure(gateway, store=None):
    """Wire the app to a gateway (and optionally a fresh store)."""
    global GATEWAY, RECONCILER, STORE
    if store is not None:
        STORE = store
    GATEWAY = gateway
    RECONCILER = EditReconciler(STORE, GATEWAY)


def get_reconciler():
    if RECONCILER is None:
        configure(build_gateway())
    return RECONCILER


def call_llm_simple(user_prompt: str) -> str:
    """
    Single-shot LLM call for the roster analysis.
    The prompt asks for JSON, so ask the model for JSON too.
    """
    if not config.GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY is not set.")

    client = genai.Client(api_key=config.GEMINI_API_KEY)
    response = client.models.generate_content(
        model=config.ANALYSIS_MODEL,
        contents=user_prompt,
        config={
            "temperature": 0.2,
            "top_p": 0.9,
            "max_output_tokens": 1500,
            "response_mime_type": "application/json",
        },
    )
    return (response.text or "").strip()


def roster_snapshot():
    reconciler = RECONCILER
    return {
        "records": [r.to_dict() for r in STORE.visible_records()],
        "groups": STORE.groups(),
        "selected_group": STORE.selected_group,
        "query": STORE.query,
        "error": STORE.error,
        "total": len(STORE.records),
        "statuses": reconciler.active_statuses() if reconciler else {},
    }


# -------------------------------------------------
# Routes
# -------------------------------------------------

@app.route("/")
def index():
    return render_template("index.html")


@app.route("/api/records", methods=["GET"])
def get_records():
    return jsonify(roster_snapshot())


@app.route("/api/refresh", methods=["POST"])
def refresh():
    try:
        reconciler = get_reconciler()
    except (ValueError, RuntimeError) as e:
        logger.error("Gateway not configured: %s", e)
        STORE.set_records([])
        STORE.set_error(str(e))
        return jsonify({"status": "error", "message": str(e)}), 503

    result = refresh_records(reconciler.gateway, STORE)
    return jsonify(result)


@app.route("/api/selection", methods=["POST"])
def set_selection():
    data = request.get_json(silent=True) or {}

    if "group" in data:
        STORE.select_group(data.get("group"))
    if "query" in data:
        STORE.set_query(data.get("query"))

    return jsonify(roster_snapshot())


@app.route("/api/records/<record_id>", methods=["POST"])
def save_record(record_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON body"}), 400

    try:
        reconciler = get_reconciler()
    except (ValueError, RuntimeError) as e:
        return jsonify({"error": str(e)}), 503

    outcome = reconciler.save(
        record_id,
        data.get("admission_status", ""),
        data.get("remark", ""),
    )
    return jsonify(outcome.to_dict())


@app.route("/api/records/<record_id>/status", methods=["GET"])
def record_status(record_id):
    if RECONCILER is None:
        return jsonify({"id": record_id, "state": "idle", "message": None})
    return jsonify(RECONCILER.status(record_id))


@app.route("/api/analysis", methods=["POST"])
def analysis():
    records = STORE.visible_records()
    if not records:
        return jsonify({"status": "no_data"}), 200

    try:
        result = analyze_roster(
            records,
            llm_call_fn=call_llm_simple,
            group=STORE.selected_group,
        )
    except (RuntimeError, genai_errors.APIError) as e:
        logger.error("Roster analysis failed: %s", e)
        return jsonify({"status": "error", "message": str(e)}), 503

    return jsonify({"status": "ok", "analysis": result.to_dict()})


@app.route("/api/export", methods=["POST"])
def export():
    result = export_records_to_csv(STORE.visible_records(), config.EXPORT_PATH)
    return jsonify(result)


if __name__ == "__main__":
    app.run(debug=True)
