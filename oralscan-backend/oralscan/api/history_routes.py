# oralscan/api/history_routes.py
import logging

from flask import Blueprint, current_app, jsonify

from oralscan.services.history_service import format_timestamp
from oralscan.services.report_service import generate_pdf_content, report_filename, report_from_history_item

from .analyze_routes import text_attachment
from .client import cloud_history, get_or_create_client_id, local_history, with_client_header

logger = logging.getLogger(__name__)

history_bp = Blueprint("history", __name__)


def _item_payload(item) -> dict:
    d = item.to_dict()
    d["time_label"] = format_timestamp(item.timestamp)
    return d


# -------------------------
# history lokal (file JSON per client id di server)
# -------------------------
def _find_local_item(item_id):
    client_id, _ = get_or_create_client_id()
    return client_id, local_history().get_history_item(client_id, item_id)


@history_bp.route("/history", methods=["GET"])
def list_local_history():
    client_id, _ = get_or_create_client_id()
    items = local_history().get_history(client_id)
    resp = jsonify({"items": [_item_payload(i) for i in items], "count": len(items)})
    return with_client_header(resp, client_id), 200


@history_bp.route("/history/<item_id>", methods=["GET"])
def get_local_history_item(item_id):
    client_id, item = _find_local_item(item_id)
    if not item:
        return jsonify({"error": "Data tidak ditemukan"}), 404
    return with_client_header(jsonify(_item_payload(item)), client_id), 200


@history_bp.route("/history/<item_id>/report", methods=["GET"])
def get_local_history_report(item_id):
    client_id, item = _find_local_item(item_id)
    if not item:
        return jsonify({"error": "Data tidak ditemukan"}), 404
    return with_client_header(jsonify(report_from_history_item(item).to_dict()), client_id), 200


@history_bp.route("/history/<item_id>/download", methods=["GET"])
def download_local_history_report(item_id):
    _, item = _find_local_item(item_id)
    if not item:
        return jsonify({"error": "Data tidak ditemukan"}), 404
    report = report_from_history_item(item)
    return text_attachment(generate_pdf_content(report), report_filename())


@history_bp.route("/history/<item_id>", methods=["DELETE"])
def delete_local_history_item(item_id):
    client_id, _ = get_or_create_client_id()
    # id tidak dikenal (atau milik client lain) -> tetap 200, deleted=false
    deleted = local_history().delete_history_item(client_id, item_id)
    resp = jsonify({"deleted": deleted, "id": item_id})
    return with_client_header(resp, client_id), 200


@history_bp.route("/history", methods=["DELETE"])
def clear_local_history():
    client_id, _ = get_or_create_client_id()
    local_history().clear_history(client_id)
    return with_client_header(jsonify({"cleared": True}), client_id), 200


# -------------------------
# cloud history (per client id)
# -------------------------
@history_bp.route("/cloud-history", methods=["GET"])
def list_cloud_history():
    client_id, _ = get_or_create_client_id()
    backend = cloud_history()
    try:
        items = backend.list_history(client_id, limit=current_app.config["CLOUD_HISTORY_LIMIT"])
    except Exception as e:
        logger.error("Error fetching cloud history: %s", e)
        items = []
    resp = jsonify({"items": items, "configured": backend.configured})
    return with_client_header(resp, client_id), 200


@history_bp.route("/cloud-history/<record_id>", methods=["DELETE"])
def delete_cloud_history_item(record_id):
    client_id, _ = get_or_create_client_id()
    try:
        deleted = cloud_history().delete_analysis(client_id, record_id)
    except Exception as e:
        logger.error("Error deleting cloud history item: %s", e)
        return jsonify({"error": "Failed to delete history item"}), 500

    status = 200 if deleted or not cloud_history().configured else 404
    resp = jsonify({"deleted": deleted, "id": record_id})
    return with_client_header(resp, client_id), status


@history_bp.route("/cloud-history", methods=["DELETE"])
def clear_cloud_history():
    client_id, _ = get_or_create_client_id()
    try:
        removed = cloud_history().clear_history(client_id)
    except Exception as e:
        logger.error("Error clearing cloud history: %s", e)
        return jsonify({"error": "Failed to clear history"}), 500

    resp = jsonify({"cleared": True, "removed": removed})
    return with_client_header(resp, client_id), 200
