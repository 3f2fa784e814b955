# oralscan/api/analyze_routes.py
import logging

from flask import Blueprint, Response, jsonify, request

from oralscan.core.errors import GENERIC_ANALYSIS_ERROR, ImageLoadFailure, ModeMismatchDetected
from oralscan.ml.conditions import MODES
from oralscan.models.report import OralHealthReport
from oralscan.services.analysis_service import analyze_upload
from oralscan.services.report_service import generate_pdf_content, report_filename
from oralscan.utils.image_io import load_image_from_file

from .client import cloud_history, get_or_create_client_id, local_history, model_session, with_client_header

logger = logging.getLogger(__name__)

analyze_bp = Blueprint("analyze", __name__)


def text_attachment(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@analyze_bp.route("/analyze", methods=["POST"])
def analyze():
    """
    Endpoint utama:
    - menerima file "image" (multipart/form-data) + "mode" (photo / xray, opsional)
    - mengembalikan JSON berisi analysis, report, history_item
    """
    client_id, _ = get_or_create_client_id()

    if "image" not in request.files:
        return jsonify({"error": "No image file provided"}), 400

    file = request.files["image"]

    if file.filename == "":
        return jsonify({"error": "Empty filename"}), 400

    mode = (request.form.get("mode") or request.args.get("mode") or "").strip().lower()
    if mode and mode not in MODES:
        return jsonify({"error": f"Invalid mode '{mode}'", "modes": list(MODES)}), 400

    try:
        img, image_bytes, mimetype = load_image_from_file(file)
    except ImageLoadFailure as e:
        logger.warning("Image load failed: %s", e)
        return jsonify({"error": ImageLoadFailure.user_message}), 400

    try:
        result = analyze_upload(
            model_session(),
            local_history(),
            cloud_history(),
            img,
            image_bytes,
            mimetype=mimetype,
            filename=file.filename,
            mode=mode or None,
            client_id=client_id,
        )
    except ModeMismatchDetected as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        logger.exception("Analysis error")
        return jsonify({"error": GENERIC_ANALYSIS_ERROR}), 500

    result["client_id"] = client_id
    return with_client_header(jsonify(result), client_id), 200


@analyze_bp.route("/mode", methods=["GET"])
def get_mode():
    return jsonify({"mode": model_session().mode, "modes": list(MODES)}), 200


@analyze_bp.route("/mode", methods=["POST"])
def set_mode():
    payload = request.get_json(silent=True) or {}
    mode = str(payload.get("mode", "")).strip().lower()
    if mode not in MODES:
        return jsonify({"error": f"Invalid mode '{mode}'", "modes": list(MODES)}), 400

    changed = model_session().set_mode(mode)
    return jsonify({"mode": mode, "changed": changed}), 200


@analyze_bp.route("/model-info", methods=["GET"])
def model_info():
    session = model_session()
    session.ensure_class_names()
    return jsonify(session.info()), 200


@analyze_bp.route("/report/download", methods=["POST"])
def download_report():
    """Report JSON (dari response /analyze) -> file teks."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Report JSON required"}), 400
    try:
        report = OralHealthReport.from_dict(payload.get("report", payload))
    except (AttributeError, TypeError, ValueError) as e:
        return jsonify({"error": "Invalid report", "detail": str(e)}), 400

    return text_attachment(generate_pdf_content(report), report_filename())
