# oralscan/api/storage_routes.py
import os

from flask import Blueprint, current_app, jsonify, send_file
from werkzeug.utils import safe_join

from .client import cloud_history, get_client_id

storage_bp = Blueprint("storage_bp", __name__)


@storage_bp.get("/<client_id>/<analysis_id>/<path:filename>")
def get_storage_file(client_id, analysis_id, filename):
    """
    Serve upload yang dipersist cloud history:
      /api/storage/<client_id>/<analysis_id>/orig.jpg
    Hanya untuk client pemilik record.
    """
    # Jika header/query client_id dikirim, wajib match dengan path param.
    cid = get_client_id()
    if not cid:
        return jsonify({"error": "client_id wajib (untuk multi-user tanpa login)."}), 400
    if cid != client_id:
        return jsonify({"error": "client_id tidak cocok"}), 403

    if not cloud_history().get_analysis(client_id, analysis_id):
        return jsonify({"error": "Data tidak ditemukan"}), 404

    # filename bisa mengandung backslash kalau datang dari Windows; normalisasi.
    filename = (filename or "").replace("\\", "/")
    rel_path = f"{analysis_id}/{filename}".lstrip("/\\")
    abs_path = safe_join(current_app.config["STORAGE_ANALYSIS_DIR"], client_id, rel_path)
    if not abs_path or not os.path.isfile(abs_path):
        return jsonify({"error": "File tidak ditemukan"}), 404

    return send_file(abs_path, as_attachment=False)
