# oralscan/services/analysis_service.py
import logging
import uuid
from typing import Optional

from PIL import Image

from oralscan.core.errors import ModeMismatchDetected
from oralscan.ml.classification.model_loader import ModelSession
from oralscan.ml.classification.predict import predict_dental_condition
from oralscan.ml.conditions import validate_mode
from oralscan.ml.fallback import fallback_analysis
from oralscan.ml.image_type import detect_image_type
from oralscan.models.analysis_result import AnalysisResult
from oralscan.services.cloud_history_service import HistoryBackend
from oralscan.services.history_service import LocalHistoryStore
from oralscan.services.report_service import generate_oral_health_report, history_predictions
from oralscan.services.scoring_service import process_model_output
from oralscan.utils.image_io import to_data_url

logger = logging.getLogger(__name__)


def analyze_dental_image(session: ModelSession, img: Image.Image) -> AnalysisResult:
    """
    Inferensi model untuk mode aktif.
    Kalau model tidak ada / inferensi gagal -> heuristik fallback (source="heuristic").
    """
    mode = session.mode
    class_names = session.ensure_class_names(mode)
    try:
        raw_scores, brightness = predict_dental_condition(session, img)
        return process_model_output(raw_scores, class_names, mode, brightness=brightness)
    except Exception as e:
        logger.warning("Model inference failed for %s, using fallback: %s", mode, e)
        return fallback_analysis(img, session.ensure_class_names(mode), mode)


def run_analysis(session: ModelSession, img: Image.Image, mode: Optional[str] = None) -> AnalysisResult:
    """
    Cek tipe gambar dulu (photo vs xray), baru inferensi.
    Raise ModeMismatchDetected kalau tidak cocok dengan mode yang diminta.
    """
    requested = validate_mode(mode or session.mode)
    detected = detect_image_type(img)
    if detected != requested:
        logger.info("Image type mismatch: detected=%s requested=%s", detected, requested)
        raise ModeMismatchDetected(detected=detected, requested=requested)

    session.set_mode(requested)
    return analyze_dental_image(session, img)


def analyze_upload(
    session: ModelSession,
    history: LocalHistoryStore,
    backend: HistoryBackend,
    img: Image.Image,
    image_bytes: bytes,
    mimetype: str = "image/jpeg",
    filename: str = "",
    mode: Optional[str] = None,
    client_id: Optional[str] = None,
) -> dict:
    """
    Pipeline lengkap untuk satu upload:
    analisis -> report -> history lokal -> cloud history (best effort).
    """
    analysis = run_analysis(session, img, mode)
    report = generate_oral_health_report(analysis)

    # history lokal per client, gambar disimpan sebagai data URL (self-contained)
    item = None
    if client_id:
        item = history.add_to_history(
            client_id,
            image=to_data_url(image_bytes, mimetype),
            predictions=history_predictions(report),
            health_score=report.health_score,
            health_grade=report.health_grade,
        )

    cloud = None
    if client_id and backend.configured:
        try:
            analysis_id = str(uuid.uuid4())
            image_url = backend.upload_image(
                client_id, analysis_id, image_bytes, filename=filename, mimetype=mimetype
            )
            cloud = backend.save_analysis(
                client_id,
                image_url,
                analysis.overall_health,
                analysis.primary_condition,
                {"analysis": analysis.to_dict(), "report": report.to_dict()},
                record_id=analysis_id,
            )
        except Exception as e:
            # cloud history opsional: jangan gagalkan analisis
            logger.error("Failed to save analysis to cloud history: %s", e)

    return {
        "analysis": analysis.to_dict(),
        "report": report.to_dict(),
        "history_item": item.to_dict() if item else None,
        "cloud_record": cloud,
    }
