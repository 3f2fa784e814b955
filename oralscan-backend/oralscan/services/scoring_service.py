# oralscan/services/scoring_service.py
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import numpy as np

from oralscan.ml.conditions import (
    CONDITION_DETAILS,
    HEALTHY_CONDITIONS,
    HEALTHY_KEYS,
    HIGH_SEVERITY_CONDITIONS,
)
from oralscan.models.analysis_result import AnalysisResult, ConditionScore

logger = logging.getLogger(__name__)

# Kalau |sum - 1| > toleransi, output dianggap logits lalu di-softmax.
# Ini tebakan: model yang logits-nya kebetulan berjumlah ~1 akan lolos tanpa softmax.
PROBABILITY_SUM_TOLERANCE = 0.1

HEALTHY_SCORE_BASE = 70
HEALTHY_SCORE_RANGE = 30
UNHEALTHY_SCORE_MIN = 15
UNHEALTHY_SCORE_MAX = 75


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def softmax(values: Sequence[float]) -> List[float]:
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return []
    exp = np.exp(arr - arr.max())
    return (exp / exp.sum()).tolist()


def normalize_probabilities(values: Sequence[float]) -> List[float]:
    vals = [float(v) for v in values]
    if abs(sum(vals) - 1.0) > PROBABILITY_SUM_TOLERANCE:
        return softmax(vals)
    return vals


def fit_to_classes(probabilities: Sequence[float], n_classes: int) -> List[float]:
    """Pad nol / truncate ke jumlah kelas, lalu renormalisasi (kalau sum > 0)."""
    probs = list(probabilities)
    if len(probs) == n_classes:
        return probs

    logger.warning(
        "Mismatch: model output has %d classes, expected %d", len(probs), n_classes
    )
    probs = (probs + [0.0] * n_classes)[:n_classes]
    total = sum(probs)
    if total > 0:
        probs = [p / total for p in probs]
    return probs


def classify_image_quality(brightness: float) -> str:
    if brightness < 0.2 or brightness > 0.9:
        return "poor"
    if brightness < 0.3 or brightness > 0.8:
        return "fair"
    return "good"


def compute_health_score(
    primary_condition: str,
    primary_confidence: float,
    healthy_confidence: float,
) -> int:
    """
    Skor 0-100:
      healthy   -> 70 + healthy_conf * 30            (70..100)
      lainnya   -> base + 20 - penalti, di-clamp     (15..75)
    """
    if primary_condition in HEALTHY_CONDITIONS:
        return round_half_up(HEALTHY_SCORE_BASE + healthy_confidence * HEALTHY_SCORE_RANGE)

    base_score = healthy_confidence * 50 + (1 - primary_confidence) * 30
    severity_penalty = 20 if primary_condition in HIGH_SEVERITY_CONDITIONS else 10
    score = round_half_up(base_score + 20 - severity_penalty)
    return max(UNHEALTHY_SCORE_MIN, min(UNHEALTHY_SCORE_MAX, score))


def process_model_output(
    probabilities: Sequence[float],
    class_names: Sequence[str],
    mode: str,
    brightness: float = 0.5,
    source: str = "model",
    now: Optional[datetime] = None,
) -> AnalysisResult:
    """
    Output mentah (model / fallback) -> AnalysisResult.
    Urutan: deteksi logits -> sesuaikan panjang -> sort stabil desc -> skor.
    """
    class_names = list(class_names)
    if not class_names:
        raise ValueError("class_names is empty")

    probs = normalize_probabilities(probabilities)
    probs = fit_to_classes(probs, len(class_names))

    scored = [
        ConditionScore(condition=c, confidence=float(probs[i]), info=CONDITION_DETAILS[c])
        for i, c in enumerate(class_names)
    ]
    # sorted() stabil: confidence seri -> urutan kelas asli
    conditions = sorted(scored, key=lambda s: -s.confidence)

    primary = conditions[0]
    healthy_key = HEALTHY_KEYS.get(mode)
    healthy_conf = (
        float(probs[class_names.index(healthy_key)]) if healthy_key in class_names else 0.0
    )

    overall = compute_health_score(primary.condition, primary.confidence, healthy_conf)
    quality = classify_image_quality(brightness)

    logger.info(
        "Analysis (%s/%s): primary=%s (%.1f%%), healthy=%.1f%%, score=%d",
        mode, source, primary.condition, primary.confidence * 100, healthy_conf * 100, overall,
    )

    ts = (now or datetime.now(timezone.utc)).isoformat()
    return AnalysisResult(
        conditions=conditions,
        overall_health=overall,
        primary_condition=primary.condition,
        analysis_timestamp=ts,
        image_quality=quality,
        mode=mode,
        source=source,
    )
