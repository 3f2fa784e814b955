# oralscan/ml/fallback.py
import logging
from typing import List, Sequence

import numpy as np
from PIL import Image

from oralscan.models.analysis_result import AnalysisResult
from oralscan.services.scoring_service import process_model_output
from oralscan.utils.image_io import load_fallback_pixels

logger = logging.getLogger(__name__)

BASELINE_PROB = 0.1
DARK_PIXEL_BRIGHTNESS = 0.3
DARK_RATIO_THRESHOLD = 0.15
RED_PIXEL_MARGIN = 0.2
RED_RATIO_THRESHOLD = 0.1
CHANNEL_DIVERGENCE = 0.1

# kelas "mirip cavity" per mode (X-ray tidak punya gingivitis/ulcer/discoloration)
DARK_TARGET = {"photo": "cavity", "xray": "caries"}


def pixel_statistics(pixels01: np.ndarray) -> dict:
    """pixels01: (H, W, 3) float [0..1]"""
    px = pixels01.reshape(-1, 3)
    r, g, b = px[:, 0], px[:, 1], px[:, 2]
    per_pixel = px.mean(axis=1)

    avg_r, avg_g, avg_b = float(r.mean()), float(g.mean()), float(b.mean())
    return {
        "avg_r": avg_r,
        "avg_g": avg_g,
        "avg_b": avg_b,
        "brightness": (avg_r + avg_g + avg_b) / 3.0,
        "dark_ratio": float((per_pixel < DARK_PIXEL_BRIGHTNESS).mean()),
        "red_ratio": float(
            ((r > g + RED_PIXEL_MARGIN) & (r > b + RED_PIXEL_MARGIN)).mean()
        ),
    }


def heuristic_probabilities(stats: dict, class_names: Sequence[str], mode: str) -> List[float]:
    """Tebakan kasar dari statistik piksel. Bukan model!"""
    names = list(class_names)
    probs = [BASELINE_PROB] * len(names)

    def _set(condition: str, value: float):
        if condition in names:
            probs[names.index(condition)] = value

    if stats["dark_ratio"] > DARK_RATIO_THRESHOLD:
        _set(DARK_TARGET.get(mode, "cavity"), min(0.4, stats["dark_ratio"] * 2))

    if stats["red_ratio"] > RED_RATIO_THRESHOLD:
        red_prob = min(0.35, stats["red_ratio"] * 3)
        _set("gingivitis", red_prob * 0.6)
        _set("ulcer", red_prob * 0.4)

    if (
        abs(stats["avg_r"] - stats["avg_g"]) > CHANNEL_DIVERGENCE
        or abs(stats["avg_g"] - stats["avg_b"]) > CHANNEL_DIVERGENCE
    ):
        _set("discoloration", 0.3)

    total = sum(probs)
    return [p / total for p in probs]


def fallback_analysis(img: Image.Image, class_names: Sequence[str], mode: str) -> AnalysisResult:
    logger.info("Using fallback %s analysis (no trained model)...", mode)
    stats = pixel_statistics(load_fallback_pixels(img))
    probs = heuristic_probabilities(stats, class_names, mode)
    return process_model_output(
        probs, class_names, mode, brightness=stats["brightness"], source="heuristic"
    )
