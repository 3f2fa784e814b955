# oralscan/ml/image_type.py
import logging

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 100            # downsample dulu supaya cepat
GRAY_TOLERANCE = 25          # selisih antar channel < 25 -> hampir abu-abu
RED_MIN = 140                # gusi / bibir / lidah: merah kuat
RED_MARGIN = 30
RED_RATIO_THRESHOLD = 0.06
SATURATION_THRESHOLD = 0.30


def _hsl_saturation(rgb01: np.ndarray) -> np.ndarray:
    mx = rgb01.max(axis=-1)
    mn = rgb01.min(axis=-1)
    light = (mx + mn) / 2.0
    delta = mx - mn

    sat = np.zeros_like(mx)
    chroma = delta > 0
    dark = chroma & (light <= 0.5)
    bright = chroma & (light > 0.5)
    sat[dark] = delta[dark] / (mx[dark] + mn[dark])
    sat[bright] = delta[bright] / (2.0 - mx[bright] - mn[bright])
    return sat


def image_type_stats(img: Image.Image) -> dict:
    """
    Statistik piksel (100x100) untuk menebak foto vs radiograf:
      avg_saturation, grayscale_ratio, red_ratio
    """
    small = img.convert("RGB").resize((SAMPLE_SIZE, SAMPLE_SIZE), Image.BILINEAR)
    px = np.asarray(small, dtype=np.int16).reshape(-1, 3)
    r, g, b = px[:, 0], px[:, 1], px[:, 2]

    gray = (
        (np.abs(r - g) < GRAY_TOLERANCE)
        & (np.abs(g - b) < GRAY_TOLERANCE)
        & (np.abs(r - b) < GRAY_TOLERANCE)
    )
    red = (r > RED_MIN) & (r > g + RED_MARGIN) & (r > b + RED_MARGIN)
    sat = _hsl_saturation(px.astype(np.float64) / 255.0)

    n = float(len(px))
    return {
        "avg_saturation": float(sat.sum() / n),
        "grayscale_ratio": float(gray.sum() / n),
        "red_ratio": float(red.sum() / n),
    }


def classify_image_stats(stats: dict) -> str:
    # radiograf tetap abu-abu walau ada tint dari scanner;
    # foto gigi selalu punya piksel merah/pink (gusi, bibir)
    is_photo = (
        stats["red_ratio"] > RED_RATIO_THRESHOLD
        or stats["avg_saturation"] > SATURATION_THRESHOLD
    )
    return "photo" if is_photo else "xray"


def detect_image_type(img: Image.Image) -> str:
    """Return "photo" atau "xray"."""
    stats = image_type_stats(img)
    kind = classify_image_stats(stats)
    logger.debug(
        "Image type detection: saturation=%.4f grayscaleRatio=%.4f redRatio=%.4f -> %s",
        stats["avg_saturation"], stats["grayscale_ratio"], stats["red_ratio"], kind,
    )
    return kind
