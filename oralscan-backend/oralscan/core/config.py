# oralscan/core/config.py
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from dotenv import load_dotenv

# Load .env sekali di awal aplikasi
load_dotenv()


def _env_bool(name: str, default: str = "0") -> bool:
    v = str(os.environ.get(name, default)).strip().lower()
    return v in ("1", "true", "yes", "y", "on")


@dataclass(frozen=True)
class ModeConfig:
    """Lokasi aset model untuk satu mode analisis (photo / xray)."""
    mode: str
    model_path: str
    class_names_path: str
    default_classes: Tuple[str, ...]
    healthy_key: str


class Config:
    # =========================
    # APP / SECURITY
    # =========================
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    TESTING = _env_bool("TESTING", "0")

    # BASE_DIR = folder oralscan-backend
    BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))

    # batas upload (gambar gigi jarang > 16MB)
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024))

    # =========================
    # MODELS (photo + xray)
    # =========================
    MODEL_DIR = os.environ.get("MODEL_DIR", os.path.join(BASE_DIR, "models"))

    PHOTO_MODEL_PATH = os.environ.get(
        "PHOTO_MODEL_PATH",
        os.path.join(MODEL_DIR, "dental", "model.keras"),
    )
    PHOTO_CLASS_NAMES_PATH = os.environ.get(
        "PHOTO_CLASS_NAMES_PATH",
        os.path.join(MODEL_DIR, "dental", "class_names.json"),
    )

    XRAY_MODEL_PATH = os.environ.get(
        "XRAY_MODEL_PATH",
        os.path.join(MODEL_DIR, "dental-xray", "model.keras"),
    )
    XRAY_CLASS_NAMES_PATH = os.environ.get(
        "XRAY_CLASS_NAMES_PATH",
        os.path.join(MODEL_DIR, "dental-xray", "class_names.json"),
    )

    # input model MobileNetV3 (preprocess_input sudah di dalam graph)
    MODEL_IMG_H = int(os.environ.get("MODEL_IMG_H", 224))
    MODEL_IMG_W = int(os.environ.get("MODEL_IMG_W", 224))

    DEFAULT_MODE = os.environ.get("DEFAULT_MODE", "photo")

    # =========================
    # HISTORY (local + cloud)
    # =========================
    STORAGE_DIR = os.environ.get("STORAGE_DIR", os.path.join(BASE_DIR, "storage"))
    STORAGE_ANALYSIS_DIR = os.path.join(STORAGE_DIR, "analysis_results")

    # satu file JSON per client id: <HISTORY_DIR>/<client_id>.json
    HISTORY_DIR = os.environ.get("HISTORY_DIR", os.path.join(STORAGE_DIR, "history"))
    HISTORY_MAX_ITEMS = int(os.environ.get("HISTORY_MAX_ITEMS", 50))
    CLOUD_HISTORY_LIMIT = int(os.environ.get("CLOUD_HISTORY_LIMIT", 10))

    # =========================
    # DATABASE (opsional, untuk cloud history)
    # =========================
    DATABASE_URL = os.environ.get("DATABASE_URL", "")
    DB_HOST = os.environ.get("DB_HOST", "")
    DB_PORT = os.environ.get("DB_PORT", "3306")  # default MySQL
    DB_NAME = os.environ.get("DB_NAME", "oralscan_db")
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")

    @classmethod
    def database_url(cls) -> str:
        """
        SQLAlchemy connection string.
        String kosong = cloud history tidak dikonfigurasi (semua operasi no-op).
        """
        return database_url_from({k: getattr(cls, k) for k in _DB_KEYS})

    @classmethod
    def model_configs(cls) -> Dict[str, ModeConfig]:
        return model_configs_from({
            "PHOTO_MODEL_PATH": cls.PHOTO_MODEL_PATH,
            "PHOTO_CLASS_NAMES_PATH": cls.PHOTO_CLASS_NAMES_PATH,
            "XRAY_MODEL_PATH": cls.XRAY_MODEL_PATH,
            "XRAY_CLASS_NAMES_PATH": cls.XRAY_CLASS_NAMES_PATH,
        })


_DB_KEYS = ("DATABASE_URL", "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD")


def database_url_from(cfg: Mapping) -> str:
    if cfg.get("DATABASE_URL"):
        return cfg["DATABASE_URL"]
    if not cfg.get("DB_HOST"):
        return ""
    return (
        f"mysql+pymysql://{cfg.get('DB_USER', 'root')}:{cfg.get('DB_PASSWORD', '')}"
        f"@{cfg['DB_HOST']}:{cfg.get('DB_PORT', '3306')}/{cfg.get('DB_NAME', 'oralscan_db')}"
    )


def model_configs_from(cfg: Mapping) -> Dict[str, ModeConfig]:
    """
    Bangun tabel ModeConfig dari mapping config (Config / app.config).
    """
    # import lokal: catalog tidak butuh config, hindari siklus import
    from oralscan.ml.conditions import DEFAULT_CLASSES, HEALTHY_KEYS

    return {
        "photo": ModeConfig(
            mode="photo",
            model_path=cfg["PHOTO_MODEL_PATH"],
            class_names_path=cfg["PHOTO_CLASS_NAMES_PATH"],
            default_classes=tuple(DEFAULT_CLASSES["photo"]),
            healthy_key=HEALTHY_KEYS["photo"],
        ),
        "xray": ModeConfig(
            mode="xray",
            model_path=cfg["XRAY_MODEL_PATH"],
            class_names_path=cfg["XRAY_CLASS_NAMES_PATH"],
            default_classes=tuple(DEFAULT_CLASSES["xray"]),
            healthy_key=HEALTHY_KEYS["xray"],
        ),
    }
