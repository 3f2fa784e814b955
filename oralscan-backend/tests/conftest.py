"""
Pytest fixtures bersama:
- gambar sintetis (foto gigi merah/pink, radiograf abu-abu)
- fake model loader (tanpa TensorFlow)
- Flask app + test client dengan storage di tmp_path
- engine SQLite in-memory untuk cloud history
"""

import io
import json
import os

import numpy as np
import pytest
from PIL import Image
from sqlalchemy.pool import StaticPool

os.environ["TESTING"] = "1"

from oralscan import create_app
from oralscan.core.config import model_configs_from
from oralscan.database.db import make_engine


class FakeModel:
    """Meniru tf.keras.Model.predict: return (1, n) untuk setiap batch."""

    def __init__(self, scores):
        self.scores = list(scores)
        self.calls = 0

    def predict(self, batch, verbose=0):
        self.calls += 1
        assert batch.shape == (1, 224, 224, 3)
        return np.asarray([self.scores], dtype=np.float32)


def missing_model_loader(path):
    raise OSError(f"No file or directory found at {path}")


def make_loader(scores):
    model = FakeModel(scores)

    def _loader(path):
        return model

    _loader.model = model
    return _loader


def image_bytes(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


# =========================
# images
# =========================
@pytest.fixture
def photo_image():
    # dominan merah/pink seperti gusi
    return Image.new("RGB", (64, 48), (210, 90, 110))


@pytest.fixture
def xray_image():
    return Image.new("RGB", (64, 48), (128, 128, 128))


@pytest.fixture
def photo_png(photo_image):
    return image_bytes(photo_image)


@pytest.fixture
def xray_png(xray_image):
    return image_bytes(xray_image)


# =========================
# config / model
# =========================
@pytest.fixture
def test_config(tmp_path):
    model_dir = tmp_path / "models"
    storage = tmp_path / "storage"
    return {
        "TESTING": True,
        "LOG_LEVEL": "WARNING",
        "PHOTO_MODEL_PATH": str(model_dir / "dental" / "model.keras"),
        "PHOTO_CLASS_NAMES_PATH": str(model_dir / "dental" / "class_names.json"),
        "XRAY_MODEL_PATH": str(model_dir / "dental-xray" / "model.keras"),
        "XRAY_CLASS_NAMES_PATH": str(model_dir / "dental-xray" / "class_names.json"),
        "DEFAULT_MODE": "photo",
        "STORAGE_DIR": str(storage),
        "STORAGE_ANALYSIS_DIR": str(storage / "analysis_results"),
        "HISTORY_DIR": str(storage / "history"),
        "HISTORY_MAX_ITEMS": 50,
        "CLOUD_HISTORY_LIMIT": 10,
        "DATABASE_URL": "",
        "DB_HOST": "",
    }


@pytest.fixture
def mode_configs(test_config):
    return model_configs_from(test_config)


@pytest.fixture
def write_class_names(test_config):
    def _write(mode, names):
        key = "PHOTO_CLASS_NAMES_PATH" if mode == "photo" else "XRAY_CLASS_NAMES_PATH"
        path = test_config[key]
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            if isinstance(names, str):
                f.write(names)
            else:
                json.dump(names, f)
        return path

    return _write


# =========================
# database
# =========================
@pytest.fixture
def sqlite_engine():
    engine = make_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


# =========================
# app
# =========================
@pytest.fixture
def app(test_config):
    return create_app(test_config, model_loader=missing_model_loader)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def cloud_app(test_config, sqlite_engine):
    return create_app(test_config, model_loader=missing_model_loader, db_engine=sqlite_engine)


@pytest.fixture
def cloud_client(cloud_app):
    return cloud_app.test_client()
