# oralscan/utils/image_io.py
import base64
import io
import warnings

import numpy as np
from PIL import Image, UnidentifiedImageError

from oralscan.core.config import Config
from oralscan.core.errors import ImageLoadFailure


def decode_image(image_bytes: bytes) -> Image.Image:
    """
    bytes upload -> PIL RGB.
    Raise ImageLoadFailure kalau bukan gambar yang valid.
    """
    if not image_bytes:
        raise ImageLoadFailure("Empty image payload")
    try:
        # gambar di atas MAX_IMAGE_PIXELS juga ditolak, bukan cuma warning
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            img = Image.open(io.BytesIO(image_bytes))
            img.load()
    except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
        raise ImageLoadFailure(f"Image too large: {e}") from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageLoadFailure(f"Cannot decode image: {e}") from e
    return img.convert("RGB")


def load_image_from_file(file_storage) -> tuple:
    """
    Flask FileStorage -> (PIL RGB, raw bytes, mimetype).
    Raw bytes tetap dikembalikan untuk disimpan di history.
    """
    image_bytes = file_storage.read()
    img = decode_image(image_bytes)
    mimetype = getattr(file_storage, "mimetype", None) or "image/jpeg"
    return img, image_bytes, mimetype


def preprocess_for_model(img: Image.Image, size=None) -> np.ndarray:
    """
    Resize bilinear ke input model, output (1, H, W, 3) float32 range [0..255].
    Tidak ada normalisasi: model sudah membawa preprocess_input sendiri.
    """
    h, w = size or (Config.MODEL_IMG_H, Config.MODEL_IMG_W)
    img = img.convert("RGB").resize((w, h), Image.BILINEAR)
    arr = np.asarray(img, dtype=np.float32)
    return np.expand_dims(arr, axis=0)


def load_fallback_pixels(img: Image.Image, size=None) -> np.ndarray:
    """
    Untuk heuristik fallback: resize nearest-neighbour, (H, W, 3) float32 [0..1].
    """
    h, w = size or (Config.MODEL_IMG_H, Config.MODEL_IMG_W)
    img = img.convert("RGB").resize((w, h), Image.NEAREST)
    return np.asarray(img, dtype=np.float32) / 255.0


def image_brightness(img: Image.Image) -> float:
    """Rata-rata semua channel gambar asli, dibagi 255."""
    arr = np.asarray(img.convert("RGB"), dtype=np.float32)
    if arr.size == 0:
        return 0.0
    return float(arr.mean() / 255.0)


def to_data_url(image_bytes: bytes, mimetype: str = "image/jpeg") -> str:
    b64 = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mimetype};base64,{b64}"
