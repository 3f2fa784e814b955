# oralscan/ml/classification/model_loader.py
import json
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from oralscan.core.config import ModeConfig
from oralscan.core.errors import ModelUnavailable
from oralscan.ml.conditions import CONDITION_DETAILS, canonical_condition, validate_mode

logger = logging.getLogger(__name__)

INPUT_SHAPE = [224, 224, 3]


def load_keras_model(path: str):
    """
    Loader default: model Keras (MobileNetV3 + preprocess_input di dalam graph).
    TensorFlow di-import di sini supaya import package tetap ringan.
    """
    import tensorflow as tf

    return tf.keras.models.load_model(path, compile=False)


def read_class_names(mode_cfg: ModeConfig) -> Optional[List[str]]:
    """
    Baca class_names.json (array string) lalu map ke key kondisi.
    Return None kalau file tidak ada / rusak / tidak ada nama yang valid.
    """
    try:
        with open(mode_cfg.class_names_path, "r", encoding="utf-8") as f:
            names = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(
            "Could not load class_names.json for %s, using defaults: %s", mode_cfg.mode, e
        )
        return None

    if not isinstance(names, list):
        logger.warning("class_names.json for %s is not a list, using defaults", mode_cfg.mode)
        return None

    mapped = [canonical_condition(n, mode_cfg.mode) for n in names if isinstance(n, str)]
    valid = [n for n in mapped if n in CONDITION_DETAILS]
    if not valid:
        logger.warning("class_names.json for %s has no known conditions, using defaults", mode_cfg.mode)
        return None
    return valid


@dataclass
class ModelSlot:
    """State model untuk satu mode: absent -> loading -> ready."""
    mode_cfg: ModeConfig
    class_names: List[str] = field(default_factory=list)
    class_names_loaded: bool = False
    model: object = None
    pending: Optional[Future] = None
    generation: int = 0

    def reset(self):
        self.model = None
        self.pending = None
        self.class_names = list(self.mode_cfg.default_classes)
        self.class_names_loaded = False
        # load yang masih jalan jadi orphan: hasilnya dibuang
        self.generation += 1


class ModelSession:
    """
    Pemilik model per mode (photo / xray).
    - load() lazy + cache, maksimal satu load in-flight per mode
    - set_mode() reset atomik: load lama jadi orphan
    """

    def __init__(
        self,
        mode_configs: Dict[str, ModeConfig],
        mode: str = "photo",
        loader: Callable[[str], object] = load_keras_model,
    ):
        self._configs = dict(mode_configs)
        self._loader = loader
        self._lock = threading.Lock()
        self._slots = {m: ModelSlot(mode_cfg=cfg) for m, cfg in self._configs.items()}
        for slot in self._slots.values():
            slot.reset()
        self._mode = validate_mode(mode)

    # -------------------------
    # mode
    # -------------------------
    @property
    def mode(self) -> str:
        return self._mode

    @property
    def mode_config(self) -> ModeConfig:
        return self._configs[self._mode]

    @property
    def healthy_key(self) -> str:
        return self.mode_config.healthy_key

    def set_mode(self, mode: str) -> bool:
        """Return True kalau mode benar-benar berganti."""
        mode = validate_mode(mode)
        with self._lock:
            if mode == self._mode:
                return False
            old = self._mode
            self._slots[old].reset()
            self._slots[mode].reset()
            self._mode = mode
        logger.info("Switched to %s analysis mode", mode)
        return True

    # -------------------------
    # class names
    # -------------------------
    @property
    def class_names(self) -> List[str]:
        with self._lock:
            return list(self._slots[self._mode].class_names)

    def ensure_class_names(self, mode: Optional[str] = None) -> List[str]:
        mode = validate_mode(mode or self._mode)
        with self._lock:
            slot = self._slots[mode]
            if slot.class_names_loaded:
                return list(slot.class_names)
            generation = slot.generation

        names = read_class_names(slot.mode_cfg)

        with self._lock:
            if slot.generation != generation:
                # mode di-reset selama baca file, jangan timpa state baru
                return list(slot.class_names)
            slot.class_names = names or list(slot.mode_cfg.default_classes)
            slot.class_names_loaded = True
            if names:
                logger.info("Loaded %s class names: %s", mode, slot.class_names)
            return list(slot.class_names)

    # -------------------------
    # model
    # -------------------------
    def load(self, mode: Optional[str] = None):
        """
        Lazy-load:
        - kalau sudah ada di cache -> langsung return
        - kalau sedang loading -> ikut menunggu future yang sama
        - selain itu mulai load baru
        Raise ModelUnavailable kalau gagal (tidak di-cache).
        """
        mode = validate_mode(mode or self._mode)
        owner = False
        with self._lock:
            slot = self._slots[mode]
            if slot.model is not None:
                return slot.model
            if slot.pending is None:
                slot.pending = Future()
                owner = True
            pending = slot.pending
            generation = slot.generation

        if owner:
            self._run_load(mode, slot, pending, generation)
        return pending.result()

    def _run_load(self, mode: str, slot: ModelSlot, pending: Future, generation: int):
        try:
            names = self.ensure_class_names(mode)
            logger.info("Loading %s dental model (%d classes)...", mode, len(names))
            model = self._loader(slot.mode_cfg.model_path)
        except Exception as e:
            logger.warning("Trained %s model not found: %s", mode, e)
            err = ModelUnavailable(
                f"Model not found for mode '{mode}' at {slot.mode_cfg.model_path}"
            )
            err.__cause__ = e
            with self._lock:
                if slot.generation == generation:
                    slot.pending = None
            pending.set_exception(err)
            return

        with self._lock:
            if slot.generation == generation:
                slot.model = model
                slot.pending = None
                logger.info("%s model loaded successfully", mode)
            else:
                logger.info("Discarding orphaned %s model load after mode reset", mode)
        pending.set_result(model)

    def predict(self, batch) -> List[float]:
        """batch (1, H, W, 3) -> vektor output mentah (probabilitas atau logits)."""
        model = self.load()
        preds = model.predict(batch, verbose=0)
        return [float(p) for p in preds[0]]

    def is_loaded(self, mode: Optional[str] = None) -> bool:
        mode = validate_mode(mode or self._mode)
        with self._lock:
            return self._slots[mode].model is not None

    def is_available(self) -> bool:
        try:
            self.load()
            return True
        except ModelUnavailable:
            return False

    def info(self) -> dict:
        return {
            "loaded": self.is_loaded(),
            "mode": self._mode,
            "class_names": self.class_names,
            "input_shape": list(INPUT_SHAPE),
        }
