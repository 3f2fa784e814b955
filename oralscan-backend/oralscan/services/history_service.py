# oralscan/services/history_service.py
import json
import logging
import os
import tempfile
import threading
import time
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from werkzeug.utils import safe_join

from oralscan.models.history_item import HistoryItem, PredictionSummary
from oralscan.utils.storage_io import is_valid_client_id, try_remove_file

logger = logging.getLogger(__name__)

STORAGE_KEY = "dental_analysis_history"
MAX_HISTORY_ITEMS = 50  # batasi supaya file tidak membengkak


def _now_ms() -> int:
    return int(time.time() * 1000)


class LocalHistoryStore:
    """
    History lokal per client: satu file JSON per client id
    (<base_dir>/<client_id>.json) berisi list HistoryItem (newest first).
    - client lain tidak bisa membaca / menghapus history client ini
    - maksimal max_items, yang paling lama dibuang
    - error I/O di-log lalu diperlakukan seperti history kosong
    """

    def __init__(
        self,
        base_dir: str,
        max_items: int = MAX_HISTORY_ITEMS,
        clock: Callable[[], int] = _now_ms,
    ):
        self.base_dir = base_dir
        self.max_items = int(max_items)
        self._clock = clock
        self._lock = threading.RLock()

    def path_for(self, client_id: str) -> str:
        if not is_valid_client_id(client_id):
            raise ValueError(f"Invalid client id: {client_id!r}")
        return safe_join(self.base_dir, f"{client_id}.json")

    def _read(self, client_id: str) -> List[HistoryItem]:
        path = self.path_for(client_id)
        if not os.path.exists(path):
            return []
        with open(path, "r", encoding="utf-8") as f:
            blob = json.load(f)
        raw = blob.get(STORAGE_KEY, []) if isinstance(blob, dict) else blob
        return [HistoryItem.from_dict(d) for d in raw]

    def _write(self, client_id: str, items: List[HistoryItem]):
        """Tulis ke file temp di folder yang sama lalu os.replace (atomik)."""
        path = self.path_for(client_id)
        os.makedirs(self.base_dir, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, prefix=f".{client_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({STORAGE_KEY: [i.to_dict() for i in items]}, f, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            try_remove_file(tmp_path)
            raise

    def get_history(self, client_id: str) -> List[HistoryItem]:
        with self._lock:
            try:
                items = self._read(client_id)
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.error("Error loading history: %s", e)
                return []
        # sort stabil: timestamp sama -> urutan simpan (terbaru di depan)
        return sorted(items, key=lambda i: -i.timestamp)

    def add_to_history(
        self,
        client_id: str,
        image: str,
        predictions: List[PredictionSummary],
        health_score: int,
        health_grade: str,
    ) -> Optional[HistoryItem]:
        item = HistoryItem(
            id=str(uuid.uuid4()),
            timestamp=int(self._clock()),
            image=image,
            predictions=list(predictions),
            health_score=int(health_score),
            health_grade=health_grade,
        )
        with self._lock:
            history = self.get_history(client_id)
            history.insert(0, item)
            try:
                self._write(client_id, history[: self.max_items])
            except (OSError, TypeError, ValueError) as e:
                logger.error("Error saving to history: %s", e)
                return None
        return item

    def delete_history_item(self, client_id: str, item_id: str) -> bool:
        """Return True kalau ada yang terhapus. id tidak dikenal -> no-op."""
        with self._lock:
            history = self.get_history(client_id)
            remaining = [i for i in history if i.id != item_id]
            if len(remaining) == len(history):
                return False
            try:
                self._write(client_id, remaining)
            except (OSError, TypeError, ValueError) as e:
                logger.error("Error deleting history item: %s", e)
                return False
        return True

    def clear_history(self, client_id: str):
        with self._lock:
            try:
                path = self.path_for(client_id)
                if os.path.exists(path):
                    os.remove(path)
            except OSError as e:
                logger.error("Error clearing history: %s", e)

    def get_history_item(self, client_id: str, item_id: str) -> Optional[HistoryItem]:
        for item in self.get_history(client_id):
            if item.id == item_id:
                return item
        return None


def format_timestamp(timestamp_ms: int, now_ms: Optional[int] = None) -> str:
    """Label relatif: "Just now", "5 minutes ago", ..., lalu tanggal pendek."""
    now_ms = _now_ms() if now_ms is None else now_ms
    diff = now_ms - int(timestamp_ms)
    mins = diff // 60000
    hours = diff // 3600000
    days = diff // 86400000

    if mins < 1:
        return "Just now"
    if mins < 60:
        return f"{mins} minute{'s' if mins > 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if days < 7:
        return f"{days} day{'s' if days > 1 else ''} ago"

    dt = datetime.fromtimestamp(int(timestamp_ms) / 1000.0)
    now = datetime.fromtimestamp(now_ms / 1000.0)
    label = f"{dt:%b} {dt.day}"
    if dt.year != now.year:
        label += f", {dt.year}"
    return label
