# oralscan/services/cloud_history_service.py
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from oralscan.database.db import Base, make_engine, make_session_factory
from oralscan.models.analysis_history import AnalysisHistory
from oralscan.utils.image_io import to_data_url
from oralscan.utils.storage_io import ext_for, persist_bytes, safe_abs_path, try_remove_file

logger = logging.getLogger(__name__)


def _to_iso_utc(dt):
    """
    Pastikan output selalu ISO string.
    Kalau datetime dari DB naive (tanpa tzinfo), anggap UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _row_to_dict(row: AnalysisHistory) -> dict:
    try:
        data = json.loads(row.analysis_data) if row.analysis_data else {}
    except ValueError:
        data = {}
    return {
        "id": row.id,
        "created_at": _to_iso_utc(row.created_at),
        "image_url": row.image_url,
        "health_score": row.health_score,
        "primary_condition": row.primary_condition,
        "analysis_data": data,
        "user_id": row.user_id,
    }


class HistoryBackend:
    """
    Interface cloud history. Semua operasi di-scope oleh user_id
    (anonymous client id per browser).
    """

    configured = False

    def save_analysis(
        self,
        user_id: str,
        image_url: str,
        health_score: int,
        primary_condition: str,
        analysis_data: dict,
        record_id: Optional[str] = None,
    ) -> Optional[dict]:
        raise NotImplementedError

    def list_history(self, user_id: str, limit: int = 10) -> List[dict]:
        raise NotImplementedError

    def get_analysis(self, user_id: str, record_id: str) -> Optional[dict]:
        raise NotImplementedError

    def delete_analysis(self, user_id: str, record_id: str) -> bool:
        raise NotImplementedError

    def clear_history(self, user_id: str) -> int:
        raise NotImplementedError

    def upload_image(
        self,
        user_id: str,
        analysis_id: str,
        image_bytes: bytes,
        filename: str = "",
        mimetype: str = "image/jpeg",
    ) -> str:
        raise NotImplementedError


class NullHistoryBackend(HistoryBackend):
    """Cloud history tidak dikonfigurasi: semua operasi no-op, sukses kosong."""

    def save_analysis(
        self, user_id, image_url, health_score, primary_condition, analysis_data, record_id=None
    ):
        logger.debug("Cloud history not configured - skipping history save")
        return None

    def list_history(self, user_id, limit=10):
        return []

    def get_analysis(self, user_id, record_id):
        return None

    def delete_analysis(self, user_id, record_id):
        return False

    def clear_history(self, user_id):
        return 0

    def upload_image(self, user_id, analysis_id, image_bytes, filename="", mimetype="image/jpeg"):
        # tanpa storage: kembalikan gambar sebagai data URL
        return to_data_url(image_bytes, mimetype)


class SqlHistoryBackend(HistoryBackend):
    configured = True

    def __init__(self, session_factory, storage_dir: str):
        self.SessionLocal = session_factory
        self.storage_dir = storage_dir

    def save_analysis(
        self, user_id, image_url, health_score, primary_condition, analysis_data, record_id=None
    ):
        if not user_id:
            raise ValueError("user_id wajib")

        row = AnalysisHistory(
            id=str(record_id or uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
            user_id=str(user_id),
            image_url=str(image_url),
            health_score=int(health_score),
            primary_condition=str(primary_condition),
            analysis_data=json.dumps(analysis_data or {}, ensure_ascii=False),
        )
        db = self.SessionLocal()
        try:
            db.add(row)
            db.commit()
            return _row_to_dict(row)
        except SQLAlchemyError as e:
            db.rollback()
            raise RuntimeError(f"DB error: {e}") from e
        finally:
            db.close()

    def list_history(self, user_id, limit=10):
        db = self.SessionLocal()
        try:
            rows = (
                db.query(AnalysisHistory)
                .filter(AnalysisHistory.user_id == user_id)
                .order_by(AnalysisHistory.created_at.desc())
                .limit(int(limit))
                .all()
            )
            return [_row_to_dict(r) for r in rows]
        finally:
            db.close()

    def get_analysis(self, user_id, record_id) -> Optional[dict]:
        db = self.SessionLocal()
        try:
            row = (
                db.query(AnalysisHistory)
                .filter(AnalysisHistory.id == record_id)
                .filter(AnalysisHistory.user_id == user_id)
                .first()
            )
            return _row_to_dict(row) if row else None
        finally:
            db.close()

    def delete_analysis(self, user_id, record_id):
        """
        Hapus 1 record milik user_id (record user lain tidak bisa terhapus)
        + file upload-nya kalau ada di storage.
        """
        if not user_id:
            raise ValueError("user_id wajib")

        db = self.SessionLocal()
        try:
            row = (
                db.query(AnalysisHistory)
                .filter(AnalysisHistory.id == record_id)
                .filter(AnalysisHistory.user_id == user_id)
                .first()
            )
            if not row:
                return False
            image_path = safe_abs_path(self.storage_dir, user_id, row.image_url)
            db.delete(row)
            db.commit()
        finally:
            db.close()

        try_remove_file(image_path)
        return True

    def clear_history(self, user_id):
        if not user_id:
            raise ValueError("user_id wajib")

        db = self.SessionLocal()
        try:
            rows = db.query(AnalysisHistory).filter(AnalysisHistory.user_id == user_id).all()
            paths = [safe_abs_path(self.storage_dir, user_id, r.image_url) for r in rows]
            for r in rows:
                db.delete(r)
            db.commit()
        finally:
            db.close()

        for p in paths:
            try_remove_file(p)
        return len(rows)

    def upload_image(self, user_id, analysis_id, image_bytes, filename="", mimetype="image/jpeg"):
        """
        Simpan gambar ke <storage_dir>/<user_id>/<analysis_id>/orig.<ext>.
        return: path relatif "<analysis_id>/orig.<ext>" (disimpan sebagai image_url)
        """
        ext = ext_for(filename, mimetype)
        return persist_bytes(self.storage_dir, image_bytes, user_id, analysis_id, f"orig.{ext}")


def create_history_backend(database_url: str, storage_dir: str, engine=None) -> HistoryBackend:
    """
    Dipilih sekali saat startup:
    - URL kosong  -> NullHistoryBackend
    - URL ada     -> SqlHistoryBackend (tabel dibuat kalau belum ada)
    """
    if not database_url and engine is None:
        logger.info("Cloud history not configured; using no-op backend")
        return NullHistoryBackend()

    engine = engine or make_engine(database_url)
    Base.metadata.create_all(bind=engine)
    logger.info("Cloud history enabled (%s)", engine.url.get_backend_name())
    return SqlHistoryBackend(make_session_factory(engine), storage_dir)
