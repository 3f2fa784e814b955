# oralscan/utils/storage_io.py
import os
import re
from pathlib import PurePosixPath

from werkzeug.utils import safe_join

# anonymous client id dipakai sebagai nama folder/file: batasi karakternya
CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

VALID_EXTS = ("jpg", "jpeg", "png", "webp", "bmp", "tif", "tiff")

MIMETYPE_EXTS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/tiff": "tif",
}


def ext_for(filename: str = "", mimetype: str = "") -> str:
    ext = ""
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
    if ext not in VALID_EXTS:
        ext = MIMETYPE_EXTS.get((mimetype or "").lower(), "jpg")
    return ext


def is_valid_client_id(client_id) -> bool:
    return bool(client_id) and bool(CLIENT_ID_PATTERN.fullmatch(str(client_id)))


def ensure_analysis_dir(storage_dir: str, client_id: str, analysis_id: str) -> str:
    """
    <storage_dir>/<client_id>/<analysis_id>/
    Raise ValueError kalau client_id / analysis_id keluar dari storage_dir.
    """
    if not is_valid_client_id(client_id):
        raise ValueError(f"Invalid client id: {client_id!r}")
    d = safe_join(storage_dir, str(client_id), str(analysis_id))
    if d is None:
        raise ValueError(f"Invalid storage path for analysis {analysis_id!r}")
    os.makedirs(d, exist_ok=True)
    return d


def persist_bytes(
    storage_dir: str, data: bytes, client_id: str, analysis_id: str, filename: str
) -> str:
    """
    Tulis bytes upload ke storage permanen.
    return: path RELATIF terhadap <storage_dir>/<client_id>, contoh "<analysis_id>/orig.jpg"
    """
    analysis_dir = ensure_analysis_dir(storage_dir, client_id, analysis_id)
    dst = safe_join(analysis_dir, filename)
    if dst is None:
        raise ValueError(f"Invalid storage filename: {filename!r}")
    with open(dst, "wb") as f:
        f.write(data)

    # WAJIB pakai slash '/' agar aman dipakai sebagai URL path,
    # meskipun backend jalan di Windows.
    return str(PurePosixPath(str(analysis_id)) / filename)


def safe_abs_path(storage_dir: str, client_id: str, rel_path: str):
    """
    Path relatif dari DB -> absolute path di storage, dengan guard anti path traversal.
    """
    if not rel_path:
        return None
    base = os.path.abspath(os.path.join(storage_dir, str(client_id)))
    abs_p = os.path.normpath(os.path.join(base, str(rel_path).replace("\\", "/")))
    if not abs_p.startswith(base + os.sep):
        return None
    return abs_p


def try_remove_file(path):
    if not path:
        return
    try:
        if os.path.isfile(path):
            os.remove(path)
        d = os.path.dirname(path)
        # bersihkan folder analysis_id kalau kosong
        if os.path.isdir(d) and not os.listdir(d):
            os.rmdir(d)
    except OSError:
        # jangan bikin delete gagal hanya karena file missing/locked
        pass
