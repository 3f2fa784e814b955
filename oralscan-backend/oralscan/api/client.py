# oralscan/api/client.py
import uuid

from flask import current_app, request

from oralscan.core.errors import InvalidClientId
from oralscan.utils.storage_io import is_valid_client_id


def get_client_id() -> str:
    """
    Client id dari header (atau query). String kosong kalau tidak dikirim.
    Raise InvalidClientId kalau formatnya tidak valid (dipakai di path storage).
    """
    # img tag tidak bisa kirim header kadang, jadi dukung query juga
    cid = (request.headers.get("X-Client-Id") or "").strip()
    if not cid:
        cid = (request.args.get("client_id") or "").strip()
    if cid and not is_valid_client_id(cid):
        raise InvalidClientId(cid)
    return cid


def get_or_create_client_id():
    """
    return (client_id, baru_dibuat)
    Client baru dapat id random; route wajib echo lewat header X-Client-Id.
    """
    cid = get_client_id()
    if cid:
        return cid, False
    return str(uuid.uuid4()), True


def with_client_header(resp, client_id: str):
    resp.headers["X-Client-Id"] = client_id
    return resp


def model_session():
    return current_app.extensions["model_session"]


def local_history():
    return current_app.extensions["local_history"]


def cloud_history():
    return current_app.extensions["cloud_history"]
