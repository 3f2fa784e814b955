"""Cloud history: backend no-op dan backend SQL (SQLite in-memory)."""

import os

import pytest

from oralscan.services.cloud_history_service import (
    NullHistoryBackend,
    SqlHistoryBackend,
    create_history_backend,
)
from oralscan.utils.storage_io import ensure_analysis_dir, is_valid_client_id


@pytest.fixture
def storage_dir(tmp_path):
    return str(tmp_path / "analysis_results")


@pytest.fixture
def backend(sqlite_engine, storage_dir):
    return create_history_backend("", storage_dir, engine=sqlite_engine)


def _save(backend, user, record_id, score=80, data=b"\x89PNG fake"):
    url = backend.upload_image(user, record_id, data, filename="upload.png", mimetype="image/png")
    return backend.save_analysis(
        user, url, score, "healthy", {"report": {"health_score": score}}, record_id=record_id
    )


def test_unconfigured_url_gives_null_backend(storage_dir):
    backend = create_history_backend("", storage_dir)
    assert isinstance(backend, NullHistoryBackend)
    assert backend.configured is False


def test_null_backend_is_noop():
    backend = NullHistoryBackend()
    assert backend.save_analysis("u", "x", 90, "healthy", {}) is None
    assert backend.list_history("u") == []
    assert backend.get_analysis("u", "id") is None
    assert backend.delete_analysis("u", "id") is False
    assert backend.clear_history("u") == 0
    assert backend.upload_image("u", "id", b"abc", mimetype="image/png") == (
        "data:image/png;base64,YWJj"
    )


def test_engine_gives_sql_backend(backend):
    assert isinstance(backend, SqlHistoryBackend)
    assert backend.configured is True


def test_upload_persists_file(backend, storage_dir):
    url = backend.upload_image("client-a", "rec-1", b"data", filename="x.PNG")
    assert url == "rec-1/orig.png"
    with open(os.path.join(storage_dir, "client-a", "rec-1", "orig.png"), "rb") as f:
        assert f.read() == b"data"


def test_save_and_list_scoped_by_user(backend):
    row = _save(backend, "client-a", "rec-1", score=70)
    _save(backend, "client-a", "rec-2", score=90)
    _save(backend, "client-b", "rec-3")

    assert row["id"] == "rec-1"
    assert row["analysis_data"] == {"report": {"health_score": 70}}

    items = backend.list_history("client-a")
    assert {i["id"] for i in items} == {"rec-1", "rec-2"}
    assert all(i["user_id"] == "client-a" for i in items)
    assert items[0]["created_at"] >= items[1]["created_at"]


def test_list_respects_limit(backend):
    for i in range(4):
        _save(backend, "client-a", f"rec-{i}")
    assert len(backend.list_history("client-a", limit=3)) == 3


def test_delete_requires_owner(backend, storage_dir):
    _save(backend, "client-a", "rec-1")
    path = os.path.join(storage_dir, "client-a", "rec-1", "orig.png")
    assert os.path.isfile(path)

    assert backend.delete_analysis("client-b", "rec-1") is False
    assert backend.get_analysis("client-a", "rec-1") is not None

    assert backend.delete_analysis("client-a", "rec-1") is True
    assert backend.get_analysis("client-a", "rec-1") is None
    assert not os.path.exists(path)


def test_clear_only_own_records(backend):
    _save(backend, "client-a", "rec-1")
    _save(backend, "client-a", "rec-2")
    _save(backend, "client-b", "rec-3")

    assert backend.clear_history("client-a") == 2
    assert backend.list_history("client-a") == []
    assert len(backend.list_history("client-b")) == 1


def test_save_requires_user(backend):
    with pytest.raises(ValueError):
        backend.save_analysis("", "x", 80, "healthy", {})


@pytest.mark.parametrize("client_id", ["../escaped", "..", "a/b", "a\\b", "", "x" * 65, "ok\n"])
def test_invalid_client_id_cannot_leave_storage(storage_dir, tmp_path, client_id):
    assert is_valid_client_id(client_id) is False
    with pytest.raises(ValueError):
        ensure_analysis_dir(storage_dir, client_id, "rec-1")
    assert not (tmp_path / "escaped").exists()


def test_analysis_id_cannot_leave_client_dir(storage_dir):
    with pytest.raises(ValueError):
        ensure_analysis_dir(storage_dir, "client-a", "../../escaped")


def test_upload_rejects_invalid_client_id(backend, tmp_path):
    with pytest.raises(ValueError):
        backend.upload_image("../../escaped", "rec-1", b"data", filename="x.png")
    assert not list(tmp_path.rglob("escaped"))
