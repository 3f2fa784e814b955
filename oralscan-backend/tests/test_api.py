"""Endpoint Flask: analyze, mode, model-info, report, history, storage."""

import io

import pytest

from conftest import make_loader
from oralscan import create_app
from oralscan.core.errors import GENERIC_ANALYSIS_ERROR, ImageLoadFailure, InvalidClientId
from oralscan.ml.conditions import PHOTO_CLASSES


def _upload(client, data, mode=None, headers=None, filename="mouth.png"):
    form = {"image": (io.BytesIO(data), filename)}
    if mode:
        form["mode"] = mode
    return client.post(
        "/api/analyze", data=form, content_type="multipart/form-data", headers=headers or {}
    )


class TestAnalyze:
    def test_photo_without_model_uses_fallback(self, client, photo_png):
        resp = _upload(client, photo_png, mode="photo")
        assert resp.status_code == 200

        body = resp.get_json()
        assert body["analysis"]["source"] == "heuristic"
        assert body["analysis"]["mode"] == "photo"
        assert len(body["analysis"]["conditions"]) == len(PHOTO_CLASSES)
        assert body["report"]["health_score"] == body["analysis"]["overall_health"]
        assert body["history_item"]["image"].startswith("data:image/png;base64,")
        assert body["client_id"]
        assert resp.headers["X-Client-Id"] == body["client_id"]

    def test_client_id_is_echoed(self, client, photo_png):
        resp = _upload(client, photo_png, headers={"X-Client-Id": "browser-1"})
        assert resp.status_code == 200
        assert resp.headers["X-Client-Id"] == "browser-1"

    def test_xray_in_xray_mode(self, client, xray_png):
        resp = _upload(client, xray_png, mode="xray")
        assert resp.status_code == 200
        assert resp.get_json()["analysis"]["mode"] == "xray"
        assert client.get("/api/mode").get_json()["mode"] == "xray"

    def test_mode_mismatch(self, client, xray_png):
        headers = {"X-Client-Id": "browser-1"}
        resp = _upload(client, xray_png, mode="photo", headers=headers)
        assert resp.status_code == 409

        body = resp.get_json()
        assert body["error"] == "mode_mismatch"
        assert body["suggested_mode"] == "xray"
        assert "X-Ray section" in body["message"]
        # tidak ada yang disimpan
        assert client.get("/api/history", headers=headers).get_json()["count"] == 0

    def test_photo_in_xray_mode(self, client, photo_png):
        resp = _upload(client, photo_png, mode="xray")
        assert resp.status_code == 409
        assert resp.get_json()["suggested_mode"] == "photo"

    def test_undecodable_image(self, client):
        resp = _upload(client, b"definitely not an image")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == ImageLoadFailure.user_message

    def test_decompression_bomb_rejected(self, client, photo_png, monkeypatch):
        from PIL import Image

        # 64x48 = 3072 piksel > 2 * MAX_IMAGE_PIXELS -> DecompressionBombError
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        resp = _upload(client, photo_png)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == ImageLoadFailure.user_message

    def test_oversized_image_warning_rejected(self, client, photo_png, monkeypatch):
        from PIL import Image

        # antara 1x dan 2x batas -> DecompressionBombWarning
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 2000)
        resp = _upload(client, photo_png)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == ImageLoadFailure.user_message

    @pytest.mark.parametrize("bad_id", ["../../../escaped", "a b", "x" * 65])
    def test_invalid_client_id_rejected(self, cloud_client, photo_png, tmp_path, bad_id):
        resp = _upload(cloud_client, photo_png, headers={"X-Client-Id": bad_id})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == InvalidClientId.user_message
        assert not list(tmp_path.rglob("escaped"))

        resp = cloud_client.get("/api/history", headers={"X-Client-Id": bad_id})
        assert resp.status_code == 400

    def test_missing_image(self, client):
        resp = client.post("/api/analyze", data={}, content_type="multipart/form-data")
        assert resp.status_code == 400

    def test_invalid_mode(self, client, photo_png):
        resp = _upload(client, photo_png, mode="ct")
        assert resp.status_code == 400

    def test_unexpected_error_is_generic_500(self, client, photo_png, monkeypatch):
        from oralscan.api import analyze_routes

        def boom(*args, **kwargs):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(analyze_routes, "analyze_upload", boom)
        resp = _upload(client, photo_png)
        assert resp.status_code == 500
        assert resp.get_json()["error"] == GENERIC_ANALYSIS_ERROR

    def test_with_trained_model(self, test_config, photo_png):
        scores = [0.05, 0.05, 0.05, 0.05, 0.7, 0.05, 0.05]
        loader = make_loader(scores)
        client = create_app(test_config, model_loader=loader).test_client()

        resp = _upload(client, photo_png, mode="photo")
        assert resp.status_code == 200
        analysis = resp.get_json()["analysis"]
        assert analysis["source"] == "model"
        assert analysis["primary_condition"] == "healthy"
        assert analysis["overall_health"] == 91
        assert loader.model.calls == 1

        assert client.get("/api/model-info").get_json()["loaded"] is True


class TestModeAndInfo:
    def test_get_and_set_mode(self, client):
        assert client.get("/api/mode").get_json()["mode"] == "photo"

        resp = client.post("/api/mode", json={"mode": "xray"})
        assert resp.status_code == 200
        assert resp.get_json() == {"mode": "xray", "changed": True}

        resp = client.post("/api/mode", json={"mode": "xray"})
        assert resp.get_json()["changed"] is False

    def test_set_invalid_mode(self, client):
        assert client.post("/api/mode", json={"mode": "mri"}).status_code == 400

    def test_model_info_without_model(self, client):
        info = client.get("/api/model-info").get_json()
        assert info["loaded"] is False
        assert info["mode"] == "photo"
        assert info["class_names"] == list(PHOTO_CLASSES)
        assert info["input_shape"] == [224, 224, 3]


class TestReportDownload:
    def test_download_text_report(self, client, photo_png):
        report = _upload(client, photo_png).get_json()["report"]
        resp = client.post("/api/report/download", json={"report": report})
        assert resp.status_code == 200
        assert resp.mimetype == "text/plain"
        assert "attachment; filename=\"dental-health-report-" in resp.headers["Content-Disposition"]
        assert "DENTAL HEALTH ANALYSIS REPORT" in resp.get_data(as_text=True)

    def test_download_rejects_invalid_payload(self, client):
        assert client.post("/api/report/download", json={"summary": "x"}).status_code == 400
        assert client.post("/api/report/download", data="nope").status_code == 400


class TestLocalHistory:
    def test_history_lifecycle(self, client, photo_png):
        headers = {"X-Client-Id": "alice"}
        _upload(client, photo_png, headers=headers)
        _upload(client, photo_png, headers=headers)

        listing = client.get("/api/history", headers=headers).get_json()
        assert listing["count"] == 2
        item = listing["items"][0]
        assert item["time_label"] == "Just now"

        detail = client.get(f"/api/history/{item['id']}", headers=headers)
        assert detail.status_code == 200

        report = client.get(f"/api/history/{item['id']}/report", headers=headers).get_json()
        assert report["health_score"] == item["health_score"]
        assert report["summary"].startswith("Historical analysis from")

        download = client.get(f"/api/history/{item['id']}/download", headers=headers)
        assert download.status_code == 200
        assert "DENTAL HEALTH ANALYSIS REPORT" in download.get_data(as_text=True)

        resp = client.delete(f"/api/history/{item['id']}", headers=headers)
        assert resp.get_json()["deleted"] is True
        assert client.get("/api/history", headers=headers).get_json()["count"] == 1

        client.delete("/api/history", headers=headers)
        assert client.get("/api/history", headers=headers).get_json()["count"] == 0

    def test_history_is_per_client(self, client, photo_png):
        alice = {"X-Client-Id": "alice"}
        bob = {"X-Client-Id": "bob"}
        item = _upload(client, photo_png, headers=alice).get_json()["history_item"]

        listing = client.get("/api/history", headers=bob)
        assert listing.get_json()["count"] == 0
        assert listing.headers["X-Client-Id"] == "bob"
        assert client.get(f"/api/history/{item['id']}", headers=bob).status_code == 404
        assert client.delete(f"/api/history/{item['id']}", headers=bob).get_json()["deleted"] is False

        client.delete("/api/history", headers=bob)
        assert client.get("/api/history", headers=alice).get_json()["count"] == 1
        # tanpa header = client baru, tidak melihat history siapa pun
        assert client.get("/api/history").get_json()["count"] == 0

    def test_unknown_item(self, client):
        assert client.get("/api/history/missing").status_code == 404
        assert client.get("/api/history/missing/report").status_code == 404
        resp = client.delete("/api/history/missing")
        assert resp.status_code == 200
        assert resp.get_json()["deleted"] is False


class TestCloudHistory:
    def test_unconfigured_backend(self, client):
        resp = client.get("/api/cloud-history")
        assert resp.status_code == 200
        assert resp.get_json() == {"items": [], "configured": False}
        # client baru dapat id
        assert resp.headers["X-Client-Id"]

    def test_saved_per_client(self, cloud_client, photo_png):
        headers = {"X-Client-Id": "browser-a"}
        body = _upload(cloud_client, photo_png, headers=headers).get_json()
        record = body["cloud_record"]
        assert record["user_id"] == "browser-a"
        assert record["image_url"] == f"{record['id']}/orig.png"

        items = cloud_client.get("/api/cloud-history", headers=headers).get_json()["items"]
        assert [i["id"] for i in items] == [record["id"]]

        other = cloud_client.get("/api/cloud-history", headers={"X-Client-Id": "browser-b"})
        assert other.get_json()["items"] == []

        # file upload hanya untuk pemilik
        url = f"/api/storage/browser-a/{record['image_url']}"
        assert cloud_client.get(url, headers=headers).status_code == 200
        assert cloud_client.get(url, headers={"X-Client-Id": "browser-b"}).status_code == 403
        assert cloud_client.get(url).status_code == 400

        resp = cloud_client.delete(f"/api/cloud-history/{record['id']}", headers={"X-Client-Id": "browser-b"})
        assert resp.status_code == 404

        resp = cloud_client.delete(f"/api/cloud-history/{record['id']}", headers=headers)
        assert resp.get_json()["deleted"] is True
        assert cloud_client.get(url, headers=headers).status_code == 404

    def test_clear_cloud_history(self, cloud_client, photo_png):
        headers = {"X-Client-Id": "browser-a"}
        _upload(cloud_client, photo_png, headers=headers)
        _upload(cloud_client, photo_png, headers=headers)

        resp = cloud_client.delete("/api/cloud-history", headers=headers)
        assert resp.get_json() == {"cleared": True, "removed": 2}
        assert cloud_client.get("/api/cloud-history", headers=headers).get_json()["items"] == []

    @pytest.mark.parametrize("path", ["/api/cloud-history", "/api/history"])
    def test_cors_allows_any_origin(self, client, path):
        resp = client.get(path, headers={"Origin": "http://localhost:5173"})
        assert resp.headers.get("Access-Control-Allow-Origin") in {"*", "http://localhost:5173"}
