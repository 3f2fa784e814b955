"""Deteksi tipe gambar: foto gigi vs radiograf."""

from PIL import Image

from oralscan.ml.image_type import classify_image_stats, detect_image_type, image_type_stats


def test_red_photo_detected_as_photo(photo_image):
    assert detect_image_type(photo_image) == "photo"


def test_gray_image_detected_as_xray(xray_image):
    assert detect_image_type(xray_image) == "xray"


def test_gray_stats(xray_image):
    stats = image_type_stats(xray_image)
    assert stats["avg_saturation"] == 0.0
    assert stats["grayscale_ratio"] == 1.0
    assert stats["red_ratio"] == 0.0


def test_tinted_radiograph_still_xray():
    # tint kebiruan tipis dari scanner, saturasi rendah
    img = Image.new("RGB", (80, 80), (120, 125, 140))
    assert detect_image_type(img) == "xray"


def test_saturated_non_red_image_is_photo():
    img = Image.new("RGB", (80, 80), (40, 160, 220))
    stats = image_type_stats(img)
    assert stats["red_ratio"] == 0.0
    assert stats["avg_saturation"] > 0.30
    assert classify_image_stats(stats) == "photo"


def test_small_red_region_is_enough():
    img = Image.new("RGB", (100, 100), (128, 128, 128))
    # 10% area merah kuat (gusi)
    img.paste((220, 60, 70), (0, 0, 100, 10))
    assert detect_image_type(img) == "photo"


def test_classify_thresholds_are_strict():
    assert classify_image_stats({"red_ratio": 0.06, "avg_saturation": 0.30}) == "xray"
    assert classify_image_stats({"red_ratio": 0.0601, "avg_saturation": 0.0}) == "photo"
    assert classify_image_stats({"red_ratio": 0.0, "avg_saturation": 0.3001}) == "photo"
