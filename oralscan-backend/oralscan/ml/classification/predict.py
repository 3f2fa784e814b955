# oralscan/ml/classification/predict.py
from PIL import Image

from oralscan.utils.image_io import image_brightness, preprocess_for_model
from .model_loader import ModelSession


def predict_dental_condition(session: ModelSession, img: Image.Image):
    """
    img: PIL RGB (ukuran bebas)

    return:
        raw_scores: list float (output model apa adanya, bisa softmax atau logits)
        brightness: float [0..1] dari gambar asli, untuk kualitas gambar
    """
    batch = preprocess_for_model(img)
    raw_scores = session.predict(batch)
    return raw_scores, image_brightness(img)
