# oralscan/core/errors.py


class OralScanError(Exception):
    """Base error untuk pipeline analisis."""


class ModelUnavailable(OralScanError):
    """Aset model tidak ada / gagal di-load. Ditangani dengan fallback heuristik."""


class ImageLoadFailure(OralScanError):
    """Input tidak bisa di-decode sebagai gambar."""

    user_message = "Failed to load image. Please try a different image."


class ModeMismatchDetected(OralScanError):
    """
    Tipe gambar hasil deteksi tidak sama dengan mode yang dipilih.
    Bukan kegagalan: user diarahkan untuk pindah mode.
    """

    def __init__(self, detected: str, requested: str):
        self.detected = detected
        self.requested = requested
        self.suggested_mode = detected
        if requested == "photo":
            message = (
                "This looks like a dental X-ray image. Please upload it in the "
                "X-Ray section for accurate analysis."
            )
        else:
            message = (
                "This looks like a regular dental photo. Please upload it in the "
                "Dental Photo section for accurate analysis."
            )
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": "mode_mismatch",
            "message": self.message,
            "detected_mode": self.detected,
            "requested_mode": self.requested,
            "suggested_mode": self.suggested_mode,
        }


GENERIC_ANALYSIS_ERROR = (
    "An error occurred during analysis. Please try again with a different image."
)


class InvalidClientId(OralScanError):
    """X-Client-Id / client_id tidak valid (karakter di luar [A-Za-z0-9_-] atau > 64)."""

    user_message = "Invalid client id."
