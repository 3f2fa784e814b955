# oralscan/models/history_item.py
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class PredictionSummary:
    condition: str
    confidence: int
    severity: str

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "confidence": self.confidence,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class HistoryItem:
    id: str
    timestamp: int  # epoch ms
    image: str      # data URL (gambar di-embed, bukan referensi)
    predictions: List[PredictionSummary] = field(default_factory=list)
    health_score: int = 0
    health_grade: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "image": self.image,
            "predictions": [p.to_dict() for p in self.predictions],
            "health_score": self.health_score,
            "health_grade": self.health_grade,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "HistoryItem":
        return cls(
            id=str(d["id"]),
            timestamp=int(d["timestamp"]),
            image=str(d.get("image", "")),
            predictions=[
                PredictionSummary(
                    condition=str(p.get("condition", "")),
                    confidence=int(p.get("confidence", 0)),
                    severity=str(p.get("severity", "low")),
                )
                for p in d.get("predictions") or []
            ],
            health_score=int(d.get("health_score", 0)),
            health_grade=str(d.get("health_grade", "")),
        )
