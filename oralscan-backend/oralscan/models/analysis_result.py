# oralscan/models/analysis_result.py
from dataclasses import dataclass
from typing import List

from oralscan.ml.conditions import ConditionInfo


@dataclass(frozen=True)
class ConditionScore:
    condition: str
    confidence: float  # 0..1
    info: ConditionInfo

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "confidence": self.confidence,
            "info": self.info.to_dict(),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """
    Hasil satu kali analisis. conditions sudah urut confidence (desc).
    source: "model" (inferensi asli) atau "heuristic" (fallback tanpa model).
    """
    conditions: List[ConditionScore]
    overall_health: int
    primary_condition: str
    analysis_timestamp: str
    image_quality: str  # "good" | "fair" | "poor"
    mode: str = "photo"
    source: str = "model"

    @property
    def primary(self) -> ConditionScore:
        return self.conditions[0]

    def confidence_of(self, condition: str) -> float:
        for c in self.conditions:
            if c.condition == condition:
                return c.confidence
        return 0.0

    def to_dict(self) -> dict:
        return {
            "conditions": [c.to_dict() for c in self.conditions],
            "overall_health": self.overall_health,
            "primary_condition": self.primary_condition,
            "analysis_timestamp": self.analysis_timestamp,
            "image_quality": self.image_quality,
            "mode": self.mode,
            "source": self.source,
        }
