# oralscan/models/report.py
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Finding:
    condition: str
    confidence: int  # persen
    severity: str
    description: str
    color: str

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "confidence": self.confidence,
            "severity": self.severity,
            "description": self.description,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Finding":
        return cls(
            condition=str(d.get("condition", "")),
            confidence=int(d.get("confidence", 0)),
            severity=str(d.get("severity", "low")),
            description=str(d.get("description", "")),
            color=str(d.get("color", "")),
        )


@dataclass(frozen=True)
class OralHealthReport:
    summary: str
    health_score: int
    health_grade: str
    findings: List[Finding] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    disclaimer: str = ""
    generated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "health_score": self.health_score,
            "health_grade": self.health_grade,
            "findings": [f.to_dict() for f in self.findings],
            "recommendations": list(self.recommendations),
            "next_steps": list(self.next_steps),
            "disclaimer": self.disclaimer,
            "generated_at": self.generated_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "OralHealthReport":
        """Untuk report yang dikirim balik oleh frontend (download)."""
        if "health_score" not in d:
            raise ValueError("Report payload missing 'health_score'")
        return cls(
            summary=str(d.get("summary", "")),
            health_score=int(d["health_score"]),
            health_grade=str(d.get("health_grade", "")),
            findings=[Finding.from_dict(f) for f in d.get("findings") or []],
            recommendations=[str(r) for r in d.get("recommendations") or []],
            next_steps=[str(s) for s in d.get("next_steps") or []],
            disclaimer=str(d.get("disclaimer", "")),
            generated_at=str(d.get("generated_at", "")),
        )
