# oralscan/ml/conditions.py
import re
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class ConditionInfo:
    name: str
    description: str
    severity: str  # "low" | "moderate" | "high"
    color: str
    recommendations: Tuple[str, ...]
    urgency: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "severity": self.severity,
            "color": self.color,
            "recommendations": list(self.recommendations),
            "urgency": self.urgency,
        }


MODES = ("photo", "xray")

# =========================
# PHOTO (kamera intraoral)
# =========================
PHOTO_CLASSES = (
    "calculus",
    "cavity",
    "discoloration",
    "gingivitis",
    "healthy",
    "hypodontia",
    "ulcer",
)

# =========================
# X-RAY (radiograf)
# =========================
XRAY_CLASSES = (
    "bdc_bdr",
    "caries",
    "fractured_teeth",
    "healthy_teeth",
    "impacted_teeth",
    "infection",
)

DEFAULT_CLASSES = {"photo": PHOTO_CLASSES, "xray": XRAY_CLASSES}
HEALTHY_KEYS = {"photo": "healthy", "xray": "healthy_teeth"}
HEALTHY_CONDITIONS = frozenset(HEALTHY_KEYS.values())

# nama folder dataset X-ray -> key kondisi
XRAY_CLASS_MAP = {
    "BDC-BDR": "bdc_bdr",
    "Caries": "caries",
    "Fractured Teeth": "fractured_teeth",
    "Healthy Teeth": "healthy_teeth",
    "Impacted teeth": "impacted_teeth",
    "Infection": "infection",
}

# penalti skor lebih besar untuk kondisi ini
HIGH_SEVERITY_CONDITIONS = frozenset({
    "cavity",
    "hypodontia",
    "ulcer",
    "gingivitis",
    "caries",
    "impacted_teeth",
    "fractured_teeth",
    "infection",
    "bdc_bdr",
})

URGENT_CONDITIONS = ("cavity", "gingivitis", "ulcer", "hypodontia")


CONDITION_DETAILS: Dict[str, ConditionInfo] = {
    "healthy": ConditionInfo(
        name="Healthy Teeth",
        description=(
            "Great news! Your teeth appear to be in good health. No significant dental "
            "conditions were detected in the analysis."
        ),
        severity="low",
        color="#10b981",
        recommendations=(
            "Continue your excellent oral hygiene routine",
            "Brush twice daily for at least 2 minutes",
            "Floss daily to maintain healthy gums",
            "Visit your dentist for regular check-ups every 6 months",
            "Maintain a balanced diet and limit sugary snacks",
            "Replace your toothbrush every 3-4 months",
        ),
        urgency="Continue routine dental check-ups every 6 months.",
    ),
    "calculus": ConditionInfo(
        name="Dental Calculus (Tartar)",
        description=(
            "Hardened plaque (calculus or tartar) has been detected on your teeth. "
            "Calculus cannot be removed by brushing alone and requires professional "
            "dental cleaning."
        ),
        severity="moderate",
        color="#f59e0b",
        recommendations=(
            "Schedule a professional dental cleaning (scaling) within 2-4 weeks",
            "Improve daily brushing technique, especially along the gum line",
            "Use tartar-control toothpaste",
            "Floss daily to prevent further buildup",
            "Consider using an electric toothbrush for better plaque removal",
            "Regular dental cleanings every 6 months are essential",
        ),
        urgency="Professional cleaning recommended within 2-4 weeks.",
    ),
    "cavity": ConditionInfo(
        name="Dental Cavity (Caries)",
        description=(
            "The analysis suggests possible dental caries (cavity) in the visible teeth. "
            "Cavities are permanently damaged areas in the tooth enamel that require "
            "professional treatment."
        ),
        severity="moderate",
        color="#ef4444",
        recommendations=(
            "Schedule a dental appointment within 1-2 weeks for professional evaluation",
            "Avoid very sweet, hot, or cold foods that may increase sensitivity",
            "Use fluoride toothpaste to help protect remaining enamel",
            "Reduce sugar intake between meals to slow further decay",
            "Rinse with salt water to help reduce oral bacteria",
        ),
        urgency="Dental visit recommended within 1–2 weeks.",
    ),
    "discoloration": ConditionInfo(
        name="Tooth Discoloration",
        description=(
            "Tooth discoloration or staining has been detected. This can be caused by "
            "various factors including food/drink stains, medication, or underlying "
            "dental issues."
        ),
        severity="low",
        color="#8b5cf6",
        recommendations=(
            "Schedule a dental consultation to determine the cause",
            "Maintain good oral hygiene with regular brushing and flossing",
            "Consider professional teeth whitening if appropriate",
            "Limit consumption of staining foods and drinks (coffee, tea, wine)",
            "Use whitening toothpaste as part of your routine",
            "Avoid smoking, which can cause severe discoloration",
        ),
        urgency="Routine dental consultation recommended.",
    ),
    "gingivitis": ConditionInfo(
        name="Gingivitis (Gum Inflammation)",
        description=(
            "Signs of gingivitis (gum inflammation) have been detected. This is an early "
            "stage of gum disease that can be reversed with proper care."
        ),
        severity="moderate",
        color="#f97316",
        recommendations=(
            "Schedule a dental appointment for professional evaluation and cleaning",
            "Improve daily oral hygiene - brush twice daily and floss daily",
            "Use an antiseptic mouthwash to reduce bacteria",
            "Consider using a soft-bristled toothbrush to avoid further irritation",
            "Massage gums gently while brushing to improve circulation",
            "Avoid smoking, which worsens gum disease",
        ),
        urgency="Dental visit recommended within 2-3 weeks.",
    ),
    "hypodontia": ConditionInfo(
        name="Hypodontia (Missing Teeth)",
        description=(
            "Missing teeth (hypodontia) have been detected. This condition may be "
            "congenital or acquired and may require dental intervention depending on "
            "the extent."
        ),
        severity="high",
        color="#dc2626",
        recommendations=(
            "Schedule a dental consultation with a prosthodontist or oral surgeon",
            "Discuss treatment options such as dental implants, bridges, or dentures",
            "Maintain excellent oral hygiene for remaining teeth",
            "Consider orthodontic evaluation if multiple teeth are missing",
            "Regular dental check-ups to monitor oral health",
        ),
        urgency="Dental consultation recommended as soon as possible.",
    ),
    "ulcer": ConditionInfo(
        name="Mouth Ulcer",
        description=(
            "Mouth ulcers or sores have been detected. These can be caused by various "
            "factors including trauma, infection, or underlying health conditions."
        ),
        severity="moderate",
        color="#e11d48",
        recommendations=(
            "Schedule a dental or medical consultation if ulcers persist more than 2 weeks",
            "Avoid spicy, acidic, or rough foods that may irritate the ulcers",
            "Maintain gentle oral hygiene to prevent infection",
            "Use a soft-bristled toothbrush",
            "Consider over-the-counter topical treatments for pain relief",
            "Monitor for signs of infection (increased pain, swelling, fever)",
        ),
        urgency="Medical consultation recommended if ulcers persist beyond 2 weeks.",
    ),
    # ---- kondisi model X-ray ----
    "caries": ConditionInfo(
        name="Dental Caries",
        description=(
            "Dental caries (tooth decay) has been detected in the X-ray. This appears as "
            "dark areas within the tooth structure indicating mineral loss and cavity "
            "formation."
        ),
        severity="moderate",
        color="#ef4444",
        recommendations=(
            "Schedule a dental appointment for professional evaluation and treatment",
            "A filling or crown may be required depending on the extent of decay",
            "Use fluoride toothpaste and mouthwash to prevent further decay",
            "Reduce sugar intake between meals",
            "Regular dental check-ups every 6 months",
        ),
        urgency="Dental visit recommended within 1-2 weeks.",
    ),
    "impacted_teeth": ConditionInfo(
        name="Impacted Tooth",
        description=(
            "An impacted tooth has been detected in the X-ray. This tooth is unable to "
            "fully erupt through the gum line, often due to lack of space or abnormal "
            "positioning."
        ),
        severity="high",
        color="#dc2626",
        recommendations=(
            "Consult an oral surgeon for evaluation",
            "Surgical extraction may be necessary to prevent complications",
            "Monitor for pain, swelling, or infection around the impacted area",
            "Keep the area clean to prevent pericoronitis",
            "Follow up with regular panoramic X-rays to monitor changes",
        ),
        urgency="Oral surgery consultation recommended soon.",
    ),
    "fractured_teeth": ConditionInfo(
        name="Fractured Tooth",
        description=(
            "A tooth fracture has been detected in the X-ray. The fracture line may "
            "extend through the enamel, dentin, or into the root depending on severity."
        ),
        severity="high",
        color="#b91c1c",
        recommendations=(
            "Seek immediate dental care to prevent further damage",
            "Avoid chewing on the affected side",
            "Treatment may include bonding, crown, or root canal depending on severity",
            "If the root is fractured, extraction may be necessary",
            "Take over-the-counter pain relief if needed",
        ),
        urgency="Dental visit recommended as soon as possible.",
    ),
    "infection": ConditionInfo(
        name="Dental Infection",
        description=(
            "Signs of dental infection have been detected in the X-ray. This may appear "
            "as a dark area around the root tip (periapical abscess) indicating "
            "bacterial infection."
        ),
        severity="high",
        color="#991b1b",
        recommendations=(
            "Seek urgent dental care - infections can spread if untreated",
            "Antibiotics may be prescribed to control the infection",
            "Root canal treatment or extraction may be necessary",
            "Do not ignore persistent pain or swelling",
            "Warm salt water rinses can help manage symptoms temporarily",
        ),
        urgency="Urgent dental visit recommended within 24-48 hours.",
    ),
    "bdc_bdr": ConditionInfo(
        name="Broken Down Crown/Root",
        description=(
            "A broken down crown or root (BDC/BDR) has been detected. The tooth "
            "structure has significantly deteriorated and may only have root remnants "
            "remaining."
        ),
        severity="high",
        color="#7f1d1d",
        recommendations=(
            "Consult a dentist for evaluation of the remaining tooth structure",
            "Extraction is often necessary for severely broken down teeth",
            "Discuss replacement options: implant, bridge, or denture",
            "Keep the area clean to prevent infection",
            "Do not delay treatment as remaining roots can become infected",
        ),
        urgency="Dental consultation recommended within 1 week.",
    ),
    "healthy_teeth": ConditionInfo(
        name="Healthy Teeth (X-ray)",
        description=(
            "The X-ray shows healthy teeth with no significant abnormalities detected. "
            "Tooth structure, roots, and surrounding bone appear normal."
        ),
        severity="low",
        color="#10b981",
        recommendations=(
            "Continue your excellent oral hygiene routine",
            "Maintain regular dental check-ups every 6 months",
            "Continue brushing twice daily and flossing",
            "Periodic X-rays help catch issues early",
        ),
        urgency="Continue routine dental check-ups every 6 months.",
    ),
}


def validate_mode(mode: str) -> str:
    m = str(mode or "").strip().lower()
    if m not in MODES:
        raise ValueError(f"Unknown analysis mode '{mode}'. Expected one of {MODES}.")
    return m


def canonical_condition(label: str, mode: str) -> str:
    """
    Label mentah (nama folder dataset) -> key kondisi.
    Rename table hanya berlaku di mode xray; sisanya lowercase, tiap run whitespace
    jadi satu '_' (whitespace di ujung tidak di-strip).
    """
    if mode == "xray" and label in XRAY_CLASS_MAP:
        return XRAY_CLASS_MAP[label]
    return re.sub(r"\s+", "_", str(label).lower())
