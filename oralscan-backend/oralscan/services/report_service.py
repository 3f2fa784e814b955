# oralscan/services/report_service.py
from datetime import date, datetime
from typing import List, Optional

from oralscan.ml.conditions import (
    CONDITION_DETAILS,
    HEALTHY_CONDITIONS,
    URGENT_CONDITIONS,
)
from oralscan.models.analysis_result import AnalysisResult
from oralscan.models.history_item import HistoryItem, PredictionSummary
from oralscan.models.report import Finding, OralHealthReport
from oralscan.services.scoring_service import round_half_up

MAX_RECOMMENDATIONS = 10
SECONDARY_CONFIDENCE_MIN = 0.2

GENERAL_RECOMMENDATIONS = (
    "Brush your teeth twice daily for at least 2 minutes",
    "Maintain a balanced diet and limit sugary snacks",
    "Stay hydrated to promote saliva production",
    "Replace your toothbrush every 3-4 months",
)

SAVE_REPORT_STEP = "Save or download this report for your records"
FOLLOW_UP_STEP = "Take follow-up photos in 2-4 weeks to track any changes"

DISCLAIMER = (
    "DISCLAIMER: This AI-powered analysis is for informational and screening purposes "
    "only. It should NOT be considered a substitute for professional dental diagnosis, "
    "advice, or treatment. The analysis is based on image recognition technology which "
    "has inherent limitations and may not detect all dental conditions. Always consult "
    "with a qualified dental professional for accurate diagnosis and treatment "
    "recommendations. If you are experiencing dental pain, bleeding, swelling, or other "
    "symptoms, please seek professional care immediately. Early detection and treatment "
    "of dental issues leads to better outcomes."
)

HISTORY_DISCLAIMER = (
    "This is a historical analysis record. AI analysis is for educational purposes only "
    "and should not replace professional dental advice."
)

SEVERITY_COLORS = {"high": "#ef4444", "moderate": "#f59e0b"}
LOW_SEVERITY_COLOR = "#10b981"

HEAVY_RULE = "═" * 67
THIN_RULE = "━" * 67
SECTION_RULE = "─" * 67


def _format_generated_at(dt: datetime) -> str:
    # contoh: "Sunday, October 18, 2026 at 3:04 PM"
    hour = dt.hour % 12 or 12
    return (
        f"{dt:%A}, {dt:%B} {dt.day}, {dt.year} at "
        f"{hour}:{dt:%M} {'AM' if dt.hour < 12 else 'PM'}"
    )


def _format_history_date(dt: datetime) -> str:
    # contoh: "October 18, 2026 at 03:04 PM"
    return f"{dt:%B} {dt.day}, {dt.year} at {dt:%I:%M %p}"


def get_health_grade(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 80:
        return "Good"
    if score >= 70:
        return "Fair"
    if score >= 50:
        return "Needs Attention"
    return "Requires Dental Care"


def generate_summary(analysis: AnalysisResult) -> str:
    primary = analysis.primary_condition
    info = CONDITION_DETAILS[primary]
    score = analysis.overall_health
    confidence = round_half_up(analysis.confidence_of(primary) * 100)

    if primary in HEALTHY_CONDITIONS:
        level = "excellent" if score >= 90 else "very good"
        return (
            f"Great news! Your oral health analysis indicates your teeth are in {level} "
            f"condition with an overall health score of {score}/100 and {confidence}% "
            f"confidence. The AI analysis found no significant signs of dental disease. "
            f"{info.description} Continue maintaining your current oral hygiene routine!"
        )

    if primary in URGENT_CONDITIONS:
        urgency_level = "strongly recommend" if confidence >= 70 else "recommend considering"
        return (
            f"Your oral health analysis has detected potential signs of {info.name.lower()} "
            f"with {confidence}% confidence. Your overall health score is {score}/100, "
            f"which indicates the need for professional dental evaluation. We "
            f"{urgency_level} scheduling a dental appointment soon. {info.description}"
        )

    # kondisi moderate (calculus, discoloration) dan sisanya berbagi template yang sama
    return (
        f"Your oral health analysis has detected {info.name.lower()} with {confidence}% "
        f"confidence. Your overall health score is {score}/100. {info.description} "
        f"Please review the detailed findings and recommendations below."
    )


def generate_findings(analysis: AnalysisResult) -> List[Finding]:
    """
    Hanya kondisi teratas yang ditampilkan (keputusan desain).
    Kalau nanti butuh multi-finding, cukup ubah fungsi ini.
    """
    top = analysis.primary
    return [
        Finding(
            condition=top.info.name,
            confidence=round_half_up(top.confidence * 100),
            severity=top.info.severity,
            description=top.info.description,
            color=top.info.color,
        )
    ]


def generate_recommendations(analysis: AnalysisResult) -> List[str]:
    primary = analysis.primary_condition
    recs = {}  # dict = set yang menjaga urutan insert

    for rec in CONDITION_DETAILS[primary].recommendations:
        recs.setdefault(rec, None)

    for c in analysis.conditions:
        if c.condition != primary and c.confidence > SECONDARY_CONFIDENCE_MIN:
            for rec in c.info.recommendations[:2]:
                recs.setdefault(rec, None)

    for rec in GENERAL_RECOMMENDATIONS:
        recs.setdefault(rec, None)

    return list(recs)[:MAX_RECOMMENDATIONS]


def generate_next_steps(analysis: AnalysisResult) -> List[str]:
    primary = analysis.primary_condition
    info = CONDITION_DETAILS[primary]
    steps = []

    if primary in HEALTHY_CONDITIONS:
        steps += [
            "Continue your excellent oral hygiene routine - you're doing great!",
            "Keep brushing twice daily and flossing daily",
            "Schedule your next routine dental check-up in 6 months",
            "Maintain a balanced diet and limit sugary snacks",
            info.urgency,
            SAVE_REPORT_STEP,
        ]
        return steps

    if primary in URGENT_CONDITIONS:
        steps.append(
            "Schedule an appointment with a dental professional within the next 1-2 weeks"
        )
        steps.append("Bring this report to your dental visit for reference")
        if primary == "cavity":
            steps.append("Avoid hard, sticky, or very cold/hot foods until evaluated by a dentist")
            steps.append("Use fluoride toothpaste and mouthwash for added protection")
        elif primary == "hypodontia":
            steps.append("Consult with a prosthodontist or oral surgeon for treatment options")
            steps.append("Maintain excellent oral hygiene for remaining teeth")
    elif primary == "calculus":
        steps.append("Schedule a dental consultation within the next month for professional cleaning")
        steps.append("Bring this report to your dental visit for reference")
        steps.append("Improve daily brushing technique, especially along the gum line")
    elif primary == "discoloration":
        steps.append("Consider professional teeth whitening if desired")
        steps.append("Reduce consumption of staining foods and drinks")
        steps.append("Schedule a cosmetic consultation at your convenience")
    elif analysis.overall_health >= 80:
        steps.append("Continue your excellent oral hygiene routine")
        steps.append("Schedule your next routine dental check-up in 6 months")
        steps.append("Consider professional cleaning for optimal dental health")
    else:
        steps.append("Consider scheduling a dental check-up within the next month for confirmation")
        steps.append("Monitor your oral health and note any changes or sensitivity")
        steps.append("Maintain consistent brushing and flossing habits")

    steps.append(info.urgency)
    steps.append(SAVE_REPORT_STEP)
    steps.append(FOLLOW_UP_STEP)
    return steps


def generate_oral_health_report(
    analysis: AnalysisResult, now: Optional[datetime] = None
) -> OralHealthReport:
    return OralHealthReport(
        summary=generate_summary(analysis),
        health_score=analysis.overall_health,
        health_grade=get_health_grade(analysis.overall_health),
        findings=generate_findings(analysis),
        recommendations=generate_recommendations(analysis),
        next_steps=generate_next_steps(analysis),
        disclaimer=DISCLAIMER,
        generated_at=_format_generated_at(now or datetime.now()),
    )


def history_predictions(report: OralHealthReport) -> List[PredictionSummary]:
    """Proyeksi ringan dari findings untuk disimpan di history."""
    return [
        PredictionSummary(condition=f.condition, confidence=f.confidence, severity=f.severity)
        for f in report.findings
    ]


def report_from_history_item(item: HistoryItem) -> OralHealthReport:
    """Bangun ulang report read-only dari record history."""
    dt = datetime.fromtimestamp(item.timestamp / 1000.0)
    findings = [
        Finding(
            condition=p.condition,
            confidence=p.confidence,
            severity=p.severity,
            description=f"{p.condition} detected with {p.confidence}% confidence.",
            color=SEVERITY_COLORS.get(p.severity, LOW_SEVERITY_COLOR),
        )
        for p in item.predictions
    ]
    return OralHealthReport(
        summary=f"Historical analysis from {dt:%m/%d/%Y, %I:%M:%S %p}",
        health_score=item.health_score,
        health_grade=item.health_grade,
        findings=findings,
        recommendations=[
            "This is a historical record. For current assessment, analyze a new image.",
            "Maintain regular dental checkups every 6 months",
            "Practice good oral hygiene habits daily",
        ],
        next_steps=[
            "Review the historical findings",
            "Compare with current oral health status",
            "Consult your dentist for personalized advice",
        ],
        disclaimer=HISTORY_DISCLAIMER,
        generated_at=_format_history_date(dt),
    )


def generate_pdf_content(report: OralHealthReport) -> str:
    """Export teks polos (nama 'pdf' dipertahankan dari fitur download)."""
    findings = "\n\n".join(
        f"{i}. {f.condition}\n"
        f"   Confidence: {f.confidence}%\n"
        f"   Severity: {f.severity.upper()}\n"
        f"   \n"
        f"   {f.description}"
        for i, f in enumerate(report.findings, start=1)
    )
    recommendations = "\n".join(
        f"{i}. {r}" for i, r in enumerate(report.recommendations, start=1)
    )
    next_steps = "\n".join(f"{i}. {s}" for i, s in enumerate(report.next_steps, start=1))

    return f"""
DENTAL HEALTH ANALYSIS REPORT
Generated: {report.generated_at}
{HEAVY_RULE}

OVERALL HEALTH SCORE: {report.health_score}/100 ({report.health_grade})

{THIN_RULE}

SUMMARY
{SECTION_RULE}
{report.summary}

DETAILED FINDINGS
{SECTION_RULE}
{findings}

RECOMMENDATIONS
{SECTION_RULE}
{recommendations}

NEXT STEPS
{SECTION_RULE}
{next_steps}

{HEAVY_RULE}
IMPORTANT NOTICE
{HEAVY_RULE}
{report.disclaimer}

{HEAVY_RULE}

Powered by DentalAI - AI-Powered Dental Disease Detection
For screening purposes only. Always consult a dental professional.
  """


def report_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"dental-health-report-{day.isoformat()}.txt"
