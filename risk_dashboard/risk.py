"""Risk scoring logic: weighted multi-factor dropout risk."""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from risk_dashboard.models import (
    BatchItem,
    BatchSummary,
    InsightReport,
    ModelInfo,
    Prediction,
    Recommendation,
    RiskAssessment,
    RiskFactor,
    SimilarCases,
    StudentRecord,
    TrendAnalysis,
)
from risk_dashboard.records import (
    InvalidInput,
    NUMERIC_FIELDS,
    RawRecord,
    coerce_record,
    coerce_records,
    record_id,
    stored_risk_level,
)
from risk_dashboard import insights

logger = logging.getLogger(__name__)

GPA_SCALE_10 = 10.0
GPA_SCALE_4 = 4.0

GPA_WEIGHT = 0.4
ATTENDANCE_WEIGHT = 0.3
ENGAGEMENT_WEIGHT = 0.2
YEAR_WEIGHT = 0.1

HIGH_RISK_THRESHOLD = 0.6
MEDIUM_RISK_THRESHOLD = 0.35

# Sub-score assumed for an absent measurement
NEUTRAL_SCORE = 0.5
DEFAULT_CONFIDENCE = 0.85
SCORE_PRECISION = 4

GPA_TARGET = 0.6
ATTENDANCE_TARGET = 0.75
ENGAGEMENT_TARGET = 0.6

MODEL_INFO = ModelInfo(
    version='2.1.3',
    algorithm='Weighted Multi-Factor Analysis',
    features=4,
    description='Risk calculated from GPA (40%), Attendance (30%), Engagement (20%), Year Standing (10%)',
)


def get_risk_category(risk_score: float) -> str:
    """
    Categorize risk score into low/medium/high.

    Cut points are strict: a score of exactly 0.6 is medium, exactly 0.35 is low.

    Args:
        risk_score: Risk score (0-1)

    Returns:
        Risk level string
    """
    if risk_score > HIGH_RISK_THRESHOLD:
        return 'high'
    elif risk_score > MEDIUM_RISK_THRESHOLD:
        return 'medium'
    else:
        return 'low'


def get_trajectory(risk_score: float) -> str:
    if risk_score < MEDIUM_RISK_THRESHOLD:
        return 'stable'
    if risk_score < HIGH_RISK_THRESHOLD:
        return 'needs attention'
    return 'declining'


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _fmt(value: float) -> str:
    return f"{value:g}"


def year_score(year: int) -> float:
    """Year standing sub-score: 1.0 in year 1, decaying by 0.2 per year to 0."""
    return _clamp(1.0 - (year - 1) * 0.2)


class RiskEngine:
    """
    Stateless weighted-factor risk scorer.

    gpa_scale is the ceiling of the GPA values the caller supplies (10.0 for
    0-10 records, 4.0 for 0-4 records). It has no default: every caller
    states which scale its records use.
    """

    def __init__(self, *, gpa_scale: float):
        if isinstance(gpa_scale, bool) or not isinstance(gpa_scale, (int, float)):
            raise ValueError(f"gpa_scale must be a number, got {gpa_scale!r}")
        if gpa_scale <= 0:
            raise ValueError(f"gpa_scale must be positive, got {gpa_scale}")
        self.gpa_scale = float(gpa_scale)

    def __repr__(self) -> str:
        return f"RiskEngine(gpa_scale={self.gpa_scale:g})"

    def sub_scores(self, record: StudentRecord) -> Tuple[float, float, float, float]:
        """Normalized (gpa, attendance, engagement, year) sub-scores in [0, 1]."""
        gpa = NEUTRAL_SCORE if record.gpa is None else _clamp(record.gpa / self.gpa_scale)
        attendance = (
            NEUTRAL_SCORE if record.attendance_rate is None
            else _clamp(record.attendance_rate / 100.0)
        )
        engagement = (
            NEUTRAL_SCORE if record.engagement_score is None
            else _clamp(record.engagement_score / 100.0)
        )
        return gpa, attendance, engagement, year_score(record.year)

    def assess_student(self, record: RawRecord) -> RiskAssessment:
        """
        Compute a fresh risk assessment for one student.

        Args:
            record: StudentRecord or raw mapping from the record source

        Returns:
            RiskAssessment with score, level, factors and recommendations

        Raises:
            InvalidInput: if a present field is malformed
        """
        student = coerce_record(record)
        gpa, attendance, engagement, year = self.sub_scores(student)

        weighted = (
            gpa * GPA_WEIGHT
            + attendance * ATTENDANCE_WEIGHT
            + engagement * ENGAGEMENT_WEIGHT
            + year * YEAR_WEIGHT
        )
        overall = _clamp(1.0 - weighted)

        missing = [
            field for field in NUMERIC_FIELDS
            if getattr(student, field) is None
        ]
        factors = self._factors(student, gpa, attendance, engagement, year)

        return RiskAssessment(
            score=round(overall, SCORE_PRECISION),
            level=get_risk_category(overall),
            confidence=DEFAULT_CONFIDENCE,
            missing_fields=missing,
            factors=factors,
            recommendations=self._recommendations(factors, gpa, attendance, engagement),
        )

    def _factors(
        self,
        student: StudentRecord,
        gpa: float,
        attendance: float,
        engagement: float,
        year: float
    ) -> List[RiskFactor]:
        gpa_actual = 'N/A' if student.gpa is None else f"{student.gpa:.2f}"
        attendance_actual = (
            'N/A' if student.attendance_rate is None else f"{_fmt(student.attendance_rate)}%"
        )
        engagement_actual = (
            'N/A' if student.engagement_score is None else f"{_fmt(student.engagement_score)}/100"
        )

        return [
            RiskFactor(
                name='Academic Performance (GPA)',
                weight=GPA_WEIGHT,
                score=gpa,
                impact='positive' if gpa >= GPA_TARGET else 'negative',
                actual=gpa_actual,
            ),
            RiskFactor(
                name='Attendance Rate',
                weight=ATTENDANCE_WEIGHT,
                score=attendance,
                impact='positive' if attendance >= ATTENDANCE_TARGET else 'negative',
                actual=attendance_actual,
            ),
            RiskFactor(
                name='Engagement Level',
                weight=ENGAGEMENT_WEIGHT,
                score=engagement,
                impact='positive' if engagement >= ENGAGEMENT_TARGET else 'negative',
                actual=engagement_actual,
            ),
            RiskFactor(
                name='Year Standing',
                weight=YEAR_WEIGHT,
                score=year,
                # raw year, not the decayed sub-score
                impact='positive' if student.year <= 2 else 'neutral',
                actual=f"Year {student.year}",
            ),
        ]

    def _recommendations(
        self,
        factors: List[RiskFactor],
        gpa: float,
        attendance: float,
        engagement: float
    ) -> List[Recommendation]:
        gpa_actual, attendance_actual, engagement_actual = (f.actual for f in factors[:3])
        recommendations = []

        if attendance < ATTENDANCE_TARGET:
            recommendations.append(Recommendation(
                priority='high',
                action='Improve Attendance',
                description=(
                    f"Current attendance is {attendance_actual}. Target: 75%+. "
                    "Regular attendance is critical for academic success."
                ),
                expected_impact=round(ATTENDANCE_TARGET - attendance, 2),
            ))

        if gpa < GPA_TARGET:
            recommendations.append(Recommendation(
                priority='high',
                action='Academic Support Required',
                description=(
                    f"Current GPA is {gpa_actual}. Consider tutoring, study groups, "
                    "or academic counseling."
                ),
                expected_impact=round(GPA_TARGET - gpa, 2),
            ))

        if engagement < ENGAGEMENT_TARGET:
            recommendations.append(Recommendation(
                priority='medium',
                action='Increase Engagement',
                description=(
                    f"Engagement score is {engagement_actual}. Encourage participation in clubs, "
                    "events, and class activities."
                ),
                expected_impact=round(ENGAGEMENT_TARGET - engagement, 2),
            ))

        if not recommendations:
            recommendations.append(Recommendation(
                priority='low',
                action='Maintain Current Performance',
                description='Student is performing well across all metrics. Keep up the good work!',
                expected_impact=0.0,
            ))

        return recommendations

    def assess_batch(self, records: Iterable[RawRecord]) -> List[BatchItem]:
        """
        Assess every record independently, preserving input order.

        A malformed record does not abort the batch: its BatchItem carries
        the error message instead of an assessment.
        """
        items = []
        for index, raw in enumerate(records):
            student_id = record_id(raw)
            try:
                assessment = self.assess_student(raw)
            except InvalidInput as e:
                logger.warning("Skipping record %d (id=%s): %s", index, student_id, e)
                items.append(BatchItem(index=index, student_id=student_id, error=str(e)))
                continue
            items.append(BatchItem(index=index, student_id=student_id, assessment=assessment))

        logger.debug("Assessed %d records (%d failed)",
                     len(items), sum(1 for item in items if not item.ok))
        return items

    def stored_risk_level(self, record: RawRecord) -> Optional[str]:
        """Persisted classification of a record, not recomputed. May be stale."""
        return stored_risk_level(record)

    def derive_insights(self, records: Iterable[RawRecord]) -> InsightReport:
        """
        Cohort insights and realtime stats over the records.

        GPA cut points (2.0 and 3.5) apply to the raw GPA values as supplied.

        Raises:
            InvalidInput: if any record is malformed
        """
        return insights.derive_insights(coerce_records(records))

    def similar_cases(self, record: RawRecord, cohort: Sequence[RawRecord]) -> SimilarCases:
        """Cohort members in the same department and year, and how many are stored as low risk."""
        student = coerce_record(record)
        similar = []
        for raw in cohort:
            try:
                other = coerce_record(raw)
            except InvalidInput as e:
                logger.warning("Ignoring malformed cohort record (id=%s): %s", record_id(raw), e)
                continue
            if other.department == student.department and other.year == student.year:
                similar.append(other)
        successful = sum(1 for other in similar if other.risk_level == 'low')
        rate = round(successful / len(similar), 2) if similar else 0.0
        return SimilarCases(total=len(similar), successful=successful, success_rate=rate)

    def predict(self, record: RawRecord, cohort: Sequence[RawRecord] = ()) -> Prediction:
        """Assessment plus trend analysis and similar-case statistics for one student."""
        student = coerce_record(record)
        assessment = self.assess_student(student)
        return Prediction(
            student_id=student.id or '',
            student_name=student.name,
            department=student.department,
            year=student.year,
            overall_risk=assessment,
            trend_analysis=TrendAnalysis(
                current_score=round(assessment.score, 2),
                risk_level=assessment.level,
                trajectory=get_trajectory(assessment.score),
            ),
            similar_cases=self.similar_cases(student, cohort),
        )


def summarize_batch(items: Sequence[BatchItem]) -> BatchSummary:
    """Per-level counts over the successful items of a batch."""
    levels = [item.assessment.level for item in items if item.assessment is not None]
    return BatchSummary(
        total_processed=len(items),
        failed=len(items) - len(levels),
        high_risk=levels.count('high'),
        medium_risk=levels.count('medium'),
        low_risk=levels.count('low'),
    )

