"""Cohort insights and realtime stats over student records."""

import logging
from typing import List, Optional, Sequence

from risk_dashboard.models import Insight, InsightReport, RealtimeStats, StudentRecord
from risk_dashboard.records import group_by

logger = logging.getLogger(__name__)

LOW_ATTENDANCE_THRESHOLD = 75.0
HIGH_PERFORMER_ATTENDANCE = 85.0

# Compared against the raw GPA value, whatever scale the records use
LOW_GPA_THRESHOLD = 2.0
HIGH_PERFORMER_GPA = 3.5

CRITICAL_ATTENDANCE_SHARE = 0.2
CRITICAL_DEPARTMENT_RATE = 30.0
MAX_LISTED_DEPARTMENTS = 3


def _pct(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole else 0.0


def _distinct(values: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(values))


def attendance_alert(students: Sequence[StudentRecord]) -> Optional[Insight]:
    low = [
        s for s in students
        if s.attendance_rate is not None and s.attendance_rate < LOW_ATTENDANCE_THRESHOLD
    ]
    if not low:
        return None

    departments = _distinct([s.department for s in low])
    return Insight(
        type='trend',
        title='Low Attendance Alert',
        description=(
            f"{len(low)} students have attendance below 75% across {len(departments)} "
            f"department(s): {', '.join(departments[:MAX_LISTED_DEPARTMENTS])}"
        ),
        severity='critical' if len(low) > len(students) * CRITICAL_ATTENDANCE_SHARE else 'high',
        affected_count=len(low),
        recommendation='Implement targeted attendance monitoring and counseling for these students',
    )


def high_risk_alert(students: Sequence[StudentRecord]) -> Optional[Insight]:
    """Alert on students whose stored classification is high."""
    high = [s for s in students if s.risk_level == 'high']
    if not high:
        return None

    return Insight(
        type='prediction',
        title='High Risk Students Identified',
        description=(
            f"{len(high)} students are classified as high risk "
            f"({_pct(len(high), len(students)):.1f}% of total)"
        ),
        severity='critical',
        affected_count=len(high),
        recommendation='Immediate intervention required - assign counselors and create support plans',
    )


def low_gpa_alert(
    students: Sequence[StudentRecord],
    threshold: float = LOW_GPA_THRESHOLD
) -> Optional[Insight]:
    low = [s for s in students if s.gpa is not None and s.gpa < threshold]
    if not low:
        return None

    return Insight(
        type='trend',
        title='Academic Performance Concern',
        description=f"{len(low)} students have GPA below {threshold:.1f}, risking academic probation",
        severity='high',
        affected_count=len(low),
        recommendation='Enroll students in tutoring programs and academic support workshops',
    )


def high_performer_opportunity(
    students: Sequence[StudentRecord],
    threshold: float = HIGH_PERFORMER_GPA
) -> Optional[Insight]:
    performers = [
        s for s in students
        if s.gpa is not None and s.gpa >= threshold
        and s.attendance_rate is not None and s.attendance_rate >= HIGH_PERFORMER_ATTENDANCE
    ]
    if not performers:
        return None

    return Insight(
        type='opportunity',
        title='High Performers Identified',
        description=(
            f"{len(performers)} students have excellent GPA (≥{threshold:.1f}) "
            f"and attendance (≥85%)"
        ),
        severity='positive',
        affected_count=len(performers),
        recommendation='Consider these students for mentorship programs and leadership opportunities',
    )


def worst_department_alert(students: Sequence[StudentRecord]) -> Optional[Insight]:
    """
    Department with the highest share of stored high-risk students.

    Only departments with at least one high-risk student qualify. Ties go to
    the department that appears first in the input.
    """
    worst = None
    for department, members in group_by(students, lambda s: s.department).items():
        count = sum(1 for s in members if s.risk_level == 'high')
        if count == 0:
            continue
        rate = _pct(count, len(members))
        if worst is None or rate > worst[1]:
            worst = (department, rate, count)

    if worst is None:
        return None

    department, rate, count = worst
    return Insight(
        type='trend',
        title=f"{department} Needs Attention",
        description=f"{rate:.1f}% of students in {department} are high risk ({count} students)",
        severity='critical' if rate > CRITICAL_DEPARTMENT_RATE else 'high',
        affected_count=count,
        recommendation=(
            f"Review {department} curriculum and teaching methods. "
            "Consider department-specific intervention."
        ),
    )


def realtime_stats(students: Sequence[StudentRecord]) -> RealtimeStats:
    """Headline numbers; missing GPA and attendance count as 0 in the averages."""
    total = len(students)
    if total == 0:
        return RealtimeStats(students_analyzed=0, high_risk_count=0, avg_gpa=0.0, avg_attendance=0.0)

    return RealtimeStats(
        students_analyzed=total,
        high_risk_count=sum(1 for s in students if s.risk_level == 'high'),
        avg_gpa=round(sum(s.gpa or 0.0 for s in students) / total, 2),
        avg_attendance=round(sum(s.attendance_rate or 0.0 for s in students) / total, 1),
    )


def derive_insights(
    students: Sequence[StudentRecord],
    low_gpa: float = LOW_GPA_THRESHOLD,
    high_gpa: float = HIGH_PERFORMER_GPA
) -> InsightReport:
    """
    Run every cohort check in a fixed order.

    Args:
        students: Coerced student records
        low_gpa: GPA below which a student counts toward the academic concern
        high_gpa: GPA at or above which a student may be a high performer

    Returns:
        InsightReport with the emitted insights and realtime stats
    """
    if not students:
        return InsightReport(
            insights=[Insight(
                type='info',
                title='No Data',
                description='Upload student data to see insights.',
                severity='info',
                affected_count=0,
                recommendation='Upload data',
            )],
            realtime_stats=realtime_stats(students),
        )

    checks = [
        attendance_alert(students),
        high_risk_alert(students),
        low_gpa_alert(students, low_gpa),
        high_performer_opportunity(students, high_gpa),
        worst_department_alert(students),
    ]
    found = [insight for insight in checks if insight is not None]
    logger.debug("Derived %d insights from %d students", len(found), len(students))

    return InsightReport(insights=found, realtime_stats=realtime_stats(students))
