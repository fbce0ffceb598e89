"""Unit tests for cohort insights."""

import pytest

from risk_dashboard.insights import derive_insights
from risk_dashboard.records import InvalidInput, coerce_record, group_by
from risk_dashboard.risk import GPA_SCALE_4, GPA_SCALE_10, RiskEngine


@pytest.fixture
def engine():
    return RiskEngine(gpa_scale=GPA_SCALE_4)


def _student(sid, department, **fields):
    record = {'id': sid, 'name': f"Student {sid}", 'department': department, 'year': 1}
    record.update(fields)
    return record


def _by_title(report):
    return {insight.title: insight for insight in report.insights}


def test_empty_input(engine):
    """No records yields a single info insight and zeroed stats."""
    report = engine.derive_insights([])

    assert len(report.insights) == 1
    assert report.insights[0].severity == 'info'
    assert report.insights[0].title == 'No Data'
    assert report.realtime_stats.students_analyzed == 0
    assert report.realtime_stats.high_risk_count == 0
    assert report.realtime_stats.avg_gpa == 0
    assert report.realtime_stats.avg_attendance == 0


def test_attendance_alert_critical(engine):
    """More than 20% of students below 75% attendance is critical."""
    students = [
        _student('1', 'Physics', attendance_rate=60),
        _student('2', 'Biology', attendance_rate=70),
        _student('3', 'Physics', attendance_rate=90),
        _student('4', 'Physics', attendance_rate=95),
        _student('5', 'Physics', attendance_rate=None),
    ]
    alert = _by_title(engine.derive_insights(students))['Low Attendance Alert']

    assert alert.severity == 'critical'
    assert alert.affected_count == 2
    assert alert.type == 'trend'
    assert alert.description == (
        "2 students have attendance below 75% across 2 department(s): Physics, Biology"
    )


def test_attendance_alert_high_at_twenty_percent(engine):
    """Exactly 20% is not above the critical share."""
    students = [_student(str(i), 'Physics', attendance_rate=90) for i in range(8)]
    students += [_student('8', 'Physics', attendance_rate=50), _student('9', 'Physics', attendance_rate=0)]

    alert = _by_title(engine.derive_insights(students))['Low Attendance Alert']
    assert alert.affected_count == 2
    assert alert.severity == 'high'


def test_attendance_alert_lists_three_departments(engine):
    students = [
        _student('1', 'A', attendance_rate=10),
        _student('2', 'B', attendance_rate=10),
        _student('3', 'C', attendance_rate=10),
        _student('4', 'D', attendance_rate=10),
        _student('5', 'A', attendance_rate=10),
    ]
    alert = _by_title(engine.derive_insights(students))['Low Attendance Alert']
    assert alert.description.endswith("across 4 department(s): A, B, C")


def test_no_attendance_alert_when_missing(engine):
    """Students without an attendance value are not counted."""
    report = engine.derive_insights([_student('1', 'Physics'), _student('2', 'Physics')])
    assert 'Low Attendance Alert' not in _by_title(report)


def test_high_risk_alert_uses_stored_level(engine):
    students = [
        _student('1', 'Physics', risk_level='high', gpa=3.9, attendance_rate=99),
        _student('2', 'Physics', risk_level='low', gpa=0.5, attendance_rate=80),
        _student('3', 'Physics', risk_level='medium'),
        _student('4', 'Physics'),
    ]
    report = engine.derive_insights(students)
    alert = _by_title(report)['High Risk Students Identified']

    assert alert.severity == 'critical'
    assert alert.affected_count == 1
    assert alert.description == "1 students are classified as high risk (25.0% of total)"
    assert report.realtime_stats.high_risk_count == 1


def test_low_gpa_alert(engine):
    students = [
        _student('1', 'Physics', gpa=1.5),
        _student('2', 'Physics', gpa=1.99),
        _student('3', 'Physics', gpa=2.0),
        _student('4', 'Physics'),
    ]
    alert = _by_title(engine.derive_insights(students))['Academic Performance Concern']

    assert alert.severity == 'high'
    assert alert.affected_count == 2


def test_gpa_cut_points_ignore_engine_scale():
    """Cut points apply to raw GPA values, even on a 10-point engine."""
    engine = RiskEngine(gpa_scale=GPA_SCALE_10)
    students = [
        _student('1', 'Physics', gpa=4.0, attendance_rate=90),
        _student('2', 'Physics', gpa=1.8, attendance_rate=90),
    ]
    titles = _by_title(engine.derive_insights(students))

    alert = titles['Academic Performance Concern']
    assert alert.affected_count == 1
    assert 'below 2.0' in alert.description
    assert titles['High Performers Identified'].affected_count == 1


def test_gpa_cut_points_can_be_overridden():
    students = [
        coerce_record(_student('1', 'Physics', gpa=4.5, attendance_rate=90)),
        coerce_record(_student('2', 'Physics', gpa=9.0, attendance_rate=90)),
    ]
    report = derive_insights(students, low_gpa=5.0, high_gpa=8.75)
    titles = _by_title(report)

    assert titles['Academic Performance Concern'].affected_count == 1
    assert 'below 5.0' in titles['Academic Performance Concern'].description
    assert titles['High Performers Identified'].affected_count == 1


def test_high_performers(engine):
    students = [
        _student('1', 'Physics', gpa=3.5, attendance_rate=85),
        _student('2', 'Physics', gpa=3.9, attendance_rate=84),
        _student('3', 'Physics', gpa=3.4, attendance_rate=99),
        _student('4', 'Physics', gpa=4.0),
    ]
    opportunity = _by_title(engine.derive_insights(students))['High Performers Identified']

    assert opportunity.severity == 'positive'
    assert opportunity.type == 'opportunity'
    assert opportunity.affected_count == 1


def test_worst_department(engine):
    students = [
        _student('1', 'Physics', risk_level='high'),
        _student('2', 'Physics', risk_level='low'),
        _student('3', 'Physics', risk_level='low'),
        _student('4', 'Physics', risk_level='low'),
        _student('5', 'Biology', risk_level='high'),
        _student('6', 'Biology', risk_level='high'),
        _student('7', 'Biology', risk_level='low'),
        _student('8', 'Chemistry', risk_level='low'),
    ]
    alert = _by_title(engine.derive_insights(students))['Biology Needs Attention']

    assert alert.severity == 'critical'
    assert alert.affected_count == 2
    assert alert.description == "66.7% of students in Biology are high risk (2 students)"


def test_worst_department_below_critical_rate(engine):
    students = [_student(str(i), 'Physics', risk_level='low') for i in range(3)]
    students.append(_student('3', 'Physics', risk_level='high'))

    alert = _by_title(engine.derive_insights(students))['Physics Needs Attention']
    assert alert.severity == 'high'
    assert '25.0%' in alert.description


def test_worst_department_tie_goes_to_first_seen(engine):
    """Equal rates resolve to the department encountered first."""
    students = [
        _student('1', 'Zoology', risk_level='low'),
        _student('2', 'Art', risk_level='high'),
        _student('3', 'Zoology', risk_level='high'),
        _student('4', 'Art', risk_level='low'),
    ]
    titles = _by_title(engine.derive_insights(students))
    assert 'Zoology Needs Attention' in titles
    assert 'Art Needs Attention' not in titles

    reordered = _by_title(engine.derive_insights(list(reversed(students))))
    assert 'Art Needs Attention' in reordered


def test_no_department_alert_without_high_risk(engine):
    students = [_student('1', 'Physics', risk_level='low'), _student('2', 'Art')]
    titles = _by_title(engine.derive_insights(students))
    assert not any(title.endswith('Needs Attention') for title in titles)


def test_insight_order(engine):
    """Checks run in a fixed sequence."""
    students = [
        _student('1', 'Physics', gpa=1.0, attendance_rate=50, risk_level='high'),
        _student('2', 'Physics', gpa=3.8, attendance_rate=95, risk_level='low'),
    ]
    titles = [insight.title for insight in engine.derive_insights(students).insights]
    assert titles == [
        'Low Attendance Alert',
        'High Risk Students Identified',
        'Academic Performance Concern',
        'High Performers Identified',
        'Physics Needs Attention',
    ]


def test_realtime_stats_count_missing_as_zero(engine):
    students = [
        _student('1', 'Physics', gpa=3.0, attendance_rate=80),
        _student('2', 'Physics', attendance_rate=90),
        _student('3', 'Physics', gpa=2.0),
    ]
    stats = engine.derive_insights(students).realtime_stats

    assert stats.students_analyzed == 3
    assert stats.avg_gpa == 1.67
    assert stats.avg_attendance == 56.7


def test_insights_are_order_independent(engine):
    students = [
        _student('1', 'Physics', gpa=1.0, attendance_rate=50, risk_level='high'),
        _student('2', 'Biology', gpa=3.8, attendance_rate=95, risk_level='low'),
        _student('3', 'Physics', gpa=2.5, attendance_rate=70, risk_level='medium'),
    ]
    forward = engine.derive_insights(students)
    backward = engine.derive_insights(list(reversed(students)))

    assert forward.realtime_stats == backward.realtime_stats
    assert [i.affected_count for i in forward.insights] == [i.affected_count for i in backward.insights]


def test_malformed_record_raises(engine):
    with pytest.raises(InvalidInput):
        engine.derive_insights([_student('1', 'Physics', attendance_rate='lots')])


def test_group_by_preserves_order():
    groups = group_by(['b1', 'a1', 'b2', 'c1', 'a2'], lambda s: s[0])
    assert list(groups) == ['b', 'a', 'c']
    assert groups['b'] == ['b1', 'b2']
    assert groups['a'] == ['a1', 'a2']
