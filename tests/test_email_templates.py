"""Unit tests for intervention email drafts."""

from risk_dashboard.email_templates import generate_email_draft
from risk_dashboard.risk import GPA_SCALE_10, RiskEngine

engine = RiskEngine(gpa_scale=GPA_SCALE_10)


def _draft(record):
    return generate_email_draft(
        student_name='Sam',
        department='Physics',
        assessment=engine.assess_student(record),
        advisor_name='Dr. Advisor',
        advisor_email='advisor@uni.example'
    )


def test_low_risk_email():
    email = _draft({'gpa': 9.0, 'attendance_rate': 90, 'engagement_score': 80, 'year': 1})
    assert email['subject'].startswith('Great Work, Sam')
    assert 'GPA of 9.00 and 90% attendance' in email['body']
    assert email['body'].endswith('Dr. Advisor\nadvisor@uni.example')


def test_medium_risk_email_lists_actions():
    email = _draft({'year': 1})
    assert 'Checking In' in email['subject']
    assert '- Improve Attendance:' in email['body']
    assert '- Increase Engagement:' in email['body']


def test_high_risk_email():
    email = _draft({'gpa': 1.5, 'attendance_rate': 40, 'engagement_score': 30, 'year': 3})
    assert 'Back on Track' in email['subject']
    assert 'Your GPA is 1.50 and attendance is 40%.' in email['body']
    assert '- Academic Support Required:' in email['body']
