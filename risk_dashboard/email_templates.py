"""Intervention email drafts for each risk level."""

from typing import Dict, List

from risk_dashboard.models import Recommendation, RiskAssessment


def generate_email_draft(
    student_name: str,
    department: str,
    assessment: RiskAssessment,
    advisor_name: str,
    advisor_email: str
) -> Dict[str, str]:
    """Generate an email draft tailored to the student's freshly computed risk level."""
    advisor = {'name': advisor_name, 'email': advisor_email}
    factors = {f.name: f.actual for f in assessment.factors}
    gpa = factors['Academic Performance (GPA)']
    attendance = factors['Attendance Rate']

    if assessment.level == 'low':
        return _low_risk_email(student_name, department, gpa, attendance, advisor)
    if assessment.level == 'medium':
        return _medium_risk_email(student_name, department, assessment.recommendations, advisor)
    return _high_risk_email(student_name, department, gpa, attendance, assessment.recommendations, advisor)


def _action_lines(recommendations: List[Recommendation]) -> str:
    return "\n".join(f"- {r.action}: {r.description}" for r in recommendations)


def _signature(advisor: Dict[str, str]) -> str:
    return f"{advisor['name']}\n{advisor['email']}"


def _low_risk_email(student_name: str, department: str, gpa: str, attendance: str, advisor: Dict[str, str]) -> Dict[str, str]:
    subject = f"Great Work, {student_name} - Keep It Up!"
    body = f"""Hi {student_name},

Excellent work so far in {department}! You're maintaining a strong record with a GPA of {gpa} and {attendance} attendance.

Keep up the consistency. If you'd like, I can share ways to get involved in mentorship programs and leadership opportunities on campus.

Great job!

{_signature(advisor)}"""
    return {'subject': subject, 'body': body}


def _medium_risk_email(student_name: str, department: str, recommendations: List[Recommendation], advisor: Dict[str, str]) -> Dict[str, str]:
    subject = f"Checking In On Your Progress, {student_name}"
    body = f"""Hi {student_name},

I'm reaching out to check in on how things are going in {department}. A few areas could use some attention:

{_action_lines(recommendations)}

Small changes now make a big difference later. Please reach out to your instructor or the Student Success Office if something is getting in the way.

{_signature(advisor)}"""
    return {'subject': subject, 'body': body}


def _high_risk_email(student_name: str, department: str, gpa: str, attendance: str, recommendations: List[Recommendation], advisor: Dict[str, str]) -> Dict[str, str]:
    subject = f"Let's Work Together to Get You Back on Track, {student_name}"
    body = f"""Hi {student_name},

I'm reaching out about your current progress in {department}. Your GPA is {gpa} and attendance is {attendance}.

Here is what we'd like to focus on first:

{_action_lines(recommendations)}

Please contact the Student Success Office or your advisor as soon as possible to set up a support plan. We can help with tutoring, time management, and counseling services.

You're not alone in this, and we're here to help.

{_signature(advisor)}"""
    return {'subject': subject, 'body': body}
