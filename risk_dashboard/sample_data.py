"""Bundled sample students, used when no records have been uploaded.

GPA values are on the 0-10 scale.
"""

SAMPLE_STUDENTS = [
    {'id': 'STU-001', 'name': 'Aarav Sharma', 'department': 'Computer Science', 'year': 2,
     'gpa': 8.7, 'attendance_rate': 92, 'engagement_score': 85, 'risk_level': 'low'},
    {'id': 'STU-002', 'name': 'Priya Patel', 'department': 'Computer Science', 'year': 3,
     'gpa': 5.2, 'attendance_rate': 68, 'engagement_score': 45, 'risk_level': 'medium'},
    {'id': 'STU-003', 'name': 'Rohan Mehta', 'department': 'Mechanical Engineering', 'year': 1,
     'gpa': 3.9, 'attendance_rate': 52, 'engagement_score': 30, 'risk_level': 'high'},
    {'id': 'STU-004', 'name': 'Ananya Iyer', 'department': 'Mechanical Engineering', 'year': 4,
     'gpa': 7.4, 'attendance_rate': 81, 'engagement_score': 70, 'risk_level': 'low'},
    {'id': 'STU-005', 'name': 'Kabir Singh', 'department': 'Electrical Engineering', 'year': 2,
     'gpa': 6.1, 'attendance_rate': 74, 'engagement_score': 58, 'risk_level': 'medium'},
    {'id': 'STU-006', 'name': 'Meera Nair', 'department': 'Electrical Engineering', 'year': 3,
     'gpa': 9.2, 'attendance_rate': 96, 'engagement_score': 90, 'risk_level': 'low'},
    {'id': 'STU-007', 'name': 'Vikram Rao', 'department': 'Civil Engineering', 'year': 1,
     'gpa': 4.4, 'attendance_rate': 61, 'engagement_score': 40, 'risk_level': 'high'},
    {'id': 'STU-008', 'name': 'Sneha Gupta', 'department': 'Civil Engineering', 'year': 2,
     'gpa': 7.9, 'attendance_rate': 88, 'engagement_score': 76, 'risk_level': 'low'},
    {'id': 'STU-009', 'name': 'Arjun Reddy', 'department': 'Business Administration', 'year': 3,
     'gpa': 5.8, 'attendance_rate': 79, 'engagement_score': 55, 'risk_level': 'medium'},
    {'id': 'STU-010', 'name': 'Isha Verma', 'department': 'Business Administration', 'year': 4,
     'gpa': 8.1, 'attendance_rate': 90, 'engagement_score': 82, 'risk_level': 'low'},
    {'id': 'STU-011', 'name': 'Dev Malhotra', 'department': 'Computer Science', 'year': 1,
     'gpa': None, 'attendance_rate': 70, 'engagement_score': None, 'risk_level': 'medium'},
    {'id': 'STU-012', 'name': 'Nisha Kapoor', 'department': 'Mechanical Engineering', 'year': 2,
     'gpa': 4.8, 'attendance_rate': 58, 'engagement_score': 35, 'risk_level': 'high'},
]
