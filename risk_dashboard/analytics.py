"""Chart aggregations over student records: trends, heat maps, department breakdowns."""

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from risk_dashboard.models import ModelMetrics, StudentRecord
from risk_dashboard.records import RISK_LEVELS, RawRecord, coerce_records
from risk_dashboard.risk import ATTENDANCE_WEIGHT, ENGAGEMENT_WEIGHT, GPA_WEIGHT, YEAR_WEIGHT

COLUMNS = [
    'id', 'name', 'department', 'year',
    'gpa', 'attendance_rate', 'engagement_score', 'risk_level', 'updated_at',
]
NUMERIC_COLUMNS = ['gpa', 'attendance_rate', 'engagement_score']
AT_RISK_LEVELS = ('high', 'medium')
RECENT_UPDATES = 5


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def _pct_int(part: float, whole: float) -> int:
    return _round_half_up(part / whole * 100) if whole else 0


def _pct_1dp(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def to_frame(records: Sequence[RawRecord]) -> pd.DataFrame:
    """
    Coerce records and load them into a DataFrame with fixed columns.

    Missing numeric values are NaN; risk_level keeps None for unclassified rows.

    Raises:
        InvalidInput: if any record is malformed
    """
    students: List[StudentRecord] = coerce_records(records)
    df = pd.DataFrame([s.model_dump() for s in students], columns=COLUMNS)
    df[NUMERIC_COLUMNS] = df[NUMERIC_COLUMNS].apply(pd.to_numeric)
    df['year'] = df['year'].astype(int)
    df['updated_at'] = pd.to_datetime(df['updated_at'], utc=True)
    return df


def performance_trends(records: Sequence[RawRecord]) -> Dict:
    """Average GPA and attendance per academic year, over present values."""
    df = to_frame(records)
    if df.empty:
        return {
            'labels': ['No Data'],
            'datasets': [
                {'label': 'Average GPA', 'data': [0.0]},
                {'label': 'Average Attendance %', 'data': [0.0]},
            ],
        }

    grouped = df.groupby('year', sort=True)
    gpa = grouped['gpa'].mean().round(2).fillna(0.0)
    attendance = grouped['attendance_rate'].mean().round(1).fillna(0.0)

    return {
        'labels': [f"Year {year}" for year in gpa.index],
        'datasets': [
            {'label': 'Average GPA', 'data': [float(v) for v in gpa]},
            {'label': 'Average Attendance %', 'data': [float(v) for v in attendance]},
        ],
    }


def risk_heatmap(records: Sequence[RawRecord], department: str = 'all') -> Dict:
    """
    Share of at-risk students (stored high or medium) for every department x year cell.

    Cells are rated high above 40%, medium above 20%, else low.
    """
    df = to_frame(records)
    if department and department != 'all':
        df = df[df['department'] == department]
    df = df.assign(at_risk=df['risk_level'].isin(AT_RISK_LEVELS))

    departments = sorted(df['department'].unique().tolist())
    years = sorted(int(y) for y in df['year'].unique())

    counts = df.groupby(['department', 'year'])['at_risk'].agg(['size', 'sum'])
    lookup = {key: (int(row['size']), int(row['sum'])) for key, row in counts.iterrows()}

    cells = []
    for dept in departments:
        for year in years:
            total, at_risk = lookup.get((dept, year), (0, 0))
            percentage = _pct_int(at_risk, total)
            if percentage > 40:
                risk = 'high'
            elif percentage > 20:
                risk = 'medium'
            else:
                risk = 'low'
            cells.append({
                'department': dept,
                'year': f"Year {year}",
                'value': percentage,
                'risk': risk,
                'total': total,
                'at_risk': at_risk,
            })

    return {
        'heat_map_data': cells,
        'departments': departments,
        'years': [f"Year {year}" for year in years],
    }


def _department_activity(df: pd.DataFrame) -> pd.DataFrame:
    """Students and stored at-risk counts per department, largest first."""
    df = df.assign(at_risk=df['risk_level'].isin(AT_RISK_LEVELS))
    summary = df.groupby('department', sort=False).agg(
        students=('year', 'size'),
        at_risk=('at_risk', 'sum'),
    )
    return summary.sort_values('students', ascending=False, kind='stable')


def department_distribution(records: Sequence[RawRecord]) -> List[Dict]:
    """Students and at-risk share per department, largest departments first."""
    summary = _department_activity(to_frame(records))

    return [
        {
            'name': name,
            'total': int(row['students']),
            'at_risk': int(row['at_risk']),
            'percentage': _pct_1dp(row['at_risk'], row['students']),
        }
        for name, row in summary.iterrows()
    ]


def risk_comparison(records: Sequence[RawRecord]) -> Dict:
    """Per-department risk level percentages plus overall trend shares."""
    df = to_frame(records)
    levels = df['risk_level'].fillna('low')

    comparison = []
    for department, group in levels.groupby(df['department'], sort=False):
        counts = group.value_counts()
        total = len(group)
        comparison.append({
            'category': department,
            'low_risk': _pct_int(counts.get('low', 0), total),
            'medium_risk': _pct_int(counts.get('medium', 0), total),
            'high_risk': _pct_int(counts.get('high', 0), total),
            'total': total,
        })

    overall = levels.value_counts()
    total = len(levels)
    return {
        'comparison': comparison,
        'trends': {
            'improving': _pct_int(overall.get('low', 0), total),
            'stable': _pct_int(overall.get('medium', 0), total),
            'declining': _pct_int(overall.get('high', 0), total),
        },
    }


def department_analytics(records: Sequence[RawRecord]) -> List[Dict]:
    """Risk counts and averages per department; missing measurements count as 0."""
    df = to_frame(records)
    df[NUMERIC_COLUMNS] = df[NUMERIC_COLUMNS].fillna(0.0)
    levels = df['risk_level'].fillna('low')

    result = []
    for department, group in df.groupby('department', sort=False):
        group_levels = levels.loc[group.index]
        total = len(group)
        high = int((group_levels == 'high').sum())
        medium = int((group_levels == 'medium').sum())
        result.append({
            'department': department,
            'total': total,
            'high_risk': high,
            'medium_risk': medium,
            'low_risk': total - high - medium,
            'at_risk': high,
            'percentage': _pct_int(high, total),
            'avg_gpa': round(float(group['gpa'].mean()), 2),
            'avg_attendance': _round_half_up(float(group['attendance_rate'].mean())),
            'avg_engagement': _round_half_up(float(group['engagement_score'].mean())),
        })
    return result


def model_metrics(records: Sequence[RawRecord]) -> ModelMetrics:
    """Stored risk distribution and the scoring model's feature weights."""
    df = to_frame(records)
    levels = df['risk_level'].fillna('low')
    total = len(df)

    distribution = {level: int((levels == level).sum()) for level in RISK_LEVELS}
    percentages = {level: _pct_1dp(count, total) for level, count in distribution.items()}

    gpa = df['gpa'].fillna(0.0)

    def avg_gpa(level: str) -> float:
        values = gpa[levels == level]
        return round(float(values.mean()), 2) if len(values) else 0.0

    return ModelMetrics(
        total_students=total,
        risk_distribution=distribution,
        risk_percentages=percentages,
        feature_importance=[
            {'feature': 'GPA', 'importance': GPA_WEIGHT,
             'avg_low': avg_gpa('low'), 'avg_high': avg_gpa('high')},
            {'feature': 'Attendance Rate', 'importance': ATTENDANCE_WEIGHT},
            {'feature': 'Engagement Score', 'importance': ENGAGEMENT_WEIGHT},
            {'feature': 'Year Standing', 'importance': YEAR_WEIGHT},
        ],
        model_description='Weighted Multi-Factor Risk Assessment Model',
    )



def department_spread(records: Sequence[RawRecord]) -> Dict:
    """
    Per-department student counts, at-risk counts and years represented.

    heat_map_points gives each department's at-risk share as an intensity
    between 0 and 1. Without records a single "No Data" row is returned.
    """
    df = to_frame(records)
    summary = _department_activity(df)
    years = df.groupby('department', sort=False)['year'].unique()

    locations = []
    for name, row in summary.iterrows():
        active = sorted(int(y) for y in years[name])
        locations.append({
            'department': name,
            'students': int(row['students']),
            'at_risk': int(row['at_risk']),
            'years': len(active),
            'years_active': ', '.join(str(y) for y in active),
        })

    points = [
        {
            'department': loc['department'],
            'intensity': round(loc['at_risk'] / loc['students'], 2) if loc['students'] else 0.0,
        }
        for loc in locations
    ]

    if not locations:
        locations = [{'department': 'No Data', 'students': 0, 'at_risk': 0, 'years': 0, 'years_active': ''}]

    return {'departments': locations, 'heat_map_points': points}


def demographic_distribution(records: Sequence[RawRecord]) -> Dict:
    """Risk breakdown and year spread per department, plus at-risk students per year."""
    df = to_frame(records)
    levels = df['risk_level'].fillna('low')

    regions = []
    for name, group in df.groupby('department', sort=False):
        counts = levels.loc[group.index].value_counts()
        year_counts = group['year'].value_counts().sort_index()
        regions.append({
            'name': name,
            'total_students': len(group),
            'risk_breakdown': {level: int(counts.get(level, 0)) for level in RISK_LEVELS},
            'year_distribution': {f"Year {year}": int(n) for year, n in year_counts.items()},
        })

    at_risk = df['risk_level'].isin(AT_RISK_LEVELS).groupby(df['year']).sum().sort_index()
    labels = [f"Year {year}" for year in at_risk.index]

    return {
        'regions': regions,
        'time_series': {
            'labels': labels or ['No Data'],
            'datasets': [{'label': 'At Risk Students', 'data': [int(n) for n in at_risk]}],
        },
    }


def realtime_updates(records: Sequence[RawRecord], limit: int = RECENT_UPDATES) -> Dict:
    """
    Most recently changed records and per-department activity.

    Records are ordered by updated_at (falling back to created_at), newest
    first; records without a timestamp come last in input order. Department
    trend is "concern" above 30% at risk, "stable" above 15%, else "good".
    """
    df = to_frame(records)

    recent = df.sort_values('updated_at', ascending=False, na_position='last', kind='stable').head(limit)
    recent = recent.assign(risk_level=recent['risk_level'].fillna('low'))
    updates = [
        {
            'timestamp': None if pd.isna(row['updated_at']) else row['updated_at'].isoformat(),
            'department': row['department'],
            'event': 'Student record updated',
            'risk_level': row['risk_level'],
            'details': f"{row['name']} - {row['department']}",
        }
        for _, row in recent.iterrows()
    ]

    regions = []
    for name, row in _department_activity(df).iterrows():
        share = row['at_risk'] / row['students']
        if share > 0.3:
            trend = 'concern'
        elif share > 0.15:
            trend = 'stable'
        else:
            trend = 'good'
        regions.append({
            'department': name,
            'active': int(row['students']),
            'at_risk': int(row['at_risk']),
            'trend': trend,
        })

    return {'live_updates': updates, 'active_regions': regions}
