"""Data models for the Student Risk Dashboard."""

from datetime import datetime
from typing import Optional, Dict, List, Union
from pydantic import BaseModel, ConfigDict, Field


class StudentRecord(BaseModel):
    """A student record as supplied by the record source, after coercion."""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str = 'Unknown'
    department: str = 'Unknown'
    year: int = 1
    gpa: Optional[float] = None
    attendance_rate: Optional[float] = None
    engagement_score: Optional[float] = None
    risk_level: Optional[str] = None
    updated_at: Optional[datetime] = None


class RiskFactor(BaseModel):
    """One weighted input dimension of a risk assessment."""
    model_config = ConfigDict(frozen=True)

    name: str
    weight: float
    score: float
    impact: str
    actual: str


class Recommendation(BaseModel):
    """Suggested intervention derived from a weak factor."""
    model_config = ConfigDict(frozen=True)

    priority: str
    action: str
    description: str
    expected_impact: float


class RiskAssessment(BaseModel):
    """Freshly computed risk for a single student."""
    model_config = ConfigDict(frozen=True)

    score: float
    level: str
    confidence: float
    missing_fields: List[str] = Field(default_factory=list)
    factors: List[RiskFactor]
    recommendations: List[Recommendation]


class BatchItem(BaseModel):
    """Per-record outcome of a batch run: either an assessment or an error."""
    model_config = ConfigDict(frozen=True)

    index: int
    student_id: Optional[str] = None
    assessment: Optional[RiskAssessment] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchSummary(BaseModel):
    """Counts over a batch run."""
    total_processed: int
    failed: int
    high_risk: int
    medium_risk: int
    low_risk: int


class ModelInfo(BaseModel):
    version: str
    algorithm: str
    features: int
    description: str


class TrendAnalysis(BaseModel):
    current_score: float
    risk_level: str
    trajectory: str


class SimilarCases(BaseModel):
    total: int
    successful: int
    success_rate: float


class Prediction(BaseModel):
    """Full prediction payload for one student."""
    student_id: str
    student_name: str
    department: str
    year: int
    overall_risk: RiskAssessment
    trend_analysis: TrendAnalysis
    similar_cases: SimilarCases


class Insight(BaseModel):
    """Human-readable observation about a cohort."""
    model_config = ConfigDict(frozen=True)

    type: str
    title: str
    description: str
    severity: str
    affected_count: int
    recommendation: str


class RealtimeStats(BaseModel):
    students_analyzed: int
    high_risk_count: int
    avg_gpa: float
    avg_attendance: float


class InsightReport(BaseModel):
    insights: List[Insight]
    realtime_stats: RealtimeStats


class StudentsUploadResponse(BaseModel):
    """Response from the record upload endpoint."""
    success: bool
    message: str
    count: int
    invalid: int = 0
    skipped: List[BatchItem] = Field(default_factory=list)


class BatchPredictionRequest(BaseModel):
    student_ids: List[str] = Field(default_factory=list)


class BatchPredictionResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    items: List[BatchItem]
    summary: BatchSummary
    model_info: ModelInfo


class ManualPredictionRequest(BaseModel):
    """Ad-hoc record typed into the prediction form."""
    name: str = 'Manual Entry'
    department: str = 'Unknown'
    year: Union[int, str, None] = None
    gpa: Union[float, str, None] = None
    attendance_rate: Union[float, str, None] = None
    engagement_score: Union[float, str, None] = None
    gpa_scale: Optional[float] = Field(default=None, gt=0)


class EmailDraftRequest(BaseModel):
    """Request for email draft generation."""
    student_id: str


class EmailDraftResponse(BaseModel):
    """Email draft response."""
    subject: str
    body: str


class ModelMetrics(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    total_students: int
    risk_distribution: Dict[str, int]
    risk_percentages: Dict[str, float]
    feature_importance: List[Dict[str, Union[str, float]]]
    model_description: str
