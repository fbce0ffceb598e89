"""FastAPI main application for the Student Risk Dashboard."""

import csv
import logging
import traceback
from io import StringIO
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from risk_dashboard import analytics
from risk_dashboard.config import load_settings
from risk_dashboard.email_templates import generate_email_draft
from risk_dashboard.models import (
    BatchItem,
    BatchPredictionRequest,
    BatchPredictionResponse,
    EmailDraftRequest,
    EmailDraftResponse,
    InsightReport,
    ManualPredictionRequest,
    ModelMetrics,
    Prediction,
    StudentsUploadResponse,
)
from risk_dashboard.records import InvalidInput, coerce_record, record_id
from risk_dashboard.risk import MODEL_INFO, RiskEngine, summarize_batch
from risk_dashboard.sample_data import SAMPLE_STUDENTS

settings = load_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

# GPA scale of the record source comes from RISK_GPA_SCALE
engine = RiskEngine(gpa_scale=settings.gpa_scale)

app = FastAPI(title="Student Risk Dashboard", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Register specific handlers before the catch-all
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler_json(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions and return JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_json(request: Request, exc: RequestValidationError):
    """Handle validation errors and return JSON."""
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()}
    )


@app.exception_handler(InvalidInput)
async def invalid_input_handler_json(request: Request, exc: InvalidInput):
    """Malformed student record fields."""
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "field": exc.field}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and return JSON."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error_detail = str(exc)
    if settings.debug:
        error_detail = f"{str(exc)}\n\n{traceback.format_exc()}"

    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Internal server error: {error_detail}",
            "type": type(exc).__name__
        }
    )


# In-memory record set, replaced wholesale on upload
records_cache: List[Dict[str, Any]] = []


def get_active_records() -> Tuple[List[Dict[str, Any]], str]:
    """Uploaded records, or the bundled sample set when nothing was uploaded."""
    if records_cache:
        return records_cache, 'uploaded'
    if settings.use_sample_data:
        return SAMPLE_STUDENTS, 'sample'
    return [], 'none'


def find_record(student_id: str) -> Dict[str, Any]:
    records, _ = get_active_records()
    for raw in records:
        if record_id(raw) == student_id:
            return raw
    raise HTTPException(status_code=404, detail=f"Student not found: {student_id}")


@app.get("/health")
async def health_check():
    """Health check endpoint to test server connectivity."""
    return JSONResponse(content={"status": "ok", "message": "Server is running"})


@app.post("/students", response_model=StudentsUploadResponse)
async def upload_students(records: List[Dict[str, Any]] = Body(...)):
    """Replace the cached record set with the records that pass coercion."""
    if not records:
        raise HTTPException(status_code=400, detail="No student records found in the request.")
    if len(records) > settings.max_records:
        raise HTTPException(
            status_code=413,
            detail=f"Too many records. Maximum: {settings.max_records}"
        )

    valid = []
    skipped = []
    for index, raw in enumerate(records):
        try:
            coerce_record(raw)
        except InvalidInput as e:
            skipped.append(BatchItem(index=index, student_id=record_id(raw), error=str(e)))
            logger.warning("Skipping malformed record %s: %s", record_id(raw), e)
            continue
        valid.append(raw)

    if not valid:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "No valid student records.",
                "skipped": [item.model_dump() for item in skipped]
            }
        )

    records_cache[:] = valid
    logger.info("Loaded %d student records (%d skipped)", len(valid), len(skipped))

    return StudentsUploadResponse(
        success=True,
        message=f"Successfully loaded {len(valid)} students",
        count=len(valid),
        invalid=len(skipped),
        skipped=skipped
    )


@app.get("/students")
async def list_students():
    records, source = get_active_records()
    return {'source': source, 'count': len(records), 'students': records}


@app.get("/predictions/{student_id}", response_model=Prediction)
async def get_prediction(student_id: str):
    """Fresh prediction for one student, with similar cases from the active records."""
    records, _ = get_active_records()
    return engine.predict(find_record(student_id), records)


@app.post("/predictions/batch", response_model=BatchPredictionResponse)
async def batch_predictions(request: BatchPredictionRequest):
    """Assess many students; malformed rows are reported per item."""
    records, _ = get_active_records()
    if request.student_ids:
        wanted = set(request.student_ids)
        records = [raw for raw in records if record_id(raw) in wanted]

    items = engine.assess_batch(records)
    return BatchPredictionResponse(
        items=items,
        summary=summarize_batch(items),
        model_info=MODEL_INFO
    )


@app.post("/predictions/manual", response_model=Prediction)
async def manual_prediction(request: ManualPredictionRequest):
    """Assess a record typed into the prediction form."""
    scorer = engine
    if request.gpa_scale is not None:
        scorer = RiskEngine(gpa_scale=request.gpa_scale)
    record = request.model_dump(exclude={'gpa_scale'})
    return scorer.predict(record)


@app.get("/model/metrics", response_model=ModelMetrics)
async def get_model_metrics():
    records, _ = get_active_records()
    return analytics.model_metrics(records)


@app.get("/insights", response_model=InsightReport)
async def get_insights():
    records, _ = get_active_records()
    return engine.derive_insights(records)


@app.get("/analytics/performance-trends")
async def get_performance_trends():
    records, _ = get_active_records()
    return analytics.performance_trends(records)


@app.get("/analytics/risk-heatmap")
async def get_risk_heatmap(department: Optional[str] = 'all'):
    records, _ = get_active_records()
    return analytics.risk_heatmap(records, department or 'all')


@app.get("/analytics/department-distribution")
async def get_department_distribution():
    records, _ = get_active_records()
    return {'departments': analytics.department_distribution(records)}


@app.get("/analytics/risk-comparison")
async def get_risk_comparison():
    records, _ = get_active_records()
    return analytics.risk_comparison(records)


@app.get("/analytics/departments")
async def get_department_analytics():
    records, _ = get_active_records()
    return {'departments': analytics.department_analytics(records)}


@app.get("/analytics/department-spread")
async def get_department_spread():
    records, _ = get_active_records()
    return analytics.department_spread(records)


@app.get("/analytics/demographics")
async def get_demographic_distribution():
    records, _ = get_active_records()
    return analytics.demographic_distribution(records)


@app.get("/analytics/realtime-updates")
async def get_realtime_updates(limit: int = Query(analytics.RECENT_UPDATES, ge=1, le=100)):
    """Most recently changed records and per-department activity."""
    records, _ = get_active_records()
    return analytics.realtime_updates(records, limit)


@app.post("/email-draft", response_model=EmailDraftResponse)
async def generate_email_draft_endpoint(request: EmailDraftRequest):
    """Generate an intervention email draft for a student."""
    student = coerce_record(find_record(request.student_id))
    email = generate_email_draft(
        student_name=student.name,
        department=student.department,
        assessment=engine.assess_student(student),
        advisor_name=settings.advisor_name,
        advisor_email=settings.advisor_email
    )
    return EmailDraftResponse(**email)


@app.get("/download.csv")
async def download_csv():
    """Download fresh batch predictions as CSV."""
    records, _ = get_active_records()
    if not records:
        raise HTTPException(status_code=404, detail="No results available")

    items = engine.assess_batch(records)

    output = StringIO()
    writer = csv.writer(output)

    writer.writerow([
        'Student ID',
        'Student Name',
        'Department',
        'Risk Score',
        'Risk Level',
        'Stored Risk Level',
        'Error'
    ])

    for raw, item in zip(records, items):
        if item.assessment is None:
            writer.writerow([item.student_id, raw.get('name', ''), raw.get('department', ''),
                             '', '', '', item.error])
            continue
        student = coerce_record(raw)
        writer.writerow([
            student.id,
            student.name,
            student.department,
            f"{item.assessment.score:.3f}",
            item.assessment.level,
            student.risk_level or '',
            ''
        ])

    output.seek(0)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": "attachment; filename=student_risk_predictions.csv"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
