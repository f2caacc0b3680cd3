import logging
import time
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from evstrack.aggregation.compliance import (
    average_by_risk_category,
    compliance_trend,
    critical_reports,
    location_averages,
    low_performing_locations,
)
from evstrack.aggregation.dashboard import (
    daily_compliance_series,
    inspector_summary,
    monthly_manager_report,
    supervisor_summary,
)
from evstrack.aggregation.filters import filter_reports
from evstrack.aggregation.inspectors import inspector_activity, top_inspector
from evstrack.aggregation.items import item_stats
from evstrack.aggregation.windows import Period, Window, trailing_window
from evstrack.config import get_settings
from evstrack.models.cdr import CDRIncidentType, CDRManagerDecision, CDRServiceType
from evstrack.models.statement import GlobalPenaltyItemStatus
from evstrack.risk.hotspots import predict_hotspots
from evstrack.statements.aggregator import printable_items
from evstrack.store.collections import Collection
from evstrack.telemetry import emit_exception_telemetry, init_telemetry
from evstrack.workflow.errors import AuthorizationError, StalePreviewError, WorkflowError
from evstrack.workflow.services import Services, build_services

# --- AUDIT LOGGING ---
logging.basicConfig(
    filename=get_settings().audit_log,
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
audit_logger = logging.getLogger("audit")

tags_metadata = [
    {"name": "Metrics", "description": "Compliance, inspector and checklist roll-ups."},
    {"name": "Risk", "description": "Critical reports and predictive hotspots."},
    {"name": "Workflow", "description": "Report, CDR, invoice and statement lifecycles."},
    {"name": "System", "description": "Health checks and operational metadata."},
]

app = FastAPI(
    title="EVS Inspection Tracker",
    description="""
    **Derivation layer** for hospital environmental-services inspections.

    * **Scoring:** per-report compliance against the location's checklist.
    * **Risk:** predictive hotspots weighted by zone risk category.
    * **Penalties:** CDR invoices and monthly global penalty statements.
    """,
    version="1.0.0",
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc"
)

init_telemetry()

_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


@app.middleware("http")
async def audit_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    client = request.client.host if request.client else "unknown"
    audit_logger.info(
        f"METHOD={request.method} PATH={request.url.path} "
        f"STATUS={response.status_code} CLIENT={client} "
        f"DURATION={process_time:.4f}s"
    )
    return response


# --- ERROR MAPPING ---
@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request: Request, exc: AuthorizationError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(KeyError)
async def not_found_handler(request: Request, exc: KeyError):
    return JSONResponse(status_code=404, content={"detail": str(exc.args[0]) if exc.args else "Not found"})


@app.exception_handler(ValueError)
async def validation_error_handler(request: Request, exc: ValueError):
    emit_exception_telemetry(exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# --- DATA MODELS ---
class StartReportsRequest(BaseModel):
    location_ids: List[str]
    sub_locations: List[str] = []


class ScoreItemRequest(BaseModel):
    score: float
    comment: Optional[str] = None
    defects: Optional[List[str]] = None


class CommentRequest(BaseModel):
    comment: str


class CreateCDRRequest(BaseModel):
    location_id: str
    incident_date: Optional[date] = None
    incident_time: Optional[str] = None
    incident_type: CDRIncidentType = CDRIncidentType.FIRST
    service_types: List[CDRServiceType] = []
    manpower_discrepancy: List[str] = []
    material_discrepancy: List[str] = []
    equipment_discrepancy: List[str] = []
    on_spot_action: List[str] = []
    action_plan: List[str] = []
    staff_comment: str = ""


class DecisionRequest(BaseModel):
    decision: CDRManagerDecision
    comment: Optional[str] = None


class CreateStatementRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int


class ManualItemRequest(BaseModel):
    violation_name: str
    amount: float = Field(ge=0)
    count: int = Field(ge=0)
    linked_cdr_ids: List[str] = []
    notes: str = ""


class UpdateItemRequest(BaseModel):
    violation_name: Optional[str] = None
    occurrence_count: Optional[int] = Field(default=None, ge=0)
    penalty_per_occurrence: Optional[float] = Field(default=None, ge=0)
    status: Optional[GlobalPenaltyItemStatus] = None
    manager_notes: Optional[str] = None
    linked_cdr_ids: Optional[List[str]] = None


class CommitRefreshRequest(BaseModel):
    # fingerprint returned by the preview the caller confirmed
    fingerprint: str


def _month_window(services: Services, year: Optional[int], month: Optional[int]) -> Window:
    now = services.clock.now()
    return Window.calendar_month(
        year if year is not None else now.year,
        month if month is not None else now.month,
    )


# --- ENDPOINTS ---
@app.get("/health", tags=["System"])
def health(services: Services = Depends(get_services)):
    return {
        "status": "online",
        "reference_snapshot": services.reference.snapshot_version,
        "penalty_rates": services.rates.snapshot_version,
        "mirror": services.store.mirror is not None,
    }


@app.get("/metrics/compliance", tags=["Metrics"])
def compliance_metrics(
    year: Optional[int] = None,
    month: Optional[int] = None,
    services: Services = Depends(get_services),
):
    reports = services.store.list(Collection.REPORTS)
    window = _month_window(services, year, month)
    trend = compliance_trend(reports, services.reference, window)
    month_reports = [r for r in reports if window.contains(r.date)]
    return {
        "window": jsonable_encoder(window),
        "average": trend.current,
        "previous_average": trend.previous,
        "trend": trend.delta,
        "inspections": len(month_reports),
        "by_risk_category": jsonable_encoder(
            average_by_risk_category(month_reports, services.reference)
        ),
    }


@app.get("/metrics/inspectors", tags=["Metrics"])
def inspector_metrics(services: Services = Depends(get_services)):
    ranking = inspector_activity(
        services.store.list(Collection.REPORTS), services.reference, services.clock.now()
    )
    return jsonable_encoder({"ranking": ranking, "top_inspector": top_inspector(ranking)})


@app.get("/metrics/locations", tags=["Metrics"])
def location_metrics(
    period: Period = Period.ALL_TIME,
    bottom: int = 5,
    services: Services = Depends(get_services),
):
    reports = services.store.list(Collection.REPORTS)
    window = trailing_window(period, services.clock.now())
    return jsonable_encoder({
        "averages": location_averages(reports, services.reference, window=window),
        "low_performing": low_performing_locations(reports, services.reference, n=bottom, window=window),
    })


@app.get("/metrics/items", tags=["Metrics"])
def item_metrics(
    period: Period = Period.LAST_MONTH,
    ascending: bool = True,
    services: Services = Depends(get_services),
):
    window = trailing_window(period, services.clock.now())
    reports = filter_reports(services.store.list(Collection.REPORTS), services.reference, window=window)
    return jsonable_encoder(item_stats(reports, services.reference, ascending=ascending))


@app.get("/metrics/daily", tags=["Metrics"])
def daily_metrics(days: int = 15, services: Services = Depends(get_services)):
    return jsonable_encoder(daily_compliance_series(
        services.store.list(Collection.REPORTS), services.reference, services.clock.now(), days=days
    ))


@app.get("/dashboard/supervisor", tags=["Metrics"])
def supervisor_dashboard(services: Services = Depends(get_services)):
    return jsonable_encoder(supervisor_summary(
        services.store.list(Collection.REPORTS),
        services.store.list(Collection.CDRS),
        services.reference,
        services.clock.now(),
    ))


@app.get("/dashboard/inspectors/{inspector_id}", tags=["Metrics"])
def inspector_dashboard(
    inspector_id: str,
    period: Period = Period.LAST_7_DAYS,
    services: Services = Depends(get_services),
):
    if services.reference.user(inspector_id) is None:
        raise KeyError(f"Inspector '{inspector_id}' not found")
    return jsonable_encoder(inspector_summary(
        inspector_id,
        services.store.list(Collection.REPORTS),
        services.store.list(Collection.CDRS),
        services.reference,
        services.clock.now(),
        period=period,
    ))


@app.get("/reports/critical", tags=["Risk"])
def critical(limit: Optional[int] = None, services: Services = Depends(get_services)):
    entries = critical_reports(services.store.list(Collection.REPORTS), services.reference)
    if limit is not None:
        entries = entries[:limit]
    return jsonable_encoder([
        {
            "report_id": e.report.id,
            "reference_number": e.report.reference_number,
            "location_id": e.report.location_id,
            "date": e.report.date,
            "compliance": e.compliance,
            "failed_items": e.failed_items,
        }
        for e in entries
    ])


@app.get("/reports/monthly", tags=["Metrics"])
def monthly_report(
    year: Optional[int] = None,
    month: Optional[int] = None,
    services: Services = Depends(get_services),
):
    window = _month_window(services, year, month)
    return jsonable_encoder(monthly_manager_report(
        services.store.list(Collection.REPORTS),
        services.store.list(Collection.CDRS),
        services.store.list(Collection.PENALTY_INVOICES),
        services.reference,
        window.start.year,
        window.start.month,
    ))


@app.get("/hotspots", tags=["Risk"])
def hotspots(top: int = 3, services: Services = Depends(get_services)):
    scores = predict_hotspots(
        services.reference,
        services.store.list(Collection.REPORTS),
        services.store.list(Collection.CDRS),
        services.clock.now(),
        top_n=top,
    )
    return [
        {**jsonable_encoder(score), "level": score.level.value}
        for score in scores
    ]


@app.post("/reports", tags=["Workflow"])
def start_reports(
    request: StartReportsRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(
        services.reports.start_batch(x_user_id, request.location_ids, request.sub_locations)
    )


@app.put("/reports/{report_id}/items/{item_id}", tags=["Workflow"])
def score_item(
    report_id: str,
    item_id: str,
    request: ScoreItemRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(services.reports.score_item(
        report_id, x_user_id, item_id, request.score, request.comment, request.defects
    ))


@app.post("/reports/{report_id}/submit", tags=["Workflow"])
def submit_report(report_id: str, x_user_id: str = Header(...), services: Services = Depends(get_services)):
    return jsonable_encoder(services.reports.submit(report_id, x_user_id))


@app.post("/reports/{report_id}/comment", tags=["Workflow"])
def comment_report(
    report_id: str,
    request: CommentRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(services.reports.add_supervisor_comment(report_id, x_user_id, request.comment))


@app.post("/cdrs", tags=["Workflow"])
def create_cdr(
    request: CreateCDRRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    fields = request.model_dump(exclude={"location_id", "incident_date", "incident_time"})
    return jsonable_encoder(services.cdrs.create_draft(
        x_user_id,
        request.location_id,
        date=request.incident_date,
        time=request.incident_time,
        **fields,
    ))


@app.post("/cdrs/{cdr_id}/submit", tags=["Workflow"])
def submit_cdr(cdr_id: str, x_user_id: str = Header(...), services: Services = Depends(get_services)):
    return jsonable_encoder(services.cdrs.submit(cdr_id, x_user_id))


@app.post("/cdrs/{cdr_id}/decision", tags=["Workflow"])
def record_decision(
    cdr_id: str,
    request: DecisionRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(
        services.cdrs.record_decision(cdr_id, x_user_id, request.decision, request.comment)
    )


@app.post("/cdrs/{cdr_id}/finalize", tags=["Workflow"])
def finalize_cdr(cdr_id: str, x_user_id: str = Header(...), services: Services = Depends(get_services)):
    result = services.cdrs.finalize(cdr_id, x_user_id)
    return jsonable_encoder({
        "outcome": result.outcome,
        "message": result.message,
        "cdr": result.cdr,
        "invoice": result.invoice,
    })


@app.get("/invoices", tags=["Workflow"])
def list_invoices(pending_only: bool = False, services: Services = Depends(get_services)):
    if pending_only:
        return jsonable_encoder(services.invoices.pending())
    return jsonable_encoder(services.store.list(Collection.PENALTY_INVOICES))


@app.post("/invoices/{invoice_id}/approve", tags=["Workflow"])
def approve_invoice(invoice_id: str, x_user_id: str = Header(...), services: Services = Depends(get_services)):
    return jsonable_encoder(services.invoices.approve(invoice_id, x_user_id))


@app.get("/statements", tags=["Workflow"])
def list_statements(services: Services = Depends(get_services)):
    statements = sorted(
        services.store.list(Collection.STATEMENTS),
        key=lambda s: (s.year, s.month),
        reverse=True,
    )
    return jsonable_encoder(statements)


@app.post("/statements", tags=["Workflow"])
def create_statement(
    request: CreateStatementRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(services.statements.create(request.month, request.year, x_user_id))


@app.get("/statements/{statement_id}", tags=["Workflow"])
def get_statement(statement_id: str, services: Services = Depends(get_services)):
    return jsonable_encoder(services.store.require(Collection.STATEMENTS, statement_id))


@app.get("/statements/{statement_id}/print", tags=["Workflow"])
def print_statement(statement_id: str, services: Services = Depends(get_services)):
    statement = services.store.require(Collection.STATEMENTS, statement_id)
    return jsonable_encoder({"statement": statement, "items": printable_items(statement)})


@app.post("/statements/{statement_id}/refresh/preview", tags=["Workflow"])
def preview_refresh(statement_id: str, services: Services = Depends(get_services)):
    return jsonable_encoder(services.statements.preview_refresh(statement_id))


@app.post("/statements/{statement_id}/refresh/commit", tags=["Workflow"])
def commit_refresh(
    statement_id: str,
    request: CommitRefreshRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    preview = services.statements.preview_refresh(statement_id)
    if preview.fingerprint != request.fingerprint:
        raise StalePreviewError("Statement changed since the refresh was previewed")
    return jsonable_encoder(services.statements.commit_refresh(preview, x_user_id))


@app.post("/statements/{statement_id}/items", tags=["Workflow"])
def add_manual_item(
    statement_id: str,
    request: ManualItemRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(services.statements.add_manual_item(
        statement_id,
        x_user_id,
        request.violation_name,
        request.amount,
        request.count,
        request.linked_cdr_ids,
        request.notes,
    ))


@app.patch("/statements/{statement_id}/items/{item_id}", tags=["Workflow"])
def update_item(
    statement_id: str,
    item_id: str,
    request: UpdateItemRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    changes = request.model_dump(exclude_none=True)
    return jsonable_encoder(services.statements.update_item(statement_id, item_id, x_user_id, **changes))


@app.delete("/statements/{statement_id}/items/{item_id}", tags=["Workflow"])
def delete_item(
    statement_id: str,
    item_id: str,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(services.statements.delete_item(statement_id, item_id, x_user_id))


@app.put("/statements/{statement_id}/comment", tags=["Workflow"])
def set_statement_comment(
    statement_id: str,
    request: CommentRequest,
    x_user_id: str = Header(...),
    services: Services = Depends(get_services),
):
    return jsonable_encoder(services.statements.set_general_comment(statement_id, x_user_id, request.comment))


@app.post("/statements/{statement_id}/approve", tags=["Workflow"])
def approve_statement(statement_id: str, x_user_id: str = Header(...), services: Services = Depends(get_services)):
    return jsonable_encoder(services.statements.approve(statement_id, x_user_id))


@app.get("/notifications", tags=["System"])
def notifications(limit: Optional[int] = None, services: Services = Depends(get_services)):
    return jsonable_encoder({
        "unread": services.notifications.unread_count(),
        "items": services.notifications.recent(limit),
    })


@app.post("/notifications/{notification_id}/read", tags=["System"])
def mark_notification_read(notification_id: str, services: Services = Depends(get_services)):
    return jsonable_encoder(services.notifications.mark_read(notification_id))


@app.post("/notifications/read-all", tags=["System"])
def mark_all_notifications_read(services: Services = Depends(get_services)):
    return {"marked": services.notifications.mark_all_read()}
