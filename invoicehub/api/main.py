"""FastAPI application for invoice submission and review.

Provides:
- Invoice submission from HTML forms and JSON clients
- Standalone file upload to the configured blob store
- Listing and detail pages with count/total aggregates
- Health, readiness and Prometheus metrics endpoints

Storage backends are selected once, here, from configuration.

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from invoicehub.api import metrics
from invoicehub.api.presentation import NOT_PERSISTED_WARNING, create_templates
from invoicehub.blobs.factory import create_blob_store
from invoicehub.invoices.schema import InvoiceRecord, InvoiceSubmission, InvoiceSummary
from invoicehub.invoices.service import Attachment, InvoiceService
from invoicehub.records.factory import create_record_store
from invoicehub.records.memory_store import MemoryRecordStore
from invoicehub.shared.config import get_settings
from invoicehub.shared.errors import InvoiceError, InvoiceValidationError, NotFoundError
from invoicehub.shared.log_config import configure_logging

logger = logging.getLogger(__name__)

settings = get_settings()

record_store = create_record_store(settings)
blob_store = create_blob_store(settings)
invoice_service = InvoiceService(settings, record_store, blob_store)
templates = create_templates(settings)

# Multipart field name -> attachment slot
FORM_FILE_FIELDS: dict[str, str] = {
    "invoiceImage": "image",
    "invoiceFile": "invoice",
    "signFile": "sign",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and prepare local directories on startup."""
    configure_logging(settings)
    if settings.blob_backend == "local":
        settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    if settings.record_backend == "memory" and settings.persistent_filesystem:
        settings.data_dir.mkdir(parents=True, exist_ok=True)

    logger.info(
        f"{settings.service_name} {settings.service_version} started "
        f"(records: {record_store.backend_name}, files: {blob_store.backend_name})"
    )
    logger.info(f"Admin page: http://{settings.host}:{settings.port}/admin/invoices")
    yield


app = FastAPI(
    title="Invoice Hub",
    description="Invoice submission and record-keeping API",
    version=settings.service_version,
    lifespan=lifespan,
)

if settings.blob_backend == "local":
    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=settings.uploads_dir, check_dir=False),
        name="uploads",
    )


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    # Route templates keep invoice ids out of the label values
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=endpoint,
    ).observe(duration)

    return response


@app.exception_handler(InvoiceError)
async def invoice_error_handler(request: Request, exc: InvoiceError) -> Response:
    """Convert handler failures into a user-facing message.

    The underlying cause is logged only. JSON routes get a failure payload,
    page routes get the error page.
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}: {exc.__cause__}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

    if request.url.path.startswith("/api/"):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    title = "Not found" if isinstance(exc, NotFoundError) else "Submission failed"
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": title, "message": exc.message, "warning": _warning()},
        status_code=exc.status_code,
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    records: str
    files: str


def _warning() -> str:
    return "" if record_store.persists_across_restarts else NOT_PERSISTED_WARNING


def _summary_path() -> Path | None:
    if isinstance(record_store, MemoryRecordStore):
        return record_store.summary_path
    return None


def _parse_submission(data: Any) -> InvoiceSubmission:
    """Validate an incoming payload against the submission schema."""
    if not isinstance(data, dict):
        raise InvoiceValidationError("Invoice payload must be an object")
    try:
        return InvoiceSubmission.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
        raise InvoiceValidationError(f"Missing or invalid fields: {fields}") from e


async def _read_form(request: Request) -> tuple[dict[str, str], list[tuple[str, Attachment]]]:
    """Split a form body into text fields and non-empty file parts."""
    form = await request.form()
    fields: dict[str, str] = {}
    files: list[tuple[str, Attachment]] = []

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            # Browsers send an unnamed empty part for an unused file input
            if not value.filename:
                continue
            files.append(
                (key, Attachment(await value.read(), value.filename, value.content_type))
            )
        else:
            fields[key] = value

    return fields, files


def _submit(submission: InvoiceSubmission, attachments: dict[str, Attachment]) -> InvoiceRecord:
    """Run a submission and record its outcome."""
    try:
        record = invoice_service.submit(submission, attachments)
    except InvoiceValidationError:
        metrics.invoices_submitted_total.labels(status="rejected").inc()
        raise
    except InvoiceError:
        metrics.invoices_submitted_total.labels(status="failed").inc()
        raise

    metrics.invoices_submitted_total.labels(status="success").inc()
    for attachment in attachments.values():
        metrics.files_uploaded_total.labels(backend=blob_store.backend_name).inc()
        metrics.file_upload_size_bytes.observe(len(attachment.data))
    return record


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe."""
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check: records configured and blob storage reachable."""
    return ReadinessResponse(
        ready=record_store.is_available() and blob_store.health_check(),
        records=record_store.backend_name,
        files=blob_store.backend_name,
    )


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint."""
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.post("/submit-invoice", response_class=HTMLResponse, tags=["Pages"])
async def submit_invoice_form(request: Request) -> Response:
    """Submit an invoice from the HTML form.

    Accepts the invoice fields plus optional ``invoiceImage``, ``invoiceFile``
    and ``signFile`` parts. Renders the success page, or the error page with
    400/413 for rejected input and 500 for storage failures.
    """
    fields, files = await _read_form(request)
    attachments = {
        FORM_FILE_FIELDS[key]: attachment for key, attachment in files if key in FORM_FILE_FIELDS
    }
    record = _submit(_parse_submission(fields), attachments)

    return templates.TemplateResponse(
        request,
        "success.html",
        {"invoice": record, "message": "Invoice submitted successfully!", "warning": _warning()},
    )


@app.post("/api/invoice", tags=["Invoices"])
async def create_invoice(request: Request) -> dict[str, Any]:
    """Create an invoice from a JSON (or form) body.

    File URLs obtained from ``/api/upload`` can be passed as ``imageUrl``,
    ``invoiceUrl`` and ``signUrl``.

    ## Usage Example

    ```bash
    curl -X POST "http://localhost:3000/api/invoice" \\
      -H "Content-Type: application/json" \\
      -d '{"invoiceNumber": "INV-1", "amount": "100.50", "currency": "USD"}'
    ```
    """
    attachments: dict[str, Attachment] = {}
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            data = await request.json()
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise InvoiceValidationError("Request body is not valid JSON") from e
    else:
        data, files = await _read_form(request)
        attachments = {
            FORM_FILE_FIELDS[key]: attachment
            for key, attachment in files
            if key in FORM_FILE_FIELDS
        }

    record = _submit(_parse_submission(data), attachments)
    return {"success": True, "invoice": record.model_dump(mode="json", by_alias=True)}


@app.post("/api/upload", tags=["Files"])
async def upload_files(request: Request) -> dict[str, Any]:
    """Store one or more files sent as ``file`` parts.

    Returns ``{"url": ...}`` for a single file and
    ``{"files": [{"filename": ..., "url": ...}]}`` for several.

    ## Error Handling

    - Returns 400 if no file is attached or a file is rejected
    - Returns 413 if a file exceeds the size limit
    - Returns 500 if storage credentials are missing or storage fails
    """
    _, files = await _read_form(request)
    uploads = [attachment for key, attachment in files if key == "file"]

    stored = invoice_service.upload_files(uploads)

    for blob in stored:
        metrics.files_uploaded_total.labels(backend=blob_store.backend_name).inc()
        metrics.file_upload_size_bytes.observe(blob.size)

    if len(stored) == 1:
        return {"url": stored[0].url}
    return {"files": [{"filename": blob.filename, "url": blob.url} for blob in stored]}


@app.get("/api/invoices", tags=["Invoices"])
def list_invoices_json() -> dict[str, Any]:
    """All invoices with count and total amount."""
    return invoice_service.list_invoices().model_dump(mode="json", by_alias=True)


@app.get("/api/invoices/{invoice_id}", tags=["Invoices"])
def get_invoice_json(invoice_id: str) -> dict[str, Any]:
    """Single invoice; 404 when absent."""
    return invoice_service.get_invoice(invoice_id).model_dump(mode="json", by_alias=True)


@app.get("/", response_class=HTMLResponse, tags=["Pages"])
@app.get("/admin/invoices", response_class=HTMLResponse, tags=["Pages"])
def invoices_page(request: Request) -> Response:
    """Listing page with invoice count and total amount.

    A failing record store renders an empty listing instead of an error.
    """
    try:
        summary = invoice_service.list_invoices()
    except InvoiceError as e:
        logger.error(f"Failed to load invoices: {e.message}: {e.__cause__}")
        summary = InvoiceSummary(invoices=[], count=0, total_amount=0.0)

    return templates.TemplateResponse(
        request,
        "invoices.html",
        {
            "invoices": summary.invoices,
            "total_invoices": summary.count,
            "total_amount": summary.total_amount,
            "summary_available": _summary_path() is not None,
            "warning": _warning(),
        },
    )


@app.get("/admin/invoices.xlsx", tags=["Pages"])
def download_summary() -> Response:
    """Spreadsheet summary of all invoices (local record store only)."""
    path = _summary_path()
    if path is None or not path.exists():
        raise NotFoundError("Spreadsheet summary is not available")
    return FileResponse(
        path,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=path.name,
    )


@app.get("/admin/invoices/{invoice_id}", response_class=HTMLResponse, tags=["Pages"])
def invoice_detail_page(request: Request, invoice_id: str) -> Response:
    """Detail page; renders the not-found page with 404 when absent."""
    invoice = invoice_service.get_invoice(invoice_id)
    return templates.TemplateResponse(
        request,
        "invoice_detail.html",
        {"invoice": invoice, "warning": _warning()},
    )
