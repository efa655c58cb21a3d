import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response, Request, Depends, HTTPException, status

from msgledger.config import settings
from msgledger.dispatch import COMMANDS, JSON_COMMANDS, invoke
from msgledger.errors import LedgerError
from msgledger.host import LedgerHost
from msgledger.logging_utils import setup_logging, RequestLoggingMiddleware, log_invoke_data
from msgledger.metrics import record_invocation, get_metrics, get_metrics_content_type
from msgledger.schemas import ErrorResponse, HealthResponse, InvokeRequest, InvokeResponse
from msgledger.storage import init_db, check_db_health, get_host


setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the ledger tables on startup.
    """
    init_db()
    yield


app = FastAPI(
    title="Messaging Ledger API",
    description="Messengers and Messages on a versioned key-value ledger",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """
    Liveness check - 200 as soon as the app is running.
    """
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
async def health_ready(response: Response) -> HealthResponse:
    """
    Readiness check - 200 once the ledger database is reachable and its
    tables exist, 503 otherwise.
    """
    if not check_db_health():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="Ledger database not reachable or schema not applied"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Invoke Route
# =============================================================================

@app.post(
    "/invoke/{command}",
    responses={
        200: {"description": "Command payload, or {\"status\": \"ok\"} for writes"},
        403: {"model": ErrorResponse, "description": "Company cannot authorize the operation"},
        404: {"model": ErrorResponse, "description": "Messenger or Message not found"},
        409: {"model": ErrorResponse, "description": "Id already exists"},
        422: {"model": ErrorResponse, "description": "Invalid arguments or unknown command"},
        502: {"model": ErrorResponse, "description": "Ledger host failure"},
    }
)
async def invoke_command(
    command: str,
    request: Request,
    body: Optional[InvokeRequest] = None,
    host: LedgerHost = Depends(get_host),
):
    """
    Run one ledger command.

    Commands: read, write, createMessenger, createMessage, deleteMessage,
    rangeQuery, history, readAll. Arguments are positional strings in
    the request body: {"args": [...]}. readAll takes none and the body may
    be omitted.
    """
    args = body.args if body is not None else []
    logger.debug(f"Invoke {command} with {len(args)} argument(s)")

    try:
        payload = invoke(host, command, args)
    except LedgerError as e:
        label = command if command in COMMANDS else "unknown"
        record_invocation(label, e.result)
        log_invoke_data(request, command=label, result=e.result)
        raise HTTPException(status_code=e.status_code, detail=e.message)

    record_invocation(command, "ok")
    log_invoke_data(request, command=command, result="ok")

    if payload is None:
        return InvokeResponse(status="ok")

    media_type = "application/json" if command in JSON_COMMANDS else "application/octet-stream"
    return Response(content=payload, media_type=media_type)


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics: http_requests_total, ledger_invocations_total and
    request_latency_seconds.
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
