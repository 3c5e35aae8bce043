import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interview_flow.api.adaptive_flow import router as adaptive_flow_router
from interview_flow.api.voice import router as voice_router
from interview_flow.api.ws_voice import router as voice_ws_router
from interview_flow.core.config import (
    MAX_INTERRUPTION_DELAY_MS,
    QA_MODE,
    SESSION_CLEANUP_INTERVAL_SEC,
    SESSION_CLEANUP_TTL_SEC,
    get_allowed_origins,
)
from interview_flow.core.errors import FlowError, PersistenceError
from interview_flow.core.logger import configure_logging
from interview_flow.session.registry import session_registry
from interview_flow.system_metrics import get_metrics_snapshot

configure_logging()

app = FastAPI(title="Adaptive Interview Flow")
logger = logging.getLogger("interview_flow.main")

_allowed_origins = get_allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

_session_cleanup_task: asyncio.Task | None = None


@app.exception_handler(FlowError)
async def flow_error_handler(request: Request, exc: FlowError):
    if isinstance(exc, PersistenceError) or exc.status_code >= 500:
        logger.error("request failed | path=%s err=%s", request.url.path, exc)
        message = exc.public_message
    else:
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        details.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "; ".join(details) or "Invalid request"},
    )


@app.on_event("startup")
async def startup_banner():
    global _session_cleanup_task
    if QA_MODE:
        logger.info("[SYSTEM] QA_MODE ENABLED")
    logger.info("[SYSTEM] CORS allow_origins=%s", _allowed_origins)
    logger.info("[SYSTEM] interruption target_ms=%s", MAX_INTERRUPTION_DELAY_MS)

    async def _session_cleanup_loop():
        while True:
            await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SEC)
            removed = session_registry.cleanup_ended(SESSION_CLEANUP_TTL_SEC)
            if removed > 0:
                logger.info("[SYSTEM] cleaned ended voice calls=%s", removed)

    _session_cleanup_task = asyncio.create_task(_session_cleanup_loop())


@app.on_event("shutdown")
async def shutdown_handler():
    global _session_cleanup_task
    if _session_cleanup_task is not None:
        _session_cleanup_task.cancel()
        try:
            await _session_cleanup_task
        except asyncio.CancelledError:
            pass
        finally:
            _session_cleanup_task = None
    logger.info("[SYSTEM] shutdown complete")


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "adaptive-interview-flow"}


@app.get("/api/system/metrics")
def system_metrics_route():
    return get_metrics_snapshot(extra={
        "voice_calls_registered_active": session_registry.active_count(),
        "session_cleanup_ttl_sec": SESSION_CLEANUP_TTL_SEC,
    })


app.include_router(adaptive_flow_router)
app.include_router(voice_router)
app.include_router(voice_ws_router)
