import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import LOGIN_PATH, LoginRequired, require_admin, require_admin_page
from .init_db import init_db
from .notify import notify_new_submission
from .oauth import router as oauth_router
from .pages import render_submissions
from .schemas import WaitlistSubmission
from .settings import Settings, get_settings
from .store import SubmissionStore, get_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_settings()
    init_db()
    yield


app = FastAPI(title="Waitlist", lifespan=lifespan)
app.include_router(oauth_router)


def _describe_errors(errors: List[Dict[str, Any]]) -> List[str]:
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    detail = _describe_errors(exc.errors())
    logger.info("Rejected request body", extra={"path": request.url.path, "errors": detail})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(detail) or "invalid request", "detail": detail},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return PlainTextResponse("not found", status_code=status.HTTP_404_NOT_FOUND)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(LOGIN_PATH, status_code=status.HTTP_302_FOUND)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "internal server error"}
    )


@app.get("/healthz", response_model=Dict[str, Any])
def healthcheck() -> Dict[str, Any]:
    """Expose a simple health endpoint for container orchestration."""
    return {"status": "ok"}


@app.post("/api/waitlist", response_model=Dict[str, Any])
def submit_waitlist(
    payload: WaitlistSubmission,
    background_tasks: BackgroundTasks,
    store: SubmissionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    submission = store.submit(payload)
    if settings.webhook_url:
        background_tasks.add_task(
            notify_new_submission,
            settings.webhook_url,
            payload.to_notification(submission.id),
            settings.http_timeout_seconds,
        )
    return {"ok": True}


@app.get("/admin/waitlist", response_class=HTMLResponse)
def admin_waitlist(
    identity: str = Depends(require_admin_page),
    store: SubmissionStore = Depends(get_store),
) -> HTMLResponse:
    return HTMLResponse(render_submissions(store.list(), identity))


@app.delete("/admin/waitlist/{submission_id:int}", response_model=Dict[str, Any])
def delete_submission(
    submission_id: int,
    identity: str = Depends(require_admin),
    store: SubmissionStore = Depends(get_store),
) -> Dict[str, Any]:
    if submission_id <= 0:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="not found")
    store.delete(submission_id)
    return {"ok": True}
