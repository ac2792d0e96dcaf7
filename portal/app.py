import asyncio
import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from .core.config import Config, RouteConfig
from .core.errors import AuthenticationError, handle_error
from .core.forms import FormController
from .core.middleware import global_exception_handler, log_requests, route_guard
from .core.session import Session, SessionStore
from .core.submission import SubmissionExecutor, SubmissionStatus
from .core.validation import ValidationResult
from .schemas import CONTACT_SCHEMA, SIGN_IN_SCHEMA, describe
from .services import supabase_service
from .services.api_client import forward_contact_message, session_api_client

logger = logging.getLogger(__name__)


# Initialize FastAPI
app = FastAPI(title="Portal API")
app.state.session_store = SessionStore()
app.state.route_config = RouteConfig.from_env()
# Overridable transport for the outbound API client (tests use httpx.MockTransport)
app.state.api_transport = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

@app.middleware("http")
async def _route_guard(request, call_next):
    return await route_guard(request, call_next)

@app.middleware("http")
async def _log_requests(request, call_next):
    return await log_requests(request, call_next)

@app.exception_handler(Exception)
async def _global_exception_handler(request, exc):
    return await global_exception_handler(request, exc)


def _error_response(outcome) -> JSONResponse:
    if isinstance(outcome, ValidationResult):
        return JSONResponse(status_code=422, content={"status": "error", "errors": outcome.errors})
    error = handle_error(outcome.error)
    return JSONResponse(status_code=error["status_code"], content={"status": "error", "message": error["message"]})


def _cookie_max_age(session: Session):
    if session.expires_at is None:
        return None
    return max(int((session.expires_at - datetime.now(timezone.utc)).total_seconds()), 0)


async def _authenticate(values: dict) -> Session:
    return await supabase_service.sign_in_with_password_async(values["email"], values["password"])


@app.get("/auth/sign-in")
async def sign_in_form():
    """Describe the sign-in form fields and their constraints."""
    return {"action": app.state.route_config.sign_in_path, "fields": describe(SIGN_IN_SCHEMA)}


@app.post("/auth/sign-in")
async def sign_in(request: Request, email: str = Form(""), password: str = Form("")):
    """Validate credentials, authenticate with Supabase and start a session.

    - 422 with per-field messages when the form is invalid
    - provider failures are reported with their status (401 for bad credentials)
    - on success the session cookie is set and the client is sent to the landing page
    """
    controller = FormController(SIGN_IN_SCHEMA, SubmissionExecutor(_authenticate))
    controller.set_values({"email": email, "password": password})
    outcome = await controller.submit()

    if isinstance(outcome, ValidationResult) or outcome.status is SubmissionStatus.FAILED:
        return _error_response(outcome)

    session: Session = outcome.result
    session_id = request.app.state.session_store.create(session)
    logger.info(f"Signed in user {session.user_id}")

    response = RedirectResponse(request.app.state.route_config.landing_path, status_code=303)
    response.set_cookie(
        Config.SESSION_COOKIE_NAME,
        session_id,
        max_age=_cookie_max_age(session),
        httponly=True,
        secure=Config.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@app.post("/auth/sign-out")
async def sign_out(request: Request):
    session = request.app.state.session_store.delete(request.cookies.get(Config.SESSION_COOKIE_NAME))
    if session is not None:
        await asyncio.to_thread(supabase_service.sign_out, session.access_token)

    response = RedirectResponse(request.app.state.route_config.sign_in_path, status_code=303)
    response.delete_cookie(Config.SESSION_COOKIE_NAME)
    return response


@app.post("/contact")
async def contact(request: Request, name: str = Form(""), email: str = Form(""), message: str = Form("")):
    """Validate the contact form and forward it to the backend API."""
    session = getattr(request.state, "session", None)

    async def _deliver(values: dict) -> dict:
        async with session_api_client(session, transport=request.app.state.api_transport) as client:
            return await forward_contact_message(client, values)

    controller = FormController(CONTACT_SCHEMA, SubmissionExecutor(_deliver))
    controller.set_values({"name": name, "email": email, "message": message})
    outcome = await controller.submit()

    if isinstance(outcome, ValidationResult) or outcome.status is SubmissionStatus.FAILED:
        return _error_response(outcome)
    return {"status": "success", "message": "Message sent", "result": outcome.result}


def _landing(request: Request, section: str) -> dict:
    session = getattr(request.state, "session", None)
    if session is None:
        raise AuthenticationError("Sign in required")
    return {
        "section": section,
        "user": {"id": session.user_id, "email": session.email},
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/apps")
async def apps(request: Request):
    return _landing(request, "apps")


@app.get("/apps/{rest:path}")
async def apps_section(request: Request, rest: str):
    return _landing(request, f"apps/{rest}")


@app.get("/dashboard")
async def dashboard(request: Request):
    return _landing(request, "dashboard")


@app.get("/health")
async def health_check():
    """Basic configuration check for the service."""
    health_start_time = time.time()

    try:
        Config.validate()
        health_duration = time.time() - health_start_time

        return {
            "status": "healthy",
            "service": "portal",
            "timestamp": datetime.now().isoformat(),
            "response_time_ms": round(health_duration * 1000, 2)
        }
    except Exception as e:
        health_duration = time.time() - health_start_time
        logger.error(f"Health check failed: {str(e)} - Duration: {health_duration:.1f}s")

        return {
            "status": "unhealthy",
            "service": "portal",
            "timestamp": datetime.now().isoformat(),
            "error": str(e),
            "response_time_ms": round(health_duration * 1000, 2)
        }


@app.get("/")
async def root():
    """Return basic API information."""

    return {
        "service": "Portal API",
        "version": "1.0",
        "endpoints": {
            "sign_in": "/auth/sign-in",
            "sign_out": "/auth/sign-out",
            "contact": "/contact",
            "apps": "/apps",
            "health": "/health"
        },
        "timestamp": datetime.now().isoformat(),
    }
