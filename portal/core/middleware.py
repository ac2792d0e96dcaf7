import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse

from .config import Config, RouteConfig
from .errors import SessionLookupError, handle_error
from .session import lookup_session


logger = logging.getLogger(__name__)


def cors_allowed_origins() -> list[str]:
    return Config.allowed_origins()


class RouteAction(str, Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class RouteDecision:
    action: RouteAction
    location: Optional[str] = None

    @classmethod
    def allow(cls) -> "RouteDecision":
        return cls(RouteAction.ALLOW)

    @classmethod
    def redirect(cls, location: str) -> "RouteDecision":
        return cls(RouteAction.REDIRECT, location)


def strip_locale(path: str, locales: Iterable[str] = ("en", "th")) -> str:
    names = "|".join(re.escape(locale) for locale in locales)
    if not names:
        return path or "/"
    return re.sub(rf'^/({names})(?=/|$)', "", path) or "/"


def _has_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def is_passthrough(path: str, config: RouteConfig) -> bool:
    normalized = strip_locale(path, config.locales)
    if any(_has_prefix(normalized, prefix) for prefix in config.protected_prefixes):
        return False
    if any(path == prefix or path.startswith(prefix + "/") for prefix in config.passthrough_prefixes):
        return True
    # Static assets such as /favicon.ico or /logo.svg
    return "." in path.rsplit("/", 1)[-1]


def evaluate_route(path: str, has_session: bool, config: Optional[RouteConfig] = None) -> RouteDecision:
    """Decide whether a request may proceed or must be redirected.

    Presence of a session is all that is checked; validating the session
    itself belongs to the identity provider.
    """
    config = config or RouteConfig()
    normalized = strip_locale(path, config.locales)

    if has_session and normalized in (config.sign_in_path, config.sign_up_path):
        return RouteDecision.redirect(config.landing_path)

    if not has_session and any(_has_prefix(normalized, prefix) for prefix in config.protected_prefixes):
        return RouteDecision.redirect(config.sign_in_path)

    return RouteDecision.allow()


async def route_guard(request: Request, call_next: Callable):
    config: RouteConfig = request.app.state.route_config
    path = request.url.path
    if is_passthrough(path, config):
        return await call_next(request)

    try:
        session = await lookup_session(request, request.app.state.session_store)
    except SessionLookupError as e:
        # Unknown session state is treated as signed out.
        logger.warning(f"Session lookup failed for {path}, treating as anonymous: {str(e)}")
        session = None
    request.state.session = session

    decision = evaluate_route(path, session is not None, config)
    if decision.action is RouteAction.REDIRECT:
        logger.debug(f"Redirecting {request.method} {path} -> {decision.location}")
        return RedirectResponse(decision.location, status_code=307)
    return await call_next(request)


async def log_requests(request: Request, call_next: Callable):
    start_time = time.time()
    request_id = f"{int(time.time() * 1000)}-{id(request)}"

    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        # Only log slow requests (>1s) or errors
        if process_time > 1.0 or response.status_code >= 400:
            logger.info(f"[{request_id}] {request.method} {request.url.path} - {response.status_code} - {process_time:.2f}s")
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"[{request_id}] {request.method} {request.url.path} - ERROR: {str(e)} - {process_time:.2f}s")
        raise


async def global_exception_handler(request: Request, exc: Exception):
    request_id = f"{int(time.time() * 1000)}-{id(request)}"
    logger.error(f"[{request_id}] Unhandled exception in {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    error = handle_error(exc)
    origin = request.headers.get("origin")
    response = JSONResponse(status_code=error["status_code"], content={"detail": error["message"]})
    if origin and origin in cors_allowed_origins():
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "*"

    return response
