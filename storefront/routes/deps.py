"""Shared route dependencies: backend client, sessions and error translation"""

from typing import NoReturn, Optional
from urllib.parse import urlparse

from fastapi import Depends, Header, HTTPException, Response

from ..core.config import settings
from ..core.session import SessionManager, StorefrontSession
from ..services.backend_client import BackendClient
from ..utils.assets import resolve_base_path
from ..utils.errors import ErrorCategory, StorefrontError

SESSION_HEADER = "X-Session-Id"

# Created on first use, closed on shutdown
backend_client: Optional[BackendClient] = None
session_manager: Optional[SessionManager] = None

_STATUS_BY_CATEGORY = {
    ErrorCategory.AUTHENTICATION_REQUIRED: 401,
    ErrorCategory.PERMISSION_DENIED: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.SERVICE_UNAVAILABLE: 503,
}


def get_backend_client() -> BackendClient:
    """Get or create the shared backend client"""
    global backend_client
    if backend_client is None:
        backend_client = BackendClient(
            backend_url=settings.backend_url,
            timeout=settings.backend_timeout,
            token_audience=settings.token_audience,
        )
    return backend_client


def get_session_manager(backend: BackendClient = Depends(get_backend_client)) -> SessionManager:
    """Get or create the session manager"""
    global session_manager
    if session_manager is None:
        session_manager = SessionManager(
            backend=backend,
            storage_dir=settings.storage_dir,
            private_key_pem=settings.get_identity_private_key(),
            token_lifetime_seconds=settings.token_lifetime_seconds,
            flow_options={
                "cooldown_seconds": settings.resend_cooldown_seconds,
                "notice_seconds": settings.resend_notice_seconds,
                "code_length": settings.verification_code_length,
                "default_phone_prefix": settings.default_phone_prefix,
            },
        )
    return session_manager


def get_session(
    response: Response,
    x_session_id: Optional[str] = Header(None),
    manager: SessionManager = Depends(get_session_manager),
) -> StorefrontSession:
    """Resolve the caller's session from the X-Session-Id header, creating one if needed"""
    session = manager.get_or_create_session(x_session_id)
    response.headers[SESSION_HEADER] = session.session_id
    return session


def get_caller_backend(
    session: StorefrontSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend_client),
) -> BackendClient:
    """Backend client acting as the session's signed-in identity (anonymous otherwise)"""
    return backend.for_identity(session.identity.identity)


def get_base_path(referer: Optional[str] = Header(None)) -> str:
    """Base path of the page the request came from, for building asset URLs"""
    pathname = urlparse(referer).path if referer else "/"
    return resolve_base_path(pathname or "/", settings.base_path)


def raise_http_error(error: StorefrontError) -> NoReturn:
    """Translate a storefront error into an HTTP error carrying its user-facing message"""
    status_code = _STATUS_BY_CATEGORY.get(error.category, 400)
    detail: dict = {"message": error.message, "category": error.category.value}
    field = getattr(error, "field", None)
    if field:
        detail["field"] = field
    field_errors = getattr(error, "errors", None)
    if field_errors:
        detail["errors"] = {name: e.message for name, e in field_errors.items()}
    raise HTTPException(status_code=status_code, detail=detail) from error
