"""Login and phone verification routes"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..core.session import SessionManager, StorefrontSession
from ..services.backend_client import BackendClient, BackendError
from ..services.verification import FlowStep
from ..utils.errors import sanitize_auth_flow_error
from .deps import get_caller_backend, get_session, get_session_manager, raise_http_error

router = APIRouter(prefix="/api/login", tags=["Login"])


class DraftUpdate(BaseModel):
    """Partial profile form update; omitted fields are left as they are"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class CodeRequest(BaseModel):
    code: str


def flow_view(session: StorefrontSession, ok: Optional[bool] = None) -> dict:
    view = session.flow.snapshot()
    view["session_id"] = session.session_id
    if ok is not None:
        view["ok"] = ok
    return view


@router.get("")
async def get_flow(session: StorefrontSession = Depends(get_session)):
    """Current state of the login page"""
    return flow_view(session)


@router.post("/sign-in")
async def sign_in(session: StorefrontSession = Depends(get_session)):
    """Sign in with the identity provider"""
    ok = await session.flow.sign_in()
    return flow_view(session, ok)


@router.post("/sign-out")
async def sign_out(
    session: StorefrontSession = Depends(get_session),
    manager: SessionManager = Depends(get_session_manager),
):
    """Sign out and start the login page over"""
    session.identity.logout()
    manager.restart_flow(session)
    return flow_view(session, True)


@router.put("/draft")
async def update_draft(
    update: DraftUpdate,
    session: StorefrontSession = Depends(get_session),
):
    """Edit the profile form"""
    session.flow.update_draft(name=update.name, email=update.email, phone=update.phone)
    return flow_view(session)


@router.post("/send-code")
async def send_code(session: StorefrontSession = Depends(get_session)):
    """Save the profile and send a verification code"""
    ok = await session.flow.send_code()
    return flow_view(session, ok)


@router.post("/resend-code")
async def resend_code(session: StorefrontSession = Depends(get_session)):
    ok = await session.flow.resend_code()
    return flow_view(session, ok)


@router.post("/verify")
async def verify_code(
    request: CodeRequest,
    session: StorefrontSession = Depends(get_session),
):
    """Confirm the verification code"""
    session.flow.set_code(request.code)
    ok = await session.flow.verify_code()
    return flow_view(session, ok)


@router.post("/restart")
async def restart(
    session: StorefrontSession = Depends(get_session),
    manager: SessionManager = Depends(get_session_manager),
):
    """Start a new flow once the previous one has finished"""
    if session.flow.step == FlowStep.SUCCESS:
        manager.restart_flow(session)
    return flow_view(session)


@router.get("/profile")
async def get_profile(
    session: StorefrontSession = Depends(get_session),
    backend: BackendClient = Depends(get_caller_backend),
):
    """The signed-in caller's saved profile"""
    if not session.identity.is_authenticated:
        return {"authenticated": False, "profile": None}

    try:
        profile = await backend.get_caller_user_profile()
    except BackendError as e:
        raise_http_error(sanitize_auth_flow_error(e))

    return {
        "authenticated": True,
        "principal": session.identity.principal,
        "profile": profile.model_dump() if profile else None,
    }
