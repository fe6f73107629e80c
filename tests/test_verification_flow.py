"""Login / phone verification flow"""

import asyncio

import httpx
import pytest

from storefront.core.environment import MemoryStorage
from storefront.services.backend_client import BackendClient, BackendError, BackendUnavailableError
from storefront.services.identity import IdentityProvider
from storefront.services.verification import (
    PHONE_DRAFT_KEY,
    FlowAction,
    FlowStep,
    ProfileDraft,
    VerificationFlow,
    validate_draft,
)
from storefront.utils.errors import (
    AuthenticationRequired,
    InvalidOrExpiredCode,
    ProfileNotFound,
    ServiceUnavailable,
    ValidationError,
)

from conftest import FakeBackend, signed_in_provider

VALID_DRAFT = {"name": "Asha Rao", "email": "asha@example.com", "phone": "+91 98765 43210"}


def make_flow(backend=None, provider=None, session_storage=None, **options) -> VerificationFlow:
    return VerificationFlow(
        backend or FakeBackend(),
        provider or signed_in_provider(),
        session_storage if session_storage is not None else MemoryStorage(),
        **options,
    )


async def flow_in_otp_step(backend: FakeBackend, **options) -> VerificationFlow:
    flow = make_flow(backend, **options)
    flow.update_draft(**VALID_DRAFT)
    assert await flow.send_code()
    backend.calls.clear()
    return flow


# ==================== Draft ====================

def test_phone_draft_defaults_to_prefix():
    flow = make_flow()

    assert flow.step == FlowStep.FORM
    assert flow.draft.phone == "+91 "


def test_phone_draft_restored_from_session_storage():
    flow = make_flow(session_storage=MemoryStorage({PHONE_DRAFT_KEY: "+91 99999 11111"}))

    assert flow.draft.phone == "+91 99999 11111"


def test_editing_phone_persists_draft():
    session_storage = MemoryStorage()
    flow = make_flow(session_storage=session_storage)

    flow.update_draft(phone="+91 90000 00000")

    assert session_storage.get(PHONE_DRAFT_KEY) == "+91 90000 00000"


def test_validate_draft_messages():
    errors = validate_draft(ProfileDraft(name=" ", email="not-an-email", phone="123"))

    assert errors["name"].message == "Name is required"
    assert errors["email"].message == "Please enter a valid email address"
    assert errors["phone"].message == "Please enter a valid phone number"


def test_validate_draft_required_fields():
    errors = validate_draft(ProfileDraft())

    assert errors["email"].message == "Email is required"
    assert errors["phone"].message == "Phone number is required"


def test_valid_draft_has_no_errors():
    assert validate_draft(ProfileDraft(**VALID_DRAFT)) == {}


# ==================== Sign in ====================

@pytest.mark.asyncio
async def test_sign_in_authenticates():
    flow = make_flow(provider=IdentityProvider())
    assert not flow.is_authenticated

    assert await flow.sign_in()

    assert flow.is_authenticated
    assert flow.snapshot()["principal"] != "2vxsx-fae"


@pytest.mark.asyncio
async def test_sign_in_clears_sign_in_prompt():
    flow = make_flow(provider=IdentityProvider())
    flow.update_draft(**VALID_DRAFT)
    await flow.send_code()
    assert isinstance(flow.errors["submit"], AuthenticationRequired)

    await flow.sign_in()

    assert "submit" not in flow.errors


# ==================== Send code ====================

@pytest.mark.asyncio
async def test_send_code_requires_authentication():
    backend = FakeBackend()
    flow = make_flow(backend, provider=IdentityProvider())
    flow.update_draft(**VALID_DRAFT)

    assert not await flow.send_code()

    assert isinstance(flow.errors["submit"], AuthenticationRequired)
    assert backend.calls == []
    assert flow.step == FlowStep.FORM


@pytest.mark.asyncio
async def test_send_code_with_invalid_form_makes_no_calls():
    backend = FakeBackend()
    flow = make_flow(backend)
    flow.update_draft(name="", email="bad", phone="+91 ")

    assert not await flow.send_code()

    assert set(flow.errors) == {"name", "email", "phone"}
    assert all(isinstance(e, ValidationError) for e in flow.errors.values())
    assert backend.calls == []


@pytest.mark.asyncio
async def test_send_code_saves_profile_then_requests_code():
    backend = FakeBackend()
    flow = make_flow(backend)
    flow.update_draft(**VALID_DRAFT)

    assert await flow.send_code()

    assert backend.call_names == ["save_caller_user_profile", "request_phone_verification"]
    saved = backend.calls[0][1][0]
    assert saved.phoneVerified is False
    assert saved.phone == VALID_DRAFT["phone"]
    assert backend.calls[1][1] == (VALID_DRAFT["phone"],)
    assert flow.step == FlowStep.OTP
    assert flow.resend_cooldown == 30
    assert not flow.can_resend
    assert flow.errors == {}
    flow.close()


@pytest.mark.asyncio
async def test_send_code_uses_signed_in_identity():
    backend = FakeBackend()
    provider = signed_in_provider()
    flow = make_flow(backend, provider=provider)
    flow.update_draft(**VALID_DRAFT)

    await flow.send_code()

    assert backend.identities == [provider.identity]
    flow.close()


@pytest.mark.asyncio
async def test_failed_profile_save_skips_code_request():
    backend = FakeBackend()
    backend.errors["save_caller_user_profile"] = BackendError(
        "Unauthorized: Only users can perform this action"
    )
    flow = make_flow(backend)
    flow.update_draft(**VALID_DRAFT)

    assert not await flow.send_code()

    assert backend.call_names == ["save_caller_user_profile"]
    assert isinstance(flow.errors["submit"], AuthenticationRequired)
    assert flow.step == FlowStep.FORM
    assert not flow.is_pending(FlowAction.SEND_CODE)


@pytest.mark.asyncio
async def test_failed_code_request_stays_on_form():
    backend = FakeBackend()
    backend.errors["request_phone_verification"] = BackendError(
        "Profile not found. Please save your profile first."
    )
    flow = make_flow(backend)
    flow.update_draft(**VALID_DRAFT)

    assert not await flow.send_code()

    assert isinstance(flow.errors["submit"], ProfileNotFound)
    assert flow.step == FlowStep.FORM


@pytest.mark.asyncio
async def test_unreachable_backend_is_reported_as_unavailable():
    backend = FakeBackend()
    backend.errors["save_caller_user_profile"] = BackendUnavailableError("Backend not available: refused")
    flow = make_flow(backend)
    flow.update_draft(**VALID_DRAFT)

    assert not await flow.send_code()

    assert isinstance(flow.errors["submit"], ServiceUnavailable)


@pytest.mark.asyncio
async def test_gateway_page_instead_of_rpc_reply_is_unavailable():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    backend = BackendClient("http://backend.test", http_client=httpx.AsyncClient(transport=transport))
    flow = make_flow(backend)
    flow.update_draft(**VALID_DRAFT)

    assert not await flow.send_code()

    assert isinstance(flow.errors["submit"], ServiceUnavailable)
    assert flow.step == FlowStep.FORM


@pytest.mark.asyncio
async def test_second_send_while_in_flight_is_ignored():
    backend = FakeBackend()
    backend.gates["save_caller_user_profile"] = asyncio.Event()
    flow = make_flow(backend)
    flow.update_draft(**VALID_DRAFT)

    first = asyncio.create_task(flow.send_code())
    await asyncio.sleep(0)
    assert flow.is_pending(FlowAction.SEND_CODE)

    assert not await flow.send_code()

    backend.gates["save_caller_user_profile"].set()
    assert await first
    assert backend.call_names.count("request_phone_verification") == 1
    flow.close()


# ==================== Verify code ====================

@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["", "123", "12345", "12a4"])
async def test_malformed_code_makes_no_calls(code):
    backend = FakeBackend()
    flow = await flow_in_otp_step(backend)
    flow.set_code(code)

    assert not await flow.verify_code()

    assert flow.errors["otp"].message == "Please enter the 4-digit code"
    assert backend.calls == []
    flow.close()


@pytest.mark.asyncio
async def test_rejected_code_keeps_otp_step():
    backend = FakeBackend()
    flow = await flow_in_otp_step(backend)
    backend.verify_result = False
    flow.set_code("0000")

    assert not await flow.verify_code()

    assert backend.call_names == ["verify_phone_verification_code"]
    assert isinstance(flow.errors["otp"], InvalidOrExpiredCode)
    assert flow.step == FlowStep.OTP
    flow.close()


@pytest.mark.asyncio
async def test_verify_error_is_sanitized():
    backend = FakeBackend()
    flow = await flow_in_otp_step(backend)
    backend.errors["verify_phone_verification_code"] = BackendError(
        "Invalid or expired verification code"
    )
    flow.set_code("1234")

    assert not await flow.verify_code()

    assert isinstance(flow.errors["otp"], InvalidOrExpiredCode)
    flow.close()


@pytest.mark.asyncio
async def test_accepted_code_saves_verified_profile():
    backend = FakeBackend()
    session_storage = MemoryStorage()
    flow = await flow_in_otp_step(backend, session_storage=session_storage)
    flow.set_code("1234")

    assert await flow.verify_code()

    assert backend.call_names == ["verify_phone_verification_code", "save_caller_user_profile"]
    assert backend.calls[0][1] == (VALID_DRAFT["phone"], "1234")
    assert backend.calls[1][1][0].phoneVerified is True
    assert flow.step == FlowStep.SUCCESS
    assert flow.errors == {}
    assert session_storage.get(PHONE_DRAFT_KEY) is None
    assert flow.resend_cooldown == 0


@pytest.mark.asyncio
async def test_verify_outside_otp_step_is_ignored():
    backend = FakeBackend()
    flow = make_flow(backend)
    flow.set_code("1234")

    assert not await flow.verify_code()
    assert backend.calls == []


# ==================== Resend ====================

@pytest.mark.asyncio
async def test_resend_blocked_during_cooldown():
    backend = FakeBackend()
    flow = await flow_in_otp_step(backend)

    assert not await flow.resend_code()

    assert backend.calls == []
    flow.close()


@pytest.mark.asyncio
async def test_cooldown_counts_down_then_allows_resend():
    backend = FakeBackend()
    flow = await flow_in_otp_step(backend, cooldown_seconds=3, notice_seconds=0.05, tick_seconds=0.01)
    assert flow.resend_cooldown == 3

    await asyncio.sleep(0.2)
    assert flow.resend_cooldown == 0
    assert flow.can_resend

    assert await flow.resend_code()

    assert backend.call_names == ["request_phone_verification"]
    assert flow.resend_cooldown == 3
    assert flow.resend_notice is True

    await asyncio.sleep(0.2)
    assert flow.resend_notice is False
    flow.close()


@pytest.mark.asyncio
async def test_failed_resend_reports_error_and_hides_notice():
    backend = FakeBackend()
    flow = await flow_in_otp_step(backend, cooldown_seconds=1, tick_seconds=0.01)
    await asyncio.sleep(0.1)
    backend.errors["request_phone_verification"] = BackendError("Backend not available: timeout")

    assert not await flow.resend_code()

    assert isinstance(flow.errors["resend"], ServiceUnavailable)
    assert flow.resend_notice is False
    assert flow.step == FlowStep.OTP
    flow.close()


@pytest.mark.asyncio
async def test_close_stops_timers():
    backend = FakeBackend()
    flow = await flow_in_otp_step(backend, cooldown_seconds=5, tick_seconds=0.01)

    flow.close()
    await asyncio.sleep(0.1)

    assert flow.resend_cooldown == 5


@pytest.mark.asyncio
async def test_snapshot_reports_state():
    backend = FakeBackend()
    async with await flow_in_otp_step(backend) as flow:
        snapshot = flow.snapshot()

    assert snapshot["step"] == "otp"
    assert snapshot["authenticated"] is True
    assert snapshot["draft"]["email"] == VALID_DRAFT["email"]
    assert snapshot["resend_cooldown"] == 30
    assert snapshot["can_resend"] is False
    assert snapshot["errors"] == {}
