"""
Phone verification flow

Drives the login page: sign in with the identity provider, fill in the
profile form, receive a code by phone, confirm it. Steps only move forward
(form -> otp -> success); inside `otp` the code may be resent once the
cooldown has run out.

Each action is a coroutine making at most two backend calls, in order.
An action that is already in flight turns a second invocation into a no-op.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.environment import Storage, StorageError
from ..models import UserProfile
from ..utils.errors import (
    AuthenticationRequired,
    InvalidOrExpiredCode,
    StorefrontError,
    ValidationError,
    sanitize_auth_flow_error,
)
from .backend_client import BackendClient, BackendError
from .identity import IdentityError, IdentityProvider

logger = logging.getLogger(__name__)

PHONE_DRAFT_KEY = "login_phone_draft"
DEFAULT_PHONE_PREFIX = "+91 "
RESEND_COOLDOWN_SECONDS = 30
RESEND_NOTICE_SECONDS = 3.0
CODE_LENGTH = 4

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{10,}$")


class FlowStep(str, Enum):
    FORM = "form"
    OTP = "otp"
    SUCCESS = "success"


class FlowAction(str, Enum):
    SIGN_IN = "sign_in"
    SEND_CODE = "send_code"
    RESEND_CODE = "resend_code"
    VERIFY_CODE = "verify_code"


@dataclass
class ProfileDraft:
    name: str = ""
    email: str = ""
    phone: str = ""

    def to_profile(self, phone_verified: bool) -> UserProfile:
        return UserProfile(
            name=self.name,
            email=self.email,
            phone=self.phone,
            phoneVerified=phone_verified,
        )


def validate_draft(draft: ProfileDraft) -> dict[str, ValidationError]:
    """Per-field errors for the profile form; empty when valid"""
    errors: dict[str, ValidationError] = {}

    if not draft.name.strip():
        errors["name"] = ValidationError("Name is required", field="name")

    if not draft.email.strip():
        errors["email"] = ValidationError("Email is required", field="email")
    elif not EMAIL_PATTERN.match(draft.email):
        errors["email"] = ValidationError("Please enter a valid email address", field="email")

    if not draft.phone.strip():
        errors["phone"] = ValidationError("Phone number is required", field="phone")
    elif not PHONE_PATTERN.match(draft.phone):
        errors["phone"] = ValidationError("Please enter a valid phone number", field="phone")

    return errors


class VerificationFlow:
    """
    Login and phone verification state machine for one session.

    Usage:
        async with VerificationFlow(backend, identity_provider, session_storage) as flow:
            await flow.sign_in()
            flow.update_draft(name="Asha", email="asha@example.com", phone="+91 98765 43210")
            await flow.send_code()
            flow.set_code("1234")
            await flow.verify_code()
    """

    def __init__(
        self,
        backend: BackendClient,
        identity_provider: IdentityProvider,
        session_storage: Storage,
        cooldown_seconds: int = RESEND_COOLDOWN_SECONDS,
        notice_seconds: float = RESEND_NOTICE_SECONDS,
        code_length: int = CODE_LENGTH,
        default_phone_prefix: str = DEFAULT_PHONE_PREFIX,
        tick_seconds: float = 1.0,
    ):
        self._backend = backend
        self.identity_provider = identity_provider
        self._session_storage = session_storage
        self.cooldown_seconds = cooldown_seconds
        self.notice_seconds = notice_seconds
        self.code_length = code_length
        self.tick_seconds = tick_seconds

        self.step = FlowStep.FORM
        self.draft = ProfileDraft(phone=self._read_phone_draft() or default_phone_prefix)
        self.code = ""
        self.errors: dict[str, StorefrontError] = {}
        self.resend_cooldown = 0
        self.resend_notice = False

        self._pending: set[FlowAction] = set()
        self._cooldown_task: Optional[asyncio.Task] = None
        self._notice_task: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "VerificationFlow":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # ==================== State ====================

    @property
    def is_authenticated(self) -> bool:
        return self.identity_provider.is_authenticated

    @property
    def can_resend(self) -> bool:
        return (
            self.step == FlowStep.OTP
            and self.resend_cooldown == 0
            and FlowAction.RESEND_CODE not in self._pending
        )

    def is_pending(self, action: FlowAction) -> bool:
        return action in self._pending

    def error_messages(self) -> dict[str, str]:
        return {name: error.message for name, error in self.errors.items()}

    def _backend_for_caller(self) -> BackendClient:
        return self._backend.for_identity(self.identity_provider.identity)

    # ==================== Session draft ====================

    def _read_phone_draft(self) -> Optional[str]:
        try:
            return self._session_storage.get(PHONE_DRAFT_KEY)
        except StorageError as e:
            logger.warning(f"Failed to read phone draft: {e}")
            return None

    def _write_phone_draft(self, phone: str) -> None:
        try:
            self._session_storage.set(PHONE_DRAFT_KEY, phone)
        except StorageError as e:
            logger.warning(f"Failed to persist phone draft: {e}")

    def _clear_phone_draft(self) -> None:
        try:
            self._session_storage.remove(PHONE_DRAFT_KEY)
        except StorageError as e:
            logger.warning(f"Failed to clear phone draft: {e}")

    # ==================== Form input ====================

    def update_draft(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> None:
        """Edit form fields; editing a field clears its error"""
        if name is not None:
            self.draft.name = name
            self.errors.pop("name", None)
        if email is not None:
            self.draft.email = email
            self.errors.pop("email", None)
        if phone is not None:
            self.draft.phone = phone
            self.errors.pop("phone", None)
            self._write_phone_draft(phone)

    def set_code(self, code: str) -> None:
        self.code = code
        self.errors.pop("otp", None)

    # ==================== Actions ====================

    async def sign_in(self) -> bool:
        if FlowAction.SIGN_IN in self._pending or self.identity_provider.is_logging_in:
            return False

        self._pending.add(FlowAction.SIGN_IN)
        try:
            await self.identity_provider.login()
        except IdentityError:
            self.errors = {"submit": StorefrontError("Failed to sign in. Please try again.")}
            return False
        finally:
            self._pending.discard(FlowAction.SIGN_IN)

        submit_error = self.errors.get("submit")
        if isinstance(submit_error, AuthenticationRequired):
            del self.errors["submit"]
        return True

    async def send_code(self) -> bool:
        """Save the draft profile unverified, then request a code (form -> otp)"""
        if self.step != FlowStep.FORM or self._pending & {FlowAction.SEND_CODE, FlowAction.VERIFY_CODE}:
            return False

        if not self.is_authenticated:
            self.errors = {"submit": AuthenticationRequired(
                "Please sign in with Internet Identity first."
            )}
            return False

        field_errors = validate_draft(self.draft)
        self.errors = dict(field_errors)
        if field_errors:
            return False

        self._pending.add(FlowAction.SEND_CODE)
        try:
            backend = self._backend_for_caller()
            await backend.save_caller_user_profile(self.draft.to_profile(phone_verified=False))
            await backend.request_phone_verification(self.draft.phone)
        except BackendError as e:
            self.errors = {"submit": sanitize_auth_flow_error(e)}
            logger.info(f"Sending verification code failed: {self.errors['submit'].category.value}")
            return False
        finally:
            self._pending.discard(FlowAction.SEND_CODE)

        self.step = FlowStep.OTP
        self.errors = {}
        self._start_cooldown()
        return True

    async def resend_code(self) -> bool:
        """Request another code; no-op until the cooldown has run out"""
        if not self.can_resend:
            return False

        if not self.is_authenticated:
            self.errors["resend"] = AuthenticationRequired(
                "Please sign in with Internet Identity first."
            )
            return False

        self._pending.add(FlowAction.RESEND_CODE)
        try:
            await self._backend_for_caller().request_phone_verification(self.draft.phone)
        except BackendError as e:
            self.errors = {"resend": sanitize_auth_flow_error(e)}
            self._set_notice(False)
            return False
        finally:
            self._pending.discard(FlowAction.RESEND_CODE)

        self._start_cooldown()
        self._set_notice(True)
        self.errors.pop("resend", None)
        return True

    async def verify_code(self) -> bool:
        """Confirm the code, then save the profile as verified (otp -> success)"""
        if self.step != FlowStep.OTP or FlowAction.VERIFY_CODE in self._pending:
            return False

        if len(self.code) != self.code_length or not self.code.isdigit():
            self.errors = {"otp": ValidationError(
                f"Please enter the {self.code_length}-digit code", field="otp"
            )}
            return False

        if not self.is_authenticated:
            self.errors = {"otp": AuthenticationRequired()}
            return False

        self._pending.add(FlowAction.VERIFY_CODE)
        try:
            backend = self._backend_for_caller()
            verified = await backend.verify_phone_verification_code(self.draft.phone, self.code)
            if verified:
                await backend.save_caller_user_profile(self.draft.to_profile(phone_verified=True))
        except BackendError as e:
            self.errors = {"otp": sanitize_auth_flow_error(e)}
            return False
        finally:
            self._pending.discard(FlowAction.VERIFY_CODE)

        if not verified:
            self.errors = {"otp": InvalidOrExpiredCode()}
            return False

        self.step = FlowStep.SUCCESS
        self.errors = {}
        self._clear_phone_draft()
        self.close()
        logger.info("Phone verified, profile saved")
        return True

    # ==================== Timers ====================

    def _start_cooldown(self) -> None:
        if self._cooldown_task is not None:
            self._cooldown_task.cancel()
        self.resend_cooldown = self.cooldown_seconds
        self._cooldown_task = asyncio.get_running_loop().create_task(self._run_cooldown())

    async def _run_cooldown(self) -> None:
        while self.resend_cooldown > 0:
            await asyncio.sleep(self.tick_seconds)
            self.resend_cooldown -= 1

    def _set_notice(self, visible: bool) -> None:
        if self._notice_task is not None:
            self._notice_task.cancel()
            self._notice_task = None
        self.resend_notice = visible
        if visible:
            self._notice_task = asyncio.get_running_loop().create_task(self._expire_notice())

    async def _expire_notice(self) -> None:
        await asyncio.sleep(self.notice_seconds)
        self.resend_notice = False

    def close(self) -> None:
        """Cancel running timers"""
        for task in (self._cooldown_task, self._notice_task):
            if task is not None:
                task.cancel()
        self._cooldown_task = None
        self._notice_task = None
        if self.step != FlowStep.OTP:
            self.resend_cooldown = 0
            self.resend_notice = False

    def snapshot(self) -> dict:
        """Serializable view of the flow for the login page"""
        return {
            "step": self.step.value,
            "authenticated": self.is_authenticated,
            "principal": self.identity_provider.principal,
            "draft": {
                "name": self.draft.name,
                "email": self.draft.email,
                "phone": self.draft.phone,
            },
            "resend_cooldown": self.resend_cooldown,
            "can_resend": self.can_resend,
            "resend_notice": self.resend_notice,
            "pending": sorted(action.value for action in self._pending),
            "errors": self.error_messages(),
        }
