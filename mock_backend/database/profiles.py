"""Caller profiles and phone verification codes"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional

from storefront.models import UserProfile

logger = logging.getLogger(__name__)


@dataclass
class PendingCode:
    phone: str
    code: str
    expires_at: float
    failed_attempts: int = 0


class ProfileDatabase:
    """In-memory profiles keyed by principal, with one pending code per caller"""

    def __init__(self, code_length: int = 4, code_lifetime_seconds: int = 300, max_attempts: int = 5):
        self.code_length = code_length
        self.code_lifetime_seconds = code_lifetime_seconds
        self.max_attempts = max_attempts
        self.profiles: dict[str, UserProfile] = {}
        self.pending_codes: dict[str, PendingCode] = {}
        self.verified_phones: dict[str, set[str]] = {}

    def get_profile(self, principal: str) -> Optional[UserProfile]:
        return self.profiles.get(principal)

    def save_profile(self, principal: str, profile: UserProfile) -> UserProfile:
        """Store a profile; the verified flag only sticks for phones actually verified"""
        verified = profile.phoneVerified and self.is_phone_verified(principal, profile.phone)
        stored = profile.model_copy(update={"phoneVerified": verified})
        self.profiles[principal] = stored
        return stored

    def issue_code(self, principal: str, phone: str) -> str:
        """Replace the caller's pending code with a fresh one"""
        code = "".join(secrets.choice("0123456789") for _ in range(self.code_length))
        self.pending_codes[principal] = PendingCode(
            phone=phone,
            code=code,
            expires_at=time.monotonic() + self.code_lifetime_seconds,
        )
        # Delivered by SMS in production
        logger.info(f"Verification code for {phone}: {code}")
        return code

    def verify_code(self, principal: str, phone: str, code: str) -> bool:
        """Consume the pending code if it matches and has not expired; wrong guesses are capped"""
        pending = self.pending_codes.get(principal)
        if pending is None or pending.phone != phone:
            return False

        if time.monotonic() > pending.expires_at:
            del self.pending_codes[principal]
            return False

        if not secrets.compare_digest(pending.code, code):
            pending.failed_attempts += 1
            if pending.failed_attempts >= self.max_attempts:
                logger.info(f"Too many wrong codes for {phone}, code discarded")
                del self.pending_codes[principal]
            return False

        del self.pending_codes[principal]
        self.verified_phones.setdefault(principal, set()).add(phone)
        return True

    def is_phone_verified(self, principal: str, phone: str) -> bool:
        return phone in self.verified_phones.get(principal, set())
