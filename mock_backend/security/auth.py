"""
Caller authentication

Verifies the EdDSA bearer tokens sent by the storefront. Tokens embed the
caller's DER public key; the principal is derived from that key, so no key
registry is needed. Requests without a token are anonymous.
"""

import base64
import logging
import time
from dataclasses import dataclass
from typing import Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.backends import default_backend

from storefront.services.identity import ANONYMOUS_PRINCIPAL, principal_from_public_key

logger = logging.getLogger(__name__)


@dataclass
class CallerResult:
    """Outcome of authenticating a request"""
    is_valid: bool
    principal: str = ANONYMOUS_PRINCIPAL
    error_message: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return self.principal == ANONYMOUS_PRINCIPAL


class CallerVerifier:
    """
    Resolves the caller principal of an RPC request.

    Usage:
        verifier = CallerVerifier(audience="lens-backend")
        result = verifier.verify(request.headers.get("Authorization"))
        if result.is_valid:
            print(f"Call from {result.principal}")
    """

    def __init__(self, audience: str, leeway_seconds: int = 30, max_tracked_tokens: int = 10000):
        self.audience = audience
        self.leeway_seconds = leeway_seconds
        self.max_tracked_tokens = max_tracked_tokens
        # jti -> exp of tokens already accepted
        self._used_token_ids: dict[str, int] = {}

    def verify(self, authorization: Optional[str]) -> CallerResult:
        if not authorization:
            return CallerResult(is_valid=True)

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return CallerResult(is_valid=False, error_message="Unsupported authorization scheme")

        try:
            unverified = jwt.decode(token, options={"verify_signature": False})
            public_key_der = base64.b64decode(unverified["pub"])
            public_key = serialization.load_der_public_key(public_key_der, backend=default_backend())
        except (jwt.PyJWTError, KeyError, ValueError) as e:
            return CallerResult(is_valid=False, error_message=f"Malformed token: {e}")

        if not isinstance(public_key, Ed25519PublicKey):
            return CallerResult(is_valid=False, error_message="Token key must be Ed25519")

        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=["EdDSA"],
                audience=self.audience,
                leeway=self.leeway_seconds,
                options={"require": ["sub", "exp", "iat", "jti"]},
            )
        except jwt.PyJWTError as e:
            return CallerResult(is_valid=False, error_message=f"Invalid token: {e}")

        principal = principal_from_public_key(public_key_der)
        if claims["sub"] != principal:
            return CallerResult(is_valid=False, error_message="Token subject does not match its key")

        # Replay protection
        if claims["jti"] in self._used_token_ids:
            return CallerResult(is_valid=False, error_message="Token already used")
        self._used_token_ids[claims["jti"]] = int(claims["exp"])
        if len(self._used_token_ids) > self.max_tracked_tokens:
            self._forget_expired_tokens()

        return CallerResult(is_valid=True, principal=principal)

    def _forget_expired_tokens(self) -> None:
        """Drop ids of tokens that would fail the expiry check anyway"""
        cutoff = time.time() - self.leeway_seconds
        self._used_token_ids = {
            jti: exp for jti, exp in self._used_token_ids.items() if exp >= cutoff
        }
        if len(self._used_token_ids) > self.max_tracked_tokens:
            logger.warning(f"Replay cache over {self.max_tracked_tokens} live tokens, clearing")
            self._used_token_ids.clear()
