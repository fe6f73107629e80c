"""
Identity Provider

Signs a storefront session in with an Ed25519 key pair. The caller's
principal is derived from the public key, and backend calls carry short-lived
EdDSA tokens that embed the public key so the backend can verify them
without a registry.
"""

import base64
import hashlib
import logging
import time
import uuid
import zlib
from enum import Enum
from typing import Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.backends import default_backend

logger = logging.getLogger(__name__)

ANONYMOUS_PRINCIPAL = "2vxsx-fae"

# Suffix byte marking a principal derived from a public key
_SELF_AUTHENTICATING = b"\x02"


class IdentityError(Exception):
    """Raised when signing in fails"""
    pass


class LoginStatus(str, Enum):
    IDLE = "idle"
    LOGGING_IN = "logging-in"
    SUCCESS = "success"
    LOGIN_ERROR = "login-error"


def encode_principal(raw: bytes) -> str:
    """Textual form: base32(crc32 || raw), lowercase, grouped by five"""
    checksum = zlib.crc32(raw).to_bytes(4, "big")
    text = base64.b32encode(checksum + raw).decode().lower().rstrip("=")
    return "-".join(text[i:i + 5] for i in range(0, len(text), 5))


def principal_from_public_key(public_key_der: bytes) -> str:
    """Derive the self-authenticating principal of a DER public key"""
    return encode_principal(hashlib.sha224(public_key_der).digest() + _SELF_AUTHENTICATING)


class Identity:
    """A signed-in caller"""

    def __init__(self, private_key: Ed25519PrivateKey, token_lifetime_seconds: int = 300):
        self._private_key = private_key
        self.token_lifetime_seconds = token_lifetime_seconds
        self.public_key_der = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        self.principal = principal_from_public_key(self.public_key_der)

    @classmethod
    def generate(cls, token_lifetime_seconds: int = 300) -> "Identity":
        return cls(Ed25519PrivateKey.generate(), token_lifetime_seconds)

    @classmethod
    def from_pem(cls, pem: str | bytes, token_lifetime_seconds: int = 300) -> "Identity":
        """Load an identity from a PEM-encoded Ed25519 private key"""
        pem_bytes = pem.encode() if isinstance(pem, str) else pem
        try:
            key = serialization.load_pem_private_key(
                pem_bytes, password=None, backend=default_backend()
            )
        except Exception as e:
            raise IdentityError(f"Failed to load private key: {e}") from e

        if not isinstance(key, Ed25519PrivateKey):
            raise IdentityError("Identity keys must be Ed25519")
        return cls(key, token_lifetime_seconds)

    def to_pem(self) -> str:
        """Private key as unencrypted PKCS8 PEM, the format `from_pem` reads"""
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode()

    @property
    def is_anonymous(self) -> bool:
        return False

    def issue_token(self, audience: str) -> str:
        """Create a bearer token proving possession of the private key"""
        now = int(time.time())
        payload = {
            "sub": self.principal,
            "aud": audience,
            "iat": now,
            "exp": now + self.token_lifetime_seconds,
            "jti": str(uuid.uuid4()),
            "pub": base64.b64encode(self.public_key_der).decode(),
        }
        return jwt.encode(payload, self._private_key, algorithm="EdDSA")


class IdentityProvider:
    """
    Per-session sign-in state.

    Usage:
        provider = IdentityProvider()
        await provider.login()
        provider.identity.principal
    """

    def __init__(self, private_key_pem: Optional[str] = None, token_lifetime_seconds: int = 300):
        self._private_key_pem = private_key_pem
        self.token_lifetime_seconds = token_lifetime_seconds
        self.identity: Optional[Identity] = None
        self.status = LoginStatus.IDLE
        self.error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None and not self.identity.is_anonymous

    @property
    def is_logging_in(self) -> bool:
        return self.status == LoginStatus.LOGGING_IN

    @property
    def principal(self) -> str:
        return self.identity.principal if self.identity else ANONYMOUS_PRINCIPAL

    async def login(self) -> Identity:
        """Sign in, reusing the configured key or generating a fresh one"""
        if self.identity is not None:
            return self.identity

        self.status = LoginStatus.LOGGING_IN
        self.error = None
        try:
            if self._private_key_pem:
                identity = Identity.from_pem(self._private_key_pem, self.token_lifetime_seconds)
            else:
                identity = Identity.generate(self.token_lifetime_seconds)
        except IdentityError as e:
            self.status = LoginStatus.LOGIN_ERROR
            self.error = str(e)
            logger.error(f"Sign-in failed: {e}")
            raise

        self.identity = identity
        self.status = LoginStatus.SUCCESS
        logger.info(f"Signed in as {identity.principal}")
        return identity

    def logout(self) -> None:
        self.identity = None
        self.status = LoginStatus.IDLE
        self.error = None
