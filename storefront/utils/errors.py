"""
Storefront error taxonomy and sanitizers.

Backend failures arrive as free-form text from the RPC layer. The sanitizers
classify them into a handful of user-facing categories and strip technical
identifiers before anything reaches the user.
"""

import re
from enum import Enum
from typing import Optional, Union

from ..services.backend_client import BackendUnavailableError


class ErrorCategory(str, Enum):
    AUTHENTICATION_REQUIRED = "authentication_required"
    VALIDATION = "validation"
    INVALID_OR_EXPIRED_CODE = "invalid_or_expired_code"
    PROFILE_NOT_FOUND = "profile_not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    GENERIC = "generic"


SIGN_IN_MESSAGE = "Please sign in with Internet Identity to continue."
GENERIC_MESSAGE = "An error occurred. Please try again."
UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again."


class StorefrontError(Exception):
    """Base class for errors shown to storefront users"""

    category = ErrorCategory.GENERIC
    default_message = GENERIC_MESSAGE

    def __init__(self, message: Optional[str] = None, original_message: Optional[str] = None):
        self.message = message or self.default_message
        self.original_message = original_message
        super().__init__(self.message)


class AuthenticationRequired(StorefrontError):
    category = ErrorCategory.AUTHENTICATION_REQUIRED
    default_message = SIGN_IN_MESSAGE


class ValidationError(StorefrontError):
    """Invalid user input; `field` names the offending form field"""

    category = ErrorCategory.VALIDATION
    default_message = "Please check the highlighted fields."

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidOrExpiredCode(StorefrontError):
    category = ErrorCategory.INVALID_OR_EXPIRED_CODE
    default_message = "Invalid or expired verification code. Please try again."


class ProfileNotFound(StorefrontError):
    category = ErrorCategory.PROFILE_NOT_FOUND
    default_message = "Please save your profile first before verifying your phone."


class ServiceUnavailable(StorefrontError):
    category = ErrorCategory.SERVICE_UNAVAILABLE
    default_message = "Service is temporarily unavailable. Please try again in a moment."


class NotFound(StorefrontError):
    category = ErrorCategory.NOT_FOUND
    default_message = "Product not found."


class PermissionDenied(StorefrontError):
    category = ErrorCategory.PERMISSION_DENIED
    default_message = "You do not have permission to perform this action."


class GenericError(StorefrontError):
    category = ErrorCategory.GENERIC


ErrorLike = Union[BaseException, str, None]

_AUTH_MARKERS = ("unauthorized", "anonymous", "not authenticated", "authentication required")
_REJECT_TEXT = re.compile(r'reject text:\s*"?([^"]+)"?', re.IGNORECASE)
_TECHNICAL_PATTERNS = [
    re.compile(r"Request ID:?\s*[a-f0-9-]+", re.IGNORECASE),
    re.compile(r"Reject code:?\s*\d+", re.IGNORECASE),
    re.compile(r"CBOR[^,.]*", re.IGNORECASE),
    re.compile(r'Principal\s+"[^"]+"', re.IGNORECASE),
]


def _is_transport_failure(error: ErrorLike) -> bool:
    return isinstance(error, BackendUnavailableError)


def _is_rejected_credential(error: ErrorLike) -> bool:
    """HTTP 401 from the backend: missing, expired or replayed token"""
    return getattr(error, "code", None) == 401


def strip_technical_details(message: str) -> str:
    """Remove request ids, reject codes, CBOR references and principal ids"""
    cleaned = message
    for pattern in _TECHNICAL_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def sanitize_auth_flow_error(error: ErrorLike) -> StorefrontError:
    """
    Classify an error from the login, profile or phone verification flow.

    Errors that are already classified are returned unchanged.
    """
    if isinstance(error, StorefrontError):
        return error
    if not error:
        return GenericError(UNEXPECTED_MESSAGE)
    if _is_transport_failure(error):
        return ServiceUnavailable(original_message=str(error))
    if _is_rejected_credential(error):
        return AuthenticationRequired(original_message=str(error))

    message = str(error)
    lower = message.lower()

    if any(marker in lower for marker in _AUTH_MARKERS):
        return AuthenticationRequired(original_message=message)

    if "reject code" in lower or "reject text" in lower:
        match = _REJECT_TEXT.search(message)
        if match and match.group(1):
            reject_text = match.group(1).strip()
            if any(marker in reject_text.lower() for marker in ("unauthorized", "anonymous")):
                return AuthenticationRequired(original_message=message)
            return GenericError(reject_text, original_message=message)

    if "profile not found" in lower:
        return ProfileNotFound(original_message=message)

    if "invalid or expired" in lower:
        return InvalidOrExpiredCode(original_message=message)

    if "can only verify the phone number in your profile" in lower:
        return GenericError(
            "The phone number must match your profile. Please update your profile first.",
            original_message=message,
        )

    if "actor not available" in lower or "backend not available" in lower:
        return ServiceUnavailable(original_message=message)

    cleaned = strip_technical_details(message)
    if len(cleaned) < 10:
        return GenericError(GENERIC_MESSAGE, original_message=message)
    return GenericError(cleaned, original_message=message)


def _is_stopped_service(message: str) -> bool:
    return (
        "IC0508" in message
        or "Reject code: 5" in message
        or "is stopped" in message
        or "CallContextManager" in message
    )


def _is_replica_rejection(message: str) -> bool:
    markers = (
        "replica returned a rejection",
        "Request ID:",
        "Reject code:",
        "Reject text:",
        "__principal__",
        "HTTP details:",
    )
    return any(marker in message for marker in markers) or "cbor" in message.lower()


def sanitize_storefront_error(error: ErrorLike) -> Optional[StorefrontError]:
    """
    Classify an error raised while browsing the catalog or placing an order.

    Friendly messages pass through as GenericError; returns None for no error.
    """
    if not error:
        return None
    if isinstance(error, StorefrontError):
        return error
    if _is_transport_failure(error):
        return ServiceUnavailable(
            "The store service is temporarily unavailable. Please try again in a moment.",
            original_message=str(error),
        )
    if _is_rejected_credential(error):
        return AuthenticationRequired(original_message=str(error))

    message = str(error)

    if _is_stopped_service(message):
        return ServiceUnavailable(
            "The store service is temporarily unavailable. Please try again in a moment.",
            original_message=message,
        )

    if _is_replica_rejection(message):
        return ServiceUnavailable(
            "Unable to connect to the store. Please try again.",
            original_message=message,
        )

    if (
        len(message) > 200
        or "canister" in message
        or "principal" in message
        or "trap" in message
    ):
        return GenericError(
            "An error occurred while loading products. Please try again.",
            original_message=message,
        )

    return GenericError(message, original_message=message)
