# Security modules

from .auth import CallerVerifier, CallerResult

__all__ = ["CallerVerifier", "CallerResult"]
