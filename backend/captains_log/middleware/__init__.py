"""Middleware package."""

from captains_log.middleware.rate_limit import RateLimitMiddleware
from captains_log.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
