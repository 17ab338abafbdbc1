"""Rate limiting configuration using slowapi.

The module-level Limiter is wired into the app in main.py together with
SlowAPIMiddleware, so ``RATE_LIMIT_DEFAULT`` applies per client IP to every
endpoint. Individual routes can override with @limiter.limit("N/period").
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from hr_ledger.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
