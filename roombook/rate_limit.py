"""Rate limiting for the reservation API using SlowAPI.

Limits are read from the settings when a request is checked, and the
limiter is switched on or off whenever it is attached to an app, so tests
can change the environment after this module is imported.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .config import get_settings


def default_limit() -> str:
    """Global limit applied to every route."""

    return get_settings().default_rate_limit


def mutation_limit() -> str:
    """Per-endpoint limit for reserve and cancel requests."""

    return get_settings().reserve_rate_limit


limiter = Limiter(key_func=get_remote_address, default_limits=[default_limit], enabled=False)


def rate_limit_handler(_: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": f"Rate limit exceeded: {exc.detail}"})


def apply_rate_limiter(app: FastAPI) -> None:
    """Attach the limiter to an app, enabled according to the current settings."""

    limiter.enabled = get_settings().rate_limiting_enabled
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
