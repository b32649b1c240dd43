"""
Response hardening for the API

Every response is JSON, a PDF/ICS download or a redirect to presigned
storage, so nothing needs to load scripts, frames or device features.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import IS_PRODUCTION

logger = logging.getLogger(__name__)

DISABLED_FEATURES = ("camera", "geolocation", "microphone", "payment", "usb")

BASE_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'; base-uri 'none'",
    "Permissions-Policy": ", ".join(f"{feature}=()" for feature in DISABLED_FEATURES),
    "X-Permitted-Cross-Domain-Policies": "none",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"

# Patient data must not linger in shared caches
DEFAULT_CACHE_CONTROL = "no-store"


def security_headers(production: bool = IS_PRODUCTION) -> dict[str, str]:
    headers = dict(BASE_HEADERS)
    if production:
        headers["Strict-Transport-Security"] = HSTS_VALUE
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds BASE_HEADERS (plus HSTS in production) to responses outside exclude_paths"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ())
        self.headers = security_headers()
        logger.info(f"🛡️ Security headers enabled ({len(self.headers)} headers)")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(self.headers)
        # Feeds and PDF downloads set their own caching
        response.headers.setdefault("Cache-Control", DEFAULT_CACHE_CONTROL)
        return response
