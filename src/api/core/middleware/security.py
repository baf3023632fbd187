from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.core.constants import API_VERSION_HEADER
from src.api.core.messages import MessageCode, get_default_message
from src.utils.logger import get_client_ip, get_logger
from src.utils.settings.app import AppSettings

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, is_production: bool = False):
        super().__init__(app)
        self.is_production = is_production
        self.app_settings = AppSettings()

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
            "X-Permitted-Cross-Domain-Policies": "none",
            API_VERSION_HEADER: self.app_settings.API_VERSION,
        }

        if self.is_production:
            headers["Content-Security-Policy"] = (
                "default-src 'self'; object-src 'none'; frame-ancestors 'none'"
            )
            if request.url.scheme == "https":
                headers["Strict-Transport-Security"] = (
                    "max-age=31536000; includeSubDomains"
                )

        # CORSMiddleware owns the Access-Control-* headers
        for key, value in headers.items():
            if key not in response.headers:
                response.headers[key] = value

        return response


class PayloadSizeMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than the configured limit."""

    def __init__(self, app, max_request_size: int | None = None):
        super().__init__(app)
        self.max_request_size = max_request_size or AppSettings().MAX_REQUEST_SIZE

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self.max_request_size:
                logger.warning(
                    "Request too large",
                    size=size,
                    limit=self.max_request_size,
                    ip_address=get_client_ip(request),
                )
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={
                        "message_code": MessageCode.PAYLOAD_TOO_LARGE,
                        "message": get_default_message(MessageCode.PAYLOAD_TOO_LARGE),
                        "details": {
                            "description": f"Request size ({size} bytes) exceeds "
                            f"maximum allowed ({self.max_request_size} bytes)"
                        },
                    },
                )

        return await call_next(request)
