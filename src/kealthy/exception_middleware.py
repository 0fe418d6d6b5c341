"""Exception handling with themed error pages."""
import io
import logging
import traceback
from http import HTTPStatus

from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class ExceptionMiddleware(BaseHTTPMiddleware):
    """Middleware that turns unhandled exceptions into a themed 500 page."""

    def __init__(self, app, kealthy):
        super().__init__(app)
        self.kealthy = kealthy

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)

        except Exception as exc:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            details = str(exc)

            # Full traceback only in development
            if self.kealthy.environment in ("dev", "development"):
                tb_str = io.StringIO()
                traceback.print_exception(type(exc), exc, exc.__traceback__, file=tb_str)
                details = tb_str.getvalue()

            return self.kealthy.render_error(
                request,
                error_code=500,
                error_message="Internal Server Error",
                details=details,
            )


def http_exception_handler(kealthy):
    """Builds the Starlette handler rendering HTTP errors (unknown paths included) as themed pages."""
    async def handle(request: Request, exc: HTTPException) -> Response:
        phrase = HTTPStatus(exc.status_code).phrase
        details = exc.detail if exc.detail and exc.detail != phrase else None
        if exc.status_code == 404 and details is None:
            details = f"The requested path '{request.url.path}' could not be found."

        return kealthy.render_error(request, error_code=exc.status_code, error_message=phrase, details=details)

    return handle
