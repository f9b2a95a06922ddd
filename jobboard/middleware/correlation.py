"""
Request tracing: every request gets a correlation id (client supplied
X-Correlation-ID or a fresh UUID4), kept in a context variable so log
lines written while handling the request can carry it, and echoed back in
the response headers.
"""
import contextvars
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from jobboard.utils.logger import get_logger

logger = get_logger("http")

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")


class CorrelationFilter(logging.Filter):
    """Stamps the current request's correlation id on records that lack one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = correlation_id_var.get("")
        return True


def _caller_kind(request: Request) -> str:
    """Which credential the request carries; never the credential itself."""
    if request.headers.get("token"):
        return "company"
    if request.headers.get("authorization"):
        return "candidate"
    return "anonymous"


class CorrelationMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        token = correlation_id_var.set(cid)

        start = time.monotonic()
        context = {
            "correlation_id": cid,
            "method": request.method,
            "path": request.url.path,
            "principal": _caller_kind(request),
        }
        logger.info("request.started", extra=context)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request.failed",
                extra={
                    **context,
                    "duration_ms": round((time.monotonic() - start) * 1000),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise
        finally:
            correlation_id_var.reset(token)

        log_fn = logger.warning if response.status_code >= 400 else logger.info
        log_fn(
            "request.completed",
            extra={
                **context,
                "status": response.status_code,
                "duration_ms": round((time.monotonic() - start) * 1000),
            },
        )
        response.headers["X-Correlation-ID"] = cid
        return response
