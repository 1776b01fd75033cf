"""Request logging middleware: correlation IDs and access logs."""

import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from library_api.core.logging import get_logger, request_id_var
from library_api.core.request_utils import get_client_ip

logger = get_logger("requests")

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64

# Probes hit this constantly; only failures are logged
QUIET_PATHS = frozenset({"/health"})


def _incoming_request_id(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if supplied and len(supplied) <= MAX_REQUEST_ID_LENGTH and supplied.isprintable():
        return supplied
    return uuid.uuid4().hex[:12]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log its method, path, status and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _incoming_request_id(request)
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                f"{request.method} {request.url.path} failed after {duration_ms:.1f}ms"
            )
            raise
        else:
            duration_ms = (time.perf_counter() - start) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id
            if request.url.path not in QUIET_PATHS or response.status_code >= 400:
                message = (
                    f"{request.method} {request.url.path} -> {response.status_code} "
                    f"({duration_ms:.1f}ms, client={get_client_ip(request)})"
                )
                if response.status_code >= 500:
                    logger.error(message)
                elif response.status_code >= 400:
                    logger.warning(message)
                else:
                    logger.info(message)
            return response
        finally:
            request_id_var.reset(token)
