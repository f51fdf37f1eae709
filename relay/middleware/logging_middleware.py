import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from relay.core.logging_utils import mask_headers, mask_sensitive_data, sanitize_log_message

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request and response with sensitive data masked."""

    SKIP_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")

    def _should_skip(self, path: str) -> bool:
        return path == "/" or any(path.endswith(skip) for skip in self.SKIP_PATHS)

    async def dispatch(self, request: Request, call_next):
        # Every response carries a request ID, logged or not
        if not hasattr(request.state, "request_id"):
            request.state.request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id = request.state.request_id

        if self._should_skip(request.url.path):
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        start_time = time.time()
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else None

        logger.debug(
            sanitize_log_message(
                f"Request: {method} {path}",
                RequestID=request_id,
                IP=client_ip,
                UserAgent=request.headers.get("user-agent"),
                QueryParams=mask_sensitive_data(dict(request.query_params)),
                Headers=mask_headers(dict(request.headers))
            )
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                sanitize_log_message(
                    f"Exception in request: {method} {path}",
                    RequestID=request_id,
                    ProcessTime=f"{time.time() - start_time:.3f}s",
                    IP=client_ip,
                    Error=str(e)
                )
            )
            raise

        response.headers["X-Request-ID"] = request_id
        logger.info(
            sanitize_log_message(
                f"Response: {method} {path}",
                RequestID=request_id,
                Status=response.status_code,
                ProcessTime=f"{time.time() - start_time:.3f}s",
                IP=client_ip
            )
        )
        return response
