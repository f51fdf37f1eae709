import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
import httpx
from relay.config import Settings
from relay.core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenException
from relay.core.exceptions import ExternalAPIException
from relay.core.logging_utils import mask_sensitive_data, redact_secrets, sanitize_log_message

logger = logging.getLogger(__name__)


class ExternalAPIClient:
    """
    Shared request helper for collaborator APIs: timeout, optional retry with
    exponential backoff, circuit breaker and credential redaction.

    Subclasses set service_name and base_url and supply their credential via
    _get_headers/_get_params.
    """

    service_name = "External API"

    def __init__(
        self,
        settings: Settings,
        circuit_breaker: CircuitBreaker,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings
        self.timeout = settings.UPSTREAM_TIMEOUT
        self.retry_attempts = max(1, settings.UPSTREAM_RETRY_ATTEMPTS)
        self.circuit_breaker = circuit_breaker
        self._transport = transport

    @property
    def base_url(self) -> str:
        raise NotImplementedError

    @property
    def credential(self) -> str:
        """The collaborator credential; never echoed in errors or logs."""
        return ""

    def _get_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _get_params(self) -> Dict[str, Any]:
        """Query parameters sent with every request (e.g. a key parameter)."""
        return {}

    def _redact(self, text: str) -> str:
        return redact_secrets(text, [self.credential])

    def ensure_configured(self) -> None:
        if not self.credential:
            raise ExternalAPIException(detail=f"{self.service_name} is not configured.")

    async def _execute_request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """Execute a single HTTP request (used by circuit breaker)."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.request(
                method=method,
                url=url,
                headers=headers,
                json=data,
                params=params
            )

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make HTTP request with retry logic, exponential backoff, and circuit breaker.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path
            data: Request body data
            params: Query parameters

        Returns:
            Response JSON data

        Raises:
            ExternalAPIException if request fails after retries
            CircuitBreakerOpenException if circuit breaker is open
        """
        self.ensure_configured()

        url = f"{self.base_url.rstrip('/')}{endpoint}"
        headers = self._get_headers()
        all_params = {**self._get_params(), **(params or {})}

        logger.info(
            sanitize_log_message(
                f"Making {method} request to {self.service_name}",
                Endpoint=endpoint,
                Params=mask_sensitive_data(params) if params else None,
                HasData=data is not None
            )
        )

        last_exception: Optional[ExternalAPIException] = None
        start_time = datetime.now()

        for attempt in range(self.retry_attempts):
            try:
                response = await self.circuit_breaker.call(
                    self._execute_request,
                    method=method,
                    url=url,
                    headers=headers,
                    data=data,
                    params=all_params
                )

                response_time = (datetime.now() - start_time).total_seconds()

                if response.status_code < 400:
                    logger.info(
                        sanitize_log_message(
                            f"{self.service_name} request successful",
                            Endpoint=endpoint,
                            StatusCode=response.status_code,
                            ResponseTime=f"{response_time:.3f}s"
                        )
                    )
                    try:
                        return response.json() if response.content else {}
                    except ValueError as e:
                        raise ExternalAPIException(
                            detail=f"{self.service_name} returned a non-JSON response"
                        ) from e

                error_msg = self._redact(
                    f"{self.service_name} error: {response.status_code} - {response.text[:500]}"
                )

                # If 4xx error, don't retry (except 429)
                if 400 <= response.status_code < 500 and response.status_code != 429:
                    logger.error(
                        sanitize_log_message(
                            error_msg,
                            Endpoint=endpoint,
                            StatusCode=response.status_code,
                            Attempt=attempt + 1
                        )
                    )
                    raise ExternalAPIException(detail=error_msg)

                logger.warning(
                    sanitize_log_message(
                        f"{self.service_name} request failed",
                        Endpoint=endpoint,
                        StatusCode=response.status_code,
                        Attempt=attempt + 1,
                        MaxAttempts=self.retry_attempts
                    )
                )
                last_exception = ExternalAPIException(detail=error_msg)

            except CircuitBreakerOpenException:
                logger.warning(
                    sanitize_log_message(
                        f"Circuit breaker open for {self.service_name}",
                        Endpoint=endpoint,
                        CircuitState="OPEN"
                    )
                )
                raise

            except httpx.TimeoutException as e:
                logger.warning(
                    sanitize_log_message(
                        f"{self.service_name} timeout",
                        Endpoint=endpoint,
                        Timeout=self.timeout,
                        Attempt=attempt + 1,
                        MaxAttempts=self.retry_attempts
                    )
                )
                last_exception = ExternalAPIException(
                    detail=self._redact(f"{self.service_name} timeout: {str(e)}")
                )
            except httpx.RequestError as e:
                logger.error(
                    sanitize_log_message(
                        f"{self.service_name} request error",
                        Endpoint=endpoint,
                        Attempt=attempt + 1,
                        MaxAttempts=self.retry_attempts,
                        Error=self._redact(str(e))
                    )
                )
                last_exception = ExternalAPIException(
                    detail=self._redact(f"{self.service_name} request error: {str(e)}")
                )

            # Exponential backoff: wait 2^attempt seconds
            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(2 ** attempt)

        logger.error(
            sanitize_log_message(
                f"All {self.service_name} attempts failed",
                Endpoint=endpoint,
                MaxAttempts=self.retry_attempts,
                FinalError=last_exception.detail if last_exception else "Unknown"
            )
        )
        raise last_exception


def first_non_empty(values: List[Optional[str]]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None
