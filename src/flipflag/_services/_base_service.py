import asyncio
import random
from datetime import datetime
from email.utils import parsedate_to_datetime
from logging import getLogger
from typing import Any

from httpx import (
    AsyncClient,
    ConnectTimeout,
    Headers,
    Response,
    TimeoutException,
)
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from .._config import Config
from .._utils import Endpoint, user_agent_value
from .._utils._ssl_context import get_httpx_client_kwargs
from .._utils.constants import HEADER_USER_AGENT
from ..models import MissingBaseUrlError


def is_retryable_exception(exception: BaseException) -> bool:
    return isinstance(exception, (ConnectTimeout, TimeoutException))


def is_retryable_status_code(response: Response) -> bool:
    return response.status_code >= 500 and response.status_code < 600


def return_last_outcome(retry_state: RetryCallState) -> Response:
    """Hand back the last response (or re-raise the last error) once retries run out."""
    assert retry_state.outcome is not None
    return retry_state.outcome.result()


class BaseService:
    MAX_RETRIES = 3

    def __init__(self, config: Config) -> None:
        self._logger = getLogger("flipflag")
        self._config = config

        client_kwargs = {
            **get_httpx_client_kwargs(),  # SSL, proxy, timeout, redirects
            "headers": Headers(self.default_headers),
        }

        self._client_async = AsyncClient(**client_kwargs)

        self._logger.debug(f"HEADERS: {self.default_headers}")

        super().__init__()

    @property
    def base_url(self) -> str:
        """API url without trailing slashes.

        Raises:
            MissingBaseUrlError: No API url is configured.
        """
        if not self._config.api_url:
            raise MissingBaseUrlError()
        return self._config.api_url.rstrip("/")

    def url_for(self, endpoint: Endpoint) -> str:
        return f"{self.base_url}{endpoint}"

    def _parse_retry_after(self, headers: Headers) -> float:
        """Parse Retry-After header (RFC 6585/7231).

        Args:
            headers: HTTP response headers

        Returns:
            float: Seconds to wait before retry (minimum 0.0, default 1.0 if missing/invalid).
                  RFC 7231 allows 0 to indicate immediate retry.
        """
        DEFAULT_RETRY_AFTER = 1.0
        retry_after = headers.get("Retry-After")
        if not retry_after:
            return DEFAULT_RETRY_AFTER

        try:
            # Clamp to non-negative to prevent ValueError in asyncio.sleep()
            return max(float(retry_after), 0.0)
        except ValueError:
            pass

        try:
            retry_date = parsedate_to_datetime(retry_after)
            delta = (retry_date - datetime.now(retry_date.tzinfo)).total_seconds()
            return max(delta, 0.0)  # Allow 0 per RFC 7231, but not negative
        except (ValueError, TypeError):
            return DEFAULT_RETRY_AFTER

    @retry(
        retry=(
            retry_if_exception(is_retryable_exception)
            | retry_if_result(is_retryable_status_code)
        ),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(MAX_RETRIES),
        retry_error_callback=return_last_outcome,
    )
    async def request_async(
        self,
        method: str,
        endpoint: Endpoint,
        **kwargs: Any,
    ) -> Response:
        """Send a request to the FlipFlag API.

        Unlike ``httpx``'s ``raise_for_status`` flow, non-2xx responses are
        returned to the caller: each operation decides on its own whether a
        failed response is fatal.
        """
        url = self.url_for(endpoint)
        self._logger.debug(f"Request: {method} {url}")

        kwargs.setdefault("headers", {})
        kwargs["headers"][HEADER_USER_AGENT] = user_agent_value()

        for attempt in range(self.MAX_RETRIES + 1):
            response = await self._client_async.request(method, url, **kwargs)

            if response.status_code == 429:
                if attempt < self.MAX_RETRIES:
                    retry_after = self._parse_retry_after(response.headers)
                    jitter = random.uniform(0, 0.1 * retry_after)
                    sleep_time = retry_after + jitter
                    self._logger.warning(
                        f"Rate limited (429). Retrying after {sleep_time:.2f}s "
                        f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                    )
                    await response.aclose()  # Release connection before retry
                    await asyncio.sleep(sleep_time)
                    continue
                break

            break

        self._logger.debug(f"Response: {method} {url} -> {response.status_code}")
        return response

    async def aclose(self) -> None:
        await self._client_async.aclose()

    @property
    def default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            **self.custom_headers,
        }

    @property
    def custom_headers(self) -> dict[str, str]:
        return {}
