"""
Metrics endpoint reader.

Fetches the exposition over HTTP with a shared httpx.AsyncClient and
turns it into a HealthSample.
"""

from typing import Optional

import httpx

from metallb_health.scrape.parser import parse_exposition
from metallb_health.types import (
    BadStatusError,
    BodyReadError,
    HealthSample,
    RequestBuildError,
    TransportError,
)
from metallb_health.utils import get_logger

logger = get_logger(__name__)

DEFAULT_METRICS_ENDPOINT = "http://localhost:7472/metrics"


class MetricsReader:
    """
    Reads configuration health from a Prometheus metrics endpoint.

    The HTTP status is not inspected unless require_success_status is set:
    any body that can be read is parsed.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str = DEFAULT_METRICS_ENDPOINT,
        require_success_status: bool = False,
    ):
        """
        Initialize the reader.

        Args:
            client: Shared HTTP client (its timeout bounds each request)
            endpoint: Metrics URL
            require_success_status: Reject non-2xx responses
        """
        self.client = client
        self.endpoint = endpoint
        self.require_success_status = require_success_status

    async def read(self) -> HealthSample:
        """
        Scrape the endpoint once.

        Returns:
            HealthSample parsed from the response body

        Raises:
            RequestBuildError: If the request cannot be built
            TransportError: If the request fails
            BodyReadError: If the body cannot be read
            BadStatusError: On non-2xx when require_success_status is set
            MetricMissingError: If a required metric is absent
            MetricUnparseableError: If a required metric is not a boolean
        """
        raw = await self._fetch()
        logger.debug("fetched metrics body", endpoint=self.endpoint, size=len(raw))
        return parse_exposition(raw.decode("utf-8", errors="replace"))

    async def _fetch(self) -> bytes:
        try:
            request = self.client.build_request("GET", self.endpoint)
        except httpx.InvalidURL as e:
            raise RequestBuildError(f"error creating http request: {e}") from e

        try:
            response = await self.client.send(request, stream=True)
        except httpx.UnsupportedProtocol as e:
            raise RequestBuildError(f"error creating http request: {e}") from e
        except httpx.TransportError as e:
            raise TransportError(
                f"error executing http request: {type(e).__name__}: {e}"
            ) from e

        try:
            if self.require_success_status and not response.is_success:
                raise BadStatusError(response.status_code)
            return await response.aread()
        except (httpx.TransportError, httpx.DecodingError, httpx.StreamError) as e:
            raise BodyReadError(f"error reading body of metrics endpoint: {e}") from e
        finally:
            await response.aclose()


def create_reader(
    endpoint: str = DEFAULT_METRICS_ENDPOINT,
    timeout: float = 10.0,
    require_success_status: bool = False,
    client: Optional[httpx.AsyncClient] = None,
) -> MetricsReader:
    """
    Create a reader with its own HTTP client unless one is supplied.

    The caller owns the client and must close it (reader.client.aclose()).
    """
    if client is None:
        client = httpx.AsyncClient(timeout=timeout)
    return MetricsReader(
        client,
        endpoint=endpoint,
        require_success_status=require_success_status,
    )
