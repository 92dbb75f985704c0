import asyncio
import logging
from typing import Any

import httpx

from jobtracker.config import settings

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."


class ApiRequestError(Exception):
    """A request to the tracker API failed (HTTP error or unreachable server)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Error: {response.status_code} {response.reason_phrase}"


class JobTrackerApi:
    """
    Async client for the /api/jobs endpoints.

    Transport failures (connection refused, DNS, timeouts) are retried with
    exponential backoff: ``retries`` more attempts, waiting ``delay`` seconds
    first and multiplying by ``backoff`` each time. HTTP error responses are
    not retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        retries: int = 3,
        delay: float = 1.0,
        backoff: float = 1.5,
        sleep=asyncio.sleep,
    ):
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self.retries = retries
        self.delay = delay
        self.backoff = backoff
        self._sleep = sleep

    async def __aenter__(self) -> "JobTrackerApi":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_with_retry(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        retries_left = self.retries
        delay = self.delay
        while True:
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                if retries_left <= 0:
                    logger.warning("Giving up on %s %s: %s", method, url, e)
                    raise ApiRequestError(NETWORK_ERROR_MESSAGE) from e
                logger.info("Retrying %s %s in %.2fs (%d attempts left)", method, url, delay, retries_left)
                await self._sleep(delay)
                retries_left -= 1
                delay *= self.backoff
                continue

            if response.is_error:
                message = _error_message(response)
                logger.warning("API error on %s %s: %s", method, url, message)
                raise ApiRequestError(message, status_code=response.status_code)
            return response.json()

    async def get_all_jobs(self, limit: int | None = None, offset: int | None = None) -> Any:
        params = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        return await self.fetch_with_retry("GET", "/jobs", params=params)

    async def search_jobs(self, q: str = "", status: str | None = None) -> Any:
        params = {"q": q}
        if status:
            params["status"] = status
        return await self.fetch_with_retry("GET", "/jobs/search", params=params)

    async def get_job(self, job_id) -> dict:
        return await self.fetch_with_retry("GET", f"/jobs/{job_id}")

    async def create_job(self, job_data: dict) -> dict:
        return await self.fetch_with_retry("POST", "/jobs", json=job_data)

    async def update_job(self, job_id, job_data: dict) -> dict:
        return await self.fetch_with_retry("PUT", f"/jobs/{job_id}", json=job_data)

    async def delete_job(self, job_id) -> dict:
        return await self.fetch_with_retry("DELETE", f"/jobs/{job_id}")
