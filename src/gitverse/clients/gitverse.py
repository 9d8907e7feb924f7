import os
from collections.abc import Callable
from logging import Logger
from typing import Any, Literal, overload

import httpx
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from gitverse.clients.errors.gitverse import (
    InvalidRepositoryUrlError,
    RequestError,
    ResourceNotFoundError,
    SnapshotValidationError,
)
from gitverse.models.repository.records import RepositorySnapshot, RepositorySummary
from gitverse.utilities.urls import validate_repository_url

DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_TIMEOUT_SECONDS = 30.0

REPOSITORIES_ENDPOINT = "/api/repositories"
HEALTH_ENDPOINT = "/api/health"


def get_api_url() -> str:
    return os.getenv("GITVERSE_API_URL") or DEFAULT_API_URL


def get_api_token() -> str | None:
    return os.getenv("GITVERSE_API_TOKEN")


def get_httpx_client(base_url: str | None = None, token: str | None = None) -> httpx.AsyncClient:
    headers: dict[str, str] = {"Accept": "application/json"}

    if token := token or get_api_token():
        headers["Authorization"] = f"Bearer {token}"

    return httpx.AsyncClient(base_url=base_url or get_api_url(), headers=headers, timeout=DEFAULT_TIMEOUT_SECONDS)


class HealthStatus(BaseModel):
    status: str
    message: str | None = None


class GitVerseClient:
    """Reads repositories and their analysis results from the GitVerse API."""

    httpx_client: httpx.AsyncClient
    logger: Logger

    log_requests: bool
    log_responses: bool
    log_on_error: bool

    def __init__(
        self,
        httpx_client: httpx.AsyncClient | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
        log_on_error: bool = True,
    ):
        self.httpx_client = httpx_client or get_httpx_client()
        self.logger = logger or get_logger(__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_on_error = log_on_error

    def _get_loggers(self) -> tuple[Callable[[str], Any], Callable[[str], Any], Callable[[str], Any]]:
        request_logger = self.logger.info if self.log_requests else self.logger.debug
        response_logger = self.logger.info if self.log_responses else self.logger.debug
        error_logger = self.logger.error if self.log_on_error else self.logger.debug
        return request_logger, response_logger, error_logger

    @overload
    async def _perform_request[T](
        self,
        action: str,
        method: str,
        url: str,
        response_type: type[T],
        error_on_not_found: Literal[True] = True,
        json: Any | None = None,  # pyright: ignore[reportAny]
    ) -> T: ...

    @overload
    async def _perform_request[T](
        self,
        action: str,
        method: str,
        url: str,
        response_type: type[T],
        error_on_not_found: Literal[False] = False,
        json: Any | None = None,  # pyright: ignore[reportAny]
    ) -> T | None: ...

    async def _perform_request[T](
        self,
        action: str,
        method: str,
        url: str,
        response_type: type[T],
        error_on_not_found: bool = True,
        json: Any | None = None,  # pyright: ignore[reportAny]
    ) -> T | None:
        """Perform a request against the GitVerse API and validate the response.

        Raises:
            ResourceNotFoundError: If the resource is not found and error_on_not_found is True.
            SnapshotValidationError: If the response does not match `response_type`.
            RequestError: If the request fails.
        """

        request_logger, response_logger, error_logger = self._get_loggers()

        request_logger(f"Performing {action}: {method} {url}")

        try:
            response: httpx.Response = await self.httpx_client.request(method=method, url=url, json=json)
            _ = response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == httpx.codes.NOT_FOUND:
                if error_on_not_found:
                    raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

                return None

            error_logger(f"Error performing {action}: {method} {url} returned {e.response.status_code}")

            raise RequestError(action=action, message=str(e)) from e
        except httpx.HTTPError as e:
            error_logger(f"Error performing {action}: {method} {url}: {e}")

            raise RequestError(action=action, message=str(e)) from e

        try:
            result: T = TypeAdapter[T](response_type).validate_json(response.content)
        except ValidationError as e:
            error_logger(f"Invalid response for {action}: {e.error_count()} validation errors")

            raise SnapshotValidationError(action=action, message=str(e)) from e

        response_logger(f"Completed {action}: {method} {url}")

        return result

    async def health(self) -> HealthStatus:
        return await self._perform_request(action="Check health", method="GET", url=HEALTH_ENDPOINT, response_type=HealthStatus)

    async def list_repositories(self) -> list[RepositorySummary]:
        return await self._perform_request(
            action="List repositories", method="GET", url=REPOSITORIES_ENDPOINT, response_type=list[RepositorySummary]
        )

    @overload
    async def get_repository(self, repository_id: str, error_on_not_found: Literal[True] = True) -> RepositorySnapshot: ...

    @overload
    async def get_repository(self, repository_id: str, error_on_not_found: Literal[False] = False) -> RepositorySnapshot | None: ...

    async def get_repository(self, repository_id: str, error_on_not_found: bool = True) -> RepositorySnapshot | None:
        """Get a repository along with the results of its analysis."""

        return await self._perform_request(
            action="Get repository",
            method="GET",
            url=f"{REPOSITORIES_ENDPOINT}/{repository_id}",
            response_type=RepositorySnapshot,
            error_on_not_found=error_on_not_found,
        )

    async def submit_repository(self, url: str) -> RepositorySummary:
        """Submit a repository URL for analysis. The analysis runs in the background on the GitVerse backend."""

        if not validate_repository_url(url):
            raise InvalidRepositoryUrlError(url=url)

        return await self._perform_request(
            action="Submit repository",
            method="POST",
            url=REPOSITORIES_ENDPOINT,
            response_type=RepositorySummary,
            json={"url": url},
        )
