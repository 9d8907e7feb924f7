import json
from collections.abc import AsyncGenerator, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, overload, override

import httpx
import pytest
from fastmcp import FastMCP
from fastmcp.client.client import CallToolResult
from fastmcp.experimental.sampling.handlers.base import BaseLLMSamplingHandler
from fastmcp.server.middleware.logging import StructuredLoggingMiddleware
from mcp import ClientSession, ServerSession
from mcp.shared.context import LifespanContextT, RequestContext
from mcp.types import CreateMessageResult, SamplingMessage, TextContent
from mcp.types import CreateMessageRequestParams as SamplingParams
from pydantic import BaseModel

from gitverse.clients.gitverse import GitVerseClient
from gitverse.models.repository.records import RepositorySnapshot

TEST_API_URL = "http://gitverse.test"

CANNED_SAMPLING_RESPONSE = "This repository is a small TypeScript application with a Python formatter."


def iso(timestamp: datetime) -> str:
    return timestamp.isoformat().replace("+00:00", "Z")


class FakeSamplingHandler(BaseLLMSamplingHandler):
    """Answers every sampling request with the same text and remembers what it was asked."""

    def __init__(self, response: str = CANNED_SAMPLING_RESPONSE):
        self.response: str = response
        self.requests: list[tuple[list[SamplingMessage], SamplingParams]] = []

    @override
    async def __call__(
        self,
        messages: list[SamplingMessage],
        params: SamplingParams,
        context: RequestContext[ServerSession, LifespanContextT] | RequestContext[ClientSession, LifespanContextT],
    ) -> CreateMessageResult:
        self.requests.append((messages, params))

        return CreateMessageResult(content=TextContent(type="text", text=self.response), role="assistant", model="fake-model")

    @property
    def last_prompt(self) -> str:
        messages, _ = self.requests[-1]
        return "\n".join(message.content.text for message in messages if isinstance(message.content, TextContent))


class FakeGitVerseApi:
    """An in-memory stand-in for the GitVerse REST API, served through `httpx.MockTransport`."""

    def __init__(self, repositories: Sequence[dict[str, Any]]):
        self.repositories: dict[str, dict[str, Any]] = {str(repository["id"]): repository for repository in repositories}
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        path = request.url.path

        if path == "/api/health":
            return httpx.Response(status_code=200, json={"status": "ok", "message": "GitVerse API is running"})

        if path == "/api/repositories" and request.method == "GET":
            summary_keys = ("id", "name", "url", "description", "status", "createdAt")
            return httpx.Response(
                status_code=200,
                json=[{key: value for key, value in repository.items() if key in summary_keys} for repository in self.repositories.values()],
            )

        if path == "/api/repositories" and request.method == "POST":
            url: str = json.loads(request.content)["url"]
            return httpx.Response(
                status_code=201,
                json={"id": 99, "name": url.rstrip("/").rsplit("/", 1)[-1], "url": url, "status": "pending"},
            )

        if path.startswith("/api/repositories/") and request.method == "GET":
            repository = self.repositories.get(path.removeprefix("/api/repositories/"))
            if repository is None:
                return httpx.Response(status_code=404, json={"error": "Repository not found"})
            return httpx.Response(status_code=200, json=repository)

        return httpx.Response(status_code=500, json={"error": "Internal server error"})


def build_repository_data(now: datetime) -> dict[str, Any]:
    """A completed analysis of a small repository, shaped the way the GitVerse API returns it."""

    return {
        "id": 1,
        "name": "gitverse-demo",
        "url": "https://github.com/gitverse/gitverse-demo",
        "description": "A demo repository for GitVerse",
        "status": "completed",
        "createdAt": iso(now - timedelta(days=500)),
        "size": 20480,
        "linesOfCode": 230,
        "files": [
            {"path": "src/app.ts", "size": 1200, "lines": 120, "language": "TypeScript", "extension": "ts"},
            {"path": "src/app.test.ts", "size": 300, "lines": 30, "language": "typescript", "extension": "ts"},
            {"path": "src/utils/format.py", "size": 500, "lines": 50, "language": "Python", "extension": "py"},
            {"path": "package.json", "size": 200, "lines": 20, "language": "JSON", "extension": "json"},
            {"path": "README.md", "size": 100, "lines": 10, "language": None, "extension": "md"},
        ],
        "commits": [
            {
                "hash": "c3a1f09e2b7d4c6a8f0e1d2c3b4a5968778695a4",
                "shortHash": "c3a1f09",
                "message": "Add formatter",
                "description": "Formats dates and sizes for the dashboard.",
                "branch": "feature/formatter",
                "authorName": "Ada",
                "authorEmail": "ada@example.com",
                "committedAt": iso(now),
                "filesChanged": 1,
                "additions": 50,
                "deletions": 0,
                "fileChanges": [{"path": "src/utils/format.py", "additions": 50, "deletions": 0, "changeType": "added"}],
            },
            {
                "hash": "c2b7d41a90e3f5a6b7c8d9e0f1a2b3c4d5e6f7a8",
                "message": "Fix crash on start",
                "authorName": "Grace",
                "authorEmail": "grace@example.com",
                "committedAt": iso(now - timedelta(days=2)),
                "fileChanges": [{"path": "src/app.ts", "additions": 5, "deletions": 3}],
            },
            {
                "hash": "c1e5530f11a2b3c4d5e6f7a8b9c0d1e2f3a4b5c6",
                "message": "Initial commit",
                "authorName": "Ada",
                "authorEmail": "ada@example.com",
                "committedAt": None,
                "createdAt": iso(now - timedelta(days=400)),
                "fileChanges": [
                    {"path": "src/app.ts", "additions": 115, "deletions": 0, "changeType": "added"},
                    {"path": "README.md", "additions": 10, "deletions": 0, "changeType": "added"},
                ],
            },
        ],
        "branches": [
            {"id": 1, "name": "main", "isDefault": True, "isProtected": True, "lastCommitAt": iso(now)},
            {"id": 2, "name": "feature/formatter", "isDefault": False, "isProtected": False, "lastCommitAt": iso(now - timedelta(days=5))},
            {"id": 3, "name": "hotfix/crash", "isDefault": False, "isProtected": False, "lastCommitAt": iso(now - timedelta(days=90))},
        ],
        "contributors": [
            {
                "id": 1,
                "name": "Ada",
                "email": "ada@example.com",
                "commits": 2,
                "additions": 175,
                "deletions": 0,
                "percentage": 66.7,
                "lastCommit": iso(now),
            },
            {
                "id": 2,
                "name": "Grace",
                "email": "grace@example.com",
                "commits": 1,
                "additions": 5,
                "deletions": 3,
                "percentage": 33.3,
                "lastCommit": iso(now - timedelta(days=2)),
            },
            {"id": 3, "name": "Linus", "email": None, "commits": None, "additions": None, "deletions": None, "percentage": 0},
        ],
        "languages": [
            {"name": "TypeScript", "percentage": 75.0, "lines": 150},
            {"name": "Python", "percentage": 25.0, "lines": 50},
        ],
    }


@pytest.fixture
def now() -> datetime:
    return datetime.now(tz=UTC)


@pytest.fixture
def repository_data(now: datetime) -> dict[str, Any]:
    return build_repository_data(now=now)


@pytest.fixture
def analyzing_repository_data() -> dict[str, Any]:
    return {"id": 2, "name": "still-running", "url": "https://gitlab.com/gitverse/still-running", "status": "analyzing"}


@pytest.fixture
def repository_snapshot(repository_data: dict[str, Any]) -> RepositorySnapshot:
    return RepositorySnapshot.model_validate(repository_data)


@pytest.fixture
def fake_api(repository_data: dict[str, Any], analyzing_repository_data: dict[str, Any]) -> FakeGitVerseApi:
    return FakeGitVerseApi(repositories=[repository_data, analyzing_repository_data])


@pytest.fixture
async def httpx_client(fake_api: FakeGitVerseApi) -> AsyncGenerator[httpx.AsyncClient, Any]:
    async with httpx.AsyncClient(base_url=TEST_API_URL, transport=httpx.MockTransport(handler=fake_api.handle)) as httpx_client:
        yield httpx_client


@pytest.fixture
def gitverse_client(httpx_client: httpx.AsyncClient) -> GitVerseClient:
    return GitVerseClient(httpx_client=httpx_client)


@pytest.fixture
def sampling_handler() -> FakeSamplingHandler:
    return FakeSamplingHandler()


@pytest.fixture
def logging_middleware() -> StructuredLoggingMiddleware:
    return StructuredLoggingMiddleware(include_payloads=True)


@pytest.fixture
def fastmcp(sampling_handler: BaseLLMSamplingHandler, logging_middleware: StructuredLoggingMiddleware):
    return FastMCP(
        name="GitVerse Analytics",
        sampling_handler=sampling_handler,
        middleware=[logging_middleware],
    )


def handle_exclude_keys(dictionary: dict[str, Any], exclude_keys: list[str] | None = None) -> dict[str, Any]:
    if exclude_keys is None:
        return dictionary
    return {key: value for key, value in dictionary.items() if key not in exclude_keys}


@overload
def dump_for_snapshot(
    basemodel: None,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> None: ...


@overload
def dump_for_snapshot(
    basemodel: BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any]: ...


def dump_for_snapshot(
    basemodel: None | BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any] | None:
    if basemodel is None:
        return None

    return handle_exclude_keys(basemodel.model_dump(exclude_none=exclude_none, **dump_kwargs), exclude_keys)


def dump_list_for_snapshot(
    basemodel: None | Sequence[BaseModel],
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> list[dict[str, Any]] | None:
    if basemodel is None:
        return []

    return [dump_for_snapshot(item, exclude_keys, exclude_none, **dump_kwargs) for item in basemodel]


def get_result_from_call_tool_result(call_tool_result: CallToolResult) -> Any:
    assert call_tool_result.structured_content is not None
    assert isinstance(call_tool_result.structured_content, dict)

    # Tools returning lists are wrapped in a `result` key.
    if list(call_tool_result.structured_content) == ["result"]:
        return call_tool_result.structured_content["result"]

    return call_tool_result.structured_content
