import re
from typing import Literal

from pydantic import BaseModel

Platform = Literal["github", "gitlab", "bitbucket"]

PLATFORM_HOSTS: dict[Platform, str] = {
    "github": r"github\.com",
    "gitlab": r"gitlab\.com",
    "bitbucket": r"bitbucket\.org",
}

VALID_URL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"^https?://(www\.)?({host})/[\w-]+/[\w.-]+") for host in PLATFORM_HOSTS.values()
]


class RepositoryLocation(BaseModel):
    platform: Platform
    owner: str
    repo: str


def validate_repository_url(url: str) -> bool:
    """Whether the URL points at a GitHub, GitLab or Bitbucket repository."""

    return any(pattern.match(url) for pattern in VALID_URL_PATTERNS)


def parse_repository_url(url: str) -> RepositoryLocation | None:
    for platform, host in PLATFORM_HOSTS.items():
        if match := re.search(rf"{host}/([\w-]+)/([\w.-]+)", url):
            return RepositoryLocation(platform=platform, owner=match.group(1), repo=match.group(2))

    return None
