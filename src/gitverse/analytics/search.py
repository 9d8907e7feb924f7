from collections.abc import Sequence
from typing import Literal

from gitverse.models.repository.records import RepositorySummary

RepositorySortOption = Literal["recent", "name"]


def matches_query(repository: RepositorySummary, query: str) -> bool:
    """Whether the query appears in the repository's name or description, ignoring case."""

    needle = query.casefold()

    return needle in repository.name.casefold() or needle in (repository.description or "").casefold()


def search_repositories(
    repositories: Sequence[RepositorySummary], query: str | None = None, sort_by: RepositorySortOption = "recent"
) -> list[RepositorySummary]:
    """Filter repositories by a query and order them.

    `recent` keeps the order of the GitVerse API, which lists the most recently submitted repositories first.
    `name` orders by name, ignoring case."""

    found = [repository for repository in repositories if not query or matches_query(repository, query=query)]

    if sort_by == "name":
        found.sort(key=lambda repository: repository.name.casefold())

    return found
