from logging import Logger
from typing import Annotated, Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from gitverse.analytics.activity import (
    DEFAULT_ACTIVITY_WEEKS,
    BranchFilter,
    BranchInfo,
    CommitActivityDay,
    CommitHistory,
    ContributorReport,
    ContributorSortOption,
    RepositoryOverview,
)
from gitverse.analytics.aggregate import CategoryBucket, FileStat, LanguageStat
from gitverse.analytics.repository import RepositoryAnalytics
from gitverse.analytics.search import RepositorySortOption, search_repositories
from gitverse.clients.gitverse import GitVerseClient
from gitverse.models.repository.records import RepositorySnapshot, RepositorySummary
from gitverse.models.repository.tree import TreeNode
from gitverse.servers.shared.annotations import (
    ACTIVITY_WEEKS,
    COMMIT_LIMIT,
    EXCLUDE_PATTERNS,
    FILE_PATH,
    INCLUDE_PATTERNS,
    REPOSITORY_ID,
    REPOSITORY_URL,
    SEARCH_QUERY,
    TREE_DEPTH,
)
from gitverse.servers.shared.errors import RepositoryNotAnalyzedError


class LanguageReport(BaseModel):
    """The languages of a repository, as reported by the backend and as counted from its files."""

    languages: list[LanguageStat] = Field(description="The backend's language breakdown with the number of files in each language.")
    file_distribution: list[CategoryBucket] = Field(description="The share of files written in each language.")


class AnalyticsServer:
    """Exposes the analysis results of GitVerse repositories as tools."""

    gitverse_client: GitVerseClient
    logger: Logger

    def __init__(self, gitverse_client: GitVerseClient | None = None, logger: Logger | None = None):
        self.logger = logger or get_logger(name=__name__)
        self.gitverse_client = gitverse_client or GitVerseClient()

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        for fn in [
            self.list_repositories,
            self.submit_repository,
            self.get_repository_overview,
            self.get_file_tree,
            self.get_file_stats,
            self.get_language_distribution,
            self.get_file_type_distribution,
            self.get_commit_activity,
            self.get_commit_history,
            self.get_contributors,
            self.get_branches,
        ]:
            _ = fastmcp.add_tool(tool=Tool.from_function(fn=fn))

        return fastmcp

    async def load_analytics(self, repository_id: str, require_completed: bool = True) -> RepositoryAnalytics:
        """Load the latest snapshot of a repository. Every call reflects the most recent analysis."""

        snapshot: RepositorySnapshot = await self.gitverse_client.get_repository(repository_id=repository_id)

        if require_completed and snapshot.status != "completed":
            self.logger.warning(f"Repository {repository_id} was requested while its analysis is {snapshot.status}")
            raise RepositoryNotAnalyzedError(repository_id=repository_id, status=snapshot.status)

        return RepositoryAnalytics(snapshot=snapshot)

    async def list_repositories(
        self,
        query: SEARCH_QUERY = None,
        sort_by: Annotated[
            RepositorySortOption, Field(description="How to order the repositories. `recent` lists the most recently submitted first.")
        ] = "recent",
    ) -> list[RepositorySummary]:
        """List the repositories that have been submitted to GitVerse and the status of their analysis."""

        repositories = await self.gitverse_client.list_repositories()

        return search_repositories(repositories, query=query, sort_by=sort_by)

    async def submit_repository(self, url: REPOSITORY_URL) -> RepositorySummary:
        """Submit a GitHub, GitLab or Bitbucket repository for analysis. Analysis happens in the background,
        check its status with `list_repositories` or `get_repository_overview`."""

        self.logger.info(f"Submitting {url} for analysis")

        return await self.gitverse_client.submit_repository(url=url)

    async def get_repository_overview(self, repository_id: REPOSITORY_ID) -> RepositoryOverview:
        """Get headline numbers for a repository: commits, branches, contributors, files, languages, size and recent activity."""

        analytics = await self.load_analytics(repository_id=repository_id, require_completed=False)

        return analytics.overview()

    async def get_file_tree(
        self,
        repository_id: REPOSITORY_ID,
        depth: TREE_DEPTH = None,
        include: INCLUDE_PATTERNS = None,
        exclude: EXCLUDE_PATTERNS = None,
    ) -> TreeNode:
        """Get the file tree of a repository. Exclude patterns take precedence over include patterns."""

        analytics = await self.load_analytics(repository_id=repository_id)

        file_tree: TreeNode = analytics.file_tree

        if include is not None or exclude is not None:
            file_tree = file_tree.filter(include_patterns=include, exclude_patterns=exclude)

        if depth is not None:
            file_tree = file_tree.prune(depth=depth)

        return file_tree

    async def get_file_stats(self, repository_id: REPOSITORY_ID, path: FILE_PATH) -> FileStat:
        """Get the number of commits that touched a file and the lines added to and deleted from it."""

        analytics = await self.load_analytics(repository_id=repository_id)

        return analytics.file_stats(path=path)

    async def get_language_distribution(self, repository_id: REPOSITORY_ID) -> LanguageReport:
        """Get the languages used in a repository and the share of files written in each."""

        analytics = await self.load_analytics(repository_id=repository_id)

        return LanguageReport(languages=analytics.language_statistics(), file_distribution=analytics.language_distribution())

    async def get_file_type_distribution(self, repository_id: REPOSITORY_ID) -> list[CategoryBucket]:
        """Get the share of source, test, config, documentation and other files in a repository."""

        analytics = await self.load_analytics(repository_id=repository_id)

        return analytics.file_type_distribution()

    async def get_commit_activity(
        self, repository_id: REPOSITORY_ID, weeks: ACTIVITY_WEEKS = DEFAULT_ACTIVITY_WEEKS
    ) -> list[CommitActivityDay]:
        """Get the number of commits made on each day of the last weeks, ending today."""

        analytics = await self.load_analytics(repository_id=repository_id)

        return analytics.commit_activity(weeks=weeks)

    async def get_commit_history(self, repository_id: REPOSITORY_ID, limit: COMMIT_LIMIT = None) -> CommitHistory:
        """Get the commits of a repository with their author, branch, totals and the files each one changed."""

        analytics = await self.load_analytics(repository_id=repository_id)

        return analytics.commit_history(limit=limit)

    async def get_contributors(
        self,
        repository_id: REPOSITORY_ID,
        sort_by: Annotated[ContributorSortOption, Field(description="How to order the contributors.")] = "commits",
    ) -> ContributorReport:
        """Get the contributors of a repository with their commits, additions and deletions."""

        analytics = await self.load_analytics(repository_id=repository_id)

        return analytics.contributors(sort_by=sort_by)

    async def get_branches(
        self,
        repository_id: REPOSITORY_ID,
        branch_filter: Annotated[
            BranchFilter, Field(description="Which branches to return. Stale branches have had no commits for more than 30 days.")
        ] = "all",
    ) -> list[BranchInfo]:
        """Get the branches of a repository."""

        analytics = await self.load_analytics(repository_id=repository_id)

        return analytics.branches(branch_filter=branch_filter)
