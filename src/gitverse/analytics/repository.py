from datetime import date, datetime
from functools import cached_property

from gitverse.analytics.activity import (
    DEFAULT_ACTIVITY_WEEKS,
    BranchFilter,
    BranchInfo,
    CommitActivityDay,
    CommitHistory,
    ContributorReport,
    ContributorSortOption,
    RepositoryOverview,
    commit_activity,
    commit_history,
    describe_branches,
    rank_contributors,
    repository_overview,
)
from gitverse.analytics.aggregate import (
    CategoryBucket,
    FileChangeIndex,
    FileStat,
    LanguageStat,
    file_type_distribution,
    language_distribution,
    language_statistics,
)
from gitverse.models.repository.records import RepositorySnapshot
from gitverse.models.repository.tree import TreeNode, build_file_tree


class RepositoryAnalytics:
    """Derived views over a single loaded repository snapshot.

    The file tree and the file change index are computed on first use and kept for the lifetime of this object.
    Load a new snapshot to pick up a new analysis."""

    snapshot: RepositorySnapshot

    def __init__(self, snapshot: RepositorySnapshot):
        self.snapshot = snapshot

    @cached_property
    def file_tree(self) -> TreeNode:
        return build_file_tree(self.snapshot.files, name=self.snapshot.name)

    @cached_property
    def file_change_index(self) -> FileChangeIndex:
        return FileChangeIndex.from_commits(self.snapshot.commits)

    def overview(self) -> RepositoryOverview:
        return repository_overview(self.snapshot)

    def file_stats(self, path: str) -> FileStat:
        return self.file_change_index.change_stats(path=path)

    def language_distribution(self) -> list[CategoryBucket]:
        return language_distribution(self.snapshot.files)

    def language_statistics(self) -> list[LanguageStat]:
        return language_statistics(languages=self.snapshot.languages, files=self.snapshot.files)

    def file_type_distribution(self) -> list[CategoryBucket]:
        return file_type_distribution(self.snapshot.files)

    def commit_activity(self, today: date | None = None, weeks: int = DEFAULT_ACTIVITY_WEEKS) -> list[CommitActivityDay]:
        return commit_activity(self.snapshot.commits, today=today, weeks=weeks)

    def contributors(self, sort_by: ContributorSortOption = "commits") -> ContributorReport:
        return rank_contributors(self.snapshot.contributors, sort_by=sort_by)

    def branches(self, branch_filter: BranchFilter = "all", now: datetime | None = None) -> list[BranchInfo]:
        return describe_branches(self.snapshot.branches, branch_filter=branch_filter, now=now)

    def commit_history(self, limit: int | None = None) -> CommitHistory:
        return commit_history(self.snapshot.commits, branches=self.snapshot.branches, limit=limit)
