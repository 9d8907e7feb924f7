from collections import Counter
from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta
from typing import Literal

from pydantic import BaseModel, Field

from gitverse.models.repository.records import Branch, Commit, CommitFileChange, Contributor, RepositorySnapshot

DAYS_PER_WEEK = 7
DEFAULT_ACTIVITY_WEEKS = 52
STALE_BRANCH_DAYS = 30
RECENT_ACTIVITY_LIMIT = 4
SHORT_HASH_LENGTH = 7
FALLBACK_DEFAULT_BRANCH = "main"

ContributorSortOption = Literal["commits", "additions", "recent"]
BranchFilter = Literal["all", "stale"]
BranchType = Literal["default", "feature", "bugfix", "hotfix", "develop", "other"]

# `CommitActivityDay.date` would otherwise shadow the type in the class body.
CalendarDate = date


class CommitActivityDay(BaseModel):
    """The number of commits made on a single day."""

    date: CalendarDate = Field(description="The UTC date.")
    count: int = Field(description="The number of commits made on the date.")
    day: int = Field(description="The position of the date within its week of the activity grid, 0 to 6.")


class RankedContributor(Contributor):
    rank: int = Field(description="The position of the contributor in the order the backend reported them, starting at 1.")


class ContributorReport(BaseModel):
    contributors: list[RankedContributor]
    total_commits: int
    total_additions: int
    total_deletions: int


class BranchInfo(BaseModel):
    name: str
    branch_type: BranchType
    is_default: bool
    is_protected: bool
    last_commit_at: datetime | None
    stale: bool


class RecentCommit(BaseModel):
    sha: str
    message: str
    author_name: str | None
    timestamp: datetime | None


class CommitHistoryEntry(BaseModel):
    """A commit with its totals and the files it changed."""

    sha: str
    short_hash: str
    message: str
    description: str | None
    author_name: str | None
    author_email: str | None
    timestamp: datetime | None
    branch: str
    files_changed: int
    additions: int
    deletions: int
    file_changes: list[CommitFileChange]


class CommitHistory(BaseModel):
    default_branch: str = Field(description="The name of the default branch of the repository.")
    total_commits: int = Field(description="The number of commits recorded by the backend, before the limit is applied.")
    commits: list[CommitHistoryEntry]


class RepositoryOverview(BaseModel):
    """Headline numbers for an analyzed repository."""

    name: str
    description: str | None
    status: str
    total_commits: int
    total_branches: int
    total_contributors: int
    active_contributors: int = Field(description="Contributors with at least one commit.")
    total_files: int
    total_languages: int
    lines_of_code: int = Field(description="The sum of lines across all languages reported by the backend.")
    size_kb: int
    recent_activity: list[RecentCommit]


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


def commit_activity(commits: Sequence[Commit], today: date | None = None, weeks: int = DEFAULT_ACTIVITY_WEEKS) -> list[CommitActivityDay]:
    """Count commits per UTC day over the last `weeks` weeks, ending with `today`.

    Weeks run from the most recent to the oldest, days within a week from the oldest to the newest.
    Days without commits are included with a count of zero. Commits without a timestamp are ignored."""

    today = today or datetime.now(tz=UTC).date()

    commits_by_date: Counter[date] = Counter(
        _as_utc(timestamp).date() for commit in commits if (timestamp := commit.timestamp) is not None
    )

    activity: list[CommitActivityDay] = []

    for week in range(weeks):
        for day in range(DAYS_PER_WEEK):
            current = today - timedelta(days=week * DAYS_PER_WEEK + (DAYS_PER_WEEK - 1 - day))
            activity.append(CommitActivityDay(date=current, count=commits_by_date[current], day=day))

    return activity


def _recent_sort_key(contributor: RankedContributor) -> datetime:
    return _as_utc(contributor.last_commit) if contributor.last_commit else datetime.min.replace(tzinfo=UTC)


def rank_contributors(contributors: Sequence[Contributor], sort_by: ContributorSortOption = "commits") -> ContributorReport:
    ranked = [RankedContributor(**contributor.model_dump(), rank=index + 1) for index, contributor in enumerate(contributors)]

    if sort_by == "commits":
        ranked.sort(key=lambda contributor: contributor.commits, reverse=True)
    elif sort_by == "additions":
        ranked.sort(key=lambda contributor: contributor.additions, reverse=True)
    else:
        ranked.sort(key=_recent_sort_key, reverse=True)

    return ContributorReport(
        contributors=ranked,
        total_commits=sum(contributor.commits for contributor in contributors),
        total_additions=sum(contributor.additions for contributor in contributors),
        total_deletions=sum(contributor.deletions for contributor in contributors),
    )


def classify_branch(branch: Branch) -> BranchType:
    if branch.is_default:
        return "default"
    if branch.name.startswith("feature/"):
        return "feature"
    if branch.name.startswith("bugfix/"):
        return "bugfix"
    if branch.name.startswith("hotfix/"):
        return "hotfix"
    if branch.name == "develop":
        return "develop"
    return "other"


def is_stale(branch: Branch, now: datetime) -> bool:
    if branch.last_commit_at is None:
        return False
    return (_as_utc(now) - _as_utc(branch.last_commit_at)).days > STALE_BRANCH_DAYS


def describe_branches(branches: Sequence[Branch], branch_filter: BranchFilter = "all", now: datetime | None = None) -> list[BranchInfo]:
    now = now or datetime.now(tz=UTC)

    infos = [
        BranchInfo(
            name=branch.name,
            branch_type=classify_branch(branch),
            is_default=branch.is_default,
            is_protected=branch.is_protected,
            last_commit_at=branch.last_commit_at,
            stale=is_stale(branch, now=now),
        )
        for branch in branches
    ]

    if branch_filter == "stale":
        return [info for info in infos if info.stale]

    return infos


def repository_overview(snapshot: RepositorySnapshot) -> RepositoryOverview:
    return RepositoryOverview(
        name=snapshot.name,
        description=snapshot.description,
        status=snapshot.status,
        total_commits=len(snapshot.commits),
        total_branches=len(snapshot.branches),
        total_contributors=len(snapshot.contributors),
        active_contributors=sum(1 for contributor in snapshot.contributors if contributor.commits > 0),
        total_files=len(snapshot.files),
        total_languages=len(snapshot.languages),
        lines_of_code=sum(language.lines for language in snapshot.languages),
        size_kb=round(snapshot.size / 1024),
        recent_activity=[
            RecentCommit(sha=commit.sha, message=commit.message, author_name=commit.author_name, timestamp=commit.timestamp)
            for commit in snapshot.commits[:RECENT_ACTIVITY_LIMIT]
        ],
    )


def default_branch_name(branches: Sequence[Branch]) -> str:
    return next((branch.name for branch in branches if branch.is_default), FALLBACK_DEFAULT_BRANCH)


def _history_entry(commit: Commit, default_branch: str) -> CommitHistoryEntry:
    return CommitHistoryEntry(
        sha=commit.sha,
        short_hash=commit.short_hash or commit.sha[:SHORT_HASH_LENGTH],
        message=commit.message,
        description=commit.description,
        author_name=commit.author_name,
        author_email=commit.author_email,
        timestamp=commit.timestamp,
        branch=commit.branch or default_branch,
        files_changed=commit.files_changed or len(commit.file_changes),
        additions=commit.additions or sum(change.additions for change in commit.file_changes),
        deletions=commit.deletions or sum(change.deletions for change in commit.file_changes),
        file_changes=commit.file_changes,
    )


def commit_history(commits: Sequence[Commit], branches: Sequence[Branch], limit: int | None = None) -> CommitHistory:
    """The commits of a repository in the order the backend reported them.

    Totals the backend left out are taken from the commit's file changes, and commits without a branch are
    attributed to the default branch."""

    default_branch = default_branch_name(branches)

    selected = commits if limit is None else commits[:limit]

    return CommitHistory(
        default_branch=default_branch,
        total_commits=len(commits),
        commits=[_history_entry(commit, default_branch=default_branch) for commit in selected],
    )
