import re
from collections import defaultdict
from collections.abc import Sequence
from typing import Literal, Self

from pydantic import BaseModel, Field, computed_field

from gitverse.analytics.normalize import normalize_percentages
from gitverse.models.repository.records import Commit, CommitFileChange, FileRecord, LanguageRecord

FileType = Literal["source", "test", "config", "documentation", "other"]

SOURCE_EXTENSIONS = ("ts", "tsx", "js", "jsx", "py", "java", "go", "rs")
CONFIG_EXTENSIONS = ("json", "yaml", "yml", "toml", "ini", "env")
DOCUMENTATION_EXTENSIONS = ("md", "txt", "doc")


def _extension_pattern(extensions: Sequence[str]) -> re.Pattern[str]:
    return re.compile(rf"\.({'|'.join(extensions)})$", re.IGNORECASE)


# Checked in order, the first match wins. Tests come before sources so that `app.test.ts` is a test.
FILE_TYPE_RULES: list[tuple[FileType, re.Pattern[str]]] = [
    ("test", re.compile(rf"\.(test|spec)\.({'|'.join(SOURCE_EXTENSIONS)})$", re.IGNORECASE)),
    ("source", _extension_pattern(SOURCE_EXTENSIONS)),
    ("config", _extension_pattern(CONFIG_EXTENSIONS)),
    ("documentation", _extension_pattern(DOCUMENTATION_EXTENSIONS)),
]

FILE_TYPE_DISPLAY_ORDER: list[FileType] = ["source", "test", "config", "documentation", "other"]


class CategoryBucket(BaseModel):
    """A category of files with its share of the whole."""

    label: str = Field(description="The name of the category.")
    count: int = Field(description="The number of files in the category.")
    percentage: float = Field(description="The share of files in the category, rounded to two decimals.")


class FileStat(BaseModel):
    """Commit and churn statistics for a single path."""

    path: str = Field(description="The path the statistics were computed for.")
    commit_count: int = Field(default=0, description="The number of commits that touched the path.")
    total_additions: int = Field(default=0, description="The lines added to the path across all commits.")
    total_deletions: int = Field(default=0, description="The lines deleted from the path across all commits.")

    @computed_field
    @property
    def net_change(self) -> int:
        return self.total_additions - self.total_deletions

    @computed_field
    @property
    def deletion_ratio(self) -> float:
        """Deletions as a percentage of all changed lines, rounded to one decimal."""
        churn = self.total_additions + self.total_deletions
        if churn == 0:
            return 0.0
        return round(self.total_deletions / churn * 100, 1)


class LanguageStat(BaseModel):
    """A language reported by the analysis backend, with the number of files written in it."""

    name: str
    percentage: float
    lines: int
    files: int


def to_buckets(labelled_counts: Sequence[tuple[str, int]], omit_empty: bool = True) -> list[CategoryBucket]:
    percentages = normalize_percentages([count for _, count in labelled_counts])

    buckets = [
        CategoryBucket(label=label, count=count, percentage=percentage)
        for (label, count), percentage in zip(labelled_counts, percentages, strict=True)
    ]

    if omit_empty:
        return [bucket for bucket in buckets if bucket.count > 0]

    return buckets


def _language_key(language: str) -> str:
    return language.strip().lower()


def language_distribution(files: Sequence[FileRecord]) -> list[CategoryBucket]:
    """Group files by language, ignoring case and surrounding whitespace. Files without a language are not counted.

    Buckets are labelled with the casing of the first file seen for each language."""

    labels: dict[str, str] = {}
    counts: dict[str, int] = defaultdict(int)

    for file in files:
        if not file.language or not (key := _language_key(file.language)):
            continue

        labels.setdefault(key, file.language.strip())
        counts[key] += 1

    return to_buckets([(labels[key], count) for key, count in counts.items()])


def classify_file_type(path: str) -> FileType:
    for file_type, pattern in FILE_TYPE_RULES:
        if pattern.search(path):
            return file_type

    return "other"


def count_file_types(files: Sequence[FileRecord]) -> dict[FileType, int]:
    counts: dict[FileType, int] = dict.fromkeys(FILE_TYPE_DISPLAY_ORDER, 0)

    for file in files:
        counts[classify_file_type(file.path)] += 1

    return counts


def file_type_distribution(files: Sequence[FileRecord]) -> list[CategoryBucket]:
    """Classify every file into exactly one of source, test, config, documentation or other."""

    counts = count_file_types(files)

    return to_buckets([(file_type, counts[file_type]) for file_type in FILE_TYPE_DISPLAY_ORDER])


def commit_count_for(path: str, commits: Sequence[Commit]) -> int:
    """Count the commits that touched `path`. Renamed files are tracked under each of their paths separately."""

    return sum(1 for commit in commits if any(change.path == path for change in commit.file_changes))


def change_stats_for(path: str, commits: Sequence[Commit]) -> FileStat:
    additions = 0
    deletions = 0

    for commit in commits:
        for change in commit.file_changes:
            if change.path == path:
                additions += change.additions
                deletions += change.deletions

    return FileStat(
        path=path,
        commit_count=commit_count_for(path=path, commits=commits),
        total_additions=additions,
        total_deletions=deletions,
    )


def language_statistics(languages: Sequence[LanguageRecord], files: Sequence[FileRecord]) -> list[LanguageStat]:
    """Join the backend's language breakdown with the number of files written in each language."""

    files_by_language: dict[str, int] = defaultdict(int)
    for file in files:
        if file.language:
            files_by_language[_language_key(file.language)] += 1

    return [
        LanguageStat(
            name=language.name,
            percentage=language.percentage,
            lines=language.lines,
            files=files_by_language.get(_language_key(language.name), 0),
        )
        for language in languages
    ]


class FileChangeIndex:
    """Maps each path to the commits and changes that touched it.

    Built once per loaded repository so that per-file lookups do not rescan the whole history."""

    changes_by_path: dict[str, list[tuple[int, CommitFileChange]]]

    def __init__(self, changes_by_path: dict[str, list[tuple[int, CommitFileChange]]] | None = None):
        self.changes_by_path = changes_by_path or {}

    @classmethod
    def from_commits(cls, commits: Sequence[Commit]) -> Self:
        changes_by_path: dict[str, list[tuple[int, CommitFileChange]]] = defaultdict(list)

        # Commits are identified by their position in the history, hashes are not guaranteed to be present.
        for commit_index, commit in enumerate(commits):
            for change in commit.file_changes:
                changes_by_path[change.path].append((commit_index, change))

        return cls(changes_by_path=dict(changes_by_path))

    def commit_count(self, path: str) -> int:
        return len({commit_index for commit_index, _ in self.changes_by_path.get(path, [])})

    def change_stats(self, path: str) -> FileStat:
        changes = self.changes_by_path.get(path, [])

        return FileStat(
            path=path,
            commit_count=self.commit_count(path=path),
            total_additions=sum(change.additions for _, change in changes),
            total_deletions=sum(change.deletions for _, change in changes),
        )

    @property
    def paths(self) -> list[str]:
        return list(self.changes_by_path)
