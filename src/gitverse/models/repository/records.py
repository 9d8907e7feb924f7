from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, AliasGenerator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _none_as_zero(value: Any) -> Any:  # pyright: ignore[reportAny]
    return 0 if value is None else value


def _none_as_empty_list(value: Any) -> Any:  # pyright: ignore[reportAny]
    return [] if value is None else value


def _as_string(value: Any) -> Any:  # pyright: ignore[reportAny]
    return str(value) if isinstance(value, int) else value


Count = Annotated[int, BeforeValidator(_none_as_zero), Field(ge=0)]
RecordId = Annotated[str, BeforeValidator(_as_string)]

ChangeType = Literal["added", "modified", "deleted"]
AnalysisStatus = Literal["pending", "analyzing", "completed", "failed"]


class BackendRecord(BaseModel):
    """A record produced by the GitVerse analysis backend.

    The backend speaks camelCase JSON, we accept both the aliases and the Python field names and always serialize with the latter."""

    model_config = ConfigDict(alias_generator=AliasGenerator(validation_alias=to_camel), populate_by_name=True, extra="ignore")


class FileRecord(BackendRecord):
    """A file found in the analyzed repository."""

    path: str = Field(min_length=1, description="The repository-relative, slash-separated path of the file.")
    size: Count = Field(default=0, description="The size of the file in bytes.")
    lines: Count = Field(default=0, description="The number of lines in the file.")
    language: str | None = Field(default=None, description="The language of the file, if one was detected.")
    extension: str | None = Field(default=None, description="The extension of the file, if it has one.")
    created_at: datetime | None = Field(default=None, description="When the file was first seen.")


class CommitFileChange(BackendRecord):
    """A change made to a single file by a commit."""

    path: str = Field(description="The path of the changed file at the time of the commit.")
    additions: Count = Field(default=0, description="The number of lines added.")
    deletions: Count = Field(default=0, description="The number of lines deleted.")
    change_type: ChangeType = Field(default="modified", description="How the file was changed.")


class Commit(BackendRecord):
    """A commit from the history of the analyzed repository."""

    sha: str = Field(default="", validation_alias=AliasChoices("hash", "sha"), description="The hash of the commit.")
    short_hash: str | None = Field(default=None, description="The abbreviated hash of the commit.")
    message: str = Field(default="", description="The commit message.")
    description: str | None = Field(default=None, description="The body of the commit message, if it has one.")
    branch: str | None = Field(default=None, description="The branch the commit was found on.")
    author_name: str | None = Field(default=None, description="The name of the author.")
    author_email: str | None = Field(default=None, description="The email of the author.")
    committed_at: datetime | None = Field(default=None, description="When the commit was made.")
    created_at: datetime | None = Field(default=None, description="When the commit was recorded by the backend.")
    files_changed: Count = Field(default=0, description="The number of files changed by the commit.")
    additions: Count = Field(default=0, description="The number of lines added by the commit.")
    deletions: Count = Field(default=0, description="The number of lines deleted by the commit.")
    file_changes: Annotated[list[CommitFileChange], BeforeValidator(_none_as_empty_list)] = Field(
        default_factory=list, description="The files changed by the commit."
    )

    @property
    def timestamp(self) -> datetime | None:
        return self.committed_at or self.created_at


class Branch(BackendRecord):
    """A branch of the analyzed repository."""

    id: RecordId | None = Field(default=None, description="The backend identifier of the branch.")
    name: str = Field(description="The name of the branch.")
    is_default: bool = Field(default=False, description="Whether the branch is the default branch.")
    is_protected: bool = Field(default=False, description="Whether the branch is protected.")
    last_commit_at: datetime | None = Field(default=None, description="When the last commit was made to the branch.")


class Contributor(BackendRecord):
    """A contributor to the analyzed repository."""

    id: RecordId | None = Field(default=None, description="The backend identifier of the contributor.")
    name: str = Field(description="The name of the contributor.")
    email: str | None = Field(default=None, description="The email of the contributor.")
    commits: Count = Field(default=0, description="The number of commits made by the contributor.")
    additions: Count = Field(default=0, description="The number of lines added by the contributor.")
    deletions: Count = Field(default=0, description="The number of lines deleted by the contributor.")
    percentage: float = Field(default=0.0, description="The share of the repository's commits made by the contributor.")
    first_commit: datetime | None = Field(default=None, description="When the contributor's first commit was made.")
    last_commit: datetime | None = Field(default=None, description="When the contributor's last commit was made.")


class LanguageRecord(BackendRecord):
    """A language breakdown entry computed by the analysis backend."""

    name: str = Field(description="The name of the language.")
    percentage: float = Field(default=0.0, description="The share of the repository written in the language.")
    lines: Count = Field(default=0, description="The number of lines written in the language.")


class RepositorySummary(BackendRecord):
    """A repository as listed by the GitVerse API, without its analysis results."""

    id: RecordId = Field(description="The backend identifier of the repository.")
    name: str = Field(description="The name of the repository.")
    url: str | None = Field(default=None, description="The URL the repository was submitted with.")
    description: str | None = Field(default=None, description="The description of the repository.")
    status: AnalysisStatus = Field(default="pending", description="The status of the repository analysis.")
    created_at: datetime | None = Field(default=None, description="When the repository was submitted.")


class RepositorySnapshot(RepositorySummary):
    """An analyzed repository with everything the analysis backend recorded about it."""

    size: Count = Field(default=0, description="The size of the repository in bytes.")
    lines_of_code: Count = Field(default=0, description="The total number of lines of code.")
    files: list[FileRecord] = Field(default_factory=list)
    commits: list[Commit] = Field(default_factory=list)
    branches: list[Branch] = Field(default_factory=list)
    contributors: list[Contributor] = Field(default_factory=list)
    languages: list[LanguageRecord] = Field(default_factory=list)

    @field_validator("files", "commits", "branches", "contributors", "languages", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:  # pyright: ignore[reportAny]
        return _none_as_empty_list(v)
