from typing import Annotated

from pydantic import Field

REPOSITORY_ID = Annotated[str, Field(description="The GitVerse identifier of the analyzed repository.")]
REPOSITORY_URL = Annotated[str, Field(description="The URL of a GitHub, GitLab or Bitbucket repository.")]

FILE_PATH = Annotated[str, Field(description="The repository-relative path of a file. For example, 'src/app.ts'.")]

TREE_DEPTH = Annotated[
    int | None,
    Field(description="The depth of the tree to return. Depth 0 returns only the entries at the root of the repository. If not provided, the entire tree is returned."),
]
INCLUDE_PATTERNS = Annotated[
    list[str] | None,
    Field(description="Glob patterns to check file paths against. Only files matching any of these patterns are included."),
]
EXCLUDE_PATTERNS = Annotated[
    list[str] | None,
    Field(description="Glob patterns to check file paths against. Files matching any of these patterns are excluded."),
]

ACTIVITY_WEEKS = Annotated[int, Field(ge=1, le=104, description="The number of weeks of commit activity to return.")]

QUESTION = Annotated[str, Field(description="The question to ask about the repository.")]
CODE = Annotated[str, Field(description="The code to analyze.")]
LANGUAGE = Annotated[str, Field(description="The programming language of the code. For example, 'python'.")]

SEARCH_QUERY = Annotated[
    str | None,
    Field(description="Only return repositories whose name or description contains this text, ignoring case."),
]
COMMIT_LIMIT = Annotated[int | None, Field(ge=1, description="The maximum number of commits to return. If not provided, all commits are returned.")]
