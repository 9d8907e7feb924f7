from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from fnmatch import fnmatch
from typing import Literal, Self

from pydantic import BaseModel, Field

from gitverse.models.repository.records import FileRecord

ROOT_PATH = "/"

NodeKind = Literal["file", "folder"]


def tokenize_path(path: str) -> list[str]:
    """Split a repository path into its non-empty segments.

    Leading, trailing and repeated separators are ignored, so `/src//app.ts/` yields `["src", "app.ts"]`."""

    return [segment for segment in path.split("/") if segment]


def node_path(segments: Sequence[str]) -> str:
    return ROOT_PATH + "/".join(segments)


def get_file_extension(file_path: str) -> str | None:
    file_name = file_path.rsplit("/", 1)[-1]
    if "." not in file_name:
        return None
    return file_name.split(".")[-1]


def matches_include_exclude(full_path: str, include_patterns: list[str] | None, exclude_patterns: list[str] | None) -> bool:
    if exclude_patterns is not None:
        for exclude_pattern in exclude_patterns:
            if fnmatch(full_path, exclude_pattern):
                return False

    if include_patterns is not None:
        return any(fnmatch(full_path, include_pattern) for include_pattern in include_patterns)

    return True


class FileExtensionCount(BaseModel):
    extension: str
    count: int

    @staticmethod
    def sort_and_truncate(entries: list["FileExtensionCount"], top_n: int = 50) -> list["FileExtensionCount"]:
        return sorted(entries, key=lambda x: x.count, reverse=True)[:top_n]


class TreeNode(BaseModel):
    """A node of a repository file tree. Folders own their children, files own a reference to their record."""

    name: str = Field(description="The path segment this node represents.")
    kind: NodeKind = Field(description="Whether the node is a file or a folder.")
    path: str = Field(description="The path from the root to this node, always starting with `/`.")
    size: int | None = Field(default=None, description="The size of the file in bytes. Only set for files.")
    file: FileRecord | None = Field(default=None, description="The record the file node was built from. Only set for files.")
    children: dict[str, "TreeNode"] | None = Field(
        default=None, description="The children of the folder, keyed by name, in insertion order. Only set for folders."
    )

    @classmethod
    def new_folder(cls, name: str, path: str) -> Self:
        return cls(name=name, kind="folder", path=path, children={})

    @classmethod
    def new_file(cls, name: str, path: str, file: FileRecord) -> Self:
        return cls(name=name, kind="file", path=path, size=file.size, file=file)

    @property
    def is_folder(self) -> bool:
        return self.kind == "folder"

    @property
    def depth(self) -> int:
        return len(tokenize_path(self.path))

    def child_folder(self, name: str, path: str) -> "TreeNode":
        """Return the folder child with the given name, creating it (or replacing a file of the same name) if needed."""

        if self.children is None:
            self.children = {}

        existing = self.children.get(name)
        if existing is not None and existing.is_folder:
            return existing

        folder = TreeNode.new_folder(name=name, path=path)
        self.children[name] = folder
        return folder

    def iter_nodes(self) -> Iterator["TreeNode"]:
        """Iterate over this node and all of its descendants, depth first, in insertion order."""

        yield self
        for child in (self.children or {}).values():
            yield from child.iter_nodes()

    def iter_files(self) -> Iterator["TreeNode"]:
        return (node for node in self.iter_nodes() if node.kind == "file")

    def count_nodes(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def file_paths(self) -> list[str]:
        """Return the repository-relative paths of all files below this node."""

        return [node.path.removeprefix(ROOT_PATH) for node in self.iter_files()]

    def find(self, path: str) -> "TreeNode | None":
        current: TreeNode = self
        for segment in tokenize_path(path):
            if not current.children or segment not in current.children:
                return None
            current = current.children[segment]
        return current

    def count_file_extensions(self, top_n: int = 50) -> list[FileExtensionCount]:
        count_by_extension: dict[str, int] = defaultdict(int)

        for node in self.iter_files():
            if extension := get_file_extension(node.name):
                count_by_extension[extension] += 1

        return FileExtensionCount.sort_and_truncate(
            entries=[FileExtensionCount(extension=extension, count=count) for extension, count in count_by_extension.items()],
            top_n=top_n,
        )

    def prune(self, depth: int) -> "TreeNode":
        """Return a copy of the tree without nodes deeper than `depth`. Depth 0 is the root's direct children."""

        if not self.is_folder:
            return self.model_copy()

        children: dict[str, TreeNode] = {}
        for name, child in (self.children or {}).items():
            if child.depth > depth + 1:
                continue
            children[name] = child.prune(depth=depth) if child.is_folder else child.model_copy()

        return self.model_copy(update={"children": children})

    def filter(self, include_patterns: list[str] | None, exclude_patterns: list[str] | None) -> "TreeNode":
        """Return a copy of the tree keeping only the files matching the patterns, and the folders that still hold files."""

        children: dict[str, TreeNode] = {}
        for name, child in (self.children or {}).items():
            if child.is_folder:
                filtered = child.filter(include_patterns=include_patterns, exclude_patterns=exclude_patterns)
                if filtered.children:
                    children[name] = filtered
                continue

            if matches_include_exclude(
                full_path=child.path.removeprefix(ROOT_PATH), include_patterns=include_patterns, exclude_patterns=exclude_patterns
            ):
                children[name] = child.model_copy()

        return self.model_copy(update={"children": children})


def build_file_tree(files: Iterable[FileRecord], name: str = "root") -> TreeNode:
    """Fold a collection of file records into a single tree rooted at `/`.

    Folders are created on demand and shared between files, children keep their first-insertion order.
    When two records resolve to the same path the later record replaces the earlier one in place."""

    root = TreeNode.new_folder(name=name, path=ROOT_PATH)

    for file in files:
        segments = tokenize_path(file.path)
        if not segments:
            continue

        current = root
        for index, segment in enumerate(segments[:-1]):
            current = current.child_folder(name=segment, path=node_path(segments[: index + 1]))

        file_name = segments[-1]
        if current.children is None:
            current.children = {}
        current.children[file_name] = TreeNode.new_file(name=file_name, path=node_path(segments), file=file)

    return root
