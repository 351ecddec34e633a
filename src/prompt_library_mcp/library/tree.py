from collections import defaultdict
from fnmatch import fnmatch
from pathlib import Path
from typing import Self

from pydantic import BaseModel, Field, field_validator

MARKDOWN_SUFFIXES = {".md", ".markdown"}

SKIPPED_DIRECTORIES = {"node_modules", "__pycache__"}


def matches_pattern(pattern: str, path: str) -> bool:
    """Match a glob against the full relative path, or against the file name alone if the glob has no slash."""

    if "/" not in pattern:
        return fnmatch(path.rsplit("/", 1)[-1], pattern) or fnmatch(path, pattern)

    return fnmatch(path, pattern)


def matches_include_exclude(path: str, include_patterns: list[str] | None, exclude_patterns: list[str] | None) -> bool:
    if exclude_patterns is not None:
        for exclude_pattern in exclude_patterns:
            if matches_pattern(pattern=exclude_pattern, path=path):
                return False

    if include_patterns is not None:
        for include_pattern in include_patterns:
            if matches_pattern(pattern=include_pattern, path=path):
                return True
        return False

    return True


def get_dir_and_file_from_path(path: str) -> tuple[str, str]:
    path_parts = path.split("/")
    directory_path = "/".join(path_parts[:-1])
    file_path = path_parts[-1]
    return directory_path, file_path


def is_skipped(relative: Path) -> bool:
    return any(part.startswith(".") or part in SKIPPED_DIRECTORIES for part in relative.parts[:-1])


class CategoryCount(BaseModel):
    category: str
    count: int

    @staticmethod
    def sort(entries: list["CategoryCount"]) -> list["CategoryCount"]:
        return sorted(entries, key=lambda x: (-x.count, x.category.lower()))


class LibraryTreeDirectory(BaseModel):
    path: str
    files: list[str]

    @property
    def file_paths(self) -> list[str]:
        return [f"{self.path}/{file}" for file in self.files]

    @property
    def count_files(self) -> int:
        return len(self.files)


class LibraryTree(BaseModel):
    directories: list[LibraryTreeDirectory] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list, description="The Markdown files at the root of the library.")

    @field_validator("directories")
    @classmethod
    def validate_directories(cls, v: list[LibraryTreeDirectory]) -> list[LibraryTreeDirectory]:
        return [directory for directory in v if directory.files]

    @classmethod
    def from_paths(cls, paths: list[str]) -> Self:
        directories: dict[str, LibraryTreeDirectory] = {}
        files: list[str] = []

        for path in sorted(paths, key=str.lower):
            directory_path, file_path = get_dir_and_file_from_path(path)

            if not directory_path:
                files.append(file_path)
                continue

            if directory_path not in directories:
                directories[directory_path] = LibraryTreeDirectory(path=directory_path, files=[])

            directories[directory_path].files.append(file_path)

        return cls(directories=sorted(directories.values(), key=lambda directory: directory.path.lower()), files=files)

    @classmethod
    def from_root(cls, root: Path, include_patterns: list[str] | None = None, exclude_patterns: list[str] | None = None) -> Self:
        """Walk the library root for Markdown files, skipping hidden directories."""

        paths: list[str] = []

        for candidate in root.rglob("*"):
            if candidate.suffix.lower() not in MARKDOWN_SUFFIXES or not candidate.is_file():
                continue

            relative = candidate.relative_to(root)

            if is_skipped(relative):
                continue

            relative_path = relative.as_posix()

            if matches_include_exclude(path=relative_path, include_patterns=include_patterns, exclude_patterns=exclude_patterns):
                paths.append(relative_path)

        return cls.from_paths(paths)

    def file_paths(self) -> list[str]:
        """Return all files in the tree."""
        all_file_paths: list[str] = list(self.files)

        for directory in self.directories:
            all_file_paths.extend(directory.file_paths)

        return all_file_paths

    @property
    def count_files(self) -> int:
        return len(self.files) + sum(directory.count_files for directory in self.directories)

    def count_categories(self) -> list[CategoryCount]:
        """Count the documents under each directory name, at any depth."""

        count_by_category: dict[str, int] = defaultdict(int)

        for directory in self.directories:
            for category in directory.path.split("/"):
                count_by_category[category] += directory.count_files

        return CategoryCount.sort([CategoryCount(category=category, count=count) for category, count in count_by_category.items()])
