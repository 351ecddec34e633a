import difflib
from pathlib import Path, PurePosixPath
from typing import Self

from anyio import open_file, to_thread
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field, field_validator

from prompt_library_mcp.library.tree import CategoryCount, LibraryTree
from prompt_library_mcp.markdown.parse import parse_document
from prompt_library_mcp.models.document import DocumentSummary, PromptDocument, PromptEntry, PromptSummary
from prompt_library_mcp.servers.shared.errors import (
    DocumentNotFoundError,
    InvalidDocumentPathError,
    LibraryRootMissingError,
    PromptNotFoundError,
)
from prompt_library_mcp.utilities.settings import DEFAULT_INDEX_NAME

logger = get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 20


class LibraryStatistics(BaseModel):
    root: str
    documents: int
    prompts: int
    placeholders: int = Field(description="The number of distinct placeholder names across all prompts.")
    categories: list[CategoryCount]


async def read_document(root: Path, path: str) -> PromptDocument:
    async with await open_file(file=root / path, encoding="utf-8", errors="replace") as file:
        text: str = await file.read()

    return parse_document(path=path, text=text)


class PromptLibrary(BaseModel):
    root: Path
    index_name: str = DEFAULT_INDEX_NAME
    tree: LibraryTree = Field(default_factory=LibraryTree)
    documents: list[PromptDocument] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def validate_root(cls, root: Path) -> Path:
        return root.resolve()

    @classmethod
    async def load(
        cls,
        root: Path,
        include_patterns: list[str] | None = None,
        exclude_patterns: list[str] | None = None,
        index_name: str = DEFAULT_INDEX_NAME,
    ) -> Self:
        """Load every Markdown document below the root."""

        root = root.expanduser().resolve()

        if not root.is_dir():
            raise LibraryRootMissingError(root=str(root))

        logger.info(f"Loading prompt library from {root}")

        tree: LibraryTree = await to_thread.run_sync(
            lambda: LibraryTree.from_root(root=root, include_patterns=include_patterns, exclude_patterns=exclude_patterns)
        )

        documents: list[PromptDocument] = [await read_document(root=root, path=path) for path in tree.file_paths()]

        for document in documents:
            if document.front_matter_error:
                logger.warning(f"Could not read the front matter of {document.path}: {document.front_matter_error}")

        library = cls(root=root, index_name=index_name, tree=tree, documents=documents)

        logger.info(f"Loaded {len(documents)} documents with {len(library.entries())} prompts from {root}")

        return library

    @property
    def index(self) -> PromptDocument | None:
        return self._documents_by_path().get(self.index_name)

    def _documents_by_path(self) -> dict[str, PromptDocument]:
        return {document.path: document for document in self.documents}

    def normalize_path(self, path: str) -> str:
        """Turn a user provided path into the relative POSIX path of a document."""

        candidate = (self.root / path.strip().lstrip("/")).resolve()

        if not candidate.is_relative_to(self.root):
            raise InvalidDocumentPathError(path=path, root=str(self.root))

        return candidate.relative_to(self.root).as_posix()

    def get_document(self, path: str) -> PromptDocument:
        relative_path = self.normalize_path(path)

        if document := self._documents_by_path().get(relative_path):
            return document

        raise DocumentNotFoundError(path=path)

    def find_document(self, path: str) -> PromptDocument | None:
        return self._documents_by_path().get(PurePosixPath(path).as_posix())

    def list_documents(self, category: str | None = None) -> list[DocumentSummary]:
        return [
            DocumentSummary.from_document(document)
            for document in self.documents
            if category is None or document.in_category(category)
        ]

    def count_categories(self) -> list[CategoryCount]:
        return self.tree.count_categories()

    def entries(self, category: str | None = None) -> list[PromptEntry]:
        return [
            entry
            for document in self.documents
            if category is None or document.in_category(category)
            for entry in document.entries
        ]

    def get_entry(self, prompt_id: str) -> PromptEntry:
        entries: dict[str, PromptEntry] = {entry.id: entry for entry in self.entries()}

        if entry := entries.get(prompt_id):
            return entry

        close_matches = difflib.get_close_matches(prompt_id, list(entries), n=1)

        raise PromptNotFoundError(prompt_id=prompt_id, suggestion=close_matches[0] if close_matches else None)

    def search(
        self,
        keywords: set[str] | list[str],
        category: str | None = None,
        require_all: bool = True,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[PromptSummary]:
        """Find prompts whose title, use case, prompt or notes contain the keywords (case-insensitive)."""

        lowered: list[str] = sorted({keyword.lower().strip() for keyword in keywords if keyword.strip()})

        results: list[PromptSummary] = []

        for entry in self.entries(category=category):
            if len(results) >= limit:
                break

            searchable = entry.searchable_text()

            matches = [keyword in searchable for keyword in lowered]

            if not lowered or (all(matches) if require_all else any(matches)):
                results.append(PromptSummary.from_entry(entry))

        return results

    def statistics(self) -> LibraryStatistics:
        entries = self.entries()

        return LibraryStatistics(
            root=str(self.root),
            documents=len(self.documents),
            prompts=len(entries),
            placeholders=len({name for entry in entries for name in entry.placeholders}),
            categories=self.count_categories(),
        )
