import asyncio
from logging import Logger
from pathlib import Path
from typing import Any

from fastmcp import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger

from prompt_library_mcp.library.loader import DEFAULT_SEARCH_LIMIT, LibraryStatistics, PromptLibrary
from prompt_library_mcp.library.tree import CategoryCount
from prompt_library_mcp.linting.runner import lint_library
from prompt_library_mcp.markdown.placeholders import extract_placeholders, fill_placeholders
from prompt_library_mcp.markdown.render import render_index
from prompt_library_mcp.models.document import DocumentSummary, FilledPrompt, Placeholder, PromptDocument, PromptEntry, PromptSummary
from prompt_library_mcp.models.lint import LintReport
from prompt_library_mcp.servers.shared.annotations import (
    CATEGORY,
    DOCUMENT_PATH,
    IGNORE_RULES,
    KEYWORDS,
    LIMIT,
    PLACEHOLDER_VALUES,
    PROMPT_ID,
    REQUIRE_ALL_KEYWORDS,
    SELECT_RULES,
    TEXT,
)
from prompt_library_mcp.utilities.settings import DEFAULT_INDEX_NAME

DEFAULT_INDEX_TITLE = "Prompt Library"


class LibraryServer:
    """Server for browsing, filling and checking a library of Markdown prompt templates."""

    def __init__(
        self,
        library_root: Path,
        logger: Logger | None = None,
        include_patterns: list[str] | None = None,
        exclude_patterns: list[str] | None = None,
        index_name: str = DEFAULT_INDEX_NAME,
    ):
        self.library_root: Path = library_root
        self.logger: Logger = logger or get_logger(name=__name__)
        self.include_patterns: list[str] | None = include_patterns
        self.exclude_patterns: list[str] | None = exclude_patterns
        self.index_name: str = index_name
        self.library: PromptLibrary | None = None
        self.library_lock: asyncio.Lock = asyncio.Lock()

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.list_documents))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.list_categories))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_document))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.search_prompts))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.get_prompt))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.extract_placeholders))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.fill_prompt))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.lint_library))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.build_index))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.reload_library))
        return fastmcp

    async def _load_library(self) -> PromptLibrary:
        return await PromptLibrary.load(
            root=self.library_root,
            include_patterns=self.include_patterns,
            exclude_patterns=self.exclude_patterns,
            index_name=self.index_name,
        )

    async def _prepare_library(self) -> PromptLibrary:
        if self.library is not None:
            return self.library

        async with self.library_lock:
            if self.library is not None:
                return self.library

            self.library = await self._load_library()

            return self.library

    async def list_documents(self, category: CATEGORY = None) -> list[DocumentSummary]:
        """List the documents of the prompt library, optionally limited to a category."""

        library: PromptLibrary = await self._prepare_library()

        return library.list_documents(category=category)

    async def list_categories(self) -> list[CategoryCount]:
        """List the categories (technology domains and activity types) of the library with their document counts."""

        library: PromptLibrary = await self._prepare_library()

        return library.count_categories()

    async def get_document(self, path: DOCUMENT_PATH) -> PromptDocument:
        """Get a document of the library, including its raw text, headings, links and prompts."""

        library: PromptLibrary = await self._prepare_library()

        return library.get_document(path=path)

    async def search_prompts(
        self,
        keywords: KEYWORDS,
        category: CATEGORY = None,
        require_all: REQUIRE_ALL_KEYWORDS = True,
        limit: LIMIT = DEFAULT_SEARCH_LIMIT,
    ) -> list[PromptSummary]:
        """Search the prompts of the library by keywords. Matching is case-insensitive."""

        library: PromptLibrary = await self._prepare_library()

        return library.search(keywords=keywords, category=category, require_all=require_all, limit=limit)

    async def get_prompt(self, prompt_id: PROMPT_ID) -> PromptEntry:
        """Get a prompt with its use case, notes and placeholders."""

        library: PromptLibrary = await self._prepare_library()

        return library.get_entry(prompt_id=prompt_id)

    async def extract_placeholders(self, text: TEXT) -> list[Placeholder]:
        """List the bracket-delimited placeholders found in a piece of text."""

        return extract_placeholders(text)

    async def fill_prompt(self, prompt_id: PROMPT_ID, values: PLACEHOLDER_VALUES) -> FilledPrompt:
        """Substitute values into the placeholders of a prompt. Placeholders without a value are left in place."""

        entry: PromptEntry = await self.get_prompt(prompt_id=prompt_id)

        filled: FilledPrompt = fill_placeholders(entry.prompt or "", values)

        if filled.unfilled:
            self.logger.info(f"Prompt {prompt_id} still has unfilled placeholders: {filled.unfilled}")

        return filled

    async def lint_library(self, select: SELECT_RULES = None, ignore: IGNORE_RULES = None) -> LintReport:
        """Check the library for broken links, skipped heading levels, unbalanced placeholder brackets and other issues."""

        library: PromptLibrary = await self._prepare_library()

        return lint_library(library=library, select=select, ignore=ignore)

    async def build_index(self, title: str = DEFAULT_INDEX_TITLE) -> str:
        """Render a Markdown table of contents linking to every document of the library."""

        library: PromptLibrary = await self._prepare_library()

        documents = [document for document in library.list_documents() if document.path != library.index_name]

        return render_index(title=title, documents=documents)

    async def reload_library(self) -> LibraryStatistics:
        """Reload the library from disk and return its statistics."""

        async with self.library_lock:
            library: PromptLibrary = await self._load_library()
            self.library = library

        self.logger.info(f"Reloaded prompt library from {library.root}")

        return library.statistics()
