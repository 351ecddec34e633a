"""Documentation consistency checks for a prompt library."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path, PurePosixPath
from typing import ClassVar
from urllib.parse import unquote

from typing_extensions import override

from prompt_library_mcp.library.loader import PromptLibrary
from prompt_library_mcp.markdown.placeholders import find_unbalanced_brackets
from prompt_library_mcp.models.document import Link, PromptDocument
from prompt_library_mcp.models.lint import LintIssue, Severity


class BaseLintRule(ABC):
    """A rule checks the loaded library and yields the issues it finds."""

    id: ClassVar[str]
    severity: ClassVar[Severity]
    description: ClassVar[str]

    @abstractmethod
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]: ...

    def issue(self, document: PromptDocument | str, message: str, line: int | None = None) -> LintIssue:
        path = document if isinstance(document, str) else document.path
        return LintIssue(rule=self.id, severity=self.severity, path=path, line=line, message=message)


def resolve_link(library: PromptLibrary, document: PromptDocument, link: Link) -> tuple[Path, str | None]:
    """Resolve a relative link to a filesystem path and the fragment it points to."""

    target_path, fragment = link.split_target()
    target_path = unquote(target_path)

    if target_path.startswith("/"):
        relative = PurePosixPath(target_path.lstrip("/"))
    else:
        relative = PurePosixPath(document.path).parent / target_path

    return (library.root / relative).resolve(), fragment


def relative_to_root(library: PromptLibrary, path: Path) -> str | None:
    if not path.is_relative_to(library.root):
        return None
    return path.relative_to(library.root).as_posix()


class BrokenLinkRule(BaseLintRule):
    id = "broken-link"
    severity = Severity.ERROR
    description = "Relative links resolve to existing files, and anchors to existing headings."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        for document in library.documents:
            for link in document.links:
                if link.is_external:
                    continue

                if link.is_anchor:
                    fragment = unquote(link.target[1:]).lower()
                    if fragment and fragment not in document.slugs:
                        yield self.issue(document, f"Anchor '{link.target}' does not match any heading", line=link.line)
                    continue

                resolved, fragment = resolve_link(library, document, link)

                if not resolved.exists():
                    yield self.issue(document, f"Link target '{link.target}' does not exist", line=link.line)
                    continue

                if not fragment:
                    continue

                relative = relative_to_root(library, resolved)
                target_document = library.find_document(relative) if relative else None

                if target_document is not None and unquote(fragment).lower() not in target_document.slugs:
                    yield self.issue(
                        document, f"Anchor '#{fragment}' does not match any heading in {target_document.path}", line=link.line
                    )


class MissingIndexRule(BaseLintRule):
    id = "missing-index"
    severity = Severity.WARNING
    description = "The library has an index document."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        if library.index is None:
            yield self.issue(library.index_name, "The library has no index document")


class UnindexedDocumentRule(BaseLintRule):
    id = "unindexed-document"
    severity = Severity.WARNING
    description = "Every document is linked from the index."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        if (index := library.index) is None:
            return

        linked: set[str] = set()

        for link in index.links:
            if link.is_external or link.is_anchor:
                continue

            resolved, _ = resolve_link(library, index, link)

            if relative := relative_to_root(library, resolved):
                linked.add(relative)

        for document in library.documents:
            if document.path == index.path or document.path in linked:
                continue

            yield self.issue(document, f"The document is not linked from {index.path}")


class HeadingSkipRule(BaseLintRule):
    id = "heading-skip"
    severity = Severity.ERROR
    description = "Heading levels never increase by more than one."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        for document in library.documents:
            previous_level = 0

            for heading in document.headings:
                if heading.level > previous_level + 1:
                    if previous_level == 0:
                        message = f"The first heading is h{heading.level}, expected h1"
                    else:
                        message = f"Heading level jumps from h{previous_level} to h{heading.level}"
                    yield self.issue(document, message, line=heading.line)

                previous_level = heading.level


class UnbalancedBracketsRule(BaseLintRule):
    id = "unbalanced-brackets"
    severity = Severity.ERROR
    description = "Every prompt has balanced square brackets."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        for document in library.documents:
            for entry in document.entries:
                if entry.prompt is None:
                    continue

                for bracket_issue in find_unbalanced_brackets(entry.prompt):
                    yield self.issue(
                        document,
                        f"Prompt '{entry.title}', line {bracket_issue.line}: {bracket_issue.message}",
                        line=entry.line,
                    )


class MissingPromptRule(BaseLintRule):
    id = "missing-prompt"
    severity = Severity.WARNING
    description = "Every prompt entry has a prompt block."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        for document in library.documents:
            for entry in document.entries:
                if entry.prompt is None:
                    yield self.issue(document, f"'{entry.title}' has a use case but no prompt", line=entry.line)


class DuplicateHeadingRule(BaseLintRule):
    id = "duplicate-heading"
    severity = Severity.WARNING
    description = "Prompt titles are unique within a document."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        for document in library.documents:
            first_seen: dict[str, int] = {}

            for entry in document.entries:
                key = entry.title.strip().lower()

                if key in first_seen:
                    yield self.issue(document, f"'{entry.title}' repeats the prompt on line {first_seen[key]}", line=entry.line)
                    continue

                first_seen[key] = entry.line


class FrontMatterRule(BaseLintRule):
    id = "front-matter"
    severity = Severity.ERROR
    description = "Front matter, when present, is a valid YAML mapping."

    @override
    def check(self, library: PromptLibrary) -> Iterator[LintIssue]:
        for document in library.documents:
            if document.front_matter_error:
                yield self.issue(document, document.front_matter_error, line=1)


ALL_RULES: list[BaseLintRule] = [
    BrokenLinkRule(),
    MissingIndexRule(),
    UnindexedDocumentRule(),
    HeadingSkipRule(),
    UnbalancedBracketsRule(),
    MissingPromptRule(),
    DuplicateHeadingRule(),
    FrontMatterRule(),
]

RULES_BY_ID: dict[str, BaseLintRule] = {rule.id: rule for rule in ALL_RULES}
