from inline_snapshot import snapshot

from prompt_library_mcp.markdown.render import MarkdownBuilder, MarkdownSection, link_target, render_index
from prompt_library_mcp.models.document import DocumentSummary


def test_markdown_section_render_text():
    assert MarkdownSection(title="Title", level=2, section="\nBody\n").render_text() == "## Title\n\nBody"
    assert MarkdownSection(title="Empty").render_text() == "# Empty"


def test_markdown_builder():
    builder = (
        MarkdownBuilder()
        .add_text_section(title="Guide", text=["    Indented text.", "Second line."])
        .add_list_section(title="Items", items=["one", "two"], level=2)
    )

    assert builder.render_text() == snapshot(
        """\
# Guide

Indented text.
Second line.

## Items

- one
- two
"""
    )


def test_link_target():
    assert link_target("Python/SQL/Unit Test Generation.md") == "Python/SQL/Unit%20Test%20Generation.md"


def test_render_index():
    documents = [
        DocumentSummary(path="React/Debugging.md", title="React Debugging", categories=["React"], entry_count=1),
        DocumentSummary(path="Android/Code Generation.md", title="Code Generation", categories=["Android"], entry_count=2),
        DocumentSummary(path="Android/Kotlin/Coroutines.md", title="Coroutines", categories=["Android", "Kotlin"], entry_count=0),
        DocumentSummary(path="CONTRIBUTING.md", title="Contributing", categories=[], entry_count=0),
    ]

    assert render_index(title="Prompt Library", documents=documents, description="Prompts for coding assistants.") == snapshot(
        """\
# Prompt Library

Prompts for coding assistants.

## Android

- [Code Generation](Android/Code%20Generation.md) (2 prompts)
- [Kotlin / Coroutines](Android/Kotlin/Coroutines.md) (0 prompts)

## General

- [Contributing](CONTRIBUTING.md) (0 prompts)

## React

- [React Debugging](React/Debugging.md) (1 prompt)
"""
    )


def test_render_index_with_base_path():
    documents = [DocumentSummary(path="iOS/Debugging.md", title="iOS Debugging", categories=["iOS"], entry_count=3)]

    assert render_index(title="Prompts", documents=documents, base_path="../library").splitlines()[-1] == snapshot(
        "- [iOS Debugging](../library/iOS/Debugging.md) (3 prompts)"
    )
    assert render_index(title="Prompts", documents=documents, base_path=".").splitlines()[-1] == snapshot(
        "- [iOS Debugging](iOS/Debugging.md) (3 prompts)"
    )
