from textwrap import dedent
from typing import Self
from urllib.parse import quote

from pydantic import BaseModel, Field

from prompt_library_mcp.models.document import DocumentSummary


class MarkdownSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The level of the section.")
    section: str = Field(default="", description="The body of the section.")

    def render_text(self) -> str:
        heading = f"{'#' * self.level} {self.title}"
        if not self.section:
            return heading
        return f"{heading}\n\n{self.section.strip()}"


class MarkdownBuilder(BaseModel):
    sections: list[MarkdownSection] = Field(default_factory=list, description="The sections of the document.")

    def add_text_section(self, title: str, text: str | list[str], level: int = 1) -> Self:
        if not isinstance(text, list):
            text = [text]

        text_block = "\n".join([dedent(text) for text in text])

        self.sections.append(MarkdownSection(title=title, level=level, section=text_block))

        return self

    def add_list_section(self, title: str, items: list[str], level: int = 1) -> Self:
        list_block = "\n".join(f"- {item}" for item in items)

        self.sections.append(MarkdownSection(title=title, level=level, section=list_block))

        return self

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections) + "\n"


def link_target(path: str) -> str:
    return quote(path, safe="/#")


def render_index(title: str, documents: list[DocumentSummary], description: str | None = None, base_path: str | None = None) -> str:
    """Render a table of contents linking to every document, grouped by top-level category.

    Links are relative to the library root, or prefixed with `base_path` when the index lives elsewhere."""

    builder = MarkdownBuilder().add_text_section(title=title, text=description or "", level=1)

    by_category: dict[str, list[DocumentSummary]] = {}
    for document in sorted(documents, key=lambda document: document.path.lower()):
        category = document.categories[0] if document.categories else "General"
        by_category.setdefault(category, []).append(document)

    for category in sorted(by_category, key=str.lower):
        items: list[str] = []
        for document in by_category[category]:
            label = " / ".join([*document.categories[1:], document.title])
            prompt_count = f"{document.entry_count} prompt{'' if document.entry_count == 1 else 's'}"
            path = f"{base_path}/{document.path}" if base_path and base_path != "." else document.path
            items.append(f"[{label}]({link_target(path)}) ({prompt_count})")

        builder.add_list_section(title=category, items=items, level=2)

    return builder.render_text()
