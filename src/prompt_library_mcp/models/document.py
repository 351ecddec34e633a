from typing import Any, Self

from pydantic import BaseModel, Field, computed_field


class Heading(BaseModel):
    level: int = Field(description="The level of the heading, from 1 to 6.")
    title: str = Field(description="The text of the heading.")
    slug: str = Field(description="The anchor of the heading, unique within the document.")
    line: int = Field(description="The line number of the heading.")


class Link(BaseModel):
    text: str = Field(description="The text of the link.")
    target: str = Field(description="The target of the link as written in the document.")
    line: int = Field(description="The line number of the link.")

    @property
    def is_external(self) -> bool:
        return ":" in self.target.split("/")[0] or self.target.startswith("//")

    @property
    def is_anchor(self) -> bool:
        return self.target.startswith("#")

    def split_target(self) -> tuple[str, str | None]:
        """Split the target into the path and the fragment, dropping any query string."""
        path, _, fragment = self.target.partition("#")
        path = path.split("?")[0]
        return path, fragment or None


class Placeholder(BaseModel):
    name: str = Field(description="The name of the placeholder, without the brackets.")
    line: int = Field(description="The line number of the placeholder in the scanned text.")
    column: int = Field(description="The column of the opening bracket in the scanned text.")


class PromptEntry(BaseModel):
    id: str = Field(description="The id of the prompt, made of the document path and the heading anchor.")
    document: str = Field(description="The path of the document containing the prompt.")
    title: str = Field(description="The heading of the prompt.")
    slug: str = Field(description="The anchor of the heading.")
    level: int = Field(description="The level of the heading.")
    line: int = Field(description="The line number of the heading.")
    use_case: str | None = Field(default=None, description="The use case or scenario the prompt is meant for.")
    prompt: str | None = Field(default=None, description="The body of the prompt, with placeholders left in place.")
    notes: str | None = Field(default=None, description="Notes or the purpose of the prompt.")
    placeholders: list[str] = Field(default_factory=list, description="The placeholders of the prompt, in order of first appearance.")

    def searchable_text(self) -> str:
        return "\n".join(part for part in (self.title, self.use_case, self.prompt, self.notes) if part).lower()


class PromptSummary(BaseModel):
    id: str
    title: str
    use_case: str | None = None
    placeholders: list[str] = Field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: PromptEntry) -> Self:
        return cls(id=entry.id, title=entry.title, use_case=entry.use_case, placeholders=entry.placeholders)


class PromptDocument(BaseModel):
    path: str = Field(description="The path of the document relative to the library root.")
    title: str = Field(description="The title of the document.")
    categories: list[str] = Field(default_factory=list, description="The directories the document is grouped under.")
    front_matter: dict[str, Any] = Field(default_factory=dict, description="The YAML front matter of the document.")
    front_matter_error: str | None = Field(default=None, description="Why the front matter could not be read, if it could not.")
    headings: list[Heading] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    entries: list[PromptEntry] = Field(default_factory=list)
    text: str = Field(description="The raw text of the document.")

    @property
    def slugs(self) -> set[str]:
        return {heading.slug for heading in self.headings}

    def in_category(self, category: str) -> bool:
        return category.lower() in (existing.lower() for existing in self.categories)


class DocumentSummary(BaseModel):
    path: str
    title: str
    categories: list[str]
    entry_count: int

    @classmethod
    def from_document(cls, document: PromptDocument) -> Self:
        return cls(path=document.path, title=document.title, categories=document.categories, entry_count=len(document.entries))


class FilledPrompt(BaseModel):
    text: str = Field(description="The prompt with the provided values substituted.")
    filled: list[str] = Field(default_factory=list, description="The placeholders that were substituted.")
    unfilled: list[str] = Field(default_factory=list, description="The placeholders left in the text because no value was given.")
    unused: list[str] = Field(default_factory=list, description="The provided values that matched no placeholder.")

    @computed_field
    @property
    def complete(self) -> bool:
        return not self.unfilled
