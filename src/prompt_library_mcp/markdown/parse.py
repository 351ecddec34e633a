import re
from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from prompt_library_mcp.markdown.placeholders import placeholder_names
from prompt_library_mcp.models.document import Heading, Link, PromptDocument, PromptEntry

FENCE_OPEN_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
FENCE_CLOSE_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")
HEADING_PATTERN = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
LINK_PATTERN = re.compile(r"\[([^\[\]]*)\]\(\s*(<[^>]*>|[^)\s]+)(?:\s+(?:\"[^\"]*\"|'[^']*'))?\s*\)")
LINK_DEFINITION_PATTERN = re.compile(r"^ {0,3}\[([^\[\]]+)\]:[ \t]*(<[^>]*>|\S+)")
INLINE_CODE_PATTERN = re.compile(r"(`+)(?:(?!\1).)+?\1")
BLOCKQUOTE_PATTERN = re.compile(r"^\s*> ?")

FieldName = Literal["use_case", "prompt", "notes"]

FIELD_LABELS: dict[str, FieldName] = {
    "use case": "use_case",
    "use-case": "use_case",
    "scenario": "use_case",
    "prompt": "prompt",
    "notes": "notes",
    "note": "notes",
    "purpose": "notes",
}

_LABELS = "|".join(re.escape(label) for label in sorted(FIELD_LABELS, key=len, reverse=True))

BOLD_FIELD_PATTERN = re.compile(rf"^\s*(?:[-*+]\s+)?(?:\*\*|__)\s*({_LABELS})\s*:?\s*(?:\*\*|__)\s*:?\s*(.*)$", re.IGNORECASE)
PLAIN_FIELD_PATTERN = re.compile(rf"^\s*(?:[-*+]\s+)?({_LABELS})\s*:\s*(.*)$", re.IGNORECASE)

PROMPT_FENCE_LANGUAGES = {"", "text", "txt", "markdown", "md", "prompt"}


class FencedBlock(BaseModel):
    start_line: int = Field(description="The line number of the opening fence.")
    end_line: int = Field(description="The line number of the closing fence, or the last line if the fence is never closed.")
    language: str = Field(default="", description="The first word of the info string.")
    content: str


class FrontMatter(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    line_count: int = Field(default=0, description="The number of lines taken by the front matter, delimiters included.")


class Section(BaseModel):
    heading: Heading
    body: list[tuple[int, str]] = Field(default_factory=list, description="The line numbers and lines of the direct body.")


def scan_fences(lines: Sequence[str]) -> list[FencedBlock]:
    """Find the fenced code blocks of a document."""

    blocks: list[FencedBlock] = []

    index = 0
    while index < len(lines):
        opening = FENCE_OPEN_PATTERN.match(lines[index])

        # backtick fences may not have backticks in the info string
        if not opening or (opening.group(1)[0] == "`" and "`" in opening.group(2)):
            index += 1
            continue

        fence: str = opening.group(1)
        info: str = opening.group(2).strip()
        start = index

        index += 1
        while index < len(lines):
            closing = FENCE_CLOSE_PATTERN.match(lines[index])
            if closing and closing.group(1)[0] == fence[0] and len(closing.group(1)) >= len(fence):
                break
            index += 1

        end = min(index, len(lines) - 1)
        content_lines = lines[start + 1 : index]

        blocks.append(
            FencedBlock(
                start_line=start + 1,
                end_line=end + 1,
                language=info.split()[0].lower() if info else "",
                content="\n".join(content_lines),
            )
        )

        index += 1

    return blocks


def fenced_lines(blocks: Sequence[FencedBlock]) -> set[int]:
    return {line for block in blocks for line in range(block.start_line, block.end_line + 1)}


def split_front_matter(text: str) -> FrontMatter:
    """Read the YAML front matter at the start of a document, if there is one."""

    lines = text.splitlines()

    if not lines or lines[0].strip() != "---":
        return FrontMatter()

    for index in range(1, len(lines)):
        if lines[index].strip() in ("---", "..."):
            break
    else:
        # a lone thematic break
        return FrontMatter()

    raw = "\n".join(lines[1:index])
    line_count = index + 1

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        return FrontMatter(error=f"Invalid YAML front matter: {e}", line_count=line_count)

    if data is None:
        return FrontMatter(line_count=line_count)

    if not isinstance(data, dict):
        return FrontMatter(error=f"Front matter must be a mapping, got {type(data).__name__}", line_count=line_count)

    return FrontMatter(data={str(key): value for key, value in data.items()}, line_count=line_count)


def slugify(title: str) -> str:
    """Turn a heading into its anchor the way GitHub does."""

    text = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", title)
    text = text.strip().lower()
    text = re.sub(r"[^\w\- ]", "", text)
    return text.replace(" ", "-")


def parse_headings(text: str, fences: Sequence[FencedBlock] | None = None, skip_lines: int = 0) -> list[Heading]:
    lines = text.splitlines()

    if fences is None:
        fences = scan_fences(lines)

    excluded: set[int] = fenced_lines(fences)

    headings: list[Heading] = []
    slug_counts: dict[str, int] = {}

    for line_number, line in enumerate(lines, start=1):
        if line_number <= skip_lines or line_number in excluded:
            continue

        if not (match := HEADING_PATTERN.match(line)):
            continue

        title = (match.group(2) or "").strip()
        base_slug = slugify(title)

        slug = base_slug
        if base_slug in slug_counts:
            slug_counts[base_slug] += 1
            slug = f"{base_slug}-{slug_counts[base_slug]}"
        else:
            slug_counts[base_slug] = 0

        headings.append(Heading(level=len(match.group(1)), title=title, slug=slug, line=line_number))

    return headings


def parse_links(text: str, fences: Sequence[FencedBlock] | None = None, skip_lines: int = 0) -> list[Link]:
    """Find inline links, images and reference definitions (`[ref]: path.md`) outside of code."""

    lines = text.splitlines()

    if fences is None:
        fences = scan_fences(lines)

    excluded: set[int] = fenced_lines(fences)

    links: list[Link] = []

    for line_number, line in enumerate(lines, start=1):
        if line_number <= skip_lines or line_number in excluded:
            continue

        if definition := LINK_DEFINITION_PATTERN.match(line):
            links.append(Link(text=definition.group(1), target=definition.group(2).strip("<>"), line=line_number))
            continue

        if "](" not in line:
            continue

        code_free_line = INLINE_CODE_PATTERN.sub(lambda match: " " * len(match.group(0)), line)

        for match in LINK_PATTERN.finditer(code_free_line):
            target = match.group(2).strip("<>")
            links.append(Link(text=match.group(1), target=target, line=line_number))

    return links


def match_field_label(line: str) -> tuple[FieldName, str] | None:
    """If the line starts a labelled field (`**Prompt:** ...`), return the field and the rest of the line."""

    match = BOLD_FIELD_PATTERN.match(line) or PLAIN_FIELD_PATTERN.match(line)

    if not match:
        return None

    return FIELD_LABELS[match.group(1).lower()], match.group(2)


def heading_field(title: str) -> FieldName | None:
    """Headings such as `#### Prompt` or `### Use Case:` name a field of their parent section."""

    label = title.strip().strip("*_").strip().rstrip(":").strip().lower()

    return FIELD_LABELS.get(label)


def clean_field_text(text: str) -> str | None:
    text = text.strip()
    return text or None


def extract_prompt_text(content: str) -> str | None:
    """A prompt field holds either a fenced block or (optionally quoted) prose."""

    lines = content.splitlines()

    if blocks := scan_fences(lines):
        return clean_field_text(blocks[0].content)

    return clean_field_text("\n".join(BLOCKQUOTE_PATTERN.sub("", line) for line in lines))


class _EntryBuilder:
    def __init__(self, section: Section):
        self.section: Section = section
        self.fields: dict[FieldName, list[str]] = {}
        self.fallback_prompt: str | None = None

    def add_field(self, name: FieldName, text: str) -> None:
        self.fields.setdefault(name, []).append(text)

    def field(self, name: FieldName) -> str | None:
        if name not in self.fields:
            return None
        if name == "prompt":
            return extract_prompt_text(self.fields[name][0])
        return clean_field_text("\n\n".join(self.fields[name]))

    def read_body(self, fences: Sequence[FencedBlock]) -> None:
        """Collect labelled fields from the direct body of the section."""

        excluded = fenced_lines(fences)
        fence_starts = {block.start_line for block in fences}

        current: FieldName | None = None
        current_lines: list[str] = []

        for line_number, line in self.section.body:
            # only a prompt may own a fenced block
            if line_number in fence_starts and current is not None and current != "prompt":
                self.add_field(current, "\n".join(current_lines))
                current = None

            label = None if line_number in excluded else match_field_label(line)

            if label is not None:
                if current is not None:
                    self.add_field(current, "\n".join(current_lines))
                current, rest = label
                current_lines = [rest]
                continue

            if current is not None:
                current_lines.append(line)

        if current is not None:
            self.add_field(current, "\n".join(current_lines))

        body_lines = {line_number for line_number, _ in self.section.body}

        for block in fences:
            if block.start_line in body_lines and block.language in PROMPT_FENCE_LANGUAGES and block.content.strip():
                self.fallback_prompt = block.content.strip()
                break

    def build(self, document_path: str) -> PromptEntry | None:
        heading = self.section.heading

        prompt = self.field("prompt") or self.fallback_prompt
        use_case = self.field("use_case")

        if prompt is None and use_case is None:
            return None

        return PromptEntry(
            id=f"{document_path}#{heading.slug}",
            document=document_path,
            title=heading.title,
            slug=heading.slug,
            level=heading.level,
            line=heading.line,
            use_case=use_case,
            prompt=prompt,
            notes=self.field("notes"),
            placeholders=placeholder_names(prompt) if prompt else [],
        )


def split_sections(lines: Sequence[str], headings: Sequence[Heading]) -> list[Section]:
    sections: list[Section] = []

    for index, heading in enumerate(headings):
        end = headings[index + 1].line - 1 if index + 1 < len(headings) else len(lines)
        body = [(line_number, lines[line_number - 1]) for line_number in range(heading.line + 1, end + 1)]
        sections.append(Section(heading=heading, body=body))

    return sections


def parse_entries(document_path: str, text: str, headings: Sequence[Heading], fences: Sequence[FencedBlock]) -> list[PromptEntry]:
    """Find the prompt entries of a document.

    A section is an entry when it has a prompt (labelled, or a plain fenced block) or a use case. Sections
    headed by a field name (`#### Prompt`) contribute that field to the enclosing section instead."""

    lines = text.splitlines()

    builders: list[_EntryBuilder] = []
    stack: list[_EntryBuilder] = []

    for section in split_sections(lines, headings):
        level = section.heading.level

        while stack and stack[-1].section.heading.level >= level:
            stack.pop()

        if (field := heading_field(section.heading.title)) and stack:
            stack[-1].add_field(field, "\n".join(line for _, line in section.body))
            continue

        builder = _EntryBuilder(section)
        builder.read_body(fences)
        builders.append(builder)
        stack.append(builder)

    return [entry for builder in builders if (entry := builder.build(document_path)) is not None]


def document_title(path: str, headings: Sequence[Heading]) -> str:
    for heading in headings:
        if heading.level == 1 and heading.title:
            return heading.title

    for heading in headings:
        if heading.title:
            return heading.title

    return PurePosixPath(path).stem


def parse_document(path: str, text: str) -> PromptDocument:
    """Parse a Markdown document. `path` is the POSIX path relative to the library root."""

    lines = text.splitlines()

    front_matter: FrontMatter = split_front_matter(text)

    fences: list[FencedBlock] = [block for block in scan_fences(lines) if block.start_line > front_matter.line_count]

    headings: list[Heading] = parse_headings(text, fences=fences, skip_lines=front_matter.line_count)

    title = front_matter.data.get("title")

    return PromptDocument(
        path=path,
        title=title if isinstance(title, str) and title else document_title(path, headings),
        categories=list(PurePosixPath(path).parent.parts),
        front_matter=front_matter.data,
        front_matter_error=front_matter.error,
        headings=headings,
        links=parse_links(text, fences=fences, skip_lines=front_matter.line_count),
        entries=parse_entries(path, text, headings, fences),
        text=text,
    )
