"""Bracket-delimited placeholders such as `[FEATURE_NAME]` in prompt text.

Placeholders are upper-case tokens in square brackets. Words may be joined by
single spaces or hyphens (`[API ENDPOINT]`, `[HTTP-METHOD]`). Link syntax
(`[TEXT](url)`, `[TEXT][ref]`) and escaped brackets are not placeholders.
"""

import re
from collections.abc import Mapping

from pydantic import BaseModel, Field

from prompt_library_mcp.models.document import FilledPrompt, Placeholder

PLACEHOLDER_PATTERN = re.compile(r"(?<!\\)\[([A-Z][A-Z0-9_]*(?:[ \-][A-Z0-9_]+)*)\](?![(\[])")


class BracketIssue(BaseModel):
    line: int = Field(description="The line number of the bracket in the scanned text.")
    column: int = Field(description="The column of the bracket in the scanned text.")
    bracket: str = Field(description="The unbalanced bracket character.")

    @property
    def message(self) -> str:
        if self.bracket == "[":
            return f"Unterminated '[' at column {self.column}"
        return f"Unmatched ']' at column {self.column}"


def normalize_name(name: str) -> str:
    name = name.strip()
    if name.startswith("[") and name.endswith("]"):
        name = name[1:-1]
    return name.strip()


def extract_placeholders(text: str) -> list[Placeholder]:
    """Return every placeholder occurrence in the text."""

    placeholders: list[Placeholder] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        placeholders.extend(
            Placeholder(name=match.group(1), line=line_number, column=match.start() + 1) for match in PLACEHOLDER_PATTERN.finditer(line)
        )

    return placeholders


def placeholder_names(text: str) -> list[str]:
    """Return the unique placeholder names in order of first appearance."""

    return list(dict.fromkeys(placeholder.name for placeholder in extract_placeholders(text)))


def find_unbalanced_brackets(text: str) -> list[BracketIssue]:
    """Find square brackets closed without being opened, or still open at the end of the text.

    Brackets may span lines, so multi-line lists and arrays in code samples balance."""

    issues: list[BracketIssue] = []
    open_brackets: list[tuple[int, int]] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        escaped = False

        for column, character in enumerate(line, start=1):
            if escaped:
                escaped = False
                continue
            if character == "\\":
                escaped = True
                continue
            if character == "[":
                open_brackets.append((line_number, column))
            elif character == "]":
                if open_brackets:
                    open_brackets.pop()
                else:
                    issues.append(BracketIssue(line=line_number, column=column, bracket="]"))

    issues.extend(BracketIssue(line=open_line, column=open_column, bracket="[") for open_line, open_column in open_brackets)

    return sorted(issues, key=lambda issue: (issue.line, issue.column))


def fill_placeholders(text: str, values: Mapping[str, str]) -> FilledPrompt:
    """Substitute the provided values into the text.

    Placeholders without a value are left in place and reported as unfilled."""

    normalized: dict[str, str] = {normalize_name(name): value for name, value in values.items()}

    filled: dict[str, None] = {}
    unfilled: dict[str, None] = {}

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in normalized:
            filled[name] = None
            return normalized[name]
        unfilled[name] = None
        return match.group(0)

    filled_text = PLACEHOLDER_PATTERN.sub(substitute, text)

    unused = [name for name in normalized if name not in filled]

    return FilledPrompt(text=filled_text, filled=list(filled), unfilled=list(unfilled), unused=unused)
