from enum import Enum

from pydantic import BaseModel, Field, computed_field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class LintIssue(BaseModel):
    rule: str = Field(description="The id of the rule that reported the issue.")
    severity: Severity = Field(description="Whether the issue is an error or a warning.")
    path: str = Field(description="The path of the document the issue was found in.")
    line: int | None = Field(default=None, description="The line number of the issue, if it has one.")
    message: str = Field(description="A description of the issue.")

    def render_text(self) -> str:
        location = f"{self.path}:{self.line}" if self.line is not None else self.path
        return f"{location}: {self.severity.value} [{self.rule}] {self.message}"


class LintReport(BaseModel):
    documents: int = Field(description="The number of documents checked.")
    rules: list[str] = Field(description="The rules that were run.")
    issues: list[LintIssue] = Field(default_factory=list)

    @computed_field
    @property
    def errors(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == Severity.ERROR)

    @computed_field
    @property
    def warnings(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == Severity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def render_text(self) -> str:
        lines = [issue.render_text() for issue in self.issues]
        lines.append(f"Checked {self.documents} documents: {self.errors} errors, {self.warnings} warnings.")
        return "\n".join(lines)
