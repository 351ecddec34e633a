from collections.abc import Sequence

from fastmcp.utilities.logging import get_logger

from prompt_library_mcp.library.loader import PromptLibrary
from prompt_library_mcp.linting.rules import ALL_RULES, RULES_BY_ID, BaseLintRule
from prompt_library_mcp.models.lint import LintIssue, LintReport
from prompt_library_mcp.servers.shared.errors import UnknownLintRuleError

logger = get_logger(__name__)


def select_rules(select: Sequence[str] | None = None, ignore: Sequence[str] | None = None) -> list[BaseLintRule]:
    requested: set[str] = set(select or []) | set(ignore or [])

    if unknown := requested - set(RULES_BY_ID):
        raise UnknownLintRuleError(rules=list(unknown), available=list(RULES_BY_ID))

    selected: list[BaseLintRule] = [RULES_BY_ID[rule_id] for rule_id in dict.fromkeys(select)] if select else list(ALL_RULES)

    return [rule for rule in selected if rule.id not in (ignore or [])]


def lint_library(library: PromptLibrary, select: Sequence[str] | None = None, ignore: Sequence[str] | None = None) -> LintReport:
    """Run the selected rules against the library. All rules run when none are selected."""

    rules: list[BaseLintRule] = select_rules(select=select, ignore=ignore)

    issues: list[LintIssue] = [issue for rule in rules for issue in rule.check(library)]

    issues.sort(key=lambda issue: (issue.path, issue.line or 0, issue.rule))

    report = LintReport(documents=len(library.documents), rules=[rule.id for rule in rules], issues=issues)

    logger.info(f"Linted {report.documents} documents: {report.errors} errors, {report.warnings} warnings")

    return report
