import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner, Result
from inline_snapshot import snapshot

from prompt_library_mcp.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def invoke(runner: CliRunner, library_root: Path, *args: str) -> Result:
    return runner.invoke(cli, ["--library-root", str(library_root), *args])


def test_list(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "list", "--category", "Android")

    assert result.exit_code == 0
    assert result.output.splitlines() == snapshot(
        [
            "Android/Code Generation.md\tAndroid Code Generation\t2 prompts",
            "Android/Debugging.md\tAndroid Debugging\t1 prompts",
        ]
    )


def test_list_json(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "list", "--category", "devops", "--format", "json")

    assert result.exit_code == 0
    assert json.loads(result.output) == snapshot(
        [{"path": "DevOps/notes.md", "title": "DevOps Notes", "categories": ["DevOps"], "entry_count": 0}]
    )


def test_search(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "search", "component", "room", "--any")

    assert result.exit_code == 0
    assert result.output.splitlines() == snapshot(
        [
            "Android/Code Generation.md#room-entity\tRoom Entity",
            "React/Refactoring.md#extract-a-hook\tExtract a Hook",
            "React/Unit Test Generation.md#test-a-component\tTest a Component",
            "React/Unit Test Generation.md#test-a-component-1\tTest a Component",
        ]
    )


def test_search_yaml(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "search", "rotation", "--format", "yaml")

    assert result.exit_code == 0
    assert yaml.safe_load(result.output) == snapshot(
        [
            {
                "id": "Android/Debugging.md#crash-on-rotation",
                "title": "Crash on Rotation",
                "use_case": "The app crashes when the device rotates.",
                "placeholders": ["ACTIVITY_NAME"],
            }
        ]
    )


def test_placeholders(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "placeholders", "Android/Code Generation.md#create-a-viewmodel")

    assert result.exit_code == 0
    assert result.output.splitlines() == ["[VIEWMODEL_NAME]", "[FEATURE_NAME]", "[STATE_TYPE]"]


def test_placeholders_unknown_prompt(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "placeholders", "Android/Code Generation.md#room-entities")

    assert result.exit_code == 1
    assert "did you mean: Android/Code Generation.md#room-entity" in result.output


def test_fill(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "fill", "React/Refactoring.md#extract-a-hook", "-v", "COMPONENT_NAME=UserList", "-v", "EXTRA=1")

    assert result.exit_code == 0
    assert "Refactor UserList to move its data fetching into a custom hook named [HOOK_NAME]." in result.output
    assert "Unfilled placeholders: HOOK_NAME" in result.output
    assert "Unused values: EXTRA" in result.output


def test_fill_rejects_bad_value(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "fill", "React/Refactoring.md#extract-a-hook", "-v", "COMPONENT_NAME")

    assert result.exit_code == 2
    assert "Expected NAME=VALUE, got 'COMPONENT_NAME'" in result.output


def test_fill_without_prompt_block(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "fill", "React/Unit Test Generation.md#test-a-component-1")

    assert result.exit_code == 1
    assert "has no prompt block" in result.output


def test_lint(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "lint", "--select", "broken-link")

    assert result.exit_code == 1
    assert result.output.splitlines() == snapshot(
        [
            "README.md:14: error [broken-link] Link target 'React/Missing.md' does not exist",
            "React/Refactoring.md:3: error [broken-link] Anchor '#nowhere' does not match any heading",
            "Checked 6 documents: 2 errors, 0 warnings.",
        ]
    )


def test_lint_warnings_only(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "lint", "--select", "unindexed-document", "--format", "json")

    assert result.exit_code == 0
    assert json.loads(result.output)["warnings"] == 1


def test_lint_unknown_rule(runner: CliRunner, library_root: Path):
    result = invoke(runner, library_root, "lint", "--select", "no-such-rule")

    assert result.exit_code == 2


def test_index(runner: CliRunner, library_root: Path, tmp_path: Path):
    output = tmp_path / "INDEX.md"

    result = invoke(runner, library_root, "index", "--title", "Sample Prompts", "--output", str(output))

    assert result.exit_code == 0
    assert result.output == f"Wrote index of 5 documents to {output}\n"
    assert output.read_text(encoding="utf-8").splitlines()[:7] == snapshot(
        [
            "# Sample Prompts",
            "",
            "## Android",
            "",
            "- [Android Code Generation](library/Android/Code%20Generation.md) (2 prompts)",
            "- [Android Debugging](library/Android/Debugging.md) (1 prompt)",
            "",
        ]
    )


def test_index_inside_library(runner: CliRunner, library_root: Path):
    output = library_root / "Android" / "INDEX.md"

    result = invoke(runner, library_root, "index", "--output", str(output))

    assert result.exit_code == 0
    assert "- [Android Debugging](../Android/Debugging.md) (1 prompt)" in output.read_text(encoding="utf-8").splitlines()


def test_missing_library_root(runner: CliRunner, tmp_path: Path):
    result = invoke(runner, tmp_path / "missing", "list")

    assert result.exit_code == 1
    assert "The prompt library root could not be found" in result.output
