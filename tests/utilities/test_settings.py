from pathlib import Path

import pytest

from prompt_library_mcp.utilities.settings import (
    DEFAULT_INDEX_NAME,
    get_exclude_patterns,
    get_include_patterns,
    get_index_name,
    get_library_root,
    split_patterns,
)


def test_split_patterns():
    assert split_patterns(None) is None
    assert split_patterns("") is None
    assert split_patterns(" , ") is None
    assert split_patterns("Android/*, *.md ,React/**") == ["Android/*", "*.md", "React/**"]


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    for name in ("PROMPT_LIBRARY_ROOT", "PROMPT_LIBRARY_INDEX", "PROMPT_LIBRARY_INCLUDE", "PROMPT_LIBRARY_EXCLUDE"):
        monkeypatch.delenv(name, raising=False)

    assert get_library_root() == Path()
    assert get_index_name() == DEFAULT_INDEX_NAME
    assert get_include_patterns() is None
    assert get_exclude_patterns() is None


def test_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("PROMPT_LIBRARY_ROOT", str(tmp_path))
    monkeypatch.setenv("PROMPT_LIBRARY_INDEX", "INDEX.md")
    monkeypatch.setenv("PROMPT_LIBRARY_INCLUDE", "Android/*")
    monkeypatch.setenv("PROMPT_LIBRARY_EXCLUDE", "drafts/*,*.draft.md")

    assert get_library_root() == tmp_path
    assert get_index_name() == "INDEX.md"
    assert get_include_patterns() == ["Android/*"]
    assert get_exclude_patterns() == ["drafts/*", "*.draft.md"]
