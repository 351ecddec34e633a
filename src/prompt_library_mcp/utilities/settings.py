import os
from pathlib import Path

DEFAULT_INDEX_NAME = "README.md"


def split_patterns(value: str | None) -> list[str] | None:
    if not value:
        return None

    patterns = [pattern.strip() for pattern in value.split(",") if pattern.strip()]

    return patterns or None


def get_library_root() -> Path:
    return Path(os.getenv("PROMPT_LIBRARY_ROOT", ".")).expanduser()


def get_index_name() -> str:
    return os.getenv("PROMPT_LIBRARY_INDEX", DEFAULT_INDEX_NAME)


def get_include_patterns() -> list[str] | None:
    return split_patterns(os.getenv("PROMPT_LIBRARY_INCLUDE"))


def get_exclude_patterns() -> list[str] | None:
    return split_patterns(os.getenv("PROMPT_LIBRARY_EXCLUDE"))
