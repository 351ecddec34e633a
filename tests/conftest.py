from collections.abc import Sequence
from pathlib import Path
from textwrap import dedent
from typing import Any, overload

import pytest
from pydantic import BaseModel

from prompt_library_mcp.library.loader import PromptLibrary

README = """\
# AI Prompt Library

Prompts for coding assistants.

## Android

- [Code Generation](Android/Code%20Generation.md)
- [Debugging](Android/Debugging.md#crash-on-rotation)

## React

- [Unit Test Generation](React/Unit%20Test%20Generation.md)
- [Refactoring](React/Refactoring.md)
- [Missing](React/Missing.md)

See the [GitHub docs](https://docs.github.com/copilot).
"""

ANDROID_CODE_GENERATION = """\
# Android Code Generation

## Create a ViewModel

**Use Case:** Generate a ViewModel for a screen.

**Prompt:**

```
Create a ViewModel named [VIEWMODEL_NAME] for the [FEATURE_NAME] screen.
Expose state as a StateFlow of [STATE_TYPE].
```

**Notes:** Works best with Kotlin coroutines.

## Room Entity

### Use Case
Persist a model with Room.

### Prompt
> Generate a Room entity for [ENTITY_NAME] with fields [FIELDS].
"""

ANDROID_DEBUGGING = """\
# Android Debugging

## Crash on Rotation

Scenario: The app crashes when the device rotates.

```text
My activity [ACTIVITY_NAME] crashes on rotation with [STACK_TRACE.
```

#### Extra Tips
Check saved instance state.
"""

DEVOPS_NOTES = """\
# DevOps Notes

Nothing here yet.
"""

REACT_UNIT_TEST_GENERATION = """\
---
title: React Unit Tests
tags: [react, testing]
---

# Unit Test Generation

## Test a Component

- **Use Case**: Write tests for a component.
- **Prompt**: Write React Testing Library tests for [COMPONENT_NAME] covering [BEHAVIOR].

## Test a Component

**Use Case:** Write snapshot tests.

## Hook Example

```tsx
const [state, setState] = useState(0);
```
"""

REACT_REFACTORING = """\
## Extract a Hook

See [the testing guide](Unit%20Test%20Generation.md#test-a-component) and [a missing anchor](#nowhere).

**Prompt:** Refactor [COMPONENT_NAME] to move its data fetching into a custom hook named [HOOK_NAME].
"""

SAMPLE_LIBRARY: dict[str, str] = {
    "README.md": README,
    "Android/Code Generation.md": ANDROID_CODE_GENERATION,
    "Android/Debugging.md": ANDROID_DEBUGGING,
    "DevOps/notes.md": DEVOPS_NOTES,
    "React/Unit Test Generation.md": REACT_UNIT_TEST_GENERATION,
    "React/Refactoring.md": REACT_REFACTORING,
    ".git/HEAD.md": "# Not a prompt\n",
    "node_modules/some-package/README.md": "# Not a prompt either\n",
    "Android/diagram.txt": "Not Markdown\n",
}


def write_library(root: Path, files: dict[str, str]) -> Path:
    for relative_path, text in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(dedent(text), encoding="utf-8")
    return root


@pytest.fixture
def library_root(tmp_path: Path) -> Path:
    """A small prompt library with a known set of documents and problems."""
    return write_library(tmp_path / "library", SAMPLE_LIBRARY)


@pytest.fixture
async def library(library_root: Path) -> PromptLibrary:
    return await PromptLibrary.load(root=library_root)


def handle_exclude_keys(dictionary: dict[str, Any], exclude_keys: list[str] | None = None) -> dict[str, Any]:
    if exclude_keys is None:
        return dictionary
    return {key: value for key, value in dictionary.items() if key not in exclude_keys}


@overload
def dump_for_snapshot(
    basemodel: None,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> None: ...


@overload
def dump_for_snapshot(
    basemodel: BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any]: ...


def dump_for_snapshot(
    basemodel: None | BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any] | None:
    if basemodel is None:
        return None

    return handle_exclude_keys(basemodel.model_dump(exclude_none=exclude_none, **dump_kwargs), exclude_keys)


def dump_list_for_snapshot(
    basemodel: None | Sequence[BaseModel],
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> list[dict[str, Any]] | None:
    if basemodel is None:
        return []

    return [dump_for_snapshot(item, exclude_keys, exclude_none, **dump_kwargs) for item in basemodel]
