from typing import Annotated

from pydantic import Field

DOCUMENT_PATH_DESCRIPTION = "The path of the document relative to the library root. For example, 'Android/Code Generation.md'."
DOCUMENT_PATH = Annotated[str, Field(description=DOCUMENT_PATH_DESCRIPTION)]

PROMPT_ID_DESCRIPTION = (
    "The id of the prompt, made of the document path and the heading anchor. For example, 'React/Debugging.md#fix-a-stale-closure'."
)
PROMPT_ID = Annotated[str, Field(description=PROMPT_ID_DESCRIPTION)]

CATEGORY = Annotated[
    str | None,
    Field(description="Optional category (a directory name such as 'Android' or 'Unit Test Generation') to limit the results to."),
]

KEYWORDS = Annotated[set[str], Field(description="The keywords to search for in the prompt titles, use cases, prompts and notes.")]
REQUIRE_ALL_KEYWORDS = Annotated[bool, Field(description="Whether all keywords must be present for a result to appear in the search results.")]
LIMIT = Annotated[int, Field(ge=1, description="The maximum number of results to return.")]

TEXT = Annotated[str, Field(description="The text to scan for bracket-delimited placeholders such as [FEATURE_NAME].")]
PLACEHOLDER_VALUES = Annotated[
    dict[str, str],
    Field(description="The values to substitute, keyed by placeholder name with or without brackets. For example, {'FEATURE_NAME': 'login'}."),
]

SELECT_RULES = Annotated[list[str] | None, Field(description="The lint rules to run. If None, all rules are run.")]
IGNORE_RULES = Annotated[list[str] | None, Field(description="The lint rules to skip.")]
