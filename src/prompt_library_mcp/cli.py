"""Command line access to a prompt library: listing, searching, filling and linting."""

import asyncio
import json
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Literal

import click
import yaml
from fastmcp.utilities.logging import configure_logging
from pydantic import BaseModel

from prompt_library_mcp.library.loader import DEFAULT_SEARCH_LIMIT, PromptLibrary
from prompt_library_mcp.linting.rules import ALL_RULES
from prompt_library_mcp.linting.runner import lint_library
from prompt_library_mcp.markdown.placeholders import fill_placeholders
from prompt_library_mcp.markdown.render import render_index
from prompt_library_mcp.models.document import PromptEntry
from prompt_library_mcp.servers.library import DEFAULT_INDEX_TITLE
from prompt_library_mcp.servers.shared.errors import ServerError
from prompt_library_mcp.utilities.settings import get_exclude_patterns, get_include_patterns, get_index_name, get_library_root

OutputFormat = Literal["text", "json", "yaml"]

FORMAT_OPTION = click.option(
    "--format", "output_format", type=click.Choice(["text", "json", "yaml"]), default="text", help="The output format."
)


class LibraryOptions(BaseModel):
    root: Path
    include_patterns: list[str] | None = None
    exclude_patterns: list[str] | None = None
    index_name: str

    def load(self) -> PromptLibrary:
        try:
            return asyncio.run(
                PromptLibrary.load(
                    root=self.root,
                    include_patterns=self.include_patterns,
                    exclude_patterns=self.exclude_patterns,
                    index_name=self.index_name,
                )
            )
        except ServerError as e:
            raise click.ClickException(str(e)) from e


def dump(data: BaseModel | Sequence[BaseModel], output_format: OutputFormat) -> str:
    dumped: Any = data.model_dump(mode="json") if isinstance(data, BaseModel) else [item.model_dump(mode="json") for item in data]

    if output_format == "yaml":
        return yaml.safe_dump(dumped, sort_keys=False, allow_unicode=True).rstrip()

    return json.dumps(dumped, indent=2, ensure_ascii=False)


def get_entry(library: PromptLibrary, prompt_id: str) -> PromptEntry:
    try:
        return library.get_entry(prompt_id=prompt_id)
    except ServerError as e:
        raise click.ClickException(str(e)) from e


def parse_values(values: Sequence[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}

    for value in values:
        name, separator, text = value.partition("=")
        if not separator or not name.strip():
            msg = f"Expected NAME=VALUE, got '{value}'"
            raise click.BadParameter(msg, param_hint="--value")
        parsed[name.strip()] = text

    return parsed


@click.group()
@click.option(
    "--library-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="The directory holding the Markdown prompt library. Defaults to PROMPT_LIBRARY_ROOT or the current directory.",
)
@click.option("--include", "include_patterns", multiple=True, help="Only load documents matching this glob. May be repeated.")
@click.option("--exclude", "exclude_patterns", multiple=True, help="Skip documents matching this glob. May be repeated.")
@click.option("--index-name", default=None, help="The index document of the library. Defaults to README.md.")
@click.option("--verbose", is_flag=True, help="Log library loading and linting progress.")
@click.pass_context
def cli(
    ctx: click.Context,
    library_root: Path | None,
    include_patterns: tuple[str, ...],
    exclude_patterns: tuple[str, ...],
    index_name: str | None,
    verbose: bool,
):
    """Browse, fill and lint a library of Markdown prompt templates."""

    configure_logging(level="INFO" if verbose else "WARNING")

    ctx.obj = LibraryOptions(
        root=library_root or get_library_root(),
        include_patterns=list(include_patterns) or get_include_patterns(),
        exclude_patterns=list(exclude_patterns) or get_exclude_patterns(),
        index_name=index_name or get_index_name(),
    )


@cli.command(name="list")
@click.option("--category", default=None, help="Only list documents in this category.")
@FORMAT_OPTION
@click.pass_obj
def list_command(options: LibraryOptions, category: str | None, output_format: OutputFormat):
    """List the documents of the library."""

    library = options.load()
    documents = library.list_documents(category=category)

    if output_format != "text":
        click.echo(dump(documents, output_format))
        return

    for document in documents:
        click.echo(f"{document.path}\t{document.title}\t{document.entry_count} prompts")


@cli.command()
@click.argument("keywords", nargs=-1, required=True)
@click.option("--category", default=None, help="Only search prompts in this category.")
@click.option("--any", "match_any", is_flag=True, help="Match prompts containing any of the keywords instead of all of them.")
@click.option(
    "--limit", type=click.IntRange(min=1), default=DEFAULT_SEARCH_LIMIT, show_default=True, help="The maximum number of results."
)
@FORMAT_OPTION
@click.pass_obj
def search(options: LibraryOptions, keywords: tuple[str, ...], category: str | None, match_any: bool, limit: int, output_format: OutputFormat):
    """Search prompts by keywords."""

    library = options.load()
    results = library.search(keywords=list(keywords), category=category, require_all=not match_any, limit=limit)

    if output_format != "text":
        click.echo(dump(results, output_format))
        return

    for result in results:
        click.echo(f"{result.id}\t{result.title}")


@cli.command()
@click.argument("prompt_id")
@FORMAT_OPTION
@click.pass_obj
def placeholders(options: LibraryOptions, prompt_id: str, output_format: OutputFormat):
    """List the placeholders of a prompt."""

    entry = get_entry(options.load(), prompt_id)

    if output_format != "text":
        click.echo(dump(entry, output_format))
        return

    for name in entry.placeholders:
        click.echo(f"[{name}]")


@cli.command()
@click.argument("prompt_id")
@click.option("--value", "-v", "values", multiple=True, help="A NAME=VALUE pair to substitute. May be repeated.")
@click.pass_obj
def fill(options: LibraryOptions, prompt_id: str, values: tuple[str, ...]):
    """Print a prompt with the given placeholder values substituted."""

    parsed_values = parse_values(values)

    entry = get_entry(options.load(), prompt_id)

    if entry.prompt is None:
        msg = f"'{prompt_id}' has no prompt block"
        raise click.ClickException(msg)

    filled = fill_placeholders(entry.prompt, parsed_values)

    click.echo(filled.text)

    if filled.unfilled:
        click.echo(f"Unfilled placeholders: {', '.join(filled.unfilled)}", err=True)
    if filled.unused:
        click.echo(f"Unused values: {', '.join(filled.unused)}", err=True)


@cli.command()
@click.option("--select", multiple=True, type=click.Choice([rule.id for rule in ALL_RULES]), help="Only run this rule. May be repeated.")
@click.option("--ignore", multiple=True, type=click.Choice([rule.id for rule in ALL_RULES]), help="Skip this rule. May be repeated.")
@FORMAT_OPTION
@click.pass_obj
def lint(options: LibraryOptions, select: tuple[str, ...], ignore: tuple[str, ...], output_format: OutputFormat):
    """Check the library for broken links, skipped heading levels, unbalanced brackets and other issues.

    Exits with status 1 when an error is found."""

    report = lint_library(options.load(), select=list(select) or None, ignore=list(ignore) or None)

    click.echo(report.render_text() if output_format == "text" else dump(report, output_format))

    if report.has_errors:
        raise SystemExit(1)


@cli.command()
@click.option("--title", default=DEFAULT_INDEX_TITLE, show_default=True, help="The title of the index.")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write the index to this file.")
@click.pass_obj
def index(options: LibraryOptions, title: str, output: Path | None):
    """Render a Markdown table of contents for the library."""

    library = options.load()
    documents = [document for document in library.list_documents() if document.path != library.index_name]

    if output is None:
        click.echo(render_index(title=title, documents=documents), nl=False)
        return

    # links in the written file are relative to where it is written
    base_path = Path(os.path.relpath(library.root, output.expanduser().resolve().parent)).as_posix()

    text = render_index(title=title, documents=documents, base_path=base_path)

    output.write_text(text, encoding="utf-8")
    click.echo(f"Wrote index of {len(documents)} documents to {output}")


if __name__ == "__main__":
    cli()
