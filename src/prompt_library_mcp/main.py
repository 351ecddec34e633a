from logging import Logger
from pathlib import Path
from typing import Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import configure_logging, get_logger

from prompt_library_mcp.servers.library import LibraryServer
from prompt_library_mcp.utilities.settings import get_exclude_patterns, get_include_patterns, get_index_name, get_library_root

logger: Logger = get_logger(name=__name__)


def new_mcp_server(library_root: Path | None = None) -> FastMCP[None]:
    library_server: LibraryServer = LibraryServer(
        library_root=library_root or get_library_root(),
        logger=logger,
        include_patterns=get_include_patterns(),
        exclude_patterns=get_exclude_patterns(),
        index_name=get_index_name(),
    )

    mcp: FastMCP[None] = FastMCP[None](
        name="Prompt Library MCP",
        middleware=[LoggingMiddleware(include_payloads=True, logger=logger)],
    )

    _ = library_server.register_tools(fastmcp=mcp)

    return mcp


mcp: FastMCP[None] = new_mcp_server()


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
@click.option(
    "--library-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="The directory holding the Markdown prompt library. Defaults to PROMPT_LIBRARY_ROOT or the current directory.",
)
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"], library_root: Path | None):
    configure_logging()

    server: FastMCP[None] = new_mcp_server(library_root=library_root) if library_root else mcp

    server.run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()
