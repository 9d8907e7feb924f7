import os
from logging import Logger
from typing import Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import get_logger

from gitverse.clients.gitverse import GitVerseClient
from gitverse.sampling.handler import get_sampling_handler
from gitverse.servers.analytics import AnalyticsServer
from gitverse.servers.assistant import AssistantServer

logger: Logger = get_logger(name=__name__)

enable_assistant: bool = not bool(os.getenv("DISABLE_ASSISTANT"))

mcp: FastMCP[None] = FastMCP[None](
    name="GitVerse Analytics",
    sampling_handler=get_sampling_handler() if enable_assistant else None,
)

mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

analytics_server: AnalyticsServer = AnalyticsServer(gitverse_client=GitVerseClient(logger=logger), logger=logger)
_ = analytics_server.register_tools(fastmcp=mcp)

if enable_assistant:
    assistant_server: AssistantServer = AssistantServer(analytics_server=analytics_server, logger=logger)
    _ = assistant_server.register_tools(fastmcp=mcp)


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"]):
    mcp.run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()
