from collections.abc import AsyncGenerator
from typing import Any

import pytest
from fastmcp.client import Client
from fastmcp.client.transports import FastMCPTransport
from inline_snapshot import snapshot

from gitverse.main import mcp
from tests.conftest import dump_list_for_snapshot


def test_main():
    assert mcp is not None


@pytest.fixture
async def main_mcp_client() -> AsyncGenerator[Client[FastMCPTransport], Any]:
    async with Client[FastMCPTransport](transport=mcp) as mcp_client:
        yield mcp_client


async def test_list_tools(main_mcp_client: Client[FastMCPTransport]):
    list_tools = await main_mcp_client.list_tools()
    assert dump_list_for_snapshot(list_tools, exclude_keys=["inputSchema", "outputSchema", "meta"]) == snapshot(
        [
            {
                "name": "list_repositories",
                "description": "List the repositories that have been submitted to GitVerse and the status of their analysis.",
            },
            {
                "name": "submit_repository",
                "description": """\
Submit a GitHub, GitLab or Bitbucket repository for analysis. Analysis happens in the background,
check its status with `list_repositories` or `get_repository_overview`.\
""",
            },
            {
                "name": "get_repository_overview",
                "description": "Get headline numbers for a repository: commits, branches, contributors, files, languages, size and recent activity.",
            },
            {
                "name": "get_file_tree",
                "description": "Get the file tree of a repository. Exclude patterns take precedence over include patterns.",
            },
            {
                "name": "get_file_stats",
                "description": "Get the number of commits that touched a file and the lines added to and deleted from it.",
            },
            {
                "name": "get_language_distribution",
                "description": "Get the languages used in a repository and the share of files written in each.",
            },
            {
                "name": "get_file_type_distribution",
                "description": "Get the share of source, test, config, documentation and other files in a repository.",
            },
            {
                "name": "get_commit_activity",
                "description": "Get the number of commits made on each day of the last weeks, ending today.",
            },
            {
                "name": "get_commit_history",
                "description": "Get the commits of a repository with their author, branch, totals and the files each one changed.",
            },
            {
                "name": "get_contributors",
                "description": "Get the contributors of a repository with their commits, additions and deletions.",
            },
            {"name": "get_branches", "description": "Get the branches of a repository."},
            {
                "name": "ask_repository_assistant",
                "description": """\
Ask the assistant a question about an analyzed repository. The assistant is given the repository's
name, description, languages, commit, contributor and file counts, the mix of file types and the most common file extensions.\
""",
            },
            {"name": "analyze_code", "description": "Explain, review, improve or document a snippet of code."},
        ]
    )
