"""MCP server exposing online documentation lookups as tools.

Tools:
    fetch_docs: Fetch one page from a documentation site.
    search_docs: Search several sites for pages mentioning a term.
    list_doc_sources: List the sites and their sections.

Every tool answers with the JSON result rendered as text.
"""

import json
import sys
from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from workspace_tools.utils.config import AppConfig, load_config
from workspace_tools.utils.logger import get_logger, setup_logging

from .fetcher import DocsFetcher

logger = get_logger(__name__)


def _to_json(payload: object) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


class DocsServer(FastMCP):
    """FastMCP server that reports tool failures as ``Tool execution failed: <reason>``.

    Unknown tool names keep the library's ``Unknown tool: <name>`` message.
    """

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        try:
            return await super().call_tool(name, arguments)
        except ToolError as exc:
            if exc.__cause__ is None:
                raise
            raise ToolError(f"Tool execution failed: {exc.__cause__}") from exc.__cause__


def create_server(
    config: AppConfig | None = None, fetcher: DocsFetcher | None = None
) -> DocsServer:
    """Create the documentation MCP server with its tools registered.

    Args:
        config: Application configuration; loaded from disk when omitted.
        fetcher: Page fetcher, created from ``config`` when omitted.

    Returns:
        Configured server instance.
    """
    config = config or load_config()
    fetcher = fetcher or DocsFetcher(config.docs)
    source_list = ", ".join(source.name for source in fetcher.sources.values())

    mcp = DocsServer(
        config.docs.server_name,
        instructions=(
            "Fetches current documentation pages for "
            f"{source_list}. Call list_doc_sources to see section names."
        ),
    )

    @mcp.tool(
        description=f"Fetch content from online documentation pages ({source_list})"
    )
    def fetch_docs(source: str, query: str, section: str | None = None) -> str:
        """Fetch one documentation page.

        Args:
            source: Documentation source key, e.g. "react" or "stripe".
            query: Search query or page path (e.g. 'hooks', 'useState', 'routing').
            section: Specific section to look in.
        """
        return _to_json(fetcher.fetch_docs(source, query, section).to_dict())

    @mcp.tool()
    def search_docs(
        searchTerm: str,  # noqa: N803
        sources: list[str] | None = None,
        limit: int | None = None,
    ) -> str:
        """Search across multiple documentation sources.

        Args:
            searchTerm: Term to search for in documentation.
            sources: Documentation sources to search, all by default.
            limit: Maximum number of results to return (1-20, default 5).
        """
        results = fetcher.search_docs(searchTerm, sources, limit)
        return _to_json([result.to_dict() for result in results])

    @mcp.tool()
    def list_doc_sources() -> str:
        """List all available documentation sources and their sections."""
        return _to_json(fetcher.list_doc_sources())

    logger.info("Registered documentation tools for %d sources", len(fetcher.sources))
    return mcp


def run_server(transport: str = "stdio", config: AppConfig | None = None) -> None:
    """Run the documentation MCP server until the client disconnects.

    Logs go to stderr because stdout carries the protocol.

    Args:
        transport: MCP transport, ``"stdio"`` or ``"streamable-http"``.
        config: Application configuration; loaded from disk when omitted.
    """
    config = config or load_config()
    setup_logging(config.log_level, stream=sys.stderr)
    fetcher = DocsFetcher(config.docs)
    mcp = create_server(config, fetcher)
    logger.info("Starting %s over %s", config.docs.server_name, transport)
    try:
        mcp.run(transport=transport)
    finally:
        fetcher.close()


if __name__ == "__main__":
    run_server()
