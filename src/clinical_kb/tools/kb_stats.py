"""kb_stats MCP tool — aggregate statistics."""

from fastmcp import FastMCP
from fastmcp.server.context import Context

from clinical_kb.tools.formatters import format_stats


def register_kb_stats(mcp: FastMCP) -> None:
    """Register the kb_stats tool with the MCP server."""

    @mcp.tool()
    async def kb_stats(ctx: Context | None = None) -> str:
        """Counts by entry type plus system, modality and pathology breakdowns."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        return format_stats(ctx.lifespan_context["store"].get_stats())
