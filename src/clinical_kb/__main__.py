"""Entry point for the clinical-kb MCP server."""

from clinical_kb.server import create_server


def main() -> None:
    """Run the clinical-kb MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
