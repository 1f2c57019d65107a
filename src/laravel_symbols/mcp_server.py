# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""MCP Server Protocol Layer for Laravel symbol resolution.

This module contains no business logic. Every tool translates its arguments
into a SymbolService call and formats the result as a JSON-compatible dict.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.session import ServerSession

from laravel_symbols.errors import ExternalQueryTimeout, ViewCreationError
from laravel_symbols.logging_setup import setup_logging
from laravel_symbols.models import SymbolCategory
from laravel_symbols.project import ProjectContext
from laravel_symbols.service import SymbolService

logger = logging.getLogger(__name__)


class LaravelSymbolsMCPServer:
    """MCP protocol layer for the Laravel symbol engine.

    Responsibilities:
    - Initialize the MCP server and register tools
    - Translate tool invocations to SymbolService calls
    - Format service responses as tool results
    - Handle server lifecycle (startup, shutdown)
    """

    def __init__(
        self,
        context: Optional[ProjectContext] = None,
        service: Optional[SymbolService] = None,
    ):
        """Initialize MCP server.

        Args:
            context: Project context. If None, discovered from the current directory.
            service: Service layer instance. If None, created from the context.
        """
        if service is None:
            if context is None:
                context = ProjectContext.discover()
            service = SymbolService(context)
        self.service = service

        self.mcp = FastMCP(name="laravel-symbols")
        self._register_tools()

        logger.info(f"LaravelSymbolsMCPServer initialized for {self.service.context.root}")

    def _register_tools(self) -> None:
        """Register MCP tools with the server.

        Registers:
        - complete: Completion candidates for a cursor position
        - goto_definition: Definition location for the symbol under the cursor
        - resolve_symbol: Definition location for a category and name
        - list_symbols: Full symbol index of a category
        - clear_cache: Invalidate cached indexes
        - create_view: Create a missing view file
        - model_relationships: Eloquent relationships of a model
        - refresh_routes: Re-run route extraction immediately
        """

        @self.mcp.tool()
        async def complete(
            line: str, cursor: int, ctx: Context[ServerSession, None]
        ) -> Dict[str, Any]:
            """Complete the Laravel helper argument at the cursor.

            Args:
                line: Text of the current line
                cursor: 0-based character offset of the cursor in the line
                ctx: MCP context for logging

            Returns:
                Dictionary with the detected context and ranked candidates.
            """
            result = self.service.complete(line, cursor)
            await ctx.debug(f"{len(result['candidates'])} candidates")
            return result

        @self.mcp.tool()
        async def goto_definition(
            line: str, cursor: int, ctx: Context[ServerSession, None]
        ) -> Dict[str, Any]:
            """Find where the helper argument under the cursor is defined.

            Unresolved view names come back with the candidate paths that
            create_view can materialize.
            """
            result = self.service.goto_definition(line, cursor)
            if not result["found"]:
                await ctx.info("No definition found")
            return result

        @self.mcp.tool()
        async def resolve_symbol(category: str, name: str) -> Dict[str, Any]:
            """Resolve a symbol by category (route, view, config, ...) and name."""
            if category not in SymbolCategory.ALL:
                raise ValueError(
                    f"Unknown category '{category}'. Expected one of {list(SymbolCategory.ALL)}"
                )
            location = self.service.resolve(category, name)
            if location is None:
                return {"found": False, "category": category, "name": name}
            return {"found": True, "category": category, "name": name, **location.to_dict()}

        @self.mcp.tool()
        async def list_symbols(category: str) -> Dict[str, Any]:
            """List every known symbol of a category."""
            if category not in SymbolCategory.ALL:
                raise ValueError(
                    f"Unknown category '{category}'. Expected one of {list(SymbolCategory.ALL)}"
                )
            entries = self.service.list_symbols(category)
            return {"category": category, "symbols": [entry.to_dict() for entry in entries]}

        @self.mcp.tool()
        async def clear_cache(category: Optional[str] = None) -> Dict[str, Any]:
            """Invalidate one cached category, or all of them when omitted."""
            self.service.clear_cache(category)
            return {"cleared": category or "all", "statistics": self.service.get_cache_statistics()}

        @self.mcp.tool()
        async def create_view(
            name: str, ctx: Context[ServerSession, None], candidate_index: int = 0
        ) -> Dict[str, Any]:
            """Create an empty view file at a candidate path (0 = Blade template).

            Never overwrites an existing file.
            """
            try:
                path = self.service.create_view(name, candidate_index)
            except ViewCreationError as e:
                await ctx.error(str(e))
                raise
            return {"created": str(path)}

        @self.mcp.tool()
        async def model_relationships(model: str) -> Dict[str, Any]:
            """Relationships of an Eloquent model, plus models that point at it."""
            return self.service.model_relationships(model)

        @self.mcp.tool()
        async def refresh_routes(ctx: Context[ServerSession, None]) -> Dict[str, Any]:
            """Re-extract route names now (runs artisan when enabled)."""
            try:
                count = self.service.refresh_routes()
            except ExternalQueryTimeout as e:
                await ctx.error(str(e))
                raise
            return {"routes": count}

        logger.info(
            "MCP tools registered: complete, goto_definition, resolve_symbol, list_symbols, "
            "clear_cache, create_view, model_relationships, refresh_routes"
        )

    def run(self, transport: str = "stdio") -> None:
        """Run the MCP server.

        Args:
            transport: "stdio" (default), "streamable-http" or "sse".
        """
        logger.info(f"Starting MCP server with {transport} transport")
        self.mcp.run(transport=transport)  # type: ignore[arg-type]

    def shutdown(self) -> None:
        """Shutdown the MCP server and cleanup resources."""
        logger.info("Shutting down MCP server")
        self.service.shutdown()


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Laravel symbol resolution and completion MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Laravel project root or any directory inside it. Default: current directory",
    )
    parser.add_argument(
        "--transport",
        type=str,
        choices=["stdio", "streamable-http", "sse"],
        default="stdio",
        help="Transport type for MCP server. Default: stdio",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Write structured JSON logs to this directory instead of stderr only",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> None:
    """Main entry point for the MCP server."""
    args = parse_args(argv)
    level = logging.DEBUG if args.debug else logging.INFO

    if args.log_dir is not None:
        setup_logging(log_dir=args.log_dir, log_level=level, console_output=False)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    context = ProjectContext.discover(args.project_root)
    server = LaravelSymbolsMCPServer(context=context)
    try:
        server.run(transport=args.transport)
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
