# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Laravel symbol resolution and completion engine."""

from .cache import SymbolCache
from .config import Config
from .context_detector import ContextDetector, detect
from .errors import (
    ExternalQueryFailed,
    ExternalQueryTimeout,
    LaravelSymbolsError,
    ProjectNotFoundError,
    SourceUnreadable,
    ViewCreationError,
)
from .models import (
    CompletionContext,
    RelationshipGraph,
    RouteRecord,
    SymbolCategory,
    SymbolEntry,
    SymbolLocation,
)
from .project import ProjectContext, discover_project_root
from .ranker import CompletionRanker
from .resolver import SymbolResolver
from .service import SymbolService

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ProjectContext",
    "discover_project_root",
    "SymbolCategory",
    "SymbolEntry",
    "RelationshipGraph",
    "RouteRecord",
    "CompletionContext",
    "SymbolLocation",
    "ContextDetector",
    "detect",
    "SymbolCache",
    "SymbolResolver",
    "CompletionRanker",
    "SymbolService",
    "LaravelSymbolsError",
    "ProjectNotFoundError",
    "SourceUnreadable",
    "ExternalQueryFailed",
    "ExternalQueryTimeout",
    "ViewCreationError",
]

# Conditional import for MCP server (requires Python 3.10+ and mcp package)
try:
    from .mcp_server import LaravelSymbolsMCPServer

    __all__.append("LaravelSymbolsMCPServer")
except ImportError:
    # MCP package not available (e.g., Python < 3.10 or mcp not installed)
    pass
