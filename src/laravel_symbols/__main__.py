# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Entry point for running the MCP server as a module: python -m laravel_symbols"""

from .mcp_server import main

if __name__ == "__main__":
    main()
