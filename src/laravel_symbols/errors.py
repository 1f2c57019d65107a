# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Exception types for the symbol resolution engine.

Only ExternalQueryTimeout and ViewCreationError are meant to reach a user.
Everything else is caught inside the extractors and the cache and degrades
to an empty result.
"""


class LaravelSymbolsError(Exception):
    """Base class for all engine errors."""

    pass


class ProjectNotFoundError(LaravelSymbolsError):
    """Raised when no Laravel project root can be discovered."""

    pass


class SourceUnreadable(LaravelSymbolsError):
    """A file or directory expected by an extractor is missing or unreadable."""

    pass


class ExternalQueryFailed(LaravelSymbolsError):
    """The artisan route query exited non-zero or produced unparsable output."""

    pass


class ExternalQueryTimeout(ExternalQueryFailed):
    """The artisan route query did not finish within its timeout."""

    def __init__(self, command: str, timeout: float):
        super().__init__(f"Command timed out after {timeout}s: {command}")
        self.command = command
        self.timeout = timeout


class ViewCreationError(LaravelSymbolsError):
    """Raised when a missing view file cannot be materialized."""

    pass
