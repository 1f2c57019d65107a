# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Symbol extractor plugins.

Each extractor turns one family of project source files into a sorted,
de-duplicated index of named symbols for a single category.

Components:
- SymbolExtractor: Abstract base class for extractor plugins
- ExtractorRegistry: Category-keyed registry for extractor plugins
- RouteFileExtractor: Route names from route definition files
- ArtisanRouteExtractor: Route names from `php artisan route:list --json`
- ViewExtractor: Blade templates and frontend page components
- ConfigKeyExtractor / TranslationKeyExtractor: PHP array keys
- EnvKeyExtractor: Dotenv keys
- ModelExtractor / ModelRelationshipExtractor: Eloquent models and relationships
- FacadeExtractor / ContainerBindingExtractor / FluentMethodExtractor:
  IDE helper files and migration methods
- LivewireComponentExtractor: Livewire component classes
- TableExtractor / ColumnExtractor: database schema declared by migrations
"""

from laravel_symbols.extractors.array_keys import ConfigKeyExtractor, TranslationKeyExtractor
from laravel_symbols.extractors.base import SymbolExtractor
from laravel_symbols.extractors.eloquent import ModelExtractor, ModelRelationshipExtractor
from laravel_symbols.extractors.env import EnvKeyExtractor
from laravel_symbols.extractors.ide_helper import (
    ContainerBindingExtractor,
    FacadeExtractor,
    FluentMethodExtractor,
)
from laravel_symbols.extractors.livewire import LivewireComponentExtractor
from laravel_symbols.extractors.migrations import ColumnExtractor, TableExtractor
from laravel_symbols.extractors.registry import ExtractorRegistry
from laravel_symbols.extractors.route_query import ArtisanRouteExtractor, ArtisanRouteQuery
from laravel_symbols.extractors.routes import RouteFileExtractor
from laravel_symbols.extractors.views import ViewExtractor

__all__ = [
    # Base classes
    "SymbolExtractor",
    "ExtractorRegistry",
    # File-scanning extractors
    "RouteFileExtractor",
    "ViewExtractor",
    "ConfigKeyExtractor",
    "TranslationKeyExtractor",
    "EnvKeyExtractor",
    "ModelExtractor",
    "ModelRelationshipExtractor",
    "LivewireComponentExtractor",
    "TableExtractor",
    "ColumnExtractor",
    # External sources
    "ArtisanRouteQuery",
    "ArtisanRouteExtractor",
    "FacadeExtractor",
    "ContainerBindingExtractor",
    "FluentMethodExtractor",
]
