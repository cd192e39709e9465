"""Context engine - source parsing, repository graph, analytics and context windows."""

from repograph.context.context_aggregator import ContextAggregator
from repograph.context.dependency_graph import RepositoryGraph
from repograph.context.graph_analytics import GraphAnalytics
from repograph.context.languages import LANGUAGE_SPECS, LanguageSpec, detect_language
from repograph.context.repo_mapper import RepositoryMapper
from repograph.context.resolver import ImportResolver, NameBasedResolver, SymbolResolver
from repograph.context.source_parser import SourceParser
from repograph.context.symbol_table import SymbolTable

__all__ = [
    "ContextAggregator",
    "GraphAnalytics",
    "ImportResolver",
    "LANGUAGE_SPECS",
    "LanguageSpec",
    "NameBasedResolver",
    "RepositoryGraph",
    "RepositoryMapper",
    "SourceParser",
    "SymbolResolver",
    "SymbolTable",
    "detect_language",
]
