"""
repograph - repository knowledge graph engine

Parses a batch of source files into structural summaries, links them into a
cross-file dependency and symbol graph, and assembles token-budgeted context
windows for downstream analyzers and assistants.
"""

__version__ = "0.1.0"

from repograph.context import ContextAggregator, GraphAnalytics, RepositoryMapper
from repograph.core import AnalysisSession, InvalidBatchError, RepographConfig

__all__ = [
    "__version__",
    "AnalysisSession",
    "ContextAggregator",
    "GraphAnalytics",
    "InvalidBatchError",
    "RepographConfig",
    "RepositoryMapper",
]
