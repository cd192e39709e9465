"""Core module containing configuration and the analysis session."""

from repograph.core.config import RepographConfig
from repograph.core.session import AnalysisSession, InvalidBatchError, validate_batch

__all__ = [
    "RepographConfig",
    # Session
    "AnalysisSession",
    "InvalidBatchError",
    "validate_batch",
]
