"""Utility modules for repograph."""

from repograph.utils.logging import ComponentLogger, get_logger, setup_logging

__all__ = ["ComponentLogger", "get_logger", "setup_logging"]
