"""
Utility functions
"""
from civic_triage.utils.logger import setup_logger, get_logger

__all__ = [
    "setup_logger",
    "get_logger",
]
