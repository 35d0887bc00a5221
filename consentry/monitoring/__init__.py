"""
Consentry - Monitoring Module

Structured logging configuration and helpers.
"""

from .logging import configure_logging, log_duration

__all__ = [
    "configure_logging",
    "log_duration",
]
