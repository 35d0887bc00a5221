"""Core router middlewares, applied before plugin middlewares."""

from consentry.kernel.router import RouterMiddleware
from consentry.middlewares.origin_check import origin_check

CORE_MIDDLEWARES = [
    RouterMiddleware(path="/**", middleware=origin_check),
]

__all__ = ["CORE_MIDDLEWARES", "origin_check"]
