"""API middleware package."""

from src.funnel.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
