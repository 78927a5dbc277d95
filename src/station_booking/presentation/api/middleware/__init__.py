"""Middleware module for the station booking API."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
