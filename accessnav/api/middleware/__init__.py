"""Middleware for the AccessNav API."""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
