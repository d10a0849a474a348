"""Middleware for Astra bot"""

from .database import DatabaseMiddleware

__all__ = ["DatabaseMiddleware"]
