"""Handlers for Astra bot"""

from . import start, link, checkin

__all__ = ["start", "link", "checkin"]
