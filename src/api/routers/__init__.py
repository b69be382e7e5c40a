"""
API Routers for the part template locator
"""

from . import vision

__all__ = ["vision"]
