"""
API Routers
Separate router modules for each domain.
"""

from app.routers import generate

__all__ = ["generate"]
