"""
Content Package

Profile and content item storage plus the admin write handlers and public
read endpoints built on it.
"""

from .routes import admin_router, public_router

__all__ = [
    "admin_router",
    "public_router",
]
