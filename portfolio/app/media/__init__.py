"""
Media Package

Image uploads to the project's storage bucket.
"""

from .routes import upload_router

__all__ = [
    "upload_router",
]
