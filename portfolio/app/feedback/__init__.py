from .routes import feedback_router

__all__ = [
    "feedback_router",
]
