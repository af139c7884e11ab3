from .media import media_router

__all__ = ["media_router"]
