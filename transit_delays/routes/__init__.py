from .delays import router as delays_router

__all__ = ["delays_router"]
