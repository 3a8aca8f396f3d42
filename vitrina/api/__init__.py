# HTTP API Package
from .router import api_router
from .exception_handler import setup_exception_handlers

__all__ = ["api_router", "setup_exception_handlers"]
