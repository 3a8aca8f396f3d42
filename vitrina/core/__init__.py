from .config import settings, get_settings
from .exceptions import VitrinaError, ValidationError, GatewayError

__all__ = ["settings", "get_settings", "VitrinaError", "ValidationError", "GatewayError"]
