from .settings import Settings, settings
from .logger import get_logger

__all__ = ["Settings", "settings", "get_logger"]
