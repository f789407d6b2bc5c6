# API Routers

from . import bitcoin, health

__all__ = ["bitcoin", "health"]
