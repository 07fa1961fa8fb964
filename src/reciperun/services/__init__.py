"""Services package for reciperun.

Modules:
    factory: ServiceFactory for centralized dependency management
"""

from .factory import ServiceFactory

__all__ = ["ServiceFactory"]
