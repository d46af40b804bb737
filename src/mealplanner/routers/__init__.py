"""API routers for the mealplanner application."""

from mealplanner.routers.recipes import router as recipes_router
from mealplanner.routers.units import router as units_router

__all__ = [
    "recipes_router",
    "units_router",
]
