"""
app/api/routers package marker.
"""

from app.api.routers.competitor_comparison import router as competitor_comparison_router

__all__ = [
    "competitor_comparison_router",
]
