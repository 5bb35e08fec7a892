"""
app/services package marker.
"""

from app.services.comparison_service import ComparisonService, get_comparison_service

__all__ = [
    "ComparisonService",
    "get_comparison_service",
]
