"""
Data models for the VLM product tagger
"""

from .product import (
    CatalogProcessingResult,
    ProductRow,
    TagOutcome,
    TagResult,
    TagStatus,
)
from .tag_config import (
    DEFAULT_MARKERS,
    CategoryMarkers,
    FashionMarkerConfig,
    ProductCategory,
)

__all__ = [
    "ProductRow",
    "TagStatus",
    "TagOutcome",
    "TagResult",
    "CatalogProcessingResult",
    "ProductCategory",
    "CategoryMarkers",
    "FashionMarkerConfig",
    "DEFAULT_MARKERS",
]
