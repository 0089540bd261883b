"""
Core processing components for the VLM product tagger
"""

from .catalog_processor import (
    CatalogProcessor,
    EmptyInputError,
    MalformedContainerError,
    NoValidRowsError,
    RowExtractionError,
)
from .tag_classifier import TagClassifier, process_tags
from .tag_generator import BatchTransportError, LocalBatchSubmitter, TagGenerator
from .vision_tagger import VisionTagger

__all__ = [
    "CatalogProcessor",
    "RowExtractionError",
    "EmptyInputError",
    "NoValidRowsError",
    "MalformedContainerError",
    "TagClassifier",
    "process_tags",
    "VisionTagger",
    "TagGenerator",
    "LocalBatchSubmitter",
    "BatchTransportError",
]
