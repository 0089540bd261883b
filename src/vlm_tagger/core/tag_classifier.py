import logging
from typing import Any, Iterable, List, Optional

from ..models.tag_config import DEFAULT_MARKERS, CategoryMarkers, ProductCategory

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 12


class TagClassifier:
    """Rule-based category inference and tag filtering"""

    def __init__(self, markers: Optional[CategoryMarkers] = None):
        self.markers = markers or DEFAULT_MARKERS

    @staticmethod
    def clean_tags(raw_tags: Iterable[Any]) -> List[str]:
        """Drop empty, multi-line, pipe-containing and overlong tags"""
        cleaned = []
        for raw in raw_tags:
            if not raw:
                continue
            tag = str(raw).strip()
            if not tag or "\n" in tag or "|" in tag or len(tag) > MAX_TAG_LENGTH:
                continue
            cleaned.append(tag)
        return cleaned

    @staticmethod
    def dedupe_tags(tags: Iterable[str]) -> List[str]:
        """Keep the first occurrence of each tag"""
        return list(dict.fromkeys(tags))

    def classify_category(self, tags: Iterable[str]) -> ProductCategory:
        """Infer the coarse category; bag wins over shoe, shoe over clothing"""
        tag_set = set(tags)
        if tag_set & self.markers.bag:
            return ProductCategory.BAG
        if tag_set & self.markers.shoe:
            return ProductCategory.SHOE
        if tag_set & self.markers.clothing:
            return ProductCategory.CLOTHING
        return ProductCategory.UNKNOWN

    def filter_tags(self, tags: List[str], category: ProductCategory) -> List[str]:
        """Remove attribute tags that contradict the category"""
        filtered = []
        for tag in tags:
            if (
                tag in self.markers.sleeve or tag in self.markers.collar
            ) and category is not ProductCategory.CLOTHING:
                continue
            if tag in self.markers.shoe_lace and category is not ProductCategory.SHOE:
                continue
            filtered.append(tag)
        return filtered

    def process_tags(self, raw_tags: Iterable[Any]) -> List[str]:
        """Clean, dedupe and category-filter a raw tag list"""
        tags = self.dedupe_tags(self.clean_tags(raw_tags))
        category = self.classify_category(tags)
        processed = self.filter_tags(tags, category)

        if len(processed) < len(tags):
            logger.debug(
                f"Dropped {len(tags) - len(processed)} tags inconsistent with "
                f"category {category.value}"
            )
        return processed


# Global classifier instance
tag_classifier = TagClassifier()


def process_tags(raw_tags: Iterable[Any]) -> List[str]:
    """Convenience function using the default marker vocabularies"""
    return tag_classifier.process_tags(raw_tags)
