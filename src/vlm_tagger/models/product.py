from collections import Counter
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

TAG_SEPARATOR = "|"


class ProductRow(BaseModel):
    """One (name, image URL) pair extracted from an uploaded catalog"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_name: str = Field(alias="productName")
    image_url: str = Field(alias="imageURL")


class TagStatus(str, Enum):
    """Observable outcomes of tagging one product"""
    OK = "OK"
    API_NOT_CONFIGURED = "API_NOT_CONFIGURED"
    NO_IMAGE = "NO_IMAGE"
    FAILED = "FAILED"


SENTINELS = frozenset(
    status.value for status in TagStatus if status is not TagStatus.OK
)


class TagOutcome(BaseModel):
    """Result of tagging one product: either a tag list or a failure reason"""
    model_config = ConfigDict(frozen=True)

    status: TagStatus
    tags: Tuple[str, ...] = ()

    @classmethod
    def success(cls, tags: List[str]) -> "TagOutcome":
        return cls(status=TagStatus.OK, tags=tuple(tags))

    @classmethod
    def failure(cls, status: TagStatus) -> "TagOutcome":
        if status is TagStatus.OK:
            raise ValueError("failure outcome needs a non-OK status")
        return cls(status=status)

    @classmethod
    def from_cell(cls, cell: str) -> "TagOutcome":
        """Parse a tag cell written by to_cell()"""
        cell = (cell or "").strip()
        if cell in SENTINELS:
            return cls.failure(TagStatus(cell))
        return cls.success([t for t in cell.split(TAG_SEPARATOR) if t])

    @property
    def is_success(self) -> bool:
        return self.status is TagStatus.OK

    def to_cell(self) -> str:
        """Render as the pipe-delimited tag string, or the sentinel name"""
        if self.is_success:
            return TAG_SEPARATOR.join(self.tags)
        return self.status.value


class TagResult(BaseModel):
    """Tagging result for one ProductRow"""
    model_config = ConfigDict(frozen=True)

    product_name: str
    image_url: str
    outcome: TagOutcome

    @classmethod
    def for_row(cls, row: ProductRow, outcome: TagOutcome) -> "TagResult":
        return cls(
            product_name=row.product_name, image_url=row.image_url, outcome=outcome
        )

    @classmethod
    def failed(cls, row: ProductRow) -> "TagResult":
        return cls.for_row(row, TagOutcome.failure(TagStatus.FAILED))

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TagResult":
        """Build from the wire shape returned by the submission endpoint

        The explicit ``status`` field wins over the ``tags`` string, which is
        only parsed for sentinels when a peer omits the status.
        """
        cell = str(payload.get("tags") or "")
        status = payload.get("status")

        if status is None:
            outcome = TagOutcome.from_cell(cell)
        elif TagStatus(status) is TagStatus.OK:
            outcome = TagOutcome.success([t for t in cell.split(TAG_SEPARATOR) if t])
        else:
            outcome = TagOutcome.failure(TagStatus(status))

        return cls(
            product_name=str(payload["productName"]),
            image_url=str(payload["imageURL"]),
            outcome=outcome,
        )

    @property
    def tags(self) -> str:
        return self.outcome.to_cell()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "productName": self.product_name,
            "imageURL": self.image_url,
            "tags": self.tags,
            "status": self.outcome.status.value,
        }


class CatalogProcessingResult(BaseModel):
    """Results from tagging an entire catalog"""
    total_products: int
    succeeded: int
    failed: int
    status_counts: Dict[str, int] = Field(default_factory=dict)
    processing_time_seconds: float = 0.0
    results: List[TagResult] = Field(default_factory=list)
    summary_stats: Dict[str, Any] = Field(default_factory=dict)
    output_path: Optional[str] = None

    @classmethod
    def from_results(
        cls, results: List[TagResult], processing_time_seconds: float = 0.0
    ) -> "CatalogProcessingResult":
        status_counts = Counter(r.outcome.status.value for r in results)
        succeeded = status_counts.get(TagStatus.OK.value, 0)
        return cls(
            total_products=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
            status_counts=dict(status_counts),
            processing_time_seconds=processing_time_seconds,
            results=results,
            summary_stats=generate_summary_stats(results),
        )


def generate_summary_stats(results: List[TagResult]) -> Dict[str, Any]:
    """Tag statistics over the successful results"""
    tagged = [r for r in results if r.outcome.is_success]
    if not tagged:
        return {}

    tag_frequency = Counter(tag for r in tagged for tag in r.outcome.tags)
    total_tags = sum(tag_frequency.values())

    return {
        "total_tags_generated": total_tags,
        "unique_tags": len(tag_frequency),
        "avg_tags_per_product": total_tags / len(tagged),
        "products_without_tags": sum(1 for r in tagged if not r.outcome.tags),
        "most_common_tags": dict(tag_frequency.most_common(10)),
    }
