import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol

from ..models.product import CatalogProcessingResult, ProductRow, TagResult
from ..utils.config import ConfigManager
from .catalog_processor import CatalogProcessor
from .vision_tagger import VisionTagger

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

DEFAULT_BATCH_SIZE = 5


class BatchTransportError(RuntimeError):
    """Raised when a group submission cannot be completed as a whole"""


class BatchSubmitter(Protocol):
    def submit(self, rows: List[ProductRow]) -> List[TagResult]:
        ...


class LocalBatchSubmitter:
    """Tags the rows of a group concurrently in this process, at most max_workers at once"""

    def __init__(self, vision_tagger: VisionTagger, max_workers: int = DEFAULT_BATCH_SIZE):
        self.vision_tagger = vision_tagger
        self.max_workers = max(1, max_workers)

    def submit(self, rows: List[ProductRow]) -> List[TagResult]:
        if not rows:
            return []

        with ThreadPoolExecutor(max_workers=min(len(rows), self.max_workers)) as executor:
            futures = [executor.submit(self._tag_row, row) for row in rows]
            # Collected in submission order, not completion order
            return [future.result() for future in futures]

    def _tag_row(self, row: ProductRow) -> TagResult:
        outcome = self.vision_tagger.tag(row.product_name, row.image_url)
        return TagResult.for_row(row, outcome)


class TagGenerator:
    """Main orchestrator: drives a catalog through the tagger in fixed-size groups"""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        submitter: Optional[BatchSubmitter] = None,
    ):
        self.config = config_manager or ConfigManager()
        self.catalog_processor = CatalogProcessor(self.config)
        self.batch_size = max(
            1, int(self.config.get("processing.batch_size", DEFAULT_BATCH_SIZE))
        )
        self.submitter = submitter or LocalBatchSubmitter(
            VisionTagger.from_config(self.config), max_workers=self.batch_size
        )

        logger.info(f"TagGenerator initialized with batch size {self.batch_size}")

    def tag_products(
        self,
        products: List[ProductRow],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[TagResult]:
        """
        Tag products group by group

        Each group is submitted as a whole and fully settles before the next
        one starts. A group that fails as a whole is recorded as FAILED for
        every member; tagging retries already happen per product.

        Returns:
            One TagResult per product, in input order
        """
        total = len(products)
        results: List[TagResult] = []
        batch_count = (total + self.batch_size - 1) // self.batch_size

        for i in range(0, total, self.batch_size):
            batch = products[i : i + self.batch_size]

            try:
                batch_results = self.submitter.submit(batch)
                if len(batch_results) != len(batch):
                    raise BatchTransportError(
                        f"expected {len(batch)} results, got {len(batch_results)}"
                    )
            except Exception as e:
                logger.error(f"Batch processing error: {e}")
                batch_results = [TagResult.failed(row) for row in batch]

            results.extend(batch_results)

            processed = min(i + self.batch_size, total)
            logger.info(
                f"Processed batch {i // self.batch_size + 1}/{batch_count} "
                f"({processed}/{total} products)"
            )
            if progress_callback:
                progress_callback(processed, total)

        return results

    def process_catalog(
        self,
        catalog_path: str,
        output_path: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        save_results: bool = True,
    ) -> CatalogProcessingResult:
        """
        Process an entire catalog file

        Args:
            catalog_path: Path to catalog file
            output_path: Optional path to save results (defaults to a dated file)
            progress_callback: Called with (processed, total) after each group
            save_results: Whether to write the result sheet

        Returns:
            CatalogProcessingResult with one result per extracted row
        """
        start_time = time.time()
        logger.info(f"Starting catalog processing: {catalog_path}")

        products = self.catalog_processor.process_catalog_file(catalog_path)
        results = self.tag_products(products, progress_callback)

        result = CatalogProcessingResult.from_results(
            results, processing_time_seconds=time.time() - start_time
        )

        if save_results:
            saved = self.catalog_processor.save_results(results, output_path)
            result.output_path = str(saved)

        logger.info(
            f"Catalog processing completed in {result.processing_time_seconds:.2f}s. "
            f"Succeeded: {result.succeeded}, Failed: {result.failed}"
        )
        return result

    def tag_single_product(self, product_name: str, image_url: str) -> TagResult:
        """Tag one product through the configured submitter"""
        row = ProductRow(product_name=product_name, image_url=image_url)
        return self.tag_products([row])[0]

    def get_processing_status(self) -> dict:
        """Get current processing configuration"""
        settings = self.config.get_vision_settings()
        return {
            "api_configured": settings.is_configured,
            "base_url": settings.base_url,
            "model": settings.model,
            "batch_size": self.batch_size,
            "retry_attempts": self.config.get("processing.retry_attempts", 3),
            "submitter": type(self.submitter).__name__,
            "supported_formats": sorted(self.catalog_processor.supported_formats),
        }
