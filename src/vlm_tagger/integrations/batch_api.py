import logging
from typing import List, Optional

import requests

from ..models.product import ProductRow, TagResult
from ..utils.config import ConfigManager

logger = logging.getLogger(__name__)


class RemoteBatchSubmitter:
    """Submits product groups to a running /api/process endpoint"""

    def __init__(
        self,
        process_url: Optional[str] = None,
        config_manager: Optional[ConfigManager] = None,
    ):
        self.config = config_manager or ConfigManager()
        self.process_url = process_url or self.config.get(
            "server.process_url", "http://localhost:8000/api/process"
        )
        self.timeout = self.config.get("server.timeout_seconds", 300)

    def submit(self, rows: List[ProductRow]) -> List[TagResult]:
        """
        Tag a group remotely

        Raises:
            requests.RequestException: the endpoint was unreachable or errored
            ValueError: the response body did not hold one result per row
        """
        response = requests.post(
            self.process_url,
            json={"products": [row.model_dump(by_alias=True) for row in rows]},
            timeout=self.timeout,
        )
        response.raise_for_status()

        payload = response.json()
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list) or len(results) != len(rows):
            raise ValueError(f"Malformed batch response from {self.process_url}")

        logger.debug(f"Received {len(results)} results from {self.process_url}")
        return [TagResult.from_payload(item) for item in results]
