"""
Submission endpoint application factory.

The browser client (or RemoteBatchSubmitter) posts one group of products at a
time; this service tags the group concurrently and answers with one result
per product.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.tag_generator import DEFAULT_BATCH_SIZE, BatchSubmitter, LocalBatchSubmitter
from ..core.vision_tagger import VisionTagger
from ..utils.config import ConfigManager
from .routes import router

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[ConfigManager] = None,
    submitter: Optional[BatchSubmitter] = None,
) -> FastAPI:
    config = config or ConfigManager()
    vision_tagger = VisionTagger.from_config(config)

    app = FastAPI(
        title="VLM Product Tagger",
        description="Vision-model tag generation for product catalogs",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.vision_settings = vision_tagger.settings
    app.state.submitter = submitter or LocalBatchSubmitter(
        vision_tagger,
        max_workers=int(config.get("processing.batch_size", DEFAULT_BATCH_SIZE)),
    )
    app.include_router(router)

    logger.info(f"Submission endpoint ready (model: {vision_tagger.settings.model})")
    return app
