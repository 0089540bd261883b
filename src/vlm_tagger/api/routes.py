"""
Batch Submission Router

Endpoints:
    POST /api/process - Tag a group of products
    GET  /health      - Service and vision model configuration status
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..models.product import ProductRow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/process")
async def process_products(request: Request) -> JSONResponse:
    """
    Tag every submitted product and return results in submission order.

    Body:
        {"products": [{"productName": str, "imageURL": str}, ...]}

    Returns:
        200 {"results": [...]}, 400 for a missing or empty products array,
        500 for any other failure.
    """
    try:
        body = await request.json()
        products = body.get("products") if isinstance(body, dict) else None

        if not isinstance(products, list) or not products:
            return JSONResponse({"error": "Invalid products array"}, status_code=400)

        rows = [ProductRow.model_validate(p) for p in products]
        results = await run_in_threadpool(request.app.state.submitter.submit, rows)

        return JSONResponse({"results": [r.to_payload() for r in results]})
    except Exception as e:
        logger.error(f"Process API error: {e}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    settings = request.app.state.vision_settings
    return {
        "status": "ok",
        "api_configured": settings.is_configured,
        "model": settings.model,
    }
