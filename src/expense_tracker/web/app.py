from __future__ import annotations

import contextlib
import os
from typing import Any, AsyncIterator, Dict, List, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.staticfiles import StaticFiles

from ..ai.client import AIClient
from ..config import Settings, load_settings
from ..errors import InvalidImageError, classify_failure
from ..extraction import ExtractionCache, ReceiptFieldExtractor, ReceiptProcessingService
from ..logging import get_logger
from ..tips import TipGenerator

LOG = get_logger("web")

MAX_TIP_EXPENSES = 50
DEFAULT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


def _receipt_failure(status: int, error: str, details: str = "") -> JSONResponse:
    return JSONResponse({"success": False, "error": error, "details": details}, status_code=status)


def create_app(
    settings: Optional[Settings] = None,
    *,
    ai: Optional[AIClient] = None,
    tips: Optional[TipGenerator] = None,
    static_dir: Optional[str] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create the Starlette app exposing the receipt and tips endpoints."""

    if settings is None:
        settings = ai.settings if ai is not None else load_settings()
    ai = ai or AIClient(settings)
    extractor = ReceiptFieldExtractor(ai, ExtractionCache(settings.cache_size, settings.cache_ttl))
    receipts = ReceiptProcessingService(ai, extractor)
    tips = tips or TipGenerator(ai)

    if not ai.enabled:
        LOG.warning("OPENAI_API_KEY not configured; receipt OCR will be rejected and tips use static fallbacks")

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "ai_enabled": ai.enabled})

    async def process_receipt(request: Request) -> JSONResponse:
        body = await _read_json(request)
        image = body.get("imageBase64") if isinstance(body, dict) else None
        if not image or not isinstance(image, str):
            return _receipt_failure(400, "Valid imageBase64 string is required")
        try:
            result = await run_in_threadpool(receipts.process, image)
        except InvalidImageError as exc:
            return _receipt_failure(400, str(exc))
        except Exception as exc:
            status, error = classify_failure(exc)
            LOG.error("Receipt processing failed (%s): %s", status, exc)
            return _receipt_failure(status, error, str(exc))
        return JSONResponse({"success": True, "data": result.to_dict()})

    async def generate_tips(request: Request) -> JSONResponse:
        body = await _read_json(request)
        expenses = body.get("expenses") if isinstance(body, dict) else None
        if not isinstance(expenses, list):
            return JSONResponse({"error": "Invalid input: expenses array is required."}, status_code=400)
        entries: List[Dict[str, Any]] = [e for e in expenses[:MAX_TIP_EXPENSES] if isinstance(e, dict)]
        LOG.info("Generating tips for %s expenses...", len(entries))
        try:
            text = await run_in_threadpool(tips.generate, entries)
        except Exception as exc:
            LOG.error("Tip generation failed: %s", exc)
            return JSONResponse(
                {"error": "Failed to generate budget tips.", "details": str(exc)},
                status_code=500,
            )
        return JSONResponse({"tips": text})

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/process-receipt", process_receipt, methods=["POST"]),
        Route("/api/generate-tips", generate_tips, methods=["POST"]),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_: Starlette) -> AsyncIterator[None]:
        yield
        ai.close()

    app = Starlette(debug=False, routes=routes, lifespan=lifespan)

    origins = allow_origins or DEFAULT_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    if static_dir:
        resolved = os.path.abspath(static_dir)
        if os.path.isdir(resolved):
            LOG.info("Serving static frontend from %s", resolved)
            app.mount("/", StaticFiles(directory=resolved, html=True), name="frontend")
        else:
            LOG.warning("Static directory %s not found; running API only.", resolved)

    app.state.settings = settings
    app.state.extractor = extractor
    return app


__all__ = ["create_app"]
