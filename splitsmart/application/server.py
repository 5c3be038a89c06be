"""FastAPI server exposing receipt classification over HTTP."""

from collections.abc import Callable
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from splitsmart.application.classification import (
    ClassificationRequest,
    classify_receipt,
    parse_receipt_payload,
    with_engine,
)
from splitsmart.receipt.formatter import classified_receipt_to_dict
from splitsmart.runtime.logging import get_logger
from splitsmart.runtime.secrets import SecretProvider, default_secret_provider
from splitsmart.runtime.settings import EngineConfig, load_engine_config

logger = get_logger(__name__)


def create_app(
    load_config: Callable[[], EngineConfig] = load_engine_config,
    secrets: SecretProvider | None = None,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    """Build the app; config is read once per request so each run sees a fixed configuration."""
    app = FastAPI(title="Receipt Classifier")

    @app.post("/classify")
    async def classify(request: Request) -> JSONResponse:
        """Classify receipt lines posted as {"items": [...], "context": {...}, "engine": "..."}."""
        try:
            payload: Any = await request.json()
        except ValueError:
            return JSONResponse({"status": "error", "message": "Body must be JSON"}, status_code=400)
        if not isinstance(payload, dict):
            return JSONResponse({"status": "error", "message": "Body must be a JSON object"}, status_code=400)

        try:
            items, context = parse_receipt_payload(payload)
            config = with_engine(load_config(), payload.get("engine"))
        except ValueError as e:
            return JSONResponse({"status": "error", "message": str(e)}, status_code=400)

        outcome = await run_in_threadpool(
            classify_receipt,
            ClassificationRequest(
                items=items,
                context=context,
                config=config,
                secrets=secrets or default_secret_provider(),
                transport=transport,
            ),
        )
        logger.info("Classified %d line(s) via HTTP, status %s", len(items), outcome.receipt.validation_status.value)
        return JSONResponse(
            {
                "status": "success",
                "engine": outcome.engine.value,
                "receipt_type": outcome.context.receipt_type.value,
                "receipt": classified_receipt_to_dict(outcome.receipt),
            }
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
