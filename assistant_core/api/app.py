"""
FastAPI HTTP interface for the marketplace assistant router.

Endpoints:
  GET  /health     liveness probe
  POST /api/chat   classify, dispatch and return a ResponseEnvelope
"""

from __future__ import annotations

import json
import os
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from assistant_core.api.service import MESSAGE_REQUIRED, handle_chat_request
from assistant_core.infrastructure.logging.logger import logger

app = FastAPI(
    title="Marketplace Assistant Router",
    version="0.1.0",
    description="Intent classification and tool dispatch with model fallback.",
)


@app.get("/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok", "server": "assistant-core"}


@app.post("/api/chat", tags=["chat"])
async def chat(request: Request) -> JSONResponse:
    """Route one message.

    The body is parsed by hand so that malformed JSON gets the same 400
    envelope as a missing message instead of FastAPI's default 422.
    """
    try:
        payload: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse({"success": False, "error": MESSAGE_REQUIRED}, status_code=400)
    status, body = await handle_chat_request(payload)
    return JSONResponse(body, status_code=status)


def run_api() -> None:
    """Start the FastAPI server via uvicorn."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8300"))
    logger.info("Starting assistant-core API on %s:%d", host, port)
    uvicorn.run(
        "assistant_core.api.app:app",
        host=host,
        port=port,
        log_level="info",
        reload=False,
    )


if __name__ == "__main__":
    run_api()
