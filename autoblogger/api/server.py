"""
Auto-Blogger trigger service

Run locally:
python -m uvicorn autoblogger.api.server:app --host 0.0.0.0 --port 3000

Trigger a run (plain-text log stream):
curl -N "http://localhost:3000/run-blogger?secret=$CRON_SECRET_KEY"

Trigger a run (server-sent events):
curl -N "http://localhost:3000/run-blogger-stream?secret=$CRON_SECRET_KEY"

Health check:
curl http://localhost:3000/health
"""

from __future__ import annotations

import hmac
import json
import logging
import os
import queue
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from sse_starlette.sse import EventSourceResponse
from starlette.concurrency import run_in_threadpool

from .config import load_config
from .errors import ConfigError
from .models import ErrorResponse
from .pipeline import run_pipeline

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("autoblogger")

FINISHED_MARKER = "--- Process Finished ---"
RUN_TIMEOUT_SECONDS = 900

app = FastAPI(title="Auto-Blogger Service")

cors_origins = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# One run at a time per process; the scheduler is expected to enforce this too.
_RUN_LOCK = threading.Lock()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error="validation_error", details={"errors": exc.errors()}).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    payload = ErrorResponse(error=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.exception("autoblogger.unhandled_error")
    payload = ErrorResponse(error="internal_error")
    return JSONResponse(status_code=500, content=payload.model_dump())


def _check_secret(secret: Optional[str]) -> None:
    expected = os.getenv("CRON_SECRET_KEY", "").strip()
    if not expected:
        raise HTTPException(status_code=503, detail="CRON_SECRET_KEY is not configured.")
    if not secret or not hmac.compare_digest(secret.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")


def _start_run(dry_run: Optional[bool]) -> "queue.Queue[Dict[str, Any]]":
    if not _RUN_LOCK.acquire(blocking=False):
        raise HTTPException(status_code=409, detail="A blogger run is already in progress.")

    events: "queue.Queue[Dict[str, Any]]" = queue.Queue()

    def sink(message: str) -> None:
        events.put({"event": "log", "message": message})

    def worker() -> None:
        try:
            result = run_pipeline(log=sink, dry_run=dry_run)
            events.put({"event": "complete", "data": result.model_dump()})
        except ConfigError as exc:
            logger.warning("autoblogger.run.config_error error=%s", str(exc))
            events.put({"event": "error", "error": str(exc)})
        except Exception:
            logger.exception("autoblogger.run.unhandled_error")
            events.put({"event": "error", "error": "internal_error"})
        finally:
            _RUN_LOCK.release()

    thread = threading.Thread(target=worker, name="autoblogger-run", daemon=True)
    thread.start()
    return events


@app.get("/health")
async def health() -> JSONResponse:
    try:
        config = load_config()
    except ConfigError as exc:
        return JSONResponse(status_code=503, content={"ok": False, "error": str(exc)})
    llm_ready = bool(config.llm_api_key)
    wordpress_ready = bool(config.wp_url and config.wp_user and config.wp_password)
    background_ready = Path(config.background_path).is_file()
    ok = llm_ready and wordpress_ready and background_ready
    payload = {
        "ok": ok,
        "llm_ready": llm_ready,
        "wordpress_ready": wordpress_ready,
        "background_ready": background_ready,
        "run_in_progress": _RUN_LOCK.locked(),
    }
    return JSONResponse(status_code=200 if ok else 503, content=payload)


@app.get("/run-blogger")
async def run_blogger(secret: Optional[str] = None, dry_run: Optional[bool] = None) -> StreamingResponse:
    """Run the pipeline and stream its log as plain text."""
    _check_secret(secret)
    events = _start_run(dry_run)

    def body() -> Iterator[str]:
        while True:
            try:
                msg = events.get(timeout=RUN_TIMEOUT_SECONDS)
            except queue.Empty:
                yield "Timed out waiting for the blogger run.\n"
                break
            if msg["event"] == "log":
                yield msg["message"] + "\n"
                continue
            if msg["event"] == "error":
                yield f"An error occurred: {msg['error']}\n"
            break
        yield FINISHED_MARKER

    return StreamingResponse(
        body(),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )


@app.get("/run-blogger-stream")
async def run_blogger_stream(secret: Optional[str] = None, dry_run: Optional[bool] = None) -> EventSourceResponse:
    """SSE endpoint that streams log lines, then the final result."""
    _check_secret(secret)
    events = _start_run(dry_run)

    async def event_generator():
        while True:
            try:
                msg = await run_in_threadpool(events.get, True, RUN_TIMEOUT_SECONDS)
            except queue.Empty:
                break
            event_type = msg.pop("event", "message")
            yield {"event": event_type, "data": json.dumps(msg)}
            if event_type in ("complete", "error"):
                break

    return EventSourceResponse(event_generator())
