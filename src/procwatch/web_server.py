"""FastAPI web server exposing the watchdog's extracted log events."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query

from procwatch.config import load_extraction_config
from procwatch.event_store import EventStore
from procwatch.log_watcher import LogWatcher
from procwatch.utils import POLL_INTERVAL, get_config_path

log = logging.getLogger(__name__)

watchers: list[LogWatcher] = []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start one LogWatcher per configured log file."""
    config_path = get_config_path()
    # A bad config raises here and stops startup
    targets = load_extraction_config(config_path) if config_path else []
    if not targets:
        log.warning("No extraction targets configured; set PROCWATCH_CONFIG or pass --config")

    watchers[:] = [LogWatcher(store, target) for target in targets]
    tasks = [asyncio.create_task(w.run_forever(interval=POLL_INTERVAL)) for w in watchers]

    yield

    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await store.close()


app = FastAPI(title="procwatch", lifespan=lifespan)
store = EventStore()


# ── REST Endpoints ──────────────────────────────────────────────────────────


@app.get("/api/health")
async def health():
    return {"ok": True, "pid": os.getpid(), "watchers": len(watchers)}


@app.get("/api/events")
async def list_events(
    group: str | None = None, tag: str | None = None, limit: int = Query(50, ge=1, le=500),
):
    """List recent tagged events, newest first."""
    return await store.list_events(group=group, tag=tag, limit=limit)


@app.get("/api/events/counts")
async def get_tag_counts(group: str | None = None):
    """Event counts grouped by tag."""
    return await store.get_tag_counts(group=group)


@app.delete("/api/events")
async def clear_events(group: str | None = None):
    await store.clear_events(group=group)
    return {"ok": True}


@app.get("/api/watchers")
async def list_watchers():
    """Watched files and how far each has been read."""
    return [w.describe() for w in watchers]


@app.post("/api/watchers/poll")
async def poll_watchers():
    """Run one extraction pass on every watched file now."""
    results = []
    for w in watchers:
        stats = await w.poll_once()
        results.append({"file": w.target.file_path, **stats})
    return results


# ── Entry Point ──────────────────────────────────────────────────────────────


def main():
    import uvicorn

    parser = argparse.ArgumentParser(description="procwatch log event agent")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8430, help="Port to bind to (default: 8430)")
    parser.add_argument("--config", help="Extraction config JSON (default: $PROCWATCH_CONFIG)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.config:
        os.environ["PROCWATCH_CONFIG"] = args.config

    uvicorn.run(
        "procwatch.web_server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
