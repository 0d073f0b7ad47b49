"""
vi-stream Main Application
==========================

FastAPI entry point for the terminal animation stream.

Terminal clients (curl, wget) receive an endless-looking colorized text
animation; browsers are redirected to the project page.

Endpoints:
    GET  /          - Animation stream (terminal) or 302 redirect (browser)
                      Query: flip=true reverses every frame
    GET  /health    - Liveness probe
    GET  /metrics   - Session counters and frame store state
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Header
from fastapi.responses import (
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
    StreamingResponse,
)

from vi_stream.config import settings
from vi_stream.frames import FrameStore, prepare_frames
from vi_stream.models.session import LoopState, SessionMetrics
from vi_stream.models.termination import TerminationReason
from vi_stream.routing import parse_flip, should_stream
from vi_stream.stream import AnimationLoop, ChunkQueueWriter, ColorCycler
from vi_stream.stream.protocol import CACHE_CONTROL, CONTENT_TYPE, NO_FRAMES_BODY


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_frame_store: Optional[FrameStore] = None
_metrics: SessionMetrics = SessionMetrics()
_startup_time: float = time.time()


# =============================================================================
# Getters
# =============================================================================

def create_frame_store() -> FrameStore:
    return FrameStore(
        primary_dir=settings.frames.directory,
        fallback_dir=settings.frames.fallback_directory,
        extension=settings.frames.extension,
    )


def get_frame_store() -> FrameStore:
    global _frame_store
    if _frame_store is None:
        _frame_store = create_frame_store()
    return _frame_store


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    logger.info(
        f"Frame directories: primary={settings.frames.directory}, "
        f"fallback={settings.frames.fallback_directory}"
    )
    logger.info(
        f"Cadence {settings.animation.frame_delay_ms}ms, "
        f"budget {settings.animation.max_stream_ms}ms"
    )

    yield

    logger.info(
        f"Shutting down ({_metrics.active} active sessions, "
        f"{_metrics.started} served)"
    )


# =============================================================================
# Stream Session Plumbing
# =============================================================================

async def _run_session(animation: AnimationLoop) -> None:
    """Run one loop and record its outcome."""
    try:
        await animation.run()
    finally:
        # Cancelled before the loop got to start
        if not animation.session.closed:
            animation.session.finish(
                LoopState.CANCELLED, TerminationReason.CLIENT_CANCELLED
            )
        _metrics.session_finished(animation.session)


def _on_session_done(task: asyncio.Task, writer: ChunkQueueWriter) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Stream session failed: {task.exception()}")
    # Make sure the response body terminates
    writer.close()


async def _stream_body(
    animation: AnimationLoop,
    writer: ChunkQueueWriter,
) -> AsyncIterator[bytes]:
    """
    Response body: relay the loop's chunks to the client.

    When the client disconnects the generator is closed or cancelled;
    the writer is aborted and the loop task cancelled so no further
    ticks are written.
    """
    _metrics.session_started()
    task = asyncio.create_task(_run_session(animation), name="animation_loop")
    task.add_done_callback(lambda t: _on_session_done(t, writer))

    try:
        async for chunk in writer.chunks():
            yield chunk
    finally:
        if not task.done():
            logger.info("Client disconnected, cancelling stream")
            writer.abort()
            animation.cancel()
            task.cancel()


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="vi-stream",
    description="Animated text stream for terminal clients",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root(
    flip: Optional[str] = None,
    user_agent: Optional[str] = Header(default=None),
) -> Response:
    """Stream the animation to terminal clients, redirect everyone else."""
    if not should_stream(user_agent, settings.routing.terminal_agents):
        _metrics.redirects += 1
        return RedirectResponse(settings.routing.redirect_url, status_code=302)

    store = get_frame_store()
    frames = prepare_frames(await asyncio.to_thread(store.load), parse_flip(flip))

    if not frames:
        logger.error("Frame store returned no frames")
        return PlainTextResponse(
            NO_FRAMES_BODY,
            status_code=500,
            media_type=CONTENT_TYPE,
        )

    writer = ChunkQueueWriter(maxsize=settings.animation.queue_size)
    loop = AnimationLoop(
        frames,
        writer,
        cycler=ColorCycler(),
        frame_delay_ms=settings.animation.frame_delay_ms,
        max_stream_ms=settings.animation.max_stream_ms,
    )

    return StreamingResponse(
        _stream_body(loop, writer),
        media_type=CONTENT_TYPE,
        headers={"Cache-Control": CACHE_CONTROL},
    )


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Session counters and frame store state."""
    store = get_frame_store()

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "frames_loaded": store.loaded,
        "frame_count": store.frame_count,
        "frame_delay_ms": settings.animation.frame_delay_ms,
        "max_stream_ms": settings.animation.max_stream_ms,
        **_metrics.to_dict(),
    })


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Console entry point."""
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "vi_stream.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
