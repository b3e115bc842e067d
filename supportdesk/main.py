# main.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

BASE_DIR = Path(__file__).resolve().parent

# Load .env before reading any settings
load_dotenv(BASE_DIR / ".env")

from supportdesk.app.mcp.errors import UnknownSessionError
from supportdesk.app.mcp.server import call_tool
from supportdesk.app.mcp.tools import build_registry
from supportdesk.app.mcp.transport import StreamingTransport


# ---------- Logging ----------
DEBUG = os.getenv("DEBUG", "0") == "1"
logger = logging.getLogger("supportdesk")
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.DEBUG if DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

# ---------- ENV ----------
PORT = int(os.getenv("PORT", "3000"))
SERVER_NAME = os.getenv("SERVER_NAME", "support-mcp-server")
SERVER_VERSION = os.getenv("SERVER_VERSION", "1.0.0")
SSE_KEEPALIVE_SECONDS = max(1.0, float(os.getenv("SSE_KEEPALIVE_SECONDS", "15")))
TOOL_ARGS_LOG_LIMIT = max(16, int(os.getenv("TOOL_ARGS_LOG_LIMIT", "200")))

ENDPOINTS = {
    "mcp_sse": "/sse + /messages (MCP protocol)",
    "direct": "/tool (direct HTTP calls)",
    "health": "/health",
}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

# ---------- Registry + Transport ----------
REGISTRY = build_registry(args_log_limit=TOOL_ARGS_LOG_LIMIT)
TRANSPORT = StreamingTransport(
    REGISTRY,
    message_path="/messages",
    server_info={"name": SERVER_NAME, "version": SERVER_VERSION},
    keepalive_seconds=SSE_KEEPALIVE_SECONDS,
)


class HealthResponse(BaseModel):
    """Diagnostic snapshot; nothing reads it for control decisions."""
    status: str
    server: str
    version: str
    tools: List[str]
    endpoints: Dict[str, str]
    activeSessions: int


async def _read_json(request: Request) -> Any:
    """Parsed JSON body, or None when the body is empty or not JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


# ---------- FastAPI ----------
@asynccontextmanager
async def _lifespan(_app: FastAPI):
    logger.info("════════════════════════════════════════")
    logger.info("  MCP Server %s %s running on port %s", SERVER_NAME, SERVER_VERSION, PORT)
    logger.info("  Health : http://localhost:%s/health", PORT)
    logger.info("  SSE    : http://localhost:%s/sse", PORT)
    logger.info("  Tool   : http://localhost:%s/tool", PORT)
    logger.info("  Tools  : %s", ", ".join(REGISTRY.names()))
    logger.info("════════════════════════════════════════")
    yield
    closed = TRANSPORT.close_all()
    if closed:
        logger.info("Shutdown closed %d open SSE session(s)", closed)


app = FastAPI(title="Support MCP Server", version=SERVER_VERSION, lifespan=_lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"ok": True, "service": SERVER_NAME, "health": "/health", "docs": "/docs"}


@app.get("/sse")
async def sse_connect(request: Request):
    session = TRANSPORT.connect()
    # The background task covers disconnects that cancel the stream before it starts.
    return StreamingResponse(
        TRANSPORT.event_stream(session, request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(TRANSPORT.close, session.id),
    )


@app.post("/messages")
async def post_message(request: Request, sessionId: Optional[str] = Query(None)):  # noqa: N803
    try:
        TRANSPORT.require_session(sessionId)
    except UnknownSessionError as exc:
        logger.warning("[Message] Unknown session: %s", sessionId)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    payload = await _read_json(request)
    try:
        status_code, body = await TRANSPORT.handle_message(sessionId, payload)
    except UnknownSessionError as exc:
        # Session closed while the body was being read.
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)
    if body is None:
        return Response(status_code=status_code)
    return JSONResponse(body, status_code=status_code)


@app.post("/tool")
async def direct_tool(request: Request):
    payload = await _read_json(request)
    try:
        status_code, body = await call_tool(REGISTRY, payload)
    except Exception:
        logger.exception("[Tool Error] direct call failed")
        return JSONResponse({"success": False, "error": "Internal server error"}, status_code=500)
    return JSONResponse(body, status_code=status_code)


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(
        status="ok",
        server=SERVER_NAME,
        version=SERVER_VERSION,
        tools=REGISTRY.names(),
        endpoints=ENDPOINTS,
        activeSessions=TRANSPORT.active_sessions(),
    )


# ---------- Local start ----------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("supportdesk.main:app", host="0.0.0.0", port=PORT, reload=False)
