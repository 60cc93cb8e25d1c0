"""FastAPI server for the Chat Outline viewer.

Reads the outline snapshot persisted by the indexer (a JSON file written
by :class:`chat_index.sink.JsonFileSink`) and exposes JSON endpoints for
the viewer frontend. Collapse state and search text are owned by the
viewer and sent with every request.

Usage:
    cd dashboard
    CHAT_INDEX_PATH=../output/chat_index.json PYTHONPATH=../src \
      uvicorn api.server:app --reload --port 8000
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

# Add src to path so we can import chat_index modules
_src = Path(__file__).resolve().parents[2] / "src"
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from chat_index.io_utils import load_json  # noqa: E402
from chat_index.sink import deserialize_sections, serialize_sections  # noqa: E402
from chat_index.unit_types import Section  # noqa: E402
from chat_index.visibility import outline_view  # noqa: E402

# ---------------------------------------------------------------------------
# Globals
# ---------------------------------------------------------------------------
_index_path = Path(
    os.environ.get(
        "CHAT_INDEX_PATH",
        str(Path(__file__).resolve().parents[2] / "output" / "chat_index.json"),
    )
)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Chat Outline API",
    version="0.1.0",
    default_response_class=ORJSONResponse,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _load_sections() -> list[Section]:
    """Latest persisted outline; empty when nothing has been indexed yet."""
    if not _index_path.exists():
        return []
    try:
        return deserialize_sections(load_json(_index_path))
    except ValueError as e:
        raise HTTPException(status_code=500, detail=f"Corrupt outline snapshot: {e}") from e


def _parse_ids(raw: str | None) -> set[str]:
    if not raw:
        return set()
    return {part.strip() for part in raw.split(",") if part.strip()}


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/api/health")
async def health():
    return {
        "status": "ok",
        "index_loaded": _index_path.exists(),
    }


@app.get("/api/outline")
async def outline(
    q: str = Query("", description="Case-insensitive search text"),
    collapsed: str | None = Query(None, description="Comma-separated collapsed unit ids"),
):
    sections = _load_sections()
    return {
        "query": q,
        "sections": outline_view(sections, q, _parse_ids(collapsed)),
    }


class ActionRequest(BaseModel):
    action: str
    id: str | None = None


@app.post("/api/action")
async def action(req: ActionRequest):
    """Viewer protocol over HTTP. Unknown actions are ignored."""
    if req.action == "ping":
        return {"status": "pong"}
    if req.action == "get_index":
        return {"status": "ok", "sections": serialize_sections(_load_sections())}
    return {"status": "ignored"}
