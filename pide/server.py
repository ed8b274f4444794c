"""Optional HTTP channel onto the shared selection file.

Editors that cannot write files themselves can POST their selection here.
The server holds no selection state of its own: every request reads or
writes the same file the assistant readers watch.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from . import config
from .store import (
    MalformedSelectionError,
    SelectionRecord,
    delete_selection,
    ensure_dir,
    read_selection,
    write_selection,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Make sure the shared directory exists before the first request."""
    path = ensure_dir(config.selection_file())
    logger.info("Serving selections through %s", path)
    yield


app = FastAPI(title="pide selection channel", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SelectionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file: str = Field(min_length=1)
    selection: str | None = None
    start_line: int | None = Field(default=None, alias="startLine", ge=1)
    end_line: int | None = Field(default=None, alias="endLine", ge=1)
    ide: str | None = None


def _selection_path():
    return config.selection_file()


# ---------------------------------------------------------------------------
# Selection endpoints
# ---------------------------------------------------------------------------


@app.get("/selection")
async def get_selection_endpoint() -> dict[str, Any]:
    """Return the current non-stale selection."""
    try:
        record = read_selection(_selection_path())
    except (OSError, MalformedSelectionError) as exc:
        logger.debug("Selection file unreadable: %s", exc)
        record = None
    if record is None:
        raise HTTPException(status_code=404, detail="No active selection")
    return record.to_wire()


@app.post("/selection")
async def post_selection_endpoint(req: SelectionRequest) -> dict[str, Any]:
    """Commit a selection immediately."""
    try:
        record = SelectionRecord.create(
            file=req.file,
            selection=req.selection,
            start_line=req.start_line,
            end_line=req.end_line,
            ide=req.ide or "http",
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        write_selection(record, _selection_path())
    except OSError as exc:
        logger.warning("Failed to write selection from %s: %s", record.ide, exc)
        raise HTTPException(status_code=503, detail="Could not write selection file") from exc
    return record.to_wire()


@app.delete("/selection")
async def delete_selection_endpoint():
    """Clear the shared selection."""
    try:
        delete_selection(_selection_path())
    except OSError as exc:
        raise HTTPException(status_code=503, detail="Could not clear selection file") from exc
    return {"status": "cleared"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}
