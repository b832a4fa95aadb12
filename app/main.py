"""
main.py — FastAPI backend for the funnel chart maker.

Routes:
    GET  /api/health
    GET  /api/defaults        → starting data, width, height, gradient base
    POST /api/validate        → parsed data points, or 400 with the reason
    POST /api/charts          → chart bytes from chart JSON
    POST /api/charts/upload   → chart bytes from an uploaded .json/.csv/.xlsx

Charts are rendered per request and returned directly; nothing is stored.
"""

from __future__ import annotations

import importlib.util
import logging
import shutil
import tempfile
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from funnel_chart.config import (
    DEFAULT_DATA_JSON,
    DEFAULT_FORMAT,
    resolve_gradient_base,
    resolve_height,
    resolve_width,
)
from funnel_chart.parse_data import dump_data

try:
    from .pipeline import ALLOWED_EXTENSIONS, ChartError, ChartResult, check_data, run_chart, run_chart_file, summarize
except ImportError:
    from pipeline import ALLOWED_EXTENSIONS, ChartError, ChartResult, check_data, run_chart, run_chart_file, summarize

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env", override=False)

logger = logging.getLogger(__name__)

app = FastAPI(title="Funnel Chart Maker", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class DataRequest(BaseModel):
    data: str


class ChartRequest(BaseModel):
    data:          str   = DEFAULT_DATA_JSON
    width:         int   = Field(default_factory=resolve_width)
    height:        int   = Field(default_factory=resolve_height)
    gradient_base: float = Field(default_factory=resolve_gradient_base)
    format:        str   = DEFAULT_FORMAT
    download:      bool  = False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _chart_response(result: ChartResult, download: bool) -> Response:
    headers = {}
    if download:
        headers["Content-Disposition"] = f'attachment; filename="{result.filename}"'
    return Response(content=result.content, media_type=result.media_type, headers=headers)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/", include_in_schema=False)
def home() -> dict:
    return {"message": "Funnel Chart Maker API is running"}


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/api/defaults")
def defaults() -> dict:
    return {
        "data":          dump_data(check_data(DEFAULT_DATA_JSON)),
        "width":         resolve_width(),
        "height":        resolve_height(),
        "gradient_base": resolve_gradient_base(),
        "format":        DEFAULT_FORMAT,
    }


@app.post("/api/validate")
def validate(request: DataRequest) -> dict:
    try:
        data = check_data(request.data)
    except ChartError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "data":    [point.to_json() for point in data],
        "summary": summarize(data),
    }


@app.post("/api/charts")
def create_chart(request: ChartRequest) -> Response:
    try:
        result = run_chart(
            request.data,
            width=request.width,
            height=request.height,
            gradient_base=request.gradient_base,
            fmt=request.format.lower(),
        )
    except ChartError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Chart rendering failed")
        raise HTTPException(status_code=500, detail=f"Unexpected error: {exc}") from exc

    return _chart_response(result, request.download)


@app.post("/api/charts/upload")
def upload_chart(
    file:          UploadFile   = File(...),
    width:         int | None   = Form(default=None),
    height:        int | None   = Form(default=None),
    gradient_base: float | None = Form(default=None),
    format:        str          = Form(default=DEFAULT_FORMAT),
    download:      bool         = Form(default=False),
) -> Response:
    # ── Validate file type ────────────────────────────────────────────────────
    filename  = file.filename or ""
    extension = Path(filename).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type. Upload {', '.join(sorted(ALLOWED_EXTENSIONS))}.",
        )
    if extension == ".xlsx" and importlib.util.find_spec("openpyxl") is None:
        raise HTTPException(
            status_code=400,
            detail=(
                "Excel upload requires openpyxl, which is not installed. "
                "Install openpyxl or upload a CSV instead."
            ),
        )

    # ── Render from a temporary copy ──────────────────────────────────────────
    with tempfile.TemporaryDirectory() as tmp_dir:
        upload_path = Path(tmp_dir) / f"input{extension}"
        with upload_path.open("wb") as dest:
            shutil.copyfileobj(file.file, dest)

        try:
            result = run_chart_file(
                upload_path,
                width=resolve_width() if width is None else width,
                height=resolve_height() if height is None else height,
                gradient_base=resolve_gradient_base() if gradient_base is None else gradient_base,
                fmt=format.lower(),
            )
        except ChartError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Chart rendering failed for upload %s", filename)
            raise HTTPException(status_code=500, detail=f"Unexpected error: {exc}") from exc
        finally:
            file.file.close()

    return _chart_response(result, download)
