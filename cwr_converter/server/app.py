"""FastAPI application: spreadsheet upload, CWR conversion, and download.

WHY: Most users never touch a terminal. They upload the catalogue
spreadsheet from the upload form at / or from a script and want a .cwr
file back. FastAPI provides request validation, multipart upload
handling, and automatic OpenAPI documentation.

HOW: POST /conversions reads the uploaded CSV, runs the extractor and the
CWR formatter in the threadpool, writes the result into the conversion's
temp directory, and returns a download URL. Other endpoints provide the
upload form, metadata lookup, download, deletion, and health.

RULES:
- Error responses use the ErrorResponse schema
- Only .csv uploads are accepted; the upload itself is never stored
- Conversion work never runs on the event loop
- The conversion store is a module-level singleton; a lifespan task
  expires old conversions every 5 minutes
- Unexpected conversion failures are logged and the temp dir removed
"""

from __future__ import annotations

import asyncio
import html
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, Response

from cwr_converter import __version__
from cwr_converter.config import (
    API_HOST,
    API_PORT,
    RECEIVER_ID,
    SENDER_ID,
    SUPPORTED_INPUT_FORMATS,
)
from cwr_converter.core.extractor import build_transmission
from cwr_converter.core.rows import rows_from_bytes
from cwr_converter.formatters.cwr import CWRFormatter
from cwr_converter.server.models import (
    ConversionResponse,
    ErrorResponse,
    HealthResponse,
)
from cwr_converter.server.store import Conversion, ConversionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

conversion_store = ConversionStore()


async def _periodic_cleanup() -> None:
    """Expire old conversions every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        conversion_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="CWR Converter API",
    description=(
        "Upload a work-registration spreadsheet (CSV) and download it as a "
        "fixed-width CWR transmission file."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _download_url(conversion: Conversion) -> str:
    return "/conversions/{}/download".format(conversion.id)


def _conversion_to_response(conversion: Conversion) -> ConversionResponse:
    return ConversionResponse(
        id=conversion.id,
        filename=conversion.filename,
        output_filename=conversion.output_filename,
        created_at=conversion.created_at,
        work_count=conversion.work_count,
        record_count=conversion.record_count,
        download_url=_download_url(conversion),
    )


def _validate_file_extension(filename: str) -> None:
    """Raise HTTPException if the file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_INPUT_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_INPUT_FORMATS))
            ),
        )


def _convert_upload(
    conversion: Conversion,
    content: bytes,
    sender_id: str,
    receiver_id: str,
) -> None:
    """Convert uploaded CSV bytes and save the .cwr file into the conversion.

    WHY: Parsing and emission are CPU-bound. Running them inside an async
    endpoint would stall every other request, so the endpoint hands this
    synchronous function to the threadpool.
    """
    rows = rows_from_bytes(content)
    transmission = build_transmission(
        rows,
        source_filename=conversion.filename,
        sender_id=sender_id,
        receiver_id=receiver_id,
    )
    output = CWRFormatter().format(transmission)[0]
    output_filename = "{}{}".format(Path(conversion.filename).stem, output.suffix)
    with open(conversion.output_dir / output_filename, "w", encoding="utf-8", newline="\n") as fh:
        fh.write(output.content)

    conversion.output_filename = output_filename
    conversion.work_count = len(transmission.registrations)
    conversion.record_count = output.content.count("\n")


def _get_conversion_or_404(conversion_id: str) -> Conversion:
    conversion = conversion_store.get(conversion_id)
    if conversion is None:
        raise HTTPException(
            status_code=404,
            detail="Conversion not found: {}".format(conversion_id),
        )
    return conversion


# ---------------------------------------------------------------------------
# Endpoints: Conversions
# ---------------------------------------------------------------------------


@app.post(
    "/conversions",
    response_model=ConversionResponse,
    status_code=201,
    tags=["conversions"],
    summary="Convert a CSV spreadsheet to CWR",
    description=(
        "Upload a CSV file with one work per row. The file is converted "
        "immediately; the response carries the download URL of the .cwr file."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing or unsupported file"},
        429: {"model": ErrorResponse, "description": "Too many stored conversions"},
    },
)
async def create_conversion(
    file: Annotated[
        Optional[UploadFile],
        File(description="CSV spreadsheet with one work per row"),
    ] = None,
    sender_id: Annotated[
        Optional[str],
        Form(description="Sender id for the HDR record."),
    ] = None,
    receiver_id: Annotated[
        Optional[str],
        Form(description="Receiver id for the HDR record."),
    ] = None,
) -> ConversionResponse:
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    # Sanitize filename to prevent path traversal
    filename = Path(file.filename or "").name
    if not filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    _validate_file_extension(filename)

    content = await file.read()
    if not content.strip():
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    try:
        conversion = conversion_store.create(filename=filename)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    try:
        await run_in_threadpool(
            _convert_upload,
            conversion,
            content,
            sender_id or SENDER_ID,
            receiver_id or RECEIVER_ID,
        )
    except Exception:
        logger.exception("Conversion failed for %s", filename)
        conversion_store.delete(conversion.id)
        raise HTTPException(status_code=500, detail="Error converting file.")

    logger.info(
        "Converted %s: %d works, %d records",
        filename, conversion.work_count, conversion.record_count,
    )
    return _conversion_to_response(conversion)


@app.get(
    "/conversions/{conversion_id}",
    response_model=ConversionResponse,
    tags=["conversions"],
    summary="Get conversion metadata",
    responses={
        404: {"model": ErrorResponse, "description": "Conversion not found"},
    },
)
async def get_conversion(conversion_id: str) -> ConversionResponse:
    return _conversion_to_response(_get_conversion_or_404(conversion_id))


@app.get(
    "/conversions/{conversion_id}/download",
    tags=["conversions"],
    summary="Download the CWR file",
    description="Download the generated .cwr file as an attachment.",
    responses={
        404: {"model": ErrorResponse, "description": "Conversion or file not found"},
    },
)
async def download_conversion(conversion_id: str) -> Response:
    conversion = _get_conversion_or_404(conversion_id)

    path = conversion.output_path
    if not conversion.output_filename or not path.is_file():
        raise HTTPException(
            status_code=404,
            detail="Output file for conversion {} not found.".format(conversion_id),
        )

    return Response(
        content=path.read_bytes(),
        media_type="text/plain",
        headers={
            "Content-Disposition": 'attachment; filename="{}"'.format(
                conversion.output_filename
            ),
        },
    )


@app.delete(
    "/conversions/{conversion_id}",
    status_code=204,
    tags=["conversions"],
    summary="Delete a conversion",
    description="Delete a conversion and its output file.",
    responses={
        404: {"model": ErrorResponse, "description": "Conversion not found"},
    },
)
async def delete_conversion(conversion_id: str) -> Response:
    if not conversion_store.delete(conversion_id):
        raise HTTPException(
            status_code=404,
            detail="Conversion not found: {}".format(conversion_id),
        )
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Upload form
# ---------------------------------------------------------------------------

_UPLOAD_FORM = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>CWR Converter</title></head>
<body>
<h1>CWR Converter</h1>
<form action="/conversions" method="post" enctype="multipart/form-data">
  <p><label>Spreadsheet (CSV) <input type="file" name="file" accept=".csv" required></label></p>
  <p><label>Sender id <input type="text" name="sender_id" placeholder="{sender_id}"></label></p>
  <p><label>Receiver id <input type="text" name="receiver_id" placeholder="{receiver_id}"></label></p>
  <p><button type="submit">Convert</button></p>
</form>
</body>
</html>
"""


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def upload_form() -> HTMLResponse:
    """Minimal browser form that posts to /conversions."""
    return HTMLResponse(
        _UPLOAD_FORM.format(
            sender_id=html.escape(SENDER_ID),
            receiver_id=html.escape(RECEIVER_ID),
        )
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the cwr-api console script."""
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
