"""FastAPI application exposing the worker over HTTP.

WHY: The studio's front end runs in a separate process from the worker.
An HTTP API is the asynchronous boundary between them: the front end
uploads sources, edits metadata, polls the compile status and downloads
the finished package. FastAPI gives request validation and OpenAPI docs
for free.

HOW: One module-level worker over an InMemoryStorage. A
CompileStatusTracker registers itself as the worker's single listener
for each lifecycle event and remembers the latest one, which the
/package/status endpoint reports. The app lifespan runs the keyboard
catalog freshness check once at startup.

RULES:
- Parse failures (WordListFormatError) → 422
- Unsupported upload extensions → 400
- Missing compiled package → 404
- Compiler and manifest errors → 500 with the error message
- A catalog refresh failure at startup is logged, not fatal
- No match/case, no PEP 604 unions
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List, Optional
from urllib.parse import quote

import httpx
import jsonschema
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import Response

from predictive_text_studio import __version__
from predictive_text_studio.api.models import KeymanAPIError
from predictive_text_studio.compiler import ModelCompilerError
from predictive_text_studio.config import SERVER_HOST, SERVER_PORT, SUPPORTED_SOURCE_EXTENSIONS
from predictive_text_studio.core.read_wordlist import WordListFormatError
from predictive_text_studio.server.models import (
    BCP47Update,
    CompileStatusResponse,
    ErrorResponse,
    GoogleSheetRequest,
    HealthResponse,
    KeyboardDataResponse,
    ManualEntryRequest,
    ProjectMetadataResponse,
    ProjectMetadataUpdate,
    SourceAddedResponse,
    SourceInfo,
)
from predictive_text_studio.worker.impl import CompileState, PredictiveTextStudioWorkerImpl
from predictive_text_studio.worker.protocol import PredictiveTextStudioWorker

logger = logging.getLogger(__name__)


class CompileStatusTracker:
    """Remembers the latest compile lifecycle event of a worker.

    RULES:
    - attach() takes over all three lifecycle slots of the worker
    - Each event overwrites the previous snapshot
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.status = CompileState.IDLE
        self.error: Optional[str] = None
        self.package_size: Optional[int] = None
        self.updated_at: Optional[float] = None

    def attach(self, worker: PredictiveTextStudioWorker) -> None:
        worker.on_package_compile_start(self._on_start)
        worker.on_package_compile_error(self._on_error)
        worker.on_package_compile_success(self._on_success)

    def _on_start(self) -> None:
        self.status = CompileState.COMPILE_STARTED
        self.error = None
        self.package_size = None
        self.updated_at = time.time()

    def _on_error(self, err: Exception) -> None:
        self.status = CompileState.COMPILE_FAILED
        self.error = str(err)
        self.updated_at = time.time()

    def _on_success(self, kmp: bytes) -> None:
        self.status = CompileState.COMPILE_SUCCEEDED
        self.package_size = len(kmp)
        self.updated_at = time.time()

    def to_response(self) -> CompileStatusResponse:
        return CompileStatusResponse(
            status=self.status.value,
            error=self.error,
            package_size=self.package_size,
            updated_at=self.updated_at,
        )


# ---------------------------------------------------------------------------
# App and worker setup
# ---------------------------------------------------------------------------

worker = PredictiveTextStudioWorkerImpl()
compile_status = CompileStatusTracker()
compile_status.attach(worker)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Check the keyboard catalog cache once on startup."""
    try:
        await worker.initialize()
    except (KeymanAPIError, httpx.HTTPError):
        logger.exception("Keyboard catalog refresh failed; serving the cached catalog")
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Predictive Text Studio API",
    description=(
        "Build Keyman lexical model packages from word lists. Upload "
        "spreadsheets, TSV files or manual tables, set the language and "
        "author metadata, and download the compiled .kmp package."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _validate_file_extension(filename: str) -> None:
    """Raise HTTPException if the file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_SOURCE_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_SOURCE_EXTENSIONS))
            ),
        )


def _content_disposition(filename: str) -> str:
    """Attachment header value; non-ASCII names use the RFC 5987 form."""
    quoted = quote(filename)
    if quoted != filename:
        return "attachment; filename*=utf-8''{}".format(quoted)
    return 'attachment; filename="{}"'.format(filename)


def _downstream_error(exc: Exception) -> HTTPException:
    return HTTPException(status_code=500, detail="Package compile failed: {}".format(exc))


# ---------------------------------------------------------------------------
# Endpoints: Dictionary sources
# ---------------------------------------------------------------------------


@app.post(
    "/sources",
    response_model=SourceAddedResponse,
    status_code=201,
    tags=["sources"],
    summary="Upload a dictionary source file",
    description=(
        "Upload an .xlsx spreadsheet or a .tsv/.txt tab-separated word list. "
        "The file is parsed, stored under its filename, and the package is recompiled."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported file type"},
        422: {"model": ErrorResponse, "description": "File is not a usable word list"},
        500: {"model": ErrorResponse, "description": "Package compile failed"},
    },
)
async def add_dictionary_source(
    file: Annotated[UploadFile, File(description="Word list file (.xlsx, .tsv, .txt)")],
) -> SourceAddedResponse:
    # Sanitize filename to prevent path traversal
    filename = Path(file.filename or "upload.xlsx").name
    _validate_file_extension(filename)
    contents = await file.read()

    try:
        words_added = await worker.add_dictionary_source_to_project(filename, contents)
    except WordListFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except (ModelCompilerError, jsonschema.ValidationError) as exc:
        raise _downstream_error(exc)

    return SourceAddedResponse(
        name=filename,
        words_added=words_added,
        compile=compile_status.to_response(),
    )


@app.post(
    "/sources/manual",
    response_model=SourceAddedResponse,
    status_code=201,
    tags=["sources"],
    summary="Store a manually entered dictionary",
    responses={
        422: {"model": ErrorResponse, "description": "A count is not a non-negative integer"},
        500: {"model": ErrorResponse, "description": "Package compile failed"},
    },
)
async def add_manual_entry_dictionary(body: ManualEntryRequest) -> SourceAddedResponse:
    try:
        words_added = await worker.add_manual_entry_dictionary_to_project(
            body.name, [row.to_entry() for row in body.data]
        )
    except WordListFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except (ModelCompilerError, jsonschema.ValidationError) as exc:
        raise _downstream_error(exc)

    return SourceAddedResponse(
        name=body.name,
        words_added=words_added,
        compile=compile_status.to_response(),
    )


@app.post(
    "/sources/google-sheet",
    response_model=SourceAddedResponse,
    status_code=201,
    tags=["sources"],
    summary="Store rows read from a Google Sheet",
    responses={
        422: {"model": ErrorResponse, "description": "A count is not a non-negative integer"},
        500: {"model": ErrorResponse, "description": "Package compile failed"},
    },
)
async def add_google_sheet(body: GoogleSheetRequest) -> SourceAddedResponse:
    try:
        words_added = await worker.read_google_sheet(body.name, body.wordlist)
    except WordListFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except (ModelCompilerError, jsonschema.ValidationError) as exc:
        raise _downstream_error(exc)

    return SourceAddedResponse(
        name=body.name,
        words_added=words_added,
        compile=compile_status.to_response(),
    )


@app.get(
    "/sources",
    response_model=List[SourceInfo],
    tags=["sources"],
    summary="List stored dictionary sources",
)
async def list_sources() -> List[SourceInfo]:
    sources = await worker.get_files_from_storage()
    return [SourceInfo.from_source(source) for source in sources]


# ---------------------------------------------------------------------------
# Endpoints: Project metadata
# ---------------------------------------------------------------------------


@app.get(
    "/project",
    response_model=ProjectMetadataResponse,
    tags=["project"],
    summary="Get the project metadata",
)
async def get_project() -> ProjectMetadataResponse:
    metadata = await worker.fetch_all_current_project_metadata()
    return ProjectMetadataResponse.from_metadata(metadata)


@app.patch(
    "/project",
    response_model=ProjectMetadataResponse,
    tags=["project"],
    summary="Update part of the project metadata",
    description="Only the supplied fields change; everything else keeps its stored value.",
)
async def update_project(body: ProjectMetadataUpdate) -> ProjectMetadataResponse:
    await worker.set_project_data(body.to_patch())
    metadata = await worker.fetch_all_current_project_metadata()
    return ProjectMetadataResponse.from_metadata(metadata)


@app.put(
    "/project/bcp47",
    response_model=CompileStatusResponse,
    tags=["project"],
    summary="Set the BCP-47 tag and recompile",
    responses={
        500: {"model": ErrorResponse, "description": "Package compile failed"},
    },
)
async def update_bcp47_tag(body: BCP47Update) -> CompileStatusResponse:
    try:
        await worker.update_bcp47_tag(body.bcp47_tag)
    except (ModelCompilerError, jsonschema.ValidationError) as exc:
        raise _downstream_error(exc)
    return compile_status.to_response()


# ---------------------------------------------------------------------------
# Endpoints: Package
# ---------------------------------------------------------------------------


@app.get(
    "/package",
    tags=["package"],
    summary="Download the compiled .kmp package",
    responses={
        404: {"model": ErrorResponse, "description": "Nothing has compiled yet"},
    },
)
async def download_package() -> Response:
    kmp = await worker.get_kmp_package()
    if kmp is None:
        raise HTTPException(status_code=404, detail="No compiled package available")

    metadata = await worker.fetch_all_current_project_metadata()
    return Response(
        content=kmp,
        media_type="application/octet-stream",
        headers={"Content-Disposition": _content_disposition("{}.kmp".format(metadata.model_id))},
    )


@app.get(
    "/package/status",
    response_model=CompileStatusResponse,
    tags=["package"],
    summary="Latest package compile status",
)
async def package_status() -> CompileStatusResponse:
    return compile_status.to_response()


# ---------------------------------------------------------------------------
# Endpoints: Catalog and health
# ---------------------------------------------------------------------------


@app.get(
    "/catalog",
    response_model=List[KeyboardDataResponse],
    tags=["catalog"],
    summary="Cached Keyman language catalog",
)
async def get_catalog() -> List[KeyboardDataResponse]:
    entries = await worker.get_data_from_storage()
    return [KeyboardDataResponse.from_entry(entry) for entry in entries]


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=host or SERVER_HOST, port=port or SERVER_PORT)
