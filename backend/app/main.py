import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.models import HealthResponse, HelloResponse, LimitsResponse
from routes.upload import get_admission, router as upload_router
from services import ffmpeg
from services.admission import AdmissionController
from services.errors import PipelineError
from services.scratch import purge_stale

logger = logging.getLogger(__name__)

STALE_JOB_TIMEOUTS = 4


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    # Jobs span probe, transcode and thumbnail, each bounded by the tool timeout.
    purge_stale(settings.upload_dir, max_age_seconds=STALE_JOB_TIMEOUTS * settings.tool_timeout_seconds)
    logger.info("[app] Scratch root ready at %s", settings.upload_dir.resolve())
    try:
        yield
    finally:
        await ffmpeg.terminate_all()


app = FastAPI(title="Video Compressor API", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(upload_router)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    stage = exc.stage.value if exc.stage else "unknown"
    if exc.status_code >= 500:
        logger.error("[app] %s %s failed at %s: %s", request.method, request.url.path, stage, exc)
    else:
        logger.warning("[app] %s %s rejected at %s: %s", request.method, request.url.path, stage, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.message)


@app.get("/", response_model=HelloResponse)
def hello() -> HelloResponse:
    return HelloResponse(msg="hello from /")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/limits", response_model=LimitsResponse)
def limits(
    settings: Settings = Depends(get_settings),
    admission: AdmissionController = Depends(get_admission),
) -> LimitsResponse:
    return LimitsResponse(
        max_concurrent_jobs=admission.capacity,
        active_jobs=admission.active,
        tool_timeout_seconds=settings.tool_timeout_seconds,
    )
