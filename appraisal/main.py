import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from appraisal.config import get_settings
from appraisal.errors import ScanError
from appraisal.routers import scan
from appraisal.services.vision import build_client

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.enrichment_enabled:
        logger.info("SERPAPI_KEY or BLOB_READ_WRITE_TOKEN missing; web matches disabled")

    # one model client (and connection pool) shared by every scan
    app.state.anthropic_client = None
    if settings.anthropic_api_key:
        app.state.anthropic_client = build_client(settings)
    else:
        logger.warning("ANTHROPIC_API_KEY is not set; scans will fail until it is configured")

    yield

    if app.state.anthropic_client is not None:
        await app.state.anthropic_client.close()
        app.state.anthropic_client = None


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ScanError)
    async def scan_error_handler(request: Request, exc: ScanError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(scan.router)


def run() -> None:
    import uvicorn

    uvicorn.run("appraisal.main:app", host=settings.host, port=settings.port)
