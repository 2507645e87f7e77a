import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from appraisal.config import Settings, get_settings
from appraisal.errors import InputValidationError
from appraisal.schemas.scan import ErrorResponse, ScanRequest
from appraisal.services.scanner import ScanService
from appraisal.services.vision import VisionService

router = APIRouter(prefix="/api")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def get_scan_service(request: Request, settings: Settings = Depends(get_settings)) -> ScanService:
    client = getattr(request.app.state, "anthropic_client", None)
    vision = VisionService(settings, client=client) if client is not None else None
    return ScanService(settings, vision=vision)


@router.post("/scan", responses=_ERROR_RESPONSES)
async def scan_item(request: Request, service: ScanService = Depends(get_scan_service)):
    """Identify, appraise and find web matches for a base64 image of an item."""
    # credentials are checked before the body is even read
    service.check_configured()

    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InputValidationError("Invalid JSON body.")

    scan_request = ScanRequest.from_payload(payload)
    result = await service.scan(scan_request)
    return JSONResponse(result)


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {"status": "ok", "enrichment": settings.enrichment_enabled}
