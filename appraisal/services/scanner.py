import asyncio
import logging

from appraisal.config import Settings
from appraisal.errors import ConfigurationError, ScanError, VisionServiceError
from appraisal.schemas.scan import ScanRequest, WebMatch
from appraisal.services.image_store import ImageStore
from appraisal.services.vision import VisionService
from appraisal.services.visual_search import VisualSearchService

logger = logging.getLogger(__name__)


class ScanService:
    """Runs one scan: vision analysis alongside the optional upload -> lens search chain.

    Timeline:
        t=0  vision analysis starts ------------------------------+
             blob upload starts --+                               |
                                  +-- lens search -- blob delete -+

    The search starts as soon as the upload resolves, without waiting on the
    vision call, so wall-clock time is about max(vision, upload + search).
    """

    def __init__(
        self,
        settings: Settings,
        vision: VisionService | None = None,
        store: ImageStore | None = None,
        search: VisualSearchService | None = None,
    ):
        self.settings = settings
        self._vision = vision
        self.store = store or ImageStore(settings)
        self.search = search or VisualSearchService(settings)

    @property
    def vision(self) -> VisionService:
        # built lazily so a missing key surfaces as ConfigurationError, not a client error
        if self._vision is None:
            self._vision = VisionService(self.settings)
        return self._vision

    def check_configured(self) -> None:
        if not self.settings.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set.")

    async def scan(self, request: ScanRequest) -> dict:
        """Analysis fields merged with up to five web matches.

        Waits for both branches to settle before returning, so the temporary
        upload is always cleaned up by the time the response goes out.
        """
        self.check_configured()

        analysis, web_results = await asyncio.gather(
            self._analyze(request),
            self._web_results(request),
            return_exceptions=True,
        )

        if isinstance(analysis, BaseException):
            logger.error("Scan error: %s", analysis)
            if isinstance(analysis, ScanError) or not isinstance(analysis, Exception):
                raise analysis
            raise VisionServiceError(str(analysis) or type(analysis).__name__) from analysis

        return {**analysis, "webResults": [m.model_dump() for m in web_results]}

    async def _analyze(self, request: ScanRequest) -> dict:
        return await self.vision.analyze(request.image, request.media_type)

    async def _web_results(self, request: ScanRequest) -> list[WebMatch]:
        """Best-effort enrichment. Any failure here degrades to an empty list."""
        if not self.settings.enrichment_enabled:
            return []

        try:
            async with self.store.temporary_upload(request.image, request.media_type) as url:
                return await self.search.search(url)
        except Exception as exc:
            logger.warning("SerpApi/Blob flow failed (non-fatal): %s", exc)
            return []
