import asyncio
import logging

import httpx

from appraisal.config import Settings
from appraisal.errors import EnrichmentError
from appraisal.schemas.scan import WebMatch

logger = logging.getLogger(__name__)


def _value(match: dict, key: str, default):
    value = match.get(key)
    return default if value is None else value


def _parse_match(match: dict) -> WebMatch:
    price = None
    price_info = match.get("price")
    if isinstance(price_info, dict) and price_info.get("value") is not None:
        price = str(price_info["value"])

    thumbnail = match.get("thumbnail")
    return WebMatch(
        title=str(_value(match, "title", "Unknown")),
        price=price,
        link=str(_value(match, "link", "")),
        source=str(_value(match, "source", "")),
        thumbnail=str(thumbnail) if thumbnail is not None else None,
    )


class VisualSearchService:
    """Reverse image search via SerpAPI Google Lens."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = settings.serpapi_api_key
        self.base_url = settings.serpapi_base_url
        self.timeout = settings.search_timeout
        self.max_results = settings.max_web_results
        self._transport = transport

    async def search(self, image_url: str) -> list[WebMatch]:
        """Visual matches for a publicly reachable image, in provider relevance order."""
        params = {
            "engine": "google_lens",
            "url": image_url,
            "api_key": self.api_key,
        }

        # the deadline covers connect, headers and the whole body, not each read
        try:
            async with asyncio.timeout(self.timeout):
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    resp = await client.get(self.base_url, params=params)
                    if not resp.is_success:
                        raise EnrichmentError(f"SerpApi responded with {resp.status_code}")
                    data = resp.json()
        except TimeoutError as exc:
            raise EnrichmentError(f"SerpApi search timed out after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise EnrichmentError(f"SerpApi request failed: {exc!r}") from exc
        except ValueError as exc:
            raise EnrichmentError(f"SerpApi returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise EnrichmentError("SerpApi returned an unexpected payload")

        matches = data.get("visual_matches") or []
        results = [_parse_match(m) for m in matches[: self.max_results] if isinstance(m, dict)]

        logger.info("SerpAPI Lens returned %d visual matches", len(results))
        return results
