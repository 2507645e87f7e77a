import base64
import binascii
import logging
import uuid
from contextlib import asynccontextmanager

import httpx

from appraisal.config import Settings
from appraisal.errors import EnrichmentError
from appraisal.schemas.scan import MediaType

logger = logging.getLogger(__name__)

_BLOB_API_VERSION = "7"


class ImageStore:
    """Short-lived public uploads on Vercel Blob.

    The search provider fetches the image by URL, so the object has to live in
    shared storage rather than on whichever instance served the request.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = settings.blob_api_url.rstrip("/")
        self.prefix = settings.blob_prefix.strip("/")
        self.token = settings.blob_read_write_token
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=30.0,
            transport=self._transport,
            headers={"authorization": f"Bearer {self.token}", "x-api-version": _BLOB_API_VERSION},
        )

    async def store(self, image_data: str, media_type: MediaType) -> str:
        """Upload base64 image data under a fresh unique name. Returns its public URL.

        Line breaks and other whitespace in the base64 text are ignored.
        """
        try:
            data = base64.b64decode("".join(image_data.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EnrichmentError(f"Image is not valid base64: {exc}") from exc

        pathname = f"{self.prefix}/{uuid.uuid4().hex}.{media_type.extension}"
        try:
            async with self._client() as client:
                resp = await client.put(
                    f"{self.base_url}/{pathname}",
                    content=data,
                    headers={
                        "x-content-type": media_type.value,
                        "x-add-random-suffix": "0",
                    },
                )
                resp.raise_for_status()
                url = resp.json()["url"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            raise EnrichmentError(f"Blob upload failed: {exc}") from exc

        logger.debug("Uploaded temporary image %s", url)
        return url

    async def discard(self, url: str) -> None:
        """Delete an uploaded object. Deleting a URL that is already gone is not an error on the Blob side."""
        try:
            async with self._client() as client:
                resp = await client.post(f"{self.base_url}/delete", json={"urls": [url]})
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise EnrichmentError(f"Blob delete failed: {exc}") from exc

    @asynccontextmanager
    async def temporary_upload(self, image_data: str, media_type: MediaType):
        """Upload for the duration of the block; the object is deleted on every exit path."""
        url = await self.store(image_data, media_type)
        try:
            yield url
        finally:
            try:
                await self.discard(url)
            except EnrichmentError as exc:
                logger.warning("Blob cleanup failed (non-fatal): %s", exc)
