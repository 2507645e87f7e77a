from enum import Enum

from pydantic import BaseModel

from appraisal.errors import InputValidationError

# keys the vision model is told to return
ANALYSIS_KEYS = ("description", "valueRange", "whereToBuySell", "backgroundInfo")


class MediaType(str, Enum):
    JPEG = "image/jpeg"
    PNG = "image/png"
    GIF = "image/gif"
    WEBP = "image/webp"

    @classmethod
    def resolve(cls, value) -> "MediaType":
        """Unknown or missing media types fall back to JPEG instead of failing the request."""
        try:
            return cls(value)
        except (ValueError, TypeError):
            return cls.JPEG

    @property
    def extension(self) -> str:
        return self.value.split("/", 1)[1].replace("jpeg", "jpg")


class ScanRequest(BaseModel):
    image: str  # base64, no data: prefix
    media_type: MediaType = MediaType.JPEG

    model_config = {"frozen": True}

    @classmethod
    def from_payload(cls, payload) -> "ScanRequest":
        if not isinstance(payload, dict):
            raise InputValidationError("Invalid JSON body.")

        image = payload.get("image")
        if not image or not isinstance(image, str):
            raise InputValidationError("Missing base64 image in request body.")

        return cls(image=image, media_type=MediaType.resolve(payload.get("mediaType")))


class WebMatch(BaseModel):
    title: str = "Unknown"
    price: str | None = None
    link: str = ""
    source: str = ""
    thumbnail: str | None = None


class ErrorResponse(BaseModel):
    error: str
    raw: str | None = None
    missing: list[str] | None = None
