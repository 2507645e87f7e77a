import logging

import anthropic

from appraisal.config import Settings
from appraisal.errors import IncompleteAnalysisError, VisionServiceError
from appraisal.schemas.scan import ANALYSIS_KEYS, MediaType
from appraisal.services.extractor import extract_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Return ONLY a JSON object. No explanation, no markdown, no code fences, no text before or after the JSON. "
    "You are an expert appraiser and researcher. When shown an image of an item, provide: "
    "1) A detailed identification and description of the item, "
    "2) Estimated market value range with reasoning, "
    "3) Best places to buy or sell this specific item online and in person, "
    "4) Interesting historical or background information about this type of item. "
    "Respond with a single raw JSON object using exactly these keys: "
    "description, valueRange, whereToBuySell, backgroundInfo. "
    'Example format: {"description":"...","valueRange":"...","whereToBuySell":"...","backgroundInfo":"..."}'
)

USER_PROMPT = "Please identify and appraise this item."


def build_client(settings: Settings) -> anthropic.AsyncAnthropic:
    # one attempt per scan, the SDK would otherwise retry on its own
    return anthropic.AsyncAnthropic(
        api_key=settings.anthropic_api_key,
        timeout=settings.vision_timeout,
        max_retries=0,
    )


class VisionService:
    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic | None = None):
        self.client = client or build_client(settings)
        self.model = settings.vision_model
        self.max_tokens = settings.vision_max_tokens
        self.require_complete = settings.require_complete_analysis

    async def analyze(self, image_data: str, media_type: MediaType) -> dict:
        """Identify and appraise the item in a base64 image. Returns the parsed analysis object."""
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {"type": "base64", "media_type": media_type.value, "data": image_data},
                            },
                            {"type": "text", "text": USER_PROMPT},
                        ],
                    }
                ],
            )
        except anthropic.APIError as exc:
            raise VisionServiceError(str(exc)) from exc

        raw_text = "".join(block.text for block in response.content if block.type == "text")
        logger.debug("Vision raw response: %s", raw_text)

        analysis = extract_json(raw_text)
        self._check_keys(analysis, raw_text)
        return analysis

    def _check_keys(self, analysis: dict, raw_text: str) -> None:
        if not self.require_complete:
            return
        missing = [key for key in ANALYSIS_KEYS if key not in analysis]
        if missing:
            logger.error("Vision analysis missing keys: %s", ", ".join(missing))
            raise IncompleteAnalysisError(raw_text, missing)
