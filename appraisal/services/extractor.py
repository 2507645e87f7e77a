import json
import logging
import re

from appraisal.errors import ExtractionError

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")
_OUTERMOST_OBJECT = re.compile(r"\{[\s\S]*\}")


def _candidates(raw: str) -> list[str]:
    """Candidate JSON snippets, most to least strict."""
    attempts = [_FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", raw, count=1), count=1).strip()]

    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last > first:
        attempts.append(raw[first:last + 1])

    match = _OUTERMOST_OBJECT.search(raw)
    if match:
        attempts.append(match.group(0))

    return attempts


def extract_json(raw: str) -> dict:
    """Pull a single JSON object out of free-form model output.

    Models asked for bare JSON still wrap it in code fences or prose, so a few
    progressively looser parses are tried. The first candidate that decodes to
    a JSON object wins; arrays, scalars and null never count.

    Raises ExtractionError carrying the original text when nothing parses.
    """
    for candidate in _candidates(raw):
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict):
            return data

    logger.error("Could not extract JSON from model response: %s", raw[:300])
    raise ExtractionError(raw)
