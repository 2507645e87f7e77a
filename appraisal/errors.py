"""Failure kinds for a scan.

Each error knows the HTTP status and JSON body it maps to, so the router never
has to inspect message text to decide what went wrong.
"""


class ScanError(Exception):
    """Base class for every failure surfaced to the client."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_content(self) -> dict:
        return {"error": self.message}


class ConfigurationError(ScanError):
    """A mandatory credential is not configured."""

    status_code = 500


class InputValidationError(ScanError):
    """The request body is malformed or lacks the image."""

    status_code = 400


class ExtractionError(ScanError):
    """The vision model replied but no JSON object could be pulled out of the text."""

    status_code = 502

    def __init__(
        self,
        raw_text: str,
        message: str = "Vision model returned an unexpected response format.",
    ) -> None:
        self.raw_text = raw_text
        super().__init__(message)

    def to_content(self) -> dict:
        return {"error": self.message, "raw": self.raw_text}


class IncompleteAnalysisError(ExtractionError):
    """The model returned a JSON object that lacks some of the expected keys."""

    def __init__(self, raw_text: str, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(raw_text, "Vision model returned an incomplete analysis.")

    def to_content(self) -> dict:
        content = super().to_content()
        content["missing"] = self.missing
        return content


class VisionServiceError(ScanError):
    """The call to the vision model failed (network, timeout, non-success status)."""

    status_code = 502

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"API request failed: {detail}")


class EnrichmentError(Exception):
    """Temporary upload or reverse image search failed. Never reaches the client."""
