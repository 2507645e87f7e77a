"""
Tests for schemas/scan.py — media type fallback and request validation.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from appraisal.errors import InputValidationError
from appraisal.schemas.scan import MediaType, ScanRequest

from conftest import IMAGE_B64


class TestMediaType:
    @pytest.mark.parametrize("value", ["image/jpeg", "image/png", "image/gif", "image/webp"])
    def test_known_types_kept(self, value):
        assert MediaType.resolve(value).value == value

    @pytest.mark.parametrize("value", [None, "", "image/bmp", "application/pdf", 7])
    def test_unknown_falls_back_to_jpeg(self, value):
        assert MediaType.resolve(value) is MediaType.JPEG

    def test_extensions(self):
        assert MediaType.JPEG.extension == "jpg"
        assert MediaType.PNG.extension == "png"
        assert MediaType.WEBP.extension == "webp"


class TestScanRequest:
    def test_from_payload(self):
        req = ScanRequest.from_payload({"image": IMAGE_B64, "mediaType": "image/png"})
        assert req.image == IMAGE_B64
        assert req.media_type is MediaType.PNG

    def test_missing_media_type_defaults(self):
        req = ScanRequest.from_payload({"image": IMAGE_B64})
        assert req.media_type is MediaType.JPEG

    def test_missing_image(self):
        with pytest.raises(InputValidationError) as exc_info:
            ScanRequest.from_payload({"mediaType": "image/png"})
        assert exc_info.value.message == "Missing base64 image in request body."
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("image", ["", 123, ["abc"], None])
    def test_bad_image_values(self, image):
        with pytest.raises(InputValidationError):
            ScanRequest.from_payload({"image": image})

    def test_non_object_body(self):
        with pytest.raises(InputValidationError):
            ScanRequest.from_payload(["image"])

    def test_frozen(self):
        req = ScanRequest.from_payload({"image": IMAGE_B64})
        with pytest.raises(ValidationError):
            req.image = "other"
