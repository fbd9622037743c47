"""Tests for the Google Vision OCR provider."""

import base64
import json

import httpx
import pytest

from src.config.settings import OCRSettings
from src.core.exceptions import ExtractionError
from src.infrastructure.ocr import GoogleVisionOCR

ENDPOINT = "https://vision.test/v1/images:annotate"


def make_ocr(handler, api_key: str = "key") -> GoogleVisionOCR:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleVisionOCR(OCRSettings(api_key=api_key, endpoint=ENDPOINT), client=client)


async def extraction_error(ocr: GoogleVisionOCR) -> ExtractionError:
    with pytest.raises(ExtractionError) as exc_info:
        await ocr.extract_text(b"image", "image/png")
    return exc_info.value


async def test_reads_full_text():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "key"
        body = json.loads(request.content)["requests"][0]
        assert base64.b64decode(body["image"]["content"]) == b"image"
        assert body["features"][0]["type"] == "DOCUMENT_TEXT_DETECTION"
        return httpx.Response(
            200,
            json={"responses": [{"textAnnotations": [{"description": "Milk 2 1.00 2.00"}]}]},
        )

    result = await make_ocr(handler).extract_text(b"image", "image/png")

    assert result.text == "Milk 2 1.00 2.00"
    assert result.provider == "google_vision"


async def test_not_configured():
    error = await extraction_error(make_ocr(lambda r: httpx.Response(200), api_key=""))
    assert error.category == "auth"


@pytest.mark.parametrize("status", [401, 403])
async def test_auth_failure(status):
    error = await extraction_error(make_ocr(lambda r: httpx.Response(status, json={})))
    assert error.category == "auth"
    assert error.user_message == "API authentication failed. Please contact support."


async def test_quota():
    error = await extraction_error(
        make_ocr(lambda r: httpx.Response(429, headers={"Retry-After": "12"}))
    )
    assert error.category == "quota"
    assert error.user_message == "API rate limit exceeded. Please try again in 12 seconds"


async def test_other_status_uses_api_message():
    error = await extraction_error(
        make_ocr(lambda r: httpx.Response(400, json={"error": {"message": "Bad image data"}}))
    )
    assert error.category == "unknown"
    assert error.user_message == "Bad image data"


async def test_network():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    error = await extraction_error(make_ocr(handler))
    assert error.category == "network"


async def test_invalid_json():
    error = await extraction_error(make_ocr(lambda r: httpx.Response(200, text="<html>")))
    assert error.category == "invalid_response"


async def test_no_text():
    error = await extraction_error(
        make_ocr(lambda r: httpx.Response(200, json={"responses": [{}]}))
    )
    assert error.category == "no_text"


async def test_per_image_error():
    error = await extraction_error(
        make_ocr(
            lambda r: httpx.Response(
                200, json={"responses": [{"error": {"message": "Image too small"}}]}
            )
        )
    )
    assert error.user_message == "Image too small"
