"""
Tests for reverse geocoding and face image upload clients.
"""

import httpx
import pytest

from app.api.clients.geocoding import ReverseGeocoder, extract_place_name
from app.api.clients.image_upload import CloudinaryUploader
from app.core.exceptions import UploadFailed

COLOMBO_RESULTS = [
    {
        "types": ["street_address"],
        "formatted_address": "12 Galle Rd, Colombo 00300, Sri Lanka",
        "address_components": [],
    },
    {
        "types": ["locality", "political"],
        "formatted_address": "Colombo, Sri Lanka",
        "address_components": [
            {"long_name": "Colombo", "types": ["locality", "political"]},
            {"long_name": "Sri Lanka", "types": ["country", "political"]},
        ],
    },
]


def geocoder_for(handler) -> ReverseGeocoder:
    return ReverseGeocoder(
        api_key="test-key",
        base_url="https://maps.test/geocode/json",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def test_extract_prefers_locality_component():
    assert extract_place_name(COLOMBO_RESULTS) == "Colombo"


def test_extract_falls_back_to_formatted_address():
    assert extract_place_name(COLOMBO_RESULTS[:1]) == "12 Galle Rd"
    assert extract_place_name([]) is None


@pytest.mark.asyncio
async def test_reverse_resolves_place_name():
    # Arrange
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "OK", "results": COLOMBO_RESULTS})

    # Act
    name = await geocoder_for(handler).reverse(6.9271, 79.8612)

    # Assert
    assert name == "Colombo"
    assert seen[0].url.params["latlng"] == "6.9271,79.8612"
    assert seen[0].url.params["key"] == "test-key"


@pytest.mark.asyncio
async def test_reverse_failures_return_none():
    def server_error(request):
        return httpx.Response(500)

    def zero_results(request):
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    def unreachable(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    for handler in (server_error, zero_results, unreachable):
        assert await geocoder_for(handler).reverse(1.0, 2.0) is None


@pytest.mark.asyncio
async def test_reverse_without_key_skips_lookup():
    assert await ReverseGeocoder(api_key=None).reverse(1.0, 2.0) is None


@pytest.mark.asyncio
async def test_upload_requires_configuration():
    with pytest.raises(UploadFailed):
        await CloudinaryUploader(cloud_name=None, upload_preset=None).upload(b"img")


@pytest.mark.asyncio
async def test_upload_failure_raises():
    def rejected(request):
        return httpx.Response(400, json={"error": {"message": "Upload preset not found"}})

    uploader = CloudinaryUploader(
        cloud_name="demo",
        upload_preset="missing",
        client=httpx.AsyncClient(transport=httpx.MockTransport(rejected)),
    )

    with pytest.raises(UploadFailed):
        await uploader.upload(b"img")
