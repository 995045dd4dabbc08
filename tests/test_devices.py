"""
Tests for the bundled device providers.
"""

import pytest

from app.core.devices import Coordinates, FileFaceCapture, StaticLocationProvider
from app.core.exceptions import LocationUnavailable


@pytest.mark.asyncio
async def test_static_location():
    assert await StaticLocationProvider(6.9, 79.8).get_position() == Coordinates(6.9, 79.8)


@pytest.mark.asyncio
async def test_static_location_unconfigured():
    with pytest.raises(LocationUnavailable):
        await StaticLocationProvider(None, None).get_position()


@pytest.mark.asyncio
async def test_file_capture_reads_latest_frame(tmp_path):
    frame = tmp_path / "latest.jpg"
    frame.write_bytes(b"\xff\xd8frame")

    assert await FileFaceCapture(frame).capture() == b"\xff\xd8frame"


@pytest.mark.asyncio
async def test_file_capture_without_frame(tmp_path):
    empty = tmp_path / "empty.jpg"
    empty.write_bytes(b"")

    assert await FileFaceCapture(tmp_path / "missing.jpg").capture() is None
    assert await FileFaceCapture(empty).capture() is None
