"""Tests for the local object store and image fetching."""

import httpx
import pytest

from tipt_profile.config import MAX_UPLOAD_BYTES
from tipt_profile.profiles.storage import fetch_image_bytes, resolve_upload, save_upload


def test_save_upload_writes_under_profile(tmp_path):
    key = save_upload("uid_001", "banner.png", b"data", upload_dir=tmp_path)
    assert key == "recipients/uid_001/banner.png"
    assert resolve_upload(key, tmp_path).read_bytes() == b"data"


def test_save_upload_sanitizes_names(tmp_path):
    key = save_upload("uid/../001", "../my banner.png", b"x", upload_dir=tmp_path)
    assert key == "recipients/uid_.._001/_my_banner.png"
    assert resolve_upload(key, tmp_path).is_relative_to(tmp_path)


def test_save_upload_rejects_large_files(tmp_path):
    with pytest.raises(ValueError, match="Max file size"):
        save_upload("uid_001", "big.png", b"0" * (MAX_UPLOAD_BYTES + 1), upload_dir=tmp_path)


def test_fetch_image_bytes():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/banner.png"
        return httpx.Response(200, content=b"\x89PNG")

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        assert fetch_image_bytes("https://cdn.example.com/banner.png", client=client) == b"\x89PNG"


def test_fetch_image_bytes_raises_on_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    with httpx.Client(transport=transport) as client:
        with pytest.raises(httpx.HTTPStatusError):
            fetch_image_bytes("https://cdn.example.com/missing.png", client=client)
