"""Local object store for uploaded profile images."""

import logging
from pathlib import Path

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tipt_profile.config import IMAGE_FETCH_TIMEOUT, MAX_UPLOAD_BYTES, UPLOAD_DIR

logger = logging.getLogger(__name__)


def save_upload(
    profile_id: str,
    name: str,
    content: bytes,
    upload_dir: Path | None = None,
) -> str:
    """Persist an uploaded file and return its object key.

    Keys look like ``recipients/<profile_id>/<name>`` and resolve against
    the upload directory via :func:`resolve_upload`.
    """
    if len(content) > MAX_UPLOAD_BYTES:
        raise ValueError(f"Max file size {MAX_UPLOAD_BYTES // (1024 * 1024)} MB")

    key = f"recipients/{_sanitize_segment(profile_id)}/{_sanitize_segment(name)}"
    path = resolve_upload(key, upload_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    logger.info("Stored upload %s (%d bytes)", key, len(content))
    return key


def resolve_upload(key: str, upload_dir: Path | None = None) -> Path:
    """Map an object key back to its file on disk."""
    return (upload_dir or UPLOAD_DIR) / key


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, max=10),
    retry=retry_if_exception_type(httpx.TimeoutException),
    reraise=True,
)
def fetch_image_bytes(url: str, client: httpx.Client | None = None) -> bytes:
    """Download an image. Raises httpx.HTTPError on failure."""
    if client is not None:
        resp = client.get(url)
        resp.raise_for_status()
        return resp.content
    with httpx.Client(timeout=IMAGE_FETCH_TIMEOUT, follow_redirects=True) as http_client:
        resp = http_client.get(url)
        resp.raise_for_status()
        return resp.content


def _sanitize_segment(name: str) -> str:
    """Convert a path segment to a safe file name."""
    safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in name.strip())
    safe = safe.lstrip(".")
    if not safe:
        raise ValueError(f"Invalid object name: {name!r}")
    return safe
