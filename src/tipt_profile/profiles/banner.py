"""Banner upload: store the image, derive its palette, update the profile."""

import logging
from pathlib import Path

import duckdb

from tipt_profile.models import ProfileDocument
from tipt_profile.palette.extractor import extract_dominant_colors
from tipt_profile.profiles.repository import get_profile, set_banner_colors
from tipt_profile.profiles.storage import save_upload

logger = logging.getLogger(__name__)


def upload_banner(
    conn: duckdb.DuckDBPyConnection,
    profile_id: str,
    name: str,
    content: bytes,
    upload_dir: Path | None = None,
) -> ProfileDocument:
    """Store a banner image and theme the profile from it.

    Palette extraction cannot fail (it falls back to the default colors),
    so a bad image never blocks the save. Raises ValueError for unknown
    profiles and oversized uploads.
    """
    if get_profile(conn, profile_id) is None:
        raise ValueError(f"Profile not found: {profile_id}")

    key = save_upload(profile_id, f"banner_{name}", content, upload_dir=upload_dir)
    colors = extract_dominant_colors(content)
    set_banner_colors(conn, profile_id, colors, banner_url=key)
    logger.info("Banner for %s stored at %s with colors %s", profile_id, key, colors)

    return get_profile(conn, profile_id)  # type: ignore[return-value]
