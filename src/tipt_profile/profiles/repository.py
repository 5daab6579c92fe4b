"""CRUD operations for profile documents in DuckDB."""

import json
import logging
import re

import duckdb

from tipt_profile.models import ProfileDocument
from tipt_profile.profiles.domain import is_reserved_domain, is_valid_domain

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

_COLUMNS = (
    "profile_id",
    "domain",
    "first_name",
    "last_name",
    "alt_name",
    "email",
    "city",
    "state",
    "description",
    "profile_image_url",
    "profile_banner_url",
    "banner_colors",
    "venmo_url",
    "paypal_url",
    "spotify_url",
    "youtube_url",
    "tiktok_url",
    "accepts_apple_pay",
    "accepts_google_pay",
    "accepts_samsung_pay",
    "images",
    "created_at",
    "updated_at",
)
_WRITABLE = _COLUMNS[:-2]
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM profiles"


def save_profile(conn: duckdb.DuckDBPyConnection, profile: ProfileDocument) -> None:
    """Insert or replace a profile document.

    Raises ValueError when the handle is malformed, reserved, or owned by
    another profile.
    """
    if profile.domain is not None:
        _check_domain_available(conn, profile.domain, profile.profile_id)
    if profile.banner_colors is not None and not _valid_palette(profile.banner_colors):
        raise ValueError(f"banner_colors must be three #RRGGBB strings: {profile.banner_colors}")

    placeholders = ", ".join(["?"] * len(_WRITABLE))
    updates = ", ".join(f"{col} = EXCLUDED.{col}" for col in _WRITABLE[1:])
    conn.execute(
        f"""
        INSERT INTO profiles ({", ".join(_WRITABLE)})
        VALUES ({placeholders})
        ON CONFLICT (profile_id) DO UPDATE SET
            {updates},
            updated_at = current_timestamp
        """,
        [_to_param(col, getattr(profile, col)) for col in _WRITABLE],
    )


def get_profile(conn: duckdb.DuckDBPyConnection, profile_id: str) -> ProfileDocument | None:
    """Look up a single profile by ID."""
    row = conn.execute(f"{_SELECT} WHERE profile_id = ?", [profile_id]).fetchone()
    if row is None:
        return None
    return _row_to_profile(row)


def get_profile_by_domain(conn: duckdb.DuckDBPyConnection, domain: str) -> ProfileDocument | None:
    """Look up a single profile by its public handle."""
    row = conn.execute(f"{_SELECT} WHERE domain = ?", [domain.lower()]).fetchone()
    if row is None:
        return None
    return _row_to_profile(row)


def list_profiles(conn: duckdb.DuckDBPyConnection) -> list[ProfileDocument]:
    """List all profiles, most recently updated first."""
    rows = conn.execute(f"{_SELECT} ORDER BY updated_at DESC, profile_id").fetchall()
    return [_row_to_profile(row) for row in rows]


def set_banner_colors(
    conn: duckdb.DuckDBPyConnection,
    profile_id: str,
    colors: list[str],
    banner_url: str | None = None,
) -> None:
    """Write the extracted palette (and optionally the banner URL) onto a profile."""
    if not _valid_palette(colors):
        raise ValueError(f"banner_colors must be three #RRGGBB strings: {colors}")
    if get_profile(conn, profile_id) is None:
        raise ValueError(f"Profile not found: {profile_id}")

    if banner_url is None:
        conn.execute(
            "UPDATE profiles SET banner_colors = ?, updated_at = current_timestamp "
            "WHERE profile_id = ?",
            [json.dumps(colors), profile_id],
        )
    else:
        conn.execute(
            "UPDATE profiles SET banner_colors = ?, profile_banner_url = ?, "
            "updated_at = current_timestamp WHERE profile_id = ?",
            [json.dumps(colors), banner_url, profile_id],
        )


def add_gallery_image(conn: duckdb.DuckDBPyConnection, profile_id: str, url: str) -> list[str]:
    """Append a URL to the gallery (no duplicates). Returns the new gallery."""
    profile = get_profile(conn, profile_id)
    if profile is None:
        raise ValueError(f"Profile not found: {profile_id}")
    images = list(profile.images)
    if url not in images:
        images.append(url)
        conn.execute(
            "UPDATE profiles SET images = ?, updated_at = current_timestamp WHERE profile_id = ?",
            [json.dumps(images), profile_id],
        )
    return images


def _check_domain_available(
    conn: duckdb.DuckDBPyConnection, domain: str, profile_id: str
) -> None:
    if not is_valid_domain(domain):
        raise ValueError(f"Invalid profile handle: {domain!r}")
    if is_reserved_domain(domain):
        raise ValueError(f"Profile handle is reserved: {domain!r}")
    owner = conn.execute(
        "SELECT profile_id FROM profiles WHERE domain = ? AND profile_id != ?",
        [domain, profile_id],
    ).fetchone()
    if owner is not None:
        raise ValueError(f"Profile handle already taken: {domain!r}")


def _valid_palette(colors: object) -> bool:
    return (
        isinstance(colors, list)
        and len(colors) == 3
        and all(isinstance(c, str) and _HEX_COLOR_RE.match(c) for c in colors)
    )


def _to_param(column: str, value: object) -> object:
    if column in ("banner_colors", "images"):
        return json.dumps(value) if value is not None else None
    return value


def _row_to_profile(row: tuple) -> ProfileDocument:
    """Convert a DB row tuple to ProfileDocument.

    Column order matches ``_COLUMNS``. JSON columns are validated here so
    business logic never sees a malformed palette.
    """
    values = dict(zip(_COLUMNS, row))

    banner_colors = json.loads(values["banner_colors"]) if values["banner_colors"] else None
    if banner_colors is not None and not _valid_palette(banner_colors):
        logger.warning(
            "Ignoring malformed banner_colors on profile %s: %r",
            values["profile_id"],
            banner_colors,
        )
        banner_colors = None
    values["banner_colors"] = banner_colors

    images = json.loads(values["images"]) if values["images"] else []
    values["images"] = [url for url in images if isinstance(url, str)]

    for flag in ("accepts_apple_pay", "accepts_google_pay", "accepts_samsung_pay"):
        values[flag] = bool(values[flag])

    return ProfileDocument(**values)
