"""Shared test fixtures."""

from io import BytesIO

import duckdb
import pytest
from PIL import Image

from tipt_profile.models import ProfileDocument
from tipt_profile.profiles.schema import ensure_schema


@pytest.fixture
def db_conn():
    """In-memory DuckDB connection with schema initialized."""
    conn = duckdb.connect(":memory:")
    ensure_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def sample_profile() -> ProfileDocument:
    """A single ProfileDocument fixture."""
    return ProfileDocument(
        profile_id="uid_001",
        domain="dylandalal",
        first_name="Dylan",
        last_name="Dalal",
        alt_name="DJ Dal",
        email="dylan@example.com",
        city="Austin",
        state="TX",
        description="Tips keep the lights on.",
        spotify_url="https://open.spotify.com/artist/abc",
        venmo_url="https://venmo.com/u/dylan",
        accepts_apple_pay=True,
        images=["recipients/uid_001/gallery_1.jpg"],
    )


def make_profile(profile_id: str, domain: str | None = None) -> ProfileDocument:
    """Helper to create ProfileDocument with unique fields."""
    return ProfileDocument(
        profile_id=profile_id,
        domain=domain,
        first_name="Test",
        last_name=profile_id,
    )


def make_image(
    blocks: list[tuple[tuple[int, int, int, int], int]],
    height: int = 10,
    mode: str = "RGBA",
) -> Image.Image:
    """Build an image of vertical color stripes.

    Each block is ((r, g, b, a), width). Keep the total width at or below
    200 and the height at or below 200 so the extractor does not resample.
    """
    width = sum(w for _, w in blocks)
    img = Image.new("RGBA", (width, height))
    x = 0
    for color, w in blocks:
        img.paste(color, (x, 0, x + w, height))
        x += w
    return img.convert(mode) if mode != "RGBA" else img


def image_bytes(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()
