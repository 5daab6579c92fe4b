"""Dominant color extraction for profile banner theming.

The extractor favours vivid, bright colors over whatever covers the most
pixels (backgrounds, skin tones), then spreads the picks apart so the three
roles are visually distinct:

    image -> 200px thumbnail -> opaque pixels -> quantize to steps of 32
          -> drop dark / muted / grey buckets -> score -> de-duplicate
          -> [primary, secondary, highlight]

Extraction is total: anything that goes wrong yields ``FALLBACK_PALETTE``.
"""

import logging
import math
from io import BytesIO
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import Image

from tipt_profile.models import ColorCandidate
from tipt_profile.profiles.storage import fetch_image_bytes

logger = logging.getLogger(__name__)

ImageSource = bytes | str | Path | BinaryIO | Image.Image

FALLBACK_PALETTE = ("#FF6B6B", "#4ECDC4", "#45B7D1")  # bright red, teal, blue

MAX_SIZE = 200
MIN_ALPHA = 128
QUANT_STEP = 32

MIN_BRIGHTNESS = 300  # quantized r + g + b
MIN_CHANNEL = 80  # at least one channel must reach this
MIN_CHANNEL_SPREAD = 50  # max - min, rejects greys

FREQUENCY_WEIGHT = 0.5
BRIGHTNESS_WEIGHT = 0.3
SATURATION_WEIGHT = 0.2

MAX_CANDIDATES = 6
MIN_DISTANCE = 80


def extract_dominant_colors(image_source: ImageSource) -> list[str]:
    """Return ``[primary, secondary, highlight]`` hex colors for an image.

    Never raises: decode, download and pixel access failures are logged and
    answered with the fallback palette.
    """
    try:
        pixels = _load_pixels(image_source)
    except Exception:
        logger.exception("Failed to load image for color extraction")
        return list(FALLBACK_PALETTE)

    try:
        buckets = count_buckets(pixels)
        logger.debug("Found %d unique bright quantized colors", len(buckets))
        candidates = score_candidates(buckets)
        result = assign_roles(select_distinct(candidates))
    except Exception:
        logger.exception("Error processing image pixels")
        return list(FALLBACK_PALETTE)

    logger.debug("Extracted colors: %s", result)
    return result


def quantize(channels: np.ndarray) -> np.ndarray:
    """Round channel values half-up to the nearest multiple of ``QUANT_STEP``.

    200 -> 192, 150 -> 160, 50 -> 64, 16 -> 32. Values of 240 and above
    land on 256.
    """
    values = np.asarray(channels, dtype=np.float64)
    return (np.floor(values / QUANT_STEP + 0.5) * QUANT_STEP).astype(np.int64)


def count_buckets(pixels: np.ndarray) -> dict[tuple[int, int, int], int]:
    """Tally bright, saturated quantized colors from an ``(N, 4)`` RGBA array.

    Keys are in first-seen (scan) order so ties resolve the same way on
    every run.
    """
    pixels = np.asarray(pixels).reshape(-1, 4)
    opaque = pixels[pixels[:, 3] >= MIN_ALPHA]
    if opaque.size == 0:
        return {}

    q = quantize(opaque[:, :3])
    spread = q.max(axis=1) - q.min(axis=1)
    keep = (
        (q.sum(axis=1) >= MIN_BRIGHTNESS)
        & ~np.all(q < MIN_CHANNEL, axis=1)
        & (spread >= MIN_CHANNEL_SPREAD)
    )
    q = q[keep]
    if q.size == 0:
        return {}

    keys, first_seen, counts = np.unique(q, axis=0, return_index=True, return_counts=True)
    order = np.argsort(first_seen, kind="stable")
    return {
        (int(keys[i][0]), int(keys[i][1]), int(keys[i][2])): int(counts[i]) for i in order
    }


def score_candidates(buckets: dict[tuple[int, int, int], int]) -> list[ColorCandidate]:
    """Score every bucket and sort best-first (stable on equal scores)."""
    candidates = []
    for (r, g, b), count in buckets.items():
        brightness = r + g + b
        saturation = max(r, g, b) - min(r, g, b)
        score = (
            count * FREQUENCY_WEIGHT
            + (brightness / 765) * BRIGHTNESS_WEIGHT
            + (saturation / 255) * SATURATION_WEIGHT
        )
        candidates.append(
            ColorCandidate(
                hex=rgb_to_hex(r, g, b),
                rgb=(r, g, b),
                count=count,
                brightness=brightness,
                saturation=saturation,
                score=score,
            )
        )
    return sorted(candidates, key=lambda c: c.score, reverse=True)


def select_distinct(
    candidates: list[ColorCandidate],
    limit: int = MAX_CANDIDATES,
    min_distance: float = MIN_DISTANCE,
) -> list[ColorCandidate]:
    """Greedily keep candidates that are far enough from every earlier pick."""
    selected: list[ColorCandidate] = []
    for candidate in candidates:
        if len(selected) >= limit:
            break
        if any(color_distance(candidate.rgb, other.rgb) < min_distance for other in selected):
            continue
        selected.append(candidate)
    return selected


def assign_roles(selected: list[ColorCandidate]) -> list[str]:
    """Map ranked candidates to ``[primary, secondary, highlight]``."""
    if not selected:
        return list(FALLBACK_PALETTE)

    if len(selected) == 1:
        only = selected[0].hex
        return [only, only, only]

    primary = selected[0].hex
    secondary = selected[1].hex
    if len(selected) == 2:
        return [primary, secondary, primary]

    # max() keeps the first of equally saturated candidates, i.e. the best scored
    highlight = max(selected, key=lambda c: c.saturation).hex
    if highlight in (primary, secondary):
        highlight = selected[2].hex
    return [primary, secondary, highlight]


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """'#rrggbb'; channels are clamped to 0-255 first."""
    return "#" + "".join(f"{min(max(int(v), 0), 255):02x}" for v in (r, g, b))


def color_distance(rgb1: tuple[int, int, int], rgb2: tuple[int, int, int]) -> float:
    """Euclidean distance in RGB space."""
    return math.dist(rgb1, rgb2)


def _load_pixels(image_source: ImageSource) -> np.ndarray:
    """Decode *image_source* and return its thumbnail as an ``(N, 4)`` array."""
    if isinstance(image_source, Image.Image):
        return _thumbnail_pixels(image_source)

    if isinstance(image_source, str) and image_source.startswith(("http://", "https://")):
        data: bytes | BinaryIO | Path = BytesIO(fetch_image_bytes(image_source))
    elif isinstance(image_source, (bytes, bytearray)):
        data = BytesIO(bytes(image_source))
    elif isinstance(image_source, str):
        data = Path(image_source)
    else:
        data = image_source

    with Image.open(data) as img:
        logger.debug("Image loaded, dimensions: %sx%s", img.width, img.height)
        return _thumbnail_pixels(img)


def _thumbnail_pixels(img: Image.Image) -> np.ndarray:
    """Fit the image into a ``MAX_SIZE`` box, keeping its aspect ratio."""
    rgba = img.convert("RGBA")
    ratio = min(MAX_SIZE / rgba.width, MAX_SIZE / rgba.height)
    size = (max(1, int(rgba.width * ratio)), max(1, int(rgba.height * ratio)))
    if size != rgba.size:
        rgba = rgba.resize(size, Image.Resampling.BILINEAR)
    return np.asarray(rgba, dtype=np.int64).reshape(-1, 4)
