"""Best-effort visitor geolocation."""

import logging

import httpx

from tipt_profile.config import GEOLOCATION_TIMEOUT, GEOLOCATION_URL
from tipt_profile.models import VisitorLocation

logger = logging.getLogger(__name__)

UNKNOWN = VisitorLocation()


def get_visitor_location(
    client: httpx.Client | None = None,
    url: str = GEOLOCATION_URL,
    timeout: float = GEOLOCATION_TIMEOUT,
) -> VisitorLocation:
    """Resolve the caller's city/region from its IP.

    Uses a short timeout and never raises; anything other than a clean JSON
    answer yields ``location="Unknown"`` so tracking is never held up.
    """
    try:
        if client is not None:
            resp = client.get(url, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as http_client:
                resp = http_client.get(url)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.debug("Visitor location lookup failed: %s", e)
        return UNKNOWN

    if not isinstance(data, dict) or data.get("error"):
        return UNKNOWN

    city = data.get("city")
    region = data.get("region")
    if not city and not region:
        return UNKNOWN
    return VisitorLocation(
        city=city,
        region=region,
        country=data.get("country_name"),
        location=", ".join(part for part in (city, region) if part),
    )
