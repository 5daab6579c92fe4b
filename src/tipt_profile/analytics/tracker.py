"""Record profile views and link clicks, and build the owner dashboard.

Both directions are best effort. Recording never raises to the caller
(a lost event only undercounts the dashboard) and the dashboard falls back
to an all-zero view when the store cannot be read.
"""

import logging
import math
import secrets
import string
import time
import uuid
from dataclasses import replace
from datetime import UTC, datetime

import duckdb

from tipt_profile.analytics.repository import append_event, get_recent_events, get_summary
from tipt_profile.config import MONTHLY_CHART_MONTHS, RECENT_EVENTS_LIMIT, TOP_LINKS_LIMIT
from tipt_profile.models import (
    EVENT_TYPES,
    LINK_CLICK,
    PROFILE_VIEW,
    AnalyticsEvent,
    AnalyticsSummary,
    DashboardView,
    EventDetail,
    MonthlyStat,
    TopLink,
)

logger = logging.getLogger(__name__)

_MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                 "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_VISITOR_ALPHABET = string.ascii_lowercase + string.digits


def record_event(
    conn: duckdb.DuckDBPyConnection,
    profile_id: str,
    kind: str,
    detail: EventDetail | None = None,
    *,
    now: datetime | None = None,
) -> str | None:
    """Append one event and bump the profile's summary counters.

    The month/day bucket comes from the processing clock (*now*, UTC), which
    is also stored as the event timestamp. Not idempotent: every call counts.

    Returns:
        The new event ID, or None if the event was rejected or not stored.
    """
    if kind not in EVENT_TYPES:
        logger.error("Ignoring unknown analytics event type %r for %s", kind, profile_id)
        return None

    detail = detail or EventDetail()
    at = _to_utc_naive(now or datetime.now(UTC))
    event = AnalyticsEvent(
        event_id=uuid.uuid4().hex,
        profile_id=profile_id,
        event_type=kind,
        visitor_id=detail.visitor_id,
        created_at=at,
        link_type=detail.link_type if kind == LINK_CLICK else None,
        link_url=detail.link_url if kind == LINK_CLICK else None,
        location=detail.location,
        user_agent=detail.user_agent,
        referrer=detail.referrer or "direct",
    )

    try:
        append_event(conn, event)
    except duckdb.Error:
        logger.exception("Error tracking %s for profile %s", kind, profile_id)
        return None

    logger.debug("Tracked %s for %s (%s)", kind, profile_id, event.link_type or "-")
    return event.event_id


def track_profile_view(
    conn: duckdb.DuckDBPyConnection,
    profile_id: str,
    detail: EventDetail | None = None,
) -> str | None:
    """Record one visit to the public profile page."""
    return record_event(conn, profile_id, PROFILE_VIEW, detail)


def track_link_click(
    conn: duckdb.DuckDBPyConnection,
    profile_id: str,
    link_type: str,
    link_url: str,
    detail: EventDetail | None = None,
) -> str | None:
    """Record a click on one of the profile's links ('spotify', 'paypal', ...)."""
    detail = replace(detail or EventDetail(), link_type=link_type, link_url=link_url)
    return record_event(conn, profile_id, LINK_CLICK, detail)


def new_visitor_id() -> str:
    """Generate a pseudo-identity token for a browser, e.g. ``visitor_1718000000000_k3j9x0q2a``.

    Callers persist it themselves (cookie, local storage) and pass it back in
    ``EventDetail.visitor_id``.
    """
    suffix = "".join(secrets.choice(_VISITOR_ALPHABET) for _ in range(9))
    return f"visitor_{int(time.time() * 1000)}_{suffix}"


def get_analytics_data(conn: duckdb.DuckDBPyConnection, profile_id: str) -> DashboardView:
    """Summary counters plus the recent event tail for the dashboard."""
    try:
        summary = get_summary(conn, profile_id) or AnalyticsSummary(profile_id=profile_id)
        recent = get_recent_events(conn, profile_id, limit=RECENT_EVENTS_LIMIT)
    except duckdb.Error:
        logger.exception("Error getting analytics data for profile %s", profile_id)
        return DashboardView()
    return build_dashboard_view(summary, recent)


def build_dashboard_view(
    summary: AnalyticsSummary,
    recent: list[AnalyticsEvent],
) -> DashboardView:
    """Derive chart series and rates from a summary."""
    monthly = [
        MonthlyStat(month=format_month_label(key), views=stats.views, clicks=stats.clicks)
        for key, stats in sorted(summary.monthly_stats.items())
    ][-MONTHLY_CHART_MONTHS:]

    total_clicks = summary.total_link_clicks
    top_links = sorted(
        (
            TopLink(
                link=capitalize_first(link),
                clicks=clicks,
                percentage=_percentage(clicks, total_clicks),
            )
            for link, clicks in summary.link_stats.items()
        ),
        key=lambda t: t.clicks,
        reverse=True,
    )[:TOP_LINKS_LIMIT]

    return DashboardView(
        profile_views=summary.total_profile_views,
        link_clicks=total_clicks,
        click_rate=click_rate(total_clicks, summary.total_profile_views),
        recent_activity=list(recent),
        monthly_stats=monthly,
        top_links=top_links,
    )


def click_rate(clicks: int, views: int) -> float:
    """Clicks per hundred views, one decimal. 0 when there are no views."""
    if views <= 0:
        return 0
    return round(clicks / views * 100, 1)


def format_month_label(month: str) -> str:
    """'2024-03' -> 'Mar'."""
    _, _, number = month.partition("-")
    if not number.isdigit() or not 1 <= int(number) <= 12:
        return month
    return _MONTH_LABELS[int(number) - 1]


def capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:]


def _percentage(part: int, total: int) -> int:
    if total <= 0:
        return 0
    # round half-up
    return min(100, max(0, math.floor(part / total * 100 + 0.5)))


def _to_utc_naive(at: datetime) -> datetime:
    """Stored timestamps are naive UTC; naive inputs are taken as UTC."""
    if at.tzinfo is None:
        return at
    return at.astimezone(UTC).replace(tzinfo=None)
