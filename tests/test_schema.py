"""Tests for schema creation."""

from datetime import datetime

from tipt_profile.analytics.repository import append_event, get_summary
from tipt_profile.models import AnalyticsEvent
from tipt_profile.profiles.schema import ensure_schema


def _tables(conn) -> set[str]:
    rows = conn.execute("SELECT table_name FROM information_schema.tables").fetchall()
    return {row[0] for row in rows}


def test_ensure_schema_creates_tables(db_conn):
    assert {
        "profiles",
        "analytics_events",
        "analytics_summary",
        "analytics_monthly_stats",
        "analytics_daily_stats",
        "analytics_link_stats",
    } <= _tables(db_conn)


def test_ensure_schema_is_idempotent(db_conn):
    ensure_schema(db_conn)
    ensure_schema(db_conn)
    assert "profiles" in _tables(db_conn)


def test_ensure_schema_keeps_existing_rows(db_conn):
    event = AnalyticsEvent(
        event_id="e1",
        profile_id="p1",
        event_type="profile_view",
        visitor_id=None,
        created_at=datetime(2024, 3, 5),
    )
    append_event(db_conn, event)
    ensure_schema(db_conn)
    assert get_summary(db_conn, "p1").total_profile_views == 1
