"""Tests for the analytics event log and summary counters."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import duckdb
import pytest

from tipt_profile.analytics import repository
from tipt_profile.analytics.repository import (
    append_event,
    count_events,
    get_recent_events,
    get_summary,
    list_profile_ids,
    rebuild_summary,
)
from tipt_profile.models import LINK_CLICK, PROFILE_VIEW, AnalyticsEvent
from tipt_profile.profiles.schema import ensure_schema


@pytest.fixture
def file_conn(tmp_path):
    """File-backed DuckDB connection shared by worker threads through cursors."""
    conn = duckdb.connect(str(tmp_path / "analytics.duckdb"))
    ensure_schema(conn)
    yield conn
    conn.close()


def _event(
    event_id: str,
    event_type: str = PROFILE_VIEW,
    at: datetime = datetime(2024, 3, 5, 12, 0),
    profile_id: str = "p1",
    link_type: str | None = None,
) -> AnalyticsEvent:
    return AnalyticsEvent(
        event_id=event_id,
        profile_id=profile_id,
        event_type=event_type,
        visitor_id="visitor_1_abc",
        created_at=at,
        link_type=link_type,
        link_url=f"https://{link_type}.example.com" if link_type else None,
    )


def test_get_summary_missing(db_conn):
    assert get_summary(db_conn, "p1") is None


def test_append_event_updates_summary(db_conn):
    append_event(db_conn, _event("e1"))
    append_event(db_conn, _event("e2"))
    append_event(db_conn, _event("e3", LINK_CLICK, link_type="spotify"))

    summary = get_summary(db_conn, "p1")
    assert summary.total_profile_views == 2
    assert summary.total_link_clicks == 1
    assert summary.monthly_stats["2024-03"].views == 2
    assert summary.monthly_stats["2024-03"].clicks == 1
    assert summary.daily_stats["2024-03-05"].views == 2
    assert summary.link_stats == {"spotify": 1}
    assert summary.last_updated == datetime(2024, 3, 5, 12, 0)


def test_click_without_link_type_skips_link_stats(db_conn):
    append_event(db_conn, _event("e1", LINK_CLICK))
    summary = get_summary(db_conn, "p1")
    assert summary.total_link_clicks == 1
    assert summary.link_stats == {}


def test_bucket_sums_match_totals(db_conn):
    times = [datetime(2024, 1, 31, 23), datetime(2024, 2, 1, 0), datetime(2024, 2, 14, 9)]
    for i, at in enumerate(times):
        append_event(db_conn, _event(f"v{i}", at=at))
        append_event(db_conn, _event(f"c{i}", LINK_CLICK, at=at, link_type="venmo"))

    summary = get_summary(db_conn, "p1")
    assert sum(s.views for s in summary.monthly_stats.values()) == summary.total_profile_views
    assert sum(s.clicks for s in summary.daily_stats.values()) == summary.total_link_clicks
    assert sum(summary.link_stats.values()) == summary.total_link_clicks
    assert list(summary.monthly_stats) == ["2024-01", "2024-02"]


def test_profiles_are_isolated(db_conn):
    append_event(db_conn, _event("e1", profile_id="p1"))
    append_event(db_conn, _event("e2", profile_id="p2"))
    append_event(db_conn, _event("e3", profile_id="p2"))
    assert get_summary(db_conn, "p1").total_profile_views == 1
    assert get_summary(db_conn, "p2").total_profile_views == 2
    assert list_profile_ids(db_conn) == ["p1", "p2"]


def test_failed_append_leaves_no_trace(db_conn):
    append_event(db_conn, _event("e1"))
    with pytest.raises(duckdb.ConstraintException):
        append_event(db_conn, _event("e1"))  # duplicate event_id

    assert count_events(db_conn, "p1") == (1, 0)
    assert get_summary(db_conn, "p1").total_profile_views == 1


def test_recent_events_newest_first(db_conn):
    append_event(db_conn, _event("old", at=datetime(2024, 3, 1)))
    append_event(db_conn, _event("new", at=datetime(2024, 3, 9)))
    append_event(db_conn, _event("mid", LINK_CLICK, at=datetime(2024, 3, 5), link_type="paypal"))

    events = get_recent_events(db_conn, "p1")
    assert [e.event_id for e in events] == ["new", "mid", "old"]
    assert events[1].link_type == "paypal"
    assert events[0].referrer == "direct"


def test_recent_events_same_timestamp_uses_insert_order(db_conn):
    for i in range(3):
        append_event(db_conn, _event(f"e{i}"))
    assert [e.event_id for e in get_recent_events(db_conn, "p1")] == ["e2", "e1", "e0"]


def test_recent_events_limit(db_conn):
    for i in range(60):
        append_event(db_conn, _event(f"e{i}", at=datetime(2024, 3, 1, 0, i)))
    events = get_recent_events(db_conn, "p1")
    assert len(events) == 50
    assert events[0].event_id == "e59"
    assert len(get_recent_events(db_conn, "p1", limit=5)) == 5


def test_rebuild_summary_repairs_drift(db_conn):
    append_event(db_conn, _event("e1", at=datetime(2024, 2, 10)))
    append_event(db_conn, _event("e2", LINK_CLICK, at=datetime(2024, 3, 2), link_type="spotify"))
    db_conn.execute(
        "UPDATE analytics_summary SET total_profile_views = 99, total_link_clicks = 0"
    )
    db_conn.execute(
        "INSERT INTO analytics_monthly_stats (profile_id, month, views) VALUES ('p1', '2023-12', 7)"
    )
    db_conn.execute("UPDATE analytics_link_stats SET clicks = 5")

    summary = rebuild_summary(db_conn, "p1")
    assert summary.total_profile_views == 1
    assert summary.total_link_clicks == 1
    assert set(summary.monthly_stats) == {"2024-02", "2024-03"}
    assert summary.daily_stats["2024-03-02"].clicks == 1
    assert summary.link_stats == {"spotify": 1}
    assert summary.last_updated == datetime(2024, 3, 2)


def test_rebuild_summary_without_events(db_conn):
    assert rebuild_summary(db_conn, "p1") is None


def test_rebuild_summary_zeroes_counters_when_log_is_empty(db_conn):
    append_event(db_conn, _event("e1"))
    append_event(db_conn, _event("e2", LINK_CLICK, link_type="spotify"))
    db_conn.execute("DELETE FROM analytics_events")

    summary = rebuild_summary(db_conn, "p1")
    assert summary.total_profile_views == 0
    assert summary.total_link_clicks == 0
    assert summary.monthly_stats == {}
    assert summary.daily_stats == {}
    assert summary.link_stats == {}
    assert summary.last_updated is None


def test_concurrent_appends_are_all_counted(file_conn):
    threads, per_thread = 8, 40

    def worker(n: int) -> None:
        cursor = file_conn.cursor()
        try:
            for i in range(per_thread):
                append_event(cursor, _event(f"t{n}-{i}", profile_id="fresh"))
        finally:
            cursor.close()

    with ThreadPoolExecutor(max_workers=threads) as pool:
        for future in [pool.submit(worker, n) for n in range(threads)]:
            future.result()

    summary = get_summary(file_conn, "fresh")
    assert summary.total_profile_views == threads * per_thread
    assert summary.monthly_stats["2024-03"].views == threads * per_thread
    assert count_events(file_conn, "fresh") == (threads * per_thread, 0)


def test_rebuild_during_appends_matches_log(file_conn):
    def worker(n: int) -> None:
        cursor = file_conn.cursor()
        try:
            for i in range(30):
                append_event(cursor, _event(f"t{n}-{i}"))
        finally:
            cursor.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        futures = [pool.submit(worker, n) for n in range(4)]
        cursor = file_conn.cursor()
        for _ in range(10):
            rebuild_summary(cursor, "p1")
        cursor.close()
        for future in futures:
            future.result()

    summary = get_summary(file_conn, "p1")
    assert summary.total_profile_views == count_events(file_conn, "p1")[0] == 120
    assert sum(s.views for s in summary.daily_stats.values()) == 120


def test_append_retries_write_conflicts(db_conn, monkeypatch):
    calls = []
    insert = repository._insert_event

    def conflicting_insert(conn, event):
        calls.append(event.event_id)
        if len(calls) == 1:
            raise duckdb.TransactionException("Conflict on update!")
        insert(conn, event)

    monkeypatch.setattr(repository, "_insert_event", conflicting_insert)
    append_event(db_conn, _event("e1"))

    assert calls == ["e1", "e1"]
    assert get_summary(db_conn, "p1").total_profile_views == 1
