"""Event log and summary counters for profile analytics in DuckDB.

Every event is appended and counted in a single transaction, so the summary
never drifts from the log. Counters are bumped with ``SET x = x + 1`` inside
the database. Writers in one process take turns on a lock; a conflict with
another writer aborts at commit and is retried with jittered backoff.
"""

import threading
from datetime import datetime

import duckdb
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_delay,
    wait_random_exponential,
)

from tipt_profile.models import (
    LINK_CLICK,
    PROFILE_VIEW,
    AnalyticsEvent,
    AnalyticsSummary,
    PeriodStats,
)

_EVENT_COLUMNS = (
    "event_id, profile_id, event_type, visitor_id, created_at, "
    "link_type, link_url, location, user_agent, referrer"
)

# DuckDB aborts one of two transactions updating the same counter row
_write_lock = threading.Lock()

_retry_on_conflict = retry(
    stop=stop_after_delay(30),
    wait=wait_random_exponential(multiplier=0.05, max=1),
    retry=retry_if_exception_type(duckdb.TransactionException),
    reraise=True,
)


def month_key(at: datetime) -> str:
    return at.strftime("%Y-%m")


def day_key(at: datetime) -> str:
    return at.strftime("%Y-%m-%d")


@_retry_on_conflict
def append_event(conn: duckdb.DuckDBPyConnection, event: AnalyticsEvent) -> None:
    """Append *event* and apply its summary increments atomically.

    Safe to call from several threads, each with its own ``conn.cursor()``.
    """
    with _write_lock:
        conn.begin()
        try:
            _insert_event(conn, event)
            _increment_summary(
                conn, event.profile_id, event.event_type, event.link_type, event.created_at
            )
        except Exception:
            conn.rollback()
            raise
        # a failed commit rolls itself back
        conn.commit()


def get_summary(conn: duckdb.DuckDBPyConnection, profile_id: str) -> AnalyticsSummary | None:
    """Read the summary for a profile, or None if nothing was recorded yet."""
    row = conn.execute(
        """
        SELECT total_profile_views, total_link_clicks, last_updated
        FROM analytics_summary WHERE profile_id = ?
        """,
        [profile_id],
    ).fetchone()
    if row is None:
        return None

    monthly = conn.execute(
        "SELECT month, views, clicks FROM analytics_monthly_stats "
        "WHERE profile_id = ? ORDER BY month",
        [profile_id],
    ).fetchall()
    daily = conn.execute(
        "SELECT day, views, clicks FROM analytics_daily_stats WHERE profile_id = ? ORDER BY day",
        [profile_id],
    ).fetchall()
    links = conn.execute(
        "SELECT link_type, clicks FROM analytics_link_stats "
        "WHERE profile_id = ? ORDER BY link_type",
        [profile_id],
    ).fetchall()

    return AnalyticsSummary(
        profile_id=profile_id,
        total_profile_views=row[0],
        total_link_clicks=row[1],
        monthly_stats={m: PeriodStats(views=v, clicks=c) for m, v, c in monthly},
        daily_stats={d: PeriodStats(views=v, clicks=c) for d, v, c in daily},
        link_stats={link: clicks for link, clicks in links},
        last_updated=row[2],
    )


def get_recent_events(
    conn: duckdb.DuckDBPyConnection,
    profile_id: str,
    limit: int = 50,
) -> list[AnalyticsEvent]:
    """Return the newest events for a profile, newest first."""
    rows = conn.execute(
        f"""
        SELECT {_EVENT_COLUMNS}
        FROM analytics_events
        WHERE profile_id = ?
        ORDER BY created_at DESC, seq DESC
        LIMIT ?
        """,
        [profile_id, limit],
    ).fetchall()
    return [_row_to_event(row) for row in rows]


def count_events(conn: duckdb.DuckDBPyConnection, profile_id: str) -> tuple[int, int]:
    """Return (views, clicks) counted straight from the event log."""
    row = conn.execute(
        """
        SELECT
            COUNT(*) FILTER (WHERE event_type = ?),
            COUNT(*) FILTER (WHERE event_type = ?)
        FROM analytics_events WHERE profile_id = ?
        """,
        [PROFILE_VIEW, LINK_CLICK, profile_id],
    ).fetchone()
    return (row[0], row[1]) if row else (0, 0)


@_retry_on_conflict
def rebuild_summary(conn: duckdb.DuckDBPyConnection, profile_id: str) -> AnalyticsSummary | None:
    """Recompute all summary counters for a profile from its event log.

    The log is read and the counters are rewritten in one transaction, so an
    event appended meanwhile is either included or conflicts and is retried.
    An empty log zeroes the summary and drops every bucket. Returns None when
    the profile never had a summary.
    """
    with _write_lock:
        conn.begin()
        try:
            _replace_summary(conn, profile_id)
        except Exception:
            conn.rollback()
            raise
        conn.commit()
    return get_summary(conn, profile_id)


def list_profile_ids(conn: duckdb.DuckDBPyConnection) -> list[str]:
    """Profiles that have at least one recorded event."""
    rows = conn.execute(
        "SELECT DISTINCT profile_id FROM analytics_events ORDER BY profile_id"
    ).fetchall()
    return [row[0] for row in rows]


def _insert_event(conn: duckdb.DuckDBPyConnection, event: AnalyticsEvent) -> None:
    conn.execute(
        f"INSERT INTO analytics_events ({_EVENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            event.event_id,
            event.profile_id,
            event.event_type,
            event.visitor_id,
            event.created_at,
            event.link_type,
            event.link_url,
            event.location,
            event.user_agent,
            event.referrer,
        ],
    )


def _increment_summary(
    conn: duckdb.DuckDBPyConnection,
    profile_id: str,
    event_type: str,
    link_type: str | None,
    at: datetime,
) -> None:
    """Create missing counter rows, then bump total, month, day and link counters."""
    if event_type == PROFILE_VIEW:
        total_col, bucket_col = "total_profile_views", "views"
    else:
        total_col, bucket_col = "total_link_clicks", "clicks"

    conn.execute(
        "INSERT INTO analytics_summary (profile_id) VALUES (?) "
        "ON CONFLICT (profile_id) DO NOTHING",
        [profile_id],
    )
    conn.execute(
        f"UPDATE analytics_summary SET {total_col} = {total_col} + 1, last_updated = ? "
        "WHERE profile_id = ?",
        [at, profile_id],
    )

    for table, column, key in (
        ("analytics_monthly_stats", "month", month_key(at)),
        ("analytics_daily_stats", "day", day_key(at)),
    ):
        conn.execute(
            f"INSERT INTO {table} (profile_id, {column}) VALUES (?, ?) "
            f"ON CONFLICT (profile_id, {column}) DO NOTHING",
            [profile_id, key],
        )
        conn.execute(
            f"UPDATE {table} SET {bucket_col} = {bucket_col} + 1 "
            f"WHERE profile_id = ? AND {column} = ?",
            [profile_id, key],
        )

    if event_type == LINK_CLICK and link_type:
        conn.execute(
            "INSERT INTO analytics_link_stats (profile_id, link_type) VALUES (?, ?) "
            "ON CONFLICT (profile_id, link_type) DO NOTHING",
            [profile_id, link_type],
        )
        conn.execute(
            "UPDATE analytics_link_stats SET clicks = clicks + 1 "
            "WHERE profile_id = ? AND link_type = ?",
            [profile_id, link_type],
        )


def _replace_summary(conn: duckdb.DuckDBPyConnection, profile_id: str) -> None:
    """Overwrite counter rows in place and remove buckets the log no longer backs."""
    views, clicks = count_events(conn, profile_id)
    bucket_counts = {
        (table, column): _bucket_counts(conn, profile_id, fmt)
        for table, column, fmt in (
            ("analytics_monthly_stats", "month", "%Y-%m"),
            ("analytics_daily_stats", "day", "%Y-%m-%d"),
        )
    }
    link_counts = conn.execute(
        """
        SELECT link_type, COUNT(*) FROM analytics_events
        WHERE profile_id = ? AND event_type = ? AND link_type IS NOT NULL
        GROUP BY link_type
        """,
        [profile_id, LINK_CLICK],
    ).fetchall()
    last_updated = conn.execute(
        "SELECT MAX(created_at) FROM analytics_events WHERE profile_id = ?", [profile_id]
    ).fetchone()[0]

    if views or clicks:
        conn.execute(
            "INSERT INTO analytics_summary (profile_id) VALUES (?) "
            "ON CONFLICT (profile_id) DO NOTHING",
            [profile_id],
        )
    conn.execute(
        "UPDATE analytics_summary SET total_profile_views = ?, total_link_clicks = ?, "
        "last_updated = ? WHERE profile_id = ?",
        [views, clicks, last_updated, profile_id],
    )

    for (table, column), rows in bucket_counts.items():
        conn.execute(f"UPDATE {table} SET views = 0, clicks = 0 WHERE profile_id = ?", [profile_id])
        for key, bucket_views, bucket_clicks in rows:
            conn.execute(
                f"INSERT INTO {table} (profile_id, {column}) VALUES (?, ?) "
                f"ON CONFLICT (profile_id, {column}) DO NOTHING",
                [profile_id, key],
            )
            conn.execute(
                f"UPDATE {table} SET views = ?, clicks = ? WHERE profile_id = ? AND {column} = ?",
                [bucket_views, bucket_clicks, profile_id, key],
            )
        conn.execute(
            f"DELETE FROM {table} WHERE profile_id = ? AND views = 0 AND clicks = 0",
            [profile_id],
        )

    conn.execute("UPDATE analytics_link_stats SET clicks = 0 WHERE profile_id = ?", [profile_id])
    for link_type, link_clicks in link_counts:
        conn.execute(
            "INSERT INTO analytics_link_stats (profile_id, link_type) VALUES (?, ?) "
            "ON CONFLICT (profile_id, link_type) DO NOTHING",
            [profile_id, link_type],
        )
        conn.execute(
            "UPDATE analytics_link_stats SET clicks = ? WHERE profile_id = ? AND link_type = ?",
            [link_clicks, profile_id, link_type],
        )
    conn.execute(
        "DELETE FROM analytics_link_stats WHERE profile_id = ? AND clicks = 0", [profile_id]
    )


def _row_to_event(row: tuple) -> AnalyticsEvent:
    """Convert a DB row tuple (``_EVENT_COLUMNS`` order) to AnalyticsEvent."""
    return AnalyticsEvent(
        event_id=row[0],
        profile_id=row[1],
        event_type=row[2],
        visitor_id=row[3],
        created_at=row[4],
        link_type=row[5],
        link_url=row[6],
        location=row[7],
        user_agent=row[8],
        referrer=row[9] or "direct",
    )


def _bucket_counts(
    conn: duckdb.DuckDBPyConnection, profile_id: str, fmt: str
) -> list[tuple[str, int, int]]:
    """Return (bucket, views, clicks) rows grouped by a strftime format.

    *fmt* is one of the module's fixed bucket formats, never caller input.
    """
    return conn.execute(
        f"""
        SELECT strftime(created_at, '{fmt}') AS bucket,
               COUNT(*) FILTER (WHERE event_type = ?),
               COUNT(*) FILTER (WHERE event_type = ?)
        FROM analytics_events WHERE profile_id = ?
        GROUP BY bucket
        ORDER BY bucket
        """,
        [PROFILE_VIEW, LINK_CLICK, profile_id],
    ).fetchall()
