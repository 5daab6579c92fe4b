"""DuckDB schema definition."""

import duckdb


def ensure_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create tables, sequences and indexes if they do not exist."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            profile_id          VARCHAR PRIMARY KEY,
            domain              VARCHAR,
            first_name          VARCHAR,
            last_name           VARCHAR,
            alt_name            VARCHAR,
            email               VARCHAR,
            city                VARCHAR,
            state               VARCHAR,
            description         VARCHAR,
            profile_image_url   VARCHAR,
            profile_banner_url  VARCHAR,
            banner_colors       JSON,
            venmo_url           VARCHAR,
            paypal_url          VARCHAR,
            spotify_url         VARCHAR,
            youtube_url         VARCHAR,
            tiktok_url          VARCHAR,
            accepts_apple_pay   BOOLEAN DEFAULT false,
            accepts_google_pay  BOOLEAN DEFAULT false,
            accepts_samsung_pay BOOLEAN DEFAULT false,
            images              JSON,
            created_at          TIMESTAMP DEFAULT current_timestamp,
            updated_at          TIMESTAMP DEFAULT current_timestamp
        )
    """)

    # analytics_events: append-only log, source of truth for the summary tables
    conn.execute("CREATE SEQUENCE IF NOT EXISTS analytics_events_seq START 1")
    conn.execute("""
        CREATE TABLE IF NOT EXISTS analytics_events (
            seq         BIGINT PRIMARY KEY DEFAULT nextval('analytics_events_seq'),
            event_id    VARCHAR NOT NULL UNIQUE,
            profile_id  VARCHAR NOT NULL,
            event_type  VARCHAR NOT NULL,
            visitor_id  VARCHAR,
            link_type   VARCHAR,
            link_url    VARCHAR,
            location    VARCHAR,
            user_agent  VARCHAR,
            referrer    VARCHAR DEFAULT 'direct',
            created_at  TIMESTAMP NOT NULL
        )
    """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_events_profile ON analytics_events(profile_id, created_at)"
    )

    # Summary counters (one row per profile plus one row per bucket)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS analytics_summary (
            profile_id          VARCHAR PRIMARY KEY,
            total_profile_views BIGINT NOT NULL DEFAULT 0,
            total_link_clicks   BIGINT NOT NULL DEFAULT 0,
            last_updated        TIMESTAMP
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS analytics_monthly_stats (
            profile_id  VARCHAR NOT NULL,
            month       VARCHAR NOT NULL,
            views       BIGINT NOT NULL DEFAULT 0,
            clicks      BIGINT NOT NULL DEFAULT 0,
            PRIMARY KEY (profile_id, month)
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS analytics_daily_stats (
            profile_id  VARCHAR NOT NULL,
            day         VARCHAR NOT NULL,
            views       BIGINT NOT NULL DEFAULT 0,
            clicks      BIGINT NOT NULL DEFAULT 0,
            PRIMARY KEY (profile_id, day)
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS analytics_link_stats (
            profile_id  VARCHAR NOT NULL,
            link_type   VARCHAR NOT NULL,
            clicks      BIGINT NOT NULL DEFAULT 0,
            PRIMARY KEY (profile_id, link_type)
        )
    """)
