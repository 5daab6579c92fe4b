"""Shared DuckDB connection factory."""

import duckdb

from tipt_profile.config import DB_PATH


def get_connection(
    db_path: str | None = None, read_only: bool = False
) -> duckdb.DuckDBPyConnection:
    """Open a DuckDB connection. Defaults to the project-root DB file."""
    path = db_path or str(DB_PATH)
    conn = duckdb.connect(path, read_only=read_only)

    if not read_only:
        from tipt_profile.profiles.schema import ensure_schema

        ensure_schema(conn)
    return conn
