"""
Parameterized SQL for the call store.

Tables:
    call_record       one row per call id, upserted on every sync
    quality_analysis  one row per (call_id, version); rows are never updated,
                      rescoring inserts version + 1

All queries use asyncpg positional parameters ($1, $2, ...).
"""

from typing import Optional


CALL_RECORD_COLUMNS = (
    "id",
    "campaign_id",
    "campaign_name",
    "agent_name",
    "duration_seconds",
    "connected_duration_seconds",
    "recording_url",
    "start_time",
    "end_time",
    "status",
    "disposition",
    "raw_disposition",
    "revenue",
    "cost",
    "caller_id",
    "publisher_name",
    "transcription_status",
    "updated_at",
)

QUALITY_ANALYSIS_COLUMNS = (
    "call_id",
    "version",
    "scorer_version",
    "kind",
    "overall_score",
    "overall_rating",
    "call_quality",
    "analysis",
    "created_at",
)


def _placeholders(count: int) -> str:
    return ", ".join(f"${i}" for i in range(1, count + 1))


def get_call_upsert_query() -> str:
    """
    Upsert one call_record row keyed by id.

    Parameters follow CALL_RECORD_COLUMNS order. A later sync of the same call
    overwrites its fields, so overlapping fetch windows never duplicate calls.
    """
    updates = ",\n            ".join(
        f"{column} = EXCLUDED.{column}" for column in CALL_RECORD_COLUMNS[1:]
    )
    return f"""
        INSERT INTO call_record (
            {", ".join(CALL_RECORD_COLUMNS)}
        ) VALUES (
            {_placeholders(len(CALL_RECORD_COLUMNS))}
        )
        ON CONFLICT (id) DO UPDATE SET
            {updates}
    """


def get_analysis_lock_query() -> str:
    """
    Transaction-scoped advisory lock on one call's analyses ($1 = call_id).

    Held until commit, so concurrent writers for the same call read and
    append versions one at a time.
    """
    return "SELECT pg_advisory_xact_lock(hashtext($1))"


def get_latest_analysis_version_query() -> str:
    """Highest stored analysis version for a call ($1 = call_id), 0 when none."""
    return """
        SELECT COALESCE(MAX(version), 0) AS latest_version
        FROM quality_analysis
        WHERE call_id = $1
    """


def get_analysis_insert_query() -> str:
    """Insert one quality_analysis row; parameters follow QUALITY_ANALYSIS_COLUMNS order."""
    return f"""
        INSERT INTO quality_analysis (
            {", ".join(QUALITY_ANALYSIS_COLUMNS)}
        ) VALUES (
            {_placeholders(len(QUALITY_ANALYSIS_COLUMNS))}
        )
    """


def get_scored_calls_query(campaign_id: Optional[str] = None) -> str:
    """
    Calls started in [$1, $2] joined with their latest analysis, if any.

    Args:
        campaign_id: When given, adds ``campaign_id = $3``.

    Returns:
        str: Query returning call_record columns plus ``analysis`` (JSON text
        or NULL), ordered by start_time then id.
    """
    where_conditions = [
        "c.start_time >= $1",
        "c.start_time <= $2",
    ]
    if campaign_id is not None:
        where_conditions.append("c.campaign_id = $3")

    where_clause = " AND ".join(where_conditions)
    call_columns = ", ".join(f"c.{column}" for column in CALL_RECORD_COLUMNS)

    return f"""
        SELECT {call_columns}, latest.analysis::text AS analysis
        FROM call_record c
        LEFT JOIN LATERAL (
            SELECT qa.analysis
            FROM quality_analysis qa
            WHERE qa.call_id = c.id
            ORDER BY qa.version DESC
            LIMIT 1
        ) latest ON TRUE
        WHERE {where_clause}
        ORDER BY c.start_time, c.id
    """
