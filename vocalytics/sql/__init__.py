"""
SQL Query Module for the Vocalytics backend.

Provides parameterized asyncpg SQL for the call store (call_queries):
call upserts, append-only versioned analyses, and the window query that
joins each call with its latest analysis.

Example usage:
    from vocalytics.sql import get_scored_calls_query

    sql = get_scored_calls_query(campaign_id='CA123')
"""

from vocalytics.sql.call_queries import (
    CALL_RECORD_COLUMNS,
    QUALITY_ANALYSIS_COLUMNS,
    get_analysis_insert_query,
    get_analysis_lock_query,
    get_call_upsert_query,
    get_latest_analysis_version_query,
    get_scored_calls_query,
)


__all__ = [
    'CALL_RECORD_COLUMNS',
    'QUALITY_ANALYSIS_COLUMNS',
    'get_analysis_insert_query',
    'get_analysis_lock_query',
    'get_call_upsert_query',
    'get_latest_analysis_version_query',
    'get_scored_calls_query',
]
