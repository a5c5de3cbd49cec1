"""
Call Store Service

Persists normalized calls and their quality analyses to Supabase PostgreSQL
and loads them back for aggregation.

Persistence rules:
- call_record rows are upserted by call id (a re-sync overwrites, never duplicates).
- quality_analysis rows are append-only: each save stores version = latest + 1,
  so an earlier analysis is never mutated.
- Aggregates are not stored; /metrics recomputes them from loaded calls.
"""

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import asyncpg

from vocalytics.core.database import get_db_pool
from vocalytics.models import CallRecord, QualityAnalysis, ScoredCall, TranscriptionStatus
from vocalytics.sql.call_queries import (
    get_analysis_insert_query,
    get_analysis_lock_query,
    get_call_upsert_query,
    get_latest_analysis_version_query,
    get_scored_calls_query,
)

# Configure module logger
logger = logging.getLogger(__name__)


def _call_row(call: CallRecord, status: TranscriptionStatus, now: datetime) -> tuple:
    return (
        call.id,
        call.campaignId,
        call.campaignName,
        call.agentName,
        call.durationSeconds,
        call.connectedDurationSeconds,
        call.recordingUrl,
        call.startTime,
        call.endTime,
        call.status.value,
        call.disposition.value,
        call.rawDisposition,
        call.revenue,
        call.cost,
        call.callerId,
        call.publisherName,
        status.value,
        now,
    )


def _call_from_row(row: asyncpg.Record) -> CallRecord:
    return CallRecord(
        id=row['id'],
        campaignId=row['campaign_id'],
        campaignName=row['campaign_name'],
        agentName=row['agent_name'],
        durationSeconds=int(row['duration_seconds']),
        connectedDurationSeconds=(
            int(row['connected_duration_seconds'])
            if row['connected_duration_seconds'] is not None else None
        ),
        recordingUrl=row['recording_url'],
        startTime=row['start_time'],
        endTime=row['end_time'],
        status=row['status'],
        disposition=row['disposition'],
        rawDisposition=row['raw_disposition'],
        revenue=float(row['revenue']),
        cost=float(row['cost']),
        callerId=row['caller_id'],
        publisherName=row['publisher_name'],
    )


async def save_calls(calls: Sequence[ScoredCall]) -> int:
    """
    Upsert call records with their transcription status.

    Args:
        calls: Pipeline results whose call records should be stored.

    Returns:
        Number of calls written.

    Raises:
        asyncpg.PostgresError: If the write fails; the batch is rolled back.
    """
    if not calls:
        return 0

    now = datetime.now(timezone.utc)
    query = get_call_upsert_query()
    rows = [_call_row(item.call, item.transcriptionStatus, now) for item in calls]

    pool = await get_db_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.executemany(query, rows)

    logger.info(f"Saved {len(rows)} call records")
    return len(rows)


async def save_analysis(analysis: QualityAnalysis) -> QualityAnalysis:
    """
    Append an analysis as the next version for its call.

    The stored version is always latest + 1, whatever version the analysis
    carries; the returned analysis has the stored version. The call's
    advisory lock is taken first, so overlapping syncs never store the same
    version twice.

    Raises:
        asyncpg.PostgresError: If the write fails.
    """
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(get_analysis_lock_query(), analysis.callId)
            row = await conn.fetchrow(get_latest_analysis_version_query(), analysis.callId)
            latest = int(row['latest_version']) if row is not None else 0
            stored = analysis.model_copy(update={"version": latest + 1})

            await conn.execute(
                get_analysis_insert_query(),
                stored.callId,
                stored.version,
                stored.scorerVersion,
                stored.kind.value,
                stored.overallScore,
                stored.overallRating.value if stored.overallRating else None,
                stored.callQuality.value,
                stored.model_dump_json(),
                datetime.now(timezone.utc),
            )

    logger.debug(f"Saved analysis v{stored.version} for call {stored.callId}")
    return stored


async def save_analyses(calls: Sequence[ScoredCall]) -> int:
    """Save the analysis of every scored call; returns how many were saved."""
    saved = 0
    for item in calls:
        if item.analysis is not None:
            await save_analysis(item.analysis)
            saved += 1
    return saved


async def load_scored_calls(
    start: datetime,
    end: datetime,
    campaign_id: Optional[str] = None,
) -> List[Tuple[CallRecord, Optional[QualityAnalysis]]]:
    """
    Load calls started in [start, end] with their latest analysis.

    Returns:
        (CallRecord, QualityAnalysis or None) pairs ordered by start time,
        ready for aggregation.
    """
    query = get_scored_calls_query(campaign_id)
    args: List[object] = [start, end]
    if campaign_id is not None:
        args.append(campaign_id)

    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(query, *args)

    results: List[Tuple[CallRecord, Optional[QualityAnalysis]]] = []
    for row in rows:
        analysis = None
        if row['analysis'] is not None:
            analysis = QualityAnalysis.model_validate(json.loads(row['analysis']))
        results.append((_call_from_row(row), analysis))

    logger.info(f"Loaded {len(results)} calls between {start.isoformat()} and {end.isoformat()}")
    return results
