"""
FastAPI router module for call synchronization.

Implements POST /calls/sync: pull a window of call logs from Ringba,
normalize them, transcribe recorded calls through Deepgram, score, persist
calls and analyses, and return counts plus per-campaign metrics for the batch.

Supplier failures map to 502; store failures to 500. Transcription failures
for individual calls do not fail the sync: those calls stay pending.
"""

import logging

from fastapi import APIRouter, Body, HTTPException
from fastapi.concurrency import run_in_threadpool

from vocalytics.core.dependencies import (
    CallLogClientDep,
    SettingsDep,
    TranscriptionClientDep,
)
from vocalytics.models import GroupBy, SyncRequest, SyncResponse
from vocalytics.services.aggregation import aggregate_scored_calls
from vocalytics.services.call_store import save_analyses, save_calls
from vocalytics.services.normalizer import normalize
from vocalytics.services.pipeline import score_batch
from vocalytics.services.scoring import ScoringConfig
from vocalytics.services.suppliers import SupplierError, fetch_transcripts
from vocalytics.services.transcripts import merge_batch


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


@router.post("/sync", response_model=SyncResponse)
async def sync_calls(
    settings: SettingsDep,
    call_logs: CallLogClientDep,
    transcriber: TranscriptionClientDep,
    request: SyncRequest = Body(...),
) -> SyncResponse:
    """
    Fetch, transcribe, score and persist calls for a time window.

    Args:
        request: Window, optional campaign filter and processing flags.

    Returns:
        SyncResponse with stage counts and per-campaign metrics of the batch.
    """
    try:
        raw_records = await call_logs.fetch_call_logs(
            request.start, request.end, request.campaignId
        )
        normalization = normalize(raw_records, default_campaign_id=request.campaignId)

        transcripts = {}
        if request.transcribe:
            transcripts = await fetch_transcripts(
                normalization.records,
                transcriber,
                concurrency=settings.transcription_concurrency,
            )

        merged = merge_batch(normalization.records, transcripts)
        scored = await run_in_threadpool(
            score_batch,
            merged,
            include_structural=request.includeStructural,
            config=ScoringConfig.from_settings(settings),
            max_workers=settings.pipeline_max_workers,
        )

        await save_calls(scored)
        saved = await save_analyses(scored)

        failed = sum(1 for item in scored if item.scoringError)
        logger.info(
            f"Synced {len(scored)} calls ({len(transcripts)} transcribed, "
            f"{saved} analyses saved, {failed} scoring failures)"
        )

        return SyncResponse(
            fetchedCount=len(raw_records),
            normalizedCount=len(normalization.records),
            invalidCount=normalization.invalidCount,
            transcribedCount=len(transcripts),
            scoredCount=saved,
            failedCount=failed,
            metrics=aggregate_scored_calls(scored, GroupBy.CAMPAIGN),
        )

    except SupplierError as e:
        logger.error(f"Supplier failure during sync: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.exception("Error synchronizing calls")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to sync calls: {str(e)}"
        )
