"""
FastAPI router module for the stateless call pipeline.

Implements POST /pipeline/normalize (raw payload -> canonical records),
POST /pipeline/score (one call + transcript -> quality analysis) and
POST /pipeline/run (raw payload + transcripts -> scored calls and metrics).

Nothing here touches the database or the suppliers; these endpoints run the
pure pipeline on data supplied by the caller.

Error mapping:
- DecodeError / TranscriptMismatchError -> 400
- ScoringError -> 422
- anything else -> 500
"""

import logging

from fastapi import APIRouter, Body, HTTPException
from fastapi.concurrency import run_in_threadpool

from vocalytics.core.dependencies import SettingsDep
from vocalytics.models import (
    NormalizationResult,
    NormalizeRequest,
    PipelineResult,
    PipelineRunRequest,
    QualityAnalysis,
    ScoreRequest,
    TranscriptionStatus,
)
from vocalytics.services.normalizer import normalize
from vocalytics.services.payload_decoder import DecodeError, decode_call_payload
from vocalytics.services.pipeline import run_pipeline
from vocalytics.services.scoring import ScoringConfig, ScoringError, score, score_structural
from vocalytics.services.transcripts import TranscriptMismatchError, merge


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


@router.post("/normalize", response_model=NormalizationResult)
async def normalize_payload(
    request: NormalizeRequest = Body(...),
) -> NormalizationResult:
    """
    Normalize a raw call-log payload into canonical call records.

    Invalid records are dropped and counted; defaulted fields are reported
    as gaps.
    """
    try:
        raw_records = decode_call_payload(request.payload)
        return normalize(raw_records, default_campaign_id=request.defaultCampaignId)
    except DecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid call payload: {e}")
    except Exception as e:
        logger.exception("Error normalizing call payload")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to normalize payload: {str(e)}"
        )


@router.post("/score", response_model=QualityAnalysis)
async def score_call(
    settings: SettingsDep,
    request: ScoreRequest = Body(...),
) -> QualityAnalysis:
    """
    Score one call.

    With ``structural`` set, a call without a recording gets a metadata-only
    analysis instead of a 422. Recorded calls always need a transcript.
    """
    try:
        merged = merge(request.call, request.transcript)
        if request.structural and merged.transcriptionStatus == TranscriptionStatus.NOT_APPLICABLE:
            return score_structural(merged)
        return score(merged, config=ScoringConfig.from_settings(settings))
    except TranscriptMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ScoringError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception(f"Error scoring call {request.call.id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to score call: {str(e)}"
        )


@router.post("/run", response_model=PipelineResult)
async def run_batch(
    settings: SettingsDep,
    request: PipelineRunRequest = Body(...),
) -> PipelineResult:
    """
    Run decode, normalize, merge, score and aggregate over a supplied batch.

    Calls that cannot be scored are returned with ``scoringError`` set.
    """
    try:
        return await run_in_threadpool(
            run_pipeline,
            request.payload,
            request.transcripts,
            group_by=request.groupBy,
            include_structural=request.includeStructural,
            max_workers=settings.pipeline_max_workers,
            default_campaign_id=request.defaultCampaignId,
            scoring_config=ScoringConfig.from_settings(settings),
        )
    except DecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid call payload: {e}")
    except Exception as e:
        logger.exception("Error running call pipeline")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to run pipeline: {str(e)}"
        )
