"""
Pipeline Service

Runs the full in-memory flow for one batch:

    decode -> normalize -> merge -> score -> aggregate

Scoring fans out over a thread pool; results come back in source order.
A call that cannot be scored is kept with its ScoringError message and is
excluded from score averages. Calls without a recording get a structural
analysis only when requested; calls still waiting for a transcript are left
unanalyzed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from functools import partial
from typing import Any, List, Optional, Sequence

from vocalytics.models import (
    GroupBy,
    MergedCall,
    PipelineResult,
    ScoredCall,
    TranscriptBundle,
    TranscriptionStatus,
)
from vocalytics.services.aggregation import aggregate_scored_calls
from vocalytics.services.normalizer import normalize
from vocalytics.services.payload_decoder import decode_call_payload
from vocalytics.services.scoring import ScoringConfig, ScoringError, score, score_structural
from vocalytics.services.transcripts import index_transcripts, merge_batch

# Configure module logger
logger = logging.getLogger(__name__)


def score_merged(
    merged: MergedCall,
    *,
    include_structural: bool = False,
    config: Optional[ScoringConfig] = None,
) -> ScoredCall:
    """Score one merged call, capturing ScoringError on the result."""
    status = merged.transcriptionStatus

    if status == TranscriptionStatus.COMPLETED:
        try:
            analysis = score(merged, config=config)
        except ScoringError as e:
            logger.warning(f"Call {merged.call.id} not scored: {e}")
            return ScoredCall(call=merged.call, transcriptionStatus=status, scoringError=str(e))
        return ScoredCall(call=merged.call, transcriptionStatus=status, analysis=analysis)

    if status == TranscriptionStatus.NOT_APPLICABLE and include_structural:
        return ScoredCall(
            call=merged.call,
            transcriptionStatus=status,
            analysis=score_structural(merged),
        )

    return ScoredCall(call=merged.call, transcriptionStatus=status)


def score_batch(
    merged_calls: Sequence[MergedCall],
    *,
    include_structural: bool = False,
    config: Optional[ScoringConfig] = None,
    max_workers: int = 4,
) -> List[ScoredCall]:
    """
    Score merged calls concurrently.

    Returns:
        ScoredCall per input, in input order.
    """
    worker = partial(score_merged, include_structural=include_structural, config=config)
    if max_workers <= 1 or len(merged_calls) <= 1:
        return [worker(merged) for merged in merged_calls]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(worker, merged_calls))


def run_pipeline(
    raw_payload: Any,
    transcripts: Sequence[TranscriptBundle] = (),
    *,
    group_by: GroupBy = GroupBy.CAMPAIGN,
    include_structural: bool = False,
    max_workers: int = 4,
    default_campaign_id: Optional[str] = None,
    scoring_config: Optional[ScoringConfig] = None,
    extracted_at: Optional[datetime] = None,
) -> PipelineResult:
    """
    Run decode, normalize, merge, score and aggregate for one raw payload.

    Args:
        raw_payload: Supplier response body (bytes, str or parsed JSON).
        transcripts: Transcripts already produced for calls in the payload.
        group_by: Aggregation key for the returned metrics.
        include_structural: Give calls without a recording a structural analysis.
        max_workers: Scoring thread pool size.
        default_campaign_id: Campaign id for records that carry none.
        scoring_config: Scorer configuration.
        extracted_at: Extraction timestamp used as start time fallback.

    Returns:
        PipelineResult with the normalization report, per-call results and metrics.

    Raises:
        DecodeError: If the payload cannot be decoded.
    """
    raw_records = decode_call_payload(raw_payload)
    normalization = normalize(
        raw_records,
        default_campaign_id=default_campaign_id,
        extracted_at=extracted_at,
    )

    merged = merge_batch(normalization.records, index_transcripts(transcripts))
    scored = score_batch(
        merged,
        include_structural=include_structural,
        config=scoring_config,
        max_workers=max_workers,
    )
    metrics = aggregate_scored_calls(scored, group_by)

    failed = sum(1 for item in scored if item.scoringError)
    logger.info(
        f"Pipeline processed {normalization.inputCount} records: "
        f"{len(scored)} calls, {failed} scoring failures, {len(metrics)} groups"
    )

    return PipelineResult(normalization=normalization, calls=scored, metrics=metrics)
