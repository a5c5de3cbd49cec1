"""
Vocalytics Services Module

Business logic for the call pipeline. The core services are pure and
perform no I/O; only call_store and suppliers talk to the outside world.

Services:
- field_extractor: Alias-driven field extraction and type coercion
- payload_decoder: Unwraps supplier response bodies into raw records
- normalizer: Raw records -> canonical CallRecord with gap reporting
- transcripts: Deepgram response -> TranscriptBundle, call/transcript merge
- turns / lexicons / sentiment / conversion: Building blocks of the scorer
- scoring: Deterministic QualityAnalysis (full and structural)
- aggregation: Campaign / agent metrics with pandas
- pipeline: decode -> normalize -> merge -> score -> aggregate
- suppliers: Ringba call-log and Deepgram transcription clients
- call_store: asyncpg persistence of calls and versioned analyses

All services are designed to be consumed by the API layer (vocalytics/api/).
"""

# =============================================================================
# Normalization Exports
# =============================================================================

from vocalytics.services.field_extractor import (
    FIELD_ALIASES,
    extract,
    extract_all,
    resolve,
)
from vocalytics.services.payload_decoder import DecodeError, decode_call_payload
from vocalytics.services.normalizer import normalize, normalize_record

# =============================================================================
# Transcript Merge Exports
# =============================================================================

from vocalytics.services.transcripts import (
    TranscriptMismatchError,
    build_transcript_bundle,
    index_transcripts,
    merge,
    merge_batch,
)

# =============================================================================
# Scoring and Aggregation Exports
# =============================================================================

from vocalytics.services.scoring import (
    SCORER_VERSION,
    ScoringConfig,
    ScoringError,
    rate_score,
    rescore,
    score,
    score_structural,
)
from vocalytics.services.aggregation import aggregate, aggregate_scored_calls
from vocalytics.services.pipeline import run_pipeline, score_batch


__all__ = [
    # Normalization
    'FIELD_ALIASES',
    'extract',
    'extract_all',
    'resolve',
    'DecodeError',
    'decode_call_payload',
    'normalize',
    'normalize_record',
    # Transcripts
    'TranscriptMismatchError',
    'build_transcript_bundle',
    'index_transcripts',
    'merge',
    'merge_batch',
    # Scoring
    'SCORER_VERSION',
    'ScoringConfig',
    'ScoringError',
    'rate_score',
    'rescore',
    'score',
    'score_structural',
    # Aggregation
    'aggregate',
    'aggregate_scored_calls',
    'run_pipeline',
    'score_batch',
]
