"""
Package initialization file for Vocalytics models.

Re-exports all Pydantic schemas and enumerations from schemas.py and enums.py
so other modules can import data models from vocalytics.models directly.

Usage:
    from vocalytics.models import (
        CallRecord,
        CallStatus,
        QualityAnalysis,
        TranscriptBundle,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from vocalytics.models.enums import (
    # Canonical fields
    CanonicalField,
    # Call lifecycle
    CallStatus,
    Disposition,
    TranscriptionStatus,
    CallQuality,
    # Scoring output
    OverallRating,
    AnalysisKind,
    Speaker,
    SentimentLabel,
    # Business conversion
    ConversionStage,
    CommitmentLevel,
    UrgencyLevel,
    ConversionSource,
    # Aggregation
    GroupBy,
)

# =============================================================================
# Schemas
# =============================================================================

from vocalytics.models.schemas import (
    # Normalization
    ExtractionGap,
    InvalidRecord,
    CallRecord,
    NormalizationResult,
    # Transcripts
    WordTiming,
    Paragraph,
    SentimentSegment,
    TranscriptBundle,
    MergedCall,
    # Quality analysis
    AgentPerformance,
    ToneQuality,
    AgentEffectiveness,
    BusinessConversion,
    SpeakerSentiment,
    SentimentTimelineEntry,
    EmotionalJourney,
    KeyPhrases,
    SentimentAnalysis,
    QualityAnalysis,
    # Aggregates
    RatingDistribution,
    GroupMetrics,
    CampaignMetrics,
    AgentMetrics,
    # Pipeline
    ScoredCall,
    PipelineResult,
    # API
    NormalizeRequest,
    ScoreRequest,
    PipelineRunRequest,
    SyncRequest,
    SyncResponse,
    MetricsResponse,
)


__all__ = [
    # Enums
    "CanonicalField",
    "CallStatus",
    "Disposition",
    "TranscriptionStatus",
    "CallQuality",
    "OverallRating",
    "AnalysisKind",
    "Speaker",
    "SentimentLabel",
    "ConversionStage",
    "CommitmentLevel",
    "UrgencyLevel",
    "ConversionSource",
    "GroupBy",
    # Schemas
    "ExtractionGap",
    "InvalidRecord",
    "CallRecord",
    "NormalizationResult",
    "WordTiming",
    "Paragraph",
    "SentimentSegment",
    "TranscriptBundle",
    "MergedCall",
    "AgentPerformance",
    "ToneQuality",
    "AgentEffectiveness",
    "BusinessConversion",
    "SpeakerSentiment",
    "SentimentTimelineEntry",
    "EmotionalJourney",
    "KeyPhrases",
    "SentimentAnalysis",
    "QualityAnalysis",
    "RatingDistribution",
    "GroupMetrics",
    "CampaignMetrics",
    "AgentMetrics",
    "ScoredCall",
    "PipelineResult",
    "NormalizeRequest",
    "ScoreRequest",
    "PipelineRunRequest",
    "SyncRequest",
    "SyncResponse",
    "MetricsResponse",
]
