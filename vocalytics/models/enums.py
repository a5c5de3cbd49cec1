"""
Enumeration definitions for the Vocalytics FastAPI backend.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings in Pydantic models and API responses.

Groups:
- Canonical call fields: CanonicalField
- Call lifecycle: CallStatus, Disposition, TranscriptionStatus, CallQuality
- Scoring output: OverallRating, AnalysisKind, SentimentLabel, Speaker
- Business conversion: ConversionStage, CommitmentLevel, UrgencyLevel,
  ConversionSource
- Aggregation: GroupBy
"""

from enum import Enum


class CanonicalField(str, Enum):
    """
    Canonical call-record fields resolved by the field extractor.

    Each member maps to an ordered alias list of provider-specific keys
    (see vocalytics.services.field_extractor.FIELD_ALIASES).
    """
    ID = "id"
    CAMPAIGN_ID = "campaignId"
    CAMPAIGN_NAME = "campaignName"
    AGENT_NAME = "agentName"
    DURATION_SECONDS = "durationSeconds"
    CONNECTED_DURATION_SECONDS = "connectedDurationSeconds"
    RECORDING_URL = "recordingUrl"
    START_TIME = "startTime"
    END_TIME = "endTime"
    STATUS = "status"
    DISPOSITION = "disposition"
    REVENUE = "revenue"
    COST = "cost"
    CALLER_ID = "callerId"
    PUBLISHER_NAME = "publisherName"


class CallStatus(str, Enum):
    """
    Bounded connection status of a call.

    Provider strings ("completed", "no-answer", "hangup", ...) and the
    boolean hasConnected flag are mapped onto these values; anything
    unrecognized becomes UNKNOWN.

    - connected: The call was answered and connected to a target
    - not_connected: The call ended without connecting
    - missed / no_answer: Counted as skipped calls in aggregates
    - busy / rejected / failed: Counted as rejected calls in aggregates
    """
    CONNECTED = "connected"
    NOT_CONNECTED = "not_connected"
    MISSED = "missed"
    NO_ANSWER = "no_answer"
    BUSY = "busy"
    REJECTED = "rejected"
    FAILED = "failed"
    UNKNOWN = "unknown"


class Disposition(str, Enum):
    """
    Bounded call outcome as reported by the telephony provider.
    """
    CONVERTED = "converted"
    NOT_CONVERTED = "not_converted"
    UNKNOWN = "unknown"


class TranscriptionStatus(str, Enum):
    """
    Transcription state of a merged call.

    - completed: A transcript is attached
    - pending: The call has a recording but no transcript yet
    - not_applicable: The call has no recording and is never transcribed
    """
    COMPLETED = "completed"
    PENDING = "pending"
    NOT_APPLICABLE = "not_applicable"


class OverallRating(str, Enum):
    """
    Banded overall quality rating.

    - GOOD: score >= 7.5
    - BAD: 5.1 <= score < 7.5
    - UGLY: score <= 5.0
    """
    GOOD = "GOOD"
    BAD = "BAD"
    UGLY = "UGLY"


class AnalysisKind(str, Enum):
    """
    Which scoring path produced a QualityAnalysis.

    - full: Transcript-based scoring with all sub-scores
    - structural: Metadata-only scoring for calls without a transcript
    """
    FULL = "full"
    STRUCTURAL = "structural"


class CallQuality(str, Enum):
    """
    Connection quality bucket derived from connection state and duration.

    - excellent: connected for 60 seconds or more
    - good: connected for 30 seconds or more
    - fair: connected for 10 seconds or more
    - poor: shorter, or never connected
    """
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Speaker(str, Enum):
    """Resolved role of a transcript turn."""
    AGENT = "agent"
    CUSTOMER = "customer"
    UNKNOWN = "unknown"


class SentimentLabel(str, Enum):
    """Three-way sentiment label used for speakers, timeline entries and the call."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ConversionStage(str, Enum):
    """
    Sales funnel stage reached during the call, in increasing order.
    """
    AWARENESS = "awareness"
    INTEREST = "interest"
    CONSIDERATION = "consideration"
    INTENT = "intent"
    EVALUATION = "evaluation"
    PURCHASE = "purchase"


class CommitmentLevel(str, Enum):
    """
    Customer commitment derived from the weighted signal score.

    - very_high: score >= 20
    - high: score >= 10
    - medium: score >= 0
    - low: score < 0
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class UrgencyLevel(str, Enum):
    """Follow-up urgency inferred from time phrases and funnel position."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class ConversionSource(str, Enum):
    """
    Which input decided conversionAchieved.

    - transcript: The weighted signal classifier
    - disposition: The provider's disposition overrode the classifier
    """
    TRANSCRIPT = "transcript"
    DISPOSITION = "disposition"


class GroupBy(str, Enum):
    """Aggregation dimension for call metrics."""
    CAMPAIGN = "campaign"
    AGENT = "agent"
