"""
Pydantic domain and API models for the Vocalytics backend.

This module provides type-safe data validation and serialization for the
call pipeline: canonical call records and the non-fatal reports produced while
normalizing them, transcript bundles, merged calls, quality analyses, group
metrics and the request/response shapes of the HTTP API.

Field names follow the camelCase wire contract consumed by the dashboard.
Records that represent facts about a call (CallRecord, TranscriptBundle,
QualityAnalysis) are frozen: they are built once and never mutated.

All models use Pydantic v2 syntax.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from vocalytics.models.enums import (
    AnalysisKind,
    CallQuality,
    CallStatus,
    CommitmentLevel,
    ConversionSource,
    ConversionStage,
    Disposition,
    GroupBy,
    OverallRating,
    SentimentLabel,
    Speaker,
    TranscriptionStatus,
    UrgencyLevel,
)


# =============================================================================
# Normalization Reports
# =============================================================================


class ExtractionGap(BaseModel):
    """
    Non-fatal note that a field was missing or uncoercible and was defaulted.

    Gaps are collected on the NormalizationResult; the record is still kept.
    """
    recordIndex: int = Field(..., ge=0, description="Position of the raw record in the batch")
    recordId: Optional[str] = Field(default=None, description="Resolved call id, when known")
    field: str = Field(..., description="Canonical field name")
    message: str = Field(..., description="What was defaulted and why")


class InvalidRecord(BaseModel):
    """
    A raw record that failed the validity check and was dropped.

    Reasons: not_an_object, missing_id, negative_duration.
    """
    recordIndex: int = Field(..., ge=0, description="Position of the raw record in the batch")
    reason: str = Field(..., description="Machine-readable rejection reason")
    message: str = Field(..., description="Human-readable detail")


# =============================================================================
# Canonical Call Record
# =============================================================================


class CallRecord(BaseModel):
    """
    Canonical, provider-independent call record produced by the normalizer.

    Invariants:
    - id is non-empty and assigned once
    - durationSeconds is a non-negative integer
    - hasRecording is true iff recordingUrl is non-empty
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "c1",
                "campaignId": "CA123",
                "campaignName": "Medicare Inbound",
                "agentName": "Sam",
                "durationSeconds": 125,
                "recordingUrl": "https://x/c1.wav",
                "startTime": "2025-01-15T14:03:00Z",
                "status": "connected",
                "disposition": "converted",
                "revenue": 40.0,
                "cost": 12.5,
            }
        },
    )

    id: str = Field(..., min_length=1, description="Call identifier, unique within a batch")
    campaignId: str = Field(default="unknown", min_length=1, description="Campaign identifier")
    campaignName: Optional[str] = Field(default=None, description="Campaign display name")
    agentName: str = Field(default="Unknown Agent", min_length=1, description="Agent or target name")
    durationSeconds: int = Field(default=0, ge=0, description="Total call length in seconds")
    connectedDurationSeconds: Optional[int] = Field(
        default=None, ge=0, description="Connected portion of the call in seconds"
    )
    recordingUrl: Optional[str] = Field(default=None, description="Recording location")
    startTime: datetime = Field(..., description="Call start (timezone-aware)")
    endTime: Optional[datetime] = Field(default=None, description="Call end, when reported")
    status: CallStatus = Field(default=CallStatus.UNKNOWN, description="Bounded connection status")
    disposition: Disposition = Field(default=Disposition.UNKNOWN, description="Bounded call outcome")
    rawDisposition: Optional[str] = Field(default=None, description="Provider disposition text")
    revenue: float = Field(default=0.0, ge=0.0, description="Revenue attributed to the call")
    cost: float = Field(default=0.0, ge=0.0, description="Media/telco cost of the call")
    callerId: Optional[str] = Field(default=None, description="Inbound caller number")
    publisherName: Optional[str] = Field(default=None, description="Traffic publisher")

    @computed_field
    @property
    def hasRecording(self) -> bool:
        return bool(self.recordingUrl and self.recordingUrl.strip())


class NormalizationResult(BaseModel):
    """
    Output of the call normalizer for one raw batch.

    records keeps source order; invalidCount == len(invalidRecords).
    """
    records: List[CallRecord] = Field(default_factory=list)
    inputCount: int = Field(default=0, ge=0, description="Number of raw records received")
    invalidCount: int = Field(default=0, ge=0, description="Number of raw records dropped")
    invalidRecords: List[InvalidRecord] = Field(default_factory=list)
    gaps: List[ExtractionGap] = Field(default_factory=list)


# =============================================================================
# Transcripts
# =============================================================================


class WordTiming(BaseModel):
    """One recognized word with timing and optional diarization speaker."""
    model_config = ConfigDict(frozen=True)

    word: str
    start: float = Field(..., ge=0.0)
    end: float = Field(..., ge=0.0)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    speaker: Optional[int] = Field(default=None, ge=0)
    punctuatedWord: Optional[str] = None


class Paragraph(BaseModel):
    """A diarized paragraph (speaker turn) of the transcript."""
    model_config = ConfigDict(frozen=True)

    speaker: Optional[int] = Field(default=None, ge=0)
    start: Optional[float] = Field(default=None, ge=0.0)
    end: Optional[float] = Field(default=None, ge=0.0)
    text: str


class SentimentSegment(BaseModel):
    """Provider sentiment for a stretch of the transcript."""
    model_config = ConfigDict(frozen=True)

    text: str
    start: Optional[float] = Field(default=None, ge=0.0)
    end: Optional[float] = Field(default=None, ge=0.0)
    sentiment: SentimentLabel
    sentimentScore: float = Field(default=0.0, ge=-1.0, le=1.0)


class TranscriptBundle(BaseModel):
    """
    Transcription output for exactly one call.

    callId must equal the id of the CallRecord it is merged with.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "callId": "c1",
                "text": "Thank you for calling, how can I help?",
                "words": [],
                "paragraphs": [],
                "sentimentSegments": [],
                "provider": "deepgram",
            }
        },
    )

    callId: str = Field(..., min_length=1)
    text: str = Field(default="")
    words: List[WordTiming] = Field(default_factory=list)
    paragraphs: List[Paragraph] = Field(default_factory=list)
    sentimentSegments: List[SentimentSegment] = Field(default_factory=list)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    durationSeconds: Optional[float] = Field(default=None, ge=0.0)
    provider: str = Field(default="deepgram")


class MergedCall(BaseModel):
    """
    A call record joined with its transcript, if any.

    A call without a recording is always not_applicable with no transcript.
    """
    model_config = ConfigDict(frozen=True)

    call: CallRecord
    transcript: Optional[TranscriptBundle] = None
    transcriptionStatus: TranscriptionStatus

    @model_validator(mode="after")
    def _check_transcription_state(self) -> "MergedCall":
        if not self.call.hasRecording:
            if self.transcript is not None or self.transcriptionStatus != TranscriptionStatus.NOT_APPLICABLE:
                raise ValueError("calls without a recording are never transcribed")
        elif self.transcriptionStatus == TranscriptionStatus.COMPLETED and self.transcript is None:
            raise ValueError("completed transcription requires a transcript")
        elif self.transcriptionStatus != TranscriptionStatus.COMPLETED and self.transcript is not None:
            raise ValueError("a transcript is attached only when transcription is completed")
        return self


# =============================================================================
# Quality Analysis
# =============================================================================


class AgentPerformance(BaseModel):
    """Four agent performance components, each 0-10 with one decimal."""
    model_config = ConfigDict(frozen=True)

    communicationSkills: float = Field(..., ge=0.0, le=10.0)
    problemSolving: float = Field(..., ge=0.0, le=10.0)
    productKnowledge: float = Field(..., ge=0.0, le=10.0)
    customerService: float = Field(..., ge=0.0, le=10.0)


class ToneQuality(BaseModel):
    """
    Tone of the conversation.

    agent/customer are descriptive labels; they are None when the transcript
    carries no speaker attribution for that side.
    """
    model_config = ConfigDict(frozen=True)

    agent: Optional[str] = None
    customer: Optional[str] = None
    score: float = Field(..., ge=0.0, le=10.0)
    politeness: float = Field(..., ge=0.0, le=10.0)
    empathy: float = Field(..., ge=0.0, le=10.0)
    positivity: float = Field(..., ge=0.0, le=10.0)
    clarity: float = Field(..., ge=0.0, le=10.0)


class AgentEffectiveness(BaseModel):
    """Agent-side selling behaviour, each 0-10."""
    model_config = ConfigDict(frozen=True)

    closingAttempts: int = Field(..., ge=0, le=10)
    objectionHandling: int = Field(..., ge=0, le=10)
    valueProposition: int = Field(..., ge=0, le=10)
    urgencyCreation: int = Field(..., ge=0, le=10)


class BusinessConversion(BaseModel):
    """
    Whether the call produced a business outcome and how confident we are.

    On the structural path only conversionAchieved, conversionConfidence and
    source are populated (from the provider disposition).
    """
    model_config = ConfigDict(frozen=True)

    conversionAchieved: bool
    conversionConfidence: int = Field(..., ge=0, le=100)
    conversionType: Optional[str] = None
    conversionStage: Optional[ConversionStage] = None
    commitmentLevel: Optional[CommitmentLevel] = None
    urgency: Optional[UrgencyLevel] = None
    followUpTiming: Optional[str] = None
    positiveSignals: List[str] = Field(default_factory=list)
    negativeSignals: List[str] = Field(default_factory=list)
    agentEffectiveness: Optional[AgentEffectiveness] = None
    riskFactors: List[str] = Field(default_factory=list)
    nextBestAction: Optional[str] = None
    source: ConversionSource = ConversionSource.TRANSCRIPT


class SpeakerSentiment(BaseModel):
    """Sentiment distribution (percentages summing to 100) for one side of the call."""
    model_config = ConfigDict(frozen=True)

    positive: int = Field(..., ge=0, le=100)
    negative: int = Field(..., ge=0, le=100)
    neutral: int = Field(..., ge=0, le=100)
    overall: SentimentLabel
    confidence: int = Field(..., ge=0, le=100)


class SentimentTimelineEntry(BaseModel):
    """Sentiment of a single turn; timestamp is None when timing is unknown."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    timestamp: Optional[float] = Field(default=None, ge=0.0)
    speaker: Speaker
    sentiment: SentimentLabel
    confidence: int = Field(..., ge=0, le=100)
    text: str


class EmotionalJourney(BaseModel):
    model_config = ConfigDict(frozen=True)

    startSentiment: SentimentLabel
    endSentiment: SentimentLabel
    sentimentShifts: int = Field(..., ge=0)
    dominantEmotion: SentimentLabel


class KeyPhrases(BaseModel):
    model_config = ConfigDict(frozen=True)

    positive: List[str] = Field(default_factory=list)
    negative: List[str] = Field(default_factory=list)
    neutral: List[str] = Field(default_factory=list)


class SentimentAnalysis(BaseModel):
    """
    Sentiment for the whole call, per speaker and per turn.

    agentSentiment/customerSentiment are None when speakers are unknown.
    source is "provider" when the transcript carried sentiment segments,
    otherwise "keywords".
    """
    model_config = ConfigDict(frozen=True)

    agentSentiment: Optional[SpeakerSentiment] = None
    customerSentiment: Optional[SpeakerSentiment] = None
    overallCallSentiment: SpeakerSentiment
    sentimentTimeline: List[SentimentTimelineEntry] = Field(default_factory=list)
    emotionalJourney: EmotionalJourney
    keyPhrases: KeyPhrases = Field(default_factory=KeyPhrases)
    source: str = Field(default="keywords")


class QualityAnalysis(BaseModel):
    """
    Scored quality of one call.

    Computed once and never mutated; rescoring produces version + 1.
    On the structural path (kind=structural) all speech-derived fields and
    overallScore/overallRating are None.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "callId": "c1",
                "version": 1,
                "scorerVersion": "2025.1",
                "kind": "full",
                "overallScore": 5.3,
                "overallRating": "BAD",
                "callQuality": "excellent",
                "callDuration": "2:05",
            }
        },
    )

    callId: str = Field(..., min_length=1)
    version: int = Field(default=1, ge=1)
    scorerVersion: str
    kind: AnalysisKind
    overallScore: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    overallRating: Optional[OverallRating] = None
    toneQuality: Optional[ToneQuality] = None
    agentPerformance: Optional[AgentPerformance] = None
    businessConversion: Optional[BusinessConversion] = None
    sentimentAnalysis: Optional[SentimentAnalysis] = None
    callQuality: CallQuality
    callDuration: str = Field(..., description="Call length formatted as m:ss")
    keyInsights: List[str] = Field(default_factory=list)
    improvementSuggestions: List[str] = Field(default_factory=list)
    summary: Optional[str] = None


# =============================================================================
# Aggregates
# =============================================================================


class RatingDistribution(BaseModel):
    GOOD: int = Field(default=0, ge=0)
    BAD: int = Field(default=0, ge=0)
    UGLY: int = Field(default=0, ge=0)


class GroupMetrics(BaseModel):
    """
    Aggregate metrics for one campaign or agent.

    Always a projection over scored calls; never persisted as source of truth.
    averageScore is None when no call in the group was scored.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "groupBy": "campaign",
                "groupKey": "CA123",
                "groupName": "Medicare Inbound",
                "totalCalls": 120,
                "completedCalls": 98,
                "rejectedCalls": 4,
                "skippedCalls": 18,
                "scoredCalls": 90,
                "unscoredCalls": 30,
                "averageScore": 6.8,
                "ratingDistribution": {"GOOD": 30, "BAD": 50, "UGLY": 10},
                "totalAudioMinutes": 512.4,
                "averageCallMinutes": 4.3,
                "conversions": 22,
                "conversionRate": 18.3,
                "revenue": 880.0,
                "cost": 310.5,
            }
        }
    )

    groupBy: GroupBy
    groupKey: str
    groupName: Optional[str] = None
    totalCalls: int = Field(..., ge=0)
    completedCalls: int = Field(default=0, ge=0)
    rejectedCalls: int = Field(default=0, ge=0)
    skippedCalls: int = Field(default=0, ge=0)
    scoredCalls: int = Field(default=0, ge=0)
    unscoredCalls: int = Field(default=0, ge=0)
    averageScore: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    ratingDistribution: RatingDistribution = Field(default_factory=RatingDistribution)
    totalAudioMinutes: float = Field(default=0.0, ge=0.0)
    averageCallMinutes: float = Field(default=0.0, ge=0.0)
    conversions: int = Field(default=0, ge=0)
    conversionRate: float = Field(default=0.0, ge=0.0, le=100.0)
    revenue: float = Field(default=0.0, ge=0.0)
    cost: float = Field(default=0.0, ge=0.0)


class CampaignMetrics(GroupMetrics):
    """GroupMetrics keyed by campaign id."""
    groupBy: GroupBy = GroupBy.CAMPAIGN


class AgentMetrics(GroupMetrics):
    """GroupMetrics keyed by agent name."""
    groupBy: GroupBy = GroupBy.AGENT


# =============================================================================
# Pipeline Results
# =============================================================================


class ScoredCall(BaseModel):
    """
    One call after the pipeline ran: its merge state and analysis, if any.

    scoringError carries the ScoringError message for calls that could not
    be scored; such calls are excluded from score averages.
    """
    call: CallRecord
    transcriptionStatus: TranscriptionStatus
    analysis: Optional[QualityAnalysis] = None
    scoringError: Optional[str] = None


class PipelineResult(BaseModel):
    normalization: NormalizationResult
    calls: List[ScoredCall] = Field(default_factory=list)
    metrics: List[GroupMetrics] = Field(default_factory=list)


# =============================================================================
# API Request / Response Models
# =============================================================================


class NormalizeRequest(BaseModel):
    """Raw supplier payload to normalize; any JSON shape the decoder accepts."""
    payload: Any = Field(..., description="Raw call-log response body or list of records")
    defaultCampaignId: Optional[str] = Field(
        default=None, description="Campaign id applied when a record carries none"
    )


class ScoreRequest(BaseModel):
    call: CallRecord
    transcript: Optional[TranscriptBundle] = None
    structural: bool = Field(
        default=False, description="Score structurally when the call has no transcript"
    )


class PipelineRunRequest(BaseModel):
    payload: Any = Field(..., description="Raw call-log response body or list of records")
    transcripts: List[TranscriptBundle] = Field(default_factory=list)
    groupBy: GroupBy = GroupBy.CAMPAIGN
    includeStructural: bool = False
    defaultCampaignId: Optional[str] = None


class SyncRequest(BaseModel):
    """Window of call logs to pull from the telephony provider."""
    start: datetime
    end: datetime
    campaignId: Optional[str] = None
    transcribe: bool = True
    includeStructural: bool = False

    @model_validator(mode="after")
    def _check_window(self) -> "SyncRequest":
        if self.end < self.start:
            raise ValueError("end must not precede start")
        return self


class SyncResponse(BaseModel):
    fetchedCount: int = Field(..., ge=0)
    normalizedCount: int = Field(..., ge=0)
    invalidCount: int = Field(..., ge=0)
    transcribedCount: int = Field(..., ge=0)
    scoredCount: int = Field(..., ge=0)
    failedCount: int = Field(..., ge=0)
    metrics: List[GroupMetrics] = Field(default_factory=list)


class MetricsResponse(BaseModel):
    groupBy: GroupBy
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    metrics: List[GroupMetrics] = Field(default_factory=list)

