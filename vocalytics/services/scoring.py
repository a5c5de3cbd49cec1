"""
Quality Scoring Service

Deterministic quality analysis of a merged call. The same merged call and
configuration always produce the same QualityAnalysis; nothing here reads a
clock, draws a random number or performs I/O.

Full analysis (calls with a completed transcript):
- Agent performance: four components, each starting at 5.0 and gaining 0.5
  per distinct lexicon phrase the agent used.
    communicationSkills  -0.25 per filler word (max -2.0),
                         +0.5 for a 110-170 wpm pace, -0.5 outside it
    customerService      +0.5 for an agent talk share in [0.3, 0.7],
                         -0.5 above 0.8
- Tone quality: politeness, empathy, positivity and clarity; score = mean.
- Overall score: weighted mean of the four performance components.
- Rating (after half-up rounding to one decimal):
    GOOD  >= 7.5
    BAD   >= 5.1
    UGLY  otherwise

Structural analysis (calls without transcript, on request):
- Only call quality, duration and a disposition-based conversion.
- overallScore and overallRating are None.

Call quality comes from the connection status and connected duration:
    >= 60s excellent, >= 30s good, >= 10s fair, else poor
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from vocalytics.core.config import Settings
from vocalytics.models import (
    AgentPerformance,
    AnalysisKind,
    BusinessConversion,
    CallQuality,
    CallRecord,
    CallStatus,
    MergedCall,
    OverallRating,
    QualityAnalysis,
    SentimentAnalysis,
    SentimentLabel,
    Speaker,
    ToneQuality,
    TranscriptBundle,
    TranscriptionStatus,
)
from vocalytics.services import lexicons
from vocalytics.services.conversion import analyze_conversion, disposition_conversion
from vocalytics.services.lexicons import count_fillers, count_matches
from vocalytics.services.numeric import clamp, round_half_up
from vocalytics.services.sentiment import analyze_sentiment
from vocalytics.services.turns import TurnSplit, split_turns

# Configure module logger
logger = logging.getLogger(__name__)

SCORER_VERSION = "2025.1"

PERFORMANCE_COMPONENTS = (
    "communicationSkills",
    "problemSolving",
    "productKnowledge",
    "customerService",
)

# Rating thresholds, applied to the score rounded to one decimal
GOOD_THRESHOLD = 7.5
BAD_THRESHOLD = 5.1

BASE_COMPONENT_SCORE = 5.0
PHRASE_BONUS = 0.5
FILLER_PENALTY = 0.25
MAX_FILLER_PENALTY = 2.0
PACING_ADJUSTMENT = 0.5
PACING_WPM_RANGE = (110.0, 170.0)
TALK_SHARE_RANGE = (0.3, 0.7)
TALK_SHARE_DOMINANT = 0.8
TALK_SHARE_ADJUSTMENT = 0.5

DEFAULT_CLARITY = 8.0
LONG_TRANSCRIPT_CHARS = 1000
SUGGESTION_THRESHOLD = 7.0
TRAINING_THRESHOLD = 6.0


class ScoringError(ValueError):
    """Raised when a call cannot be scored (no completed or usable transcript)."""


@dataclass
class ScoringConfig:
    """
    Scorer configuration.

    Attributes:
        min_transcript_chars: Minimum stripped transcript length to score.
        weights: Weight per agent-performance component for overallScore.
    """
    min_transcript_chars: int = 20
    weights: Dict[str, float] = field(
        default_factory=lambda: {name: 1.0 for name in PERFORMANCE_COMPONENTS}
    )

    def __post_init__(self) -> None:
        missing = [name for name in PERFORMANCE_COMPONENTS if name not in self.weights]
        if missing:
            raise ValueError(f"Missing score weights: {', '.join(missing)}")
        if any(weight < 0 for weight in self.weights.values()):
            raise ValueError("Score weights must be non-negative")
        if sum(self.weights[name] for name in PERFORMANCE_COMPONENTS) <= 0:
            raise ValueError("At least one score weight must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringConfig":
        return cls(
            min_transcript_chars=settings.min_transcript_chars,
            weights={
                "communicationSkills": settings.weight_communication_skills,
                "problemSolving": settings.weight_problem_solving,
                "productKnowledge": settings.weight_product_knowledge,
                "customerService": settings.weight_customer_service,
            },
        )


# =============================================================================
# Rating and Call Quality
# =============================================================================


def rate_score(score: float) -> OverallRating:
    """
    Map an overall score to its rating.

    The score is rounded half-up to one decimal first, so 5.05 is BAD and
    5.04 is UGLY.

    Example:
        >>> rate_score(7.5)
        <OverallRating.GOOD: 'GOOD'>
        >>> rate_score(5.05)
        <OverallRating.BAD: 'BAD'>
    """
    rounded = round_half_up(score)
    if rounded >= GOOD_THRESHOLD:
        return OverallRating.GOOD
    if rounded >= BAD_THRESHOLD:
        return OverallRating.BAD
    return OverallRating.UGLY


def call_quality(call: CallRecord) -> CallQuality:
    """Connection quality from status and connected duration."""
    connected = call.status == CallStatus.CONNECTED or (
        call.status == CallStatus.UNKNOWN and call.durationSeconds > 0
    )
    if not connected:
        return CallQuality.POOR

    seconds = call.connectedDurationSeconds
    if seconds is None:
        seconds = call.durationSeconds

    if seconds >= 60:
        return CallQuality.EXCELLENT
    if seconds >= 30:
        return CallQuality.GOOD
    if seconds >= 10:
        return CallQuality.FAIR
    return CallQuality.POOR


def format_duration(seconds: int) -> str:
    """Format seconds as m:ss, e.g. 125 -> '2:05'."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{remainder:02d}"


# =============================================================================
# Component Scores
# =============================================================================


def _agent_text(split: TurnSplit, transcript: TranscriptBundle) -> str:
    if split.speakers_known:
        return split.text_of(Speaker.AGENT)
    return transcript.text


def _filler_penalty(text: str) -> float:
    return min(MAX_FILLER_PENALTY, count_fillers(text) * FILLER_PENALTY)


def _pacing_adjustment(split: TurnSplit) -> float:
    speaker = Speaker.AGENT if split.speakers_known else Speaker.UNKNOWN
    timed = [turn for turn in split.by(speaker) if turn.seconds]
    seconds = sum(turn.seconds for turn in timed)
    if not timed or seconds <= 0:
        return 0.0

    words_per_minute = sum(turn.word_count for turn in timed) / seconds * 60
    low, high = PACING_WPM_RANGE
    return PACING_ADJUSTMENT if low <= words_per_minute <= high else -PACING_ADJUSTMENT


def _talk_share_adjustment(split: TurnSplit) -> float:
    if not split.speakers_known:
        return 0.0
    agent_words = sum(turn.word_count for turn in split.by(Speaker.AGENT))
    total_words = agent_words + sum(turn.word_count for turn in split.by(Speaker.CUSTOMER))
    if total_words == 0:
        return 0.0

    share = agent_words / total_words
    low, high = TALK_SHARE_RANGE
    if low <= share <= high:
        return TALK_SHARE_ADJUSTMENT
    if share > TALK_SHARE_DOMINANT:
        return -TALK_SHARE_ADJUSTMENT
    return 0.0


def _component(base_bonus: float, adjustment: float = 0.0) -> float:
    return round_half_up(clamp(BASE_COMPONENT_SCORE + base_bonus + adjustment, 0.0, 10.0))


def agent_performance(transcript: TranscriptBundle, split: TurnSplit) -> AgentPerformance:
    text = _agent_text(split, transcript)

    communication = _component(
        count_matches(text, lexicons.PROFESSIONAL_PHRASES) * PHRASE_BONUS,
        _pacing_adjustment(split) - _filler_penalty(text),
    )
    service = _component(
        count_matches(text, lexicons.SERVICE_PHRASES) * PHRASE_BONUS,
        _talk_share_adjustment(split),
    )

    return AgentPerformance(
        communicationSkills=communication,
        problemSolving=_component(count_matches(text, lexicons.SOLUTION_PHRASES) * PHRASE_BONUS),
        productKnowledge=_component(count_matches(text, lexicons.KNOWLEDGE_PHRASES) * PHRASE_BONUS),
        customerService=service,
    )


def _agent_tone_label(politeness: float, empathy: float) -> str:
    if politeness < 4.0:
        return "Dismissive"
    if empathy >= 7.0:
        return "Empathetic"
    if politeness >= 6.0:
        return "Professional"
    return "Neutral"


def tone_quality(
    transcript: TranscriptBundle,
    split: TurnSplit,
    sentiment: SentimentAnalysis,
) -> ToneQuality:
    text = _agent_text(split, transcript)

    politeness = round_half_up(clamp(
        5.0
        + 0.5 * count_matches(text, lexicons.POLITE_PHRASES)
        - 1.5 * count_matches(text, lexicons.DISMISSIVE_PHRASES),
        0.0, 10.0,
    ))
    empathy = round_half_up(clamp(
        5.0 + 1.0 * count_matches(text, lexicons.EMPATHY_PHRASES), 0.0, 10.0
    ))

    basis = sentiment.agentSentiment or sentiment.overallCallSentiment
    positivity = round_half_up(clamp(
        5.0 + 5.0 * (basis.positive - basis.negative) / 100, 0.0, 10.0
    ))

    confidences = [word.confidence for word in transcript.words if word.confidence is not None]
    clarity_base = sum(confidences) / len(confidences) * 10 if confidences else DEFAULT_CLARITY
    clarity = round_half_up(clamp(clarity_base - _filler_penalty(text), 0.0, 10.0))

    customer_label = None
    if sentiment.customerSentiment is not None:
        customer_label = sentiment.customerSentiment.overall.value.capitalize()

    return ToneQuality(
        agent=_agent_tone_label(politeness, empathy),
        customer=customer_label,
        score=round_half_up((politeness + empathy + positivity + clarity) / 4),
        politeness=politeness,
        empathy=empathy,
        positivity=positivity,
        clarity=clarity,
    )


def overall_score(performance: AgentPerformance, weights: Dict[str, float]) -> float:
    total_weight = sum(weights[name] for name in PERFORMANCE_COMPONENTS)
    weighted = sum(getattr(performance, name) * weights[name] for name in PERFORMANCE_COMPONENTS)
    return round_half_up(weighted / total_weight)


# =============================================================================
# Narrative
# =============================================================================


def key_insights(
    transcript: TranscriptBundle,
    split: TurnSplit,
    score: float,
    conversion: BusinessConversion,
    sentiment: SentimentAnalysis,
) -> List[str]:
    insights: List[str] = []

    if score > 8:
        insights.append("Excellent call performance with strong customer engagement")
    elif score > 6:
        insights.append("Good call handling with room for improvement")
    else:
        insights.append("Call performance needs attention in key areas")

    if conversion.conversionAchieved:
        insights.append(f"Successful business outcome: {conversion.conversionType}")
    else:
        insights.append("No conversion achieved - focus on closing techniques")

    customer = sentiment.customerSentiment
    if customer is not None and customer.overall == SentimentLabel.NEGATIVE:
        insights.append("Customer expressed negative sentiment during the call")

    if len(transcript.text) > LONG_TRANSCRIPT_CHARS:
        insights.append("Comprehensive conversation with detailed discussion")

    if not split.speakers_known:
        insights.append("Speakers could not be distinguished; agent metrics use the whole transcript")

    return insights


def improvement_suggestions(performance: AgentPerformance, score: float) -> List[str]:
    suggestions: List[str] = []

    if performance.communicationSkills < SUGGESTION_THRESHOLD:
        suggestions.append("Improve communication clarity and professional language")
    if performance.problemSolving < SUGGESTION_THRESHOLD:
        suggestions.append("Enhance problem-solving approach and solution presentation")
    if performance.productKnowledge < SUGGESTION_THRESHOLD:
        suggestions.append("Strengthen product knowledge and feature explanations")
    if performance.customerService < SUGGESTION_THRESHOLD:
        suggestions.append("Focus on customer service excellence and empathy")
    if score < TRAINING_THRESHOLD:
        suggestions.append("Consider additional training in call handling best practices")

    return suggestions or ["Continue maintaining excellent call quality"]


def summarize(rating: OverallRating, conversion: BusinessConversion, quality: CallQuality) -> str:
    summary = f"Call handled with {rating.value.lower()} performance. "
    if conversion.conversionAchieved:
        summary += f"Successful conversion: {conversion.conversionType}. "
    else:
        summary += "No conversion achieved. "
    summary += f"Connection quality: {quality.value}."
    return summary


# =============================================================================
# Public API
# =============================================================================


def _usable_transcript(merged: MergedCall, config: ScoringConfig) -> TranscriptBundle:
    if merged.transcriptionStatus != TranscriptionStatus.COMPLETED or merged.transcript is None:
        raise ScoringError(
            f"Call {merged.call.id} has no completed transcript "
            f"(status: {merged.transcriptionStatus.value})"
        )
    if len(merged.transcript.text.strip()) < config.min_transcript_chars:
        raise ScoringError(
            f"Call {merged.call.id} transcript is shorter than "
            f"{config.min_transcript_chars} characters"
        )
    return merged.transcript


def score(
    merged: MergedCall,
    *,
    config: Optional[ScoringConfig] = None,
    version: int = 1,
) -> QualityAnalysis:
    """
    Produce the full quality analysis of a transcribed call.

    Args:
        merged: Call joined with its transcript; must be completed.
        config: Scorer configuration; defaults to ScoringConfig().
        version: Analysis version to stamp on the result.

    Returns:
        QualityAnalysis with every sub-score populated.

    Raises:
        ScoringError: If the call has no completed transcript or the
            transcript is too short to score.
    """
    config = config or ScoringConfig()
    transcript = _usable_transcript(merged, config)
    call = merged.call

    split = split_turns(transcript)
    sentiment = analyze_sentiment(transcript, split)
    conversion = analyze_conversion(
        transcript.text, split, call.disposition, sentiment.customerSentiment
    )
    performance = agent_performance(transcript, split)
    overall = overall_score(performance, config.weights)
    rating = rate_score(overall)
    quality = call_quality(call)

    logger.debug(f"Scored call {call.id}: {overall} ({rating.value})")

    return QualityAnalysis(
        callId=call.id,
        version=version,
        scorerVersion=SCORER_VERSION,
        kind=AnalysisKind.FULL,
        overallScore=overall,
        overallRating=rating,
        toneQuality=tone_quality(transcript, split, sentiment),
        agentPerformance=performance,
        businessConversion=conversion,
        sentimentAnalysis=sentiment,
        callQuality=quality,
        callDuration=format_duration(call.durationSeconds),
        keyInsights=key_insights(transcript, split, overall, conversion, sentiment),
        improvementSuggestions=improvement_suggestions(performance, overall),
        summary=summarize(rating, conversion, quality),
    )


def score_structural(merged: MergedCall, *, version: int = 1) -> QualityAnalysis:
    """
    Metadata-only analysis for a call without a transcript.

    Speech-derived fields and overallScore/overallRating stay None; the
    conversion comes from the provider disposition (None when unknown).

    Raises:
        ScoringError: If the call has a recording. A recorded call is scored
            from its transcript once one is completed.
    """
    call = merged.call
    if merged.transcriptionStatus != TranscriptionStatus.NOT_APPLICABLE:
        raise ScoringError(
            f"Call {call.id} has a recording and cannot be scored structurally "
            f"(status: {merged.transcriptionStatus.value})"
        )
    quality = call_quality(call)
    return QualityAnalysis(
        callId=call.id,
        version=version,
        scorerVersion=SCORER_VERSION,
        kind=AnalysisKind.STRUCTURAL,
        businessConversion=disposition_conversion(call.disposition),
        callQuality=quality,
        callDuration=format_duration(call.durationSeconds),
        keyInsights=[f"Structural analysis only: {quality.value} connection"],
    )


def rescore(
    merged: MergedCall,
    previous: QualityAnalysis,
    config: Optional[ScoringConfig] = None,
) -> QualityAnalysis:
    """
    Recompute an analysis as a new version; ``previous`` is left untouched.

    A structural analysis is upgraded to a full one once the call has a
    completed transcript; while a recording is still pending it cannot be
    rescored and ScoringError is raised.
    """
    if previous.callId != merged.call.id:
        raise ScoringError(
            f"Analysis for call {previous.callId} cannot be rescored as call {merged.call.id}"
        )
    version = previous.version + 1
    if merged.transcriptionStatus == TranscriptionStatus.COMPLETED:
        return score(merged, config=config, version=version)
    if previous.kind == AnalysisKind.STRUCTURAL:
        return score_structural(merged, version=version)
    # Full analysis requested again without a transcript
    return score(merged, config=config, version=version)
