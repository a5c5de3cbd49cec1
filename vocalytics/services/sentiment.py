"""
Sentiment Analysis Service

Computes speaker, call-level and per-turn sentiment for a transcript.

Distribution Source:
- When the transcript carries provider sentiment segments, the distribution of
  segment labels is used (segments are attributed to speakers by the turn
  they start in).
- Otherwise the distribution of positive/negative/neutral keyword hits is used.

Either way the distribution is turned into a SpeakerSentiment with:
    positive/negative = round(share * 100), neutral = remainder
    Positive/Negative label: confidence = min(95, 60 + 2 * lead over the next label)
    Neutral label:           confidence = min(95, 50 + |positive - negative|)
    nothing counted:         33/33/34 neutral, confidence 50

The timeline is always keyword-based per turn: a turn is positive or negative
when its hits lean that way (confidence 60 + 10 per hit, capped at 95),
otherwise neutral with confidence 50.
"""

import logging
from typing import Dict, List, Sequence

from vocalytics.models import (
    EmotionalJourney,
    KeyPhrases,
    SentimentAnalysis,
    SentimentLabel,
    SentimentSegment,
    SentimentTimelineEntry,
    Speaker,
    SpeakerSentiment,
    TranscriptBundle,
)
from vocalytics.services.lexicons import (
    NEGATIVE_KEYWORDS,
    NEUTRAL_KEYWORDS,
    POSITIVE_KEYWORDS,
    count_matches,
    matched_phrases,
)
from vocalytics.services.turns import Turn, TurnSplit

# Configure module logger
logger = logging.getLogger(__name__)

NEUTRAL_DEFAULT = SpeakerSentiment(
    positive=33, negative=33, neutral=34, overall=SentimentLabel.NEUTRAL, confidence=50
)


# =============================================================================
# Distribution Helpers
# =============================================================================


def sentiment_from_counts(positive_count: int, negative_count: int, neutral_count: int) -> SpeakerSentiment:
    """
    Turn label counts into a SpeakerSentiment.

    Example:
        >>> sentiment_from_counts(3, 1, 0).overall
        <SentimentLabel.POSITIVE: 'positive'>
    """
    total = positive_count + negative_count + neutral_count
    if total == 0:
        return NEUTRAL_DEFAULT

    positive = round(positive_count / total * 100)
    negative = round(negative_count / total * 100)
    neutral = 100 - positive - negative

    if positive > negative and positive > neutral:
        overall = SentimentLabel.POSITIVE
        confidence = min(95, 60 + (positive - max(negative, neutral)) * 2)
    elif negative > positive and negative > neutral:
        overall = SentimentLabel.NEGATIVE
        confidence = min(95, 60 + (negative - max(positive, neutral)) * 2)
    else:
        overall = SentimentLabel.NEUTRAL
        confidence = min(95, 50 + abs(positive - negative))

    return SpeakerSentiment(
        positive=positive,
        negative=negative,
        neutral=neutral,
        overall=overall,
        confidence=round(confidence),
    )


def keyword_sentiment(text: str) -> SpeakerSentiment:
    return sentiment_from_counts(
        count_matches(text, POSITIVE_KEYWORDS),
        count_matches(text, NEGATIVE_KEYWORDS),
        count_matches(text, NEUTRAL_KEYWORDS),
    )


def segment_sentiment(segments: Sequence[SentimentSegment]) -> SpeakerSentiment:
    counts = {label: 0 for label in SentimentLabel}
    for segment in segments:
        counts[segment.sentiment] += 1
    return sentiment_from_counts(
        counts[SentimentLabel.POSITIVE],
        counts[SentimentLabel.NEGATIVE],
        counts[SentimentLabel.NEUTRAL],
    )


def combine(agent: SpeakerSentiment, customer: SpeakerSentiment) -> SpeakerSentiment:
    """Average two speaker sentiments into a call sentiment."""
    positive = round((agent.positive + customer.positive) / 2)
    negative = round((agent.negative + customer.negative) / 2)
    neutral = 100 - positive - negative

    if positive > negative and positive > neutral:
        overall = SentimentLabel.POSITIVE
    elif negative > positive and negative > neutral:
        overall = SentimentLabel.NEGATIVE
    else:
        overall = SentimentLabel.NEUTRAL

    return SpeakerSentiment(
        positive=positive,
        negative=negative,
        neutral=neutral,
        overall=overall,
        confidence=round((agent.confidence + customer.confidence) / 2),
    )


def _segment_speaker(segment: SentimentSegment, turns: Sequence[Turn]) -> Speaker:
    if segment.start is None:
        return Speaker.UNKNOWN
    for turn in turns:
        if turn.start is None or turn.end is None:
            continue
        if turn.start <= segment.start <= turn.end:
            return turn.speaker
    return Speaker.UNKNOWN


# =============================================================================
# Timeline
# =============================================================================


def build_timeline(turns: Sequence[Turn]) -> List[SentimentTimelineEntry]:
    timeline: List[SentimentTimelineEntry] = []
    for index, turn in enumerate(turns):
        positive_count = count_matches(turn.text, POSITIVE_KEYWORDS)
        negative_count = count_matches(turn.text, NEGATIVE_KEYWORDS)

        if positive_count > negative_count:
            label, confidence = SentimentLabel.POSITIVE, min(95, 60 + positive_count * 10)
        elif negative_count > positive_count:
            label, confidence = SentimentLabel.NEGATIVE, min(95, 60 + negative_count * 10)
        else:
            label, confidence = SentimentLabel.NEUTRAL, 50

        timeline.append(SentimentTimelineEntry(
            index=index,
            timestamp=turn.start,
            speaker=turn.speaker,
            sentiment=label,
            confidence=confidence,
            text=turn.text,
        ))
    return timeline


def emotional_journey(timeline: Sequence[SentimentTimelineEntry]) -> EmotionalJourney:
    """
    Summarize how sentiment moved across the call.

    The dominant emotion is the most frequent label; ties go to the label
    that appeared first.
    """
    if not timeline:
        return EmotionalJourney(
            startSentiment=SentimentLabel.NEUTRAL,
            endSentiment=SentimentLabel.NEUTRAL,
            sentimentShifts=0,
            dominantEmotion=SentimentLabel.NEUTRAL,
        )

    shifts = sum(
        1 for previous, current in zip(timeline, timeline[1:])
        if previous.sentiment != current.sentiment
    )

    counts: Dict[SentimentLabel, int] = {}
    for entry in timeline:
        counts[entry.sentiment] = counts.get(entry.sentiment, 0) + 1
    dominant = max(counts, key=counts.get)

    return EmotionalJourney(
        startSentiment=timeline[0].sentiment,
        endSentiment=timeline[-1].sentiment,
        sentimentShifts=shifts,
        dominantEmotion=dominant,
    )


# =============================================================================
# Public API
# =============================================================================


def analyze_sentiment(transcript: TranscriptBundle, split: TurnSplit) -> SentimentAnalysis:
    """
    Analyze sentiment of a transcript.

    Args:
        transcript: The call transcript.
        split: Speaker turns resolved for the same transcript.

    Returns:
        SentimentAnalysis. agentSentiment/customerSentiment are None when the
        speakers could not be told apart or a side never spoke.
    """
    agent_turns = split.by(Speaker.AGENT)
    customer_turns = split.by(Speaker.CUSTOMER)
    per_speaker = split.speakers_known and bool(agent_turns) and bool(customer_turns)

    segments = list(transcript.sentimentSegments)
    if segments:
        source = "provider"
        overall = segment_sentiment(segments)
        agent_sentiment = customer_sentiment = None
        if per_speaker:
            by_speaker: Dict[Speaker, List[SentimentSegment]] = {s: [] for s in Speaker}
            for segment in segments:
                by_speaker[_segment_speaker(segment, split.turns)].append(segment)
            if by_speaker[Speaker.AGENT] and by_speaker[Speaker.CUSTOMER]:
                agent_sentiment = segment_sentiment(by_speaker[Speaker.AGENT])
                customer_sentiment = segment_sentiment(by_speaker[Speaker.CUSTOMER])
    else:
        source = "keywords"
        agent_sentiment = customer_sentiment = None
        if per_speaker:
            agent_sentiment = keyword_sentiment(split.text_of(Speaker.AGENT))
            customer_sentiment = keyword_sentiment(split.text_of(Speaker.CUSTOMER))
            overall = combine(agent_sentiment, customer_sentiment)
        else:
            overall = keyword_sentiment(transcript.text)

    timeline = build_timeline(split.turns)

    return SentimentAnalysis(
        agentSentiment=agent_sentiment,
        customerSentiment=customer_sentiment,
        overallCallSentiment=overall,
        sentimentTimeline=timeline,
        emotionalJourney=emotional_journey(timeline),
        keyPhrases=KeyPhrases(
            positive=matched_phrases(transcript.text, POSITIVE_KEYWORDS),
            negative=matched_phrases(transcript.text, NEGATIVE_KEYWORDS),
            neutral=matched_phrases(transcript.text, NEUTRAL_KEYWORDS),
        ),
        source=source,
    )
