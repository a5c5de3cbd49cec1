"""
Test suite for sentiment analysis.

Covers the distribution-to-label rules, provider segment attribution,
keyword fallback, the per-turn timeline and the emotional journey.
"""

from vocalytics.models import SentimentLabel, Speaker, TranscriptBundle
from vocalytics.services.sentiment import (
    NEUTRAL_DEFAULT,
    analyze_sentiment,
    combine,
    build_timeline,
    emotional_journey,
    sentiment_from_counts,
)
from vocalytics.services.transcripts import build_transcript_bundle
from vocalytics.services.turns import Turn, split_turns


class TestSentimentFromCounts:
    """Tests for turning label counts into a SpeakerSentiment."""

    def test_no_counts_is_neutral_default(self) -> None:
        assert sentiment_from_counts(0, 0, 0) == NEUTRAL_DEFAULT

    def test_positive_lead(self) -> None:
        result = sentiment_from_counts(3, 1, 0)
        assert (result.positive, result.negative, result.neutral) == (75, 25, 0)
        assert result.overall == SentimentLabel.POSITIVE
        assert result.confidence == 95

    def test_small_negative_lead(self) -> None:
        result = sentiment_from_counts(2, 3, 2)
        assert (result.positive, result.negative, result.neutral) == (29, 43, 28)
        assert result.overall == SentimentLabel.NEGATIVE
        assert result.confidence == 88

    def test_tie_is_neutral(self) -> None:
        result = sentiment_from_counts(1, 1, 0)
        assert result.overall == SentimentLabel.NEUTRAL
        assert result.confidence == 50

    def test_shares_sum_to_one_hundred(self) -> None:
        result = sentiment_from_counts(1, 1, 1)
        assert result.positive + result.negative + result.neutral == 100

    def test_combine_averages(self) -> None:
        agent = sentiment_from_counts(1, 0, 0)
        customer = sentiment_from_counts(0, 1, 0)
        result = combine(agent, customer)
        assert (result.positive, result.negative, result.neutral) == (50, 50, 0)
        assert result.overall == SentimentLabel.NEUTRAL


class TestAnalyzeSentiment:
    """Tests for transcript-level sentiment."""

    def test_provider_segments_attributed_to_speakers(self, deepgram_response) -> None:
        bundle = build_transcript_bundle('c1', deepgram_response)
        result = analyze_sentiment(bundle, split_turns(bundle))
        assert result.source == 'provider'
        assert result.agentSentiment.overall == SentimentLabel.POSITIVE
        assert result.agentSentiment.positive == 100
        assert result.agentSentiment.confidence == 95
        assert result.customerSentiment.overall == SentimentLabel.NEGATIVE
        overall = result.overallCallSentiment
        assert (overall.positive, overall.negative, overall.neutral) == (50, 50, 0)
        assert overall.overall == SentimentLabel.NEUTRAL
        assert overall.confidence == 50

    def test_keywords_without_speakers(self, simple_transcript) -> None:
        result = analyze_sentiment(simple_transcript, split_turns(simple_transcript))
        assert result.source == 'keywords'
        assert result.agentSentiment is None
        assert result.customerSentiment is None
        assert result.overallCallSentiment.overall == SentimentLabel.POSITIVE
        assert result.keyPhrases.positive == ['thank']

    def test_keywords_per_speaker(self, diarized_transcript) -> None:
        result = analyze_sentiment(diarized_transcript, split_turns(diarized_transcript))
        assert result.agentSentiment.overall == SentimentLabel.POSITIVE
        assert result.customerSentiment == NEUTRAL_DEFAULT
        assert len(result.sentimentTimeline) == 4
        assert result.sentimentTimeline[1].speaker == Speaker.CUSTOMER
        assert result.sentimentTimeline[0].timestamp == 0.0

    def test_empty_transcript_is_neutral(self) -> None:
        bundle = TranscriptBundle(callId='c1', text='')
        result = analyze_sentiment(bundle, split_turns(bundle))
        assert result.overallCallSentiment == NEUTRAL_DEFAULT
        assert result.sentimentTimeline == []
        assert result.emotionalJourney.sentimentShifts == 0


class TestTimeline:
    """Tests for the per-turn timeline and emotional journey."""

    def test_turn_labels_and_confidence(self) -> None:
        timeline = build_timeline([
            Turn(speaker=Speaker.CUSTOMER, text='I am upset and frustrated'),
            Turn(speaker=Speaker.AGENT, text='I understand'),
            Turn(speaker=Speaker.CUSTOMER, text='Thanks, that was helpful'),
        ])
        assert [entry.sentiment for entry in timeline] == [
            SentimentLabel.NEGATIVE, SentimentLabel.NEUTRAL, SentimentLabel.POSITIVE,
        ]
        assert timeline[0].confidence == 80
        assert timeline[1].confidence == 50

    def test_journey_counts_shifts(self) -> None:
        timeline = build_timeline([
            Turn(speaker=Speaker.CUSTOMER, text='This is a problem'),
            Turn(speaker=Speaker.CUSTOMER, text='Still a problem'),
            Turn(speaker=Speaker.CUSTOMER, text='Great, thanks'),
        ])
        journey = emotional_journey(timeline)
        assert journey.startSentiment == SentimentLabel.NEGATIVE
        assert journey.endSentiment == SentimentLabel.POSITIVE
        assert journey.sentimentShifts == 1
        assert journey.dominantEmotion == SentimentLabel.NEGATIVE
