"""
Test suite for business conversion classification.

The tests verify:
1. Weighted customer signals, stage and commitment rules
2. Confidence adjustments and clamping
3. Disposition override of the transcript classifier
4. Agent effectiveness, measured only when speakers are known
"""

from vocalytics.models import (
    CommitmentLevel,
    ConversionSource,
    ConversionStage,
    Disposition,
    SentimentLabel,
    Speaker,
    SpeakerSentiment,
    TranscriptBundle,
    UrgencyLevel,
)
from vocalytics.services import lexicons
from vocalytics.services.conversion import (
    SignalReport,
    analyze_conversion,
    conversion_confidence,
    detect_signals,
    determine_commitment,
    determine_stage,
    determine_urgency,
    disposition_conversion,
    identify_risk_factors,
)
from vocalytics.services.turns import Turn, TurnSplit, split_turns


def _report(score: int, strong: int = 0, moderate: int = 0, weak: int = 0) -> SignalReport:
    report = SignalReport()
    report.score = score
    report.strength_counts = {lexicons.STRONG: strong, lexicons.MODERATE: moderate, lexicons.WEAK: weak}
    return report


def _known(*turns: Turn) -> TurnSplit:
    return TurnSplit(turns=tuple(turns), speakers_known=True)


class TestStageAndCommitment:
    """Tests for the funnel stage and commitment rules."""

    def test_purchase(self) -> None:
        assert determine_stage(_report(20, strong=2)) == ConversionStage.PURCHASE

    def test_two_strong_but_low_score_is_evaluation(self) -> None:
        assert determine_stage(_report(15, strong=2)) == ConversionStage.EVALUATION

    def test_intent(self) -> None:
        assert determine_stage(_report(10, moderate=2)) == ConversionStage.INTENT

    def test_consideration(self) -> None:
        assert determine_stage(_report(4, weak=2)) == ConversionStage.CONSIDERATION

    def test_interest_tolerates_small_negative_score(self) -> None:
        assert determine_stage(_report(-3, weak=1)) == ConversionStage.INTEREST

    def test_awareness(self) -> None:
        assert determine_stage(_report(0)) == ConversionStage.AWARENESS

    def test_commitment_bands(self) -> None:
        assert determine_commitment(20) == CommitmentLevel.VERY_HIGH
        assert determine_commitment(10) == CommitmentLevel.HIGH
        assert determine_commitment(0) == CommitmentLevel.MEDIUM
        assert determine_commitment(-1) == CommitmentLevel.LOW

    def test_confidence_is_clamped(self) -> None:
        assert conversion_confidence(35, ConversionStage.PURCHASE, CommitmentLevel.VERY_HIGH, 1) == 100
        assert conversion_confidence(-30, ConversionStage.AWARENESS, CommitmentLevel.LOW, 2) == 0

    def test_confidence_risk_penalty(self) -> None:
        assert conversion_confidence(0, ConversionStage.AWARENESS, CommitmentLevel.MEDIUM, 2) == 40


class TestSignals:
    """Tests for signal detection over speaker turns."""

    def test_only_customer_turns_score_signals(self) -> None:
        split = _known(
            Turn(speaker=Speaker.AGENT, text='Sign me up for the newsletter?'),
            Turn(speaker=Speaker.CUSTOMER, text="Sounds good, I'll take it"),
        )
        report = detect_signals(split)
        assert report.score == 15
        assert report.positive_signals == [
            'Customer: "i\'ll take it" (Strong)',
            'Customer: "sounds good" (Moderate)',
        ]

    def test_objections_and_responses(self) -> None:
        split = _known(
            Turn(speaker=Speaker.CUSTOMER, text="That's too expensive and I'm not sure"),
            Turn(speaker=Speaker.AGENT, text='It provides real value for you'),
        )
        report = detect_signals(split)
        assert report.score == -10
        assert report.negative_signals == ['Customer: "too expensive"', 'Customer: "i\'m not sure"']
        assert report.objection_responses == 2
        assert report.value_propositions == 2

    def test_strong_objection_label(self) -> None:
        split = _known(Turn(speaker=Speaker.CUSTOMER, text='Absolutely not, stop calling me'))
        report = detect_signals(split)
        assert report.score == -20
        assert report.negative_signals[0] == 'Customer: "absolutely not" (Strong)'

    def test_unknown_speakers_scan_every_turn(self) -> None:
        split = TurnSplit(
            turns=(Turn(speaker=Speaker.UNKNOWN, text="Sign me up, can I sign you up"),),
            speakers_known=False,
        )
        report = detect_signals(split)
        assert report.score == 10
        assert report.closing_attempts == 0


class TestRisksAndUrgency:
    """Tests for risk factors, urgency and follow-up timing."""

    def test_text_risks_in_report_order(self) -> None:
        risks = identify_risk_factors('I need to check with my wife about the price', 0, None)
        assert risks == [lexicons.PRICE_RISK, lexicons.DECISION_MAKER_RISK]

    def test_negative_customer_and_multiple_objections(self) -> None:
        negative = SpeakerSentiment(
            positive=0, negative=100, neutral=0, overall=SentimentLabel.NEGATIVE, confidence=95
        )
        risks = identify_risk_factors('hello', 3, negative)
        assert risks == [lexicons.NEGATIVE_SENTIMENT_RISK, lexicons.MULTIPLE_OBJECTIONS_RISK]

    def test_urgency_phrases(self) -> None:
        assert determine_urgency(
            'I need it as soon as possible', ConversionStage.AWARENESS, CommitmentLevel.LOW
        ) == (UrgencyLevel.VERY_HIGH, 'Within 24 hours')
        assert determine_urgency(
            'Maybe this week', ConversionStage.AWARENESS, CommitmentLevel.LOW
        ) == (UrgencyLevel.HIGH, 'Within 2-3 days')

    def test_urgency_from_funnel(self) -> None:
        assert determine_urgency(
            'hello', ConversionStage.INTENT, CommitmentLevel.HIGH
        ) == (UrgencyLevel.MEDIUM, 'Within 2 weeks')
        assert determine_urgency(
            'hello', ConversionStage.AWARENESS, CommitmentLevel.MEDIUM
        ) == (UrgencyLevel.LOW, 'Within 1 month')


class TestAnalyzeConversion:
    """Tests for the full conversion analysis."""

    def test_diarized_purchase(self, diarized_transcript) -> None:
        split = split_turns(diarized_transcript)
        result = analyze_conversion(diarized_transcript.text, split)
        assert result.conversionStage == ConversionStage.PURCHASE
        assert result.commitmentLevel == CommitmentLevel.VERY_HIGH
        assert result.conversionAchieved is True
        assert result.conversionConfidence == 100
        assert result.conversionType == 'Upgrade'
        assert result.riskFactors == [lexicons.PRICE_RISK]
        assert result.urgency == UrgencyLevel.VERY_HIGH
        assert result.nextBestAction == lexicons.NEXT_BEST_ACTIONS['close']
        assert result.source == ConversionSource.TRANSCRIPT
        assert len(result.positiveSignals) == 5
        assert result.positiveSignals[0] == 'Customer: "i\'m interested" (Moderate)'

    def test_agent_effectiveness(self, diarized_transcript) -> None:
        split = split_turns(diarized_transcript)
        effectiveness = analyze_conversion(diarized_transcript.text, split).agentEffectiveness
        assert effectiveness.closingAttempts == 0
        assert effectiveness.objectionHandling == 5
        assert effectiveness.valueProposition == 1
        assert effectiveness.urgencyCreation == 0

    def test_unknown_speakers_have_no_effectiveness(self, simple_transcript) -> None:
        result = analyze_conversion(simple_transcript.text, split_turns(simple_transcript))
        assert result.agentEffectiveness is None
        assert result.conversionStage == ConversionStage.AWARENESS
        assert result.conversionConfidence == 50
        assert result.conversionAchieved is False
        assert result.conversionType == lexicons.DEFAULT_CONVERSION_TYPE
        assert result.nextBestAction == lexicons.NEXT_BEST_ACTIONS['nurture']

    def test_converted_disposition_overrides(self, simple_transcript) -> None:
        result = analyze_conversion(
            simple_transcript.text, split_turns(simple_transcript), Disposition.CONVERTED
        )
        assert result.conversionAchieved is True
        assert result.conversionConfidence == 90
        assert result.source == ConversionSource.DISPOSITION

    def test_not_converted_disposition_caps_confidence(self, diarized_transcript) -> None:
        result = analyze_conversion(
            diarized_transcript.text, split_turns(diarized_transcript), Disposition.NOT_CONVERTED
        )
        assert result.conversionAchieved is False
        assert result.conversionConfidence == 40
        assert result.conversionStage == ConversionStage.PURCHASE

    def test_signals_capped_at_five(self) -> None:
        text = (
            "Customer: I'll take it. Sign me up. Let's proceed. I want to buy. "
            "Where do I sign. How do I pay."
        )
        bundle = TranscriptBundle(callId='c1', text=text)
        result = analyze_conversion(text, split_turns(bundle))
        assert len(result.positiveSignals) == 5


class TestDispositionConversion:
    """Tests for the structural, disposition-only conversion."""

    def test_unknown_is_none(self) -> None:
        assert disposition_conversion(Disposition.UNKNOWN) is None

    def test_known_disposition(self) -> None:
        converted = disposition_conversion(Disposition.CONVERTED)
        assert converted.conversionAchieved is True
        assert converted.conversionConfidence == 100
        assert converted.source == ConversionSource.DISPOSITION
        assert disposition_conversion(Disposition.NOT_CONVERTED).conversionAchieved is False
