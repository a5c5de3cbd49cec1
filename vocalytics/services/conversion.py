"""
Business Conversion Service

Classifies whether a call produced a business outcome from weighted customer
signals, and measures the agent's selling behaviour.

Customer signal weights:
    strong positive +10, moderate positive +5, weak positive +2,
    objection -5, strong objection -10

Stage (first rule that holds):
    purchase      >= 2 strong positives and score > 15
    evaluation    (>= 1 strong or >= 3 moderate) and score > 10
    intent        (>= 2 moderate or >= 1 strong) and score > 5
    consideration (>= 2 weak or >= 1 moderate) and score > 0
    interest      >= 1 weak and score >= -5
    awareness     otherwise

Commitment: score >= 20 very_high, >= 10 high, >= 0 medium, else low.

Confidence = clamp(50 + 2 * score + stage adjustment + commitment adjustment
- 5 per risk factor, 0, 100).

A known provider disposition is authoritative: converted forces the outcome
with confidence >= 90, not_converted forces no outcome with confidence <= 40.
"""

import logging
from typing import Dict, List, Optional, Tuple

from vocalytics.models import (
    AgentEffectiveness,
    BusinessConversion,
    CommitmentLevel,
    ConversionSource,
    ConversionStage,
    Disposition,
    SentimentLabel,
    Speaker,
    SpeakerSentiment,
    UrgencyLevel,
)
from vocalytics.services import lexicons
from vocalytics.services.lexicons import contains, count_matches, matched_phrases
from vocalytics.services.numeric import clamp, round_half_up_int
from vocalytics.services.turns import TurnSplit

# Configure module logger
logger = logging.getLogger(__name__)

STAGE_ADJUSTMENT: Dict[ConversionStage, int] = {
    ConversionStage.AWARENESS: 0,
    ConversionStage.INTEREST: 10,
    ConversionStage.CONSIDERATION: 20,
    ConversionStage.INTENT: 30,
    ConversionStage.EVALUATION: 40,
    ConversionStage.PURCHASE: 50,
}

COMMITMENT_ADJUSTMENT: Dict[CommitmentLevel, int] = {
    CommitmentLevel.LOW: -10,
    CommitmentLevel.MEDIUM: 0,
    CommitmentLevel.HIGH: 10,
    CommitmentLevel.VERY_HIGH: 20,
}

MAX_REPORTED_SIGNALS: int = 5

DISPOSITION_CONVERTED_MIN_CONFIDENCE: int = 90
DISPOSITION_NOT_CONVERTED_MAX_CONFIDENCE: int = 40


# =============================================================================
# Signal Detection
# =============================================================================


class SignalReport:
    """Accumulated customer signals and agent behaviour for one transcript."""

    def __init__(self) -> None:
        self.score = 0
        self.positive_signals: List[str] = []
        self.negative_signals: List[str] = []
        self.strength_counts: Dict[str, int] = {
            lexicons.STRONG: 0, lexicons.MODERATE: 0, lexicons.WEAK: 0,
        }
        self.objection_turns: List[int] = []
        self.objection_responses = 0
        self.closing_attempts = 0
        self.value_propositions = 0
        self.urgency_creations = 0


def detect_signals(split: TurnSplit) -> SignalReport:
    """
    Scan turns for customer signals and agent selling behaviour.

    When speakers are unknown every turn is scanned for customer signals and
    agent behaviour is not measured.
    """
    report = SignalReport()
    customer_roles = (Speaker.CUSTOMER,) if split.speakers_known else (Speaker.UNKNOWN,)

    for index, turn in enumerate(split.turns):
        if turn.speaker in customer_roles:
            for label, weight, phrases in lexicons.POSITIVE_SIGNAL_GROUPS:
                for phrase in matched_phrases(turn.text, phrases):
                    report.score += weight
                    report.positive_signals.append(f'Customer: "{phrase}" ({label})')
                    report.strength_counts[label] += 1
            for label, weight, phrases in lexicons.NEGATIVE_SIGNAL_GROUPS:
                for phrase in matched_phrases(turn.text, phrases):
                    report.score += weight
                    suffix = f" ({label})" if label else ""
                    report.negative_signals.append(f'Customer: "{phrase}"{suffix}')
                    report.objection_turns.append(index)

        elif split.speakers_known and turn.speaker == Speaker.AGENT:
            report.closing_attempts += count_matches(turn.text, lexicons.AGENT_CLOSING_PHRASES)
            report.value_propositions += count_matches(turn.text, lexicons.VALUE_PROPOSITION_PHRASES)
            report.urgency_creations += count_matches(turn.text, lexicons.URGENCY_CREATION_PHRASES)
            report.objection_responses += report.objection_turns.count(index - 1)

    return report


def agent_effectiveness(report: SignalReport) -> AgentEffectiveness:
    objections = len(report.objection_turns)
    if objections:
        handling = min(10, round_half_up_int(report.objection_responses / objections * 10))
    else:
        handling = 5

    return AgentEffectiveness(
        closingAttempts=min(10, report.closing_attempts),
        objectionHandling=handling,
        valueProposition=min(10, round_half_up_int(report.value_propositions / 2)),
        urgencyCreation=min(10, round_half_up_int(report.urgency_creations / 1.5)),
    )


# =============================================================================
# Classification Rules
# =============================================================================


def determine_stage(report: SignalReport) -> ConversionStage:
    strong = report.strength_counts[lexicons.STRONG]
    moderate = report.strength_counts[lexicons.MODERATE]
    weak = report.strength_counts[lexicons.WEAK]
    score = report.score

    if strong >= 2 and score > 15:
        return ConversionStage.PURCHASE
    if (strong >= 1 or moderate >= 3) and score > 10:
        return ConversionStage.EVALUATION
    if (moderate >= 2 or strong >= 1) and score > 5:
        return ConversionStage.INTENT
    if (weak >= 2 or moderate >= 1) and score > 0:
        return ConversionStage.CONSIDERATION
    if weak >= 1 and score >= -5:
        return ConversionStage.INTEREST
    return ConversionStage.AWARENESS


def determine_commitment(score: int) -> CommitmentLevel:
    if score >= 20:
        return CommitmentLevel.VERY_HIGH
    if score >= 10:
        return CommitmentLevel.HIGH
    if score >= 0:
        return CommitmentLevel.MEDIUM
    return CommitmentLevel.LOW


def identify_risk_factors(
    text: str,
    negative_signal_count: int,
    customer_sentiment: Optional[SpeakerSentiment],
) -> List[str]:
    lowered = text.lower()
    risks = [
        risk for risk, cues in lexicons.TEXT_RISK_CUES
        if any(contains(lowered, cue) for cue in cues)
    ]
    if customer_sentiment is not None and customer_sentiment.overall == SentimentLabel.NEGATIVE:
        risks.append(lexicons.NEGATIVE_SENTIMENT_RISK)
    if negative_signal_count >= 3:
        risks.append(lexicons.MULTIPLE_OBJECTIONS_RISK)
    return risks


def conversion_confidence(
    score: int,
    stage: ConversionStage,
    commitment: CommitmentLevel,
    risk_count: int,
) -> int:
    confidence = 50 + score * 2 + STAGE_ADJUSTMENT[stage] + COMMITMENT_ADJUSTMENT[commitment]
    confidence -= risk_count * 5
    return int(clamp(confidence, 0, 100))


def determine_conversion_type(text: str) -> str:
    lowered = text.lower()
    for conversion_type, cues in lexicons.CONVERSION_TYPE_CUES:
        if any(contains(lowered, cue) for cue in cues):
            return conversion_type
    return lexicons.DEFAULT_CONVERSION_TYPE


def determine_urgency(
    text: str,
    stage: ConversionStage,
    commitment: CommitmentLevel,
) -> Tuple[UrgencyLevel, str]:
    """Urgency level and recommended follow-up timing."""
    lowered = text.lower()
    if any(contains(lowered, phrase) for phrase in lexicons.HIGH_URGENCY_PHRASES):
        return UrgencyLevel.VERY_HIGH, "Within 24 hours"
    if any(contains(lowered, phrase) for phrase in lexicons.MEDIUM_URGENCY_PHRASES):
        return UrgencyLevel.HIGH, "Within 2-3 days"
    if stage == ConversionStage.PURCHASE or commitment == CommitmentLevel.VERY_HIGH:
        return UrgencyLevel.HIGH, "Within 1 week"
    if stage in (ConversionStage.EVALUATION, ConversionStage.INTENT) and commitment in (
        CommitmentLevel.HIGH, CommitmentLevel.MEDIUM,
    ):
        return UrgencyLevel.MEDIUM, "Within 2 weeks"
    return UrgencyLevel.LOW, "Within 1 month"


def next_best_action(stage: ConversionStage, commitment: CommitmentLevel, risks: List[str]) -> str:
    actions = lexicons.NEXT_BEST_ACTIONS
    if stage == ConversionStage.PURCHASE and commitment == CommitmentLevel.VERY_HIGH:
        return actions["close"]
    if stage in (ConversionStage.EVALUATION, ConversionStage.INTENT):
        if lexicons.PRICE_RISK in risks:
            return actions["price"]
        if lexicons.DECISION_MAKER_RISK in risks:
            return actions["decision_maker"]
        return actions["proposal"]
    if stage == ConversionStage.CONSIDERATION:
        return actions["consideration"]
    if stage == ConversionStage.INTEREST:
        return actions["interest"]
    return actions["nurture"]


# =============================================================================
# Public API
# =============================================================================


def analyze_conversion(
    text: str,
    split: TurnSplit,
    disposition: Disposition = Disposition.UNKNOWN,
    customer_sentiment: Optional[SpeakerSentiment] = None,
) -> BusinessConversion:
    """
    Classify the business outcome of a transcribed call.

    Args:
        text: Full transcript text.
        split: Speaker turns of the transcript.
        disposition: Provider-reported outcome; authoritative when known.
        customer_sentiment: Customer sentiment, when speakers are known.

    Returns:
        BusinessConversion with stage, commitment, signals (top 5 each),
        agent effectiveness (None when speakers are unknown), risk factors
        and the recommended next action.
    """
    report = detect_signals(split)
    stage = determine_stage(report)
    commitment = determine_commitment(report.score)
    risks = identify_risk_factors(text, len(report.negative_signals), customer_sentiment)
    confidence = conversion_confidence(report.score, stage, commitment, len(risks))
    urgency, follow_up = determine_urgency(text, stage, commitment)

    achieved = stage == ConversionStage.PURCHASE or (
        confidence >= 75 and commitment == CommitmentLevel.VERY_HIGH
    )
    source = ConversionSource.TRANSCRIPT

    if disposition == Disposition.CONVERTED:
        achieved = True
        confidence = max(confidence, DISPOSITION_CONVERTED_MIN_CONFIDENCE)
        source = ConversionSource.DISPOSITION
    elif disposition == Disposition.NOT_CONVERTED:
        achieved = False
        confidence = min(confidence, DISPOSITION_NOT_CONVERTED_MAX_CONFIDENCE)
        source = ConversionSource.DISPOSITION

    return BusinessConversion(
        conversionAchieved=achieved,
        conversionConfidence=confidence,
        conversionType=determine_conversion_type(text),
        conversionStage=stage,
        commitmentLevel=commitment,
        urgency=urgency,
        followUpTiming=follow_up,
        positiveSignals=report.positive_signals[:MAX_REPORTED_SIGNALS],
        negativeSignals=report.negative_signals[:MAX_REPORTED_SIGNALS],
        agentEffectiveness=agent_effectiveness(report) if split.speakers_known else None,
        riskFactors=risks,
        nextBestAction=next_best_action(stage, commitment, risks),
        source=source,
    )


def disposition_conversion(disposition: Disposition) -> Optional[BusinessConversion]:
    """
    Conversion derived from the provider disposition alone (structural path).

    Returns None when the disposition is unknown.
    """
    if disposition == Disposition.UNKNOWN:
        return None
    return BusinessConversion(
        conversionAchieved=disposition == Disposition.CONVERTED,
        conversionConfidence=100,
        source=ConversionSource.DISPOSITION,
    )
