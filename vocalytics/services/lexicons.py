"""
Phrase and keyword lexicons used by the quality scorer.

Every list here is matched case-insensitively against transcript text with a
left word boundary (see ``contains``), so "thank" matches "thanks" but "now"
does not match "know". Each phrase counts at most once per text.

Groups:
- Agent performance phrases (one list per performance component)
- Tone phrases (politeness, dismissiveness, empathy) and filler words
- Sentiment keywords (positive / negative / neutral)
- Conversion signals (weighted customer signals, agent selling behaviour)
- Risk factor, conversion type and urgency cues
"""

import re
from functools import lru_cache
from typing import Dict, Iterable, List, Pattern, Tuple


# =============================================================================
# Matching Helpers
# =============================================================================


@lru_cache(maxsize=1024)
def _pattern(phrase: str) -> Pattern[str]:
    return re.compile(r'(?<!\w)' + re.escape(phrase.lower()))


def contains(text: str, phrase: str) -> bool:
    """Whether ``phrase`` occurs in lowercase ``text`` starting at a word boundary."""
    return _pattern(phrase).search(text) is not None


def matched_phrases(text: str, phrases: Iterable[str]) -> List[str]:
    """Phrases from ``phrases`` found in ``text``, in lexicon order, each once."""
    lowered = text.lower()
    return [phrase for phrase in phrases if contains(lowered, phrase)]


def count_matches(text: str, phrases: Iterable[str]) -> int:
    return len(matched_phrases(text, phrases))


# =============================================================================
# Agent Performance
# =============================================================================

PROFESSIONAL_PHRASES: Tuple[str, ...] = (
    "thank you", "please", "certainly", "absolutely", "i understand",
)

SOLUTION_PHRASES: Tuple[str, ...] = (
    "let me help", "i can resolve", "solution", "fix this",
)

KNOWLEDGE_PHRASES: Tuple[str, ...] = (
    "this feature", "our product", "designed to", "works by",
)

SERVICE_PHRASES: Tuple[str, ...] = (
    "how can i help", "is there anything else", "valued customer",
)

# Openers that identify the agent among diarized speakers
AGENT_IDENTIFICATION_PHRASES: Tuple[str, ...] = (
    "thank you for calling", "how can i help", "how may i help", "how can i assist",
    "my name is", "you've reached", "you have reached", "is there anything else",
    "speaking with", "valued customer",
)


# =============================================================================
# Tone
# =============================================================================

POLITE_PHRASES: Tuple[str, ...] = (
    "please", "thank you", "thanks", "you're welcome", "my pleasure",
    "certainly", "absolutely", "of course", "happy to help", "i appreciate",
)

DISMISSIVE_PHRASES: Tuple[str, ...] = (
    "calm down", "not my problem", "not my job", "i already told you",
    "whatever", "nothing i can do", "listen to me", "you have to understand",
)

EMPATHY_PHRASES: Tuple[str, ...] = (
    "i understand", "i'm sorry", "i am sorry", "i apologize", "sorry to hear",
    "that must be", "i can imagine", "i hear you", "that sounds frustrating",
)

FILLER_WORD_PATTERN: Pattern[str] = re.compile(r'(?<!\w)(?:um+|uh+|erm+|hmm+|uh-huh)(?!\w)')


def count_fillers(text: str) -> int:
    """Number of filler-word occurrences (every occurrence counts)."""
    return len(FILLER_WORD_PATTERN.findall(text.lower()))


# =============================================================================
# Sentiment Keywords
# =============================================================================

POSITIVE_KEYWORDS: Tuple[str, ...] = (
    "thank", "thanks", "appreciate", "excellent", "great", "wonderful", "perfect",
    "amazing", "fantastic", "helpful", "pleased", "satisfied", "happy", "love",
    "awesome", "brilliant", "outstanding", "superb", "marvelous", "delighted",
)

NEGATIVE_KEYWORDS: Tuple[str, ...] = (
    "frustrated", "angry", "upset", "disappointed", "terrible", "awful", "horrible",
    "hate", "disgusted", "furious", "annoyed", "irritated", "mad", "outraged",
    "dissatisfied", "unhappy", "complaint", "problem", "issue", "trouble",
)

NEUTRAL_KEYWORDS: Tuple[str, ...] = (
    "okay", "fine", "alright", "understand", "see", "know", "think", "maybe",
    "perhaps", "possibly", "probably", "might", "could", "would", "should",
)


# =============================================================================
# Conversion Signals
# =============================================================================

STRONG = "Strong"
MODERATE = "Moderate"
WEAK = "Weak"

# Customer signals: (strength label, weight, phrases)
POSITIVE_SIGNAL_GROUPS: Tuple[Tuple[str, int, Tuple[str, ...]], ...] = (
    (STRONG, 10, (
        "i'll take it", "sign me up", "let's proceed", "i want to buy",
        "i'd like to purchase", "when can we start", "i'm ready to move forward",
        "let's do this", "i'm sold", "where do i sign", "how do i pay",
        "can i pay now", "i'll go with", "i've decided to", "i'm convinced",
    )),
    (MODERATE, 5, (
        "i'm interested", "sounds good", "that makes sense", "i like that",
        "tell me more about", "how much does it cost", "what are the next steps",
        "can you explain", "that's interesting", "i see the value",
        "that would help me", "i need something like that",
        "that's what i'm looking for", "how soon can i get it", "what options do you have",
    )),
    (WEAK, 2, (
        "maybe", "possibly", "i might be interested", "i'll think about it",
        "send me information", "i'll consider it", "not right now but",
        "in the future", "that could work", "i see how that could help",
        "that's not bad", "interesting point", "good to know", "i appreciate that",
        "that's helpful",
    )),
)

NEGATIVE_SIGNAL_GROUPS: Tuple[Tuple[str, int, Tuple[str, ...]], ...] = (
    ("", -5, (
        "too expensive", "not interested", "not right now", "i need to think about it",
        "i'll get back to you", "i'm just looking", "i'm not ready", "i need to discuss with",
        "i'm comparing options", "i have concerns about", "that's not what i need",
        "i don't see the value", "i'm not convinced", "i don't have the budget", "i'm not sure",
    )),
    (STRONG, -10, (
        "definitely not", "absolutely not", "no way", "not a chance",
        "i'm not interested at all", "that's way too expensive", "i've decided against it",
        "i'm going with a competitor", "i don't want it", "i hate it", "that's terrible",
        "that won't work for me", "i'm not buying", "stop calling me", "remove me from your list",
    )),
)

AGENT_CLOSING_PHRASES: Tuple[str, ...] = (
    "would you like to proceed", "shall we get started", "are you ready to move forward",
    "can i sign you up", "would you like to purchase", "should we process your order",
    "can i help you complete your purchase", "are you interested in buying",
    "would you like to go ahead with", "shall we finalize",
    "would you like me to set that up for you", "can we move forward with",
    "would you like to take advantage of", "are you ready to get started",
    "would you like to become a customer",
)

VALUE_PROPOSITION_PHRASES: Tuple[str, ...] = (
    "benefit", "value", "save you", "improve your", "advantage", "better than",
    "solution to", "help you with", "designed to", "feature that", "results in",
    "leads to", "provides", "offers", "delivers",
)

URGENCY_CREATION_PHRASES: Tuple[str, ...] = (
    "limited time", "special offer", "discount ends", "only available", "last chance",
    "act now", "don't miss out", "today only", "while supplies last",
    "for a limited time", "exclusive offer", "before it's gone", "time-sensitive",
    "deadline", "opportunity",
)


# =============================================================================
# Risk Factors, Conversion Types and Urgency
# =============================================================================

PRICE_RISK = "Price sensitivity detected"
TIMELINE_RISK = "Decision timeline concerns"
COMPETITOR_RISK = "Considering competitor options"
DECISION_MAKER_RISK = "Not primary decision maker"
NEGATIVE_SENTIMENT_RISK = "Negative customer sentiment"
MULTIPLE_OBJECTIONS_RISK = "Multiple objections raised"

# Text cues checked against the whole transcript, in report order
TEXT_RISK_CUES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (PRICE_RISK, ("expensive", "cost", "price", "budget")),
    (TIMELINE_RISK, ("not ready", "too soon", "in the future")),
    (COMPETITOR_RISK, ("competitor", "other option", "alternative")),
    (DECISION_MAKER_RISK, ("need to discuss", "talk to", "check with")),
)

# First matching group wins
CONVERSION_TYPE_CUES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Sale", ("purchase", "buy", "order")),
    ("Upgrade", ("upgrade", "premium")),
    ("Demo Request", ("demo", "trial", "sample")),
    ("Appointment", ("appointment", "schedule", "meeting")),
    ("Subscription", ("subscribe", "newsletter")),
    ("Renewal", ("renewal", "extend")),
    ("Upsell", ("upsell", "additional")),
    ("Referral", ("referral", "recommend")),
)

DEFAULT_CONVERSION_TYPE = "Information Gathering"

HIGH_URGENCY_PHRASES: Tuple[str, ...] = (
    "need it immediately", "as soon as possible", "urgent", "emergency",
    "right away", "today", "now", "quickly",
)

MEDIUM_URGENCY_PHRASES: Tuple[str, ...] = (
    "this week", "soon", "in the next few days", "shortly", "not too long",
)

NEXT_BEST_ACTIONS: Dict[str, str] = {
    "close": "Send contract/agreement and follow up to complete the sale",
    "price": "Provide ROI analysis and value justification materials",
    "decision_maker": "Prepare materials for decision maker and offer joint meeting",
    "proposal": "Send detailed proposal with clear next steps and timeline",
    "consideration": "Share case studies and testimonials relevant to customer needs",
    "interest": "Provide product/service information tailored to specific pain points",
    "nurture": "Nurture with educational content and check in after 2 weeks",
}
