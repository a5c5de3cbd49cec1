"""
Speaker turn resolution for transcripts.

The scorer needs to know which parts of a transcript the agent said. Turns are
derived, in order of preference, from:

1. Diarized paragraphs with at least two distinct speakers. The agent is the
   speaker whose turns contain the most agent-opening phrases ("thank you for
   calling", "how can I help", ...); ties go to the speaker who talked first.
2. ``Agent:`` / ``Customer:`` style line prefixes in the transcript text.
3. Neither: each non-blank line becomes an unattributed turn, and per-speaker
   results downstream are left undefined.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from vocalytics.models import Speaker, TranscriptBundle
from vocalytics.services.lexicons import AGENT_IDENTIFICATION_PHRASES, count_matches


SPEAKER_PREFIX = re.compile(
    r'^\s*(agent|representative|rep|customer|client|cust|caller)\s*:\s*(.+)$',
    re.IGNORECASE,
)

AGENT_PREFIXES = frozenset({'agent', 'representative', 'rep'})


@dataclass(frozen=True)
class Turn:
    """
    One speaker turn.

    Attributes:
        speaker: Resolved role of the speaker.
        text: What was said.
        start: Start time in seconds, when the transcript carries timing.
        end: End time in seconds, when the transcript carries timing.
    """
    speaker: Speaker
    text: str
    start: Optional[float] = None
    end: Optional[float] = None

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def seconds(self) -> Optional[float]:
        if self.start is None or self.end is None or self.end < self.start:
            return None
        return self.end - self.start


@dataclass(frozen=True)
class TurnSplit:
    """Turns of a transcript plus whether agent and customer could be told apart."""
    turns: Tuple[Turn, ...]
    speakers_known: bool

    def by(self, speaker: Speaker) -> List[Turn]:
        return [turn for turn in self.turns if turn.speaker == speaker]

    def text_of(self, speaker: Speaker) -> str:
        return " ".join(turn.text for turn in self.by(speaker))


def _identify_agent(paragraphs) -> int:
    scores: Dict[int, int] = {}
    order: List[int] = []
    for paragraph in paragraphs:
        if paragraph.speaker not in scores:
            scores[paragraph.speaker] = 0
            order.append(paragraph.speaker)
        scores[paragraph.speaker] += count_matches(paragraph.text, AGENT_IDENTIFICATION_PHRASES)
    best = max(scores[speaker] for speaker in order)
    return next(speaker for speaker in order if scores[speaker] == best)


def _from_paragraphs(bundle: TranscriptBundle) -> Optional[TurnSplit]:
    paragraphs = [p for p in bundle.paragraphs if p.speaker is not None and p.text.strip()]
    if len({p.speaker for p in paragraphs}) < 2:
        return None

    agent = _identify_agent(paragraphs)
    turns = tuple(
        Turn(
            speaker=Speaker.AGENT if p.speaker == agent else Speaker.CUSTOMER,
            text=p.text.strip(),
            start=p.start,
            end=p.end,
        )
        for p in paragraphs
    )
    return TurnSplit(turns=turns, speakers_known=True)


def _from_prefixes(lines: List[str]) -> Optional[TurnSplit]:
    turns: List[Turn] = []
    prefixed = False
    for line in lines:
        match = SPEAKER_PREFIX.match(line)
        if match:
            prefixed = True
            role = match.group(1).lower()
            speaker = Speaker.AGENT if role in AGENT_PREFIXES else Speaker.CUSTOMER
            turns.append(Turn(speaker=speaker, text=match.group(2).strip()))
        else:
            turns.append(Turn(speaker=Speaker.UNKNOWN, text=line))
    if not prefixed:
        return None
    return TurnSplit(turns=tuple(turns), speakers_known=True)


def split_turns(bundle: TranscriptBundle) -> TurnSplit:
    """
    Split a transcript into speaker turns.

    Returns:
        TurnSplit; speakers_known is False when only unattributed turns exist.
    """
    split = _from_paragraphs(bundle)
    if split is not None:
        return split

    lines = [line.strip() for line in bundle.text.splitlines() if line.strip()]
    split = _from_prefixes(lines)
    if split is not None:
        return split

    # Keep paragraph timing for pacing even when speakers cannot be told apart
    if bundle.paragraphs:
        turns = tuple(
            Turn(speaker=Speaker.UNKNOWN, text=p.text.strip(), start=p.start, end=p.end)
            for p in bundle.paragraphs
            if p.text.strip()
        )
        if turns:
            return TurnSplit(turns=turns, speakers_known=False)

    return TurnSplit(
        turns=tuple(Turn(speaker=Speaker.UNKNOWN, text=line) for line in lines),
        speakers_known=False,
    )
