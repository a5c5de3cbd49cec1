"""
Transcript Builder and Merger Service

Builds TranscriptBundles from Deepgram ``/v1/listen`` responses and joins them
to canonical call records.

Deepgram Response Fields Used:
- results.channels[0].alternatives[0].transcript / confidence / words
- results.channels[0].alternatives[0].paragraphs.paragraphs (diarized turns)
- results.utterances (fallback source of turns when paragraphs are absent)
- results.sentiments.segments (word-indexed sentiment spans)
- metadata.duration

Merge Rules:
- A call without a recording is not_applicable and never carries a transcript,
  even if one was supplied.
- A call with a recording and no transcript is pending.
- Transcripts are matched to calls by call id only; recording URLs are never
  used for matching. A transcript whose callId differs from the call's id is
  rejected with TranscriptMismatchError.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from vocalytics.models import (
    CallRecord,
    MergedCall,
    Paragraph,
    SentimentLabel,
    SentimentSegment,
    TranscriptBundle,
    TranscriptionStatus,
    WordTiming,
)
from vocalytics.services.payload_decoder import DecodeError

# Configure module logger
logger = logging.getLogger(__name__)


class TranscriptMismatchError(ValueError):
    """Raised when a transcript is merged with a call whose id it does not carry."""


# =============================================================================
# Deepgram Response Parsing
# =============================================================================


def _first(items: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(items, list) and items and isinstance(items[0], Mapping):
        return items[0]
    return None


def _parse_words(raw_words: Any) -> List[WordTiming]:
    words: List[WordTiming] = []
    for item in raw_words or []:
        if not isinstance(item, Mapping) or item.get('start') is None or item.get('end') is None:
            continue
        words.append(WordTiming(
            word=str(item.get('word', '')),
            start=float(item['start']),
            end=float(item['end']),
            confidence=item.get('confidence'),
            speaker=item.get('speaker'),
            punctuatedWord=item.get('punctuated_word'),
        ))
    return words


def _parse_paragraphs(alternative: Mapping[str, Any], results: Mapping[str, Any]) -> List[Paragraph]:
    paragraphs_block = alternative.get('paragraphs') or {}
    raw_paragraphs = paragraphs_block.get('paragraphs') if isinstance(paragraphs_block, Mapping) else None

    paragraphs: List[Paragraph] = []
    if raw_paragraphs:
        for item in raw_paragraphs:
            sentences = item.get('sentences') or []
            text = " ".join(
                str(sentence.get('text', '')).strip() for sentence in sentences
            ).strip()
            if not text:
                continue
            paragraphs.append(Paragraph(
                speaker=item.get('speaker'),
                start=item.get('start'),
                end=item.get('end'),
                text=text,
            ))
        return paragraphs

    # Utterances carry the same diarized turns when paragraphs were not requested
    for item in results.get('utterances') or []:
        text = str(item.get('transcript', '')).strip()
        if not text:
            continue
        paragraphs.append(Paragraph(
            speaker=item.get('speaker'),
            start=item.get('start'),
            end=item.get('end'),
            text=text,
        ))
    return paragraphs


def _parse_sentiment_segments(
    results: Mapping[str, Any],
    words: Sequence[WordTiming],
) -> List[SentimentSegment]:
    sentiments = results.get('sentiments') or {}
    raw_segments = sentiments.get('segments') if isinstance(sentiments, Mapping) else None

    segments: List[SentimentSegment] = []
    for item in raw_segments or []:
        try:
            label = SentimentLabel(str(item.get('sentiment', '')).lower())
        except ValueError:
            continue

        start = end = None
        start_word = item.get('start_word')
        end_word = item.get('end_word')
        if isinstance(start_word, int) and 0 <= start_word < len(words):
            start = words[start_word].start
        if isinstance(end_word, int) and 0 <= end_word < len(words):
            end = words[end_word].end

        score = float(item.get('sentiment_score') or 0.0)
        segments.append(SentimentSegment(
            text=str(item.get('text', '')),
            start=start,
            end=end,
            sentiment=label,
            sentimentScore=max(-1.0, min(1.0, score)),
        ))
    return segments


def build_transcript_bundle(call_id: str, response: Mapping[str, Any]) -> TranscriptBundle:
    """
    Build a TranscriptBundle from a Deepgram pre-recorded response body.

    Args:
        call_id: Id of the call the recording belongs to.
        response: Parsed JSON body returned by ``POST /v1/listen``.

    Returns:
        TranscriptBundle carrying text, word timings, diarized paragraphs and
        sentiment segments (seconds-based).

    Raises:
        DecodeError: If the response has no channel alternative.
    """
    results = response.get('results') if isinstance(response, Mapping) else None
    if not isinstance(results, Mapping):
        raise DecodeError(f"Deepgram response for call {call_id} has no results")

    channel = _first(results.get('channels'))
    alternative = _first(channel.get('alternatives')) if channel else None
    if alternative is None:
        raise DecodeError(f"Deepgram response for call {call_id} has no channel alternative")

    words = _parse_words(alternative.get('words'))
    metadata = response.get('metadata') or {}

    bundle = TranscriptBundle(
        callId=call_id,
        text=str(alternative.get('transcript') or '').strip(),
        words=words,
        paragraphs=_parse_paragraphs(alternative, results),
        sentimentSegments=_parse_sentiment_segments(results, words),
        confidence=alternative.get('confidence'),
        durationSeconds=metadata.get('duration') if isinstance(metadata, Mapping) else None,
        provider='deepgram',
    )
    logger.debug(
        f"Built transcript for call {call_id}: {len(bundle.text)} chars, "
        f"{len(bundle.words)} words, {len(bundle.paragraphs)} paragraphs"
    )
    return bundle


# =============================================================================
# Merge
# =============================================================================


def merge(call: CallRecord, transcript: Optional[TranscriptBundle] = None) -> MergedCall:
    """
    Join one call record with its transcript.

    Args:
        call: The canonical call record.
        transcript: The transcript produced for this call, if any.

    Returns:
        MergedCall with transcriptionStatus completed, pending or not_applicable.

    Raises:
        TranscriptMismatchError: If transcript.callId != call.id.
    """
    if transcript is not None and transcript.callId != call.id:
        raise TranscriptMismatchError(
            f"Transcript for call {transcript.callId} cannot be merged with call {call.id}"
        )

    if not call.hasRecording:
        if transcript is not None:
            logger.warning(f"Ignoring transcript for call {call.id}: call has no recording")
        return MergedCall(call=call, transcriptionStatus=TranscriptionStatus.NOT_APPLICABLE)

    if transcript is None:
        return MergedCall(call=call, transcriptionStatus=TranscriptionStatus.PENDING)

    return MergedCall(
        call=call,
        transcript=transcript,
        transcriptionStatus=TranscriptionStatus.COMPLETED,
    )


def merge_batch(
    calls: Sequence[CallRecord],
    transcripts_by_id: Mapping[str, TranscriptBundle],
) -> List[MergedCall]:
    """
    Merge a batch of calls with transcripts keyed by call id, keeping call order.
    """
    merged = [merge(call, transcripts_by_id.get(call.id)) for call in calls]

    counts: Dict[TranscriptionStatus, int] = {status: 0 for status in TranscriptionStatus}
    for item in merged:
        counts[item.transcriptionStatus] += 1
    logger.info(
        f"Merged {len(merged)} calls: {counts[TranscriptionStatus.COMPLETED]} completed, "
        f"{counts[TranscriptionStatus.PENDING]} pending, "
        f"{counts[TranscriptionStatus.NOT_APPLICABLE]} not applicable"
    )
    return merged


def index_transcripts(transcripts: Sequence[TranscriptBundle]) -> Dict[str, TranscriptBundle]:
    """Key transcripts by callId; a later transcript for the same call replaces an earlier one."""
    return {transcript.callId: transcript for transcript in transcripts}
