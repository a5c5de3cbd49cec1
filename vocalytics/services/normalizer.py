"""
Call Normalizer Service

Converts a batch of raw call-log records into canonical CallRecords.

For every raw record the normalizer runs the field extractor for each
canonical field, applies defaults to presentational fields and drops records
that fail the validity check (non-empty id AND duration >= 0).

Rules:
- Dropped records are counted and described on the result; they never raise.
  An all-invalid batch yields an empty result.
- Output order is source order. The normalizer neither sorts nor
  deduplicates; dedup by id happens in the aggregator.
- Defaults only touch presentational fields:
    agentName      -> "Unknown Agent"
    campaignId     -> default_campaign_id, else "unknown"
    durationSeconds-> 0 when absent or uncoercible
    startTime      -> extraction time of the batch
    revenue / cost -> 0 (negative values are reported and zeroed)
  Each default that hides a present-but-bad or missing core value is recorded
  as an ExtractionGap.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from vocalytics.models import (
    CallRecord,
    CallStatus,
    CanonicalField,
    Disposition,
    ExtractionGap,
    InvalidRecord,
    NormalizationResult,
)
from vocalytics.services.field_extractor import Extraction, extract_all

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Defaults
# =============================================================================

DEFAULT_AGENT_NAME: str = "Unknown Agent"
DEFAULT_CAMPAIGN_ID: str = "unknown"

# Fields whose absence is reported as a gap (others are optional by nature)
REPORTED_WHEN_MISSING = (
    CanonicalField.AGENT_NAME,
    CanonicalField.CAMPAIGN_ID,
    CanonicalField.DURATION_SECONDS,
    CanonicalField.START_TIME,
)


def _gap(index: int, record_id: Optional[str], field: CanonicalField, message: str) -> ExtractionGap:
    return ExtractionGap(recordIndex=index, recordId=record_id, field=field.value, message=message)


def _collect_gaps(
    index: int,
    record_id: str,
    extracted: Dict[CanonicalField, Extraction],
) -> List[ExtractionGap]:
    """Report coercion failures for every field and absence for core fields."""
    gaps: List[ExtractionGap] = []
    for field, extraction in extracted.items():
        if extraction.coercion_failed:
            gaps.append(_gap(
                index, record_id, field,
                f"Could not coerce {extraction.alias}={extraction.raw_value!r}; treated as missing",
            ))
        elif not extraction.found and field in REPORTED_WHEN_MISSING:
            gaps.append(_gap(index, record_id, field, "Missing; default applied"))
    return gaps


def _non_negative_amount(
    value: Optional[float],
    index: int,
    record_id: str,
    field: CanonicalField,
    gaps: List[ExtractionGap],
) -> float:
    if value is None:
        return 0.0
    if value < 0:
        gaps.append(_gap(index, record_id, field, f"Negative amount {value} replaced with 0"))
        return 0.0
    return float(value)


def normalize_record(
    raw: Mapping[str, Any],
    index: int,
    *,
    extracted_at: datetime,
    default_campaign_id: Optional[str] = None,
) -> Tuple[Optional[CallRecord], Optional[InvalidRecord], List[ExtractionGap]]:
    """
    Normalize a single raw record.

    Args:
        raw: The raw call-log record.
        index: Position of the record in its batch (used in reports).
        extracted_at: Timestamp used when the record carries no start time.
        default_campaign_id: Campaign id used when the record carries none.

    Returns:
        Tuple of (CallRecord or None, InvalidRecord or None, list of gaps).
        Exactly one of the first two elements is set.
    """
    if not isinstance(raw, Mapping):
        invalid = InvalidRecord(
            recordIndex=index,
            reason="not_an_object",
            message=f"Expected an object, got {type(raw).__name__}",
        )
        return None, invalid, []

    extracted = extract_all(raw)
    values = {field: extraction.value for field, extraction in extracted.items()}

    record_id = values[CanonicalField.ID]
    if not record_id:
        id_extraction = extracted[CanonicalField.ID]
        if id_extraction.found:
            message = f"Unusable id {id_extraction.alias}={id_extraction.raw_value!r}"
        else:
            message = "No id field present"
        return None, InvalidRecord(recordIndex=index, reason="missing_id", message=message), []

    duration = values[CanonicalField.DURATION_SECONDS]
    if duration is not None and duration < 0:
        invalid = InvalidRecord(
            recordIndex=index,
            reason="negative_duration",
            message=f"Call {record_id} has negative duration {duration}",
        )
        return None, invalid, []

    gaps = _collect_gaps(index, record_id, extracted)

    connected = values[CanonicalField.CONNECTED_DURATION_SECONDS]
    if connected is not None and connected < 0:
        gaps.append(_gap(
            index, record_id, CanonicalField.CONNECTED_DURATION_SECONDS,
            f"Negative connected duration {connected} dropped",
        ))
        connected = None

    disposition_extraction = extracted[CanonicalField.DISPOSITION]
    raw_disposition = None
    if disposition_extraction.found and isinstance(disposition_extraction.raw_value, str):
        raw_disposition = disposition_extraction.raw_value.strip()

    record = CallRecord(
        id=record_id,
        campaignId=values[CanonicalField.CAMPAIGN_ID] or default_campaign_id or DEFAULT_CAMPAIGN_ID,
        campaignName=values[CanonicalField.CAMPAIGN_NAME],
        agentName=values[CanonicalField.AGENT_NAME] or DEFAULT_AGENT_NAME,
        durationSeconds=duration if duration is not None else 0,
        connectedDurationSeconds=connected,
        recordingUrl=values[CanonicalField.RECORDING_URL],
        startTime=values[CanonicalField.START_TIME] or extracted_at,
        endTime=values[CanonicalField.END_TIME],
        status=values[CanonicalField.STATUS] or CallStatus.UNKNOWN,
        disposition=values[CanonicalField.DISPOSITION] or Disposition.UNKNOWN,
        rawDisposition=raw_disposition,
        revenue=_non_negative_amount(
            values[CanonicalField.REVENUE], index, record_id, CanonicalField.REVENUE, gaps
        ),
        cost=_non_negative_amount(
            values[CanonicalField.COST], index, record_id, CanonicalField.COST, gaps
        ),
        callerId=values[CanonicalField.CALLER_ID],
        publisherName=values[CanonicalField.PUBLISHER_NAME],
    )
    return record, None, gaps


def normalize(
    raw_batch: Sequence[Any],
    *,
    default_campaign_id: Optional[str] = None,
    extracted_at: Optional[datetime] = None,
) -> NormalizationResult:
    """
    Normalize a batch of raw call records.

    Args:
        raw_batch: Raw records in supplier order.
        default_campaign_id: Campaign id for records without one, e.g. when
            the batch was fetched for a single campaign.
        extracted_at: Extraction time used as the default start time. Defaults
            to the current UTC time, taken once for the whole batch.

    Returns:
        NormalizationResult with valid records in source order plus the
        invalid-record and gap reports.

    Example:
        >>> result = normalize([{}, {'callId': 'c1', 'call_duration': '125'}])
        >>> [r.id for r in result.records], result.invalidCount
        (['c1'], 1)
    """
    if extracted_at is None:
        extracted_at = datetime.now(timezone.utc)
    elif extracted_at.tzinfo is None:
        extracted_at = extracted_at.replace(tzinfo=timezone.utc)

    records: List[CallRecord] = []
    invalid_records: List[InvalidRecord] = []
    gaps: List[ExtractionGap] = []

    for index, raw in enumerate(raw_batch):
        record, invalid, record_gaps = normalize_record(
            raw,
            index,
            extracted_at=extracted_at,
            default_campaign_id=default_campaign_id,
        )
        if invalid is not None:
            invalid_records.append(invalid)
            continue
        records.append(record)
        gaps.extend(record_gaps)

    if invalid_records:
        logger.warning(
            f"Dropped {len(invalid_records)} of {len(raw_batch)} raw call records as invalid"
        )
    logger.info(f"Normalized {len(records)} call records ({len(gaps)} extraction gaps)")

    return NormalizationResult(
        records=records,
        inputCount=len(raw_batch),
        invalidCount=len(invalid_records),
        invalidRecords=invalid_records,
        gaps=gaps,
    )
