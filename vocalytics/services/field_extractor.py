"""
Field Extractor Service

Resolves canonical call fields from raw, provider-specific call-log records.

Ringba exposes call logs through several endpoint variants and each one names
the same fact differently (``callLengthInSeconds`` vs ``call_duration`` vs
``duration``; ``hasConnected`` vs ``status``). This module owns the single
ordered alias table per canonical field and the type coercion applied to the
winning value. The normalizer never reads raw keys directly.

Resolution Rules:
- Aliases are tried in table order; the first alias whose value is present
  (not None and not a blank string) wins.
- The winning value is coerced to the field's type. If coercion fails the
  result is None: later aliases are NOT consulted.
- Numeric strings become numbers, truthy strings become booleans, epoch
  seconds/milliseconds and ISO-8601 strings become timezone-aware datetimes.

Usage:
    from vocalytics.services.field_extractor import extract
    from vocalytics.models.enums import CanonicalField

    extract({"callId": "c1", "call_duration": "125"}, CanonicalField.DURATION_SECONDS)
    # 125
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import pandas as pd

from vocalytics.models.enums import CallStatus, CanonicalField, Disposition

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Alias Table
# =============================================================================

# Order is significant: earlier aliases win over later ones.
FIELD_ALIASES: Dict[CanonicalField, Tuple[str, ...]] = {
    CanonicalField.ID: (
        'id', 'call_id', 'callId', 'inboundCallId', 'Id', 'uuid',
    ),
    CanonicalField.CAMPAIGN_ID: (
        'campaign_id', 'campaignId', 'campaign', 'Campaign',
    ),
    CanonicalField.CAMPAIGN_NAME: (
        'campaign_name', 'campaignName',
    ),
    CanonicalField.AGENT_NAME: (
        'agent_name', 'agentName', 'agent', 'rep_name', 'targetName', 'user_name',
    ),
    CanonicalField.DURATION_SECONDS: (
        'duration', 'call_duration', 'callLengthInSeconds', 'talk_time', 'Duration', 'length',
    ),
    CanonicalField.CONNECTED_DURATION_SECONDS: (
        'connectedCallLengthInSeconds', 'connected_duration', 'connectedDuration',
    ),
    CanonicalField.RECORDING_URL: (
        'recording_url', 'recordingUrl', 'recording', 'media_url', 'audio_url', 'audioUrl',
    ),
    CanonicalField.START_TIME: (
        'start_time', 'startTime', 'callDt', 'callStartTime', 'call_start_time',
        'timestamp', 'created_at', 'date',
    ),
    CanonicalField.END_TIME: (
        'end_time', 'endTime', 'callCompletedDt', 'callEndTime', 'date_ended', 'call_end',
    ),
    CanonicalField.STATUS: (
        'status', 'call_status', 'Status', 'hasConnected',
    ),
    CanonicalField.DISPOSITION: (
        'disposition', 'call_disposition', 'Disposition', 'outcome', 'hasConverted',
    ),
    CanonicalField.REVENUE: (
        'revenue', 'conversionAmount', 'payout', 'payoutAmount', 'commission',
    ),
    CanonicalField.COST: (
        'cost', 'totalCost', 'media_cost', 'mediaCost', 'price', 'telcoCost',
    ),
    CanonicalField.CALLER_ID: (
        'caller_id', 'callerId', 'inboundPhoneNumber', 'from', 'ani', 'caller_number',
    ),
    CanonicalField.PUBLISHER_NAME: (
        'publisher_name', 'publisherName',
    ),
}

TRUTHY_STRINGS = frozenset({'true', '1', 'yes', 'y', 't'})
FALSY_STRINGS = frozenset({'false', '0', 'no', 'n', 'f'})

# Epoch values at or above this magnitude are milliseconds (year 5138 in seconds)
EPOCH_MILLIS_THRESHOLD: float = 1e11

STATUS_SYNONYMS: Dict[str, CallStatus] = {
    'connected': CallStatus.CONNECTED,
    'completed': CallStatus.CONNECTED,
    'complete': CallStatus.CONNECTED,
    'answered': CallStatus.CONNECTED,
    'success': CallStatus.CONNECTED,
    'successful': CallStatus.CONNECTED,
    'not_connected': CallStatus.NOT_CONNECTED,
    'notconnected': CallStatus.NOT_CONNECTED,
    'disconnected': CallStatus.NOT_CONNECTED,
    'hangup': CallStatus.NOT_CONNECTED,
    'hung_up': CallStatus.NOT_CONNECTED,
    'ended': CallStatus.NOT_CONNECTED,
    'missed': CallStatus.MISSED,
    'abandoned': CallStatus.MISSED,
    'no_answer': CallStatus.NO_ANSWER,
    'noanswer': CallStatus.NO_ANSWER,
    'unanswered': CallStatus.NO_ANSWER,
    'busy': CallStatus.BUSY,
    'rejected': CallStatus.REJECTED,
    'blocked': CallStatus.REJECTED,
    'declined': CallStatus.REJECTED,
    'failed': CallStatus.FAILED,
    'error': CallStatus.FAILED,
    'canceled': CallStatus.FAILED,
    'cancelled': CallStatus.FAILED,
}

DISPOSITION_SYNONYMS: Dict[str, Disposition] = {
    'converted': Disposition.CONVERTED,
    'conversion': Disposition.CONVERTED,
    'sale': Disposition.CONVERTED,
    'sold': Disposition.CONVERTED,
    'won': Disposition.CONVERTED,
    'closed_won': Disposition.CONVERTED,
    'not_converted': Disposition.NOT_CONVERTED,
    'notconverted': Disposition.NOT_CONVERTED,
    'no_sale': Disposition.NOT_CONVERTED,
    'not_sold': Disposition.NOT_CONVERTED,
    'lost': Disposition.NOT_CONVERTED,
    'closed_lost': Disposition.NOT_CONVERTED,
}


# =============================================================================
# Extraction Result
# =============================================================================


@dataclass(frozen=True)
class Extraction:
    """
    Outcome of resolving one canonical field on one raw record.

    Attributes:
        field: The canonical field that was resolved.
        alias: The raw key that won, or None when no alias was present.
        raw_value: The uncoerced value found under ``alias``.
        value: The coerced value, or None when absent or uncoercible.
    """
    field: CanonicalField
    alias: Optional[str] = None
    raw_value: Any = None
    value: Any = None

    @property
    def found(self) -> bool:
        return self.alias is not None

    @property
    def coercion_failed(self) -> bool:
        return self.alias is not None and self.value is None


# =============================================================================
# Coercion Helpers
# =============================================================================


def _normalize_token(value: str) -> str:
    return value.strip().lower().replace('-', '_').replace(' ', '_')


def _to_str(value: Any) -> str:
    if isinstance(value, (dict, list, tuple, set)):
        raise ValueError(f"expected a scalar, got {type(value).__name__}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if not text:
        raise ValueError("blank string")
    return text


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, str):
        value = value.strip().replace(',', '')
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"non-finite number: {value!r}")
    return number


def _to_int(value: Any) -> int:
    # "125.9" -> 125; fractional seconds are truncated
    return int(_to_float(value))


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        token = value.strip().lower()
        if token in TRUTHY_STRINGS:
            return True
        if token in FALSY_STRINGS:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def _epoch_to_datetime(number: float) -> datetime:
    if abs(number) >= EPOCH_MILLIS_THRESHOLD:
        number = number / 1000.0
    return datetime.fromtimestamp(number, tz=timezone.utc)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return _epoch_to_datetime(_to_float(value))
    if isinstance(value, str):
        text = value.strip()
        try:
            return _epoch_to_datetime(_to_float(text))
        except ValueError:
            pass
        parsed = pd.to_datetime(text, utc=True)
        if pd.isna(parsed):
            raise ValueError(f"unparseable timestamp: {value!r}")
        return parsed.to_pydatetime()
    raise ValueError(f"unsupported timestamp type: {type(value).__name__}")


def _to_status(value: Any) -> CallStatus:
    if isinstance(value, (bool, int, float)):
        return CallStatus.CONNECTED if _to_bool(value) else CallStatus.NOT_CONNECTED
    if isinstance(value, str):
        token = _normalize_token(value)
        if token in STATUS_SYNONYMS:
            return STATUS_SYNONYMS[token]
        if token in TRUTHY_STRINGS:
            return CallStatus.CONNECTED
        if token in FALSY_STRINGS:
            return CallStatus.NOT_CONNECTED
        return CallStatus.UNKNOWN
    raise ValueError(f"unsupported status type: {type(value).__name__}")


def _to_disposition(value: Any) -> Disposition:
    # Numeric flags (hasConverted: 1) follow truthiness like booleans
    if isinstance(value, (bool, int, float)):
        return Disposition.CONVERTED if _to_bool(value) else Disposition.NOT_CONVERTED
    if isinstance(value, str):
        token = _normalize_token(value)
        if token in DISPOSITION_SYNONYMS:
            return DISPOSITION_SYNONYMS[token]
        if token in TRUTHY_STRINGS:
            return Disposition.CONVERTED
        if token in FALSY_STRINGS:
            return Disposition.NOT_CONVERTED
        return Disposition.UNKNOWN
    raise ValueError(f"unsupported disposition type: {type(value).__name__}")


COERCERS: Dict[CanonicalField, Callable[[Any], Any]] = {
    CanonicalField.ID: _to_str,
    CanonicalField.CAMPAIGN_ID: _to_str,
    CanonicalField.CAMPAIGN_NAME: _to_str,
    CanonicalField.AGENT_NAME: _to_str,
    CanonicalField.DURATION_SECONDS: _to_int,
    CanonicalField.CONNECTED_DURATION_SECONDS: _to_int,
    CanonicalField.RECORDING_URL: _to_str,
    CanonicalField.START_TIME: _to_datetime,
    CanonicalField.END_TIME: _to_datetime,
    CanonicalField.STATUS: _to_status,
    CanonicalField.DISPOSITION: _to_disposition,
    CanonicalField.REVENUE: _to_float,
    CanonicalField.COST: _to_float,
    CanonicalField.CALLER_ID: _to_str,
    CanonicalField.PUBLISHER_NAME: _to_str,
}


# =============================================================================
# Public API
# =============================================================================


def is_present(value: Any) -> bool:
    """
    Whether a raw value counts as present for alias resolution.

    None and blank strings are absent; everything else, including 0 and
    False, is present.
    """
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def resolve(raw: Mapping[str, Any], field: CanonicalField) -> Extraction:
    """
    Resolve one canonical field and report which alias produced it.

    Args:
        raw: A raw call-log record.
        field: The canonical field to resolve.

    Returns:
        Extraction with the winning alias, its raw value and the coerced
        value (None when absent or when coercion failed).
    """
    for alias in FIELD_ALIASES[field]:
        if alias not in raw:
            continue
        raw_value = raw[alias]
        if not is_present(raw_value):
            continue
        try:
            value = COERCERS[field](raw_value)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            logger.debug(f"Could not coerce {alias}={raw_value!r} for {field.value}: {e}")
            value = None
        return Extraction(field=field, alias=alias, raw_value=raw_value, value=value)

    return Extraction(field=field)


def extract(raw: Mapping[str, Any], field: CanonicalField) -> Any:
    """
    Return the coerced value of a canonical field, or None.

    Example:
        >>> extract({'call_id': 'A', 'id': 'B'}, CanonicalField.ID)
        'B'
        >>> extract({'hasConnected': True}, CanonicalField.STATUS)
        <CallStatus.CONNECTED: 'connected'>
    """
    return resolve(raw, field).value


def extract_all(raw: Mapping[str, Any]) -> Dict[CanonicalField, Extraction]:
    """Resolve every canonical field of a raw record."""
    return {field: resolve(raw, field) for field in CanonicalField}
