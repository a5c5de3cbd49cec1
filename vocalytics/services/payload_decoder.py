"""
Payload Decoder Service

Turns a supplier response body into a flat list of raw call records.

Ringba call-log endpoints wrap their records differently depending on the
endpoint and API version: a bare list, ``{"data": [...]}``,
``{"records": [...]}``, ``{"report": {"records": [...]}}`` and so on. The
unwrapping order is fixed here, in one place, and every record is checked to
be a JSON object before it reaches the normalizer.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Tuple, Union

# Configure module logger
logger = logging.getLogger(__name__)

# Wrapper keys tried, in order, when the payload is a JSON object
WRAPPER_KEYS: Tuple[str, ...] = ('data', 'records', 'results', 'items', 'callLogs', 'report')

# Deepest wrapper nesting accepted ({"report": {"records": [...]}} is depth 2)
MAX_UNWRAP_DEPTH: int = 3


class DecodeError(ValueError):
    """Raised when a payload cannot be decoded into a list of call records."""


def _parse_json(payload: Union[str, bytes, bytearray]) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError(f"Payload is not UTF-8: {e}") from e
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Payload is not valid JSON: {e.msg} at position {e.pos}") from e


def _unwrap(value: Any, depth: int) -> List[Any]:
    if isinstance(value, list):
        return value

    if not isinstance(value, Mapping):
        raise DecodeError(f"Expected a list or object, got {type(value).__name__}")

    if value.get('isSuccessful') is False:
        message = value.get('message') or value.get('errors') or 'supplier reported failure'
        raise DecodeError(f"Supplier response marked unsuccessful: {message}")

    if depth >= MAX_UNWRAP_DEPTH:
        raise DecodeError(f"No record list found within {MAX_UNWRAP_DEPTH} wrapper levels")

    for key in WRAPPER_KEYS:
        if key in value and value[key] is not None:
            return _unwrap(value[key], depth + 1)

    raise DecodeError(
        f"Object has none of the wrapper keys {list(WRAPPER_KEYS)}; "
        f"found keys {sorted(value.keys())[:10]}"
    )


def decode_call_payload(payload: Any) -> List[Dict[str, Any]]:
    """
    Decode a supplier payload into raw call records.

    Args:
        payload: A JSON string/bytes body, or an already parsed list/object.

    Returns:
        List of raw records (dicts), in payload order. The dicts are shallow
        copies, so callers may not mutate the supplier's structure through them.

    Raises:
        DecodeError: On invalid JSON, an unrecognized wrapper shape, an
            explicit ``isSuccessful: false``, or a non-object element.

    Example:
        >>> decode_call_payload({'report': {'records': [{'inboundCallId': 'c1'}]}})
        [{'inboundCallId': 'c1'}]
    """
    if isinstance(payload, (str, bytes, bytearray)):
        payload = _parse_json(payload)

    items = _unwrap(payload, depth=0)

    records: List[Dict[str, Any]] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise DecodeError(
                f"Record at index {index} is {type(item).__name__}, expected an object"
            )
        records.append(dict(item))

    logger.debug(f"Decoded {len(records)} raw call records")
    return records
