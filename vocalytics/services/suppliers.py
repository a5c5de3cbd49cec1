"""
Supplier Clients

Async HTTP clients for the two external suppliers:

- Ringba call logs: POST {ringba_base_url}/{account_id}/calllogs, paged with
  offset/size until a short page (or ringba_max_pages) is reached.
- Deepgram transcription: POST {deepgram_base_url}/listen with the recording
  URL and a fixed set of query options (diarization, paragraphs, sentiment).

Both clients authenticate with a single scheme configured at startup and
never retry with different credentials or request shapes. Every failure is
raised as SupplierError. The core services never call these clients; only
the API layer does.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx

from vocalytics.core.config import Settings
from vocalytics.models import CallRecord, TranscriptBundle
from vocalytics.services.payload_decoder import DecodeError, decode_call_payload
from vocalytics.services.transcripts import build_transcript_bundle

# Configure module logger
logger = logging.getLogger(__name__)

RINGBA = "ringba"
DEEPGRAM = "deepgram"

# Columns requested from the call-log report
RINGBA_VALUE_COLUMNS = (
    "inboundCallId",
    "callDt",
    "callCompletedDt",
    "campaignId",
    "campaignName",
    "targetName",
    "publisherName",
    "inboundPhoneNumber",
    "callLengthInSeconds",
    "connectedCallLengthInSeconds",
    "hasConnected",
    "hasConverted",
    "recordingUrl",
    "conversionAmount",
    "payoutAmount",
    "totalCost",
)

DEEPGRAM_OPTIONS: Dict[str, str] = {
    "language": "en-US",
    "smart_format": "true",
    "punctuate": "true",
    "diarize": "true",
    "utterances": "true",
    "paragraphs": "true",
    "sentiment": "true",
    "filler_words": "true",
}


class SupplierError(RuntimeError):
    """
    Raised when a supplier request fails.

    Attributes:
        supplier: Supplier name ("ringba" or "deepgram").
        message: What went wrong.
        status_code: HTTP status returned by the supplier, when there was one.
    """

    def __init__(self, supplier: str, message: str, status_code: Optional[int] = None):
        self.supplier = supplier
        self.message = message
        self.status_code = status_code
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"{supplier}: {message}{status}")


def _raise_for_status(supplier: str, response: httpx.Response) -> None:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        body = response.text[:200]
        raise SupplierError(supplier, f"request failed: {body}", response.status_code) from e


def _json(supplier: str, response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise SupplierError(supplier, "response is not valid JSON", response.status_code) from e


# =============================================================================
# Ringba Call Logs
# =============================================================================


class RingbaCallLogClient:
    """Pages through the Ringba call-log report for a time window."""

    def __init__(
        self,
        base_url: str,
        account_id: Optional[str],
        api_token: Optional[str],
        auth_scheme: str = "Token",
        page_size: int = 1000,
        max_pages: int = 20,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.account_id = account_id
        self.api_token = api_token
        self.auth_scheme = auth_scheme
        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RingbaCallLogClient":
        return cls(
            base_url=settings.ringba_base_url,
            account_id=settings.ringba_account_id,
            api_token=settings.ringba_api_token,
            auth_scheme=settings.ringba_auth_scheme,
            page_size=settings.ringba_page_size,
            max_pages=settings.ringba_max_pages,
            timeout=settings.supplier_timeout_seconds,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"{self.auth_scheme} {self.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _request_body(
        self,
        start: datetime,
        end: datetime,
        offset: int,
        campaign_id: Optional[str],
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "reportStart": start.isoformat(),
            "reportEnd": end.isoformat(),
            "offset": offset,
            "size": self.page_size,
            "valueColumns": [{"column": column} for column in RINGBA_VALUE_COLUMNS],
        }
        if campaign_id:
            body["filters"] = [{
                "anyConditionToMatch": [{
                    "column": "campaignId",
                    "value": campaign_id,
                    "isNegativeMatch": False,
                    "comparisonType": "EQUALS",
                }]
            }]
        return body

    async def fetch_call_logs(
        self,
        start: datetime,
        end: datetime,
        campaign_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch raw call-log records for [start, end].

        Args:
            start: Window start.
            end: Window end.
            campaign_id: Restrict to one campaign.

        Returns:
            Raw call records in report order, across all pages.

        Raises:
            SupplierError: On missing credentials, HTTP/transport failures or
                a response that does not decode to a list of records.
        """
        if not self.account_id or not self.api_token:
            raise SupplierError(RINGBA, "account id and API token are not configured")

        url = f"{self.base_url}/{self.account_id}/calllogs"
        records: List[Dict[str, Any]] = []

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for page in range(self.max_pages):
                offset = page * self.page_size
                try:
                    response = await client.post(
                        url,
                        headers=self._headers(),
                        json=self._request_body(start, end, offset, campaign_id),
                    )
                except httpx.RequestError as e:
                    raise SupplierError(RINGBA, f"request failed: {e}") from e

                _raise_for_status(RINGBA, response)
                try:
                    page_records = decode_call_payload(_json(RINGBA, response))
                except DecodeError as e:
                    raise SupplierError(RINGBA, str(e), response.status_code) from e

                records.extend(page_records)
                logger.debug(f"Ringba page {page + 1}: {len(page_records)} records")

                if len(page_records) < self.page_size:
                    break
            else:
                logger.warning(
                    f"Stopped after {self.max_pages} Ringba pages; window may be truncated"
                )

        logger.info(f"Fetched {len(records)} call records from Ringba")
        return records


# =============================================================================
# Deepgram Transcription
# =============================================================================


class DeepgramTranscriptionClient:
    """Transcribes call recordings by URL."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        model: str = "nova-2",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "DeepgramTranscriptionClient":
        return cls(
            base_url=settings.deepgram_base_url,
            api_key=settings.deepgram_api_key,
            model=settings.deepgram_model,
            timeout=settings.supplier_timeout_seconds,
            transport=transport,
        )

    async def transcribe(self, call: CallRecord) -> TranscriptBundle:
        """
        Transcribe the recording of one call.

        Raises:
            SupplierError: If the call has no recording, the key is missing,
                or the request or response fails.
        """
        if not call.recordingUrl:
            raise SupplierError(DEEPGRAM, f"call {call.id} has no recording")
        if not self.api_key:
            raise SupplierError(DEEPGRAM, "API key is not configured")

        params = {"model": self.model, **DEEPGRAM_OPTIONS}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/listen",
                    params=params,
                    headers={
                        "Authorization": f"Token {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={"url": call.recordingUrl},
                )
            except httpx.RequestError as e:
                raise SupplierError(DEEPGRAM, f"request failed: {e}") from e

        _raise_for_status(DEEPGRAM, response)
        try:
            return build_transcript_bundle(call.id, _json(DEEPGRAM, response))
        except (DecodeError, ValueError, TypeError, AttributeError) as e:
            # Malformed word, paragraph or sentiment entries
            raise SupplierError(DEEPGRAM, str(e), response.status_code) from e


async def fetch_transcripts(
    calls: Sequence[CallRecord],
    client: DeepgramTranscriptionClient,
    concurrency: int = 4,
) -> Dict[str, TranscriptBundle]:
    """
    Transcribe every recorded call with bounded concurrency.

    Calls whose transcription fails are logged and omitted, so they merge as
    pending and can be retried by a later sync.

    Returns:
        Transcripts keyed by call id.
    """
    semaphore = asyncio.Semaphore(concurrency)
    recorded = [call for call in calls if call.hasRecording]

    async def _transcribe(call: CallRecord) -> Optional[TranscriptBundle]:
        async with semaphore:
            try:
                return await client.transcribe(call)
            except SupplierError as e:
                logger.warning(f"Transcription failed for call {call.id}: {e}")
                return None

    results = await asyncio.gather(*(_transcribe(call) for call in recorded))
    transcripts = {bundle.callId: bundle for bundle in results if bundle is not None}

    logger.info(f"Transcribed {len(transcripts)} of {len(recorded)} recorded calls")
    return transcripts
