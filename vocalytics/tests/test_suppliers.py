"""
Test suite for the Ringba and Deepgram supplier clients.

Requests are served by httpx.MockTransport, so no network is used.

The tests verify:
1. Ringba paging by offset/size, the auth header and the campaign filter
2. Deepgram query options, auth header and response parsing
3. Every failure surfaces as SupplierError
4. fetch_transcripts omits failed calls instead of failing the batch
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List

import httpx
import pytest

from vocalytics.models import CallRecord, CallStatus
from vocalytics.services.suppliers import (
    DEEPGRAM_OPTIONS,
    DeepgramTranscriptionClient,
    RingbaCallLogClient,
    SupplierError,
    fetch_transcripts,
)


START = datetime(2025, 1, 1, tzinfo=timezone.utc)
END = datetime(2025, 1, 2, tzinfo=timezone.utc)


def _ringba_page(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {'isSuccessful': True, 'report': {'records': records}}


class TestRingbaCallLogClient:
    """Tests for call-log fetching."""

    @pytest.mark.asyncio
    async def test_pages_until_short_page(self, mock_settings) -> None:
        requests: List[httpx.Request] = []
        pages = [
            _ringba_page([{'inboundCallId': 'a'}, {'inboundCallId': 'b'}]),
            _ringba_page([{'inboundCallId': 'c'}]),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=pages[len(requests) - 1])

        client = RingbaCallLogClient.from_settings(mock_settings, transport=httpx.MockTransport(handler))
        records = await client.fetch_call_logs(START, END)

        assert [r['inboundCallId'] for r in records] == ['a', 'b', 'c']
        assert len(requests) == 2
        assert str(requests[0].url) == 'https://api.ringba.com/v2/RA-test/calllogs'
        assert requests[0].headers['Authorization'] == 'Token ringba-token'

        bodies = [json.loads(request.content) for request in requests]
        assert [body['offset'] for body in bodies] == [0, 2]
        assert bodies[0]['size'] == 2
        assert bodies[0]['reportStart'] == START.isoformat()
        assert {'column': 'recordingUrl'} in bodies[0]['valueColumns']
        assert 'filters' not in bodies[0]

    @pytest.mark.asyncio
    async def test_campaign_filter(self, mock_settings) -> None:
        captured: List[Dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(json.loads(request.content))
            return httpx.Response(200, json=_ringba_page([]))

        client = RingbaCallLogClient.from_settings(mock_settings, transport=httpx.MockTransport(handler))
        assert await client.fetch_call_logs(START, END, campaign_id='CA-medicare') == []

        condition = captured[0]['filters'][0]['anyConditionToMatch'][0]
        assert condition['column'] == 'campaignId'
        assert condition['value'] == 'CA-medicare'

    @pytest.mark.asyncio
    async def test_stops_at_max_pages(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=[{'id': 'x'}, {'id': 'y'}])

        client = RingbaCallLogClient(
            'https://api.ringba.com/v2',
            account_id='RA-test',
            api_token='ringba-token',
            page_size=2,
            max_pages=3,
            transport=httpx.MockTransport(handler),
        )
        records = await client.fetch_call_logs(START, END)
        assert len(calls) == 3
        assert len(records) == 6

    @pytest.mark.asyncio
    async def test_http_error(self, mock_settings) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text='bad token'))
        client = RingbaCallLogClient.from_settings(mock_settings, transport=transport)
        with pytest.raises(SupplierError) as exc_info:
            await client.fetch_call_logs(START, END)
        assert exc_info.value.status_code == 401
        assert exc_info.value.supplier == 'ringba'

    @pytest.mark.asyncio
    async def test_unsuccessful_body(self, mock_settings) -> None:
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={'isSuccessful': False, 'message': 'nope'})
        )
        client = RingbaCallLogClient.from_settings(mock_settings, transport=transport)
        with pytest.raises(SupplierError, match='unsuccessful'):
            await client.fetch_call_logs(START, END)

    @pytest.mark.asyncio
    async def test_non_json_body(self, mock_settings) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text='<html>'))
        client = RingbaCallLogClient.from_settings(mock_settings, transport=transport)
        with pytest.raises(SupplierError, match='not valid JSON'):
            await client.fetch_call_logs(START, END)

    @pytest.mark.asyncio
    async def test_transport_error(self, mock_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        client = RingbaCallLogClient.from_settings(mock_settings, transport=httpx.MockTransport(handler))
        with pytest.raises(SupplierError, match='request failed'):
            await client.fetch_call_logs(START, END)

    @pytest.mark.asyncio
    async def test_missing_credentials(self) -> None:
        client = RingbaCallLogClient('https://api.ringba.com/v2', account_id=None, api_token=None)
        with pytest.raises(SupplierError, match='not configured'):
            await client.fetch_call_logs(START, END)


class TestDeepgramTranscriptionClient:
    """Tests for recording transcription."""

    @pytest.mark.asyncio
    async def test_transcribe(self, mock_settings, call_record, deepgram_response) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=deepgram_response)

        client = DeepgramTranscriptionClient.from_settings(
            mock_settings, transport=httpx.MockTransport(handler)
        )
        bundle = await client.transcribe(call_record)

        assert bundle.callId == 'c1'
        assert len(bundle.paragraphs) == 2

        request = requests[0]
        assert request.url.path == '/v1/listen'
        assert request.url.params['model'] == 'nova-2'
        for option, value in DEEPGRAM_OPTIONS.items():
            assert request.url.params[option] == value
        assert request.headers['Authorization'] == 'Token deepgram-key'
        assert json.loads(request.content) == {'url': 'https://x/c1.wav'}

    @pytest.mark.asyncio
    async def test_call_without_recording(self, mock_settings, unrecorded_call) -> None:
        client = DeepgramTranscriptionClient.from_settings(mock_settings)
        with pytest.raises(SupplierError, match='no recording'):
            await client.transcribe(unrecorded_call)

    @pytest.mark.asyncio
    async def test_server_error(self, mock_settings, call_record) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text='busy'))
        client = DeepgramTranscriptionClient.from_settings(mock_settings, transport=transport)
        with pytest.raises(SupplierError) as exc_info:
            await client.transcribe(call_record)
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_malformed_word_timing(self, mock_settings, call_record, deepgram_response) -> None:
        alternative = deepgram_response['results']['channels'][0]['alternatives'][0]
        alternative['words'] = [{'word': 'hello', 'start': 'n/a', 'end': 0.5}]
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=deepgram_response))
        client = DeepgramTranscriptionClient.from_settings(mock_settings, transport=transport)
        with pytest.raises(SupplierError) as exc_info:
            await client.transcribe(call_record)
        assert exc_info.value.supplier == 'deepgram'

    @pytest.mark.asyncio
    async def test_response_without_results(self, mock_settings, call_record) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={'metadata': {}}))
        client = DeepgramTranscriptionClient.from_settings(mock_settings, transport=transport)
        with pytest.raises(SupplierError, match='no results'):
            await client.transcribe(call_record)


class TestFetchTranscripts:
    """Tests for bounded-concurrency batch transcription."""

    @pytest.mark.asyncio
    async def test_failures_are_omitted(self, mock_settings, deepgram_response) -> None:
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        calls = [
            CallRecord(id='ok', startTime=start, recordingUrl='https://x/ok.wav', status=CallStatus.CONNECTED),
            CallRecord(id='bad', startTime=start, recordingUrl='https://x/bad.wav'),
            CallRecord(id='none', startTime=start),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            if json.loads(request.content)['url'].endswith('bad.wav'):
                return httpx.Response(500, text='error')
            return httpx.Response(200, json=deepgram_response)

        client = DeepgramTranscriptionClient.from_settings(
            mock_settings, transport=httpx.MockTransport(handler)
        )
        transcripts = await fetch_transcripts(calls, client, concurrency=2)

        assert list(transcripts) == ['ok']
        assert transcripts['ok'].callId == 'ok'

    @pytest.mark.asyncio
    async def test_malformed_body_leaves_call_pending(self, mock_settings, call_record) -> None:
        body = {'results': {'channels': [{'alternatives': [{
            'transcript': 'hello',
            'words': [{'word': 'hello', 'start': 'n/a', 'end': 0.5}],
        }]}]}}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        client = DeepgramTranscriptionClient.from_settings(mock_settings, transport=transport)
        assert await fetch_transcripts([call_record], client) == {}

    @pytest.mark.asyncio
    async def test_no_recorded_calls(self, mock_settings, unrecorded_call) -> None:
        client = DeepgramTranscriptionClient.from_settings(mock_settings)
        assert await fetch_transcripts([unrecorded_call], client) == {}
