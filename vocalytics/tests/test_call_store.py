"""
Test suite for the call store and its SQL.

Database access is mocked through the mock_db_pool fixture; get_db_pool is
patched where call_store imports it.

The tests verify:
1. Calls are upserted in one transaction with their transcription status
2. Analyses are appended as latest + 1, never updated in place
3. Loaded rows become (CallRecord, QualityAnalysis or None) pairs
4. Query text carries the expected parameters and clauses
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from vocalytics.models import (
    AnalysisKind,
    CallQuality,
    CallStatus,
    Disposition,
    QualityAnalysis,
    ScoredCall,
    TranscriptionStatus,
)
from vocalytics.services.call_store import (
    load_scored_calls,
    save_analyses,
    save_analysis,
    save_calls,
)
from vocalytics.sql import (
    CALL_RECORD_COLUMNS,
    get_analysis_insert_query,
    get_analysis_lock_query,
    get_call_upsert_query,
    get_latest_analysis_version_query,
    get_scored_calls_query,
)


START = datetime(2025, 1, 1, tzinfo=timezone.utc)
END = datetime(2025, 1, 31, tzinfo=timezone.utc)


def _structural(call_id: str, version: int = 1) -> QualityAnalysis:
    return QualityAnalysis(
        callId=call_id,
        version=version,
        scorerVersion='2025.1',
        kind=AnalysisKind.STRUCTURAL,
        callQuality=CallQuality.GOOD,
        callDuration='0:45',
    )


def _connection(pool):
    return pool.acquire.return_value.__aenter__.return_value


class TestCallQueries:
    """Tests for generated SQL."""

    def test_upsert_has_one_placeholder_per_column(self) -> None:
        query = get_call_upsert_query()
        assert f'${len(CALL_RECORD_COLUMNS)}' in query
        assert 'ON CONFLICT (id) DO UPDATE' in query
        assert 'id = EXCLUDED.id' not in query

    def test_analysis_insert_never_updates(self) -> None:
        query = get_analysis_insert_query()
        assert 'INSERT INTO quality_analysis' in query
        assert 'UPDATE' not in query
        assert '$9' in query

    def test_analysis_lock_is_transaction_scoped(self) -> None:
        assert 'pg_advisory_xact_lock' in get_analysis_lock_query()

    def test_scored_calls_query_campaign_filter(self) -> None:
        assert '$3' not in get_scored_calls_query()
        assert 'c.campaign_id = $3' in get_scored_calls_query('CA1')

    def test_scored_calls_query_takes_latest_analysis(self) -> None:
        query = get_scored_calls_query()
        assert 'ORDER BY qa.version DESC' in query
        assert 'LIMIT 1' in query


class TestSaveCalls:
    """Tests for call upserts."""

    @pytest.mark.asyncio
    async def test_empty_batch_skips_database(self, mock_db_pool) -> None:
        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool) as get_pool:
            assert await save_calls([]) == 0
        get_pool.assert_not_called()

    @pytest.mark.asyncio
    async def test_upserts_rows_in_transaction(self, mock_db_pool, call_record, unrecorded_call) -> None:
        calls = [
            ScoredCall(call=call_record, transcriptionStatus=TranscriptionStatus.COMPLETED),
            ScoredCall(call=unrecorded_call, transcriptionStatus=TranscriptionStatus.NOT_APPLICABLE),
        ]
        conn = _connection(mock_db_pool)

        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool):
            assert await save_calls(calls) == 2

        conn.transaction.assert_called_once()
        query, rows = conn.executemany.call_args.args
        assert query == get_call_upsert_query()
        assert [row[0] for row in rows] == ['c1', 'c3']
        assert len(rows[0]) == len(CALL_RECORD_COLUMNS)
        assert rows[0][9] == 'connected'
        assert rows[1][10] == 'converted'
        assert rows[0][16] == 'completed'
        assert rows[1][16] == 'not_applicable'


class TestSaveAnalysis:
    """Tests for append-only analysis versions."""

    @pytest.mark.asyncio
    async def test_first_version(self, mock_db_pool) -> None:
        conn = _connection(mock_db_pool)
        conn.fetchrow.return_value = {'latest_version': 0}

        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool):
            stored = await save_analysis(_structural('c1'))

        assert stored.version == 1
        args = conn.execute.call_args.args
        assert args[0] == get_analysis_insert_query()
        assert args[1:5] == ('c1', 1, '2025.1', 'structural')
        assert args[5] is None
        assert args[6] is None
        assert args[7] == 'good'

    @pytest.mark.asyncio
    async def test_locks_call_before_reading_version(self, mock_db_pool) -> None:
        conn = _connection(mock_db_pool)
        order = []

        def record_execute(query, *args):
            order.append(query)

        def record_fetchrow(query, *args):
            order.append(query)
            return {'latest_version': 0}

        conn.execute.side_effect = record_execute
        conn.fetchrow.side_effect = record_fetchrow

        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool):
            await save_analysis(_structural('c1'))

        assert order == [
            get_analysis_lock_query(),
            get_latest_analysis_version_query(),
            get_analysis_insert_query(),
        ]
        assert conn.execute.call_args_list[0].args[1] == 'c1'

    @pytest.mark.asyncio
    async def test_appends_latest_plus_one(self, mock_db_pool) -> None:
        conn = _connection(mock_db_pool)
        conn.fetchrow.return_value = {'latest_version': 2}
        original = _structural('c1', version=1)

        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool):
            stored = await save_analysis(original)

        assert stored.version == 3
        assert original.version == 1
        stored_json = conn.execute.call_args.args[8]
        assert QualityAnalysis.model_validate_json(stored_json).version == 3

    @pytest.mark.asyncio
    async def test_save_analyses_skips_unanalyzed(self, mock_db_pool, call_record, unrecorded_call) -> None:
        conn = _connection(mock_db_pool)
        conn.fetchrow.return_value = {'latest_version': 0}
        calls = [
            ScoredCall(call=call_record, transcriptionStatus=TranscriptionStatus.PENDING),
            ScoredCall(
                call=unrecorded_call,
                transcriptionStatus=TranscriptionStatus.NOT_APPLICABLE,
                analysis=_structural('c3'),
            ),
        ]

        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool):
            assert await save_analyses(calls) == 1

        # lock + insert for the one analyzed call
        assert conn.execute.await_count == 2


class TestLoadScoredCalls:
    """Tests for loading calls with their latest analysis."""

    @pytest.mark.asyncio
    async def test_rows_become_pairs(self, mock_db_pool) -> None:
        base_row = {
            'campaign_id': 'CA1',
            'campaign_name': None,
            'agent_name': 'Sam',
            'duration_seconds': 45,
            'connected_duration_seconds': None,
            'recording_url': None,
            'start_time': START,
            'end_time': None,
            'status': 'connected',
            'disposition': 'converted',
            'raw_disposition': 'sale',
            'revenue': 12.5,
            'cost': 1.0,
            'caller_id': None,
            'publisher_name': None,
            'transcription_status': 'not_applicable',
            'updated_at': START,
        }
        conn = _connection(mock_db_pool)
        conn.fetch.return_value = [
            {**base_row, 'id': 'c3', 'analysis': _structural('c3', version=2).model_dump_json()},
            {**base_row, 'id': 'c4', 'analysis': None},
        ]

        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool):
            pairs = await load_scored_calls(START, END, campaign_id='CA1')

        assert conn.fetch.call_args.args[1:] == (START, END, 'CA1')
        (first_call, first_analysis), (second_call, second_analysis) = pairs
        assert first_call.id == 'c3'
        assert first_call.status == CallStatus.CONNECTED
        assert first_call.disposition == Disposition.CONVERTED
        assert first_analysis.version == 2
        assert second_call.id == 'c4'
        assert second_analysis is None

    @pytest.mark.asyncio
    async def test_window_without_campaign(self, mock_db_pool) -> None:
        conn = _connection(mock_db_pool)
        with patch('vocalytics.services.call_store.get_db_pool', return_value=mock_db_pool):
            assert await load_scored_calls(START, END) == []
        assert conn.fetch.call_args.args[1:] == (START, END)
