'''
Vocalytics Backend Test Suite

Test Modules:
-------------
- test_field_extractor.py: Alias order, coercion, status/disposition mapping
- test_payload_decoder.py: Wrapper shapes, JSON input, rejected payloads
- test_normalizer.py: Validity check, defaults, gap reporting, no dedup
- test_transcripts.py: Deepgram parsing, merge states, speaker turns
- test_sentiment.py: Distribution rules, provider segments, timeline
- test_conversion.py: Signal weights, stage/commitment, disposition override
- test_scoring.py: Rating boundaries, full/structural scoring, rescoring
- test_aggregation.py: Dedup by id, status buckets, averages
- test_pipeline.py: Order-preserving batch scoring, end-to-end runs
- test_suppliers.py: Ringba paging and Deepgram requests over MockTransport
- test_call_store.py: Upserts, append-only analysis versions, window loads
- test_api.py: Router status codes and payloads over ASGITransport

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

Test Dependencies:
------------------
- pytest==8.3.4
- pytest-asyncio==0.25.0
- httpx==0.28.1

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

# This file enables pytest discovery of the tests directory

__all__ = []
