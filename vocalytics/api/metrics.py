"""
FastAPI router module for campaign and agent metrics.

Implements GET /metrics?groupBy=campaign|agent&start=...&end=...&campaignId=...

Metrics are recomputed from stored calls and their latest analyses on every
request; they are never read from a stored aggregate.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from vocalytics.models import GroupBy, MetricsResponse
from vocalytics.services.aggregation import aggregate
from vocalytics.services.call_store import load_scored_calls


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


@router.get("", response_model=MetricsResponse)
async def get_metrics(
    start: datetime = Query(..., description="Window start (call start time)"),
    end: datetime = Query(..., description="Window end (call start time)"),
    group_by: GroupBy = Query(default=GroupBy.CAMPAIGN, alias="groupBy"),
    campaign_id: Optional[str] = Query(default=None, alias="campaignId"),
) -> MetricsResponse:
    """
    Aggregate stored calls in [start, end] by campaign or agent.

    Returns:
        MetricsResponse with one entry per group, sorted by group key.
    """
    if end < start:
        raise HTTPException(status_code=400, detail="end must not precede start")

    try:
        scored = await load_scored_calls(start, end, campaign_id)
        return MetricsResponse(
            groupBy=group_by,
            start=start,
            end=end,
            metrics=aggregate(scored, group_by),
        )
    except Exception as e:
        logger.exception("Error computing metrics")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute metrics: {str(e)}"
        )
