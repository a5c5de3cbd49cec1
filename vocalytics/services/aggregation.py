"""
Aggregation Service

Rolls scored calls up into per-campaign or per-agent metrics.

Aggregates are always a projection over scored calls and are never stored as
a source of truth. Calls are deduplicated by id (the last occurrence wins),
so overlapping fetch windows never double-count a call.

Metric definitions:
- completedCalls: status connected
- rejectedCalls:  status rejected, busy or failed
- skippedCalls:   status missed or no_answer
- scoredCalls:    calls whose analysis carries an overallScore
- averageScore:   mean overallScore of scored calls (None when none scored)
- conversions:    analysis conversionAchieved when present, else disposition converted
- conversionRate: conversions / totalCalls * 100
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from vocalytics.models import (
    AgentMetrics,
    CallRecord,
    CallStatus,
    CampaignMetrics,
    Disposition,
    GroupBy,
    GroupMetrics,
    OverallRating,
    QualityAnalysis,
    RatingDistribution,
    ScoredCall,
)
from vocalytics.services.numeric import round_half_up

# Configure module logger
logger = logging.getLogger(__name__)

REJECTED_STATUSES = frozenset({CallStatus.REJECTED, CallStatus.BUSY, CallStatus.FAILED})
SKIPPED_STATUSES = frozenset({CallStatus.MISSED, CallStatus.NO_ANSWER})

ScoredPair = Tuple[CallRecord, Optional[QualityAnalysis]]


def _converted(call: CallRecord, analysis: Optional[QualityAnalysis]) -> bool:
    if analysis is not None and analysis.businessConversion is not None:
        return analysis.businessConversion.conversionAchieved
    return call.disposition == Disposition.CONVERTED


def _group_fields(call: CallRecord, group_by: GroupBy) -> Tuple[str, Optional[str]]:
    if group_by == GroupBy.CAMPAIGN:
        return call.campaignId, call.campaignName
    return call.agentName, call.agentName


def _build_frame(scored: Iterable[ScoredPair], group_by: GroupBy) -> pd.DataFrame:
    rows = []
    for call, analysis in scored:
        group_key, group_name = _group_fields(call, group_by)
        score = analysis.overallScore if analysis is not None else None
        rating = analysis.overallRating if analysis is not None else None
        rows.append({
            "id": call.id,
            "group_key": group_key,
            "group_name": group_name,
            "completed": call.status == CallStatus.CONNECTED,
            "rejected": call.status in REJECTED_STATUSES,
            "skipped": call.status in SKIPPED_STATUSES,
            "score": np.nan if score is None else score,
            "good": rating == OverallRating.GOOD,
            "bad": rating == OverallRating.BAD,
            "ugly": rating == OverallRating.UGLY,
            "duration_seconds": call.durationSeconds,
            "converted": _converted(call, analysis),
            "revenue": call.revenue,
            "cost": call.cost,
        })
    return pd.DataFrame(rows)


def aggregate(scored: Sequence[ScoredPair], group_by: GroupBy = GroupBy.CAMPAIGN) -> List[GroupMetrics]:
    """
    Aggregate scored calls by campaign or agent.

    Args:
        scored: (CallRecord, QualityAnalysis or None) pairs. Not mutated.
        group_by: Grouping key.

    Returns:
        One CampaignMetrics/AgentMetrics per group, sorted by group key.
    """
    if not scored:
        return []

    df = _build_frame(scored, group_by)
    before = len(df)
    df = df.drop_duplicates(subset="id", keep="last")
    if len(df) < before:
        logger.info(f"Dropped {before - len(df)} duplicate call ids before aggregation")

    grouped = df.groupby("group_key", sort=True).agg(
        group_name=("group_name", "last"),
        total_calls=("id", "size"),
        completed_calls=("completed", "sum"),
        rejected_calls=("rejected", "sum"),
        skipped_calls=("skipped", "sum"),
        scored_calls=("score", "count"),
        average_score=("score", "mean"),
        good=("good", "sum"),
        bad=("bad", "sum"),
        ugly=("ugly", "sum"),
        total_seconds=("duration_seconds", "sum"),
        conversions=("converted", "sum"),
        revenue=("revenue", "sum"),
        cost=("cost", "sum"),
    )

    grouped["total_minutes"] = grouped["total_seconds"] / 60.0
    grouped["average_minutes"] = np.where(
        grouped["total_calls"] > 0,
        grouped["total_minutes"] / grouped["total_calls"],
        0.0,
    )
    grouped["conversion_rate"] = np.where(
        grouped["total_calls"] > 0,
        grouped["conversions"] / grouped["total_calls"] * 100,
        0.0,
    )

    model = CampaignMetrics if group_by == GroupBy.CAMPAIGN else AgentMetrics
    metrics: List[GroupMetrics] = []
    for group_key, row in grouped.iterrows():
        total = int(row["total_calls"])
        scored_calls = int(row["scored_calls"])
        group_name = row["group_name"]
        metrics.append(model(
            groupKey=str(group_key),
            groupName=None if pd.isna(group_name) else str(group_name),
            totalCalls=total,
            completedCalls=int(row["completed_calls"]),
            rejectedCalls=int(row["rejected_calls"]),
            skippedCalls=int(row["skipped_calls"]),
            scoredCalls=scored_calls,
            unscoredCalls=total - scored_calls,
            averageScore=round_half_up(float(row["average_score"])) if scored_calls else None,
            ratingDistribution=RatingDistribution(
                GOOD=int(row["good"]), BAD=int(row["bad"]), UGLY=int(row["ugly"])
            ),
            totalAudioMinutes=round_half_up(float(row["total_minutes"])),
            averageCallMinutes=round_half_up(float(row["average_minutes"])),
            conversions=int(row["conversions"]),
            conversionRate=round_half_up(float(row["conversion_rate"])),
            revenue=round_half_up(float(row["revenue"]), 2),
            cost=round_half_up(float(row["cost"]), 2),
        ))

    logger.info(f"Aggregated {len(df)} calls into {len(metrics)} {group_by.value} groups")
    return metrics


def aggregate_scored_calls(calls: Sequence[ScoredCall], group_by: GroupBy = GroupBy.CAMPAIGN) -> List[GroupMetrics]:
    """Aggregate pipeline output; calls with a scoring error count as unscored."""
    return aggregate([(scored.call, scored.analysis) for scored in calls], group_by)
