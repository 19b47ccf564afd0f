"""Batch application: content blocks, lane processors, scheduler, trigger, tools."""

from content_spine.batch.lanes import HeadingsLane, LaneProcessor, TitlesLane, build_lanes
from content_spine.batch.scheduler import BatchScheduler
from content_spine.batch.trigger import IntervalTrigger, NullTrigger

__all__ = [
    "BatchScheduler",
    "HeadingsLane",
    "IntervalTrigger",
    "LaneProcessor",
    "NullTrigger",
    "TitlesLane",
    "build_lanes",
]
