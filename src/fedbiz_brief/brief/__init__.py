# ABOUTME: Brief module for daily brief aggregation and rendering.
# ABOUTME: Exports the BriefAggregator.

from fedbiz_brief.brief.aggregator import BriefAggregator

__all__ = ["BriefAggregator"]
