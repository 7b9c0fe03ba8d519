"""MCP tools over the Congress.gov service"""

from typing import Dict

from . import (
    activity,
    analysis,
    bills,
    committees,
    hearings,
    members,
    nominations,
    record,
    subresource,
    summaries,
    trending,
    votes,
)
from .base import ToolContext, ToolSpec, run_tool

ALL_TOOLS = [
    analysis.TOOL,
    bills.GET_BILL,
    bills.LIST_RECENT_BILLS,
    bills.LIST_ENACTED_LAWS,
    trending.TOOL,
    activity.TOOL,
    committees.TOOL,
    hearings.TOOL,
    nominations.TOOL,
    votes.TOOL,
    summaries.TOOL,
    record.TOOL,
    members.MEMBER_SEARCH,
    members.MEMBER_DETAILS,
    subresource.TOOL,
]

TOOLS: Dict[str, ToolSpec] = {spec.name: spec for spec in ALL_TOOLS}

__all__ = ["ALL_TOOLS", "TOOLS", "ToolContext", "ToolSpec", "run_tool"]
