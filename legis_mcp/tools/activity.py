"""
Congress activity overview
Recent bills, enacted laws, House votes and floor activity for one congress, fetched side by side
"""

import asyncio
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from ..legislation import bill_number_of, bill_type_of, extract_law_number, get_current_congress, is_enacted_bill
from .base import ToolContext, ToolSpec, text_result
from .bills import ENACTED_FETCH_LIMIT
from .votes import FIRST_HOUSE_VOTE_CONGRESS

logger = structlog.get_logger()

RECENT_DAYS = 30
RECENT_FETCH_LIMIT = 50
VOTE_FETCH_LIMIT = 10
SECTION_SIZE = 5

FLOOR_KEYWORDS = re.compile(r"passed|agreed|vote|cloture|veto|signed by president|became public law", re.I)


class CongressSummaryParams(BaseModel):
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number; defaults to the current congress")


def _label(bill: Dict[str, Any]) -> str:
    return f"{bill_type_of(bill).upper()} {bill_number_of(bill)}"


async def handle_congress_summary(params: CongressSummaryParams, ctx: ToolContext):
    congress = params.congress or get_current_congress()
    since = (datetime.now(timezone.utc) - timedelta(days=RECENT_DAYS)).strftime("%Y-%m-%dT%H:%M:%SZ")
    has_votes = congress >= FIRST_HOUSE_VOTE_CONGRESS

    fetches = {
        "recent bills": ctx.api.search_collection(
            "bill", limit=RECENT_FETCH_LIMIT, sort="updateDate+desc",
            filters={"congress": congress, "fromDateTime": since},
        ),
        "enacted laws": ctx.api.search_collection(
            "bill", limit=ENACTED_FETCH_LIMIT, sort="updateDate+desc", filters={"congress": congress},
        ),
    }
    if has_votes:
        fetches["House votes"] = ctx.api.search_collection(
            "house-vote", limit=VOTE_FETCH_LIMIT, filters={"congress": congress},
        )

    results = dict(zip(fetches, await asyncio.gather(*fetches.values(), return_exceptions=True)))
    unavailable: List[str] = []
    for name, result in results.items():
        if isinstance(result, BaseException):
            logger.warning("summary_section_failed", section=name, error=str(result))
            unavailable.append(name)
            results[name] = {}

    recent = results["recent bills"].get("bills") or []
    enacted = [b for b in results["enacted laws"].get("bills") or [] if is_enacted_bill(b)]
    vote_data = results.get("House votes") or {}
    votes = vote_data.get("houseRollCallVotes") or vote_data.get("houseVotes") or vote_data.get("votes") or []
    floor = [b for b in recent if FLOOR_KEYWORDS.search((b.get("latestAction") or {}).get("text") or "")]

    lines = [
        f"# Congressional Activity Summary - {congress}th Congress",
        "",
        "## Overview",
        f"- **Bills updated (last {RECENT_DAYS} days):** {len(recent)}",
        f"- **Laws enacted this Congress:** {len(enacted)}",
    ]
    if has_votes:
        lines.append(f"- **Recent House roll call votes:** {len(votes)}")
    lines += [f"- **Bills with floor activity (last {RECENT_DAYS} days):** {len(floor)}", ""]

    if enacted:
        lines.append("## Recently Enacted Laws")
        for i, bill in enumerate(enacted[:SECTION_SIZE], start=1):
            latest = bill.get("latestAction") or {}
            law_number = extract_law_number(latest.get("text"))
            heading = f"{i}. **{_label(bill)}**"
            if law_number:
                heading += f" (P.L. {law_number})"
            lines += [f"{heading} - {bill.get('title')}", f"   Enacted: {latest.get('actionDate') or 'Unknown'}"]
        if len(enacted) > SECTION_SIZE:
            lines += ["", f"_{len(enacted) - SECTION_SIZE} more enacted laws; use `list_enacted_laws` for the full list._"]
        lines.append("")

    if votes:
        lines.append("## Recent House Votes")
        for i, vote in enumerate(votes[:SECTION_SIZE], start=1):
            roll = vote.get("rollCallNumber") or vote.get("rollNumber") or "?"
            date = vote.get("startDate") or vote.get("date") or vote.get("actionDate") or "Unknown"
            lines += [
                f"{i}. **Roll Call #{roll}** ({date}) - {vote.get('result') or 'Unknown'}",
                f"   {vote.get('question') or vote.get('voteType') or vote.get('title') or 'Unknown'}",
            ]
            bill = vote.get("bill") or {}
            leg_type = vote.get("legislationType") or bill.get("type") or ""
            leg_number = vote.get("legislationNumber") or bill.get("number") or ""
            if leg_type or leg_number:
                lines.append(f"   Legislation: {str(leg_type).upper()} {leg_number}")
        if len(votes) > SECTION_SIZE:
            lines += ["", "_Use `list_house_votes` for more votes._"]
        lines.append("")

    if floor:
        lines.append("## Recent Floor Activity")
        for i, bill in enumerate(floor[:SECTION_SIZE], start=1):
            latest = bill.get("latestAction") or {}
            lines += [
                f"{i}. **{_label(bill)}** - {bill.get('title')}",
                f"   Action: {latest.get('text')} ({latest.get('actionDate')})",
            ]
        if len(floor) > SECTION_SIZE:
            lines += ["", f"_{len(floor) - SECTION_SIZE} more; use `list_recent_bills` or `trending_bills` for details._"]
        lines.append("")

    if unavailable:
        lines += [f"_Could not load: {', '.join(unavailable)}._", ""]
    lines.append(f"_Data fetched {datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')}_")
    return text_result("\n".join(lines) + "\n")


TOOL = ToolSpec(
    name="congress_summary",
    description="""High-level overview of current congressional activity: bills updated in the last 30 days,
laws enacted this congress, recent House roll call votes and bills with floor activity.
Use it for broad questions such as "What is Congress doing lately?".""",
    params=CongressSummaryParams,
    handler=handle_congress_summary,
    action="generate Congress summary",
)
