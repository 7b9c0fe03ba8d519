"""
Bill tools
Direct bill lookup plus recent-bill and enacted-law listings
"""

from datetime import datetime, timedelta, timezone
from typing import List, Literal, Optional

import structlog
from pydantic import BaseModel, Field

from ..capabilities import build_resource_uri
from ..errors import CongressMcpError
from ..legislation import (
    bill_number_of,
    bill_type_of,
    extract_law_number,
    find_votes_in_actions,
    format_sponsor,
    get_current_congress,
    get_vote_annotation,
    is_enacted_bill,
    policy_area_name,
    strip_html,
    truncate_text,
)
from .base import ToolContext, ToolSpec, text_result

logger = structlog.get_logger()

ENACTED_FETCH_LIMIT = 250

TIMEFRAME_DAYS = {
    "month": 30,
    "quarter": 90,
    "halfyear": 180,
    "year": 365,
    "all": None,
}


class GetBillParams(BaseModel):
    congress: int = Field(..., ge=100, le=150, description="Congress number (e.g. 119)")
    bill_type: str = Field(..., min_length=1, description="Bill type: hr, s, hjres, sjres, hconres, sconres, hres, sres")
    bill_number: int = Field(..., ge=1, description="Bill number (e.g. 1234)")


class ListRecentBillsParams(BaseModel):
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number; defaults to the current congress")
    bill_type: Optional[str] = Field(None, description="Filter by bill type: hr, s, hjres, sjres, hconres, sconres, hres, sres")
    limit: int = Field(20, ge=1, le=100, description="Number of bills to return (max 100)")
    offset: int = Field(0, ge=0, description="Number of bills to skip for pagination")


class ListEnactedLawsParams(BaseModel):
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number; defaults to the current congress")
    timeframe: Literal["month", "quarter", "halfyear", "year", "all"] = Field(
        "halfyear", description="How far back to search: month (30d), quarter (90d), halfyear (180d), year (365d), or all"
    )
    limit: int = Field(20, ge=1, le=50, description="Maximum enacted laws to return (max 50)")


async def handle_get_bill(params: GetBillParams, ctx: ToolContext):
    bill_type = params.bill_type.lower()
    data = await ctx.api.get_bill_details(params.congress, bill_type, params.bill_number)
    bill = data.get("bill") or data

    display_type = (bill_type_of(bill) or bill_type).upper()
    number = bill_number_of(bill) or params.bill_number
    congress = bill.get("congress") or params.congress

    lines: List[str] = [
        f"# {display_type} {number} - {congress}th Congress",
        "",
        f"## {bill.get('title')}",
        "",
        "### Basic Information",
        f"- **Bill Type**: {display_type}",
        f"- **Number**: {number}",
        f"- **Congress**: {congress}th",
        f"- **Introduced**: {bill.get('introducedDate')}",
    ]
    if bill.get("url"):
        lines.append(f"- **Congress.gov URL**: {bill['url']}")
    lines.append("")

    sponsors = bill.get("sponsors") or []
    if sponsors:
        sponsor = sponsors[0]
        name = sponsor.get("fullName") or f"{sponsor.get('firstName', '')} {sponsor.get('lastName', '')}".strip()
        lines += ["### Sponsor", f"- **Name**: {name}"]
        if sponsor.get("party"):
            lines.append(f"- **Party**: {sponsor['party']}")
        if sponsor.get("state"):
            lines.append(f"- **State**: {sponsor['state']}")
        if sponsor.get("bioguideId"):
            lines.append(f"- **Bioguide ID**: {sponsor['bioguideId']}")
        lines.append("")

    lines.append("### Current Status")
    latest = bill.get("latestAction")
    if latest:
        lines.append(f"- **Latest Action**: {latest.get('text')}")
        lines.append(f"- **Action Date**: {latest.get('actionDate')}")
        if is_enacted_bill(bill):
            law_number = extract_law_number(latest.get("text"))
            if law_number:
                lines.append(f"- **Law Number**: {law_number}")
    lines.append("")

    if bill.get("policyArea"):
        lines += ["### Policy Area", f"- {policy_area_name(bill['policyArea'])}", ""]

    summaries = bill.get("summaries")
    if isinstance(summaries, list) and summaries:
        lines += ["### Summary", truncate_text(strip_html(summaries[0].get("text"))) or "", ""]

    parent_uri = build_resource_uri("bill", params.congress, bill_type, params.bill_number)
    try:
        actions = await ctx.api.get_sub_resource(parent_uri, "actions", limit=100)
    except CongressMcpError as e:
        # Votes are supplementary; the report stands without them
        logger.warning("sub_fetch_failed", subresource="actions", uri=parent_uri, error=e.message)
        actions = None

    votes = find_votes_in_actions((actions or {}).get("actions") or [])
    if votes:
        lines.append("### Recorded Votes")
        for vote in votes:
            entry = f"- **{vote['chamber'] or 'Unknown chamber'}** "
            entry += f"Roll #{vote['rollNumber']}" if vote["rollNumber"] else "vote"
            vote_date = vote["date"] or vote["actionDate"]
            if vote_date:
                entry += f" ({vote_date})"
            if vote["url"]:
                entry += f" - [Details]({vote['url']})"
            lines.append(entry)
        lines.append("")

    lines += [
        "### Additional Resources",
        "To get more details about this bill, you can use:",
        f'- `analyze_bill` tool with query "{bill_type}{params.bill_number}" and congress {params.congress}',
        f'- `get_subresource` tool with parent_uri "{parent_uri}" for actions, cosponsors, text, etc.',
    ]
    return text_result("\n".join(lines) + "\n")


def _bill_listing(index: int, bill: dict, congress_fallback=None) -> List[str]:
    bill_type = bill_type_of(bill).upper()
    number = bill_number_of(bill)
    congress = bill.get("congress") or congress_fallback or ""
    lines = [
        f"{index}. **{bill_type} {number}** ({congress}th Congress)",
        f"   Title: {bill.get('title')}",
    ]
    sponsors = bill.get("sponsors") or []
    if sponsors:
        lines.append(f"   Sponsor: {format_sponsor(sponsors[0])}")
    latest = bill.get("latestAction")
    if latest:
        line = f"   Latest Action: {latest.get('text')} ({latest.get('actionDate')})"
        note = get_vote_annotation(latest.get("text"))
        if note:
            line += f" {note}"
        lines.append(line)
    if bill.get("policyArea"):
        lines.append(f"   Policy Area: {policy_area_name(bill['policyArea'])}")
    lines.append(f"   Bill ID: {congress}-{bill_type.lower()}-{number}")
    lines.append("")
    return lines


async def handle_list_recent_bills(params: ListRecentBillsParams, ctx: ToolContext):
    filters = {"congress": params.congress or get_current_congress()}
    if params.bill_type:
        filters["billType"] = params.bill_type.lower()

    data = await ctx.api.search_collection(
        "bill",
        limit=params.limit,
        offset=params.offset,
        sort="updateDate+desc",
        filters=filters,
    )
    bills = data.get("bills") or []

    header = f"Found {len(bills)} recent bills"
    if params.congress:
        header += f" from the {params.congress}th Congress"
    if params.bill_type:
        header += f" of type {params.bill_type.upper()}"
    lines = [header + ":", ""]

    for i, bill in enumerate(bills):
        lines += _bill_listing(params.offset + i + 1, bill, filters["congress"])

    if len(bills) == params.limit:
        lines.append(
            f"Showing {params.offset + 1}-{params.offset + len(bills)} results. "
            f"Use offset={params.offset + params.limit} to see more."
        )
    return text_result("\n".join(lines))


async def handle_list_enacted_laws(params: ListEnactedLawsParams, ctx: ToolContext):
    congress = params.congress or get_current_congress()
    filters = {"congress": congress}

    days = TIMEFRAME_DAYS[params.timeframe]
    if days is not None:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        filters["fromDateTime"] = since.strftime("%Y-%m-%dT%H:%M:%SZ")

    # Enacted status is only visible in the action text, so filter locally
    data = await ctx.api.search_collection(
        "bill",
        limit=ENACTED_FETCH_LIMIT,
        sort="updateDate+desc",
        filters=filters,
    )
    enacted = [b for b in data.get("bills") or [] if is_enacted_bill(b)][:params.limit]

    title = f"## Enacted Laws - {congress}th Congress"
    if params.timeframe != "all":
        title += f" (last {params.timeframe})"
    lines = [title, "", f"Found {len(enacted)} enacted law(s):", ""]
    if not enacted:
        lines += ["No enacted laws found for this time period. Try a broader timeframe.", ""]

    for i, bill in enumerate(enacted, start=1):
        bill_type = bill_type_of(bill).upper()
        number = bill_number_of(bill)
        latest = bill.get("latestAction") or {}
        law_number = extract_law_number(latest.get("text"))

        heading = f"{i}. **{bill_type} {number}**"
        if law_number:
            heading += f" - P.L. {law_number}"
        lines += [heading, f"   Title: {bill.get('title')}"]
        sponsors = bill.get("sponsors") or []
        if sponsors:
            lines.append(f"   Sponsor: {format_sponsor(sponsors[0])}")
        lines.append(f"   Enacted: {latest.get('actionDate')}")
        lines.append(f"   Action: {latest.get('text')}")
        if bill.get("policyArea"):
            lines.append(f"   Policy Area: {policy_area_name(bill['policyArea'])}")
        lines += [f"   Bill ID: {bill.get('congress') or congress}-{bill_type.lower()}-{number}", ""]

    return text_result("\n".join(lines))


GET_BILL = ToolSpec(
    name="get_bill",
    description="""Detailed information about a specific bill when the congress, bill type and number are known:
title, sponsor, latest action, policy area, summary, recorded votes and a Congress.gov link.""",
    params=GetBillParams,
    handler=handle_get_bill,
    action="get bill details",
)

LIST_RECENT_BILLS = ToolSpec(
    name="list_recent_bills",
    description="""Lists recent congressional bills sorted by date of latest action.
Use it to see what is currently active in Congress and to find bill identifiers for further analysis.""",
    params=ListRecentBillsParams,
    handler=handle_list_recent_bills,
    action="list recent bills",
)

LIST_ENACTED_LAWS = ToolSpec(
    name="list_enacted_laws",
    description="""Bills that have been enacted into law (signed by the President or otherwise became law),
with public law numbers. Answers questions like "What laws were enacted recently?" for a congress.""",
    params=ListEnactedLawsParams,
    handler=handle_list_enacted_laws,
    action="list enacted laws",
)
