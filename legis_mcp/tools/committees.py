"""
Committee tool
List mode browses or name-searches committees; detail mode profiles one committee by system code
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..capabilities import build_resource_uri
from ..errors import InvalidParameterError
from ..legislation import as_list
from .base import ToolContext, ToolSpec, text_result

NAME_SEARCH_FETCH_LIMIT = 250

CODE_PREFIX_CHAMBERS = {"h": "house", "s": "senate", "j": "joint"}

ACTIVITY_SECTIONS = [
    ("bills", "Bills Referred"),
    ("reports", "Committee Reports"),
    ("nominations", "Nominations"),
    ("houseCommunications", "House Communications"),
    ("senateCommunications", "Senate Communications"),
]


class ListCommitteesParams(BaseModel):
    chamber: Optional[Literal["house", "senate", "joint"]] = Field(None, description="Filter by chamber: house, senate, or joint")
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number")
    query: Optional[str] = Field(None, description="Case-insensitive filter on committee name, applied locally")
    committee_code: Optional[str] = Field(None, description="System code (e.g. 'hspw00') for a detailed committee profile")
    limit: int = Field(20, ge=1, le=100, description="Maximum number of committees to return (max 100)")
    offset: int = Field(0, ge=0, description="Number of committees to skip for pagination")


def format_chamber(chamber: Optional[str]) -> str:
    if not chamber:
        return "N/A"
    return chamber[:1].upper() + chamber[1:].lower()


async def committee_detail(code: str, congress: Optional[int], ctx: ToolContext):
    chamber = CODE_PREFIX_CHAMBERS.get(code[:1].lower())
    if chamber is None:
        raise InvalidParameterError(
            f'Unable to determine chamber from committee code "{code}". '
            "Codes start with h (House), s (Senate), or j (Joint)."
        )

    data = await ctx.api.get_committee_details(chamber, code, congress)
    committee = data.get("committee") or data

    # The detail record has no top-level name; the newest history entry carries it
    history = as_list(committee.get("history"))
    current_name = (history[0].get("officialName") or history[0].get("name") or code) if history else code

    lines = [
        f"## Committee: {committee.get('name') or current_name}",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| System Code | {committee.get('systemCode') or code} |",
        f"| Chamber | {format_chamber(chamber)} |",
        f"| Type | {committee.get('type') or 'N/A'} |",
        f"| Active | {committee.get('isCurrent', 'N/A')} |",
    ]
    if committee.get("committeeWebsiteUrl"):
        lines.append(f"| Official Website | {committee['committeeWebsiteUrl']} |")
    lines.append("")

    subcommittees = as_list(committee.get("subcommittees"))
    if subcommittees:
        lines += [f"### Subcommittees ({len(subcommittees)})", ""]
        lines += [f"- **{s.get('name') or 'Unknown'}** ({s.get('systemCode') or ''})" for s in subcommittees]
        lines.append("")

    activity = [
        f"- {label}: {committee[key]['count']}"
        for key, label in ACTIVITY_SECTIONS
        if isinstance(committee.get(key), dict) and committee[key].get("count") is not None
    ]
    if activity:
        lines += ["### Activity Counts", ""] + activity + [""]

    if history:
        lines += ["### Name History", ""]
        for entry in history:
            start = (entry.get("startDate") or "?").split("T")[0]
            end = (entry.get("endDate") or "present").split("T")[0]
            lines.append(f"- {entry.get('officialName') or entry.get('name') or 'Unknown'} ({start} to {end})")
        lines.append("")

    lines += [
        "---",
        f"*Use the `get_subresource` tool with `{build_resource_uri('committee', chamber, code)}` "
        "to access bills, reports, or nominations for this committee.*",
    ]
    return text_result("\n".join(lines) + "\n")


async def committee_list(params: ListCommitteesParams, ctx: ToolContext):
    filters = {"congress": params.congress, "chamber": params.chamber}
    if params.query:
        data = await ctx.api.search_collection("committee", limit=NAME_SEARCH_FETCH_LIMIT, offset=0, filters=filters)
        q = params.query.lower()
        committees = [c for c in data.get("committees") or [] if q in (c.get("name") or "").lower()]
        committees = committees[params.offset:params.offset + params.limit]
    else:
        data = await ctx.api.search_collection("committee", limit=params.limit, offset=params.offset, filters=filters)
        committees = data.get("committees") or []

    title = "## Congressional Committees"
    if params.chamber:
        title += f" - {format_chamber(params.chamber)}"
    if params.congress:
        title += f" ({params.congress}th Congress)"
    if params.query:
        title += f' matching "{params.query}"'
    lines = [title, "", f"Found {len(committees)} committee(s):", ""]

    for i, c in enumerate(committees):
        line = f"   Chamber: {format_chamber(c.get('chamber'))}"
        committee_type = c.get("committeeTypeCode") or c.get("type")
        if committee_type:
            line += f" | Type: {committee_type}"
        line += f" | Code: `{c.get('systemCode') or ''}`"
        lines += [f"{params.offset + i + 1}. **{c.get('name') or 'Unknown Committee'}**", line]
        subs = as_list(c.get("subcommittees"))
        if subs:
            lines.append(f"   Subcommittees: {len(subs)}")
        lines.append("")

    # Name matches come from one local window; an upstream offset would not line up
    if not params.query and len(committees) == params.limit:
        lines.append(
            f"Showing {params.offset + 1}-{params.offset + len(committees)}. "
            f"Use offset={params.offset + params.limit} for more."
        )
    lines += ["", "*Use committee_code for detailed info, or the `get_subresource` tool for bills/reports/nominations.*"]
    return text_result("\n".join(lines) + "\n")


async def handle_list_committees(params: ListCommitteesParams, ctx: ToolContext):
    if params.committee_code:
        return await committee_detail(params.committee_code, params.congress, ctx)
    return await committee_list(params, ctx)


TOOL = ToolSpec(
    name="list_committees",
    description="""Browse and search congressional committees by chamber and congress.
List mode returns name, chamber, type, system code and subcommittee count; pass committee_code
(e.g. "hspw00") for a full profile with subcommittees, activity counts and name history.""",
    params=ListCommitteesParams,
    handler=handle_list_committees,
    action="list committees",
)
