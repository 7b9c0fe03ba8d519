"""
Nomination tool
Presidential nominations with a local civilian/military filter and derived status labels
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from ..capabilities import build_resource_uri
from ..legislation import get_current_congress
from .base import ToolContext, ToolSpec, text_result

TYPE_FILTER_MULTIPLIER = 3
TYPE_FILTER_FETCH_CAP = 250
DESCRIPTION_LIMIT = 200

# First match wins
STATUS_PHRASES = [
    ("confirmed", "Confirmed"),
    ("withdrawn", "Withdrawn"),
    ("returned to the president", "Returned to President"),
    ("reported", "Reported"),
    ("referred", "Referred to Committee"),
    ("received", "Received"),
    ("placed on", "On Calendar"),
]


class ListNominationsParams(BaseModel):
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number; defaults to the current congress")
    nomination_number: Optional[int] = Field(None, ge=1, description="Nomination number for a detailed profile (e.g. 1064 for PN1064)")
    type: Optional[Literal["civilian", "military"]] = Field(None, description="Filter by nomination type")
    limit: int = Field(20, ge=1, le=50, description="Maximum number of nominations to return (max 50)")
    offset: int = Field(0, ge=0, description="Number of nominations to skip for pagination")


def _flag(value: Any) -> bool:
    # The API sends these as the strings "True"/"False" or as booleans
    return value is True or value == "True"


def nomination_type(nomination: Dict[str, Any]) -> str:
    flags = nomination.get("nominationType") or nomination
    civilian = _flag(flags.get("isCivilian"))
    military = _flag(flags.get("isMilitary"))
    if civilian and military:
        return "Civilian/Military"
    if civilian:
        return "Civilian"
    if military:
        return "Military"
    return "Unknown"


def derive_status(action_text: Optional[str]) -> str:
    if not action_text:
        return "Pending"
    text = action_text.lower()
    for phrase, label in STATUS_PHRASES:
        if phrase in text:
            return label
    return "Pending"


def _count(section: Any) -> int:
    if isinstance(section, dict):
        return section.get("count") or 0
    return 0


async def nomination_detail(congress: int, number: int, ctx: ToolContext):
    data = await ctx.api.get_nomination_details(congress, number)
    nom = data.get("nomination") or data

    lines = [
        f"## Nomination: {nom.get('citation') or f'PN{number}'} ({congress}th Congress)",
        "",
        f"**Description:** {nom.get('description') or 'N/A'}",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Received Date | {nom.get('receivedDate') or 'N/A'} |",
        f"| Type | {nomination_type(nom)} |",
        f"| Privileged | {nom.get('isPrivileged', 'N/A')} |",
        f"| List Service | {nom.get('isList', 'N/A')} |",
    ]
    if nom.get("executiveCalendarNumber"):
        lines.append(f"| Executive Calendar # | {nom['executiveCalendarNumber']} |")
    if nom.get("authorityDate"):
        lines.append(f"| Authority Date | {nom['authorityDate']} |")
    lines.append("")

    positions = nom.get("nomineePositions")
    if isinstance(positions, dict):
        positions = positions.get("item")
    positions = positions or nom.get("positions") or []
    if positions:
        lines += ["### Nominee Positions", ""]
        for pos in positions:
            lines.append(f"- **{pos.get('positionTitle') or pos.get('name') or 'N/A'}**")
            line = f"  Organization: {pos.get('organization') or 'N/A'}"
            if pos.get("nomineeCount"):
                line += f" | Nominees: {pos['nomineeCount']}"
            lines.append(line)
        lines.append("")

    committees = _count(nom.get("committees"))
    if committees:
        lines += [f"### Committee Referrals ({committees})", "",
                  f"This nomination has been referred to {committees} committee(s).", ""]

    actions = _count(nom.get("actions"))
    if actions:
        lines += [f"### Actions Timeline ({actions})", "",
                  f"This nomination has {actions} recorded action(s).", ""]

    latest = nom.get("latestAction")
    if latest:
        lines += [
            "### Latest Action",
            "",
            f"**{latest.get('actionDate') or 'N/A'}:** {latest.get('text') or 'N/A'}",
            "",
            f"Status: **{derive_status(latest.get('text'))}**",
            "",
        ]

    hearings = _count(nom.get("hearings"))
    if hearings:
        lines += [f"### Hearings ({hearings})", "", f"{hearings} hearing(s) associated with this nomination.", ""]

    lines += [
        "---",
        f"*Use the `get_subresource` tool with `{build_resource_uri('nomination', congress, number)}` "
        "to access actions, committees, or hearings.*",
    ]
    return text_result("\n".join(lines) + "\n")


async def nomination_list(congress: int, params: ListNominationsParams, ctx: ToolContext):
    if params.type:
        # nominationType cannot be filtered upstream
        fetch_limit = min(params.limit * TYPE_FILTER_MULTIPLIER, TYPE_FILTER_FETCH_CAP)
        data = await ctx.api.search_collection("nomination", limit=fetch_limit, offset=0, filters={"congress": congress})
        want_civilian = params.type == "civilian"
        nominations = [
            n for n in data.get("nominations") or []
            if _flag((n.get("nominationType") or {}).get("isCivilian")) == want_civilian
        ]
        nominations = nominations[params.offset:params.offset + params.limit]
    else:
        data = await ctx.api.search_collection(
            "nomination", limit=params.limit, offset=params.offset, filters={"congress": congress}
        )
        nominations = data.get("nominations") or []

    title = f"## Presidential Nominations - {congress}th Congress"
    if params.type:
        title += f" ({params.type})"
    lines = [title, "", f"Found {len(nominations)} nomination(s):", ""]

    for i, n in enumerate(nominations):
        description = n.get("description") or "No description"
        if len(description) > DESCRIPTION_LIMIT:
            description = description[:DESCRIPTION_LIMIT] + "..."
        citation = n.get("citation") or f"PN{n.get('number') or '?'}"
        lines += [
            f"{params.offset + i + 1}. **{citation}** - {n.get('receivedDate') or 'Unknown date'}",
            f"   {description}",
        ]
        if n.get("organization"):
            lines.append(f"   Organization: {n['organization']}")
        lines.append(f"   Type: {nomination_type(n)}")
        latest = n.get("latestAction")
        if latest:
            lines.append(
                f"   Latest Action ({latest.get('actionDate') or '?'}): {latest.get('text') or 'N/A'} "
                f"[**{derive_status(latest.get('text'))}**]"
            )
        lines.append("")

    # Type matches come from one over-fetched window; an upstream offset would not line up
    if not params.type and len(nominations) == params.limit:
        lines.append(
            f"Showing {params.offset + 1}-{params.offset + len(nominations)}. "
            f"Use offset={params.offset + params.limit} for more."
        )
    lines += ["", "*Use nomination_number for full details on a specific nomination.*"]
    return text_result("\n".join(lines) + "\n")


async def handle_list_nominations(params: ListNominationsParams, ctx: ToolContext):
    congress = params.congress or get_current_congress()
    if params.nomination_number:
        return await nomination_detail(congress, params.nomination_number, ctx)
    return await nomination_list(congress, params, ctx)


TOOL = ToolSpec(
    name="list_nominations",
    description="""Track presidential nominations: judicial, cabinet, agency and military positions.
List mode returns citation, description, received date and status; pass nomination_number
(e.g. 1064 for PN1064) for nominees, committee referrals, actions and hearings.
Military nominations are high-volume; type="civilian" focuses on judicial and cabinet picks.""",
    params=ListNominationsParams,
    handler=handle_list_nominations,
    action="list nominations",
)
