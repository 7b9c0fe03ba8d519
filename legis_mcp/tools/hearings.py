"""
Hearing tool
List mode browses hearings by congress and chamber; detail mode shows one hearing by jacket number
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..errors import ValidationError
from ..legislation import as_list, get_current_congress
from .base import ToolContext, ToolSpec, text_result


class ListHearingsParams(BaseModel):
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number; defaults to the current congress")
    chamber: Optional[Literal["house", "senate"]] = Field(None, description="Filter by chamber: house or senate")
    jacket_number: Optional[int] = Field(None, ge=1, description="Jacket number of a hearing for full details (requires chamber)")
    limit: int = Field(20, ge=1, le=50, description="Maximum number of hearings to return (max 50)")
    offset: int = Field(0, ge=0, description="Number of hearings to skip for pagination")


def format_hearing_chamber(chamber: Optional[str]) -> str:
    if not chamber:
        return "N/A"
    if chamber.lower() == "nochamber":
        return "Joint/No Chamber"
    return chamber[:1].upper() + chamber[1:].lower()


async def hearing_detail(congress: int, chamber: str, jacket_number: int, ctx: ToolContext):
    data = await ctx.api.get_hearing_details(congress, chamber, jacket_number)
    hearing = data.get("hearing") or data

    lines = [
        f"## Hearing: {hearing.get('title') or 'Untitled Hearing'}",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Jacket Number | {hearing.get('jacketNumber') or jacket_number} |",
    ]
    if hearing.get("citation"):
        lines.append(f"| Citation | {hearing['citation']} |")
    lines += [
        f"| Chamber | {format_hearing_chamber(hearing.get('chamber') or chamber)} |",
        f"| Congress | {hearing.get('congress') or congress} |",
    ]
    if hearing.get("number"):
        lines.append(f"| Hearing Number | {hearing['number']} |")
    if hearing.get("part"):
        lines.append(f"| Part | {hearing['part']} |")
    lines.append("")

    committees = as_list(hearing.get("committees"))
    if committees:
        lines += ["### Committee(s)", ""]
        for c in committees:
            entry = f"- **{c.get('name') or 'Unknown'}**"
            if c.get("systemCode"):
                entry += f" (`{c['systemCode']}`)"
            lines.append(entry)
        lines.append("")

    dates = as_list(hearing.get("dates"))
    if dates:
        lines += ["### Hearing Date(s)", ""]
        for d in dates:
            value = d.get("date") if isinstance(d, dict) else d
            lines.append(f"- {str(value).split('T')[0]}")
        lines.append("")

    formats = as_list(hearing.get("formats"))
    if formats:
        lines += ["### Transcript Formats", ""]
        for f in formats:
            entry = f"- **{f.get('type') or 'Unknown'}**"
            if f.get("url"):
                entry += f": {f['url']}"
            lines.append(entry)
        lines.append("")

    meeting = hearing.get("associatedMeeting") or {}
    if meeting.get("eventId"):
        lines += ["### Associated Committee Meeting", "", f"Event ID: {meeting['eventId']}", ""]

    return text_result("\n".join(lines) + "\n")


async def hearing_list(congress: int, params: ListHearingsParams, ctx: ToolContext):
    data = await ctx.api.search_collection(
        "hearing",
        limit=params.limit,
        offset=params.offset,
        filters={"congress": congress, "chamber": params.chamber},
    )
    hearings = data.get("hearings") or []

    title = f"## Congressional Hearings - {congress}th Congress"
    if params.chamber:
        title += f" ({format_hearing_chamber(params.chamber)})"
    lines = [title, "", f"Found {len(hearings)} hearing(s):", ""]

    for i, h in enumerate(hearings):
        heading = f"{params.offset + i + 1}. **Jacket {h.get('jacketNumber') or '?'}**"
        if h.get("number"):
            heading += f" #{h['number']}"
        heading += f" - {format_hearing_chamber(h.get('chamber'))}"
        if h.get("congress"):
            heading += f" ({h['congress']}th)"
        lines.append(heading)
        if h.get("updateDate"):
            lines.append(f"   Updated: {h['updateDate'].split('T')[0]}")
        if h.get("part") and str(h["part"]) != "0":
            lines.append(f"   Part: {h['part']}")
        lines.append("")

    if len(hearings) == params.limit:
        lines.append(
            f"Showing {params.offset + 1}-{params.offset + len(hearings)}. "
            f"Use offset={params.offset + params.limit} for more."
        )
    lines += ["", "*Use jacket_number and chamber together for full hearing details including title, committees, and transcripts.*"]
    return text_result("\n".join(lines) + "\n")


async def handle_list_hearings(params: ListHearingsParams, ctx: ToolContext):
    congress = params.congress or get_current_congress()
    if params.jacket_number:
        if not params.chamber:
            raise ValidationError(
                "The chamber parameter is required when using jacket_number for hearing details. "
                'Please specify chamber as "house" or "senate".'
            )
        return await hearing_detail(congress, params.chamber, params.jacket_number, ctx)
    return await hearing_list(congress, params, ctx)


TOOL = ToolSpec(
    name="list_hearings",
    description="""Browse congressional hearings by congress and chamber.
List mode returns jacket number, chamber, hearing number and update date; pass jacket_number together
with chamber for the title, committees, dates and transcript links of one hearing.
Hearings are identified by jacket numbers (usually 5 digits); not every hearing has a published transcript.""",
    params=ListHearingsParams,
    handler=handle_list_hearings,
    action="list hearings",
)
