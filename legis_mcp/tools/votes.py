"""
House roll call vote tool
Congress.gov only publishes House votes, from the 118th Congress onward
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..errors import ValidationError
from ..legislation import get_current_congress
from .base import ToolContext, ToolSpec, text_result

FIRST_HOUSE_VOTE_CONGRESS = 118


class ListHouseVotesParams(BaseModel):
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number (118 or later); defaults to the current congress")
    session: Optional[int] = Field(None, ge=1, le=2, description="Session number (1 or 2); both sessions when omitted")
    limit: int = Field(20, ge=1, le=50, description="Maximum number of votes to return (max 50)")
    offset: int = Field(0, ge=0, description="Number of votes to skip for pagination")


def _first(record: Dict[str, Any], *keys, default=None):
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return default


def format_vote(position: int, vote: Dict[str, Any]) -> str:
    bill = vote.get("bill") or {}
    lines = [
        f"{position}. **Roll Call #{_first(vote, 'rollCallNumber', 'rollNumber', default='?')}** - "
        f"{_first(vote, 'startDate', 'date', 'actionDate', default='Unknown date')}",
        f"   Type: {_first(vote, 'question', 'voteType', 'title', default='No question text')}",
        f"   Result: {vote.get('result') or 'Unknown'}",
    ]

    leg_type = vote.get("legislationType") or bill.get("type") or ""
    leg_number = vote.get("legislationNumber") or bill.get("number") or ""
    if leg_type or leg_number:
        line = f"   Legislation: {str(leg_type).upper()} {leg_number}"
        if bill.get("title"):
            line += f" - {bill['title']}"
        lines.append(line)

    totals = vote.get("totals") or {}
    if totals or vote.get("yea") or vote.get("nay"):
        def tally(key):
            value = totals.get(key)
            return vote.get(key) if value is None else value

        yea, nay = tally("yea"), tally("nay")
        line = f"   Tally: Yea {'?' if yea is None else yea} - Nay {'?' if nay is None else nay}"
        present, not_voting = tally("present"), tally("notVoting")
        if present is not None:
            line += f" - Present {present}"
        if not_voting is not None:
            line += f" - Not Voting {not_voting}"
        lines.append(line)
    return "\n".join(lines)


async def handle_list_house_votes(params: ListHouseVotesParams, ctx: ToolContext):
    congress = params.congress or get_current_congress()
    if congress < FIRST_HOUSE_VOTE_CONGRESS:
        raise ValidationError("House vote data is only available for the 118th Congress (2023-2024) onward.")

    data = await ctx.api.search_collection(
        "house-vote",
        limit=params.limit,
        offset=params.offset,
        filters={"congress": congress, "session": params.session},
    )
    votes = data.get("houseRollCallVotes") or data.get("houseVotes") or data.get("votes") or []

    title = f"## House Roll Call Votes - {congress}th Congress"
    if params.session:
        title += f", Session {params.session}"
    lines = [title, "", f"Found {len(votes)} vote(s):", ""]
    for i, vote in enumerate(votes):
        lines += [format_vote(params.offset + i + 1, vote), ""]

    if len(votes) == params.limit:
        lines.append(
            f"Showing {params.offset + 1}-{params.offset + len(votes)}. "
            f"Use offset={params.offset + params.limit} for more."
        )
    return text_result("\n".join(lines))


TOOL = ToolSpec(
    name="list_house_votes",
    description="""Recent House of Representatives roll call votes with roll number, date, question,
result, related legislation and tallies. Only House votes exist upstream, from the 118th Congress on.""",
    params=ListHouseVotesParams,
    handler=handle_list_house_votes,
    action="list House votes",
)
