"""
CRS summary feed
Recently published Congressional Research Service bill summaries across all legislation
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..legislation import strip_html, truncate_text
from .base import ToolContext, ToolSpec, text_result

DEFAULT_LOOKBACK_DAYS = 7
EXCERPT_LENGTH = 500

# Congress.gov rejects timestamps with fractional seconds
_MILLIS_RE = re.compile(r"\.\d+Z$")

# CRS version code -> action the summary was written for
VERSION_CODE_MAP = {
    "00": "Introduced",
    "01": "Reported to Senate with amendment(s)",
    "07": "Reported to House",
    "08": "Reported to House, Part I",
    "17": "Reported to House with amendment(s)",
    "25": "Reported to Senate",
    "35": "Passed Senate amended",
    "36": "Passed House amended",
    "49": "Public Law",
    "53": "Passed House",
    "55": "Passed Senate",
    "59": "House agreed to Senate amendment",
    "74": "Senate agreed to House amendment",
    "77": "Discharged from House committee",
    "78": "Discharged from Senate committee",
    "79": "Reported to House without amendment",
    "80": "Reported to Senate without amendment",
    "81": "Passed House without amendment",
    "82": "Passed Senate without amendment",
}


class RecentSummariesParams(BaseModel):
    congress: Optional[int] = Field(None, ge=100, le=150, description="Filter by congress number")
    bill_type: Optional[Literal["hr", "s", "hjres", "sjres", "hconres", "sconres", "hres", "sres"]] = Field(
        None, description="Filter by bill type (needs congress)"
    )
    from_date_time: Optional[str] = Field(
        None, description="Start of the range, ISO 8601 (e.g. 2025-01-01T00:00:00Z); defaults to 7 days ago"
    )
    to_date_time: Optional[str] = Field(None, description="End of the range, ISO 8601 (e.g. 2025-12-31T23:59:59Z)")
    limit: int = Field(20, ge=1, le=50, description="Maximum number of summaries to return (max 50)")
    offset: int = Field(0, ge=0, description="Number of summaries to skip for pagination")


def api_timestamp(value: str) -> str:
    return _MILLIS_RE.sub("Z", value.strip())


def default_from_date_time(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(days=DEFAULT_LOOKBACK_DAYS)).strftime("%Y-%m-%dT%H:%M:%SZ")


def describe_version(code: Optional[str]) -> str:
    if not code:
        return ""
    return VERSION_CODE_MAP.get(code, f"Version {code}")


async def handle_recent_summaries(params: RecentSummariesParams, ctx: ToolContext):
    from_date_time = api_timestamp(params.from_date_time) if params.from_date_time else default_from_date_time()
    to_date_time = api_timestamp(params.to_date_time) if params.to_date_time else None

    data = await ctx.api.search_collection(
        "summaries",
        limit=params.limit,
        offset=params.offset,
        filters={
            "congress": params.congress,
            "billType": params.bill_type,
            "fromDateTime": from_date_time,
            "toDateTime": to_date_time,
        },
    )
    summaries = data.get("summaries") or []

    period = f"Period: {from_date_time.split('T')[0]} to {to_date_time.split('T')[0] if to_date_time else 'now'}"
    if params.congress:
        period += f" | Congress: {params.congress}th"
    if params.bill_type:
        period += f" | Type: {params.bill_type.upper()}"
    lines = ["## Recently Published Bill Summaries", "", period, "", f"Found {len(summaries)} summary(ies):", ""]

    for i, s in enumerate(summaries):
        bill = s.get("bill") or {}
        lines.append(
            f"{params.offset + i + 1}. **{(bill.get('type') or '').upper()} {bill.get('number') or '?'}** - "
            f"{bill.get('title') or 'Untitled'}"
        )
        line = f"   Congress: {bill.get('congress') or '?'}th"
        if s.get("currentChamber"):
            line += f" | Chamber: {s['currentChamber']}"
        lines.append(line)

        line = f"   Action: {s.get('actionDesc') or describe_version(s.get('versionCode')) or 'Unknown action'}"
        if s.get("actionDate"):
            line += f" ({s['actionDate']})"
        lines.append(line)

        excerpt = truncate_text(strip_html(s.get("text")), EXCERPT_LENGTH)
        if excerpt:
            lines.append(f"   Summary: {excerpt}")
        if s.get("updateDate"):
            lines.append(f"   Updated: {s['updateDate'].split('T')[0]}")
        lines.append("")

    if len(summaries) == params.limit:
        lines.append(
            f"Showing {params.offset + 1}-{params.offset + len(summaries)}. "
            f"Use offset={params.offset + params.limit} for more."
        )
    lines += ["", "*Use `get_bill` or `analyze_bill` for the full summary and details of a specific bill.*"]
    return text_result("\n".join(lines) + "\n")


TOOL = ToolSpec(
    name="recent_summaries",
    description="""Recently published CRS (Congressional Research Service) bill summaries.
A feed of bills analysts have just summarized, with plain-text excerpts. Defaults to the last 7 days;
use from_date_time/to_date_time for a custom range and get_bill or analyze_bill for one bill's full summary.""",
    params=RecentSummariesParams,
    handler=handle_recent_summaries,
    action="fetch recent summaries",
)
