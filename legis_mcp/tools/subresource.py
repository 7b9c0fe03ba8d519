"""
Generic sub-resource tool
Reads any nested collection (actions, cosponsors, sponsored-legislation, ...) under a congress-gov URI
"""

from collections import Counter
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from ..capabilities import parse_resource_uri
from ..errors import InvalidParameterError
from ..legislation import is_bipartisan, minority_party_percent, parse_iso_date, party_counts
from .base import ToolContext, ToolSpec, json_result, utc_now_iso

# Sub-resource path segment -> response key, where they differ
RESPONSE_KEYS = {
    "relatedbills": "relatedBills",
    "related-bills": "relatedBills",
    "sponsored-legislation": "sponsoredLegislation",
    "cosponsored-legislation": "cosponsoredLegislation",
    "text": "textVersions",
}

# Action phrases counted as significant in the summary view
SIGNIFICANT_PHRASES = ("became law", "became public law", "signed by president", "passed house", "passed senate")

# Positional identifiers per collection
IDENTIFIER_NAMES = {
    "bill": ("congress", "billType", "billNumber"),
    "amendment": ("congress", "amendmentType", "amendmentNumber"),
    "member": ("memberId", "congress"),
    "committee": ("chamber", "committeeCode", "congress"),
    "nomination": ("congress", "nominationNumber"),
    "treaty": ("congress", "treatyNumber"),
    "house-vote": ("congress", "session", "rollCallNumber"),
}


class GetSubresourceParams(BaseModel):
    parent_uri: str = Field(..., min_length=1, description="Parent resource URI (e.g. 'congress-gov:/bill/118/hr/1')")
    subresource: str = Field(..., min_length=1, description="Sub-resource name (e.g. 'actions', 'cosponsors', 'committees')")
    limit: int = Field(20, ge=1, le=100, description="Maximum number of results to return")
    offset: int = Field(0, ge=0, description="Number of results to skip")
    format: Literal["detailed", "summary", "raw"] = Field(
        "detailed", description="'raw' returns the API response unchanged, 'detailed' the items with a one-line summary, 'summary' only the summary and key statistics"
    )


def describe_parent(uri: str) -> Dict[str, Any]:
    parsed = parse_resource_uri(uri)
    if parsed is None:
        raise InvalidParameterError(f"Invalid parent URI format: {uri}")
    segments = parsed.path.strip("/").split("/")[1:]
    names = IDENTIFIER_NAMES.get(parsed.collection, ())
    return {
        "collection": parsed.collection,
        "path": parsed.path,
        "identifiers": dict(zip(names, segments)),
    }


def extract_items(data: Dict[str, Any], subresource: str) -> List[Any]:
    key = RESPONSE_KEYS.get(subresource, subresource)
    value = data.get(key)
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        nested = value.get(key)
        if isinstance(nested, list):
            return nested
        # subjects is a single object holding two lists
        return [value]
    return []


def _days_active(items: List[Any]) -> int:
    days = sorted(
        d for d in (
            parse_iso_date(i.get("actionDate") or i.get("date") or i.get("introducedDate"))
            for i in items if isinstance(i, dict)
        ) if d
    )
    if len(days) < 2:
        return 0
    return (days[-1] - days[0]).days


def _is_significant(action: Dict[str, Any]) -> bool:
    text = (action.get("text") or "").lower()
    return any(phrase in text for phrase in SIGNIFICANT_PHRASES)


def _chamber_distribution(items: List[Any]) -> Dict[str, int]:
    return dict(Counter(i.get("chamber") or "Unknown" for i in items if isinstance(i, dict)))


def quick_summary(items: List[Any], subresource: str) -> str:
    count = len(items)
    if subresource == "actions":
        latest = items[0].get("text") if items and isinstance(items[0], dict) else None
        return f"{count} actions recorded, latest: {latest or 'Unknown'}"
    if subresource == "cosponsors":
        support = "bipartisan" if is_bipartisan(items) else "partisan"
        return f"{count} cosponsors with {support} support"
    if subresource == "committees":
        return f"{count} committees across {len(_chamber_distribution(items))} chambers"
    return f"{count} {subresource} found"


def key_stats(items: List[Any], subresource: str) -> Dict[str, Any]:
    if subresource == "actions":
        return {
            "totalActions": len(items),
            "daysActive": _days_active(items),
            "significantActions": sum(1 for a in items if isinstance(a, dict) and _is_significant(a)),
        }
    if subresource == "cosponsors":
        return {
            "totalCosponsors": len(items),
            "partyBreakdown": party_counts(items),
            "bipartisan": is_bipartisan(items),
            "minorityPartyPercent": minority_party_percent(items) if items else 0,
            "stateCount": len({c.get("state") for c in items if c.get("state")}),
        }
    if subresource == "committees":
        return {"totalCommittees": len(items), "chambers": _chamber_distribution(items)}
    return {"totalItems": len(items)}


def format_body(data: Dict[str, Any], subresource: str, fmt: str) -> Any:
    """Shape the upstream payload for the requested output format"""
    if fmt == "raw":
        return data
    items = extract_items(data, subresource)
    if fmt == "summary":
        return {
            "count": len(items),
            "summary": quick_summary(items, subresource),
            "keyStats": key_stats(items, subresource),
        }
    return {"count": len(items), "items": items, "summary": quick_summary(items, subresource)}


async def handle_get_subresource(params: GetSubresourceParams, ctx: ToolContext):
    parent = describe_parent(params.parent_uri)
    data = await ctx.api.get_sub_resource(
        params.parent_uri, params.subresource, limit=params.limit, offset=params.offset
    )

    return json_result({
        "parentResource": parent,
        "subresource": params.subresource,
        "data": format_body(data, params.subresource, params.format),
        "metadata": {
            "fetchedAt": utc_now_iso(),
            "format": params.format,
            "pagination": {
                "limit": params.limit,
                "offset": params.offset,
                "upstream": data.get("pagination"),
            },
        },
    })


TOOL = ToolSpec(
    name="get_subresource",
    description="""Sub-resource data for a legislative record addressed by a congress-gov URI.

Bill: actions, cosponsors, committees, subjects, text, amendments, summaries, relatedbills
Member: sponsored-legislation, cosponsored-legislation
Committee: bills, reports, nominations

Examples: parent_uri="congress-gov:/bill/118/hr/1", subresource="actions";
parent_uri="congress-gov:/member/P000197", subresource="sponsored-legislation", format="raw" for the full response""",
    params=GetSubresourceParams,
    handler=handle_get_subresource,
    action="get subresource",
)
