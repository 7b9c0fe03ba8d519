"""
Member tools
The member endpoint ignores name, chamber, state and party, so searches
over-fetch and filter locally
"""

import asyncio
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

import structlog
from aiolimiter import AsyncLimiter
from pydantic import BaseModel, Field

from ..capabilities import build_resource_uri
from ..errors import CongressMcpError, NotFoundError
from ..legislation import get_member_display_fields, get_member_summary, member_terms, parse_iso_date
from .base import ToolContext, ToolSpec, json_result, utc_now_iso

logger = structlog.get_logger()

# Roughly the sitting membership of both chambers
MEMBER_OVERFETCH_LIMIT = 535
RECENT_ACTIVITY_DAYS = 180

STATE_MAP = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas", "CA": "California",
    "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware", "FL": "Florida", "GA": "Georgia",
    "HI": "Hawaii", "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi", "MO": "Missouri",
    "MT": "Montana", "NE": "Nebraska", "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey",
    "NM": "New Mexico", "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VT": "Vermont",
    "VA": "Virginia", "WA": "Washington", "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
    "DC": "District of Columbia", "PR": "Puerto Rico", "GU": "Guam", "VI": "Virgin Islands",
    "AS": "American Samoa", "MP": "Northern Mariana Islands",
}

PARTY_MAP = {"D": "Democratic", "R": "Republican", "I": "Independent"}

CHAMBER_MAP = {"house": "House of Representatives", "senate": "Senate"}


class MemberSearchParams(BaseModel):
    query: Optional[str] = Field(None, description="Member name or part of it, e.g. 'Pelosi'")
    chamber: Optional[Literal["house", "senate"]] = Field(None, description="Chamber: 'house' or 'senate'")
    state: Optional[str] = Field(None, description="Two-letter state code (e.g. 'CA', 'TX')")
    party: Optional[Literal["D", "R", "I"]] = Field(None, description="Party: 'D' (Democrat), 'R' (Republican), 'I' (Independent)")
    current_member: bool = Field(True, description="Only include current members")
    congress: Optional[int] = Field(None, ge=1, le=150, description="Specific congress number (e.g. 118)")
    limit: int = Field(20, ge=1, le=100, description="Maximum number of results to return")
    offset: int = Field(0, ge=0, description="Number of results to skip")
    include_details: bool = Field(False, description="Fetch each member's detail record (slower)")


class MemberDetailsParams(BaseModel):
    member_id: str = Field(..., min_length=1, description="Bioguide ID of the member (e.g. 'P000197')")
    congress: Optional[int] = Field(None, ge=1, le=150, description="Specific congress number (e.g. 118)")
    include_details: bool = Field(True, description="Fetch sponsored and cosponsored legislation")


def _name_fields(member: Dict[str, Any]) -> List[str]:
    first, last = member.get("firstName"), member.get("lastName")
    fields = [
        member.get("name"),
        member.get("directOrderName"),
        member.get("invertedOrderName"),
        first,
        last,
        f"{first} {last}" if first and last else None,
    ]
    return [f.lower() for f in fields if f]


def apply_local_filters(members: List[Dict[str, Any]], params: MemberSearchParams) -> List[Dict[str, Any]]:
    filtered = list(members)

    if params.query:
        # List results carry "Last, First" names, so every word must appear in some name field
        words = params.query.lower().split()
        filtered = [
            m for m in filtered
            if all(any(word in field for field in _name_fields(m)) for word in words)
        ]

    if params.chamber:
        chamber = CHAMBER_MAP[params.chamber].lower()

        def in_chamber(member):
            terms = member_terms(member)
            return bool(terms) and (terms[-1].get("chamber") or "").lower() == chamber

        filtered = [m for m in filtered if in_chamber(m)]

    if params.state:
        state = STATE_MAP.get(params.state.upper(), params.state).lower()
        filtered = [m for m in filtered if (m.get("state") or "").lower() == state]

    if params.party:
        party = PARTY_MAP[params.party].lower()
        filtered = [m for m in filtered if (m.get("partyName") or "").lower() == party]

    return filtered


def format_search_criteria(params: MemberSearchParams) -> str:
    criteria = []
    if params.query:
        criteria.append(f'Query: "{params.query}"')
    if params.chamber:
        criteria.append(f"Chamber: {params.chamber}")
    if params.state:
        criteria.append(f"State: {params.state}")
    if params.party:
        criteria.append(f"Party: {params.party}")
    if params.congress:
        criteria.append(f"Congress: {params.congress}")
    if not params.current_member:
        criteria.append("Including former members")
    return ", ".join(criteria) if criteria else "No specific criteria"


def _count_of(section: Any) -> Optional[int]:
    if isinstance(section, dict):
        return section.get("count")
    return None


async def _enhance_member(ctx: ToolContext, member: Dict[str, Any]) -> Dict[str, Any]:
    bioguide_id = member.get("bioguideId")
    if not bioguide_id:
        return {**member, "enhancedData": None}
    try:
        data = await ctx.api.get_member_details(bioguide_id)
    except CongressMcpError as e:
        logger.warning("member_enhancement_failed", member_id=bioguide_id, error=e.message)
        return {**member, "enhancedData": None}

    detail = data.get("member") or {}
    terms = member_terms(detail)
    return {
        **member,
        "enhancedData": {
            "birthYear": detail.get("birthYear"),
            "currentTerm": terms[-1] if terms else None,
            "leadership": detail.get("leadership") or [],
            "sponsoredLegislationCount": _count_of(detail.get("sponsoredLegislation")),
            "cosponsoredLegislationCount": _count_of(detail.get("cosponsoredLegislation")),
            "officialWebsiteUrl": detail.get("officialWebsiteUrl"),
        },
    }


async def enhance_members(ctx: ToolContext, members: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Fetch member details in small batches, paced to smooth bursts upstream"""
    batch_size = ctx.settings.member_batch_size
    delay = ctx.settings.member_batch_delay
    limiter = AsyncLimiter(1, delay) if delay > 0 else None

    enhanced = []
    for start in range(0, len(members), batch_size):
        if limiter is not None:
            await limiter.acquire()
        batch = members[start:start + batch_size]
        enhanced.extend(await asyncio.gather(*(_enhance_member(ctx, m) for m in batch)))
    return enhanced


def search_insights(members: List[Dict[str, Any]]) -> Dict[str, Any]:
    parties = Counter()
    states = Counter()
    chambers = Counter()
    for member in members:
        fields = get_member_display_fields(member)
        parties[fields["party"]] += 1
        states[fields["state"]] += 1
        chambers[fields["chamber"]] += 1
    return {
        "totalMembers": len(members),
        "partyBreakdown": dict(parties),
        "stateDistribution": dict(states.most_common()),
        "chamberBreakdown": dict(chambers),
    }


async def handle_member_search(params: MemberSearchParams, ctx: ToolContext):
    filters: Dict[str, Any] = {"currentMember": params.current_member}
    if params.congress:
        filters["congress"] = params.congress

    has_local_filters = bool(params.query or params.chamber or params.state or params.party)
    fetch_limit = MEMBER_OVERFETCH_LIMIT if has_local_filters else params.limit

    logger.info("member_search", criteria=format_search_criteria(params), fetch_limit=fetch_limit)
    # The endpoint ignores free-text queries, so the name is matched locally
    data = await ctx.api.search_collection("member", limit=fetch_limit, offset=params.offset, filters=filters)
    fetched = data.get("members") or []

    members = apply_local_filters(fetched, params)[:params.limit]
    if params.include_details:
        members = await enhance_members(ctx, members)
    members = [{**m, "summary": get_member_summary(m)} for m in members]

    has_more = False
    if not has_local_filters:
        has_more = bool((data.get("pagination") or {}).get("next"))

    return json_result({
        "members": members,
        "totalCount": len(members),
        "searchCriteria": format_search_criteria(params),
        "pagination": {"limit": params.limit, "offset": params.offset, "hasMore": has_more},
        "insights": search_insights(members),
        "metadata": {"searchedAt": utc_now_iso(), "congress": params.congress},
    })


def _leadership_positions(member: Dict[str, Any]) -> List[Dict[str, Any]]:
    leadership = member.get("leadership")
    if not leadership:
        return []
    if isinstance(leadership, str):
        return [{"type": "Chamber Leadership", "title": leadership}]
    return [
        {"type": "Chamber Leadership", "title": entry.get("type"), "congress": entry.get("congress")}
        for entry in leadership
        if isinstance(entry, dict)
    ]


async def handle_member_details(params: MemberDetailsParams, ctx: ToolContext):
    data = await ctx.api.get_member_details(params.member_id)
    member = data.get("member")
    if not member:
        raise NotFoundError(f"Member not found: {params.member_id}")

    result: Dict[str, Any] = {"member": member, "summary": get_member_summary(member)}
    bioguide_id = member.get("bioguideId")
    if params.include_details and bioguide_id:
        parent_uri = build_resource_uri("member", bioguide_id)
        sponsored, cosponsored = await asyncio.gather(
            ctx.api.get_sub_resource(parent_uri, "sponsored-legislation", limit=50),
            ctx.api.get_sub_resource(parent_uri, "cosponsored-legislation", limit=50),
            return_exceptions=True,
        )
        for name, outcome in (("sponsored-legislation", sponsored), ("cosponsored-legislation", cosponsored)):
            if isinstance(outcome, BaseException):
                logger.warning("sub_fetch_failed", subresource=name, uri=parent_uri, error=str(outcome))

        sponsored_bills = [] if isinstance(sponsored, BaseException) else sponsored.get("sponsoredLegislation") or []
        cosponsored_bills = [] if isinstance(cosponsored, BaseException) else cosponsored.get("cosponsoredLegislation") or []

        cutoff = datetime.now(timezone.utc).date() - timedelta(days=RECENT_ACTIVITY_DAYS)

        def recent(bills):
            return sum(1 for b in bills if (parse_iso_date(b.get("introducedDate")) or date.min) >= cutoff)

        recent_sponsored = recent(sponsored_bills)
        recent_cosponsored = recent(cosponsored_bills)
        result.update({
            "sponsoredLegislation": sponsored_bills[:10],
            "cosponsoredLegislation": cosponsored_bills[:10],
            "legislativeCounts": {
                "sponsored": len(sponsored_bills),
                "cosponsored": len(cosponsored_bills),
                "total": len(sponsored_bills) + len(cosponsored_bills),
            },
            "leadershipPositions": _leadership_positions(member),
            "recentActivity": {
                "recentSponsored": recent_sponsored,
                "recentCosponsored": recent_cosponsored,
                "recentTotal": recent_sponsored + recent_cosponsored,
            },
        })

    result["metadata"] = {"fetchedAt": utc_now_iso(), "congress": params.congress}
    return json_result(result)


MEMBER_SEARCH = ToolSpec(
    name="member_search",
    description="""Search for members of Congress by name, state, party or chamber.
Starting point for questions like "Who represents Texas?" or "Find Ted Cruz"; pass the
returned bioguideId to member_details for sponsored legislation and leadership.

Examples: query="Pelosi"; state="CA"; chamber="house", party="R"; current_member=false""",
    params=MemberSearchParams,
    handler=handle_member_search,
    action="search members",
)

MEMBER_DETAILS = ToolSpec(
    name="member_details",
    description="""Detailed information about one member of Congress by bioguide ID: member record,
sponsored and cosponsored legislation (top 10 each), legislative counts, leadership positions
and activity over the last six months.""",
    params=MemberDetailsParams,
    handler=handle_member_details,
    action="get member details",
)
