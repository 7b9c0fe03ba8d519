"""
Trending bills tool
Ranks recently updated bills by recency, title significance, bill type and legislative stage
"""

import asyncio
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

import structlog
from aiolimiter import AsyncLimiter
from pydantic import BaseModel, Field

from ..capabilities import build_resource_uri
from ..legislation import (
    bill_number_of,
    bill_type_of,
    get_current_congress,
    is_bipartisan,
    is_enacted_bill,
    parse_iso_date,
    party_counts,
    policy_area_name,
)
from .base import ToolContext, ToolSpec, json_result, utc_now_iso

logger = structlog.get_logger()

TIMEFRAME_DAYS = {"week": 7, "month": 30, "quarter": 90, "year": 365}
CANDIDATE_MULTIPLIER = 5
CANDIDATE_CAP = 250
# Bipartisan ranking needs cosponsors for more bills than it returns
BIPARTISAN_POOL_MULTIPLIER = 3
COSPONSOR_FETCH_LIMIT = 250

HIGH_IMPACT_KEYWORDS = {
    "infrastructure": 18,
    "healthcare": 17,
    "tax": 16,
    "budget": 16,
    "defense": 15,
    "national security": 18,
    "climate": 15,
    "energy": 14,
    "immigration": 16,
    "education": 14,
    "social security": 15,
    "medicare": 15,
    "medicaid": 14,
}

MEDIUM_IMPACT_KEYWORDS = {
    "reform": 10,
    "act": 8,
    "amendment": 9,
    "funding": 10,
    "relief": 11,
    "support": 8,
    "protection": 9,
    "development": 8,
    "innovation": 9,
    "modernization": 10,
}

BILL_TYPE_SCORES = {"hr": 15, "s": 12, "hjres": 10, "sjres": 8, "hres": 5, "sres": 3}

# First match wins
ACTION_SCORES = [
    (("became public law", "signed by president"), 25),
    (("passed house", "passed senate"), 22),
    (("reported by committee", "ordered to be reported"), 18),
    (("committee markup", "markup session"), 15),
    (("hearing held", "hearing scheduled"), 12),
    (("subcommittee",), 8),
    (("referred to committee", "referred to the"), 5),
    (("introduced",), 3),
]


class TrendingBillsParams(BaseModel):
    timeframe: Literal["week", "month", "quarter", "year"] = Field("month", description="How far back to look for activity")
    category: Literal["all", "passed", "active", "introduced", "bipartisan"] = Field(
        "all", description="passed: passed at least one chamber; active: acted on within the timeframe; "
                           "introduced: introduced within the timeframe; bipartisan: cosponsors from both parties"
    )
    limit: int = Field(10, ge=1, le=50, description="Number of bills to return (max 50)")
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number; defaults to the current congress")
    include_cosponsors: bool = Field(
        False, description="Fetch cosponsors for each bill to weigh bipartisan support (always on for the bipartisan category)"
    )


def score_title(title: Optional[str]) -> float:
    lowered = (title or "").lower()
    score = 0.0
    for keyword, weight in HIGH_IMPACT_KEYWORDS.items():
        if keyword in lowered:
            score = max(score, weight)
    for keyword, weight in MEDIUM_IMPACT_KEYWORDS.items():
        if keyword in lowered:
            score += weight * 0.3
    if "comprehensive" in lowered or "omnibus" in lowered:
        score += 5
    if "bipartisan" in lowered:
        score += 7
    if "emergency" in lowered:
        score += 8
    return min(score, 20.0)


def score_latest_action(text: Optional[str]) -> int:
    lowered = (text or "").lower()
    if "passed house" in lowered and "passed senate" in lowered:
        return 24
    for phrases, score in ACTION_SCORES:
        if any(p in lowered for p in phrases):
            return score
    return 0


def _days_since(now: datetime, value: Optional[str]) -> Optional[int]:
    day = parse_iso_date(value)
    if day is None:
        return None
    return (now.date() - day).days


def _activity_score(days: Optional[int]) -> int:
    if days is None:
        return 0
    if days <= 1:
        return 30
    if days <= 7:
        return 20
    if days <= 30:
        return 10
    if days <= 90:
        return 5
    return 0


def _priority_score(number: str) -> int:
    # Leadership reserves low bill numbers for its priorities
    if not number.isdigit():
        return 0
    value = int(number)
    if value < 100:
        return 15
    if value < 500:
        return 8
    if value < 1000:
        return 3
    return 0


def score_bill(bill: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Trending entry for one bill with its score and the parts it adds up from"""
    bill_type = bill_type_of(bill).lower()
    number = bill_number_of(bill)
    latest = bill.get("latestAction") or {}

    days_since_update = _days_since(now, bill.get("updateDate") or latest.get("actionDate"))
    days_since_introduced = _days_since(now, bill.get("introducedDate"))

    introduction = 0
    if days_since_introduced is not None:
        if days_since_introduced <= 7:
            introduction = 10
        elif days_since_introduced <= 30:
            introduction = 5

    breakdown = {
        "activity": _activity_score(days_since_update),
        "title": round(score_title(bill.get("title")), 1),
        "billType": BILL_TYPE_SCORES.get(bill_type, 0),
        "originChamber": {"House": 3, "Senate": 5}.get(bill.get("originChamber"), 0),
        "latestAction": score_latest_action(latest.get("text")),
        "introduction": introduction,
        "priority": _priority_score(number),
    }

    congress = bill.get("congress")
    return {
        "billId": f"{congress}-{bill_type}-{number}",
        "uri": build_resource_uri("bill", congress, bill_type, number),
        "congress": congress,
        "type": bill_type.upper(),
        "number": number,
        "title": bill.get("title"),
        "originChamber": bill.get("originChamber"),
        "introducedDate": bill.get("introducedDate"),
        "updateDate": bill.get("updateDate"),
        "latestAction": latest or None,
        "policyArea": policy_area_name(bill.get("policyArea")) or None,
        "trendingScore": round(sum(breakdown.values()), 1),
        "scoringBreakdown": breakdown,
        "daysSinceUpdate": days_since_update,
        "daysSinceIntroduced": days_since_introduced,
    }


def matches_category(bill: Dict[str, Any], category: str, days: int, now: datetime) -> bool:
    """Category filters that work on the listing alone; bipartisan needs cosponsors"""
    latest = bill.get("latestAction") or {}
    if category == "passed":
        return "passed" in (latest.get("text") or "").lower() or is_enacted_bill(bill)
    if category == "active":
        since = _days_since(now, latest.get("actionDate"))
        return since is not None and since <= days
    if category == "introduced":
        since = _days_since(now, bill.get("introducedDate"))
        return since is not None and since <= days
    return True


def bipartisan_score(cosponsors: List[Dict[str, Any]]) -> int:
    """0-55: balance between the parties, with a bonus for wide balanced support"""
    counts = party_counts(cosponsors)
    total = len(cosponsors)
    if not (counts["democratic"] and counts["republican"]):
        return 0
    minority = min(counts["democratic"], counts["republican"]) / total
    score = int(minority * 30)
    if total > 50 and minority > 0.3:
        score += 10
    if total > 100 and minority > 0.4:
        score += 15
    return score


async def attach_cosponsor_support(ctx: ToolContext, entries: List[Dict[str, Any]]) -> None:
    """Add cosponsor support to each entry in paced batches; a failed fetch leaves support as None"""
    batch_size = ctx.settings.member_batch_size
    delay = ctx.settings.member_batch_delay
    limiter = AsyncLimiter(1, delay) if delay > 0 else None

    for start in range(0, len(entries), batch_size):
        if limiter is not None:
            await limiter.acquire()
        batch = entries[start:start + batch_size]
        results = await asyncio.gather(
            *(ctx.api.get_sub_resource(e["uri"], "cosponsors", limit=COSPONSOR_FETCH_LIMIT) for e in batch),
            return_exceptions=True,
        )
        for entry, result in zip(batch, results):
            if isinstance(result, BaseException):
                logger.warning("sub_fetch_failed", subresource="cosponsors", uri=entry["uri"], error=str(result))
                entry["support"] = None
                continue
            cosponsors = result.get("cosponsors") or []
            score = bipartisan_score(cosponsors)
            entry["support"] = {
                "cosponsorCount": len(cosponsors),
                "bipartisan": is_bipartisan(cosponsors),
                "bipartisanScore": score,
                "partyBreakdown": party_counts(cosponsors),
            }
            entry["combinedScore"] = round(entry["trendingScore"] + score, 1)


def trending_analysis(entries: List[Dict[str, Any]], timeframe: str, with_support: bool) -> Dict[str, Any]:
    total = len(entries)
    passed = sum(
        1 for e in entries
        if "passed" in ((e.get("latestAction") or {}).get("text") or "").lower()
    )
    policy_areas = Counter(e["policyArea"] or "Unknown" for e in entries)
    chambers = Counter(e["originChamber"] or "Unknown" for e in entries)

    summary = f"{total} trending bills over the last {timeframe}: {passed} passed at least one chamber"
    analysis: Dict[str, Any] = {
        "policyAreas": [{"policyArea": name, "count": count} for name, count in policy_areas.most_common(5)],
        "chambers": dict(chambers),
        "passedAtLeastOneChamber": passed,
    }
    if with_support:
        bipartisan = sum(1 for e in entries if (e.get("support") or {}).get("bipartisan"))
        summary += f", {bipartisan} with bipartisan cosponsors"
        analysis["bipartisanBills"] = bipartisan
    analysis["summary"] = summary
    return analysis


async def handle_trending_bills(params: TrendingBillsParams, ctx: ToolContext, now: Optional[datetime] = None):
    now = now or datetime.now(timezone.utc)
    days = TIMEFRAME_DAYS[params.timeframe]
    congress = params.congress or get_current_congress(now.date())
    with_support = params.include_cosponsors or params.category == "bipartisan"

    data = await ctx.api.search_collection(
        "bill",
        limit=min(params.limit * CANDIDATE_MULTIPLIER, CANDIDATE_CAP),
        sort="updateDate+desc",
        filters={
            "congress": congress,
            "fromDateTime": (now - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ"),
        },
    )
    bills = data.get("bills") or []
    candidates = [b for b in bills if matches_category(b, params.category, days, now)]
    ranked = sorted((score_bill(b, now) for b in candidates), key=lambda e: e["trendingScore"], reverse=True)
    logger.info("trending_bills_ranked", fetched=len(bills), candidates=len(ranked), category=params.category)

    if params.category == "bipartisan":
        pool = ranked[:params.limit * BIPARTISAN_POOL_MULTIPLIER]
        await attach_cosponsor_support(ctx, pool)
        top = [e for e in pool if (e.get("support") or {}).get("bipartisan")][:params.limit]
    else:
        top = ranked[:params.limit]
        if with_support:
            await attach_cosponsor_support(ctx, top)

    return json_result({
        "trendingBills": top,
        "analysis": trending_analysis(top, params.timeframe, with_support),
        "metadata": {
            "congress": congress,
            "timeframe": params.timeframe,
            "category": params.category,
            "generatedAt": utc_now_iso(),
            "totalBillsAnalyzed": len(bills),
        },
    })


TOOL = ToolSpec(
    name="trending_bills",
    description="""Bills drawing the most legislative attention over a timeframe (week, month, quarter, year).
Recently updated bills are scored on update recency, title significance, bill type, origin chamber,
stage of the latest action, introduction recency and bill-number priority, then ranked.
Categories: all, passed, active, introduced, bipartisan. include_cosponsors adds party breakdown and
a bipartisan score per bill, one extra request per bill.""",
    params=TrendingBillsParams,
    handler=handle_trending_bills,
    action="get trending bills",
)
