"""
Bill analysis tool
Fans out concurrent sub-resource fetches for one bill and aggregates them into a report
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from ..capabilities import build_resource_uri
from ..errors import NotFoundError
from ..legislation import (
    assess_passage_likelihood,
    bill_number_of,
    bill_type_of,
    determine_bill_stage,
    extract_key_milestones,
    find_companion_bills,
    find_votes_in_actions,
    infer_chamber,
    is_bipartisan,
    parse_bill_identifier,
    party_counts,
    predict_next_action,
    strip_html,
)
from .base import ToolContext, ToolSpec, json_result, utc_now_iso

logger = structlog.get_logger()

TOOL_DESCRIPTION = """Comprehensive analysis of a congressional bill: status, sponsor and cosponsor support,
committee activity, passage likelihood, related bills, amendments, subjects and recorded votes.

Requires a bill identifier such as "HR 1", "S 2345", "H.R. 5" or "119 HR 1".
Free-text topics (e.g. "climate change") are not supported by the Congress.gov API."""


class AnalyzeBillParams(BaseModel):
    query: str = Field(..., min_length=1, description="Bill identifier, e.g. 'HR 1', 'S.2345', '119 HR 1'")
    congress: Optional[int] = Field(None, ge=100, le=150, description="Congress number; defaults to the current congress")
    include_text: bool = Field(False, description="Also fetch the bill text versions")
    include_votes: bool = Field(True, description="Include recorded votes found in the action history")
    include_related: bool = Field(True, description="Fetch amendments and related bills")


# Sub-resource name -> key in the aggregate
SUB_FETCHES = [
    ("actions", "actions"),
    ("cosponsors", "cosponsors"),
    ("committees", "committees"),
    ("amendments", "amendments"),
    ("relatedbills", "relatedBills"),
    ("subjects", "subjects"),
    ("summaries", "summaries"),
    ("text", "text"),
]
OPTIONAL_RELATED = {"amendments", "relatedbills"}


def _person_name(person: Dict[str, Any]) -> Optional[str]:
    if person.get("firstName") and person.get("lastName"):
        return f"{person['firstName']} {person['lastName']}"
    return person.get("fullName")


async def fetch_bill_aggregate(ctx: ToolContext, params: AnalyzeBillParams) -> Dict[str, Any]:
    """Fetch the bill and its sub-resources concurrently.

    A failed sub-fetch becomes None; a failed bill lookup is raised.
    """
    parsed = parse_bill_identifier(params.query.strip(), params.congress)
    if parsed is None:
        raise NotFoundError(
            f'Could not parse bill identifier: "{params.query.strip()}". '
            'Please provide a structured bill identifier like "HR 1", "S 2345", or "119 HR 5". '
            "Text search is not supported by the Congress.gov API."
        )

    congress, bill_type, bill_number = parsed["congress"], parsed["billType"], parsed["billNumber"]
    parent_uri = build_resource_uri("bill", congress, bill_type, bill_number)

    launched = []
    for sub, key in SUB_FETCHES:
        if sub in OPTIONAL_RELATED and not params.include_related:
            continue
        if sub == "text" and not params.include_text:
            continue
        launched.append((sub, key))

    logger.info("bill_analysis_started", bill=f"{congress}-{bill_type}-{bill_number}", fetches=len(launched) + 1)
    results = await asyncio.gather(
        ctx.api.get_bill_details(congress, bill_type, bill_number),
        *(ctx.api.get_sub_resource(parent_uri, sub) for sub, _ in launched),
        return_exceptions=True,
    )

    bill_result = results[0]
    if isinstance(bill_result, BaseException):
        raise bill_result

    aggregate: Dict[str, Any] = {key: None for _, key in SUB_FETCHES}
    succeeded = 1
    for (sub, key), result in zip(launched, results[1:]):
        if isinstance(result, BaseException):
            logger.warning("sub_fetch_failed", subresource=sub, uri=parent_uri, error=str(result))
            continue
        aggregate[key] = result
        succeeded += 1

    aggregate["bill"] = bill_result.get("bill") or bill_result
    aggregate["completeness"] = succeeded / (len(launched) + 1)
    return aggregate


def build_analysis(data: Dict[str, Any], include_votes: bool = True) -> Dict[str, Any]:
    bill = data["bill"]
    bill_type = bill_type_of(bill)
    bill_number = bill_number_of(bill)

    actions = (data.get("actions") or {}).get("actions") or []
    cosponsors = (data.get("cosponsors") or {}).get("cosponsors") or []
    committees = (data.get("committees") or {}).get("committees") or []
    subjects = (data.get("subjects") or {}).get("subjects") or {}
    summaries = (data.get("summaries") or {}).get("summaries") or []
    amendments = (data.get("amendments") or {}).get("amendments") or []
    related_bills = (data.get("relatedBills") or {}).get("relatedBills") or []

    sponsors = bill.get("sponsors") or []
    sponsor = None
    if sponsors:
        first = sponsors[0]
        sponsor = {
            "name": _person_name(first) or "Unknown",
            "party": first.get("party"),
            "state": first.get("state"),
            "district": first.get("district"),
            "bioguideId": first.get("bioguideId"),
        }

    latest_action = bill.get("latestAction") or (actions[0] if actions else {})
    last_action_date = latest_action.get("actionDate") or bill.get("updateDate")

    summary = None
    if summaries:
        summary = strip_html(summaries[0].get("text")) or None

    analysis = {
        "bill": {
            "number": f"{bill_type.upper()} {bill_number}",
            "congress": bill.get("congress"),
            "title": bill.get("title"),
            "introducedDate": bill.get("introducedDate"),
            "lastActionDate": last_action_date,
            "originChamber": bill.get("originChamber") or infer_chamber(bill_type),
            "url": bill.get("url") or f"https://www.congress.gov/bill/{bill.get('congress')}/{bill_type.lower()}/{bill_number}",
        },
        "sponsor": sponsor,
        "status": {
            "currentStatus": latest_action.get("text") or "Unknown",
            "lastActionDate": last_action_date,
            "stage": determine_bill_stage(actions),
            "nextLikelyAction": predict_next_action(actions),
            "passageLikelihood": assess_passage_likelihood(actions, cosponsors),
            "keyMilestones": extract_key_milestones(actions),
        },
        "support": {
            "totalCosponsors": len(cosponsors),
            "partyBreakdown": party_counts(cosponsors),
            "bipartisan": is_bipartisan(cosponsors),
            "topCosponsors": [
                {
                    "name": _person_name(c),
                    "party": c.get("party"),
                    "state": c.get("state"),
                    "sponsorshipDate": c.get("sponsorshipDate"),
                }
                for c in cosponsors[:5]
            ],
        },
        "committees": [
            {"name": c.get("name"), "chamber": c.get("chamber"), "activities": c.get("activities") or []}
            for c in committees
        ],
        "content": {
            "summary": summary,
            "subjects": [s.get("name") for s in subjects.get("legislativeSubjects") or []],
            "policyAreas": [subjects["policyArea"]["name"]] if (subjects.get("policyArea") or {}).get("name") else [],
        },
        "related": {
            "relatedBills": [_related_entry(rb) for rb in related_bills],
            "amendmentCount": len(amendments),
            "companionBills": find_companion_bills(related_bills),
        },
        "actions": actions,
        "metadata": {
            "dataCompleteness": round(data["completeness"], 4),
            "fetchedAt": utc_now_iso(),
        },
    }

    if include_votes:
        recorded = find_votes_in_actions(actions)
        chambers: List[str] = []
        for vote in recorded:
            if vote["chamber"] and vote["chamber"] not in chambers:
                chambers.append(vote["chamber"])
        analysis["votes"] = {"recorded": recorded, "totalVotes": len(recorded), "chambers": chambers}

    text = data.get("text")
    if text:
        versions = text.get("textVersions") or []
        formats = (versions[0].get("formats") or []) if versions else []
        analysis["content"]["textUrl"] = formats[0].get("url") if formats else None

    return analysis


def _related_entry(rb: Dict[str, Any]) -> Dict[str, Any]:
    details = rb.get("relationshipDetails") or []
    if isinstance(details, dict):
        details = details.get("item") or []
    return {
        "number": rb.get("number") or f"{rb.get('type')} {rb.get('billNumber')}",
        "title": rb.get("title"),
        "relationship": details[0].get("type") if details else rb.get("type"),
    }


async def handle_analyze_bill(params: AnalyzeBillParams, ctx: ToolContext):
    data = await fetch_bill_aggregate(ctx, params)
    return json_result(build_analysis(data, include_votes=params.include_votes))


TOOL = ToolSpec(
    name="analyze_bill",
    description=TOOL_DESCRIPTION,
    params=AnalyzeBillParams,
    handler=handle_analyze_bill,
    action="analyze bill",
)
