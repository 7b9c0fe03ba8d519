"""
Heuristics over semi-structured legislative text.

Congress.gov reports most status information as free text in
``latestAction.text`` and the action history, so enacted-law detection,
vote references and progress stages are all derived by pattern matching.
"""

import html
import math
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

BILL_TYPES = ("hr", "s", "hjres", "sjres", "hconres", "sconres", "hres", "sres")

_BILL_ID_RE = re.compile(
    r"^(?:(\d{2,3})\s+)?(hr|s|hjres|sjres|hconres|sconres|hres|sres)[\s]?(\d+)$"
)

ENACTED_PATTERNS = [
    re.compile(r"became public law", re.I),
    re.compile(r"signed by president", re.I),
    re.compile(r"became private law", re.I),
]

VOTE_PATTERNS = [
    re.compile(r"roll no\.\s*\d+", re.I),
    re.compile(r"passed.*yeas.*nays", re.I),
    re.compile(r"agreed to.*yeas.*nays", re.I),
    re.compile(r"passed.*voice vote", re.I),
    re.compile(r"agreed to.*voice vote", re.I),
    re.compile(r"passed.*unanimous consent", re.I),
    re.compile(r"cloture.*invoked", re.I),
    re.compile(r"motion to reconsider", re.I),
]

_LAW_NUMBER_RE = re.compile(r"(?:Public|Private) Law(?: No[.:]?)?\s*(\d+-\d+)", re.I)
_ROLL_ANNOTATION_RE = re.compile(r"Roll no\.\s*\d+", re.I)
_ROLL_CALL_RE = re.compile(r"roll (?:call )?(?:no\.?|number)\s*:?\s*(\d+)", re.I)
_RECORD_VOTE_RE = re.compile(r"record vote (?:no\.?|number)\s*:?\s*(\d+)", re.I)


def get_current_congress(today: Optional[date] = None) -> int:
    """Congress in session on ``today``. A new Congress starts January 3 of odd years."""
    today = today or date.today()
    year = today.year
    if today.month == 1 and today.day < 3:
        year -= 1
    return (year - 1789) // 2 + 1


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Calendar day of an ISO date or timestamp, None if it does not parse"""
    if not value:
        return None
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_bill_identifier(query: str, default_congress: Optional[int] = None) -> Optional[Dict[str, str]]:
    """Parse 'H.R. 1', 'hr1', '119 HR 1' into congress/billType/billNumber.

    Returns None when the text is not a bill identifier; free-text topics
    are never guessed at.
    """
    if not query:
        return None
    normalized = re.sub(r"\s+", " ", query.replace(".", "")).strip().lower()
    match = _BILL_ID_RE.match(normalized)
    if not match:
        return None

    congress = match.group(1) or str(default_congress or get_current_congress())
    return {
        "congress": congress,
        "billType": match.group(2),
        "billNumber": match.group(3),
    }


def infer_chamber(bill_type: Optional[str]) -> str:
    if not bill_type:
        return "Unknown"
    bill_type = bill_type.lower()
    if bill_type.startswith("h"):
        return "House"
    if bill_type.startswith("s"):
        return "Senate"
    return "Unknown"


def bill_type_of(bill: Dict[str, Any]) -> str:
    return bill.get("type") or bill.get("billType") or ""


def bill_number_of(bill: Dict[str, Any]) -> str:
    return str(bill.get("number") or bill.get("billNumber") or "")


def format_sponsor(sponsor: Dict[str, Any]) -> str:
    """'Jane Doe (D-CA)' from a sponsors[] entry"""
    name = sponsor.get("fullName") or f"{sponsor.get('firstName', '')} {sponsor.get('lastName', '')}".strip()
    return f"{name} ({sponsor.get('party') or '?'}-{sponsor.get('state') or '?'})"


def policy_area_name(policy_area: Any) -> str:
    if isinstance(policy_area, dict):
        return policy_area.get("name") or ""
    return str(policy_area or "")


# Enacted laws

def is_enacted_bill(bill: Optional[Dict[str, Any]]) -> bool:
    """True when the bill's latest action says it became law"""
    text = ((bill or {}).get("latestAction") or {}).get("text")
    if not text:
        return False
    return any(p.search(text) for p in ENACTED_PATTERNS)


def extract_law_number(action_text: Optional[str]) -> Optional[str]:
    """'Became Public Law No: 118-47.' -> '118-47'"""
    if not action_text:
        return None
    match = _LAW_NUMBER_RE.search(action_text)
    return match.group(1) if match else None


# Votes

def has_vote_indicator(action_text: Optional[str]) -> bool:
    if not action_text:
        return False
    return any(p.search(action_text) for p in VOTE_PATTERNS)


def get_vote_annotation(action_text: Optional[str]) -> Optional[str]:
    """Short vote note for list views, e.g. '[Vote: Roll no. 123]'"""
    if not has_vote_indicator(action_text):
        return None
    roll = _ROLL_ANNOTATION_RE.search(action_text)
    if roll:
        return f"[Vote: {roll.group(0)}]"
    if re.search(r"(?:passed|agreed to).*voice vote", action_text, re.I):
        return "[Vote: Voice vote]"
    if re.search(r"passed.*unanimous consent", action_text, re.I):
        return "[Vote: Unanimous consent]"
    if re.search(r"cloture.*invoked", action_text, re.I):
        return "[Vote: Cloture invoked]"
    return None


def _chamber_from_action(action: Dict[str, Any], default: str) -> str:
    chamber = action.get("chamber")
    if chamber:
        return chamber
    source = (action.get("sourceSystem") or {}).get("name") or ""
    for candidate in ("House", "Senate"):
        if candidate in source:
            return candidate
    return default


def _votes_from_text(action: Dict[str, Any]) -> List[Dict[str, Any]]:
    # House clerk actions cite "Roll no.", Senate actions "Record Vote Number"
    text = action.get("text") or ""
    found = []
    for pattern, default_chamber in ((_ROLL_CALL_RE, "House"), (_RECORD_VOTE_RE, "Senate")):
        for match in pattern.finditer(text):
            found.append({
                "chamber": _chamber_from_action(action, default_chamber),
                "rollNumber": int(match.group(1)),
                "date": action.get("actionDate"),
            })
    return found


def find_votes_in_actions(actions: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Collect every recorded vote referenced by an action list.

    Structured ``recordedVotes`` entries are used when present, otherwise
    roll-call phrasing in the action text. Duplicates (same chamber, roll
    number and calendar day) are dropped; upstream order is kept.
    """
    if not isinstance(actions, list):
        return []

    seen = set()
    votes = []
    for action in actions:
        if not isinstance(action, dict):
            continue
        recorded = action.get("recordedVotes") or _votes_from_text(action)
        for vote in recorded:
            vote_date = vote.get("date") or action.get("actionDate")
            # Structured dates carry a time, text-derived ones only the day
            day = str(vote_date)[:10] if vote_date else None
            key = (vote.get("chamber"), str(vote.get("rollNumber")), day)
            if key in seen:
                continue
            seen.add(key)
            votes.append({
                "chamber": vote.get("chamber"),
                "congress": vote.get("congress"),
                "date": vote_date,
                "rollNumber": vote.get("rollNumber"),
                "sessionNumber": vote.get("sessionNumber"),
                "url": vote.get("url"),
                "actionText": action.get("text"),
                "actionDate": action.get("actionDate"),
            })
    return votes


# Progress heuristics

MILESTONE_KEYWORDS = [
    ("introduced", 1),
    ("referred to committee", 2),
    ("hearing", 3),
    ("markup", 4),
    ("reported by committee", 5),
    ("passed house", 6),
    ("passed senate", 6),
    ("conference", 7),
    ("presented to president", 8),
    ("became public law", 9),
]

NEXT_ACTIONS = {
    "Introduced": "Referral to committee",
    "In Committee": "Committee hearing or markup session",
    "In Committee - Active": "Committee report",
    "Reported by Committee": "Floor consideration",
    "Passed One Chamber": "Consideration by other chamber",
    "Passed Both Chambers": "Presidential action",
    "Sent to President": "Presidential signature or veto",
}


def _action_texts(actions: List[Dict[str, Any]]) -> List[str]:
    return [(a.get("text") or a.get("description") or "").lower() for a in actions]


def determine_bill_stage(actions: Optional[List[Dict[str, Any]]]) -> str:
    if not actions:
        return "Unknown"
    texts = _action_texts(actions)

    def seen(*phrases):
        return any(all(p in t for p in phrases) for t in texts)

    if seen("became public law") or seen("signed by president"):
        return "Enacted"
    if seen("presented to president"):
        return "Sent to President"
    if seen("passed senate", "passed house"):
        return "Passed Both Chambers"
    if seen("passed senate") or seen("passed house"):
        return "Passed One Chamber"
    if seen("reported by committee"):
        return "Reported by Committee"
    if seen("markup") or seen("hearing"):
        return "In Committee - Active"
    if seen("committee"):
        return "In Committee"
    return "Introduced"


def predict_next_action(actions: Optional[List[Dict[str, Any]]]) -> str:
    if not actions:
        return "Introduction to committee expected"
    return NEXT_ACTIONS.get(determine_bill_stage(actions), "No further action expected")


def party_counts(cosponsors: List[Dict[str, Any]]) -> Dict[str, int]:
    dems = sum(1 for c in cosponsors if c.get("party") in ("D", "Democratic"))
    reps = sum(1 for c in cosponsors if c.get("party") in ("R", "Republican"))
    return {"democratic": dems, "republican": reps, "other": len(cosponsors) - dems - reps}


def minority_party_percent(cosponsors: List[Dict[str, Any]]) -> int:
    total = len(cosponsors) or 1
    counts = party_counts(cosponsors)
    dem_pct = math.floor(counts["democratic"] * 100 / total + 0.5)
    rep_pct = math.floor(counts["republican"] * 100 / total + 0.5)
    return min(dem_pct, rep_pct)


def is_bipartisan(cosponsors: List[Dict[str, Any]]) -> bool:
    """At least 20% of cosponsors come from the smaller major party"""
    if len({c.get("party") for c in cosponsors}) <= 1:
        return False
    return minority_party_percent(cosponsors) >= 20


def assess_passage_likelihood(actions: List[Dict[str, Any]], cosponsors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Score 0-100 from cosponsors, bipartisanship, committee and floor activity."""
    score = 0

    count = len(cosponsors)
    if count > 100:
        score += 30
    elif count > 50:
        score += 20
    elif count > 20:
        score += 10
    elif count > 10:
        score += 5

    if len({c.get("party") for c in cosponsors}) > 1:
        score += math.floor(minority_party_percent(cosponsors) / 100 * 20)

    texts = _action_texts(actions)
    committee = [t for t in texts if "committee" in t and "referred to" not in t]
    if any("reported" in t for t in committee):
        score += 20
    elif any("markup" in t for t in committee):
        score += 15
    elif any("hearing" in t for t in committee):
        score += 10
    elif committee:
        score += 5

    if any("passed house" in t and "passed senate" in t for t in texts):
        score += 30
    elif any("passed" in t for t in texts):
        score += 20
    elif any("floor" in t for t in texts):
        score += 10

    if score >= 80:
        label = "Very High"
    elif score >= 60:
        label = "High"
    elif score >= 40:
        label = "Medium"
    elif score >= 20:
        label = "Low"
    else:
        label = "Very Low"
    return {"score": score, "label": label}


def extract_key_milestones(actions: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Up to 10 milestone actions, most significant first"""
    milestones = []
    for action in actions or []:
        text = action.get("text") or action.get("description") or ""
        lowered = text.lower()
        for keyword, weight in MILESTONE_KEYWORDS:
            if keyword in lowered:
                milestones.append({
                    "date": action.get("actionDate") or action.get("date"),
                    "action": text,
                    "type": keyword,
                    "weight": weight,
                })
                break
    milestones.sort(key=lambda m: m["weight"], reverse=True)
    return milestones[:10]


def find_companion_bills(related_bills: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    companions = []
    for rb in related_bills:
        details = rb.get("relationshipDetails") or []
        if isinstance(details, dict):
            details = details.get("item") or []
        if (details and details[0].get("type") == "companion") or rb.get("type") == "companion":
            companions.append(rb)
    return companions


# Members

def as_list(value: Any) -> List[Any]:
    """Congress.gov wraps some lists as {"item": [...]}"""
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return value.get("item") or []
    return []


def member_terms(member: Dict[str, Any]) -> List[Dict[str, Any]]:
    return as_list(member.get("terms"))


def get_member_display_fields(member: Dict[str, Any]) -> Dict[str, Any]:
    """Name, party, state, chamber and district across list and detail formats"""
    if member.get("firstName") and member.get("lastName"):
        first_last = f"{member['firstName']} {member['lastName']}"
    else:
        first_last = None
    name = (
        member.get("directOrderName")
        or member.get("invertedOrderName")
        or first_last
        or member.get("name")
        or "Unknown"
    )

    party_history = member.get("partyHistory") or []
    party = (
        (party_history[0].get("partyName") if party_history else None)
        or member.get("partyName")
        or member.get("party")
        or "Unknown"
    )

    terms = member_terms(member)
    latest_term = terms[-1] if terms else {}
    return {
        "name": name,
        "party": party,
        "state": member.get("state") or "Unknown",
        "chamber": latest_term.get("chamber") or member.get("chamber") or "Unknown",
        "district": member.get("district") or latest_term.get("district"),
    }


def get_member_summary(member: Dict[str, Any]) -> str:
    """'Nancy Pelosi (Democratic-California) - House District 11'"""
    fields = get_member_display_fields(member)
    summary = f"{fields['name']} ({fields['party']}-{fields['state']})"
    chamber = fields["chamber"].lower()
    if "house" in chamber and fields["district"]:
        summary += f" - House District {fields['district']}"
    elif "senate" in chamber:
        summary += " - Senator"
    return summary


# Text

def strip_html(text: Optional[str]) -> str:
    """Plain text from CRS summary HTML (CDATA wrappers, tags, entities)"""
    if not text:
        return ""
    text = text.replace("<![CDATA[", "").replace("]]>", "")
    text = re.sub(r"</(p|div|li|br|h[1-6])>", "\n", text, flags=re.I)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]+>", "", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = re.sub(r"\n\s*\n", "\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()


def truncate_text(text: Optional[str], max_length: int = 500) -> Optional[str]:
    """Cut at a word boundary near ``max_length`` and append '...'"""
    if not text or len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    cut = last_space if last_space > max_length * 0.8 else max_length
    return truncated[:cut] + "..."
