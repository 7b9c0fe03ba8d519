"""Bill identifiers, enacted-law and vote detection, progress heuristics"""

from datetime import date

import pytest

from legis_mcp.legislation import (
    assess_passage_likelihood,
    determine_bill_stage,
    extract_key_milestones,
    extract_law_number,
    find_votes_in_actions,
    get_current_congress,
    get_member_summary,
    get_vote_annotation,
    is_bipartisan,
    is_enacted_bill,
    parse_bill_identifier,
    predict_next_action,
    strip_html,
    truncate_text,
)


@pytest.mark.parametrize("query, expected", [
    ("HR 1", ("118", "hr", "1")),
    ("H.R. 1", ("118", "hr", "1")),
    ("hr1", ("118", "hr", "1")),
    ("S.2345", ("118", "s", "2345")),
    ("119 HR 5", ("119", "hr", "5")),
    ("H.Con.Res. 12", ("118", "hconres", "12")),
    ("sjres 3", ("118", "sjres", "3")),
])
def test_parse_bill_identifier(query, expected):
    parsed = parse_bill_identifier(query, default_congress=118)
    assert (parsed["congress"], parsed["billType"], parsed["billNumber"]) == expected


@pytest.mark.parametrize("query", ["climate change", "", "HR", "XR 12"])
def test_parse_bill_identifier_rejects_free_text(query):
    assert parse_bill_identifier(query, default_congress=118) is None


@pytest.mark.parametrize("today, congress", [
    (date(2023, 1, 3), 118),
    (date(2024, 12, 31), 118),
    (date(2025, 1, 2), 118),
    (date(2025, 1, 3), 119),
])
def test_current_congress(today, congress):
    assert get_current_congress(today) == congress


def test_enacted_detection_and_law_number():
    bill = {"latestAction": {"text": "Became Public Law No: 118-47."}}
    assert is_enacted_bill(bill)
    assert extract_law_number(bill["latestAction"]["text"]) == "118-47"

    assert not is_enacted_bill({"latestAction": {"text": "Referred to the Committee on Ways and Means."}})
    assert not is_enacted_bill({})
    assert extract_law_number("Passed Senate without amendment") is None


def test_vote_annotation():
    assert get_vote_annotation("Passed by the Yeas and Nays: 225 - 204 (Roll no. 182).") == "[Vote: Roll no. 182]"
    assert get_vote_annotation("Passed Senate without amendment by Voice Vote.") == "[Vote: Voice vote]"
    assert get_vote_annotation("Introduced in House") is None


def test_votes_from_recorded_votes_are_deduplicated():
    vote = {"chamber": "House", "rollNumber": 145, "date": "2023-03-30", "url": "https://clerk.house.gov/145"}
    actions = [
        {"actionDate": "2023-03-30", "text": "On passage Passed", "recordedVotes": [vote]},
        {"actionDate": "2023-03-30", "text": "Passed/agreed to in House", "recordedVotes": [dict(vote, rollNumber="145")]},
    ]

    votes = find_votes_in_actions(actions)

    assert len(votes) == 1
    assert votes[0]["rollNumber"] == 145
    assert votes[0]["url"] == "https://clerk.house.gov/145"


def test_votes_from_action_text():
    actions = [
        {"actionDate": "2023-03-30", "text": "Passed by the Yeas and Nays: 225 - 204 (Roll no. 182)."},
        {"actionDate": "2023-05-11", "text": "Passed Senate with an amendment by Yea-Nay. Record Vote Number: 120."},
        {"actionDate": "2023-05-12", "text": "Message on Senate action sent to the House."},
    ]

    votes = find_votes_in_actions(actions)

    assert [(v["chamber"], v["rollNumber"]) for v in votes] == [("House", 182), ("Senate", 120)]
    assert find_votes_in_actions(None) == []



def test_structured_and_text_votes_on_same_day_merge():
    actions = [
        {
            "actionDate": "2023-03-30",
            "text": "On passage Passed by the Yeas and Nays: 225 - 204.",
            "recordedVotes": [{"chamber": "House", "rollNumber": 182, "date": "2023-03-30T20:11:25Z"}],
        },
        {"actionDate": "2023-03-30", "text": "Passed House by the Yeas and Nays: 225 - 204 (Roll no. 182)."},
    ]

    votes = find_votes_in_actions(actions)

    assert len(votes) == 1
    assert votes[0]["date"] == "2023-03-30T20:11:25Z"


@pytest.mark.parametrize("texts, stage", [
    (["Introduced in House"], "Introduced"),
    (["Referred to the House Committee on Energy and Commerce."], "In Committee"),
    (["Subcommittee Hearings Held."], "In Committee - Active"),
    (["Reported by Committee on Rules."], "Reported by Committee"),
    (["Passed House by recorded vote."], "Passed One Chamber"),
    (["Presented to President."], "Sent to President"),
    (["Became Public Law No: 118-5."], "Enacted"),
])
def test_bill_stage(texts, stage):
    actions = [{"text": t} for t in texts]
    assert determine_bill_stage(actions) == stage


def test_next_action():
    assert predict_next_action([]) == "Introduction to committee expected"
    assert predict_next_action([{"text": "Passed Senate"}]) == "Consideration by other chamber"
    assert predict_next_action([{"text": "Became Public Law No: 118-5."}]) == "No further action expected"


def test_bipartisanship_threshold():
    four_to_one = [{"party": "D"}] * 4 + [{"party": "R"}]
    nine_to_one = [{"party": "D"}] * 9 + [{"party": "R"}]
    assert is_bipartisan(four_to_one)
    assert not is_bipartisan(nine_to_one)
    assert not is_bipartisan([{"party": "R"}] * 3)


def test_passage_likelihood():
    assert assess_passage_likelihood([], []) == {"score": 0, "label": "Very Low"}

    cosponsors = [{"party": "D"}] * 30 + [{"party": "R"}] * 30
    actions = [{"text": "Reported by the Committee on Rules."}, {"text": "Passed House."}]
    # 20 (cosponsors) + 10 (50% minority) + 20 (reported) + 20 (passed)
    assert assess_passage_likelihood(actions, cosponsors) == {"score": 70, "label": "High"}


def test_key_milestones_sorted_by_weight():
    actions = [
        {"actionDate": "2023-01-09", "text": "Introduced in House"},
        {"actionDate": "2023-03-30", "text": "Passed House by recorded vote"},
        {"actionDate": "2023-01-10", "text": "Referred to Committee on Ways and Means"},
    ]

    milestones = extract_key_milestones(actions)

    assert [m["type"] for m in milestones] == ["passed house", "referred to committee", "introduced"]


def test_strip_html():
    assert strip_html("<![CDATA[<p>Energy &amp; water</p><p>Second&nbsp;part</p>]]>") == "Energy & water\nSecond part"
    assert strip_html(None) == ""


def test_truncate_text():
    assert truncate_text("short") == "short"
    long_text = "word " * 200
    truncated = truncate_text(long_text)
    assert truncated.endswith("word...")
    assert len(truncated) <= 503


def test_member_summary():
    house = {
        "name": "Pelosi, Nancy",
        "partyName": "Democratic",
        "state": "California",
        "district": 11,
        "terms": {"item": [{"chamber": "House of Representatives"}]},
    }
    senate = {"name": "Cruz, Ted", "partyName": "Republican", "state": "Texas", "terms": {"item": [{"chamber": "Senate"}]}}

    assert get_member_summary(house) == "Pelosi, Nancy (Democratic-California) - House District 11"
    assert get_member_summary(senate) == "Cruz, Ted (Republican-Texas) - Senator"
