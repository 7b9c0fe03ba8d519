"""trending_bills scoring and ranking, congress_summary"""

import json
from datetime import datetime, timezone

import httpx

from legis_mcp.tools import activity, run_tool, trending

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)

PRIORITY = {
    "congress": 118, "type": "HR", "number": "42", "title": "Infrastructure Modernization Act",
    "originChamber": "House", "introducedDate": "2024-05-05", "updateDate": "2024-05-09T18:00:00Z",
    "latestAction": {"actionDate": "2024-05-09", "text": "Passed House by recorded vote."},
    "policyArea": {"name": "Transportation and Public Works"},
}

ENACTED = {
    "congress": 118, "type": "S", "number": "870", "title": "Fire Grants and Safety Act",
    "originChamber": "Senate", "introducedDate": "2023-03-16", "updateDate": "2024-05-01",
    "latestAction": {"actionDate": "2024-04-30", "text": "Became Public Law No: 118-67."},
    "policyArea": {"name": "Emergency Management"},
}

QUIET = {
    "congress": 118, "type": "SRES", "number": "1500", "title": "A resolution designating May as a month",
    "originChamber": "Senate", "introducedDate": "2024-01-10", "updateDate": "2024-03-01",
    "latestAction": {"actionDate": "2024-03-01", "text": "Submitted in the Senate."},
}


def test_score_breakdown():
    entry = trending.score_bill(PRIORITY, NOW)

    assert entry["scoringBreakdown"] == {
        "activity": 30,
        "title": 20.0,
        "billType": 15,
        "originChamber": 3,
        "latestAction": 22,
        "introduction": 10,
        "priority": 15,
    }
    assert entry["trendingScore"] == 115.0
    assert entry["billId"] == "118-hr-42"
    assert entry["uri"] == "congress-gov:/bill/118/hr/42"
    assert entry["daysSinceUpdate"] == 1
    assert entry["daysSinceIntroduced"] == 5
    assert entry["policyArea"] == "Transportation and Public Works"


def test_action_and_bipartisan_scores():
    assert trending.score_latest_action("Passed House. Passed Senate without amendment.") == 24
    assert trending.score_latest_action("Became Public Law No: 118-5.") == 25
    assert trending.score_latest_action("Referred to the Committee on Finance.") == 5
    assert trending.score_latest_action(None) == 0

    assert trending.bipartisan_score([{"party": "D"}] * 10 + [{"party": "R"}] * 10) == 15
    assert trending.bipartisan_score([{"party": "D"}] * 60 + [{"party": "R"}] * 40) == 22
    assert trending.bipartisan_score([{"party": "D"}] * 5) == 0


async def test_ranking_and_analysis(ctx, upstream):
    upstream.add("/bill/118", {"bills": [QUIET, PRIORITY, ENACTED]})

    result = await trending.handle_trending_bills(trending.TrendingBillsParams(limit=2, congress=118), ctx, now=NOW)

    body = json.loads(result.content[0].text)
    assert [b["billId"] for b in body["trendingBills"]] == ["118-hr-42", "118-s-870"]
    assert body["trendingBills"][1]["trendingScore"] == 57.4
    assert "support" not in body["trendingBills"][0]
    assert body["analysis"]["chambers"] == {"House": 1, "Senate": 1}
    assert body["analysis"]["summary"] == "2 trending bills over the last month: 1 passed at least one chamber"
    assert body["metadata"]["totalBillsAnalyzed"] == 3
    assert body["metadata"]["category"] == "all"

    assert upstream.paths == ["/bill/118"]
    params = upstream.last_params
    assert params["limit"] == "10"
    assert params["sort"] == "updateDate+desc"
    assert params["fromDateTime"] == "2024-04-10T12:00:00Z"


async def test_categories_filter_before_ranking(ctx, upstream):
    upstream.add("/bill/118", {"bills": [QUIET, PRIORITY, ENACTED]})

    passed = await trending.handle_trending_bills(
        trending.TrendingBillsParams(category="passed", congress=118), ctx, now=NOW
    )
    introduced = await trending.handle_trending_bills(
        trending.TrendingBillsParams(category="introduced", timeframe="week", congress=118), ctx, now=NOW
    )

    assert [b["billId"] for b in json.loads(passed.content[0].text)["trendingBills"]] == ["118-hr-42", "118-s-870"]
    assert [b["billId"] for b in json.loads(introduced.content[0].text)["trendingBills"]] == ["118-hr-42"]


async def test_bipartisan_category_uses_cosponsors(ctx, upstream):
    upstream.add("/bill/118", {"bills": [QUIET, PRIORITY, ENACTED]})
    upstream.add("/bill/118/hr/42/cosponsors", {"cosponsors": [{"party": "D"}, {"party": "D"}]})
    upstream.add("/bill/118/s/870/cosponsors", {"cosponsors": [
        {"party": "D"}, {"party": "R"}, {"party": "R"}, {"party": "D"},
    ]})

    result = await trending.handle_trending_bills(
        trending.TrendingBillsParams(category="bipartisan", limit=1, congress=118), ctx, now=NOW
    )

    body = json.loads(result.content[0].text)
    assert [b["billId"] for b in body["trendingBills"]] == ["118-s-870"]
    top = body["trendingBills"][0]
    assert top["support"] == {
        "cosponsorCount": 4,
        "bipartisan": True,
        "bipartisanScore": 15,
        "partyBreakdown": {"democratic": 2, "republican": 2, "other": 0},
    }
    assert top["combinedScore"] == 72.4
    assert body["analysis"]["bipartisanBills"] == 1
    # The sres cosponsor lookup 404s and only drops that bill
    assert "/bill/118/sres/1500/cosponsors" in upstream.paths
    assert upstream.last_params["limit"] == "250"


async def test_trending_argument_validation(ctx, upstream):
    result = await run_tool(trending.TOOL, {"limit": 51}, ctx)

    assert result.isError
    assert result.content[0].text.startswith("Failed to get trending bills: ValidationError: limit")
    assert upstream.requests == []


def recent_or_all(request):
    if "fromDateTime" in request.url.params:
        return httpx.Response(200, json={"bills": [PRIORITY, QUIET]})
    return httpx.Response(200, json={"bills": [ENACTED, QUIET]})


async def test_congress_summary(ctx, upstream):
    upstream.add("/bill/118", recent_or_all)
    upstream.add("/house-vote/118", {"houseRollCallVotes": [
        {"rollCallNumber": 182, "startDate": "2024-05-08", "result": "Passed", "question": "On Passage",
         "legislationType": "HR", "legislationNumber": "42"},
    ]})

    result = await run_tool(activity.TOOL, {"congress": 118}, ctx)

    text = result.content[0].text
    assert text.startswith("# Congressional Activity Summary - 118th Congress")
    assert "- **Bills updated (last 30 days):** 2" in text
    assert "- **Laws enacted this Congress:** 1" in text
    assert "- **Recent House roll call votes:** 1" in text
    assert "- **Bills with floor activity (last 30 days):** 1" in text
    assert "1. **S 870** (P.L. 118-67) - Fire Grants and Safety Act" in text
    assert "1. **Roll Call #182** (2024-05-08) - Passed" in text
    assert "   Legislation: HR 42" in text
    assert "   Action: Passed House by recorded vote. (2024-05-09)" in text
    assert "Could not load" not in text
    assert sorted(upstream.paths) == ["/bill/118", "/bill/118", "/house-vote/118"]


async def test_congress_summary_degrades(ctx, upstream):
    upstream.add("/bill/117", {"bills": []})

    result = await run_tool(activity.TOOL, {"congress": 117}, ctx)

    text = result.content[0].text
    assert not result.isError
    assert "Recent House roll call votes" not in text
    assert "/house-vote/117" not in upstream.paths

    upstream.add("/bill/118", {"bills": []})
    upstream.add("/house-vote/118", "unavailable", status=503)
    result = await run_tool(activity.TOOL, {"congress": 118}, ctx)

    assert not result.isError
    assert "- **Recent House roll call votes:** 0" in result.content[0].text
    assert "_Could not load: House votes._" in result.content[0].text
