"""CongressApiService request building, error classification and collection handling"""

import asyncio

import httpx
import pytest

from legis_mcp.config import RateLimitConfig
from legis_mcp.congress_api import ApiKeyPool, CongressApiService, redact_url
from legis_mcp.errors import (
    ApiError,
    InvalidParameterError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from legis_mcp.rate_limit import RateLimitService

BILL = {"bill": {"congress": 118, "type": "HR", "number": "1", "title": "Lower Energy Costs Act"}}


async def test_successful_request_returns_data_and_pagination(api, upstream):
    upstream.add("/bill", {"bills": [], "pagination": {"count": 0}})

    response = await api.make_request("/bill", {"limit": 5})

    assert response.data["bills"] == []
    assert response.pagination == {"count": 0}
    params = upstream.last_params
    assert params["api_key"] == "test-key"
    assert params["format"] == "json"
    assert params["limit"] == "5"
    assert upstream.requests[-1].headers["Accept"] == "application/json"


async def test_none_params_are_skipped_and_bools_lowercased(api, upstream):
    upstream.add("/member", {"members": []})

    await api.make_request("/member", {"currentMember": True, "offset": None})

    params = upstream.last_params
    assert params["currentMember"] == "true"
    assert "offset" not in params


async def test_lookup_returns_decoded_body(api, upstream):
    upstream.add("/bill/118/hr/1", BILL)

    data = await api.get_bill_details(118, "HR", 1)

    assert data["bill"]["title"] == "Lower Energy Costs Act"
    assert upstream.paths == ["/bill/118/hr/1"]


async def test_404_is_not_found(api):
    with pytest.raises(NotFoundError) as excinfo:
        await api.get_bill_details(118, "hr", 99999)
    assert excinfo.value.message == "Resource not found: /bill/118/hr/99999"


@pytest.mark.parametrize("status, error_type", [
    (400, ValidationError),
    (429, RateLimitError),
    (500, ApiError),
    (503, ApiError),
])
async def test_http_errors_are_classified(api, upstream, status, error_type):
    upstream.add("/bill", "upstream said no", status=status)

    with pytest.raises(error_type):
        await api.make_request("/bill")


async def test_server_error_keeps_status_and_body(api, upstream):
    upstream.add("/bill", "boom", status=502)

    with pytest.raises(ApiError) as excinfo:
        await api.make_request("/bill")

    assert excinfo.value.status_code == 502
    assert excinfo.value.body == "boom"
    assert excinfo.value.message.startswith("HTTP 502")


async def test_network_failure_is_api_error_with_status_zero(api, upstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.add("/bill", refuse)

    with pytest.raises(ApiError) as excinfo:
        await api.make_request("/bill")
    assert excinfo.value.status_code == 0


async def test_non_json_success_is_api_error(api, upstream):
    upstream.add("/bill", "<html>maintenance</html>")

    with pytest.raises(ApiError):
        await api.make_request("/bill")


async def test_error_field_in_success_body(api, upstream):
    upstream.add("/bill/118/hr/5", {"error": "Bill not found"})
    upstream.add("/bill/118/hr/6", {"error": {"message": "Internal failure"}})

    with pytest.raises(NotFoundError):
        await api.make_request("/bill/118/hr/5")
    with pytest.raises(ApiError) as excinfo:
        await api.make_request("/bill/118/hr/6")
    assert excinfo.value.message == "Internal failure"


async def test_admission_denied_without_network_call(make_api, upstream, clock):
    limiter = RateLimitService(RateLimitConfig(max_requests=1, window_seconds=60), clock=clock)
    api = make_api(rate_limiter=limiter)
    upstream.add("/bill", {"bills": []})

    await api.make_request("/bill")
    with pytest.raises(RateLimitError) as excinfo:
        await api.make_request("/bill")

    assert "Rate limit exceeded" in excinfo.value.message
    assert len(upstream.requests) == 1


async def test_failed_requests_spend_budget(api):
    before = api.rate_limiter.get_remaining_requests()
    with pytest.raises(NotFoundError):
        await api.make_request("/bill/118/hr/404")
    assert api.rate_limiter.get_remaining_requests() == before - 1


async def test_network_failure_returns_budget(api, upstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.add("/bill", refuse)
    before = api.rate_limiter.get_remaining_requests()

    with pytest.raises(ApiError):
        await api.make_request("/bill")
    assert api.rate_limiter.get_remaining_requests() == before


async def test_concurrent_requests_cannot_overrun_window(make_api, upstream, clock):
    limiter = RateLimitService(RateLimitConfig(max_requests=2, window_seconds=60), clock=clock)
    api = make_api(rate_limiter=limiter, slow=True)
    upstream.add("/bill", {"bills": []})

    results = await asyncio.gather(
        *(api.make_request("/bill") for _ in range(5)),
        return_exceptions=True,
    )

    assert len(upstream.requests) == 2
    assert sum(isinstance(r, RateLimitError) for r in results) == 3
    assert limiter.get_remaining_requests() == 0
    assert len(limiter._timestamps) == 2


async def test_keys_rotate_and_skip_throttled_key(make_api, upstream, clock):
    api = make_api(api_key="k1, k2", key_cooldown_seconds=30)

    def throttle_k1(request):
        if request.url.params["api_key"] == "k1":
            return httpx.Response(429, text="slow down")
        return httpx.Response(200, json={"ok": True})

    upstream.add("/bill", throttle_k1)

    with pytest.raises(RateLimitError):
        await api.make_request("/bill")
    await api.make_request("/bill")
    await api.make_request("/bill")

    used = [r.url.params["api_key"] for r in upstream.requests]
    assert used == ["k1", "k2", "k2"]

    clock.advance(31)
    with pytest.raises(RateLimitError):
        await api.make_request("/bill")
    assert upstream.requests[-1].url.params["api_key"] == "k1"


def test_key_pool_falls_back_to_soonest_expiring_key(clock):
    pool = ApiKeyPool(["a", "b"], cooldown_seconds=10, clock=clock)
    assert pool.next_key() == "a"
    pool.cooldown_last_used()
    clock.advance(1)
    assert pool.next_key() == "b"
    pool.cooldown_last_used()

    assert pool.next_key() == "a"
    assert ApiKeyPool([]).next_key() is None


def test_redact_url():
    url = "https://api.congress.gov/v3/bill?api_key=SECRET&format=json"
    assert redact_url(url) == "https://api.congress.gov/v3/bill?api_key=***&format=json"


async def test_search_places_path_filters_in_url(api, upstream):
    upstream.add("/bill/118/hr", {"bills": []})

    await api.search_collection(
        "bill", query="energy", limit=10, sort="updateDate+desc",
        filters={"congress": 118, "billType": "hr", "fromDateTime": "2024-01-01T00:00:00Z"},
    )

    assert upstream.paths == ["/bill/118/hr"]
    params = upstream.last_params
    assert params["query"] == "energy"
    assert params["sort"] == "updateDate+desc"
    assert params["fromDateTime"] == "2024-01-01T00:00:00Z"
    assert "congress" not in params


async def test_search_drops_unsupported_parameters(api, upstream):
    upstream.add("/house-vote/118", {"houseRollCallVotes": []})

    await api.search_collection(
        "house-vote", query="budget", sort="date+desc", filters={"congress": 118, "chamber": "house"}
    )

    params = upstream.last_params
    assert "query" not in params
    assert "sort" not in params
    assert "chamber" not in params


async def test_nested_path_filter_needs_its_parent(api, upstream):
    upstream.add("/house-vote", {"houseRollCallVotes": []})

    await api.search_collection("house-vote", filters={"session": 1})

    assert upstream.paths == ["/house-vote"]


async def test_member_congress_uses_congress_segment(api, upstream):
    upstream.add("/member/congress/118", {"members": []})

    await api.search_collection("member", filters={"congress": 118, "currentMember": False})

    assert upstream.paths == ["/member/congress/118"]
    assert upstream.last_params["currentMember"] == "false"


async def test_unknown_collection_is_rejected_before_request(api, upstream):
    with pytest.raises(InvalidParameterError) as excinfo:
        await api.search_collection("widgets")
    assert "bill" in excinfo.value.message
    assert upstream.requests == []


async def test_sub_resource_request(api, upstream):
    upstream.add("/bill/118/hr/1/actions", {"actions": []})

    await api.get_sub_resource("congress-gov:/bill/118/hr/1", "actions", limit=100, offset=20)

    assert upstream.paths == ["/bill/118/hr/1/actions"]
    assert upstream.last_params["limit"] == "100"
    assert upstream.last_params["offset"] == "20"


@pytest.mark.parametrize("parent, sub", [
    ("not-a-uri", "actions"),
    ("congress-gov:/bill/118/hr/1", "../../member"),
    ("congress-gov:/bill/118/hr/1", "actions?x=1"),
])
async def test_sub_resource_rejects_bad_input(api, upstream, parent, sub):
    with pytest.raises(InvalidParameterError):
        await api.get_sub_resource(parent, sub)
    assert upstream.requests == []


def test_introspection(api):
    assert "house-vote" in api.get_supported_collections()
    assert api.supports_query_search("bill")
    assert not api.supports_query_search("house-vote")
    assert not api.supports_sorting("nomination")
    assert api.supports_filtering("treaty")
    assert not api.supports_filtering("widgets")
    assert api.get_supported_parameters("widgets") == []

    params = api.get_supported_parameters("bill")
    assert params[:2] == ["congress", "billType"]
    assert {"fromDateTime", "toDateTime", "sort", "query"} <= set(params)


def test_rate_limit_status_before_any_request(api):
    status = api.get_rate_limit_status()
    assert status == {"canMakeRequest": True, "remainingRequests": 500, "resetTime": None}


async def test_remaining_lookups_build_paths(api, upstream):
    upstream.add("/congress/118", {"congress": {"number": 118}})
    upstream.add("/amendment/118/samdt/2137", {"amendment": {}})
    upstream.add("/house-vote/118/1/182", {"houseRollCallVote": {}})
    upstream.add("/nomination/118/1064", {"nomination": {}})

    assert (await api.get_congress_details(118))["congress"]["number"] == 118
    await api.get_amendment_details(118, "SAMDT", 2137)
    await api.get_house_vote_details(118, 1, 182)
    await api.get_nomination_details(118, 1064)

    assert upstream.paths == [
        "/congress/118",
        "/amendment/118/samdt/2137",
        "/house-vote/118/1/182",
        "/nomination/118/1064",
    ]


async def test_hearing_and_record_lookups_build_paths(api, upstream):
    upstream.add("/hearing/118/house/54512", {"hearing": {}})
    upstream.add("/daily-congressional-record", {"dailyCongressionalRecord": []})
    upstream.add("/daily-congressional-record/170/76", {"issue": {}})
    upstream.add("/daily-congressional-record/170/76/articles", {"articles": []})

    await api.get_hearing_details(118, "House", 54512)
    await api.get_daily_congressional_record(limit=5, offset=10)
    assert upstream.last_params["offset"] == "10"
    await api.get_congressional_record_issue(170, 76)
    await api.get_congressional_record_articles(170, 76)

    assert upstream.paths == [
        "/hearing/118/house/54512",
        "/daily-congressional-record",
        "/daily-congressional-record/170/76",
        "/daily-congressional-record/170/76/articles",
    ]


async def test_context_manager_closes_owned_client():
    async with CongressApiService(api_key="k") as api:
        client = api.client
    assert client.is_closed
