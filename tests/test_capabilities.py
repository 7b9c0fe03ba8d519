"""Collection table and congress-gov URIs"""

import pytest

from legis_mcp.capabilities import (
    COLLECTIONS,
    ResourceUri,
    build_resource_uri,
    get_descriptor,
    parse_resource_uri,
)


@pytest.mark.parametrize("uri, expected", [
    ("congress-gov:/bill/118/hr/1", ResourceUri("bill", "/bill/118/hr/1")),
    ("congress-gov://member/P000197", ResourceUri("member", "/member/P000197")),
    ("congress-gov:/committee/house/hspw00/", ResourceUri("committee", "/committee/house/hspw00")),
    ("congress-gov:/law/118/pub/47", ResourceUri("law", "/law/118/pub/47")),
])
def test_parse_valid_uris(uri, expected):
    assert parse_resource_uri(uri) == expected


@pytest.mark.parametrize("uri", [
    None,
    "",
    "https://api.congress.gov/v3/bill/118/hr/1",
    "congress-gov:/",
    "congress-gov:/widgets/1",
    "congress-gov:/bill/118/../../member",
    "congress-gov:/bill/118/hr 1",
])
def test_parse_rejects_malformed_uris(uri):
    assert parse_resource_uri(uri) is None


def test_build_and_parse_agree():
    uri = build_resource_uri("nomination", 118, 1064)
    assert uri == "congress-gov:/nomination/118/1064"
    assert parse_resource_uri(uri).path == "/nomination/118/1064"


def test_house_votes_accept_no_query_sort_or_filters():
    descriptor = get_descriptor("house-vote")
    assert not descriptor.supports_query
    assert not descriptor.supports_sort
    assert not descriptor.supports_filtering
    assert descriptor.path_filter_names == ("congress", "session")


def test_every_collection_filters_by_congress_in_path():
    for name, descriptor in COLLECTIONS.items():
        assert descriptor.path_filter_names[0] == "congress", name


def test_unknown_collection_has_no_descriptor():
    assert get_descriptor("widgets") is None


def test_hearings_and_summaries_nest_their_path_filters():
    hearing = get_descriptor("hearing")
    assert hearing.path_filter_names == ("congress", "chamber")
    assert hearing.path_filters[1].requires_previous
    assert not hearing.supports_filtering

    summaries = get_descriptor("summaries")
    assert summaries.path_filter_names == ("congress", "billType")
    assert summaries.path_filters[1].requires_previous
    assert summaries.supports_filtering
    assert {"fromDateTime", "toDateTime"} <= set(summaries.supported_filters)
