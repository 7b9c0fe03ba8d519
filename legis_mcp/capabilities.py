"""
Collection capability table and congress-gov resource URIs.

Congress.gov silently ignores or rejects parameters a collection does not
understand, so every search goes through this table first. Filters listed
in ``path_filters`` are placed in the URL path rather than the query
string (``/bill/{congress}/{billType}``).
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple

URI_SCHEME = "congress-gov"


class PathFilter(NamedTuple):
    """A filter that becomes a URL path segment."""
    name: str
    template: str = "{}"
    requires_previous: bool = False


@dataclass(frozen=True)
class CollectionDescriptor:
    """What a collection endpoint accepts."""
    supported_filters: frozenset = frozenset()
    supports_filtering: bool = False
    supports_sort: bool = False
    supports_query: bool = False
    path_filters: Tuple[PathFilter, ...] = ()

    @property
    def path_filter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.path_filters)


_DATE_FILTERS = frozenset({"fromDateTime", "toDateTime"})
_CONGRESS = PathFilter("congress")

COLLECTIONS: Mapping[str, CollectionDescriptor] = MappingProxyType({
    "bill": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        supports_filtering=True,
        supports_sort=True,
        supports_query=True,
        path_filters=(_CONGRESS, PathFilter("billType", requires_previous=True)),
    ),
    "amendment": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        supports_filtering=True,
        supports_sort=True,
        supports_query=True,
        path_filters=(_CONGRESS, PathFilter("amendmentType", requires_previous=True)),
    ),
    "member": CollectionDescriptor(
        supported_filters=_DATE_FILTERS | {"currentMember"},
        supports_filtering=True,
        supports_sort=True,
        supports_query=True,
        path_filters=(PathFilter("congress", template="congress/{}"),),
    ),
    "committee": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        supports_filtering=True,
        supports_sort=True,
        supports_query=True,
        path_filters=(_CONGRESS, PathFilter("chamber")),
    ),
    "house-communication": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        path_filters=(_CONGRESS,),
    ),
    "senate-communication": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        path_filters=(_CONGRESS,),
    ),
    "nomination": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        supports_filtering=True,
        supports_query=True,
        path_filters=(_CONGRESS,),
    ),
    "treaty": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        supports_filtering=True,
        path_filters=(_CONGRESS,),
    ),
    "house-requirement": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        path_filters=(_CONGRESS,),
    ),
    "senate-requirement": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        path_filters=(_CONGRESS,),
    ),
    "house-vote": CollectionDescriptor(
        path_filters=(_CONGRESS, PathFilter("session", requires_previous=True)),
    ),
    "hearing": CollectionDescriptor(
        path_filters=(_CONGRESS, PathFilter("chamber", requires_previous=True)),
    ),
    "summaries": CollectionDescriptor(
        supported_filters=_DATE_FILTERS,
        supports_filtering=True,
        path_filters=(_CONGRESS, PathFilter("billType", requires_previous=True)),
    ),
})

# Collections that can be addressed by URI even though they are not searchable
ADDRESSABLE_COLLECTIONS = frozenset(COLLECTIONS) | {
    "congress",
    "committee-report",
    "committee-print",
    "committee-meeting",
    "law",
    "crsreport",
    "daily-congressional-record",
    "bound-congressional-record",
}


def get_descriptor(collection: str) -> Optional[CollectionDescriptor]:
    return COLLECTIONS.get(collection)


class ResourceUri(NamedTuple):
    collection: str
    path: str


_URI_RE = re.compile(r"^congress-gov:/{1,2}(?P<rest>.+)$")
_SEGMENT_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def parse_resource_uri(uri: Optional[str]) -> Optional[ResourceUri]:
    """Parse ``congress-gov:/bill/119/hr/1`` into (collection, path).

    Returns None for empty or malformed URIs and unknown collections.
    """
    if not uri:
        return None
    match = _URI_RE.match(uri.strip())
    if not match:
        return None

    rest = match.group("rest").rstrip("/")
    segments = rest.split("/")
    if not all(_SEGMENT_RE.match(s) and s not in (".", "..") for s in segments):
        return None

    collection = segments[0]
    if collection not in ADDRESSABLE_COLLECTIONS:
        return None
    return ResourceUri(collection=collection, path="/" + "/".join(segments))


def build_resource_uri(collection: str, *segments) -> str:
    """Build ``congress-gov:/{collection}/{segments...}``"""
    parts = [collection] + [str(s) for s in segments]
    return f"{URI_SCHEME}:/" + "/".join(parts)
