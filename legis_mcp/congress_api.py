"""
Congress.gov API Service
Single HTTP gateway to the congress.gov v3 API with rate limiting and error classification
"""

import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
import structlog

from .capabilities import (
    COLLECTIONS,
    get_descriptor,
    parse_resource_uri,
)
from .config import DEFAULT_BASE_URL, Settings
from .errors import (
    ApiError,
    InvalidParameterError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from .rate_limit import Clock, RateLimitService, RequestLimiter

logger = structlog.get_logger()

USER_AGENT = "LegisMCP/1.0"
_API_KEY_RE = re.compile(r"api_key=[^&]*")
_SUB_RESOURCE_RE = re.compile(r"^[A-Za-z0-9._-]+(?:/[A-Za-z0-9._-]+)*$")


def redact_url(url: str) -> str:
    """Hide the API key in a URL before it is logged"""
    return _API_KEY_RE.sub("api_key=***", url)


@dataclass
class ApiResponse:
    """Decoded response body plus its pagination block, if any."""
    data: Dict[str, Any]
    pagination: Optional[Dict[str, Any]] = None


class ApiKeyPool:
    """Round-robin over API keys, skipping keys that recently hit HTTP 429."""

    def __init__(self, keys: List[str], cooldown_seconds: float = 60.0, clock: Clock = time.time):
        self.keys = list(keys)
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._index = 0
        self._cooldowns: Dict[int, float] = {}
        self._last_used: Optional[int] = None

    def next_key(self) -> Optional[str]:
        if not self.keys:
            return None

        now = self._clock()
        total = len(self.keys)
        for i in range(total):
            idx = (self._index + i) % total
            expiry = self._cooldowns.get(idx)
            if expiry is None or now >= expiry:
                self._cooldowns.pop(idx, None)
                return self._use(idx)

        # Every key is cooling down; take the one that frees up first
        soonest = min(self._cooldowns, key=self._cooldowns.get)
        return self._use(soonest)

    def _use(self, idx: int) -> str:
        self._index = (idx + 1) % len(self.keys)
        self._last_used = idx
        return self.keys[idx]

    def cooldown_last_used(self) -> None:
        if self._last_used is None:
            return
        self._cooldowns[self._last_used] = self._clock() + self.cooldown_seconds


class CongressApiService:
    """Unified access to Congress.gov legislative data.

    All calls go through ``make_request``, which consults the rate limiter
    before touching the network and classifies every failure into the
    shared error taxonomy.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        rate_limiter: Optional[RequestLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        key_cooldown_seconds: float = 60.0,
        clock: Clock = time.time,
    ):
        self.base_url = base_url.rstrip("/")
        keys = [k.strip() for k in (api_key or "").split(",") if k.strip()]
        self.keys = ApiKeyPool(keys, cooldown_seconds=key_cooldown_seconds, clock=clock)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimitService(clock=clock)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "CongressApiService":
        return cls(
            api_key=",".join(settings.api_keys),
            base_url=settings.base_url,
            rate_limiter=RateLimitService(settings.rate_limit),
            client=client,
            timeout=settings.request_timeout,
            key_cooldown_seconds=settings.key_cooldown_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "CongressApiService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """Make an authenticated GET request and classify the outcome"""
        if not self.rate_limiter.can_make_request():
            reset = self.rate_limiter.get_reset_time()
            reset_text = reset.isoformat() if reset else "unknown"
            logger.warning("rate_limit_denied", endpoint=endpoint, reset_at=reset_text)
            raise RateLimitError(f"Rate limit exceeded. Resets at {reset_text}")

        query: Dict[str, Any] = {}
        key = self.keys.next_key()
        if key:
            query["api_key"] = key
        query["format"] = "json"
        for name, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = str(value).lower()
            query[name] = value

        url = f"{self.base_url}{endpoint}"
        request = self.client.build_request(
            "GET", url, params=query,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )
        safe_url = redact_url(str(request.url))
        logger.info("api_request", url=safe_url)

        # Nothing between the admission check and here awaits, so concurrent
        # callers see this slot taken
        stamp = self.rate_limiter.record_request()
        try:
            response = await self.client.send(request)
        except httpx.HTTPError as e:
            # Nothing came back, so the slot is returned
            self.rate_limiter.release(stamp)
            logger.error("api_request_failed", url=safe_url, error=str(e))
            raise ApiError(f"Network error occurred: {e}", 0, str(e))

        if response.status_code >= 400 or response.status_code < 200:
            body = response.text
            logger.warning("api_request_failed", url=safe_url, status=response.status_code)
            if response.status_code == 429:
                self.keys.cooldown_last_used()
                raise RateLimitError("API rate limit exceeded")
            if response.status_code == 404:
                raise NotFoundError(f"Resource not found: {endpoint}")
            if response.status_code == 400:
                raise ValidationError(f"Invalid request: {body}")
            raise ApiError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                response.status_code,
                body,
            )

        try:
            data = response.json()
        except ValueError:
            logger.warning("api_response_not_json", url=safe_url, status=response.status_code)
            raise ApiError("Upstream returned a non-JSON response", response.status_code, response.text)

        if not isinstance(data, dict):
            raise ApiError("Upstream returned an unexpected payload", response.status_code, response.text)

        # Some errors come back as HTTP 200 with an error field
        error = data.get("error")
        if error:
            if isinstance(error, dict):
                message = str(error.get("message") or error)
            else:
                message = str(error)
            logger.warning("api_error_payload", url=safe_url, error=message)
            if "not found" in message.lower():
                raise NotFoundError(message)
            raise ApiError(message, response.status_code)

        return ApiResponse(data=data, pagination=data.get("pagination"))

    # Direct lookups

    async def get_bill_details(self, congress, bill_type: str, bill_number) -> Dict[str, Any]:
        """Get specific bill details"""
        response = await self.make_request(f"/bill/{congress}/{bill_type.lower()}/{bill_number}")
        return response.data

    async def get_member_details(self, member_id: str) -> Dict[str, Any]:
        response = await self.make_request(f"/member/{member_id}")
        return response.data

    async def get_congress_details(self, congress) -> Dict[str, Any]:
        response = await self.make_request(f"/congress/{congress}")
        return response.data

    async def get_committee_details(self, chamber: str, committee_code: str, congress=None) -> Dict[str, Any]:
        if congress:
            endpoint = f"/committee/{chamber}/{committee_code}/{congress}"
        else:
            endpoint = f"/committee/{chamber}/{committee_code}"
        response = await self.make_request(endpoint)
        return response.data

    async def get_amendment_details(self, congress, amendment_type: str, amendment_number) -> Dict[str, Any]:
        response = await self.make_request(f"/amendment/{congress}/{amendment_type.lower()}/{amendment_number}")
        return response.data

    async def get_nomination_details(self, congress, nomination_number) -> Dict[str, Any]:
        response = await self.make_request(f"/nomination/{congress}/{nomination_number}")
        return response.data

    async def get_house_vote_details(self, congress, session, roll_call_number) -> Dict[str, Any]:
        """House roll call votes are only published from the 118th Congress on"""
        response = await self.make_request(f"/house-vote/{congress}/{session}/{roll_call_number}")
        return response.data

    async def get_hearing_details(self, congress, chamber: str, jacket_number) -> Dict[str, Any]:
        response = await self.make_request(f"/hearing/{congress}/{chamber.lower()}/{jacket_number}")
        return response.data

    # Congressional Record issues are addressed by volume and issue number, not by congress

    async def get_daily_congressional_record(self, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        response = await self.make_request("/daily-congressional-record", {"limit": limit, "offset": offset})
        return response.data

    async def get_congressional_record_issue(self, volume_number, issue_number) -> Dict[str, Any]:
        response = await self.make_request(f"/daily-congressional-record/{volume_number}/{issue_number}")
        return response.data

    async def get_congressional_record_articles(self, volume_number, issue_number) -> Dict[str, Any]:
        response = await self.make_request(f"/daily-congressional-record/{volume_number}/{issue_number}/articles")
        return response.data

    # Collections

    async def search_collection(
        self,
        collection: str,
        query: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
        sort: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Search a collection, dropping parameters it does not support.

        Callers may pass a superset of optional parameters; anything the
        collection cannot handle is logged and left out of the request.
        """
        descriptor = get_descriptor(collection)
        if descriptor is None:
            raise InvalidParameterError(
                f"Collection '{collection}' is not supported. "
                f"Supported collections: {', '.join(self.get_supported_collections())}"
            )

        filters = {k: v for k, v in (filters or {}).items() if v is not None}
        params: Dict[str, Any] = {"limit": limit, "offset": offset}

        if query:
            if descriptor.supports_query:
                params["query"] = query
            else:
                logger.warning("unsupported_query_dropped", collection=collection)

        if sort:
            if descriptor.supports_sort:
                params["sort"] = sort
            else:
                logger.warning("unsupported_sort_dropped", collection=collection)

        endpoint = f"/{collection}"
        previous_present = True
        for path_filter in descriptor.path_filters:
            value = filters.pop(path_filter.name, None)
            if value is None or value == "":
                previous_present = False
                continue
            if path_filter.requires_previous and not previous_present:
                logger.warning("path_filter_dropped", collection=collection, filter=path_filter.name)
                continue
            endpoint += "/" + path_filter.template.format(value)
            previous_present = True

        for name, value in filters.items():
            if descriptor.supports_filtering and name in descriptor.supported_filters:
                params[name] = value
            else:
                logger.warning("unsupported_filter_dropped", collection=collection, filter=name)

        response = await self.make_request(endpoint, params)
        return response.data

    async def get_sub_resource(self, parent_uri: str, sub_resource: str, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        """Get sub-resource data (e.g. bill actions, cosponsors)"""
        parsed = parse_resource_uri(parent_uri)
        if parsed is None:
            raise InvalidParameterError(f"Invalid parent URI format: {parent_uri}")

        sub_resource = sub_resource.strip("/")
        if not _SUB_RESOURCE_RE.match(sub_resource) or ".." in sub_resource:
            raise InvalidParameterError(f"Invalid sub-resource name: {sub_resource}")

        endpoint = f"{parsed.path}/{sub_resource}"
        response = await self.make_request(endpoint, {"limit": limit or 20, "offset": offset or 0})
        return response.data

    # Introspection

    def get_rate_limit_status(self) -> Dict[str, Any]:
        reset = self.rate_limiter.get_reset_time()
        return {
            "canMakeRequest": self.rate_limiter.can_make_request(),
            "remainingRequests": self.rate_limiter.get_remaining_requests(),
            "resetTime": reset.isoformat() if reset else None,
        }

    def get_supported_collections(self) -> List[str]:
        return list(COLLECTIONS)

    def get_supported_parameters(self, collection: str) -> List[str]:
        descriptor = get_descriptor(collection)
        if descriptor is None:
            return []
        params = list(descriptor.path_filter_names)
        if descriptor.supports_filtering:
            params.extend(sorted(descriptor.supported_filters))
        if descriptor.supports_sort:
            params.append("sort")
        if descriptor.supports_query:
            params.append("query")
        return params

    def supports_query_search(self, collection: str) -> bool:
        descriptor = get_descriptor(collection)
        return bool(descriptor and descriptor.supports_query)

    def supports_sorting(self, collection: str) -> bool:
        descriptor = get_descriptor(collection)
        return bool(descriptor and descriptor.supports_sort)

    def supports_filtering(self, collection: str) -> bool:
        descriptor = get_descriptor(collection)
        return bool(descriptor and descriptor.supports_filtering)
