"""Congressional data access layer for MCP: Congress.gov client, rate limiting and analysis tools"""

from .congress_api import ApiResponse, CongressApiService
from .errors import (
    ApiError,
    AuthenticationError,
    CongressMcpError,
    InvalidParameterError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from .rate_limit import RateLimitService

__version__ = "1.0.0"

__all__ = [
    "ApiError",
    "ApiResponse",
    "AuthenticationError",
    "CongressApiService",
    "CongressMcpError",
    "InvalidParameterError",
    "NotFoundError",
    "RateLimitError",
    "RateLimitService",
    "ValidationError",
]
