"""PlanHaus client data-synchronization layer.

- ``client.http``: the request chokepoint with 401 recovery
- ``client.cache``: deduplicating query cache with retry and GC
- ``client.hooks``: typed resource reads and mutations
- ``client.factory``: builds the whole stack from configuration
"""

from client.cache import CachePolicy, QueryCache, QueryStatus, RetryStrategy, make_key
from client.errors import (
    ApiError,
    AuthenticationError,
    ClientError,
    FormValidationError,
    InvalidResponseError,
    NetworkError,
    RequestCancelledError,
    ServerError,
    UploadRejectedError,
)
from client.factory import Services, build_services
from client.hooks import Mutation, QueryResult, ResourceHooks
from client.http import ApiClient, CancelToken
from client.query_keys import CachePolicies, QueryKeys

__all__ = [
    "ApiClient",
    "CancelToken",
    "QueryCache",
    "QueryStatus",
    "CachePolicy",
    "CachePolicies",
    "RetryStrategy",
    "make_key",
    "QueryKeys",
    "ResourceHooks",
    "QueryResult",
    "Mutation",
    "Services",
    "build_services",
    "ApiError",
    "AuthenticationError",
    "ClientError",
    "FormValidationError",
    "InvalidResponseError",
    "NetworkError",
    "RequestCancelledError",
    "ServerError",
    "UploadRejectedError",
]
