"""zetsubou is an async Python client for the Zetsubou.life API.

It maps the REST and GraphQL endpoints to typed method calls, retries
transient failures with exponential backoff, and raises a small hierarchy
of exceptions instead of raw HTTP status codes.
"""

import importlib.metadata

from zetsubou.exceptions import (
    # Base exceptions
    ZetsubouError,
    ZetsubouClientClosed,
    ZetsubouRequestError,
    # Connection errors
    ZetsubouConnectionError,
    ZetsubouSystemUnavailableError,
    ZetsubouRequestTimeoutError,
    ZetsubouProtocolError,
    ZetsubouNetworkError,
    # HTTP errors
    ZetsubouHTTPError,
    ZetsubouValidationError,
    ZetsubouAuthenticationError,
    ZetsubouNotFoundError,
    ZetsubouRateLimitError,
    ZetsubouServerError,
    # Job errors
    ZetsubouJobError,
    ZetsubouJobFailedError,
    ZetsubouJobCancelledError,
    ZetsubouTimeoutError,
    # Other errors
    ZetsubouGraphQLError,
    ZetsubouWebhookError,
)
from zetsubou.ZetsubouClient import ZetsubouClient
from zetsubou._httpx import (
    ApiResponse,
    RequestDescriptor,
    ZetsubouAuth,
    ZetsubouConnectionParameters,
)
from zetsubou.models import (
    ChainStep,
    CreateGenerationOptions,
    CreateLayerOptions,
    CreateProjectOptions,
    GraphQLResponse,
    Job,
    JobStatus,
    ProjectUpdate,
)

__version__ = importlib.metadata.version("zetsubou")
__all__ = [
    # Core client
    "ZetsubouClient",
    # Request plumbing
    "ApiResponse",
    "RequestDescriptor",
    "ZetsubouAuth",
    "ZetsubouConnectionParameters",
    # Models
    "ChainStep",
    "CreateGenerationOptions",
    "CreateLayerOptions",
    "CreateProjectOptions",
    "GraphQLResponse",
    "Job",
    "JobStatus",
    "ProjectUpdate",
    # Base exceptions
    "ZetsubouError",
    "ZetsubouClientClosed",
    "ZetsubouRequestError",
    # Connection errors
    "ZetsubouConnectionError",
    "ZetsubouSystemUnavailableError",
    "ZetsubouRequestTimeoutError",
    "ZetsubouProtocolError",
    "ZetsubouNetworkError",
    # HTTP errors
    "ZetsubouHTTPError",
    "ZetsubouValidationError",
    "ZetsubouAuthenticationError",
    "ZetsubouNotFoundError",
    "ZetsubouRateLimitError",
    "ZetsubouServerError",
    # Job errors
    "ZetsubouJobError",
    "ZetsubouJobFailedError",
    "ZetsubouJobCancelledError",
    "ZetsubouTimeoutError",
    # Other errors
    "ZetsubouGraphQLError",
    "ZetsubouWebhookError",
]
