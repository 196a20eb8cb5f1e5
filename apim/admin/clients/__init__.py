"""Clients for the Management API and Elasticsearch."""

from .elasticsearch import ElasticsearchClient
from .filters import (
    ApiFilters,
    ApplicationFilters,
    PageFilters,
    case_insensitive_matches,
    matches,
)
from .management_api import (
    HEALTH_LOG_STATES,
    SUBSCRIPTION_STATUSES,
    HealthLogNumbering,
    ManagementApiClient,
    RetryingExecutor,
)

__all__ = [
    "ElasticsearchClient",
    "ManagementApiClient",
    "RetryingExecutor",
    "HealthLogNumbering",
    "HEALTH_LOG_STATES",
    "SUBSCRIPTION_STATUSES",
    # Filters
    "ApiFilters",
    "ApplicationFilters",
    "PageFilters",
    "matches",
    "case_insensitive_matches",
]
