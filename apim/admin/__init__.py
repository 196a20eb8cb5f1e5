"""APIM Admin - paginated search streams for API-management administration."""

from .api import DEFAULT_INDEX, DEFAULT_PAGE_SIZE, Search, SearchBuilder
from .clients import (
    ApiFilters,
    ApplicationFilters,
    ElasticsearchClient,
    ManagementApiClient,
    PageFilters,
)
from .core import (
    AdminError,
    AuthenticatedSession,
    ClientSettings,
    DescriptorError,
    ElasticsearchSettings,
    ManagementApiSettings,
    RequestDescriptor,
    ResponseFormatError,
    SettingsError,
    SortField,
    SortOrder,
    SortSpec,
    StagnationRiskError,
    TransportError,
    derive_next,
)
from .runtime import (
    BulkExecutor,
    BulkOutcome,
    CursorPaginator,
    CursorStream,
    HTTPClient,
    PagedItem,
    PageMeta,
    PageResult,
    PageState,
    RequestExecutor,
    ThrottledLister,
)
from .utils import retry_async

__version__ = "0.1.0"

__all__ = [
    # Clients
    "ElasticsearchClient",
    "ManagementApiClient",
    "ApiFilters",
    "ApplicationFilters",
    "PageFilters",
    # Builders
    "Search",
    "SearchBuilder",
    "DEFAULT_INDEX",
    "DEFAULT_PAGE_SIZE",
    # Settings and session
    "ClientSettings",
    "ManagementApiSettings",
    "ElasticsearchSettings",
    "AuthenticatedSession",
    # Descriptors
    "RequestDescriptor",
    "SortField",
    "SortOrder",
    "SortSpec",
    "derive_next",
    # Runtime
    "HTTPClient",
    "RequestExecutor",
    "CursorPaginator",
    "CursorStream",
    "ThrottledLister",
    "BulkExecutor",
    "BulkOutcome",
    "PagedItem",
    "PageMeta",
    "PageResult",
    "PageState",
    "retry_async",
    # Errors
    "AdminError",
    "SettingsError",
    "TransportError",
    "DescriptorError",
    "StagnationRiskError",
    "ResponseFormatError",
]
