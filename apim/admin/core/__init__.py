"""Core components."""

from .descriptor import (
    CONTINUATION_FIELD,
    RequestDescriptor,
    SortField,
    SortOrder,
    SortSpec,
    build_path,
    derive_next,
    ensure_total_order,
)
from .exceptions import (
    AdminError,
    DescriptorError,
    ResponseFormatError,
    SettingsError,
    StagnationRiskError,
    TransportError,
)
from .session import AuthenticatedSession
from .settings import (
    ClientSettings,
    ElasticsearchSettings,
    ManagementApiSettings,
    parse_header,
    parse_headers,
)

__all__ = [
    # Errors
    "AdminError",
    "SettingsError",
    "TransportError",
    "DescriptorError",
    "StagnationRiskError",
    "ResponseFormatError",
    # Settings
    "ClientSettings",
    "ManagementApiSettings",
    "ElasticsearchSettings",
    "parse_header",
    "parse_headers",
    "AuthenticatedSession",
    # Descriptors
    "CONTINUATION_FIELD",
    "RequestDescriptor",
    "SortField",
    "SortOrder",
    "SortSpec",
    "build_path",
    "derive_next",
    "ensure_total_order",
]
