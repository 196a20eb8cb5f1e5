"""REST runtime abstractions."""

from .executor import Executor, PreparedRequest, RequestExecutor, prepare
from .http_client import HTTPClient, decode_body

__all__ = [
    "Executor",
    "HTTPClient",
    "RequestExecutor",
    "PreparedRequest",
    "prepare",
    "decode_body",
]
