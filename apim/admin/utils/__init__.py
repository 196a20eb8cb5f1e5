"""Utility functions."""

from .retry import is_retryable, retry_async

__all__ = ["is_retryable", "retry_async"]
