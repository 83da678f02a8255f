"""
SDK for the Claude usage meter.

Provides programmatic access to the remote usage endpoint.
"""

from .usage_client import UsageAPIError, UsageClient, fetch_usage

__all__ = ["UsageAPIError", "UsageClient", "fetch_usage"]
