"""
Remote usage API client.

Fetches the authoritative utilization snapshot for a Claude subscription.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.models import ExtraUsage, RemoteUsageSnapshot, WindowUtilization

logger = logging.getLogger(__name__)

USAGE_API_URL = "https://api.anthropic.com/api/oauth/usage"
DEFAULT_TIMEOUT = 5.0


class UsageAPIError(Exception):
    """Raised when the usage endpoint returns an error or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _optional_number(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UsageAPIError(f"'{key}' must be a number")
    return float(value)


def _optional_string(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise UsageAPIError(f"'{key}' must be a string")
    return value


def _section(body: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise UsageAPIError(f"'{key}' must be an object")
    return value


def _parse_window(body: Dict[str, Any], key: str) -> Optional[WindowUtilization]:
    data = _section(body, key)
    if data is None:
        return None
    return WindowUtilization(
        utilization=_optional_number(data, "utilization"),
        resets_at=_optional_string(data, "resets_at"),
    )


def parse_usage_response(body: Any) -> RemoteUsageSnapshot:
    """Convert a decoded usage response body into a snapshot.

    Raises:
        UsageAPIError: If the body doesn't have the expected shape
    """
    if not isinstance(body, dict):
        raise UsageAPIError("Usage response must be a JSON object")

    extra = _section(body, "extra_usage")
    extra_usage = None
    if extra is not None:
        is_enabled = extra.get("is_enabled")
        if is_enabled is not None and not isinstance(is_enabled, bool):
            raise UsageAPIError("'is_enabled' must be a boolean")
        extra_usage = ExtraUsage(
            is_enabled=is_enabled,
            monthly_limit=_optional_number(extra, "monthly_limit"),
            used_credits=_optional_number(extra, "used_credits"),
            utilization=_optional_number(extra, "utilization"),
        )

    return RemoteUsageSnapshot(
        five_hour=_parse_window(body, "five_hour"),
        seven_day=_parse_window(body, "seven_day"),
        seven_day_sonnet=_parse_window(body, "seven_day_sonnet"),
        extra_usage=extra_usage,
    )


class UsageClient:
    """Client for the OAuth usage endpoint.

    The token is used as given; obtaining or refreshing it is the
    caller's job. Errors are raised, never swallowed.
    """

    def __init__(
        self,
        access_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize the usage client.

        Args:
            access_token: OAuth access token (required)
            timeout: Request timeout in seconds
            http_client: Client to send requests with; a short-lived one
                is created per request when omitted

        Raises:
            ValueError: If access_token is missing/empty
        """
        if not access_token or not access_token.strip():
            raise ValueError("access_token is required and cannot be empty")

        self.access_token = access_token
        self.timeout = timeout
        self.http_client = http_client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "anthropic-beta": "oauth-2025-04-20",
            "anthropic-version": "2023-06-01",
        }

    def fetch(self) -> RemoteUsageSnapshot:
        """Fetch the current usage snapshot.

        Returns:
            RemoteUsageSnapshot; windows the API omits are None

        Raises:
            UsageAPIError: On a non-200 status or an unusable body
            httpx.HTTPError: On transport failures and timeouts
        """
        if self.http_client is not None:
            response = self.http_client.get(USAGE_API_URL, headers=self.headers, timeout=self.timeout)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(USAGE_API_URL, headers=self.headers)

        if response.status_code != httpx.codes.OK:
            raise UsageAPIError(
                f"Usage API returned status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UsageAPIError(f"Usage API returned invalid JSON: {e}", status_code=response.status_code)

        snapshot = parse_usage_response(body)
        logger.debug("Fetched remote usage snapshot: %s", snapshot)
        return snapshot


def fetch_usage(access_token: str, timeout: float = DEFAULT_TIMEOUT) -> RemoteUsageSnapshot:
    """Fetch the usage snapshot with a one-off client."""
    return UsageClient(access_token, timeout=timeout).fetch()
