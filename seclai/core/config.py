"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    SECLAI_API_KEY                — API key sent with every request (required)
    SECLAI_API_URL                — API base URL (default: https://seclai.com)
    SECLAI_API_KEY_HEADER         — header carrying the API key (default: x-api-key)
    SECLAI_TIMEOUT_SECONDS        — per-request timeout for plain requests (default: 30)
    SECLAI_STREAM_TIMEOUT_SECONDS — default deadline for streaming waits (default: 60)

Credential Resolution:
    The API key, base URL and header name are read when a client is
    constructed, not at import time, so values exported after import are
    still picked up. Explicit constructor arguments always win; blank
    values count as unset.

Stream Deadline:
    STREAM_TIMEOUT_SECONDS is applied to run_streaming_agent_and_wait()
    only when the caller does not pass a timeout of its own.
"""
import os
from typing import Optional

from dotenv import load_dotenv

from seclai.core.constants import (
    DEFAULT_API_KEY_HEADER,
    DEFAULT_BASE_URL,
    DEFAULT_STREAM_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
)

load_dotenv()

TIMEOUT_SECONDS = float(os.getenv("SECLAI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
STREAM_TIMEOUT_SECONDS = float(
    os.getenv("SECLAI_STREAM_TIMEOUT_SECONDS", DEFAULT_STREAM_TIMEOUT_SECONDS)
)


def _first_non_blank(*values: Optional[str]) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def resolve_api_key(explicit: Optional[str] = None) -> str:
    """Return the explicit key, else SECLAI_API_KEY, else an empty string."""
    return _first_non_blank(explicit, os.getenv("SECLAI_API_KEY"))


def resolve_base_url(explicit: Optional[str] = None) -> str:
    """Return the explicit base URL, else SECLAI_API_URL, else the public API."""
    return _first_non_blank(explicit, os.getenv("SECLAI_API_URL")) or DEFAULT_BASE_URL


def resolve_api_key_header(explicit: Optional[str] = None) -> str:
    return (
        _first_non_blank(explicit, os.getenv("SECLAI_API_KEY_HEADER"))
        or DEFAULT_API_KEY_HEADER
    )
