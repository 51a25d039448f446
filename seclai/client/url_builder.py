"""
URL Builder
Joins API paths onto the configured base URL without dropping the base path.
"""
import posixpath
from typing import Mapping, Optional
from urllib.parse import quote

import httpx


def escape_path_segment(value: str) -> str:
    """Percent-escape a value used as a single path segment."""
    return quote(value, safe="")


def build_url(
    base_url: httpx.URL,
    path: str,
    params: Optional[Mapping[str, str]] = None,
) -> httpx.URL:
    """
    Build the absolute URL for an API path.

    Parameters
    ----------
    base_url : httpx.URL
        Configured base URL; its path (e.g. "/v1") is kept as a prefix.
    path : str
        API path such as "/api/sources/". A trailing slash is preserved.
    params : Mapping[str, str], optional
        Query parameters. Entries with a blank key or an empty value are
        dropped.

    Returns
    -------
    httpx.URL
    """
    joined = path if path.startswith("/") else "/" + path
    had_trailing_slash = joined != "/" and joined.endswith("/")

    cleaned = posixpath.normpath(base_url.path.rstrip("/") + joined)
    # posixpath keeps a leading "//"
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    if had_trailing_slash and not cleaned.endswith("/"):
        cleaned += "/"

    query = {
        key: value
        for key, value in (params or {}).items()
        if key.strip() and value != ""
    }
    url = base_url.copy_with(path=cleaned)
    if query:
        url = url.copy_merge_params(query)
    return url
