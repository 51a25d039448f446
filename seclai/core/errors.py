"""
Errors
======
Exception hierarchy raised by the SDK.

Taxonomy:
    ConfigurationError   — missing API key, bad base URL, bad upload arguments
    APIStatusError       — any non-2xx HTTP response
    APIValidationError   — HTTP 422, with the structured payload when it parses
    StreamTimeoutError   — deadline expired while connecting or streaming
    StreamEndedError     — stream closed before any run state was decoded

Transport failures (httpx.ConnectError, httpx.ReadError, ...) are NOT
wrapped: they reach the caller unchanged.
"""
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from seclai.models.common import HTTPValidationError


class SeclaiError(Exception):
    """Base class for every error raised by the SDK itself."""


class ConfigurationError(SeclaiError):
    """Invalid or missing client configuration."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"seclai: configuration error: {message}")


class APIStatusError(SeclaiError):
    """Raised for non-2xx HTTP responses."""

    def __init__(
        self,
        status_code: int,
        method: str,
        url: str,
        response_text: str = "",
    ) -> None:
        self.status_code = status_code
        self.method = method
        self.url = url
        self.response_text = response_text
        message = f"seclai: api error ({status_code}) {method} {url}"
        if response_text:
            message = f"{message}: {response_text}"
        super().__init__(message)


class APIValidationError(APIStatusError):
    """
    Raised for HTTP 422 responses.

    When the API returns the structured validation payload it is available
    as ``validation_error``; otherwise that attribute is None.
    """

    def __init__(
        self,
        status_code: int,
        method: str,
        url: str,
        response_text: str = "",
        validation_error: Optional[HTTPValidationError] = None,
    ) -> None:
        super().__init__(status_code, method, url, response_text)
        self.validation_error = validation_error


class StreamTimeoutError(SeclaiError, TimeoutError):
    """The streaming wait did not finish before its deadline."""

    def __init__(self, timeout: float, url: str = "") -> None:
        self.timeout = timeout
        self.url = url
        message = f"seclai: stream timed out after {timeout:g}s"
        if url:
            message = f"{message} waiting on {url}"
        super().__init__(message)


class StreamEndedError(SeclaiError):
    """The stream closed without ever delivering a decodable run state."""

    def __init__(self, message: str = "seclai: stream ended before receiving done event") -> None:
        super().__init__(message)


def build_status_error(status_code: int, method: str, url: str, body: bytes) -> APIStatusError:
    """
    Build the error for a non-2xx response.

    Shared by plain requests, uploads and the streaming path so that every
    call reports failures the same way.

    Parameters
    ----------
    status_code : int
        HTTP status of the response.
    method : str
        HTTP method of the request.
    url : str
        Fully built request URL.
    body : bytes
        Raw response body, kept for diagnostics.

    Returns
    -------
    APIStatusError
        An APIValidationError for 422, an APIStatusError otherwise.
    """
    text = body.decode("utf-8", errors="replace").strip()
    if status_code != 422:
        return APIStatusError(status_code, method, url, text)

    validation: Optional[HTTPValidationError] = None
    if body:
        try:
            validation = HTTPValidationError.model_validate_json(body)
        except PydanticValidationError:
            validation = None
    return APIValidationError(status_code, method, url, text, validation_error=validation)
