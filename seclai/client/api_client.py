"""
Seclai API Client
=================
Async client for the Seclai HTTP/JSON API.

Authentication:
    Every request carries the API key in the configured header
    (x-api-key by default). See seclai.core.config for how the key, base
    URL and header are resolved.

Request Paths:
    - request()                        — low-level escape hatch, returns decoded JSON
    - typed methods (list_sources, …)  — validate responses into pydantic models
    - run_streaming_agent_and_wait()   — SSE stream consumer, see below

Streaming Wait:
    POST /api/agents/{agent_id}/runs/stream answers with Server-Sent Events.
    The call returns the state carried by the ``done`` event, or the last
    ``init`` state when the stream closes early.

        Connecting ──2xx──▶ Streaming ──done──▶ Completed
            │                  ├── deadline ──▶ StreamTimeoutError
            │                  ├── read error ─▶ transport error (unchanged)
            │                  └── EOF ────────▶ last state / StreamEndedError
            └── non-2xx ──▶ APIStatusError / APIValidationError

    The whole call (connect + reads) is bounded by one deadline: the
    ``timeout`` argument, or config.STREAM_TIMEOUT_SECONDS when omitted.

Errors:
    Non-2xx responses are turned into exceptions by build_status_error()
    on every path. Transport errors are never wrapped. No retries are made.
"""
import logging
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel

from seclai.client.url_builder import build_url, escape_path_segment
from seclai.core import config
from seclai.core.constants import EVENT_STREAM_CONTENT_TYPE, JSON_CONTENT_TYPE
from seclai.core.errors import ConfigurationError, build_status_error
from seclai.models.agent_run import (
    AgentRunListResponse,
    AgentRunRequest,
    AgentRunResponse,
    AgentRunStreamRequest,
)
from seclai.models.content import ContentDetailResponse, ContentEmbeddingsListResponse
from seclai.models.source import FileUploadResponse, SourceListResponse
from seclai.streaming.deadline import resolve_timeout, run_with_deadline
from seclai.streaming.run_tracker import consume_run_stream

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
JsonBody = Union[BaseModel, Mapping[str, Any], None]


def _to_payload(body: JsonBody) -> Any:
    """Convert a request body into JSON-ready data (None fields omitted for models)."""
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json", exclude_none=True)
    return body


def _paging_params(page: int = 0, limit: int = 0) -> Dict[str, str]:
    params: Dict[str, str] = {}
    if page > 0:
        params["page"] = str(page)
    if limit > 0:
        params["limit"] = str(limit)
    return params


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class SeclaiClient:
    """
    Async Seclai API client.

    Usage:
        async with SeclaiClient(api_key="...") as client:
            sources = await client.list_sources(limit=20)
            run = await client.run_streaming_agent_and_wait(
                "agent_1", AgentRunStreamRequest(input="hello"), timeout=30,
            )

    A caller-supplied ``http_client`` is used as-is and never closed by the
    SDK; otherwise the client creates its own and closes it in aclose().
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key_header: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = config.resolve_api_key(api_key)
        if not self.api_key:
            raise ConfigurationError("missing API key: pass api_key or set SECLAI_API_KEY")

        raw_base = config.resolve_base_url(base_url)
        try:
            parsed = httpx.URL(raw_base)
        except httpx.InvalidURL as exc:
            raise ConfigurationError(f"invalid base URL: {exc}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ConfigurationError(f"invalid base URL: {raw_base!r}")

        self.base_url = parsed
        self.api_key_header = config.resolve_api_key_header(api_key_header)
        self.timeout = timeout if timeout is not None else config.TIMEOUT_SECONDS
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> "SeclaiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or (self._owns_http and self._http.is_closed):
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._http

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http and self._http is not None and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    def build_url(self, path: str, params: Optional[Mapping[str, str]] = None) -> httpx.URL:
        return build_url(self.base_url, path, params)

    def _headers(
        self,
        accept: str,
        content_type: Optional[str] = None,
        extra: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        headers = {self.api_key_header: self.api_key, "Accept": accept}
        if content_type:
            headers["Content-Type"] = content_type
        for name, value in (extra or {}).items():
            if not name.strip():
                continue
            headers[name] = value
        return headers

    @staticmethod
    def _decode(response: httpx.Response, method: str, url: httpx.URL, decode: bool = True) -> Any:
        raw = response.content
        if not response.is_success:
            raise build_status_error(response.status_code, method, str(url), raw)
        if not decode or not raw.strip():
            return None
        return response.json()

    # -----------------------------------------------------------------------
    # Low-level requests
    # -----------------------------------------------------------------------
    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        json: JsonBody = None,
        headers: Optional[Mapping[str, str]] = None,
        decode: bool = True,
    ) -> Any:
        """
        Make a low-level request to the Seclai API.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            API path, joined onto the base URL.
        params : Mapping[str, str], optional
            Query parameters; empty values are dropped.
        json : BaseModel or mapping, optional
            Request body, sent as JSON.
        headers : Mapping[str, str], optional
            Extra headers; entries with a blank name are skipped.
        decode : bool
            When False the body of a 2xx response is not parsed and None is
            returned; status errors are still raised.

        Returns
        -------
        Any
            Decoded JSON body, or None when the body is empty or decode is False.

        Raises
        ------
        APIStatusError
            For non-2xx responses (APIValidationError for 422).
        """
        url = self.build_url(path, params)
        payload = _to_payload(json)
        request_headers = self._headers(
            JSON_CONTENT_TYPE,
            content_type=JSON_CONTENT_TYPE if payload is not None else None,
            extra=headers,
        )

        http = await self._get_http()
        logger.debug("%s %s", method, url)
        if payload is None:
            response = await http.request(method, url, headers=request_headers)
        else:
            response = await http.request(method, url, json=payload, headers=request_headers)
        return self._decode(response, method, url, decode=decode)

    async def _request_model(
        self,
        model: Type[ModelT],
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        json: JsonBody = None,
    ) -> ModelT:
        data = await self.request(method, path, params=params, json=json)
        return model.model_validate(data if data is not None else {})

    # -----------------------------------------------------------------------
    # Sources
    # -----------------------------------------------------------------------
    async def list_sources(
        self,
        page: int = 0,
        limit: int = 0,
        sort: str = "",
        order: str = "",
        account_id: str = "",
    ) -> SourceListResponse:
        """List sources. Zero / empty arguments are left to server defaults."""
        params = _paging_params(page, limit)
        params.update({"sort": sort, "order": order, "account_id": account_id})
        return await self._request_model(SourceListResponse, "GET", "/api/sources/", params=params)

    async def upload_file_to_source(
        self,
        source_connection_id: str,
        file: bytes,
        file_name: str,
        title: Optional[str] = None,
    ) -> FileUploadResponse:
        """
        Upload a file to a source connection as multipart/form-data.

        Raises ConfigurationError before any request when ``file`` is empty
        or ``file_name`` is blank.
        """
        if not file:
            raise ConfigurationError("upload requires non-empty file bytes")
        if not file_name or not file_name.strip():
            raise ConfigurationError("upload requires file_name")

        url = self.build_url(f"/api/sources/{escape_path_segment(source_connection_id)}/upload")
        data = {"title": title} if title else None
        files = {"file": (file_name, file, "application/octet-stream")}

        http = await self._get_http()
        logger.debug("POST %s (upload %s, %d bytes)", url, file_name, len(file))
        response = await http.post(url, data=data, files=files, headers=self._headers(JSON_CONTENT_TYPE))
        body = self._decode(response, "POST", url)
        return FileUploadResponse.model_validate(body if body is not None else {})

    # -----------------------------------------------------------------------
    # Agent runs
    # -----------------------------------------------------------------------
    async def run_agent(self, agent_id: str, body: Union[AgentRunRequest, Mapping[str, Any]]) -> AgentRunResponse:
        """Start an agent run and return its initial state."""
        path = f"/api/agents/{escape_path_segment(agent_id)}/runs"
        return await self._request_model(AgentRunResponse, "POST", path, json=body)

    async def run_streaming_agent_and_wait(
        self,
        agent_id: str,
        body: Union[AgentRunStreamRequest, Mapping[str, Any], None] = None,
        timeout: Optional[float] = None,
    ) -> AgentRunResponse:
        """
        Run an agent in priority mode and wait for it to finish.

        Parameters
        ----------
        agent_id : str
            Agent to run.
        body : AgentRunStreamRequest or mapping, optional
            Run input and metadata.
        timeout : float, optional
            Deadline in seconds for the whole call. Defaults to
            config.STREAM_TIMEOUT_SECONDS (60s).

        Returns
        -------
        AgentRunResponse
            State from the ``done`` event, or the last known state if the
            stream closed before ``done``.

        Raises
        ------
        StreamTimeoutError
            The deadline expired; the connection has been closed.
        StreamEndedError
            The stream closed without any decodable run state.
        APIStatusError
            The endpoint answered with a non-2xx status.
        """
        deadline = resolve_timeout(timeout)
        url = self.build_url(f"/api/agents/{escape_path_segment(agent_id)}/runs/stream")
        payload = _to_payload(body if body is not None else AgentRunStreamRequest())
        return await run_with_deadline(self._stream_run(url, payload, deadline), deadline, url=str(url))

    async def _stream_run(self, url: httpx.URL, payload: Any, deadline: float) -> AgentRunResponse:
        http = await self._get_http()
        headers = self._headers(EVENT_STREAM_CONTENT_TYPE, content_type=JSON_CONTENT_TYPE)

        logger.debug("POST %s (stream, deadline=%ss)", url, deadline)
        async with http.stream(
            "POST", url, json=payload, headers=headers, timeout=httpx.Timeout(deadline),
        ) as response:
            if not response.is_success:
                raw = await response.aread()
                raise build_status_error(response.status_code, "POST", str(url), raw)
            return await consume_run_stream(response.aiter_bytes())

    async def list_agent_runs(self, agent_id: str, page: int = 0, limit: int = 0) -> AgentRunListResponse:
        path = f"/api/agents/{escape_path_segment(agent_id)}/runs"
        return await self._request_model(AgentRunListResponse, "GET", path, params=_paging_params(page, limit))

    async def get_agent_run(self, agent_id: str, run_id: str) -> AgentRunResponse:
        path = f"/api/agents/{escape_path_segment(agent_id)}/runs/{escape_path_segment(run_id)}"
        return await self._request_model(AgentRunResponse, "GET", path)

    async def delete_agent_run(self, agent_id: str, run_id: str) -> None:
        """Cancel / delete a run."""
        path = f"/api/agents/{escape_path_segment(agent_id)}/runs/{escape_path_segment(run_id)}"
        await self.request("DELETE", path, decode=False)

    # -----------------------------------------------------------------------
    # Contents
    # -----------------------------------------------------------------------
    async def get_content_detail(
        self,
        content_version_id: str,
        start: int = 0,
        end: int = 0,
    ) -> ContentDetailResponse:
        params: Dict[str, str] = {}
        if start > 0:
            params["start"] = str(start)
        if end > 0:
            params["end"] = str(end)
        path = f"/api/contents/{escape_path_segment(content_version_id)}"
        return await self._request_model(ContentDetailResponse, "GET", path, params=params)

    async def delete_content(self, content_version_id: str) -> None:
        await self.request("DELETE", f"/api/contents/{escape_path_segment(content_version_id)}", decode=False)

    async def list_content_embeddings(
        self,
        content_version_id: str,
        page: int = 0,
        limit: int = 0,
    ) -> ContentEmbeddingsListResponse:
        path = f"/api/contents/{escape_path_segment(content_version_id)}/embeddings"
        return await self._request_model(
            ContentEmbeddingsListResponse, "GET", path, params=_paging_params(page, limit),
        )
