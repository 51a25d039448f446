"""
Client Tests
============
SeclaiClient configuration, URL building, status-error mapping and the
typed convenience methods, exercised against a FastAPI fake of the API
through httpx.ASGITransport.
"""
import asyncio

import httpx
import pytest
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from seclai.client.api_client import SeclaiClient
from seclai.client.url_builder import build_url, escape_path_segment
from seclai.core.errors import APIStatusError, APIValidationError, ConfigurationError
from seclai.models.agent_run import AgentRunRequest

BASE_URL = "http://testserver"

SOURCE_LIST = {
    "data": [{
        "account_id": "00000000-0000-0000-0000-000000000000",
        "content_filter": "",
        "created_at": "2026-01-11T00:00:00Z",
        "id": "src_1",
        "name": "Source",
        "source_type": "custom",
        "updated_at": "2026-01-11T00:00:00Z",
    }],
    "pagination": {"has_next": False, "has_prev": False, "limit": 20, "page": 1, "pages": 1, "total": 1},
}

RUN = {"attempts": [], "error_count": 0, "priority": False, "run_id": "run_1", "status": "pending"}


def make_app(seen):
    app = FastAPI()

    @app.get("/api/sources/")
    async def list_sources(request: Request):
        seen["headers"] = dict(request.headers)
        seen["params"] = dict(request.query_params)
        return SOURCE_LIST

    @app.post("/api/sources/{source_id}/upload")
    async def upload(source_id: str, request: Request):
        seen["source_id"] = source_id
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = await request.body()
        return {"filename": "a.txt", "status": "pending"}

    @app.post("/api/agents/{agent_id}/runs")
    async def run_agent(agent_id: str, request: Request):
        seen["agent_id"] = agent_id
        seen["json"] = await request.json()
        return RUN

    @app.get("/api/agents/{agent_id}/runs")
    async def list_runs(agent_id: str, request: Request):
        seen["params"] = dict(request.query_params)
        return {"data": [RUN], "pagination": {"total": 1, "page": 2, "limit": 5}}

    @app.get("/api/agents/{agent_id}/runs/{run_id}")
    async def get_run(agent_id: str, run_id: str):
        return {**RUN, "run_id": run_id, "status": "completed", "output": "done"}

    @app.delete("/api/agents/{agent_id}/runs/{run_id}")
    async def delete_run(agent_id: str, run_id: str):
        seen["deleted"] = (agent_id, run_id)
        if "delete_body" in seen:
            return PlainTextResponse(seen["delete_body"])
        return Response(status_code=204)

    @app.get("/api/contents/{content_id}")
    async def content_detail(content_id: str, request: Request):
        seen["params"] = dict(request.query_params)
        return {"content_version_id": content_id, "text": "hello", "start": 10, "end": 20}

    @app.delete("/api/contents/{content_id}")
    async def delete_content(content_id: str):
        seen["deleted"] = content_id
        if "delete_body" in seen:
            return PlainTextResponse(seen["delete_body"])
        return Response(status_code=204)

    @app.get("/api/contents/{content_id}/embeddings")
    async def embeddings(content_id: str):
        return {"data": [{"id": "e1", "text": "hi", "vector": [0.1, 0.2]}], "pagination": {"total": 1}}

    @app.get("/api/invalid")
    async def invalid():
        return JSONResponse(
            status_code=422,
            content={"detail": [{"loc": ["query", "page"], "msg": "bad", "type": "value_error"}]},
        )

    @app.get("/api/invalid-text")
    async def invalid_text():
        return PlainTextResponse("not json", status_code=422)

    @app.get("/api/missing")
    async def missing():
        return PlainTextResponse("no such thing", status_code=404)

    @app.get("/api/echo-headers")
    async def echo_headers(request: Request):
        return {"headers": dict(request.headers)}

    return app


def call(seen, method_name, *args, **kwargs):
    async def run():
        transport = httpx.ASGITransport(app=make_app(seen))
        async with httpx.AsyncClient(transport=transport) as http:
            client = SeclaiClient(api_key="k", base_url=BASE_URL, http_client=http)
            return await getattr(client, method_name)(*args, **kwargs)
    return asyncio.run(run())


@pytest.fixture
def seen():
    return {}


# ---------------------------------------------------------------------------
# 1. Configuration
# ---------------------------------------------------------------------------
class TestConfiguration:

    def test_uses_env_api_key(self, monkeypatch):
        monkeypatch.setenv("SECLAI_API_KEY", "  env-key ")
        client = SeclaiClient()
        assert client.api_key == "env-key"

    def test_explicit_key_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("SECLAI_API_KEY", "env-key")
        assert SeclaiClient(api_key="explicit").api_key == "explicit"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("SECLAI_API_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="missing API key"):
            SeclaiClient(api_key="   ")

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SECLAI_API_URL", raising=False)
        monkeypatch.delenv("SECLAI_API_KEY_HEADER", raising=False)
        client = SeclaiClient(api_key="k")
        assert client.base_url.scheme == "https"
        assert client.base_url.host == "seclai.com"
        assert client.api_key_header == "x-api-key"

    def test_env_base_url_and_header(self, monkeypatch):
        monkeypatch.setenv("SECLAI_API_URL", "http://localhost:9000/v1")
        monkeypatch.setenv("SECLAI_API_KEY_HEADER", "Authorization-Key")
        client = SeclaiClient(api_key="k")
        assert client.base_url.host == "localhost"
        assert client.api_key_header == "Authorization-Key"

    @pytest.mark.parametrize("base_url", ["not a url", "ftp://example.com", "http://"])
    def test_invalid_base_url(self, base_url):
        with pytest.raises(ConfigurationError, match="invalid base URL"):
            SeclaiClient(api_key="k", base_url=base_url)

    def test_configuration_error_message(self):
        assert str(ConfigurationError("boom")) == "seclai: configuration error: boom"

    def test_owned_http_client_closed(self):
        async def run():
            client = SeclaiClient(api_key="k")
            http = await client._get_http()
            await client.aclose()
            return http
        assert asyncio.run(run()).is_closed

    def test_supplied_http_client_not_closed(self):
        async def run():
            http = httpx.AsyncClient()
            async with SeclaiClient(api_key="k", http_client=http):
                pass
            closed = http.is_closed
            await http.aclose()
            return closed
        assert asyncio.run(run()) is False


# ---------------------------------------------------------------------------
# 2. URL building
# ---------------------------------------------------------------------------
class TestBuildUrl:

    def test_keeps_base_path_and_trailing_slash(self):
        url = build_url(httpx.URL("http://h/v1"), "/api/sources/")
        assert str(url) == "http://h/v1/api/sources/"

    def test_base_trailing_slash_and_relative_path(self):
        url = build_url(httpx.URL("http://h/v1/"), "api/runs")
        assert str(url) == "http://h/v1/api/runs"

    def test_cleans_dot_segments_and_double_slashes(self):
        url = build_url(httpx.URL("http://h"), "/api//a/./b/../c")
        assert url.path == "/api/a/c"

    def test_root_path(self):
        assert build_url(httpx.URL("http://h/"), "/").path == "/"

    def test_drops_blank_params(self):
        url = build_url(httpx.URL("http://h"), "/x", {"page": "1", "sort": "", " ": "v"})
        assert url.params == httpx.QueryParams({"page": "1"})

    def test_escapes_path_segments(self):
        segment = escape_path_segment("a/b c")
        assert segment == "a%2Fb%20c"
        url = build_url(httpx.URL("http://h"), f"/api/agents/{segment}/runs")
        assert "a%2Fb%20c" in str(url)


# ---------------------------------------------------------------------------
# 3. Low-level requests and status errors
# ---------------------------------------------------------------------------
class TestRequest:

    def test_sets_auth_header(self, seen):
        call(seen, "request", "GET", "/api/sources/")
        assert seen["headers"]["x-api-key"] == "k"
        assert seen["headers"]["accept"] == "application/json"
        assert "content-type" not in seen["headers"]

    def test_extra_headers_skip_blank_names(self, seen):
        data = call(seen, "request", "GET", "/api/echo-headers", headers={"X-Trace": "t1", " ": "x"})
        assert data["headers"]["x-trace"] == "t1"

    def test_validation_error_422(self, seen):
        with pytest.raises(APIValidationError) as exc_info:
            call(seen, "request", "GET", "/api/invalid")
        err = exc_info.value
        assert err.status_code == 422
        assert err.validation_error.detail[0].msg == "bad"

    def test_validation_error_without_structured_body(self, seen):
        with pytest.raises(APIValidationError) as exc_info:
            call(seen, "request", "GET", "/api/invalid-text")
        assert exc_info.value.validation_error is None
        assert exc_info.value.response_text == "not json"

    def test_status_error(self, seen):
        with pytest.raises(APIStatusError) as exc_info:
            call(seen, "request", "GET", "/api/missing")
        err = exc_info.value
        assert not isinstance(err, APIValidationError)
        assert str(err) == f"seclai: api error (404) GET {BASE_URL}/api/missing: no such thing"

    def test_empty_body_returns_none(self, seen):
        assert call(seen, "request", "DELETE", "/api/contents/c1") is None

    def test_decode_false_skips_body_but_keeps_status_errors(self, seen):
        seen["delete_body"] = "not json"
        assert call(seen, "request", "DELETE", "/api/contents/c1", decode=False) is None
        with pytest.raises(APIStatusError):
            call(seen, "request", "GET", "/api/missing", decode=False)


# ---------------------------------------------------------------------------
# 4. Typed convenience methods
# ---------------------------------------------------------------------------
class TestTypedMethods:

    def test_list_sources(self, seen):
        resp = call(seen, "list_sources", 1, 20)
        assert seen["params"] == {"page": "1", "limit": "20"}
        assert resp.data[0].id == "src_1"
        assert resp.pagination.total == 1

    def test_list_sources_optional_filters(self, seen):
        call(seen, "list_sources", sort="created_at", order="desc", account_id="acc")
        assert seen["params"] == {"sort": "created_at", "order": "desc", "account_id": "acc"}

    def test_run_agent(self, seen):
        res = call(seen, "run_agent", "agent_1", AgentRunRequest(metadata={"k": "v"}))
        assert seen["agent_id"] == "agent_1"
        assert seen["json"] == {"metadata": {"k": "v"}}
        assert res.run_id == "run_1"
        assert res.status == "pending"

    def test_list_agent_runs(self, seen):
        resp = call(seen, "list_agent_runs", "agent_1", page=2, limit=5)
        assert seen["params"] == {"page": "2", "limit": "5"}
        assert resp.data[0].run_id == "run_1"

    def test_get_agent_run(self, seen):
        run = call(seen, "get_agent_run", "agent_1", "run_9")
        assert run.run_id == "run_9"
        assert run.output == "done"

    def test_delete_agent_run(self, seen):
        assert call(seen, "delete_agent_run", "agent_1", "run_9") is None
        assert seen["deleted"] == ("agent_1", "run_9")

    def test_get_content_detail(self, seen):
        detail = call(seen, "get_content_detail", "cv_1", start=10, end=20)
        assert seen["params"] == {"start": "10", "end": "20"}
        assert detail.content_version_id == "cv_1"
        assert detail.text == "hello"

    def test_get_content_detail_omits_zero_range(self, seen):
        call(seen, "get_content_detail", "cv_1")
        assert seen["params"] == {}

    def test_delete_content(self, seen):
        call(seen, "delete_content", "cv_1")
        assert seen["deleted"] == "cv_1"

    @pytest.mark.parametrize("method_name, args", [
        ("delete_agent_run", ("agent_1", "run_9")),
        ("delete_content", ("cv_1",)),
    ])
    def test_delete_ignores_non_json_success_body(self, seen, method_name, args):
        seen["delete_body"] = "OK"
        assert call(seen, method_name, *args) is None
        assert "deleted" in seen

    def test_list_content_embeddings(self, seen):
        resp = call(seen, "list_content_embeddings", "cv_1")
        assert resp.data[0].vector == [0.1, 0.2]


# ---------------------------------------------------------------------------
# 5. Uploads
# ---------------------------------------------------------------------------
class TestUpload:

    def test_multipart_upload(self, seen):
        resp = call(seen, "upload_file_to_source", "sc_1", b"hello", "a.txt", title="My Title")
        assert resp.filename == "a.txt"
        assert resp.status == "pending"
        assert seen["source_id"] == "sc_1"
        assert seen["content_type"].startswith("multipart/form-data")
        body = seen["body"]
        assert b'name="title"' in body
        assert b"My Title" in body
        assert b'filename="a.txt"' in body
        assert b"hello" in body

    def test_upload_without_title(self, seen):
        call(seen, "upload_file_to_source", "sc_1", b"hello", "a.txt")
        assert b'name="title"' not in seen["body"]

    @pytest.mark.parametrize("file,file_name", [(b"", "a.txt"), (b"x", ""), (b"x", "   ")])
    def test_upload_rejects_bad_arguments(self, seen, file, file_name):
        with pytest.raises(ConfigurationError):
            call(seen, "upload_file_to_source", "sc_1", file, file_name)
        assert "source_id" not in seen
