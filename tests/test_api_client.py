"""
Tests for ApiClient: envelope unwrapping, error mapping and auth handling.
"""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from homeservice_admin.api import AdminSession, ApiClient, MultipartForm
from homeservice_admin.exceptions import (
    DEFAULT_ERROR_MESSAGE,
    ApiError,
    TransportError,
    UnauthorizedError,
    describe_error,
)
from homeservice_admin.models import FileUpload, Language

from conftest import API_TOKEN, envelope


class TestApiClient:
    """ApiClient against a small scripted server."""

    @pytest.fixture
    def seen(self):
        return []

    @pytest_asyncio.fixture
    async def server(self, seen):
        async def ok(request):
            seen.append({"query": dict(request.query), "headers": dict(request.headers)})
            return envelope({"value": 42})

        async def refused(request):
            return envelope(success=False, message="Service has active bookings")

        async def refused_with_errors(request):
            return envelope(success=False, errors=["name must not be blank", "fee too high"])

        async def refused_empty(request):
            return envelope(success=False)

        async def bad_request(request):
            return envelope(success=False, message="Validation failed", status=400)

        async def server_error(request):
            return web.Response(status=502, text="Bad gateway")

        async def unauthorized(request):
            return envelope(success=False, message="Token expired", status=401)

        async def not_json(request):
            return web.Response(text="<html>oops</html>", content_type="text/html")

        async def upload(request):
            body = await request.post()
            icon = body.get("icon")
            seen.append({
                "fields": {k: v for k, v in body.items() if not isinstance(v, web.FileField)},
                # the spooled file is closed once the response is sent
                "file": {"filename": icon.filename, "content": icon.file.read()} if icon is not None else None,
            })
            return envelope(True)

        async def echo_json(request):
            seen.append({"json": await request.json()})
            return envelope(True)

        app = web.Application()
        app.router.add_get("/ok", ok)
        app.router.add_get("/refused", refused)
        app.router.add_get("/refused-errors", refused_with_errors)
        app.router.add_get("/refused-empty", refused_empty)
        app.router.add_get("/bad-request", bad_request)
        app.router.add_get("/server-error", server_error)
        app.router.add_get("/unauthorized", unauthorized)
        app.router.add_get("/not-json", not_json)
        app.router.add_post("/upload", upload)
        app.router.add_post("/echo", echo_json)

        server = TestServer(app)
        await server.start_server()
        yield server
        await server.close()

    @pytest_asyncio.fixture
    async def client(self, server):
        client = ApiClient(str(server.make_url("")), AdminSession(API_TOKEN))
        yield client
        await client.close()

    @pytest.mark.asyncio
    async def test_returns_envelope_data(self, client, seen):
        """Successful envelope yields its data field."""
        assert await client.get("/ok") == {"value": 42}
        assert seen[0]["headers"]["Authorization"] == f"Bearer {API_TOKEN}"

    @pytest.mark.asyncio
    async def test_drops_empty_params_and_sends_enum_values(self, client, seen):
        await client.get("/ok", params={"lang": Language.AMHARIC, "page": None})
        assert seen[0]["query"] == {"lang": "AMHARIC"}

    @pytest.mark.asyncio
    async def test_success_false_raises_with_server_message(self, client):
        with pytest.raises(ApiError) as exc_info:
            await client.get("/refused")
        assert exc_info.value.display_message == "Service has active bookings"
        assert str(exc_info.value) == "Service has active bookings"

    @pytest.mark.asyncio
    async def test_success_false_falls_back_to_first_field_error(self, client):
        with pytest.raises(ApiError) as exc_info:
            await client.get("/refused-errors")
        assert exc_info.value.display_message == "name must not be blank"
        assert exc_info.value.field_errors == ["name must not be blank", "fee too high"]

    @pytest.mark.asyncio
    async def test_success_false_without_details_uses_default_message(self, client):
        with pytest.raises(ApiError) as exc_info:
            await client.get("/refused-empty")
        assert describe_error(exc_info.value) == DEFAULT_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status(self, client):
        with pytest.raises(ApiError) as exc_info:
            await client.get("/bad-request")
        assert exc_info.value.status == 400
        assert exc_info.value.display_message == "Validation failed"

    @pytest.mark.asyncio
    async def test_non_json_error_reports_status_code(self, client):
        with pytest.raises(ApiError) as exc_info:
            await client.get("/server-error")
        assert exc_info.value.display_message == "Request failed with status code 502"

    @pytest.mark.asyncio
    async def test_2xx_without_envelope_is_malformed(self, client):
        with pytest.raises(ApiError, match="Malformed response"):
            await client.get("/not-json")

    @pytest.mark.asyncio
    async def test_401_clears_session(self, client):
        with pytest.raises(UnauthorizedError) as exc_info:
            await client.get("/unauthorized")
        assert exc_info.value.display_message == "Token expired"
        assert not client.session.is_authenticated
        assert client.session.auth_headers() == {}

    @pytest.mark.asyncio
    async def test_multipart_fields_and_file(self, client, seen):
        form = MultipartForm()
        form.add("name", "Painting")
        form.add("isMobileCategory", True)
        form.add("description", None)
        form.add_file("icon", FileUpload(filename="icon.png", content=b"\x89PNG", content_type="image/png"))

        assert await client.post("/upload", form=form) is True
        assert seen[0]["fields"] == {"name": "Painting", "isMobileCategory": "true"}
        assert seen[0]["file"] == {"filename": "icon.png", "content": b"\x89PNG"}

    @pytest.mark.asyncio
    async def test_multipart_without_file(self, client, seen):
        form = MultipartForm()
        form.add("name", "Painting")

        await client.post("/upload", form=form)
        assert seen[0]["fields"] == {"name": "Painting"}
        assert seen[0]["file"] is None

    @pytest.mark.asyncio
    async def test_json_body(self, client, seen):
        await client.post("/echo", json={"name": "Bilbo", "lang": "AMHARIC"})
        assert seen[0]["json"] == {"name": "Bilbo", "lang": "AMHARIC"}

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self, unused_tcp_port):
        client = ApiClient(f"http://127.0.0.1:{unused_tcp_port}", AdminSession(API_TOKEN))
        try:
            with pytest.raises(TransportError) as exc_info:
                await client.get("/ok")
        finally:
            await client.close()
        assert exc_info.value.method == "GET"
        assert describe_error(exc_info.value)


class TestAdminSession:
    """AdminSession token handling."""

    def test_headers_with_token(self):
        session = AdminSession("abc")
        assert session.is_authenticated
        assert session.auth_headers() == {"Authorization": "Bearer abc"}

    def test_empty_token_is_unauthenticated(self):
        session = AdminSession("")
        assert not session.is_authenticated
        assert session.auth_headers() == {}


class TestMultipartForm:
    """MultipartForm field handling."""

    def test_set_replaces_existing_value(self):
        form = MultipartForm()
        form.add("parentServiceId", 1)
        form.set("parentServiceId", 7)
        assert form.fields == [("parentServiceId", "7")]

    def test_copy_is_independent(self):
        form = MultipartForm()
        form.add("name", "Leak")
        clone = form.copy()
        clone.set("name", "Drain")
        assert form.get("name") == "Leak"
        assert "name" in clone
        assert "missing" not in clone
