"""
Tests for the Canvas API client.

CanvasClient.list_page() / download() against a local aiohttp server.
check_network() with requests mocked out.
"""

import asyncio
import io
from unittest.mock import patch

import certifi
import pytest
import requests
from aiohttp import test_utils, web

from canvassync.api.client import CanvasClient, CanvasClientConfig, check_network, get_certifi_path
from canvassync.api.models import Course, File, Folder
from canvassync.errors import (
    AuthorizationError,
    HTTPStatusError,
    MalformedResponseError,
    TransportError,
)

COURSES = [{"id": i, "name": f"Course {i}"} for i in range(1, 6)]
FILE = {
    "id": 10,
    "folder_id": 3,
    "display_name": "syllabus.pdf",
    "size": 7,
    "created_at": "2023-01-01T00:00:00Z",
    "updated_at": "2023-01-02T03:04:05Z",
    "url": "",
}


def make_app(seen_headers: list) -> web.Application:
    async def courses(request):
        seen_headers.append(dict(request.headers))
        page = int(request.query.get("page", "1"))
        per_page = 2
        chunk = COURSES[(page - 1) * per_page:page * per_page]
        headers = {}
        if page * per_page < len(COURSES):
            next_url = request.url.with_query({"per_page": "100", "page": str(page + 1)})
            headers["Link"] = f'<{next_url}>; rel="next", <{request.url}>; rel="current"'
        return web.json_response(chunk, headers=headers)

    async def forbidden(request):
        return web.json_response({"status": "unauthorized"}, status=403)

    async def unauthenticated(request):
        return web.json_response({"errors": []}, status=401)

    async def server_error(request):
        return web.Response(status=500, text="oops")

    async def not_a_list(request):
        return web.json_response({"errors": [{"message": "nope"}]})

    async def not_json(request):
        return web.Response(text="<html>maintenance</html>", content_type="text/html")

    async def bad_item(request):
        return web.json_response([{"id": 1}])

    async def files(request):
        return web.json_response([FILE])

    async def folders(request):
        return web.json_response([
            {"id": 1, "parent_folder_id": None, "name": "course files", "full_name": "course files",
             "updated_at": "2023-01-01T00:00:00Z", "folders_count": 1, "files_count": 0},
            {"id": 2, "parent_folder_id": 1, "name": "Week 1", "full_name": "course files/Week 1",
             "updated_at": None, "folders_count": 0, "files_count": 4},
        ])

    async def download(request):
        seen_headers.append(dict(request.headers))
        return web.Response(body=b"x" * 100_000)

    async def redirect(request):
        raise web.HTTPFound("/download/1")

    async def missing(request):
        return web.Response(status=404)

    app = web.Application()
    app.router.add_get("/api/v1/courses", courses)
    app.router.add_get("/api/v1/courses/1/folders", folders)
    app.router.add_get("/api/v1/courses/2/folders", forbidden)
    app.router.add_get("/api/v1/courses/3/folders", unauthenticated)
    app.router.add_get("/api/v1/folders/3/files", files)
    app.router.add_get("/api/v1/folders/5/files", server_error)
    app.router.add_get("/api/v1/folders/6/files", not_a_list)
    app.router.add_get("/api/v1/folders/7/files", not_json)
    app.router.add_get("/api/v1/folders/8/files", bad_item)
    app.router.add_get("/download/1", download)
    app.router.add_get("/download/redirect", redirect)
    app.router.add_get("/download/missing", missing)
    return app


def run_with_client(body):
    """Run body(client, server, seen_headers) against a fresh local server."""
    async def scenario():
        seen_headers = []
        server = test_utils.TestServer(make_app(seen_headers))
        await server.start_server()
        try:
            config = CanvasClientConfig(url=str(server.make_url("")).rstrip("/"), token="secret-token")
            async with CanvasClient(config) as client:
                return await body(client, server, seen_headers)
        finally:
            await server.close()

    return asyncio.run(scenario())


class TestUrls:
    """Tests for URL construction."""

    def test_listing_urls(self):
        client = CanvasClient(CanvasClientConfig(url="https://canvas.example.edu", token="t"))
        assert client.courses_url() == "https://canvas.example.edu/api/v1/courses?per_page=100"
        assert client.folders_in_course_url(42) == "https://canvas.example.edu/api/v1/courses/42/folders?per_page=100"
        assert client.files_in_folder_url(7) == "https://canvas.example.edu/api/v1/folders/7/files?per_page=100"

    def test_session_required(self):
        client = CanvasClient(CanvasClientConfig(url="https://canvas.example.edu", token="t"))
        with pytest.raises(RuntimeError):
            client.session


class TestListPage:
    """Tests for list_page()."""

    def test_follows_next_link(self):
        async def body(client, server, seen):
            pages = []
            url = client.courses_url()
            while url:
                items, url = await client.list_page(url, Course.from_dict)
                pages.append([c.id for c in items])
            return pages, client.api_calls

        pages, calls = run_with_client(body)
        assert pages == [[1, 2], [3, 4], [5]]
        assert calls == 3

    def test_bearer_token_sent(self):
        async def body(client, server, seen):
            await client.list_page(client.courses_url(), Course.from_dict)
            return seen

        seen = run_with_client(body)
        assert seen[0]["Authorization"] == "Bearer secret-token"

    def test_folders_parsed(self):
        async def body(client, server, seen):
            return await client.list_page(client.folders_in_course_url(1), Folder.from_dict)

        folders, next_url = run_with_client(body)
        assert next_url is None
        assert [(f.id, f.parent_id, f.files_count) for f in folders] == [(1, 0, 0), (2, 1, 4)]
        assert folders[1].updated_at is None

    def test_files_parsed(self):
        async def body(client, server, seen):
            return await client.list_page(client.files_in_folder_url(3), File.from_dict)

        [file], _ = run_with_client(body)
        assert file.display_name == "syllabus.pdf"
        assert file.updated_at.isoformat() == "2023-01-02T03:04:05+00:00"

    @pytest.mark.parametrize("course_id", [2, 3])
    def test_authorization_errors(self, course_id):
        async def body(client, server, seen):
            await client.list_page(client.folders_in_course_url(course_id), Folder.from_dict)

        with pytest.raises(AuthorizationError):
            run_with_client(body)

    def test_server_error(self):
        async def body(client, server, seen):
            await client.list_page(client.files_in_folder_url(5), File.from_dict)

        with pytest.raises(HTTPStatusError) as excinfo:
            run_with_client(body)
        assert excinfo.value.status == 500
        assert not isinstance(excinfo.value, AuthorizationError)

    @pytest.mark.parametrize("folder_id", [6, 7, 8])
    def test_malformed_bodies(self, folder_id):
        async def body(client, server, seen):
            await client.list_page(client.files_in_folder_url(folder_id), File.from_dict)

        with pytest.raises(MalformedResponseError):
            run_with_client(body)

    def test_connection_refused(self):
        async def scenario():
            server = test_utils.TestServer(web.Application())
            await server.start_server()
            url = str(server.make_url("")).rstrip("/")
            await server.close()

            async with CanvasClient(CanvasClientConfig(url=url, token="t")) as client:
                await client.list_page(client.courses_url(), Course.from_dict)

        with pytest.raises(TransportError):
            asyncio.run(scenario())


class TestDownload:
    """Tests for download()."""

    def test_streams_content_without_token(self):
        async def body(client, server, seen):
            sink = io.BytesIO()
            written = await client.download(str(server.make_url("/download/1")), sink)
            return written, sink.getvalue(), seen

        written, content, seen = run_with_client(body)
        assert written == 100_000
        assert content == b"x" * 100_000
        assert "Authorization" not in seen[-1]

    def test_follows_redirect(self):
        async def body(client, server, seen):
            sink = io.BytesIO()
            return await client.download(str(server.make_url("/download/redirect")), sink)

        assert run_with_client(body) == 100_000

    def test_status_error(self):
        async def body(client, server, seen):
            await client.download(str(server.make_url("/download/missing")), io.BytesIO())

        with pytest.raises(HTTPStatusError):
            run_with_client(body)


class TestCheckNetwork:
    """Tests for check_network()."""

    def test_online(self):
        with patch("canvassync.api.client.requests.head") as head:
            assert check_network("https://canvas.example.edu") == (True, None)
        head.assert_called_once_with("https://canvas.example.edu", timeout=3.0)

    def test_offline(self):
        with patch("canvassync.api.client.requests.head", side_effect=requests.ConnectionError()):
            assert check_network("https://canvas.example.edu") == (False, "No internet connection")

    def test_timeout(self):
        with patch("canvassync.api.client.requests.head", side_effect=requests.Timeout()):
            assert check_network("https://canvas.example.edu") == (False, "Connection timed out")


class TestCertifiPath:
    """Tests for get_certifi_path()."""

    def test_installed_bundle(self):
        assert get_certifi_path() == certifi.where()

    def test_frozen_build_bundle(self, temp_dir, monkeypatch):
        bundled = temp_dir / "certifi" / "cacert.pem"
        bundled.parent.mkdir()
        bundled.write_text("certs")
        monkeypatch.setattr("sys.frozen", True, raising=False)
        monkeypatch.setattr("sys._MEIPASS", str(temp_dir), raising=False)

        assert get_certifi_path() == str(bundled)

    def test_frozen_build_without_bundle(self, temp_dir, monkeypatch):
        monkeypatch.setattr("sys.frozen", True, raising=False)
        monkeypatch.setattr("sys._MEIPASS", str(temp_dir), raising=False)

        assert get_certifi_path() == certifi.where()
