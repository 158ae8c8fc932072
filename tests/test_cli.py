"""Tests for the CLI."""

import base64
import json
import os
import re
from unittest.mock import patch

import pytest
import responses
from click.testing import CliRunner

from reggie.cli import main

BASE = "https://registry.test"
AUTH_URL = "https://auth.example/token"


@pytest.fixture(autouse=True)
def isolated_credentials(tmp_path):
    with patch("reggie.credentials.Path.home", return_value=tmp_path), patch.dict(
        os.environ, {}, clear=True
    ):
        yield


class TestCliBasics:
    """Test basic CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "reggie" in result.output

    def test_request_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["request", "--help"])
        assert result.exit_code == 0
        assert "PATH" in result.output

    def test_version_command(self):
        runner = CliRunner()
        result = runner.invoke(main, ["version"])
        assert result.exit_code == 0
        assert "reggie version" in result.output
        assert re.search(r"\d+\.\d+\.\d+", result.output)

    def test_address_required(self):
        runner = CliRunner()
        result = runner.invoke(main, ["request", "GET", "/v2/"])
        assert result.exit_code != 0
        assert "--address" in result.output

    def test_invalid_address(self):
        runner = CliRunner()
        result = runner.invoke(main, ["request", "GET", "/v2/", "-A", "xwejknxw://jshnws"])
        assert result.exit_code == 1
        assert "not a valid URL" in result.output

    def test_malformed_header(self):
        runner = CliRunner()
        result = runner.invoke(main, ["request", "GET", "/v2/", "-A", BASE, "-H", "NoColon"])
        assert result.exit_code != 0
        assert "Key: Value" in result.output


class TestRequestCommand:
    """Test sending requests from the command line."""

    @responses.activate
    def test_get_prints_body(self):
        responses.add(
            responses.GET,
            f"{BASE}/v2/library/nginx/tags/list",
            json={"name": "library/nginx", "tags": ["latest"]},
        )
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["request", "get", "/v2/<name>/tags/list", "-A", BASE, "-n", "library/nginx"],
        )
        assert result.exit_code == 0
        assert "-> 200" in result.output
        assert '"tags": ["latest"]' in result.output

    @responses.activate
    def test_address_from_env(self):
        responses.add(responses.GET, f"{BASE}/v2/", json={})
        runner = CliRunner()
        result = runner.invoke(main, ["request", "GET", "/v2/"], env={"REGGIE_ADDRESS": BASE})
        assert result.exit_code == 0
        assert len(responses.calls) == 1

    @responses.activate
    def test_headers_query_and_data(self):
        responses.add(responses.PUT, f"{BASE}/v2/repo/blobs/uploads/abc", status=201)
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "request",
                "PUT",
                "/v2/<name>/blobs/uploads/<session_id>",
                "-A",
                BASE,
                "-n",
                "repo",
                "--session-id",
                "abc",
                "-H",
                "Content-Type: application/octet-stream",
                "-q",
                "digest=sha256:abc",
                "-d",
                "abc",
            ],
        )
        assert result.exit_code == 0
        request = responses.calls[0].request
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert "digest=sha256%3Aabc" in request.url
        assert request.body == b"abc"

    @responses.activate
    def test_data_file(self, tmp_path):
        body_file = tmp_path / "manifest.json"
        body_file.write_bytes(b'{"schemaVersion": 2}')
        responses.add(responses.PUT, f"{BASE}/v2/repo/manifests/v1", status=201)
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "request",
                "PUT",
                "/v2/repo/manifests/<reference>",
                "-A",
                BASE,
                "-r",
                "v1",
                "--data-file",
                str(body_file),
            ],
        )
        assert result.exit_code == 0
        assert responses.calls[0].request.body == b'{"schemaVersion": 2}'

    def test_data_and_data_file_exclusive(self, tmp_path):
        body_file = tmp_path / "body"
        body_file.write_bytes(b"x")
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["request", "PUT", "/v2/", "-A", BASE, "-d", "x", "--data-file", str(body_file)],
        )
        assert result.exit_code != 0
        assert "mutually exclusive" in result.output

    @responses.activate
    def test_unresolved_placeholder(self):
        runner = CliRunner()
        result = runner.invoke(
            main, ["request", "HEAD", "/v2/<name>/manifests/<reference>", "-A", BASE, "-n", "repo"]
        )
        assert result.exit_code == 1
        assert "request is invalid" in result.output
        assert len(responses.calls) == 0

    @responses.activate
    def test_errors_flag(self):
        responses.add(
            responses.GET,
            f"{BASE}/v2/repo/blobs/sha256:abc",
            status=404,
            json={"errors": [{"code": "BLOB_UNKNOWN", "message": "blob unknown", "detail": "d"}]},
        )
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["request", "GET", "/v2/repo/blobs/<digest>", "-A", BASE, "--digest", "sha256:abc", "--errors"],
        )
        assert result.exit_code == 0
        start = result.output.index("[")
        errors = json.loads(result.output[start:])
        assert errors == [{"code": "BLOB_UNKNOWN", "message": "blob unknown", "detail": "d"}]

    @responses.activate
    def test_errors_flag_malformed_body(self):
        responses.add(responses.GET, f"{BASE}/v2/", status=500, body="oops")
        runner = CliRunner()
        result = runner.invoke(main, ["request", "GET", "/v2/", "-A", BASE, "--errors"])
        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    @responses.activate
    def test_auth_override_used_for_token(self):
        expected = "Basic " + base64.b64encode(b"cli_user:cli_pass").decode()

        def registry(request):
            if request.headers.get("Authorization") == "Bearer t0k3n":
                return 200, {}, "{}"
            return 401, {"WWW-Authenticate": f'Bearer realm="{AUTH_URL}",service="svc"'}, ""

        def token(request):
            if request.headers.get("Authorization") != expected:
                return 401, {}, ""
            return 200, {}, '{"token": "t0k3n"}'

        responses.add_callback(responses.GET, f"{BASE}/v2/", callback=registry)
        responses.add_callback(responses.GET, AUTH_URL, callback=token)

        runner = CliRunner()
        result = runner.invoke(
            main,
            ["request", "GET", "/v2/", "-A", BASE, "--auth", "registry.test=cli_user:cli_pass"],
        )
        assert result.exit_code == 0
        assert "-> 200" in result.output
        assert len(responses.calls) == 3
