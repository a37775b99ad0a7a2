# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import logging

import httpx
import pytest
from pytest_httpserver import HTTPServer

from arangopy import (
    Batch,
    BatchPart,
    CaptureMode,
    ClientException,
    ConnectException,
    Connection,
    ConnectionOptions,
    ServerException,
)
from arangopy.request_tools import HttpMethod

from ..conftest import api_path


class TestConnection:
    @pytest.mark.describe("test of connection options merging")
    def test_connection_options(self) -> None:
        base = ConnectionOptions(endpoint="http://h:1/", database="db1", timeout_ms=5)
        merged = base.with_override(ConnectionOptions(database="db2"))
        assert merged.endpoint == "http://h:1/"
        assert merged.database == "db2"
        assert merged.timeout_ms == 5
        assert merged.database_url == "http://h:1/_db/db2"
        assert base.with_override(None) is base

        conn = Connection(base, database="db3")
        assert conn.options.endpoint == "http://h:1/"
        assert conn.database == "db3"
        conn.close()

    @pytest.mark.describe("test of connection requests, headers and user agent")
    def test_connection_request(self, httpserver: HTTPServer) -> None:
        def hv_matcher(hk: str, hv: str | None, ev: str) -> bool:
            if hk.lower() == "user-agent":
                return hv is not None and hv.startswith(ev)
            return hv == ev

        httpserver.expect_oneshot_request(
            api_path("/_api/x"),
            method=HttpMethod.POST,
            headers={
                "h": "v",
                "User-Agent": "cn0/cv0 cn1/cv1 arangopy/",
                "Content-Type": "application/json",
            },
            header_value_matcher=hv_matcher,
            query_string="p=1",
            data='{"a":"ü"}',
        ).respond_with_json({"error": False, "r": 1})
        with Connection(
            endpoint=httpserver.url_for("/"),
            headers={"h": "v", "skipped": None},
            callers=[("cn0", "cv0"), ("cn1", "cv1")],
        ) as conn:
            response = conn.post("/_api/x", {"a": "ü"}, params={"p": 1})
            assert not isinstance(response, BatchPart)
            assert response.envelope() == {"error": False, "r": 1}
            assert "skipped" not in conn.full_headers
        httpserver.check_assertions()

    @pytest.mark.describe("test of connection error statuses")
    def test_connection_server_errors(self, connection: Connection, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/missing"), method=HttpMethod.GET
        ).respond_with_json(
            {"error": True, "code": 404, "errorNum": 1203, "errorMessage": "gone"},
            status=404,
        )
        with pytest.raises(ServerException) as exc_info:
            connection.get("/_api/missing")
        assert exc_info.value.http_code == 404
        assert exc_info.value.error_num == 1203
        assert exc_info.value.error_message == "gone"

        httpserver.expect_oneshot_request(
            api_path("/_api/broken"), method=HttpMethod.GET
        ).respond_with_data("upstream down", status=502)
        with pytest.raises(ServerException) as exc_info2:
            connection.get("/_api/broken")
        assert exc_info2.value.http_code == 502
        assert exc_info2.value.details == {}

    @pytest.mark.describe("test of connection failures to reach the server")
    def test_connection_connect_exception(self) -> None:
        def failing_handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(failing_handler))
        conn = Connection(endpoint="http://db.invalid:8529", client=client)
        with pytest.raises(ConnectException) as exc_info:
            conn.get("/_api/version")
        assert exc_info.value.endpoint == "http://db.invalid:8529/_db/_system/_api/version"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        conn.close()
        # a client passed by the caller is not closed by the connection
        assert not client.is_closed
        client.close()

    @pytest.mark.describe("test of json encoding with utf-8 checks")
    def test_connection_json_encode(self) -> None:
        conn = Connection(ConnectionOptions(check_utf8=True))
        assert conn.json_encode({"a": [1, "x"], "b": None}) == '{"a":[1,"x"],"b":null}'
        with pytest.raises(ClientException):
            conn.json_encode({"a": "\ud800"})
        with pytest.raises(ClientException):
            conn.request("TRACE", "/_api/x")
        conn.close()

    @pytest.mark.describe("test of connection capture mode switching")
    def test_connection_capture_mode(self, connection: Connection, httpserver: HTTPServer) -> None:
        assert connection.capture_mode == CaptureMode.NORMAL
        batch = Batch(connection)
        assert connection.capture_mode == CaptureMode.CAPTURE
        assert connection.is_capturing
        assert connection.active_batch is batch

        part = connection.get("/_api/document/users/1")
        assert isinstance(part, BatchPart)
        assert len(httpserver.log) == 0

        with pytest.raises(ClientException):
            Batch(connection)

        batch.stop_capture()
        assert connection.capture_mode == CaptureMode.NORMAL
        other_batch = Batch(connection)
        assert connection.active_batch is other_batch
        other_batch.stop_capture()

    @pytest.mark.describe("test of header redaction in logs")
    def test_connection_redacted_logging(
        self,
        httpserver: HTTPServer,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/version"), method=HttpMethod.GET
        ).respond_with_json({"version": "3.11"})
        with Connection(
            endpoint=httpserver.url_for("/"),
            headers={"Authorization": "bearer s3cr3t"},
        ) as conn:
            with caplog.at_level(logging.DEBUG, logger="arangopy"):
                conn.get("/_api/version")
        assert "s3cr3t" not in caplog.text
        assert "***" in caplog.text
