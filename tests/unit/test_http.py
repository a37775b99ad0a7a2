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

import pytest

from arangopy.exceptions import ClientException, ServerException
from arangopy.http import HttpResponse, build_raw_request, parse_headers

EOL = "\r\n"


class TestHttp:
    @pytest.mark.describe("test of header parsing")
    def test_parse_headers(self) -> None:
        code, status_line, headers = parse_headers(
            EOL.join(
                [
                    "HTTP/1.1 201 Created",
                    "Content-Type: application/json",
                    "Location: /_db/_system/_api/document/users/1",
                ]
            )
        )
        assert code == 201
        assert status_line == "HTTP/1.1 201 Created"
        assert headers == {
            "content-type": "application/json",
            "location": "/_db/_system/_api/document/users/1",
        }

        code2, _, headers2 = parse_headers("Content-Id: 3")
        assert code2 is None
        assert headers2 == {"content-id": "3"}

        with pytest.raises(ClientException):
            parse_headers("HTTP/1.1 200 OK" + EOL + "not a header")

    @pytest.mark.describe("test of raw response parsing")
    def test_from_raw(self) -> None:
        response = HttpResponse.from_raw(
            "HTTP/1.1 200 OK"
            + EOL
            + "Content-Length: 7"
            + EOL
            + EOL
            + '{"a":1}'
            + EOL
            + EOL
        )
        assert response.http_code == 200
        assert response.body == '{"a":1}'
        assert response.get_header("Content-Length") == "7"

        no_content = HttpResponse.from_raw("HTTP/1.1 204 No Content" + EOL)
        assert no_content.body == ""

        with pytest.raises(ClientException):
            HttpResponse.from_raw("HTTP/1.1 200 OK" + EOL + "Server: x")

    @pytest.mark.describe("test of response status and envelope checks")
    def test_status_and_envelope(self) -> None:
        ok = HttpResponse(status_code=200, body='{"error":false,"x":1}')
        assert ok.raise_for_status() is ok
        assert ok.envelope() == {"error": False, "x": 1}

        not_found = HttpResponse(
            status_code=404,
            body='{"error":true,"code":404,"errorNum":1202,"errorMessage":"not found"}',
            result="HTTP/1.1 404 Not Found",
        )
        with pytest.raises(ServerException) as exc_info:
            not_found.raise_for_status()
        assert exc_info.value.http_code == 404
        assert exc_info.value.error_num == 1202
        assert str(exc_info.value) == "404 not found"

        error_envelope = HttpResponse(
            status_code=200,
            body='{"error":true,"code":400,"errorMessage":"bad"}',
        )
        with pytest.raises(ServerException) as exc_info2:
            error_envelope.envelope()
        assert exc_info2.value.http_code == 400

        with pytest.raises(ClientException):
            HttpResponse(status_code=200, body="[1, 2]").json()
        with pytest.raises(ClientException):
            HttpResponse(status_code=200, body="not json").json()

    @pytest.mark.describe("test of raw request building")
    def test_build_raw_request(self) -> None:
        raw = build_raw_request(
            "POST", "/_api/cursor", "é".encode("utf-8"), {"X-Test": "1"}
        )
        assert raw == (
            "POST /_api/cursor HTTP/1.1"
            + EOL
            + "X-Test: 1"
            + EOL
            + "Content-Length: 2"
            + EOL
            + EOL
            + "é"
        ).encode("utf-8")
