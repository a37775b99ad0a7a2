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

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, cast

import httpx

from arangopy.defaults import ENTRY_CODE, ENTRY_ERROR, EOL, HTTP_PROTOCOL
from arangopy.exceptions import ClientException, ServerException

HEADER_LOCATION = "location"
HEADER_CONTENT_TYPE = "content-type"
HEADER_CONTENT_LENGTH = "content-length"

_STATUS_LINE_PATTERN = re.compile(r"^HTTP/\d+\.\d+\s+(\d+)")
# status codes which come without a body
_BODYLESS_STATUS_CODES = {204, 304}


def _to_text(message: bytes | str) -> str:
    if isinstance(message, bytes):
        return message.decode("utf-8")
    return message


def parse_headers(header_block: str) -> tuple[int | None, str, dict[str, str]]:
    """
    Parse the header section of an HTTP message.

    Args:
        header_block: status line and header lines, separated by CRLF.

    Returns:
        a (http_code, status_line, headers) tuple. Header names are lowercased,
        the http_code is None if the first line is not an HTTP status line
        (as is the case for MIME section headers).
    """
    http_code: int | None = None
    status_line = ""
    headers: dict[str, str] = {}
    for line_number, line in enumerate(header_block.split(EOL)):
        line = line.strip()
        if line_number == 0:
            status_line = line
            match = _STATUS_LINE_PATTERN.match(line)
            if match:
                http_code = int(match.group(1))
                continue
        if not line:
            continue
        key, sep, value = line.partition(":")
        if not sep:
            raise ClientException(f"Invalid HTTP header line: '{line}'")
        headers[key.rstrip().lower()] = value.lstrip()
    return (http_code, status_line, headers)


def split_http_message(message: str) -> tuple[str, str | None]:
    """Split a full HTTP message into its header section and its body."""
    header_block, sep, body = message.partition(EOL + EOL)
    return (header_block, body if sep else None)


@dataclass
class HttpResponse:
    """
    A decoded HTTP response, either received directly from the server or
    extracted from one part of a multipart batch response.

    Attributes:
        status_code: the HTTP status code.
        headers: a dictionary of the response headers, with lowercased names.
        body: the response body, as text.
        result: the status line of the response (e.g. "HTTP/1.1 200 OK").
    """

    status_code: int | None
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    result: str = ""

    @property
    def http_code(self) -> int | None:
        return self.status_code

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def location_header(self) -> str | None:
        return self.get_header(HEADER_LOCATION)

    def json(self) -> dict[str, Any]:
        """
        Decode the body as a JSON object.

        Raises:
            ClientException: if the body is not valid JSON, or not a JSON object.
        """
        try:
            decoded = json.loads(self.body)
        except ValueError:
            decoded = None
        if not isinstance(decoded, dict):
            raise ClientException("Got a malformed result from the server")
        return cast(Dict[str, Any], decoded)

    def raise_for_status(self) -> HttpResponse:
        """
        Raise a ServerException if the status code is outside the 200-399 range,
        with the server-provided error details attached if there are any.
        """
        if self.status_code is None or not 200 <= self.status_code < 400:
            raise ServerException.from_response(self)
        return self

    def envelope(self) -> dict[str, Any]:
        """
        Decode the body as a server reply envelope, that is, a JSON object
        which may report an error even though the HTTP status is a success.

        Raises:
            ClientException: if the body is not a JSON object.
            ServerException: if the envelope has `"error": true`.
        """
        decoded = self.json()
        if decoded.get(ENTRY_ERROR) is True:
            raise ServerException(
                self.result or str(self.status_code),
                http_code=decoded.get(ENTRY_CODE, self.status_code),
                details=decoded,
            )
        return decoded

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> HttpResponse:
        status_line = f"{response.http_version} {response.status_code} {response.reason_phrase}"
        return cls(
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=response.text,
            result=status_line.strip(),
        )

    @classmethod
    def from_raw(cls, message: bytes | str) -> HttpResponse:
        """
        Parse a raw HTTP response message (status line, headers, body).

        Raises:
            ClientException: if the message has no body separator and its status
                code is one that requires a body.
        """
        header_block, body = split_http_message(_to_text(message))
        http_code, status_line, headers = parse_headers(header_block)
        if body is None:
            if http_code not in _BODYLESS_STATUS_CODES:
                raise ClientException("Got an invalid response from the server")
            body = ""
        content_length = headers.get(HEADER_CONTENT_LENGTH, "")
        if content_length.isdigit():
            encoded_body = body.encode("utf-8")
            if len(encoded_body) > int(content_length):
                body = encoded_body[: int(content_length)].decode("utf-8")
        return cls(
            status_code=http_code,
            headers=headers,
            body=body,
            result=status_line,
        )


def build_raw_request(
    method: str,
    url: str,
    body: bytes,
    headers: Mapping[str, str] | None = None,
) -> bytes:
    """
    Assemble a complete HTTP/1.1 request message, as embedded in a batch part.

    Args:
        method: the HTTP verb.
        url: the request target, relative to the database (e.g. "/_api/cursor").
        body: the already-encoded body (possibly empty).
        headers: additional header lines to include.

    Returns:
        the request message as bytes, body included.
    """
    lines = [f"{method} {url} {HTTP_PROTOCOL}"]
    for header_name, header_value in (headers or {}).items():
        lines.append(f"{header_name}: {header_value}")
    lines.append(f"Content-Length: {len(body)}")
    head = EOL.join(lines) + EOL + EOL
    return head.encode("utf-8") + body
