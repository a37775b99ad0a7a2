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
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from arangopy.defaults import ENTRY_ERROR_MESSAGE, ENTRY_ERROR_NUM

if TYPE_CHECKING:
    from arangopy.http import HttpResponse


class ArangoException(Exception):
    """
    Any exception raised by this client, be it a failure to reach the server,
    a local usage error or an error reported by the server itself.
    """

    pass


@dataclass
class ConnectException(ArangoException):
    """
    The server could not be reached at all: DNS resolution, socket errors
    and timeouts all end up here. The core never retries these.

    Attributes:
        text: a text message about the exception.
        endpoint: the URL the failed request was targeting, if known.
    """

    text: str
    endpoint: str | None

    def __init__(
        self,
        text: str,
        *,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.endpoint = endpoint

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.TransportError,
        **kwargs: Any,
    ) -> ConnectException:
        """Parse a httpx transport error into this exception."""

        endpoint: str | None
        # not all transport errors are bound to a request
        try:
            endpoint = str(httpx_error.request.url)
        except RuntimeError:
            endpoint = None
        text = str(httpx_error) or httpx_error.__class__.__name__
        return cls(text, endpoint=endpoint, **kwargs)


@dataclass
class ClientException(ArangoException):
    """
    A local contract violation, detected before or without involving
    the server: malformed responses, unknown batch parts, invalid arguments
    and the like.

    Attributes:
        text: a text message about the exception.
    """

    text: str

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


@dataclass
class ServerException(ArangoException):
    """
    The server answered with an HTTP status outside the 200-399 range,
    or with an error envelope.

    Attributes:
        text: a text message about the exception (usually the HTTP status line).
        http_code: the HTTP status code of the response.
        details: the decoded JSON error envelope, if the server sent one.
        error_num: the server-specific error number, if any.
        error_message: the server-provided error message, if any.
    """

    text: str
    http_code: int | None
    details: dict[str, Any]

    def __init__(
        self,
        text: str,
        *,
        http_code: int | None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.http_code = http_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_message:
            return f"{self.http_code} {self.error_message}"
        return self.text

    @property
    def error_num(self) -> int | None:
        return self.details.get(ENTRY_ERROR_NUM)

    @property
    def error_message(self) -> str | None:
        return self.details.get(ENTRY_ERROR_MESSAGE)

    @staticmethod
    def from_response(response: HttpResponse) -> ServerException:
        """Parse a failed server response into this exception."""

        details: dict[str, Any] | None = None
        if response.body:
            # the attempt to extract error details cannot afford failure.
            try:
                decoded = json.loads(response.body)
            except ValueError:
                decoded = None
            if isinstance(decoded, dict):
                details = decoded
        return ServerException(
            response.result or str(response.status_code),
            http_code=response.status_code,
            details=details,
        )
