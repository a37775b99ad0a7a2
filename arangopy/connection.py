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
import logging
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Union

import httpx

from arangopy.constants import CallerType
from arangopy.defaults import (
    BATCH_CONTENT_TYPE_TEMPLATE,
    HEADER_REDACT_PLACEHOLDER,
    URL_BATCH,
)
from arangopy.exceptions import ClientException, ConnectException
from arangopy.http import HttpResponse
from arangopy.options import ConnectionOptions
from arangopy.request_tools import (
    HttpMethod,
    log_httpx_request,
    log_httpx_response,
    to_httpx_timeout,
)
from arangopy.user_agents import compose_full_user_agent

if TYPE_CHECKING:
    from arangopy.batch import Batch
    from arangopy.batch_part import BatchPart


logger = logging.getLogger(__name__)

BodyType = Union[bytes, str, Dict[str, Any], List[Any], None]


class CaptureMode(Enum):
    """
    The modes a `Connection` can be in.

    Values:
        NORMAL: every request is sent to the server right away.
        CAPTURE: every request is handed to the active batch, which turns it
            into a deferred BatchPart. Nothing reaches the network.
    """

    NORMAL = "normal"
    CAPTURE = "capture"


def _check_encoding(data: Any) -> None:
    if isinstance(data, dict):
        for key, value in data.items():
            _check_encoding(key)
            _check_encoding(value)
    elif isinstance(data, (list, tuple)):
        for value in data:
            _check_encoding(value)
    elif isinstance(data, str):
        try:
            data.encode("utf-8")
        except UnicodeEncodeError:
            raise ClientException(
                f"Only UTF-8 encoded strings allowed. Wrong encoding in string: {data!r}"
            )


class Connection:
    """
    A connection to a database on the server, wrapping an HTTP client.

    All handler objects, statements and cursors issue their requests through
    a Connection. A connection is normally in the NORMAL mode, where each request
    is an actual HTTP exchange; a `Batch` can switch it to the CAPTURE mode,
    in which requests are recorded as batch parts instead.

    Capture mode is exclusive per connection: while a batch is capturing,
    every request made through this connection, by whatever code, ends up
    in that batch. Code that needs to talk to the server while a batch is
    capturing should use a separate Connection.

    Args:
        options: a ConnectionOptions instance. Additional keyword arguments,
            if provided, override the corresponding values from it.
        client: an httpx.Client to use for the HTTP exchanges. If not provided,
            a new one is created and owned by (i.e. closed with) the connection.
        endpoint: the base URL of the server.
        database: the database to work on.
        timeout_ms: a per-request timeout in milliseconds.
        headers: additional headers to send with each request.
        callers: a list of (caller_name, caller_version) pairs for the User-Agent.

    Example:
        >>> with Connection(endpoint="http://localhost:8529") as connection:
        ...     cursor = Statement(connection, "RETURN 1").execute()
        ...     print(cursor.get_all())
        ...
        [1]
    """

    def __init__(
        self,
        options: ConnectionOptions | None = None,
        *,
        client: httpx.Client | None = None,
        endpoint: str | None = None,
        database: str | None = None,
        timeout_ms: int | None = None,
        headers: dict[str, str | None] | None = None,
        callers: Sequence[CallerType] | None = None,
    ) -> None:
        overrides = ConnectionOptions(
            **{
                k: v
                for k, v in {
                    "endpoint": endpoint,
                    "database": database,
                    "timeout_ms": timeout_ms,
                    "headers": headers,
                    "callers": list(callers) if callers is not None else None,
                }.items()
                if v is not None
            }
        )
        self.options = (options or ConnectionOptions()).with_override(overrides)
        self._owns_client = client is None
        self.client = client if client is not None else httpx.Client()

        self._capture_mode = CaptureMode.NORMAL
        self._active_batch: Batch | None = None

        user_agent = compose_full_user_agent(self.options.callers)
        self.full_headers: dict[str, str] = {
            **{k: v for k, v in self.options.headers.items() if v is not None},
            **{"User-Agent": user_agent},
        }
        self._loggable_headers = {
            k: (
                v
                if k not in self.options.redacted_header_names
                else HEADER_REDACT_PLACEHOLDER
            )
            for k, v in self.full_headers.items()
        }

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(endpoint="{self.options.endpoint}", '
            f'database="{self.options.database}", '
            f"capture_mode={self._capture_mode.value})"
        )

    def __enter__(self) -> Connection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client, if it is owned by this connection."""
        if self._owns_client:
            self.client.close()

    @property
    def database(self) -> str:
        return self.options.database

    @property
    def capture_mode(self) -> CaptureMode:
        """The current mode of this connection, a value of `CaptureMode`."""
        return self._capture_mode

    @property
    def is_capturing(self) -> bool:
        return self._capture_mode == CaptureMode.CAPTURE

    @property
    def active_batch(self) -> Batch | None:
        """The batch currently (or last) bound to this connection, if any."""
        return self._active_batch

    def enter_capture(self, batch: Batch) -> None:
        """
        Switch this connection to capture mode on behalf of a batch.

        Raises:
            ClientException: if a different batch is already capturing
                on this connection.
        """
        if self.is_capturing and self._active_batch is not batch:
            raise ClientException(
                "Another batch is already capturing requests on this connection."
            )
        self._active_batch = batch
        self._capture_mode = CaptureMode.CAPTURE
        logger.debug("connection entering capture mode")

    def exit_capture(self) -> None:
        """Bring this connection back to the normal mode."""
        self._capture_mode = CaptureMode.NORMAL
        logger.debug("connection leaving capture mode")

    def json_encode(self, data: Any) -> str:
        """
        Encode a request body to compact JSON.

        Raises:
            ClientException: if UTF-8 checking is enabled and a string
                in the data cannot be encoded.
        """
        if self.options.check_utf8:
            _check_encoding(data)
        return json.dumps(
            data,
            allow_nan=False,
            ensure_ascii=False,
            separators=(",", ":"),
        )

    def _encode_body(self, body: BodyType) -> bytes:
        if body is None:
            return b""
        if isinstance(body, bytes):
            return body
        if isinstance(body, str):
            return body.encode("utf-8")
        return self.json_encode(body).encode("utf-8")

    def _compose_request_url(self, path: str) -> str:
        return "/".join([self.options.database_url, path.lstrip("/")])

    def request(
        self,
        http_method: str,
        path: str,
        *,
        body: BodyType = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse | BatchPart:
        """
        Issue a request, or capture it if the connection is in capture mode.

        Args:
            http_method: the HTTP verb.
            path: the path, relative to the database (e.g. "/_api/cursor").
            body: the request body: either a JSON-serializable object,
                or an already encoded string/bytes.
            params: query-string parameters.
            headers: headers specific to this request.

        Returns:
            an HttpResponse in normal mode, a BatchPart in capture mode.

        Raises:
            ConnectException: if the server could not be reached.
            ServerException: if the response status is not in the 200-399 range.
        """
        HttpMethod.validate(http_method)
        encoded_body = self._encode_body(body)
        if self._capture_mode == CaptureMode.CAPTURE:
            if self._active_batch is None:
                raise ClientException("Capture mode is active but no batch is bound.")
            return self._active_batch.append(
                http_method,
                path,
                params=params,
                body=encoded_body,
                headers=headers,
            )
        return self._execute(
            http_method,
            path,
            encoded_body=encoded_body,
            params=params,
            headers=headers,
        )

    def _execute(
        self,
        http_method: str,
        path: str,
        *,
        encoded_body: bytes,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> HttpResponse:
        request_url = self._compose_request_url(path)
        request_headers = {**self.full_headers, **(headers or {})}
        if encoded_body and not any(
            hk.lower() == "content-type" for hk in request_headers
        ):
            request_headers["Content-Type"] = "application/json"
        log_httpx_request(
            http_method=http_method,
            full_url=request_url,
            request_params=params,
            redacted_request_headers={
                **self._loggable_headers,
                **(headers or {}),
            },
            payload=encoded_body or None,
        )
        try:
            raw_response = self.client.request(
                method=http_method,
                url=request_url,
                content=encoded_body or None,
                params=params,
                headers=request_headers,
                timeout=to_httpx_timeout(self.options.timeout_ms),
            )
        except httpx.TransportError as transport_exc:
            raise ConnectException.from_httpx_error(transport_exc) from transport_exc
        log_httpx_response(response=raw_response)
        return HttpResponse.from_httpx(raw_response).raise_for_status()

    def get(
        self, path: str, params: dict[str, Any] | None = None
    ) -> HttpResponse | BatchPart:
        return self.request(HttpMethod.GET, path, params=params)

    def head(
        self, path: str, params: dict[str, Any] | None = None
    ) -> HttpResponse | BatchPart:
        return self.request(HttpMethod.HEAD, path, params=params)

    def post(
        self, path: str, body: BodyType, params: dict[str, Any] | None = None
    ) -> HttpResponse | BatchPart:
        return self.request(HttpMethod.POST, path, body=body, params=params)

    def put(
        self, path: str, body: BodyType, params: dict[str, Any] | None = None
    ) -> HttpResponse | BatchPart:
        return self.request(HttpMethod.PUT, path, body=body, params=params)

    def patch(
        self, path: str, body: BodyType, params: dict[str, Any] | None = None
    ) -> HttpResponse | BatchPart:
        return self.request(HttpMethod.PATCH, path, body=body, params=params)

    def delete(
        self, path: str, params: dict[str, Any] | None = None
    ) -> HttpResponse | BatchPart:
        return self.request(HttpMethod.DELETE, path, params=params)

    def send_batch(self, body: bytes, boundary: str) -> HttpResponse:
        """
        Send a multipart batch payload. This is never captured, regardless
        of the current mode.
        """
        return self._execute(
            HttpMethod.POST,
            URL_BATCH,
            encoded_body=body,
            params=None,
            headers={
                "Content-Type": BATCH_CONTENT_TYPE_TEMPLATE.format(boundary=boundary)
            },
        )


__all__ = [
    "CaptureMode",
    "Connection",
]
