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
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict

import httpx

from arangopy.batch_part import BatchPart, part_type_for_request
from arangopy.constants import PartIdType
from arangopy.defaults import BATCH_INDEX_OUT_OF_RANGE_MESSAGE, MIME_BOUNDARY
from arangopy.exceptions import ClientException
from arangopy.http import HEADER_CONTENT_TYPE, HttpResponse, build_raw_request
from arangopy.multipart import boundary_from_content_type, decode_batch, encode_batch

if TYPE_CHECKING:
    from arangopy.connection import Connection


logger = logging.getLogger(__name__)

CURSOR_OPTION_NAMES = ("sanitize", "flat")


class BatchState(Enum):
    """
    The lifecycle of a Batch.

    Values:
        IDLE: created, not capturing yet.
        CAPTURING: requests on the connection are being captured.
        CAPTURED: capture stopped, not processed yet.
        PROCESSED: sent to the server, responses available.
    """

    IDLE = "idle"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    PROCESSED = "processed"


class Batch:
    """
    A group of requests sent to the server in a single multipart HTTP exchange.

    While a batch is capturing, every request made through its connection
    is recorded as a BatchPart instead of being sent; `process()` then sends
    all of them at once and distributes the sub-responses to the parts.

    Args:
        connection: the connection whose requests are captured.
        size: if given, the maximum number of parts. Capturing a request
            beyond this capacity is an error.
        start_capture: whether to start capturing right away.
        sanitize: the default `sanitize` option for cursors produced
            by the parts.

    Example:
        >>> batch = Batch(connection)
        >>> part = document_handler.get("users", "john")
        >>> batch.process()
        >>> part.get_processed_response()
        Document({'name': 'John', ...})
    """

    def __init__(
        self,
        connection: Connection,
        *,
        size: int | None = None,
        start_capture: bool = True,
        sanitize: bool = False,
    ) -> None:
        if size is not None and (isinstance(size, bool) or not isinstance(size, int) or size < 0):
            raise ClientException("Batch size should be a non-negative integer")
        self.connection = connection
        self.size = size
        self.sanitize = sanitize
        self._parts: Dict[PartIdType, BatchPart] = {}
        self._state = BatchState.IDLE
        self._next_part_id: PartIdType | None = None
        self._next_cursor_options: dict[str, Any] | None = None
        self._batch_response: HttpResponse | None = None
        if start_capture:
            self.start_capture()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(parts={len(self._parts)}, "
            f"state={self._state.value})"
        )

    def __len__(self) -> int:
        return len(self._parts)

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def is_active(self) -> bool:
        """Whether this batch is the one bound to its connection."""
        return self.connection.active_batch is self

    @property
    def is_capturing(self) -> bool:
        return self.is_active and self.connection.is_capturing

    @property
    def batch_response(self) -> HttpResponse | None:
        """The raw multipart response of the last `process()` call, if any."""
        return self._batch_response

    def start_capture(self) -> Batch:
        """
        Start capturing the requests made through the connection.

        Raises:
            ClientException: if another batch is capturing on the connection.
        """
        self.connection.enter_capture(self)
        self._state = BatchState.CAPTURING
        return self

    def stop_capture(self) -> Batch:
        """
        Stop capturing: requests go to the server right away again.

        Raises:
            ClientException: if this batch is not the one capturing.
        """
        if not self.is_capturing:
            raise ClientException("Cannot stop capturing with this batch: batch not active")
        self.connection.exit_capture()
        self._state = BatchState.CAPTURED
        return self

    def next_batch_part_id(self, part_id: PartIdType) -> Batch:
        """Set the id for the next captured part only."""
        if isinstance(part_id, bool) or not isinstance(part_id, (int, str)):
            raise ClientException("Batch part id should be an int or a string")
        self._next_part_id = part_id
        return self

    def next_batch_part_cursor_options(self, **options: Any) -> Batch:
        """Set the cursor options (`sanitize`, `flat`) for the next captured part only."""
        unknown_names = set(options) - set(CURSOR_OPTION_NAMES)
        if unknown_names:
            raise ClientException(
                f"Unknown cursor options: {', '.join(sorted(unknown_names))}"
            )
        self._next_cursor_options = options
        return self

    def append(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
    ) -> BatchPart:
        """
        Record a request as a new part. This is called by the connection
        while in capture mode.

        Raises:
            ClientException: if the batch is full, or the part id is already taken.
        """
        # staged values apply to this capture only, even a rejected one
        next_part_id, self._next_part_id = self._next_part_id, None
        next_cursor_options, self._next_cursor_options = self._next_cursor_options, None
        if self.size is not None and len(self._parts) >= self.size:
            raise ClientException(BATCH_INDEX_OUT_OF_RANGE_MESSAGE)
        part_id: PartIdType = (
            next_part_id if next_part_id is not None else len(self._parts)
        )
        if part_id in self._parts:
            raise ClientException(f"Batch part id {part_id!r} is already in use")
        full_path = path
        if params:
            full_path = f"{path}?{httpx.QueryParams(params)}"
        cursor_options = (
            next_cursor_options
            if next_cursor_options is not None
            else {"sanitize": self.sanitize}
        )
        part = BatchPart(
            self,
            part_id,
            part_type_for_request(method, path),
            method=method,
            path=full_path,
            body=body,
            raw_request=build_raw_request(method, full_path, body, headers),
            cursor_options=cursor_options,
        )
        self._parts[part_id] = part
        logger.debug(f"captured batch part {part!r}")
        return part

    def count_parts(self) -> int:
        return len(self._parts)

    def get_batch_parts(self) -> dict[PartIdType, BatchPart]:
        return dict(self._parts)

    def get_part(self, part_id: PartIdType) -> BatchPart:
        if part_id not in self._parts:
            raise ClientException("Request batch part does not exist.")
        return self._parts[part_id]

    def get_part_response(self, part_id: PartIdType) -> HttpResponse:
        return self.get_part(part_id).get_response()

    def get_processed_part_response(self, part_id: PartIdType) -> Any:
        return self.get_part(part_id).get_processed_response()

    def process(self) -> Batch:
        """
        Send all the captured parts to the server in a single request and
        attach each sub-response to its part.

        Capture is stopped first, if still active. Processing the same batch
        again sends all its parts again.

        Raises:
            ClientException: if the batch is empty, or the response does not
                match the captured parts.
            ConnectException: if the server could not be reached.
            ServerException: if the batch request as a whole failed.
        """
        if self.is_capturing:
            self.stop_capture()
        if not self._parts:
            raise ClientException("Can't process empty batch.")
        parts = list(self._parts.values())
        logger.info(f"processing batch with {len(parts)} parts")
        payload = encode_batch(
            [(str(part.id), part.raw_request) for part in parts],
            MIME_BOUNDARY,
        )
        response = self.connection.send_batch(payload, MIME_BOUNDARY)
        boundary = (
            boundary_from_content_type(response.get_header(HEADER_CONTENT_TYPE))
            or MIME_BOUNDARY
        )
        sub_responses = decode_batch(response.body, boundary)
        if len(sub_responses) != len(parts):
            raise ClientException(
                f"Batch response holds {len(sub_responses)} parts, "
                f"{len(parts)} were sent"
            )
        pairs = list(zip(parts, sub_responses))
        # parts keep their previous responses unless the whole reply matches
        for part, (content_id, _) in pairs:
            if content_id is not None and content_id != str(part.id):
                raise ClientException(
                    f"Batch response part '{content_id}' does not match "
                    f"request part '{part.id}'"
                )
        for part, (_, sub_response) in pairs:
            part.set_response(sub_response)
        self._batch_response = response
        self._state = BatchState.PROCESSED
        logger.info("finished processing batch")
        return self
