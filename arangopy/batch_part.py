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

import re
from typing import TYPE_CHECKING, Any, Dict

from arangopy.constants import PartIdType
from arangopy.cursors import Cursor
from arangopy.document import ENTRY_ID, Collection, Edge, document_from_row
from arangopy.exceptions import ClientException
from arangopy.export import ExportCursor
from arangopy.http import HttpResponse
from arangopy.request_tools import HttpMethod

if TYPE_CHECKING:
    from arangopy.batch import Batch


_PART_TYPE_PATTERN = re.compile(r"/_api/(\w*)", re.IGNORECASE)


def part_type_for_request(method: str, path: str) -> str:
    """
    Derive the type of a batch part from its request: the first path segment
    after `/_api/`, prefixed with "get" for GET requests
    (e.g. "GET /_api/document/users/1" has type "getdocument").
    """
    match = _PART_TYPE_PATTERN.search(path)
    part_type = match.group(1).lower() if match else ""
    if part_type and method == HttpMethod.GET:
        return f"get{part_type}"
    return part_type


class BatchPart:
    """
    One request captured in a Batch, together with its response once the
    batch has been processed.

    A BatchPart is what handlers, statements and exports return in place of
    their regular result while their connection is capturing a batch. After
    `Batch.process()`, `get_processed_response()` turns the sub-response into
    the value the original call would have returned.

    Attributes:
        batch: the Batch this part belongs to.
        id: the identifier of the part within the batch.
        type: the part type, derived from the request (e.g. "getdocument").
        method: the HTTP verb of the captured request.
        path: the request path, query string included.
        body: the encoded request body.
        raw_request: the complete embedded HTTP request message.
        cursor_options: options (`sanitize`, `flat`) applied when the response
            is turned into a Cursor or ExportCursor.
    """

    def __init__(
        self,
        batch: Batch,
        part_id: PartIdType,
        part_type: str,
        *,
        method: str,
        path: str,
        body: bytes,
        raw_request: bytes,
        cursor_options: dict[str, Any] | None = None,
    ) -> None:
        self.batch = batch
        self.id = part_id
        self.type = part_type
        self.method = method
        self.path = path
        self.body = body
        self.raw_request = raw_request
        self.cursor_options: Dict[str, Any] = dict(cursor_options or {})
        self._response: HttpResponse | None = None
        self._processed: Any = None
        self._is_processed = False

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(id={self.id!r}, type="{self.type}", '
            f'request="{self.method} {self.path}")'
        )

    def set_response(self, response: HttpResponse) -> None:
        self._response = response
        self._processed = None
        self._is_processed = False

    @property
    def has_response(self) -> bool:
        return self._response is not None

    def get_response(self) -> HttpResponse:
        """
        The raw sub-response for this part.

        Raises:
            ClientException: if the batch has not been processed yet.
        """
        if self._response is None:
            raise ClientException("Batch part has no response: process the batch first")
        return self._response

    @property
    def response(self) -> HttpResponse:
        return self.get_response()

    @property
    def http_code(self) -> int | None:
        return self.get_response().status_code

    def get_processed_response(self) -> Any:
        """
        Turn the sub-response into the value of the original call: a Document
        for a document read, a document handle for a document write, a Cursor
        for a query and so on. The result is computed once and cached.

        Raises:
            ClientException: if the batch has not been processed yet, or the
                part type is not one that can be processed.
            ServerException: if the sub-response reports an error.
        """
        if not self._is_processed:
            self._processed = self._process_response(self.get_response())
            self._is_processed = True
        return self._processed

    def _process_response(self, response: HttpResponse) -> Any:
        response.raise_for_status()
        connection = self.batch.connection
        if self.type in ("getdocument", "getedge"):
            data = response.envelope()
            if self.type == "getedge":
                return Edge.create_from_dict(data, is_new=False)
            return document_from_row(data, is_new=False)
        if self.type in ("document", "edge"):
            return response.envelope().get(ENTRY_ID)
        if self.type == "getcollection":
            return Collection.create_from_dict(response.envelope())
        if self.type == "collection":
            return response.envelope().get("id")
        if self.type == "cursor":
            return Cursor(connection, response.envelope(), **self.cursor_options)
        if self.type == "export":
            return ExportCursor(connection, response.envelope(), **self.cursor_options)
        if self.type in ("explain", "query"):
            return response.envelope()
        raise ClientException("Could not determine response data type.")


__all__ = [
    "BatchPart",
    "part_type_for_request",
]
