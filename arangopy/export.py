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
from typing import TYPE_CHECKING, Any, Mapping

from arangopy.constants import RestrictionType, RestrictType
from arangopy.cursors import ENTRY_COUNT, AbstractCursor
from arangopy.defaults import URL_EXPORT
from arangopy.document import Collection
from arangopy.exceptions import ClientException
from arangopy.http import HttpResponse
from arangopy.statement import validate_batch_size

if TYPE_CHECKING:
    from arangopy.batch_part import BatchPart
    from arangopy.connection import Connection


logger = logging.getLogger(__name__)


def _validate_restrict(restrict: Mapping[str, Any] | None) -> RestrictType | None:
    if restrict is None:
        return None
    if not isinstance(restrict, Mapping):
        raise ClientException("Invalid restrictions value: a mapping is required")
    if restrict.get("type") not in RestrictionType.values():
        raise ClientException("Invalid restrictions type")
    fields = restrict.get("fields")
    if not isinstance(fields, (list, tuple)):
        raise ClientException("Invalid restrictions fields: a list is required")
    return {"type": restrict["type"], "fields": list(fields)}


class ExportCursor(AbstractCursor):
    """
    A cursor over the documents of a collection, as returned by an export.

    Rather than row by row, an export cursor is consumed one page at a time
    with `get_next_batch()`:

        >>> cursor = Export(connection, "users", batch_size=1000).execute()
        >>> while (page := cursor.get_next_batch()) is not None:
        ...     process(page)
    """

    _consumed: int
    _count: int | None

    def __init__(
        self,
        connection: Connection,
        data: dict[str, Any],
        *,
        sanitize: bool = False,
        flat: bool = False,
        base_path: str = URL_EXPORT,
    ) -> None:
        super().__init__(
            connection,
            data,
            sanitize=sanitize,
            flat=flat,
            base_path=base_path,
        )
        self._consumed = 0
        self._count = data.get(ENTRY_COUNT)

    def get_next_batch(self) -> list[Any] | None:
        """
        Get the next page of results, fetching it from the server if needed.

        Returns:
            a list of rows, or None if the export is exhausted.
        """
        if self._consumed < len(self._buffer):
            page = self._buffer[self._consumed :]
        elif self._has_more and self._id is not None:
            page = self._fetch_outstanding()
        else:
            return None
        self._consumed = len(self._buffer)
        return page

    def get_count(self) -> int | None:
        """The total number of documents, if `count` was requested on the export."""
        return self._count


class Export:
    """
    An export of the documents in a collection, producing an ExportCursor.

    Args:
        connection: the connection to run the export on.
        collection: the collection, as a name or a Collection object.
        batch_size: the maximum number of documents per page.
        flat: if True, rows are not turned into Document objects.
        sanitize: if True, `_id` and `_rev` are stripped from every row.
        limit: the maximum number of documents to export.
        restrict: a field restriction such as
            `{"type": "include", "fields": ["_key", "name"]}`.
        count: whether the server should report the total count.

    Raises:
        ClientException: if the restriction or the batch size are invalid.
    """

    def __init__(
        self,
        connection: Connection,
        collection: str | Collection,
        *,
        batch_size: int | None = None,
        flat: bool = False,
        sanitize: bool = False,
        limit: int | None = None,
        restrict: Mapping[str, Any] | None = None,
        count: bool = False,
    ) -> None:
        if isinstance(collection, Collection):
            collection_name = collection.name
        else:
            collection_name = collection
        if not collection_name:
            raise ClientException("A collection name is required for an export")
        self.connection = connection
        self.collection_name: str = collection_name
        self.batch_size = validate_batch_size(batch_size)
        self.flat = flat
        self.sanitize = sanitize
        self.limit = limit
        self.restrict = _validate_restrict(restrict)
        self.count = count

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(collection="{self.collection_name}")'

    def _build_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"flush": True}
        if self.batch_size is not None:
            payload["batchSize"] = self.batch_size
        if self.limit is not None and self.limit > 0:
            payload["limit"] = self.limit
        if self.restrict is not None:
            payload["restrict"] = self.restrict
        if self.count:
            payload["count"] = True
        return payload

    def execute(self) -> ExportCursor | BatchPart:
        """
        Start the export on the server.

        Returns:
            an ExportCursor, or the BatchPart for the deferred request if
            the connection is capturing a batch.
        """
        logger.info(f"starting export of '{self.collection_name}'")
        response = self.connection.post(
            URL_EXPORT,
            self._build_payload(),
            params={"collection": self.collection_name},
        )
        if not isinstance(response, HttpResponse):
            return response
        return ExportCursor(
            self.connection,
            response.envelope(),
            sanitize=self.sanitize,
            flat=self.flat,
        )
