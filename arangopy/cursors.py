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
from abc import ABC
from typing import TYPE_CHECKING, Any, Iterator

from arangopy.defaults import URL_CURSOR
from arangopy.document import ENTRY_ID, ENTRY_REV, document_from_row
from arangopy.exceptions import ArangoException, ClientException
from arangopy.http import HttpResponse

if TYPE_CHECKING:
    from arangopy.connection import Connection


logger = logging.getLogger(__name__)

ENTRY_CURSOR_ID = "id"
ENTRY_HAS_MORE = "hasMore"
ENTRY_RESULT = "result"
ENTRY_COUNT = "count"
ENTRY_EXTRA = "extra"
ENTRY_STATS = "stats"
ENTRY_WARNINGS = "warnings"
ENTRY_FULL_COUNT = "fullCount"


class AbstractCursor(ABC):
    """
    The machinery common to all server-side cursors: a result set which
    is returned by the server one page at a time.

    A cursor holds the rows received so far in a buffer. More pages are
    requested (with a PUT to `<base_path>/<id>`) only while the server
    reports there is more to read; once the result set is exhausted the
    cursor id is dropped, as the server has released the cursor.

    This class is not meant to be directly instantiated by the user, rather
    it is a superclass for `Cursor` and `ExportCursor`.
    """

    connection: Connection
    base_path: str
    _id: str | None
    _has_more: bool
    _buffer: list[Any]
    _fetches: int
    _sanitize: bool
    _flat: bool
    _metadata: dict[str, Any]

    def __init__(
        self,
        connection: Connection,
        data: dict[str, Any],
        *,
        sanitize: bool = False,
        flat: bool = False,
        base_path: str,
    ) -> None:
        if ENTRY_HAS_MORE not in data:
            raise ClientException("Got a malformed result from the server")
        self.connection = connection
        self.base_path = base_path
        self._sanitize = sanitize
        self._flat = flat
        self._metadata = data
        self._id = data.get(ENTRY_CURSOR_ID)
        self._has_more = bool(data[ENTRY_HAS_MORE])
        self._buffer = []
        self._fetches = 1
        self._add(data.get(ENTRY_RESULT) or [])
        self._release_if_exhausted()

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(id="{self._id}", '
            f"buffered={len(self._buffer)}, has_more={self._has_more}, "
            f"fetches={self._fetches})"
        )

    @property
    def id(self) -> str | None:
        """The server-side cursor id, or None if the server released it."""
        return self._id

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def fetches(self) -> int:
        """The number of HTTP round trips performed by this cursor so far."""
        return self._fetches

    @property
    def metadata(self) -> dict[str, Any]:
        """The first raw response for this cursor."""
        return self._metadata

    def _sanitize_row(self, row: Any) -> Any:
        if self._sanitize and isinstance(row, dict):
            return {k: v for k, v in row.items() if k not in (ENTRY_ID, ENTRY_REV)}
        return row

    def _decode_row(self, row: Any) -> Any:
        row = self._sanitize_row(row)
        if self._flat or not isinstance(row, dict):
            return row
        return document_from_row(row, is_new=False)

    def _decode_page(self, rows: list[Any]) -> list[Any]:
        return [self._decode_row(row) for row in rows]

    def _add(self, rows: list[Any]) -> list[Any]:
        page = self._decode_page(rows)
        self._buffer.extend(page)
        return page

    def _release_if_exhausted(self) -> None:
        if not self._has_more:
            self._id = None

    def _check_not_capturing(self, action: str) -> None:
        if self.connection.is_capturing:
            raise ClientException(
                f"Cannot {action} a cursor while its connection is capturing a batch"
            )

    def _fetch_outstanding(self) -> list[Any]:
        """
        Fetch the next page from the server, append it to the buffer
        and return it.
        """
        if self._id is None:
            raise ClientException("Cannot fetch from a cursor without id")
        self._check_not_capturing("fetch from")
        logger.info(f"fetching next page for cursor '{self._id}'")
        response = self.connection.put(f"{self.base_path}/{self._id}", body=b"")
        if not isinstance(response, HttpResponse):
            raise ClientException("Got a batch part instead of a cursor page")
        data = response.envelope()
        self._fetches += 1
        self._has_more = bool(data.get(ENTRY_HAS_MORE, False))
        page = self._add(data.get(ENTRY_RESULT) or [])
        self._release_if_exhausted()
        logger.info(f"finished fetching next page for cursor ({len(page)} rows)")
        return page

    def delete(self) -> bool:
        """
        Delete the cursor on the server, releasing its resources early.

        Returns:
            True if the server acknowledged the deletion, False if there was
            no cursor id (e.g. the result set is already exhausted) or the
            call failed.

        Raises:
            ClientException: if the connection is capturing a batch.
        """
        if self._id is None:
            return False
        self._check_not_capturing("delete")
        try:
            self.connection.delete(f"{self.base_path}/{self._id}")
        except ArangoException as exc:
            logger.warning(f"could not delete cursor '{self._id}': {exc}")
            return False
        self._id = None
        return True


class Cursor(AbstractCursor):
    """
    A cursor over the result of a query.

    A Cursor is obtained from `Statement.execute()` or from a processed
    batch part, never by direct instantiation in user code. It works as an
    external iterator (`rewind`, `valid`, `current`, `key`, `next`), and also
    supports regular Python iteration, which starts over from the first row:

        >>> cursor = Statement(connection, "FOR d IN users RETURN d").execute()
        >>> for document in cursor:
        ...     print(document.get("name"))

    Further pages are fetched from the server transparently whenever the
    iteration reaches the end of the buffered rows.

    Args:
        connection: the connection the cursor lives on.
        data: the first decoded response from the server.
        sanitize: if True, `_id` and `_rev` are stripped from every row.
        flat: if True, rows are returned as they are decoded from JSON,
            rather than turned into Document/Edge objects.
        base_path: the API path for fetching further pages.
    """

    _position: int
    _count: int | None
    _extra: dict[str, Any]
    _full_count: int | None

    def __init__(
        self,
        connection: Connection,
        data: dict[str, Any],
        *,
        sanitize: bool = False,
        flat: bool = False,
        base_path: str = URL_CURSOR,
    ) -> None:
        super().__init__(
            connection,
            data,
            sanitize=sanitize,
            flat=flat,
            base_path=base_path,
        )
        self._position = 0
        self._count = data.get(ENTRY_COUNT)
        self._extra = data.get(ENTRY_EXTRA) or {}
        self._full_count = (self._extra.get(ENTRY_STATS) or {}).get(ENTRY_FULL_COUNT)
        for warning in self.warnings:
            logger.warning(f"query warning: {warning}")

    def __iter__(self) -> Iterator[Any]:
        self.rewind()
        while self.valid():
            yield self.current()
            self.next()

    def rewind(self) -> None:
        """Bring the iteration back to the first row."""
        self._position = 0

    def valid(self) -> bool:
        """
        Whether the current position holds a row, fetching the next page
        from the server if the buffer has been read to the end.
        """
        if self._position < len(self._buffer):
            return True
        if not self._has_more or self._id is None:
            return False
        self._fetch_outstanding()
        return self._position < len(self._buffer)

    def current(self) -> Any:
        if self._position >= len(self._buffer):
            raise ClientException("Cursor position is past the end of the results")
        return self._buffer[self._position]

    def key(self) -> int:
        return self._position

    def next(self) -> None:
        self._position += 1

    def _fetch_all(self) -> None:
        while self._has_more and self._id is not None:
            self._fetch_outstanding()

    def get_all(self) -> list[Any]:
        """Fetch all remaining pages and return every row of the result."""
        self._fetch_all()
        return list(self._buffer)

    def get_count(self) -> int:
        """The number of rows of the result. All pages are fetched for this."""
        self._fetch_all()
        return len(self._buffer)

    @property
    def count(self) -> int | None:
        """The total count reported by the server, if it was requested."""
        return self._count

    @property
    def full_count(self) -> int | None:
        """The count of rows before the last LIMIT, if it was requested."""
        return self._full_count

    @property
    def extra(self) -> dict[str, Any]:
        return self._extra

    @property
    def warnings(self) -> list[Any]:
        return self._extra.get(ENTRY_WARNINGS) or []

    @property
    def stats(self) -> dict[str, Any]:
        return self._extra.get(ENTRY_STATS) or {}

    def _get_stat_value(self, name: str) -> int:
        return self.stats.get(name, 0)

    @property
    def writes_executed(self) -> int:
        return self._get_stat_value("writesExecuted")

    @property
    def writes_ignored(self) -> int:
        return self._get_stat_value("writesIgnored")

    @property
    def scanned_full(self) -> int:
        return self._get_stat_value("scannedFull")

    @property
    def scanned_index(self) -> int:
        return self._get_stat_value("scannedIndex")

    @property
    def filtered(self) -> int:
        return self._get_stat_value("filtered")
