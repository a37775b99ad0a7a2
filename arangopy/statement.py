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

from arangopy.cursors import Cursor
from arangopy.defaults import URL_CURSOR, URL_EXPLAIN, URL_QUERY
from arangopy.exceptions import ClientException
from arangopy.http import HttpResponse
from arangopy.values import BindVars

if TYPE_CHECKING:
    from arangopy.batch_part import BatchPart
    from arangopy.connection import Connection


logger = logging.getLogger(__name__)


def validate_batch_size(batch_size: int | None) -> int | None:
    if batch_size is None:
        return None
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise ClientException("Batch size should be a positive integer")
    return batch_size


class Statement:
    """
    A query to run on the server, together with its bind parameters
    and execution options.

    A statement produces exactly one result: executing it a second time
    is an error. Create a new Statement to run the same query again.

    Args:
        connection: the connection to run the query on.
        query: the query text.
        bind_vars: a mapping of bind parameter names to values.
        count: whether the server should compute the total result count.
        batch_size: the maximum number of rows per page.
        full_count: whether the server should compute the count of rows
            before the last LIMIT.
        sanitize: if True, `_id` and `_rev` are stripped from result rows.
        flat: if True, result rows are not turned into Document objects.
        stream: whether the query should be executed lazily on the server.
        cache: whether the server query-result cache may be used.
        ttl: the time-to-live of the server cursor, in seconds.

    Example:
        >>> statement = Statement(
        ...     connection,
        ...     "FOR u IN users FILTER u.age > @age RETURN u",
        ...     bind_vars={"age": 30},
        ...     batch_size=100,
        ... )
        >>> cursor = statement.execute()
    """

    def __init__(
        self,
        connection: Connection,
        query: str,
        *,
        bind_vars: Mapping[str, Any] | None = None,
        count: bool = False,
        batch_size: int | None = None,
        full_count: bool = False,
        sanitize: bool = False,
        flat: bool = False,
        stream: bool | None = None,
        cache: bool | None = None,
        ttl: int | None = None,
    ) -> None:
        if not isinstance(query, str):
            raise ClientException("Query should be a string")
        self.connection = connection
        self._query = query
        self._bind_vars = BindVars()
        if bind_vars is not None:
            self._bind_vars.set(bind_vars)
        self.count = count
        self._batch_size = validate_batch_size(batch_size)
        self.full_count = full_count
        self.sanitize = sanitize
        self.flat = flat
        self.stream = stream
        self.cache = cache
        self.ttl = ttl
        self._executed = False

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(query="{self._query}")'

    def __str__(self) -> str:
        return self._query

    @property
    def query(self) -> str:
        return self._query

    @query.setter
    def query(self, value: str) -> None:
        if not isinstance(value, str):
            raise ClientException("Query should be a string")
        self._query = value

    @property
    def batch_size(self) -> int | None:
        return self._batch_size

    @batch_size.setter
    def batch_size(self, value: int | None) -> None:
        self._batch_size = validate_batch_size(value)

    @property
    def bind_vars(self) -> dict[str, Any]:
        return self._bind_vars.get_all()

    def bind(self, name: Mapping[str, Any] | str | int, value: Any = None) -> None:
        """
        Set one bind parameter, or replace all of them if `name` is a mapping.

        Raises:
            ClientException: if the name or the value are not admitted.
        """
        self._bind_vars.set(name, value)

    def _build_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "query": self._query,
            "count": self.count,
        }
        if self._batch_size is not None:
            payload["batchSize"] = self._batch_size
        if self._bind_vars.get_count() > 0:
            payload["bindVars"] = self._bind_vars.get_all()
        options: dict[str, Any] = {"fullCount": self.full_count}
        if self.stream is not None:
            options["stream"] = self.stream
        payload["options"] = options
        if self.cache is not None:
            payload["cache"] = self.cache
        if self.ttl is not None:
            payload["ttl"] = self.ttl
        return payload

    def execute(self) -> Cursor | BatchPart:
        """
        Run the query on the server.

        Returns:
            a Cursor over the query result. If the connection is capturing
            a batch, the BatchPart standing for the deferred request is
            returned instead.

        Raises:
            ClientException: if the statement was already executed.
            ServerException: if the server rejects the query.
        """
        if self._executed:
            raise ClientException(
                "Statement already executed: create a new one to run the query again"
            )
        self._executed = True
        logger.info("executing statement")
        response = self.connection.post(URL_CURSOR, self._build_payload())
        if not isinstance(response, HttpResponse):
            return response
        logger.info("finished executing statement")
        return Cursor(
            self.connection,
            response.envelope(),
            sanitize=self.sanitize,
            flat=self.flat,
        )

    def explain(self) -> dict[str, Any] | BatchPart:
        """Get the execution plan of the query, without running it."""
        payload: dict[str, Any] = {"query": self._query}
        if self._bind_vars.get_count() > 0:
            payload["bindVars"] = self._bind_vars.get_all()
        response = self.connection.post(URL_EXPLAIN, payload)
        if not isinstance(response, HttpResponse):
            return response
        return response.envelope()

    def validate(self) -> dict[str, Any] | BatchPart:
        """Have the server parse the query, without running it."""
        response = self.connection.post(URL_QUERY, {"query": self._query})
        if not isinstance(response, HttpResponse):
            return response
        return response.envelope()
