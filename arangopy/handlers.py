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
from urllib.parse import quote

import deprecation

from arangopy import __version__
from arangopy.constants import UpdatePolicy
from arangopy.defaults import URL_COLLECTION, URL_DOCUMENT
from arangopy.document import (
    ENTRY_ID,
    ENTRY_KEY,
    ENTRY_REV,
    Collection,
    Document,
    Edge,
    document_from_row,
)
from arangopy.exceptions import ClientException, ServerException
from arangopy.export import Export, ExportCursor
from arangopy.http import HttpResponse

if TYPE_CHECKING:
    from arangopy.batch_part import BatchPart
    from arangopy.connection import Connection


logger = logging.getLogger(__name__)

ADD_DEPRECATION_NOTICE = "Please use the `create`/`save` method instead."
HEADER_IF_MATCH = "If-Match"


def _collection_name(collection: str | Collection) -> str:
    name = collection.name if isinstance(collection, Collection) else collection
    if not name:
        raise ClientException("A collection name is required")
    return name


def _url(*segments: str) -> str:
    return "/".join(
        [segments[0], *(quote(str(segment), safe="") for segment in segments[1:])]
    )


def _wait_for_sync_params(wait_for_sync: bool | None) -> dict[str, Any] | None:
    if wait_for_sync is None:
        return None
    return {"waitForSync": "true" if wait_for_sync else "false"}


class Handler:
    """Base class for the objects issuing requests on behalf of the user."""

    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.connection})"


class DocumentHandler(Handler):
    """
    Create, read, update and delete documents.

    While the connection is capturing a batch, every method returns the
    BatchPart of the captured request instead of its regular result.

    Example:
        >>> handler = DocumentHandler(connection)
        >>> document = Document.create_from_dict({"name": "John"})
        >>> handler.save("users", document)
        'users/12345'
        >>> handler.get("users", document.key).get("name")
        'John'
    """

    def _stamp(self, document: Document, data: Mapping[str, Any]) -> None:
        if data.get(ENTRY_ID) is not None:
            document.set_internal_id(data[ENTRY_ID])
        if data.get(ENTRY_KEY) is not None:
            document.set_internal_key(data[ENTRY_KEY])
        if data.get(ENTRY_REV) is not None:
            document.revision = data[ENTRY_REV]
        document.is_new = False
        document.changed = False

    def save(
        self,
        collection: str | Collection,
        document: Document | Mapping[str, Any],
        *,
        wait_for_sync: bool | None = None,
    ) -> str | BatchPart:
        """
        Store a new document in a collection.

        Args:
            collection: the target collection, as a name or Collection.
            document: a Document, or a dictionary of attributes.
            wait_for_sync: whether the write should be synced before returning.

        Returns:
            the handle of the new document. A passed Document object gets
            its `_id`, `_key` and `_rev` updated as well.
        """
        if not isinstance(document, Document):
            document = Document.create_from_dict(document)
        response = self.connection.post(
            _url(URL_DOCUMENT, _collection_name(collection)),
            document.get_all(),
            params=_wait_for_sync_params(wait_for_sync),
        )
        if not isinstance(response, HttpResponse):
            return response
        data = response.envelope()
        self._stamp(document, data)
        return data[ENTRY_ID]

    @deprecation.deprecated(  # type: ignore[misc]
        deprecated_in="0.2.0",
        removed_in="1.0.0",
        current_version=__version__,
        details=ADD_DEPRECATION_NOTICE,
    )
    def add(
        self,
        collection: str | Collection,
        document: Document | Mapping[str, Any],
        *,
        wait_for_sync: bool | None = None,
    ) -> str | BatchPart:
        """Store a new document. Deprecated alias of `save`."""
        return self.save(collection, document, wait_for_sync=wait_for_sync)

    def get_by_id(self, handle: str) -> Document | BatchPart:
        """
        Read a document given its full handle ("collection/key").

        Returns:
            a Document, or an Edge if the stored document has `_from` and `_to`.

        Raises:
            ServerException: if the document does not exist.
        """
        collection_name, sep, key = handle.partition("/")
        if not sep or not collection_name or not key:
            raise ClientException("Invalid format for document id")
        return self.get(collection_name, key)

    def get(self, collection: str | Collection, key: str) -> Document | BatchPart:
        """Read a document given its collection and key."""
        response = self.connection.get(
            _url(URL_DOCUMENT, _collection_name(collection), key)
        )
        if not isinstance(response, HttpResponse):
            return response
        return document_from_row(response.envelope(), is_new=False)

    def has(self, collection: str | Collection, key: str) -> bool | BatchPart:
        """Whether a document with this key exists in the collection."""
        try:
            response = self.connection.head(
                _url(URL_DOCUMENT, _collection_name(collection), key)
            )
        except ServerException as exc:
            if exc.http_code == 404:
                return False
            raise
        if not isinstance(response, HttpResponse):
            return response
        return True

    def _write_conditions(
        self, revision: str | None, policy: str | None
    ) -> tuple[dict[str, str] | None, dict[str, Any]]:
        if policy is None:
            policy = self.connection.options.update_policy
        if policy not in UpdatePolicy.values():
            raise ClientException(f"Invalid update policy: {policy!r}")
        if policy != UpdatePolicy.ERROR or revision is None:
            return None, {}
        return {HEADER_IF_MATCH: f'"{revision}"'}, {"ignoreRevs": "false"}

    def _write(
        self,
        http_method: str,
        document: Document,
        *,
        wait_for_sync: bool | None,
        policy: str | None,
    ) -> str | BatchPart:
        if document.handle is None:
            raise ClientException("Cannot write a document without id")
        collection_name, key = document.handle.split("/", 1)
        headers, params = self._write_conditions(document.revision, policy)
        response = self.connection.request(
            http_method,
            _url(URL_DOCUMENT, collection_name, key),
            body=document.get_all(),
            params={**(_wait_for_sync_params(wait_for_sync) or {}), **params} or None,
            headers=headers,
        )
        if not isinstance(response, HttpResponse):
            return response
        data = response.envelope()
        self._stamp(document, data)
        return data[ENTRY_REV]

    def update(
        self,
        document: Document,
        *,
        wait_for_sync: bool | None = None,
        policy: str | None = None,
    ) -> str | BatchPart:
        """
        Partially update a stored document with the attributes of `document`.

        Args:
            document: the document, which must carry its handle.
            wait_for_sync: whether the write should be synced before returning.
            policy: an `UpdatePolicy` value, defaulting to the connection option.
                With `UpdatePolicy.ERROR` and a known revision of the document,
                the server rejects the write (status 412) if the stored
                revision is a different one.

        Returns:
            the new revision of the document.
        """
        return self._write(
            "PATCH", document, wait_for_sync=wait_for_sync, policy=policy
        )

    def replace(
        self,
        document: Document,
        *,
        wait_for_sync: bool | None = None,
        policy: str | None = None,
    ) -> str | BatchPart:
        """
        Replace a stored document entirely with `document`.
        The `policy` works as for `update`.

        Returns:
            the new revision of the document.
        """
        return self._write("PUT", document, wait_for_sync=wait_for_sync, policy=policy)

    def remove_by_id(
        self,
        collection: str | Collection,
        key: str,
        *,
        revision: str | None = None,
        wait_for_sync: bool | None = None,
        policy: str | None = None,
    ) -> bool | BatchPart:
        headers, params = self._write_conditions(revision, policy)
        response = self.connection.request(
            "DELETE",
            _url(URL_DOCUMENT, _collection_name(collection), key),
            params={**(_wait_for_sync_params(wait_for_sync) or {}), **params} or None,
            headers=headers,
        )
        if not isinstance(response, HttpResponse):
            return response
        response.envelope()
        return True

    def remove(
        self,
        document: Document,
        *,
        wait_for_sync: bool | None = None,
        policy: str | None = None,
    ) -> bool | BatchPart:
        """Delete a stored document. Returns True on success."""
        if document.handle is None:
            raise ClientException("Cannot remove a document without id")
        collection_name, key = document.handle.split("/", 1)
        return self.remove_by_id(
            collection_name,
            key,
            revision=document.revision,
            wait_for_sync=wait_for_sync,
            policy=policy,
        )


class EdgeHandler(DocumentHandler):
    """Documents handling, plus the creation of edges between documents."""

    def save_edge(
        self,
        collection: str | Collection,
        from_: str | Document,
        to: str | Document,
        edge: Edge | Mapping[str, Any],
        *,
        wait_for_sync: bool | None = None,
    ) -> str | BatchPart:
        """
        Store a new edge connecting two documents.

        Args:
            collection: the target edge collection.
            from_: the source document, as a handle or Document.
            to: the target document, as a handle or Document.
            edge: an Edge, or a dictionary of attributes.
            wait_for_sync: whether the write should be synced before returning.

        Returns:
            the handle of the new edge.
        """
        if not isinstance(edge, Edge):
            edge = Edge.create_from_dict(edge)
        from_handle = from_.handle if isinstance(from_, Document) else from_
        to_handle = to.handle if isinstance(to, Document) else to
        if not from_handle or not to_handle:
            raise ClientException("Both ends of an edge need a document handle")
        edge.from_handle = from_handle
        edge.to_handle = to_handle
        return self.save(collection, edge, wait_for_sync=wait_for_sync)


class CollectionHandler(Handler):
    """
    Create, inspect and drop collections, and export their contents.

    While the connection is capturing a batch, every method returns the
    BatchPart of the captured request instead of its regular result.
    """

    def create(
        self,
        collection: str | Collection,
        *,
        type: int | None = None,
        wait_for_sync: bool | None = None,
    ) -> str | BatchPart:
        """
        Create a collection.

        Args:
            collection: a name or a Collection describing the new collection.
            type: a `CollectionType` value, overriding the one in `collection`.
            wait_for_sync: the sync behaviour for writes to the collection.

        Returns:
            the id of the new collection.
        """
        if not isinstance(collection, Collection):
            collection = Collection(name=collection)
        if type is not None:
            collection.type = type
        if wait_for_sync is not None:
            collection.wait_for_sync = wait_for_sync
        payload: dict[str, Any] = {
            "name": _collection_name(collection),
            "type": collection.type,
        }
        if collection.wait_for_sync is not None:
            payload["waitForSync"] = collection.wait_for_sync
        response = self.connection.post(URL_COLLECTION, payload)
        if not isinstance(response, HttpResponse):
            return response
        data = response.envelope()
        collection.id = data.get("id")
        return data["id"]

    @deprecation.deprecated(  # type: ignore[misc]
        deprecated_in="0.2.0",
        removed_in="1.0.0",
        current_version=__version__,
        details=ADD_DEPRECATION_NOTICE,
    )
    def add(
        self,
        collection: str | Collection,
        *,
        type: int | None = None,
        wait_for_sync: bool | None = None,
    ) -> str | BatchPart:
        """Create a collection. Deprecated alias of `create`."""
        return self.create(collection, type=type, wait_for_sync=wait_for_sync)

    def get(self, name: str) -> Collection | BatchPart:
        response = self.connection.get(_url(URL_COLLECTION, name))
        if not isinstance(response, HttpResponse):
            return response
        return Collection.create_from_dict(response.envelope())

    def drop(self, collection: str | Collection) -> bool | BatchPart:
        response = self.connection.delete(
            _url(URL_COLLECTION, _collection_name(collection))
        )
        if not isinstance(response, HttpResponse):
            return response
        response.envelope()
        return True

    def count(self, collection: str | Collection) -> int | BatchPart:
        """The number of documents in a collection."""
        response = self.connection.get(
            _url(URL_COLLECTION, _collection_name(collection), "count")
        )
        if not isinstance(response, HttpResponse):
            return response
        return int(response.envelope()["count"])

    def truncate(self, collection: str | Collection) -> bool | BatchPart:
        """Remove all documents from a collection."""
        response = self.connection.put(
            _url(URL_COLLECTION, _collection_name(collection), "truncate"),
            body=b"",
        )
        if not isinstance(response, HttpResponse):
            return response
        response.envelope()
        return True

    def export(
        self, collection: str | Collection, **options: Any
    ) -> ExportCursor | BatchPart:
        """
        Export all documents of a collection.

        Args:
            collection: the collection, as a name or Collection.
            options: keyword arguments for `Export`, such as `batch_size`,
                `restrict`, `limit`, `flat`, `sanitize` and `count`.
        """
        return Export(self.connection, collection, **options).execute()
