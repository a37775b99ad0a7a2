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
from typing import Any, Dict, Iterable, Mapping

from typing_extensions import override

from arangopy.constants import CollectionType
from arangopy.exceptions import ClientException
from arangopy.values import ValueValidator

ENTRY_ID = "_id"
ENTRY_KEY = "_key"
ENTRY_REV = "_rev"
ENTRY_IS_NEW = "_isNew"
ENTRY_FROM = "_from"
ENTRY_TO = "_to"


_KEY_CHARS = r"[A-Za-z0-9_\-:.@()+,=;$!*'%]+"
_KEY_PATTERN = re.compile(rf"^{_KEY_CHARS}$")
_ID_PATTERN = re.compile(rf"^[A-Za-z0-9_\-]+/{_KEY_CHARS}$")


class Document:
    """
    A document, i.e. an ordered collection of attributes plus the
    server-assigned identifiers (`_id`, `_key`, `_rev`).

    The identifiers are not stored among the regular attributes: setting one of
    the reserved keys routes the value to the corresponding internal field.
    Once set, the id and the key of a document cannot be changed to a
    different value.

    Args:
        hidden_attributes: names of attributes to leave out of `get_all()`
            (unless requested otherwise).
        is_new: whether the document has never been stored on the server.

    Example:
        >>> doc = Document.create_from_dict({"name": "John", "_key": "john"})
        >>> doc.get("name")
        'John'
        >>> doc.key
        'john'
        >>> doc.get_all()
        {'name': 'John', '_key': 'john'}
    """

    _reserved_keys: tuple[str, ...] = (ENTRY_ID, ENTRY_KEY, ENTRY_REV, ENTRY_IS_NEW)

    def __init__(
        self,
        *,
        hidden_attributes: Iterable[str] | None = None,
        is_new: bool = True,
    ) -> None:
        self._values: Dict[str, Any] = {}
        self._id: str | None = None
        self._key: str | None = None
        self._rev: str | None = None
        self._hidden: list[str] = list(hidden_attributes or [])
        self._is_new = bool(is_new)
        self._changed = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.get_all(include_internals=True)})"

    def __str__(self) -> str:
        return self.to_json()

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Document):
            return all(
                [
                    type(self) is type(other),
                    self._values == other._values,
                    self._id == other._id,
                    self._key == other._key,
                    self._rev == other._rev,
                ]
            )
        else:
            return False

    @classmethod
    def create_from_dict(
        cls,
        values: Mapping[str, Any],
        **options: Any,
    ) -> Document:
        """
        Create a document from a dictionary of attributes.

        Reserved keys found among the values are routed to the internal
        identifier fields. The resulting document is flagged as changed.

        Args:
            values: the attributes of the document.
            options: keyword arguments for the class constructor.
        """
        document = cls(**options)
        for key, value in values.items():
            document.set(key, value)
        document.changed = True
        return document

    def _set_reserved(self, key: str, value: Any) -> None:
        if key == ENTRY_ID:
            self.set_internal_id(value)
        elif key == ENTRY_KEY:
            self.set_internal_key(value)
        elif key == ENTRY_REV:
            self.revision = value
        elif key == ENTRY_IS_NEW:
            self.is_new = value

    def set(self, key: str, value: Any) -> None:
        """
        Set an attribute of the document.

        Raises:
            ClientException: if the key is not a string, if the value is not
                admitted, or if a reserved identifier is set to an invalid value.
        """
        if not isinstance(key, str):
            raise ClientException("Invalid document attribute key")
        ValueValidator.validate(value)
        if key in self._reserved_keys:
            self._set_reserved(key, value)
            return
        if not self._changed:
            if key not in self._values or self._values[key] != value:
                self._changed = True
        self._values[key] = value

    def get(self, key: str) -> Any:
        return self._values.get(key)

    def get_all(
        self,
        *,
        include_internals: bool = False,
        ignore_hidden_attributes: bool = False,
    ) -> dict[str, Any]:
        """
        Get all attributes of the document as a dictionary.

        Args:
            include_internals: if True, the `_id` and `_rev` identifiers are
                added to the result (when set). The `_key` is added in any case.
            ignore_hidden_attributes: if True, hidden attributes are included.

        Returns:
            a new dictionary.
        """
        data = dict(self._values)
        if include_internals:
            data.update(self._internals())
        if not ignore_hidden_attributes:
            for hidden_name in self._hidden:
                data.pop(hidden_name, None)
        if self._key is not None:
            data[ENTRY_KEY] = self._key
        return data

    def _internals(self) -> dict[str, Any]:
        return {
            k: v
            for k, v in ((ENTRY_ID, self._id), (ENTRY_REV, self._rev))
            if v is not None
        }

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.get_all(**kwargs), separators=(",", ":"))

    @property
    def hidden_attributes(self) -> list[str]:
        return list(self._hidden)

    @hidden_attributes.setter
    def hidden_attributes(self, attributes: Iterable[str]) -> None:
        self._hidden = list(attributes)

    @property
    def changed(self) -> bool:
        return self._changed

    @changed.setter
    def changed(self, value: bool) -> None:
        self._changed = bool(value)

    @property
    def is_new(self) -> bool:
        return self._is_new

    @is_new.setter
    def is_new(self, value: bool) -> None:
        self._is_new = bool(value)

    def set_internal_id(self, document_id: str) -> None:
        if self._id is not None and self._id != document_id:
            raise ClientException("Should not update the id of an existing document")
        if not isinstance(document_id, str) or not _ID_PATTERN.match(document_id):
            raise ClientException("Invalid format for document id")
        self._id = document_id

    def set_internal_key(self, key: str) -> None:
        if self._key is not None and self._key != key:
            raise ClientException("Should not update the key of an existing document")
        if not isinstance(key, str) or not _KEY_PATTERN.match(key):
            raise ClientException("Invalid format for document key")
        self._key = key

    @property
    def internal_id(self) -> str | None:
        return self._id

    @property
    def handle(self) -> str | None:
        """The full document handle, i.e. "collection/key"."""
        return self._id

    @property
    def key(self) -> str | None:
        return self._key

    @property
    def id(self) -> str | None:
        """The part of the handle after the slash."""
        if self._id is None:
            return None
        return self._id.split("/", 1)[1]

    @property
    def collection_id(self) -> str | None:
        """The part of the handle before the slash."""
        if self._id is None:
            return None
        return self._id.split("/", 1)[0]

    @property
    def revision(self) -> str | None:
        return self._rev

    @revision.setter
    def revision(self, rev: Any) -> None:
        self._rev = None if rev is None else str(rev)


class Edge(Document):
    """
    A document connecting two other documents, through the handles
    stored in its `_from` and `_to` attributes.
    """

    _reserved_keys = (*Document._reserved_keys, ENTRY_FROM, ENTRY_TO)

    def __init__(
        self,
        *,
        hidden_attributes: Iterable[str] | None = None,
        is_new: bool = True,
    ) -> None:
        super().__init__(hidden_attributes=hidden_attributes, is_new=is_new)
        self._from: str | None = None
        self._to: str | None = None

    @override
    def _set_reserved(self, key: str, value: Any) -> None:
        if key == ENTRY_FROM:
            self.from_handle = value
        elif key == ENTRY_TO:
            self.to_handle = value
        else:
            super()._set_reserved(key, value)

    @override
    def get_all(
        self,
        *,
        include_internals: bool = False,
        ignore_hidden_attributes: bool = False,
    ) -> dict[str, Any]:
        data = super().get_all(
            include_internals=include_internals,
            ignore_hidden_attributes=ignore_hidden_attributes,
        )
        if self._from is not None:
            data[ENTRY_FROM] = self._from
        if self._to is not None:
            data[ENTRY_TO] = self._to
        return data

    @override
    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Edge):
            return all(
                [
                    super().__eq__(other),
                    self._from == other._from,
                    self._to == other._to,
                ]
            )
        else:
            return False

    @property
    def from_handle(self) -> str | None:
        return self._from

    @from_handle.setter
    def from_handle(self, value: str | None) -> None:
        self._from = value
        self._changed = True

    @property
    def to_handle(self) -> str | None:
        return self._to

    @to_handle.setter
    def to_handle(self, value: str | None) -> None:
        self._to = value
        self._changed = True


def document_from_row(row: Mapping[str, Any], **options: Any) -> Document:
    """
    Turn a decoded result row into a Document, or an Edge if the row carries
    both `_from` and `_to`.
    """
    if ENTRY_FROM in row and ENTRY_TO in row:
        return Edge.create_from_dict(row, **options)
    return Document.create_from_dict(row, **options)


COLLECTION_STATUSES = (1, 2, 3, 4, 5)


class Collection:
    """
    The description of a collection on the server.

    Attributes:
        id: the server-assigned identifier of the collection.
        name: the name of the collection.
        type: one of the `CollectionType` values.
        wait_for_sync: whether writes to the collection are synced to disk
            before returning.
        status: the load status reported by the server (1 to 5).
    """

    def __init__(self, name: str | None = None) -> None:
        self.id: str | None = None
        self.name: str | None = name
        self._type: int = CollectionType.DOCUMENT
        self.wait_for_sync: bool | None = None
        self._status: int | None = None

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(name="{self.name}", type={self._type})'

    @classmethod
    def create_from_dict(cls, values: Mapping[str, Any]) -> Collection:
        collection = cls()
        for key, value in values.items():
            collection.set(key, value)
        return collection

    def set(self, key: str, value: Any) -> None:
        """Set a property of the collection. Unknown keys are ignored."""
        if key == "id":
            self.id = None if value is None else str(value)
        elif key == "name":
            self.name = value
        elif key == "type":
            self.type = value
        elif key == "waitForSync":
            self.wait_for_sync = None if value is None else bool(value)
        elif key == "status":
            self.status = value

    @property
    def type(self) -> int:
        return self._type

    @type.setter
    def type(self, value: int) -> None:
        if value not in (CollectionType.DOCUMENT, CollectionType.EDGE):
            raise ClientException("Invalid type used for collection")
        self._type = value

    @property
    def status(self) -> int | None:
        return self._status

    @status.setter
    def status(self, value: int | None) -> None:
        if value is not None and value not in COLLECTION_STATUSES:
            raise ClientException("Invalid status used for collection")
        self._status = value

    def get_all(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self._type,
            "waitForSync": self.wait_for_sync,
        }
        if self._status is not None:
            data["status"] = self._status
        return {k: v for k, v in data.items() if v is not None}
