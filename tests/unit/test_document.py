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

import pytest

from arangopy import (
    BindVars,
    ClientException,
    Collection,
    CollectionType,
    Document,
    Edge,
    ValueValidator,
)
from arangopy.document import document_from_row


class TestValues:
    @pytest.mark.describe("test of value validation")
    def test_value_validator(self) -> None:
        ValueValidator.validate(None)
        ValueValidator.validate("s")
        ValueValidator.validate(1.5)
        ValueValidator.validate(True)
        ValueValidator.validate([1, ("a", {"b": [None]})])
        with pytest.raises(ClientException):
            ValueValidator.validate({"a": {1, 2}})
        with pytest.raises(ClientException):
            ValueValidator.validate([object()])

    @pytest.mark.describe("test of bind variables container")
    def test_bind_vars(self) -> None:
        bind_vars = BindVars()
        assert bind_vars.get_count() == 0
        bind_vars.set("a", 1)
        bind_vars.set(3, [2])
        assert bind_vars.get("a") == 1
        assert bind_vars.get("3") == [2]
        assert bind_vars.get("missing") is None
        assert bind_vars.get_all() == {"a": 1, "3": [2]}
        bind_vars.set({"b": "x"})
        assert bind_vars.get_all() == {"b": "x"}
        with pytest.raises(ClientException):
            bind_vars.set(None, 1)  # type: ignore[arg-type]
        with pytest.raises(ClientException):
            bind_vars.set({"c": object()})
        # a failed replacement leaves the values untouched
        assert bind_vars.get_all() == {"b": "x"}


class TestDocument:
    @pytest.mark.describe("test of document attributes and identifiers")
    def test_document_basics(self) -> None:
        doc = Document.create_from_dict(
            {"_id": "users/john", "_key": "john", "_rev": 123, "name": "John"}
        )
        assert doc.changed
        assert doc.is_new
        assert doc.get("name") == "John"
        assert doc.get("_id") is None
        assert doc.handle == "users/john"
        assert doc.internal_id == "users/john"
        assert doc.collection_id == "users"
        assert doc.id == "john"
        assert doc.key == "john"
        assert doc.revision == "123"
        assert doc.get_all() == {"name": "John", "_key": "john"}
        assert doc.get_all(include_internals=True) == {
            "name": "John",
            "_key": "john",
            "_id": "users/john",
            "_rev": "123",
        }
        assert json.loads(doc.to_json()) == {"name": "John", "_key": "john"}

        # same identifiers can be set again, different ones cannot
        doc.set("_id", "users/john")
        with pytest.raises(ClientException):
            doc.set("_id", "users/jane")
        with pytest.raises(ClientException):
            doc.set("_key", "jane")
        with pytest.raises(ClientException):
            Document().set("_id", "no-slash")
        with pytest.raises(ClientException):
            Document().set("_key", "white space")
        with pytest.raises(ClientException):
            doc.set(1, "x")  # type: ignore[arg-type]
        with pytest.raises(ClientException):
            doc.set("x", object())

    @pytest.mark.describe("test of document changed flag, new flag and hidden attributes")
    def test_document_flags(self) -> None:
        doc = Document(hidden_attributes=["secret"])
        assert not doc.changed
        doc.set("a", 1)
        assert doc.changed
        doc.changed = False
        doc.set("a", 1)
        assert not doc.changed
        doc.set("secret", "pw")
        assert doc.get_all() == {"a": 1}
        assert doc.get_all(ignore_hidden_attributes=True) == {"a": 1, "secret": "pw"}
        doc.set("_isNew", False)
        assert not doc.is_new
        assert doc.get("_isNew") is None

    @pytest.mark.describe("test of document equality")
    def test_document_equality(self) -> None:
        values = {"_id": "u/1", "_key": "1", "a": [1, 2]}
        assert Document.create_from_dict(values) == Document.create_from_dict(values)
        assert Document.create_from_dict(values) != Document.create_from_dict(
            {**values, "a": [1]}
        )
        assert Document.create_from_dict(values) != Edge.create_from_dict(values)
        assert Document.create_from_dict(values) != values

    @pytest.mark.describe("test of edges and row conversion")
    def test_edge(self) -> None:
        edge = document_from_row(
            {"_id": "knows/1", "_from": "users/a", "_to": "users/b", "since": 2020}
        )
        assert isinstance(edge, Edge)
        assert edge.from_handle == "users/a"
        assert edge.to_handle == "users/b"
        assert edge.get("_from") is None
        assert edge.get_all() == {
            "since": 2020,
            "_from": "users/a",
            "_to": "users/b",
        }
        assert type(document_from_row({"_from": "users/a"})) is Document


class TestCollection:
    @pytest.mark.describe("test of collection descriptions")
    def test_collection(self) -> None:
        collection = Collection.create_from_dict(
            {"id": 42, "name": "knows", "type": 3, "waitForSync": True, "status": 3}
        )
        assert collection.id == "42"
        assert collection.name == "knows"
        assert collection.type == CollectionType.EDGE
        assert collection.wait_for_sync is True
        assert collection.status == 3
        assert collection.get_all() == {
            "id": "42",
            "name": "knows",
            "type": 3,
            "waitForSync": True,
            "status": 3,
        }
        assert Collection("users").get_all() == {"name": "users", "type": 2}
        with pytest.raises(ClientException):
            Collection.create_from_dict({"type": 4})
        with pytest.raises(ClientException):
            Collection.create_from_dict({"status": 9})
