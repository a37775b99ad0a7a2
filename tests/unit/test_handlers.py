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

import pytest
from deprecation import DeprecatedWarning
from pytest_httpserver import HTTPServer

from arangopy import (
    Batch,
    BatchPart,
    ClientException,
    Collection,
    CollectionHandler,
    CollectionType,
    Connection,
    ConnectionOptions,
    Document,
    DocumentHandler,
    Edge,
    EdgeHandler,
    ExportCursor,
    ServerException,
    UpdatePolicy,
)
from arangopy.request_tools import HttpMethod

from ..conftest import api_path, cursor_page


class TestDocumentHandler:
    @pytest.mark.describe("test of document save and read back")
    def test_document_save_get(self, connection: Connection, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users"),
            method=HttpMethod.POST,
            query_string="waitForSync=true",
            json={"name": "John"},
        ).respond_with_json(
            {"_id": "users/1", "_key": "1", "_rev": "r1"}, status=202
        )
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"), method=HttpMethod.GET
        ).respond_with_json({"_id": "users/1", "_key": "1", "_rev": "r1", "name": "John"})

        handler = DocumentHandler(connection)
        document = Document.create_from_dict({"name": "John"})
        assert handler.save("users", document, wait_for_sync=True) == "users/1"
        assert document.handle == "users/1"
        assert document.key == "1"
        assert document.revision == "r1"
        assert not document.is_new
        assert not document.changed

        fetched = handler.get_by_id("users/1")
        assert fetched == document
        httpserver.check_assertions()

        with pytest.raises(ClientException):
            handler.get_by_id("no-slash")

    @pytest.mark.describe("test of document update, replace and remove")
    def test_document_write_remove(
        self, connection: Connection, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"),
            method=HttpMethod.PATCH,
            json={"age": 3, "_key": "1"},
        ).respond_with_json({"_id": "users/1", "_key": "1", "_rev": "r2"})
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"),
            method=HttpMethod.PUT,
            json={"age": 3, "_key": "1"},
        ).respond_with_json({"_id": "users/1", "_key": "1", "_rev": "r3"})
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"), method=HttpMethod.DELETE
        ).respond_with_json({"_id": "users/1", "_key": "1", "_rev": "r3"})

        handler = DocumentHandler(connection)
        document = Document.create_from_dict({"_id": "users/1", "_key": "1", "age": 3})
        assert handler.update(document) == "r2"
        assert document.revision == "r2"
        assert handler.replace(document) == "r3"
        assert handler.remove(document) is True
        httpserver.check_assertions()

        with pytest.raises(ClientException):
            handler.update(Document.create_from_dict({"a": 1}))
        with pytest.raises(ClientException):
            handler.remove(Document())

    @pytest.mark.describe("test of revision-checked document writes")
    def test_document_write_policy(
        self, connection: Connection, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"),
            method=HttpMethod.PATCH,
            query_string="ignoreRevs=false",
            headers={"If-Match": '"r1"'},
        ).respond_with_json(
            {
                "error": True,
                "code": 412,
                "errorNum": 1200,
                "errorMessage": "conflict",
                "_rev": "r9",
            },
            status=412,
        )
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"),
            method=HttpMethod.DELETE,
            query_string="waitForSync=true&ignoreRevs=false",
            headers={"If-Match": '"r1"'},
        ).respond_with_json({"_id": "users/1", "_key": "1", "_rev": "r1"})
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"), method=HttpMethod.PUT
        ).respond_with_json({"_id": "users/1", "_key": "1", "_rev": "r2"})

        handler = DocumentHandler(connection)
        document = Document.create_from_dict(
            {"_id": "users/1", "_key": "1", "_rev": "r1", "age": 3}
        )
        with pytest.raises(ServerException) as exc_info:
            handler.update(document, policy=UpdatePolicy.ERROR)
        assert exc_info.value.http_code == 412
        assert exc_info.value.error_num == 1200
        assert document.revision == "r1"

        assert (
            handler.remove(document, wait_for_sync=True, policy=UpdatePolicy.ERROR)
            is True
        )
        # the default policy lets the last write win
        assert handler.replace(document) == "r2"
        httpserver.check_assertions()
        assert "If-Match" not in httpserver.log[2][0].headers
        assert httpserver.log[2][0].query_string == b""

        with pytest.raises(ClientException):
            handler.update(document, policy="sometimes")

    @pytest.mark.describe("test of the update policy from the connection options")
    def test_document_write_policy_option(self, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"),
            method=HttpMethod.PUT,
            headers={"If-Match": '"r1"'},
        ).respond_with_json(
            {"error": True, "code": 412, "errorNum": 1200}, status=412
        )
        options = ConnectionOptions(
            endpoint=httpserver.url_for("/"),
            update_policy=UpdatePolicy.ERROR,
        )
        with Connection(options) as strict_connection:
            handler = DocumentHandler(strict_connection)
            document = Document.create_from_dict(
                {"_id": "users/1", "_key": "1", "_rev": "r1"}
            )
            with pytest.raises(ServerException) as exc_info:
                handler.replace(document)
            assert exc_info.value.http_code == 412

            batch = Batch(strict_connection)
            part = handler.update(document)
            assert isinstance(part, BatchPart)
            assert b'If-Match: "r1"' in part.raw_request
            assert b"ignoreRevs=false" in part.raw_request
            batch.stop_capture()
        httpserver.check_assertions()

    @pytest.mark.describe("test of document existence checks")
    def test_document_has(self, connection: Connection, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/1"), method=HttpMethod.HEAD
        ).respond_with_data("", status=200)
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/2"), method=HttpMethod.HEAD
        ).respond_with_data("", status=404)
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users/3"), method=HttpMethod.HEAD
        ).respond_with_data("", status=500)
        handler = DocumentHandler(connection)
        assert handler.has("users", "1") is True
        assert handler.has("users", "2") is False
        with pytest.raises(ServerException):
            handler.has("users", "3")

    @pytest.mark.describe("test of the deprecated document add method")
    def test_document_add_deprecated(
        self, connection: Connection, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/document/users"), method=HttpMethod.POST
        ).respond_with_json({"_id": "users/9", "_key": "9", "_rev": "r"})
        with pytest.warns(DeprecatedWarning):
            assert DocumentHandler(connection).add("users", {"a": 1}) == "users/9"


class TestEdgeHandler:
    @pytest.mark.describe("test of edge creation")
    def test_save_edge(self, connection: Connection, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/document/knows"),
            method=HttpMethod.POST,
            json={"since": 2020, "_from": "users/a", "_to": "users/b"},
        ).respond_with_json({"_id": "knows/1", "_key": "1", "_rev": "r"})
        source = Document.create_from_dict({"_id": "users/a"})
        edge = Edge.create_from_dict({"since": 2020})
        handler = EdgeHandler(connection)
        assert handler.save_edge("knows", source, "users/b", edge) == "knows/1"
        assert edge.handle == "knows/1"
        assert edge.from_handle == "users/a"
        httpserver.check_assertions()

        with pytest.raises(ClientException):
            handler.save_edge("knows", Document(), "users/b", {})


class TestCollectionHandler:
    @pytest.mark.describe("test of collection creation and reading")
    def test_collection_create_get(
        self, connection: Connection, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/collection"),
            method=HttpMethod.POST,
            json={"name": "knows", "type": 3, "waitForSync": True},
        ).respond_with_json({"error": False, "id": "11", "name": "knows"})
        httpserver.expect_oneshot_request(
            api_path("/_api/collection/knows"), method=HttpMethod.GET
        ).respond_with_json({"id": "11", "name": "knows", "type": 3, "status": 3})
        handler = CollectionHandler(connection)
        collection = Collection("knows")
        assert (
            handler.create(collection, type=CollectionType.EDGE, wait_for_sync=True)
            == "11"
        )
        assert collection.id == "11"
        fetched = handler.get("knows")
        assert isinstance(fetched, Collection)
        assert fetched.type == CollectionType.EDGE
        httpserver.check_assertions()

        with pytest.raises(ClientException):
            handler.create("x", type=7)

    @pytest.mark.describe("test of collection count, truncate and drop")
    def test_collection_count_truncate_drop(
        self, connection: Connection, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/collection/users/count"), method=HttpMethod.GET
        ).respond_with_json({"error": False, "count": 12})
        httpserver.expect_oneshot_request(
            api_path("/_api/collection/users/truncate"), method=HttpMethod.PUT
        ).respond_with_json({"error": False})
        httpserver.expect_oneshot_request(
            api_path("/_api/collection/users"), method=HttpMethod.DELETE
        ).respond_with_json({"error": False, "id": "5"})
        handler = CollectionHandler(connection)
        assert handler.count("users") == 12
        assert handler.truncate("users") is True
        assert handler.drop(Collection("users")) is True
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection export through the handler")
    def test_collection_export(
        self, connection: Connection, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/export"),
            method=HttpMethod.POST,
            query_string="collection=users",
            json={"flush": True, "batchSize": 10},
        ).respond_with_json(
            cursor_page([{"_key": "a"}], has_more=False, cursor_id=None), status=201
        )
        cursor = CollectionHandler(connection).export("users", batch_size=10, flat=True)
        assert isinstance(cursor, ExportCursor)
        assert cursor.get_next_batch() == [{"_key": "a"}]

    @pytest.mark.describe("test of the deprecated collection add method")
    def test_collection_add_deprecated(
        self, connection: Connection, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            api_path("/_api/collection"), method=HttpMethod.POST
        ).respond_with_json({"error": False, "id": "3"})
        with pytest.warns(DeprecatedWarning):
            assert CollectionHandler(connection).add("users") == "3"
