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

"""
Main conftest for shared fixtures.
"""

from __future__ import annotations

from typing import Any, Iterator

import pytest
from pytest_httpserver import HTTPServer

from arangopy import Connection

DATABASE = "_system"
DB_PREFIX = f"/_db/{DATABASE}"


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "describe(text): human-readable test description")


def api_path(path: str) -> str:
    """The path, as seen by the server, for an API path relative to the database."""
    return f"{DB_PREFIX}{path}"


def cursor_page(
    rows: list[Any],
    *,
    has_more: bool,
    cursor_id: str | None = "c1",
    **extra_fields: Any,
) -> dict[str, Any]:
    page: dict[str, Any] = {
        "result": rows,
        "hasMore": has_more,
        "error": False,
        "code": 201,
        **extra_fields,
    }
    if cursor_id is not None:
        page["id"] = cursor_id
    return page


@pytest.fixture
def connection(httpserver: HTTPServer) -> Iterator[Connection]:
    with Connection(endpoint=httpserver.url_for("/"), database=DATABASE) as conn:
        yield conn


__all__ = [
    "api_path",
    "cursor_page",
]
