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

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Set

from arangopy.constants import CallerType, UpdatePolicy
from arangopy.defaults import (
    DATABASE_PATH_PREFIX,
    DEFAULT_DATABASE,
    DEFAULT_ENDPOINT,
    DEFAULT_REDACTED_HEADER_NAMES,
    DEFAULT_REQUEST_TIMEOUT_MS,
)


@dataclass
class ConnectionOptions:
    """
    A description of the options about how to reach and talk to the server.

    Attributes:
        endpoint: the base URL of the server, e.g. "http://127.0.0.1:8529".
        database: the name of the database all requests are scoped to.
        timeout_ms: a timeout, in milliseconds, for each single HTTP request.
            This is enforced by the transport only: no operation is retried.
        headers: additional headers to send with each request. Entries with
            a None value are omitted.
        callers: a list of (caller_name, caller_version) pairs, which end up
            in the User-Agent header, outermost caller first.
        redacted_header_names: names of headers whose values are masked
            in the debug logs (e.g. those carrying credentials).
        check_utf8: if True, every string in a JSON request body is checked
            to be valid UTF-8 before sending, resulting in a ClientException
            otherwise.
        update_policy: the conflict policy for document updates, replacements
            and removals, a value of `UpdatePolicy`. It can be overridden
            per call.
    """

    endpoint: str = DEFAULT_ENDPOINT
    database: str = DEFAULT_DATABASE
    timeout_ms: Optional[int] = DEFAULT_REQUEST_TIMEOUT_MS
    headers: Dict[str, Optional[str]] = field(default_factory=dict)
    callers: List[CallerType] = field(default_factory=list)
    redacted_header_names: Set[str] = field(
        default_factory=lambda: set(DEFAULT_REDACTED_HEADER_NAMES)
    )
    check_utf8: bool = False
    update_policy: str = UpdatePolicy.LAST

    def with_override(self, override: ConnectionOptions | None) -> ConnectionOptions:
        """
        Return a new instance created by overriding the members of this instance
        with those taken from a supplied "override" options object.

        In other words, `optA.with_override(optB)` will take fields from optB
        when they differ from the class defaults and fall back to optA otherwise.

        Args:
            override: an options instance to preferentially draw fields from.

        Returns:
            a new instance of this class obtained by merging the override and this one.
        """
        if override is None:
            return self
        pristine = ConnectionOptions()
        return ConnectionOptions(
            **{
                fld.name: (
                    getattr(override, fld.name)
                    if getattr(override, fld.name) != getattr(pristine, fld.name)
                    else getattr(self, fld.name)
                )
                for fld in fields(self)
            }
        )

    @property
    def database_url(self) -> str:
        return f"{self.endpoint.rstrip('/')}{DATABASE_PATH_PREFIX}/{self.database}"
