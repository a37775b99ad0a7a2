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

from typing import Sequence

from arangopy import __version__
from arangopy.constants import CallerType


def detect_arangopy_user_agent() -> CallerType:
    package_name = __name__.split(".")[0]
    return (package_name, __version__)


def _user_agent_piece(caller: CallerType) -> str | None:
    caller_name, caller_version = caller
    if not caller_name:
        return None
    if caller_version:
        return f"{caller_name}/{caller_version}"
    return caller_name


def compose_full_user_agent(callers: Sequence[CallerType]) -> str:
    """
    Build the User-Agent header value: the declared callers, outermost first,
    followed by this client's own name and version.
    """
    pieces = [
        _user_agent_piece(caller)
        for caller in [*callers, detect_arangopy_user_agent()]
    ]
    return " ".join(piece for piece in pieces if piece)
