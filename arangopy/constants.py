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

from typing import Any, Dict, Optional, Tuple, Union

CallerType = Tuple[Optional[str], Optional[str]]
BindVarsType = Dict[str, Any]
PartIdType = Union[int, str]
RestrictType = Dict[str, Any]


class CollectionType:
    """
    Admitted values for the type of a collection on the server.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    DOCUMENT = 2
    EDGE = 3


class RestrictionType:
    """
    Admitted values for the `type` entry of an export field restriction.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    INCLUDE = "include"
    EXCLUDE = "exclude"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return (cls.INCLUDE, cls.EXCLUDE)


class UpdatePolicy:
    """
    Admitted values for the conflict policy of document writes.

    With ERROR, a write carrying the revision of the document fails on the
    server if the stored revision differs. With LAST, the last write wins.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    LAST = "last"
    ERROR = "error"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return (cls.LAST, cls.ERROR)
