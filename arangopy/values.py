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

from typing import Any, Mapping

from arangopy.constants import BindVarsType
from arangopy.exceptions import ClientException


class ValueValidator:
    """
    Checks that a value can be sent to the server as part of a document
    or as a bind parameter.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    @staticmethod
    def validate(value: Any) -> None:
        """
        Validate a value: scalars (str, int, float, bool, None) are accepted,
        and so are lists, tuples and dicts made of acceptable values.

        Raises:
            ClientException: if the value, or anything nested in it, is
                not an acceptable value.
        """
        if value is None or isinstance(value, (str, int, float, bool)):
            return
        if isinstance(value, (list, tuple)):
            for item in value:
                ValueValidator.validate(item)
            return
        if isinstance(value, dict):
            for item in value.values():
                ValueValidator.validate(item)
            return
        raise ClientException("Invalid bind parameter value")


class BindVars:
    """
    A container for the bind parameters of a query.

    Names are always stored as strings; values are validated on insertion.
    """

    def __init__(self) -> None:
        self._values: BindVarsType = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._values})"

    def get_all(self) -> BindVarsType:
        return dict(self._values)

    def get_count(self) -> int:
        return len(self._values)

    def get(self, name: str) -> Any:
        return self._values.get(name)

    def set(self, name: Mapping[str, Any] | str | int, value: Any = None) -> None:
        """
        Set one or all bind parameters.

        Args:
            name: if a mapping, all existing bind parameters are replaced by
                its contents (and `value` is ignored). If a string or an int,
                the single parameter with this name is set.
            value: the value for the single parameter being set.

        Raises:
            ClientException: if the name is not of an admitted type, or if
                a value fails validation.
        """
        if isinstance(name, Mapping):
            for each_value in name.values():
                ValueValidator.validate(each_value)
            self._values = {str(k): v for k, v in name.items()}
        elif isinstance(name, (str, int)) and not isinstance(name, bool):
            ValueValidator.validate(value)
            self._values[str(name)] = value
        else:
            raise ClientException("Bind variable name should be string, int or dict")
