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

import importlib.metadata

# Used when running from a source tree where the package is not installed
PACKAGE_VERSION = "0.2.0"


def get_version() -> str:
    try:
        return importlib.metadata.version(__package__)
    except importlib.metadata.PackageNotFoundError:
        return PACKAGE_VERSION


__version__: str = get_version()


from arangopy.batch import Batch, BatchState  # noqa: E402
from arangopy.batch_part import BatchPart  # noqa: E402
from arangopy.connection import CaptureMode, Connection  # noqa: E402
from arangopy.constants import (  # noqa: E402
    CollectionType,
    RestrictionType,
    UpdatePolicy,
)
from arangopy.cursors import Cursor  # noqa: E402
from arangopy.document import Collection, Document, Edge  # noqa: E402
from arangopy.exceptions import (  # noqa: E402
    ArangoException,
    ClientException,
    ConnectException,
    ServerException,
)
from arangopy.export import Export, ExportCursor  # noqa: E402
from arangopy.handlers import (  # noqa: E402
    CollectionHandler,
    DocumentHandler,
    EdgeHandler,
)
from arangopy.options import ConnectionOptions  # noqa: E402
from arangopy.statement import Statement  # noqa: E402
from arangopy.values import BindVars, ValueValidator  # noqa: E402

__all__ = [
    "ArangoException",
    "Batch",
    "BatchPart",
    "BatchState",
    "BindVars",
    "CaptureMode",
    "ClientException",
    "Collection",
    "CollectionHandler",
    "CollectionType",
    "ConnectException",
    "Connection",
    "ConnectionOptions",
    "Cursor",
    "Document",
    "DocumentHandler",
    "Edge",
    "EdgeHandler",
    "Export",
    "ExportCursor",
    "RestrictionType",
    "ServerException",
    "Statement",
    "UpdatePolicy",
    "ValueValidator",
    "__version__",
]
