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

# Defaults/settings for the connection
DEFAULT_ENDPOINT = "http://127.0.0.1:8529"
DEFAULT_DATABASE = "_system"
DEFAULT_REQUEST_TIMEOUT_MS = 30000
DEFAULT_AUTH_HEADER = "Authorization"
DATABASE_PATH_PREFIX = "/_db"

# Server API paths, relative to the database
URL_DOCUMENT = "/_api/document"
URL_COLLECTION = "/_api/collection"
URL_CURSOR = "/_api/cursor"
URL_EXPORT = "/_api/export"
URL_EXPLAIN = "/_api/explain"
URL_QUERY = "/_api/query"
URL_BATCH = "/_api/batch"

# Wire format of embedded (batch-part) HTTP messages
HTTP_PROTOCOL = "HTTP/1.1"
EOL = "\r\n"
MIME_BOUNDARY = "XXXsubpartXXX"
BATCH_PART_CONTENT_TYPE = "application/x-arango-batchpart"
BATCH_CONTENT_TYPE_TEMPLATE = "multipart/form-data; boundary={boundary}"
BATCH_INDEX_OUT_OF_RANGE_MESSAGE = "Batch index invalid or out of range"

# Server reply envelope
ENTRY_ERROR = "error"
ENTRY_CODE = "code"
ENTRY_ERROR_NUM = "errorNum"
ENTRY_ERROR_MESSAGE = "errorMessage"

# Settings for redacting secrets in logging
HEADER_REDACT_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {
    DEFAULT_AUTH_HEADER,
}
