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
The multipart codec for batch requests.

A batch request is a multipart body where each section carries one complete,
embedded HTTP request; the server replies with a multipart body with the same
structure, each section carrying the embedded HTTP response to the
corresponding request. Section order is what ties a response to its request.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from arangopy.defaults import BATCH_PART_CONTENT_TYPE, EOL
from arangopy.exceptions import ClientException
from arangopy.http import HttpResponse, parse_headers, split_http_message

logger = logging.getLogger(__name__)

HEADER_CONTENT_ID = "content-id"

_BOUNDARY_PATTERN = re.compile(r'boundary=(?:"([^"]+)"|([^;\s]+))', re.IGNORECASE)


def boundary_from_content_type(content_type: str | None) -> str | None:
    """Extract the boundary parameter from a multipart Content-Type value."""
    if not content_type:
        return None
    match = _BOUNDARY_PATTERN.search(content_type)
    if match is None:
        return None
    return match.group(1) or match.group(2)


def encode_batch(
    parts: Iterable[tuple[str | None, bytes]],
    boundary: str,
) -> bytes:
    """
    Serialize a sequence of embedded requests into a multipart batch body.

    Args:
        parts: an iterable of (content_id, raw_request) pairs, in the order
            they must be executed by the server. A content_id of None results
            in a section without Content-Id header.
        boundary: the multipart boundary string.

    Returns:
        the complete multipart body as bytes.
    """
    delimiter = f"--{boundary}{EOL}".encode("utf-8")
    chunks: list[bytes] = []
    for content_id, raw_request in parts:
        section_headers = f"Content-Type: {BATCH_PART_CONTENT_TYPE}{EOL}"
        if content_id is not None:
            section_headers += f"Content-Id: {content_id}{EOL}"
        chunks.append(delimiter)
        chunks.append((section_headers + EOL).encode("utf-8"))
        chunks.append(raw_request)
        chunks.append(EOL.encode("utf-8"))
    chunks.append(f"--{boundary}--{EOL}".encode("utf-8"))
    return b"".join(chunks)


def _unfold(header_block: str) -> str:
    # continuation lines (starting with whitespace) belong to the previous header
    lines: list[str] = []
    for line in header_block.split(EOL):
        if line[:1] in (" ", "\t") and lines:
            lines[-1] = f"{lines[-1]} {line.strip()}"
        else:
            lines.append(line)
    return EOL.join(lines)


def _decode_section(section: str) -> tuple[str | None, HttpResponse]:
    if section.startswith("HTTP/"):
        # no MIME headers for this section, just the embedded response
        return (None, HttpResponse.from_raw(section))
    mime_block, content = split_http_message(section)
    if content is None:
        raise ClientException("Got a malformed batch response from the server")
    _, _, mime_headers = parse_headers(_unfold(mime_block))
    return (mime_headers.get(HEADER_CONTENT_ID), HttpResponse.from_raw(content))


def decode_batch(
    body: bytes | str,
    boundary: str,
) -> list[tuple[str | None, HttpResponse]]:
    """
    Split a multipart batch response into the embedded HTTP responses.

    Args:
        body: the full multipart body received from the server.
        boundary: the multipart boundary string.

    Returns:
        a list of (content_id, response) pairs, in the order in which the
        sections appear in the body. content_id is None for sections
        without a Content-Id header.

    Raises:
        ClientException: if the body contains no section at all or a section
            cannot be parsed.
    """
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    delimiter = f"--{boundary}"
    # the first chunk is the preamble, to be ignored
    chunks = text.split(delimiter)[1:]
    decoded: list[tuple[str | None, HttpResponse]] = []
    for chunk in chunks:
        if chunk.startswith("--"):
            # closing delimiter: anything after it is the epilogue
            break
        if chunk.startswith(EOL):
            chunk = chunk[len(EOL) :]
        # the line break before a delimiter belongs to the delimiter
        if chunk.endswith(EOL):
            chunk = chunk[: -len(EOL)]
        if not chunk.strip():
            continue
        decoded.append(_decode_section(chunk))
    if not decoded:
        raise ClientException("Got a malformed batch response from the server")
    logger.debug(f"decoded {len(decoded)} sections from batch response")
    return decoded
