"""Splits an invalidation list into request bodies the Fast Purge API accepts.

Text input (one URL or ARL per line) is packed greedily into bodies of the
form {"objects": [...]} that never exceed MAX_BODY_SIZE bytes. JSON input is a
stream of self-delimiting JSON documents, each forwarded as its own body.

Both chunkers are lazy generators: a body is handed to the caller as soon as
it is closed, so dispatch can start before the whole input has been read.
"""

import json
import logging
import re
from typing import Any, Iterable, Iterator, List, Tuple
from urllib.parse import urlsplit

from fastpurge.domain.exceptions import MalformedInputError
from fastpurge.domain.models.common import (
    JSON_LINE_OVERHEAD,
    JSON_OVERHEAD,
    MAX_BODY_SIZE,
    FileType,
    InvalidationObject,
)
from fastpurge.domain.models.purge import RequestBody

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# --- RequestBodyBuilder ---

def build_request_body(objects: Iterable[InvalidationObject]) -> RequestBody:
    """Wraps invalidation objects in the {"objects": [...]} wire schema."""
    return RequestBody(payload={"objects": list(objects)})


# --- Text mode ---

def check_url_parseable(line: str) -> None:
    """Structural check only: the line is never rewritten.

    Raises:
        ValueError: If the line cannot be parsed as a URL or cache key.
    """
    if _CONTROL_CHARS.search(line):
        raise ValueError("invalid control character in URL")
    if _BAD_ESCAPE.search(line):
        raise ValueError("invalid URL escape")
    parts = urlsplit(line)
    # Raises ValueError for non-numeric or out-of-range ports.
    parts.port


def entry_cost(line: str) -> int:
    """Bytes the line adds to a body: its JSON string literal plus `"",`."""
    encoded = json.dumps(line, ensure_ascii=False).encode("utf-8")
    return len(encoded) - 2 + JSON_LINE_OVERHEAD


def _numbered_lines(lines: Iterable[str]) -> Iterator[Tuple[int, str]]:
    """Enumerates input lines, reporting undecodable input as malformed."""
    line_number = 0
    iterator = iter(lines)
    while True:
        try:
            line = next(iterator)
        except StopIteration:
            return
        except UnicodeDecodeError as e:
            raise MalformedInputError(
                f"input is not valid UTF-8: {e.reason}", line_number=line_number + 1
            ) from e
        line_number += 1
        yield line_number, line


def _strip_newline(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def iter_text_bodies(lines: Iterable[str]) -> Iterator[RequestBody]:
    """Greedy, order-preserving packing of lines into size-bounded bodies.

    Args:
        lines: Raw input lines; trailing newlines are removed.

    Yields:
        RequestBody values whose serialised size is at most MAX_BODY_SIZE.

    Raises:
        MalformedInputError: If a line is not URL-parseable, is too large
            to fit in a body on its own, or is not valid UTF-8.
    """
    capacity = MAX_BODY_SIZE - JSON_OVERHEAD
    budget = capacity
    current: List[InvalidationObject] = []

    for line_number, raw_line in _numbered_lines(lines):
        line = _strip_newline(raw_line)
        try:
            check_url_parseable(line)
        except ValueError as e:
            raise MalformedInputError(f"{e}: {line!r}", line_number=line_number) from e

        cost = entry_cost(line)
        # Alone in a body the entry carries no trailing comma.
        if JSON_OVERHEAD + cost - 1 > MAX_BODY_SIZE:
            raise MalformedInputError(
                f"object of {cost} bytes does not fit in a {MAX_BODY_SIZE} byte request body",
                line_number=line_number,
            )

        budget -= cost
        if budget > 0:
            current.append(InvalidationObject(line))
            continue

        if current:
            logger.debug(f"Closing chunk with {len(current)} objects")
            yield build_request_body(current)
        budget = capacity - cost
        current = [InvalidationObject(line)]

    if current:
        logger.debug(f"Closing final chunk with {len(current)} objects")
        yield build_request_body(current)


# --- JSON mode ---

def _json_body(document: Any, document_number: int) -> RequestBody:
    if not isinstance(document, dict):
        raise MalformedInputError(
            f"document {document_number} is a JSON {type(document).__name__}, expected an object"
        )
    body = RequestBody(payload=document)
    size = len(body.to_bytes())
    if size > MAX_BODY_SIZE:
        logger.warning(
            f"JSON document {document_number} is {size} bytes, above the {MAX_BODY_SIZE} byte limit; sending as-is"
        )
    return body


def _needs_more_input(pending: str, error: json.JSONDecodeError) -> bool:
    """True when the decoder stopped at the end of the buffered text.

    Anything but whitespace after the error position means the document is
    broken, not merely unfinished. A string still open at the end of the
    buffer may be closed by the next line.
    """
    if not pending[error.pos:].strip():
        return True
    return error.msg.startswith("Unterminated string")


def iter_json_bodies(lines: Iterable[str]) -> Iterator[RequestBody]:
    """Yields one RequestBody per top-level JSON document, verbatim.

    Documents may span lines and several may share a line. Reaching the end
    of the stream with only whitespace left is a clean finish.

    Raises:
        MalformedInputError: If a document is not a JSON object, fails to
            decode, or the stream ends inside a document.
    """
    decoder = json.JSONDecoder()
    pending = ""
    document_number = 0

    for line_number, line in _numbered_lines(lines):
        pending += line
        while True:
            pending = pending.lstrip()
            if not pending:
                break
            try:
                document, end = decoder.raw_decode(pending)
            except json.JSONDecodeError as e:
                if _needs_more_input(pending, e):
                    break
                raise MalformedInputError(
                    f"invalid JSON after document {document_number}: {e.msg}",
                    line_number=line_number,
                ) from e
            document_number += 1
            yield _json_body(document, document_number)
            pending = pending[end:]

    if pending.strip():
        try:
            decoder.raw_decode(pending)
        except json.JSONDecodeError as e:
            raise MalformedInputError(
                f"invalid JSON after document {document_number}: {e.msg}"
            ) from e


def iter_request_bodies(lines: Iterable[str], file_type: str) -> Iterator[RequestBody]:
    """Chooses the chunker for the configured file type."""
    if file_type == FileType.TEXT.value:
        return iter_text_bodies(lines)
    if file_type == FileType.JSON.value:
        return iter_json_bodies(lines)
    raise ValueError(f"Unsupported file type: {file_type}")
